"""Tests for SignalRegistry."""

import dataclasses
import threading

import pytest

from signal_overlay.events import ClearedEvent, SnapshotEvent
from signal_overlay.models import LatLng, Phase, TrafficSignal
from signal_overlay.simulation import SignalRegistry


def make(signal_id, phase=Phase.RED, countdown=10, cycles=0):
    return TrafficSignal(signal_id, LatLng(1.0, 2.0), signal_id.upper(), phase, countdown, cycles)


def test_empty_registry_tick_is_noop(recorder, bus):
    registry = SignalRegistry(bus)
    snapshot = registry.tick()

    assert len(snapshot) == 0
    assert snapshot.tick == 0
    assert registry.is_empty
    bus.drain()
    assert recorder.events == []


def test_replace_all_installs_and_publishes(recorder, bus, factory, anchor):
    registry = SignalRegistry(bus)
    snapshot = registry.replace_all(factory.demo_layout(anchor))

    assert len(registry) == 4
    assert snapshot.generation == 1
    assert snapshot.tick == 0
    assert [s.id for s in snapshot] == [f"demo_signal_{i}" for i in range(1, 5)]

    bus.drain()
    events = recorder.of_type(SnapshotEvent)
    assert len(events) == 1
    assert events[0].reason == "replace"
    assert events[0].source == "registry"
    assert events[0].snapshot is snapshot


def test_duplicate_ids_rejected():
    registry = SignalRegistry()
    registry.replace_all([make("a")])

    with pytest.raises(ValueError):
        registry.replace_all([make("b"), make("b")])

    assert [s.id for s in registry.snapshot()] == ["a"]
    assert registry.generation == 1


def test_tick_advances_every_signal():
    registry = SignalRegistry()
    registry.replace_all([make("a", Phase.RED, 1), make("b", Phase.GREEN, 5), make("c", Phase.YELLOW, 1, 1)])

    snapshot = registry.tick()
    states = {s.id: (s.phase, s.countdown, s.pedestrian_walk_active) for s in snapshot}

    assert snapshot.tick == 1
    assert states == {
        "a": (Phase.GREEN, 30, False),
        "b": (Phase.GREEN, 4, False),
        "c": (Phase.WALK, 20, True),
    }


def test_tick_publishes_snapshot(recorder, bus):
    registry = SignalRegistry(bus)
    registry.replace_all([make("a")])
    registry.tick()
    registry.tick()
    bus.drain()

    reasons = [e.reason for e in recorder.of_type(SnapshotEvent)]
    assert reasons == ["replace", "tick", "tick"]
    assert recorder.of_type(SnapshotEvent)[-1].snapshot.tick == 2


def test_snapshots_are_immutable_and_detached():
    registry = SignalRegistry()
    registry.replace_all([make("a", countdown=10)])
    before = registry.snapshot()

    registry.tick()

    assert before.signals[0].countdown == 10
    assert registry.snapshot().signals[0].countdown == 9
    with pytest.raises(dataclasses.FrozenInstanceError):
        before.signals[0].countdown = 3


def test_installed_records_are_never_touched():
    registry = SignalRegistry()
    old = [make("a", countdown=10), make("b", countdown=3)]
    registry.replace_all(old)
    registry.tick()

    registry.replace_all([make("c", countdown=7)])
    for _ in range(5):
        registry.tick()

    assert [(s.id, s.countdown) for s in old] == [("a", 10), ("b", 3)]
    assert registry.get("a") is None
    assert registry.get("c").countdown == 2


def test_replace_resets_tick_and_bumps_generation():
    registry = SignalRegistry()
    registry.replace_all([make("a")])
    registry.tick()
    snapshot = registry.replace_all([make("b")])

    assert snapshot.generation == 2
    assert snapshot.tick == 0


def test_clear_is_idempotent(recorder, bus):
    registry = SignalRegistry(bus)
    registry.replace_all([make("a")])

    registry.clear()
    registry.clear()
    bus.drain()

    assert registry.is_empty
    assert registry.generation == 2
    assert len(registry.snapshot()) == 0
    cleared = recorder.of_type(ClearedEvent)
    assert [e.generation for e in cleared] == [2]


def test_clear_on_empty_registry_publishes_nothing(recorder, bus):
    registry = SignalRegistry(bus)
    registry.clear()
    bus.drain()

    assert recorder.events == []
    assert registry.generation == 0


def test_get_returns_frozen_state():
    registry = SignalRegistry()
    registry.replace_all([make("a", countdown=4)])
    registry.tick()

    signal = registry.get("a")
    assert signal.countdown == 3
    assert registry.get("missing") is None

    with pytest.raises(dataclasses.FrozenInstanceError):
        signal.countdown = -7

    registry.tick()
    assert signal.countdown == 3
    assert registry.get("a").countdown == 2
    assert registry.snapshot().signals[0].countdown == 2


def test_caller_cannot_mutate_installed_signal():
    registry = SignalRegistry()
    record = make("a", countdown=10)
    registry.replace_all([record])

    record.countdown = -7
    registry.tick()

    assert registry.get("a").countdown == 9


def test_readers_never_see_half_ticked_set():
    """Every snapshot taken during ticking shows all signals in lockstep."""
    registry = SignalRegistry()
    registry.replace_all([make(f"s{i}", Phase.RED, 45) for i in range(16)])
    reading = threading.Event()
    done = threading.Event()
    torn = []
    reads = 0

    def read():
        nonlocal reads
        while not done.is_set():
            snapshot = registry.snapshot()
            states = {(s.phase, s.countdown) for s in snapshot}
            if len(states) != 1:
                torn.append(snapshot)
            reads += 1
            reading.set()

    reader = threading.Thread(target=read)
    reader.start()
    assert reading.wait(timeout=5.0)
    try:
        for _ in range(3000):
            registry.tick()
    finally:
        done.set()
        reader.join()

    assert reads > 0
    assert torn == []
    assert registry.snapshot().tick == 3000


def test_snapshot_to_dict():
    registry = SignalRegistry()
    registry.replace_all([make("a", Phase.WALK, 4)])
    data = registry.snapshot().to_dict()

    assert data == {
        "generation": 1,
        "tick": 0,
        "signals": [{
            "id": "a",
            "lat": 1.0,
            "lng": 2.0,
            "label": "A",
            "phase": "walk",
            "countdown": 4,
            "pedestrian_walk_active": True,
        }],
    }
