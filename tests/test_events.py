"""Tests for the event bus and publisher mixin."""

from signal_overlay.events import (
    ClearedEvent,
    EventBus,
    EventPublisher,
    SnapshotEvent,
    TextEvent,
)
from signal_overlay.models import RegistrySnapshot

from tests.conftest import EventRecorder


def test_delivery_by_type(bus):
    texts = EventRecorder()
    cleared = EventRecorder()
    bus.subscribe(TextEvent, texts)
    bus.subscribe(ClearedEvent, cleared)

    bus.publish(TextEvent(category="session", message="hello"))
    bus.publish(ClearedEvent(generation=3))
    bus.drain()

    assert [e.message for e in texts.events] == ["hello"]
    assert [e.generation for e in cleared.events] == [3]


def test_source_filter(bus):
    rec = EventRecorder()
    bus.subscribe(TextEvent, rec, source_filter="discovery")

    bus.publish(TextEvent(source="session", message="ignored"))
    bus.publish(TextEvent(source="discovery", message="kept"))
    bus.drain()

    assert [e.message for e in rec.events] == ["kept"]


def test_unsubscribe_stops_delivery(bus):
    rec = EventRecorder()
    subscription = bus.subscribe(TextEvent, rec)
    bus.publish(TextEvent(message="one"))
    bus.drain()

    assert bus.unsubscribe(subscription)
    assert not bus.unsubscribe(subscription)
    bus.publish(TextEvent(message="two"))
    bus.drain()

    assert [e.message for e in rec.events] == ["one"]


def test_failing_callback_does_not_block_others(bus):
    rec = EventRecorder()

    def broken(event):
        raise RuntimeError("boom")

    failing = bus.subscribe(TextEvent, broken)
    bus.subscribe(TextEvent, rec)

    bus.publish(TextEvent(message="a"))
    bus.publish(TextEvent(message="b"))
    bus.drain()

    assert [e.message for e in rec.events] == ["a", "b"]
    assert failing.error_count == 2
    assert bus.is_running


def test_full_queue_drops_events():
    bus = EventBus(dispatch_queue_size=1)

    assert bus.publish(TextEvent(message="kept"))
    assert not bus.publish(TextEvent(message="dropped"))
    assert bus.get_stats()["dropped"] == 1


def test_context_manager_starts_and_stops():
    with EventBus() as bus:
        assert bus.is_running
    assert not bus.is_running


def test_publisher_without_bus():
    publisher = EventPublisher(source_name="test")

    assert not publisher.publish_text("session", "nobody listening")
    assert not publisher.publish_cleared(1)


def test_publisher_stamps_source(bus):
    rec = EventRecorder()
    bus.subscribe(callback=rec)
    publisher = EventPublisher(bus, "registry")

    assert publisher.publish_snapshot(RegistrySnapshot(generation=2), "replace")
    assert publisher.publish_text("session", "started", "warning")
    bus.drain()

    snapshot_event, text_event = rec.events
    assert isinstance(snapshot_event, SnapshotEvent)
    assert snapshot_event.source == "registry"
    assert snapshot_event.snapshot.generation == 2
    assert text_event.level == "warning"
    assert text_event.category == "session"
