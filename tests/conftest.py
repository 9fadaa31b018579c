"""Shared fixtures for the signal overlay tests."""

import threading

import pytest

from signal_overlay.events import EventBus
from signal_overlay.models import LatLng
from signal_overlay.simulation import SignalFactory


class EventRecorder:
    """Bus callback that keeps every event it receives."""

    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def __call__(self, event):
        with self._lock:
            self.events.append(event)

    def of_type(self, event_type):
        with self._lock:
            return [e for e in self.events if isinstance(e, event_type)]


@pytest.fixture
def anchor():
    return LatLng(28.7041, 77.1025)


@pytest.fixture
def factory():
    return SignalFactory()


@pytest.fixture
def bus():
    event_bus = EventBus()
    event_bus.start()
    yield event_bus
    event_bus.stop()


@pytest.fixture
def recorder(bus):
    rec = EventRecorder()
    bus.subscribe(callback=rec)
    return rec
