"""
EventPublisher mixin for components that publish events.

Provides convenience methods to publish SnapshotEvent, ClearedEvent and
TextEvent without manually constructing the dataclasses each time.
"""

import time
from typing import TYPE_CHECKING, Optional

from signal_overlay.events.base import ClearedEvent, SnapshotEvent, TextEvent
from signal_overlay.models import RegistrySnapshot

if TYPE_CHECKING:
    from signal_overlay.events.bus import EventBus


class EventPublisher:
    """
    Mixin class for components that publish events.

    Provides convenience methods for publishing events with consistent
    source naming and timestamp handling.

    Usage:
        class MyComponent(EventPublisher):
            def __init__(self, event_bus: EventBus):
                EventPublisher.__init__(self, event_bus, "my_component")

            def do_something(self):
                self.publish_text("session", "Something happened")
    """

    def __init__(
        self,
        event_bus: Optional["EventBus"] = None,
        source_name: str = ""
    ):
        """
        Initialize the publisher mixin.

        Args:
            event_bus: EventBus to publish to (None disables publishing)
            source_name: Name of this component for event attribution
        """
        self._event_bus: Optional["EventBus"] = event_bus
        self._source_name = source_name

    def publish_text(
        self,
        category: str,
        message: str,
        level: str = "info"
    ) -> bool:
        """
        Publish a text event.

        Args:
            category: Event category (e.g., "session", "discovery")
            message: Human-readable message
            level: Log level ("debug", "info", "warning", "error")

        Returns:
            True if published, False if no bus or publish failed
        """
        if self._event_bus is None:
            return False

        event = TextEvent(
            timestamp=time.monotonic(),
            source=self._source_name,
            category=category,
            message=message,
            level=level
        )
        return self._event_bus.publish(event)

    def publish_snapshot(self, snapshot: RegistrySnapshot, reason: str) -> bool:
        """
        Publish a registry snapshot.

        Args:
            snapshot: Snapshot to hand to render adapters
            reason: "replace" or "tick"

        Returns:
            True if published, False if no bus or publish failed
        """
        if self._event_bus is None:
            return False

        event = SnapshotEvent(
            timestamp=time.monotonic(),
            source=self._source_name,
            snapshot=snapshot,
            reason=reason,
        )
        return self._event_bus.publish(event)

    def publish_cleared(self, generation: int) -> bool:
        """Publish a registry cleared notification."""
        if self._event_bus is None:
            return False

        event = ClearedEvent(
            timestamp=time.monotonic(),
            source=self._source_name,
            generation=generation,
        )
        return self._event_bus.publish(event)
