"""
Render adapters - consumers of registry snapshots.

A RenderAdapter subscribes to SnapshotEvent and ClearedEvent on the event
bus. Snapshots from an older registry generation than one already seen
are stale and ignored, so a slow consumer never draws a replaced set.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Optional, TYPE_CHECKING

from signal_overlay.events.base import AnyEvent, ClearedEvent, SnapshotEvent
from signal_overlay.models import RegistrySnapshot
from signal_overlay.render.markers import Marker, marker_for

if TYPE_CHECKING:
    from signal_overlay.events.bus import EventBus, Subscription

logger = logging.getLogger(__name__)


class RenderAdapter:
    """
    Base class for snapshot consumers.

    Subclasses implement render() and remove_all(); both are called from
    the event bus dispatcher thread.
    """

    def __init__(self):
        self._generation = -1
        self._subscriptions: list["Subscription"] = []
        self._bus: Optional["EventBus"] = None

    @property
    def generation(self) -> int:
        """Latest registry generation this adapter has seen."""
        return self._generation

    def attach(self, bus: "EventBus") -> None:
        """Start receiving snapshots from the bus."""
        self.detach()
        self._bus = bus
        self._subscriptions = [
            bus.subscribe(SnapshotEvent, self.handle_event),
            bus.subscribe(ClearedEvent, self.handle_event),
        ]

    def detach(self) -> None:
        """Stop receiving snapshots."""
        if self._bus is not None:
            for subscription in self._subscriptions:
                self._bus.unsubscribe(subscription)
        self._subscriptions = []
        self._bus = None

    def handle_event(self, event: AnyEvent) -> None:
        if isinstance(event, SnapshotEvent):
            if event.snapshot.generation < self._generation:
                logger.debug(
                    "stale_snapshot_ignored",
                    extra={"generation": event.snapshot.generation, "current": self._generation}
                )
                return
            self._generation = event.snapshot.generation
            self.render(event.snapshot)
        elif isinstance(event, ClearedEvent):
            if event.generation < self._generation:
                return
            self._generation = event.generation
            self.remove_all()

    def render(self, snapshot: RegistrySnapshot) -> None:
        raise NotImplementedError

    def remove_all(self) -> None:
        raise NotImplementedError


@dataclass
class MarkerDiff:
    """Marker changes produced by one snapshot."""
    created: list[Marker] = field(default_factory=list)
    updated: list[Marker] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.created or self.updated or self.removed)


class MarkerLayer(RenderAdapter):
    """
    In-memory set of markers kept in step with the registry.

    Each snapshot creates markers for new signals, updates changed ones and
    removes markers whose signals are gone. `on_change` receives the diff.
    """

    def __init__(self, on_change: Optional[Callable[[MarkerDiff], None]] = None):
        super().__init__()
        self.on_change = on_change
        self._markers: dict[str, Marker] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._markers)

    def markers(self) -> list[Marker]:
        """Current markers in registry order."""
        with self._lock:
            return list(self._markers.values())

    def get(self, signal_id: str) -> Optional[Marker]:
        with self._lock:
            return self._markers.get(signal_id)

    def render(self, snapshot: RegistrySnapshot) -> None:
        diff = MarkerDiff()
        markers: dict[str, Marker] = {}

        with self._lock:
            for signal in snapshot:
                marker = marker_for(signal)
                previous = self._markers.get(signal.id)
                if previous is None:
                    diff.created.append(marker)
                elif previous != marker:
                    diff.updated.append(marker)
                markers[signal.id] = marker

            diff.removed = [marker_id for marker_id in self._markers if marker_id not in markers]
            self._markers = markers

        if self.on_change is not None and not diff.empty:
            self.on_change(diff)

    def remove_all(self) -> None:
        with self._lock:
            removed = list(self._markers)
            self._markers = {}

        if self.on_change is not None and removed:
            self.on_change(MarkerDiff(removed=removed))
