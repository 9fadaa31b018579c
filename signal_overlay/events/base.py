"""
Event dataclasses for the overlay event bus.

Three types of events:
- SnapshotEvent: A new registry snapshot (after replace_all or tick)
- ClearedEvent: The registry was emptied; render adapters remove all markers
- TextEvent: Discrete status messages (discovery progress, session lifecycle)
"""

import time
from dataclasses import dataclass, field

from signal_overlay.models import RegistrySnapshot


@dataclass(slots=True)
class Event:
    """Base class for all events."""
    timestamp: float = field(default_factory=time.monotonic)
    source: str = ""  # e.g., "registry", "session"

    def __post_init__(self):
        if self.timestamp == 0:
            self.timestamp = time.monotonic()


@dataclass(slots=True)
class SnapshotEvent(Event):
    """
    A registry produced a new snapshot.

    Attributes:
        snapshot: Immutable view of all signals
        reason: "replace" for a new signal set, "tick" for a phase tick
    """
    snapshot: RegistrySnapshot = field(default_factory=RegistrySnapshot)
    reason: str = "tick"


@dataclass(slots=True)
class ClearedEvent(Event):
    """
    The registry was cleared.

    Attributes:
        generation: Registry generation after clearing
    """
    generation: int = 0


@dataclass(slots=True)
class TextEvent(Event):
    """
    Discrete status message, shown as a timeline by the dashboard.

    Attributes:
        category: Event category ("session", "discovery", "location")
        message: Human-readable message
        level: Severity level (debug, info, warning, error)
    """
    category: str = ""
    message: str = ""
    level: str = "info"


# Type alias for any event type
AnyEvent = Event | SnapshotEvent | ClearedEvent | TextEvent
