"""
Data model for simulated traffic signals.

- Phase: closed set of signal phases
- LatLng: geographic position
- TrafficSignal: mutable record owned by the SignalRegistry
- SignalSnapshot / RegistrySnapshot: immutable views handed to render adapters
- SignalTiming: the fixed phase duration policy
"""

from dataclasses import dataclass, field
from enum import Enum


class Phase(Enum):
    """Phase of a simulated signal's display."""
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    WALK = "walk"


@dataclass(frozen=True, slots=True)
class LatLng:
    """Latitude/longitude pair in decimal degrees."""
    lat: float
    lng: float

    def offset(self, dlat: float, dlng: float) -> "LatLng":
        return LatLng(self.lat + dlat, self.lng + dlng)


@dataclass(frozen=True, slots=True)
class SignalTiming:
    """
    Fixed phase durations in seconds.

    Walk is inserted after every `walk_every_cycles` Red-Green-Yellow cycles.
    """
    red_duration: int = 45
    green_duration: int = 30
    yellow_duration: int = 6
    walk_duration: int = 20
    walk_every_cycles: int = 2

    def duration(self, phase: Phase) -> int:
        return {
            Phase.RED: self.red_duration,
            Phase.GREEN: self.green_duration,
            Phase.YELLOW: self.yellow_duration,
            Phase.WALK: self.walk_duration,
        }[phase]

    def to_dict(self) -> dict:
        return {
            "red_duration": self.red_duration,
            "green_duration": self.green_duration,
            "yellow_duration": self.yellow_duration,
            "walk_duration": self.walk_duration,
            "walk_every_cycles": self.walk_every_cycles,
        }


# The one policy used by the phase clock
SIGNAL_TIMING = SignalTiming()


@dataclass(slots=True)
class TrafficSignal:
    """
    A simulated signal.

    Only `phase`, `countdown` and `completed_cycles` change after creation,
    and only through SignalRegistry.tick().
    """
    id: str
    position: LatLng
    label: str
    phase: Phase = Phase.RED
    countdown: int = SIGNAL_TIMING.red_duration
    completed_cycles: int = 0

    @property
    def pedestrian_walk_active(self) -> bool:
        return self.phase is Phase.WALK

    def freeze(self) -> "SignalSnapshot":
        """Return an immutable copy of the current state."""
        return SignalSnapshot(
            id=self.id,
            lat=self.position.lat,
            lng=self.position.lng,
            label=self.label,
            phase=self.phase,
            countdown=self.countdown,
            pedestrian_walk_active=self.pedestrian_walk_active,
            completed_cycles=self.completed_cycles,
        )


@dataclass(frozen=True, slots=True)
class SignalSnapshot:
    """Point-in-time state of one signal."""
    id: str
    lat: float
    lng: float
    label: str
    phase: Phase
    countdown: int
    pedestrian_walk_active: bool
    completed_cycles: int = 0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lat": self.lat,
            "lng": self.lng,
            "label": self.label,
            "phase": self.phase.value,
            "countdown": self.countdown,
            "pedestrian_walk_active": self.pedestrian_walk_active,
        }


@dataclass(frozen=True, slots=True)
class RegistrySnapshot:
    """
    Immutable view of every signal in a registry.

    Attributes:
        generation: Bumped on every replace/clear; older generations are stale
        tick: Number of ticks applied within this generation
        signals: Per-signal state in insertion order
    """
    generation: int = 0
    tick: int = 0
    signals: tuple[SignalSnapshot, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.signals)

    def __iter__(self):
        return iter(self.signals)

    def by_id(self) -> dict[str, SignalSnapshot]:
        return {s.id: s for s in self.signals}

    def to_dict(self) -> dict:
        return {
            "generation": self.generation,
            "tick": self.tick,
            "signals": [s.to_dict() for s in self.signals],
        }
