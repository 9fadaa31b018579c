"""
Marker view-models built from signal snapshots.

A Marker carries everything a map front-end needs to draw one signal:
position, colour, icon, countdown text and the urgency/walk indicators.
"""

from dataclasses import dataclass

from signal_overlay.models import Phase, SignalSnapshot

PHASE_COLORS = {
    Phase.RED: "#FF3B30",
    Phase.YELLOW: "#FF9500",
    Phase.GREEN: "#30D158",
    Phase.WALK: "#007AFF",
}

PHASE_ICONS = {
    Phase.RED: "■",     # stop
    Phase.YELLOW: "▲",  # caution
    Phase.GREEN: "↑",   # go
    Phase.WALK: "🚶",
}

URGENT_COUNTDOWN = 5


@dataclass(frozen=True, slots=True)
class Marker:
    """Visual state of one signal marker."""
    id: str
    lat: float
    lng: float
    label: str
    phase: Phase
    countdown: int
    color: str
    icon: str
    urgent: bool
    blinking: bool
    walk_dot: bool

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lat": self.lat,
            "lng": self.lng,
            "label": self.label,
            "phase": self.phase.value,
            "countdown": self.countdown,
            "color": self.color,
            "icon": self.icon,
            "urgent": self.urgent,
            "blinking": self.blinking,
            "walk_dot": self.walk_dot,
        }


def marker_for(signal: SignalSnapshot) -> Marker:
    """
    Build the marker for a signal snapshot.

    The countdown turns urgent in its last 5 seconds; urgent markers blink
    except during yellow. The walk dot shows only while walk is active.
    """
    urgent = signal.countdown <= URGENT_COUNTDOWN
    return Marker(
        id=signal.id,
        lat=signal.lat,
        lng=signal.lng,
        label=signal.label,
        phase=signal.phase,
        countdown=signal.countdown,
        color=PHASE_COLORS[signal.phase],
        icon=PHASE_ICONS[signal.phase],
        urgent=urgent,
        blinking=urgent and signal.phase is not Phase.YELLOW,
        walk_dot=signal.pedestrian_walk_active,
    )
