"""
Render adapters for signal snapshots.

Provides:
- Marker view-models (colour, icon, urgency, walk indicator)
- RenderAdapter base subscribing to the event bus
- MarkerLayer keeping markers in step with the registry
- ConsoleRenderer for terminal output
"""

from signal_overlay.render.markers import (
    Marker,
    PHASE_COLORS,
    PHASE_ICONS,
    URGENT_COUNTDOWN,
    marker_for,
)
from signal_overlay.render.adapter import MarkerDiff, MarkerLayer, RenderAdapter
from signal_overlay.render.console import ConsoleRenderer, format_marker

__all__ = [
    "Marker",
    "PHASE_COLORS",
    "PHASE_ICONS",
    "URGENT_COUNTDOWN",
    "marker_for",
    "MarkerDiff",
    "MarkerLayer",
    "RenderAdapter",
    "ConsoleRenderer",
    "format_marker",
]
