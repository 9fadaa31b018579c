"""Console renderer - prints one status line per snapshot."""

import sys
from typing import Optional, TextIO

from signal_overlay.models import RegistrySnapshot
from signal_overlay.render.adapter import MarkerLayer
from signal_overlay.render.markers import Marker


def format_marker(marker: Marker) -> str:
    text = f"{marker.icon} {marker.label} {marker.countdown:>2}s"
    if marker.walk_dot:
        text += " WALK"
    if marker.urgent:
        text += " !"
    return text


class ConsoleRenderer(MarkerLayer):
    """Terminal view of the overlay, for running without a map."""

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__()
        self.stream = stream or sys.stdout

    def render(self, snapshot: RegistrySnapshot) -> None:
        super().render(snapshot)
        line = " | ".join(format_marker(marker) for marker in self.markers())
        print(f"[t={snapshot.tick:>4}] {line}", file=self.stream, flush=True)

    def remove_all(self) -> None:
        super().remove_all()
        print("✓ Signals cleared", file=self.stream, flush=True)
