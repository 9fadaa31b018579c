"""
OverlaySession - one active overlay context.

The session owns the registry, scheduler and discovery of one map context,
exposing an event-based interface for consumers (console, web dashboard).
"""

from signal_overlay.overlay.session import OverlaySession, discovery_source_from_config

__all__ = ["OverlaySession", "discovery_source_from_config"]
