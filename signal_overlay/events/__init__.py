"""
Event system for distributing signal snapshots to render adapters.

This module provides:
- Event dataclasses (SnapshotEvent, ClearedEvent, TextEvent)
- EventBus for pub/sub event distribution
- EventPublisher mixin for components
"""

from signal_overlay.events.base import (
    Event,
    SnapshotEvent,
    ClearedEvent,
    TextEvent,
    AnyEvent,
)
from signal_overlay.events.bus import EventBus, Subscription
from signal_overlay.events.publisher import EventPublisher

__all__ = [
    # Base events
    "Event",
    "SnapshotEvent",
    "ClearedEvent",
    "TextEvent",
    "AnyEvent",
    # Infrastructure
    "EventBus",
    "Subscription",
    "EventPublisher",
]
