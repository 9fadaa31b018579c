"""
SignalRegistry - authoritative store of simulated signals.

The registry is the only writer of signal state. Every tick computes the
next state of all signals first and swaps it in under the lock, so a
reader (event bus thread, web server) never sees a partially ticked set.
Snapshots are published on the event bus for render adapters.
"""

import dataclasses
import logging
import threading
from typing import Iterable, Optional, TYPE_CHECKING

from signal_overlay.events.publisher import EventPublisher
from signal_overlay.models import RegistrySnapshot, SignalSnapshot, TrafficSignal
from signal_overlay.simulation.phase_clock import advance_signal

if TYPE_CHECKING:
    from signal_overlay.events.bus import EventBus

logger = logging.getLogger(__name__)


class SignalRegistry(EventPublisher):
    """
    Owns the set of simulated signals for one overlay session.

    Usage:
        registry = SignalRegistry(event_bus)
        registry.replace_all(factory.demo_layout(anchor))
        snapshot = registry.tick()
    """

    def __init__(self, event_bus: Optional["EventBus"] = None):
        EventPublisher.__init__(self, event_bus, "registry")
        self._lock = threading.Lock()
        self._signals: list[TrafficSignal] = []
        self._generation = 0
        self._tick = 0
        self._snapshot = RegistrySnapshot()

    def __len__(self) -> int:
        with self._lock:
            return len(self._signals)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def get(self, signal_id: str) -> Optional[SignalSnapshot]:
        """State of one signal as of the last applied tick."""
        with self._lock:
            snapshot = self._snapshot
        for signal in snapshot.signals:
            if signal.id == signal_id:
                return signal
        return None

    def replace_all(self, signals: Iterable[TrafficSignal]) -> RegistrySnapshot:
        """
        Discard the current signal set and install a new one.

        Any previously published snapshot becomes stale (older generation).
        The registry keeps its own copies; the caller's records are never
        ticked.

        Raises:
            ValueError: If two signals share an id
        """
        signals = [dataclasses.replace(signal) for signal in signals]
        ids = [s.id for s in signals]
        if len(ids) != len(set(ids)):
            raise ValueError("signal ids must be unique within a registry")

        with self._lock:
            self._signals = signals
            self._generation += 1
            self._tick = 0
            snapshot = self._freeze()

        logger.info(
            "registry_replaced",
            extra={"signal_count": len(snapshot), "generation": snapshot.generation}
        )
        self.publish_snapshot(snapshot, "replace")
        return snapshot

    def tick(self) -> RegistrySnapshot:
        """
        Advance every signal by one tick.

        Returns:
            The snapshot produced by this tick (the current one if empty)
        """
        with self._lock:
            if not self._signals:
                return self._snapshot

            # Compute first, then apply, so no reader sees a half-ticked set
            next_states = [advance_signal(signal) for signal in self._signals]
            for signal, state in zip(self._signals, next_states):
                if state.phase is not signal.phase:
                    logger.debug(
                        "phase_transition",
                        extra={
                            "signal_id": signal.id,
                            "from_phase": signal.phase.value,
                            "to_phase": state.phase.value,
                            "countdown": state.countdown,
                            "completed_cycles": state.completed_cycles,
                        }
                    )
                signal.phase = state.phase
                signal.countdown = state.countdown
                signal.completed_cycles = state.completed_cycles

            self._tick += 1
            snapshot = self._freeze()

        self.publish_snapshot(snapshot, "tick")
        return snapshot

    def snapshot(self) -> RegistrySnapshot:
        """Current immutable view of all signals, in insertion order."""
        with self._lock:
            return self._snapshot

    def clear(self) -> None:
        """Remove every signal and notify listeners. Idempotent."""
        with self._lock:
            if not self._signals:
                return
            self._signals = []
            self._generation += 1
            self._tick = 0
            generation = self._generation
            self._snapshot = RegistrySnapshot(generation=generation)

        logger.info("registry_cleared", extra={"generation": generation})
        self.publish_cleared(generation)

    def _freeze(self) -> RegistrySnapshot:
        # Caller holds the lock
        self._snapshot = RegistrySnapshot(
            generation=self._generation,
            tick=self._tick,
            signals=tuple(signal.freeze() for signal in self._signals),
        )
        return self._snapshot
