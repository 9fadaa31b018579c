"""
Traffic-signal phase simulation.

PhaseClock computes transitions, SignalRegistry owns signal state,
SignalFactory seeds it and TickScheduler drives it once per second.
"""

from signal_overlay.simulation.phase_clock import (
    InvalidPhaseError,
    PhaseState,
    advance,
    advance_signal,
    initial_countdown,
    initial_phase,
)
from signal_overlay.simulation.registry import SignalRegistry
from signal_overlay.simulation.factory import SeedResult, SignalFactory
from signal_overlay.simulation.scheduler import SchedulerState, TickScheduler

__all__ = [
    "InvalidPhaseError",
    "PhaseState",
    "advance",
    "advance_signal",
    "initial_countdown",
    "initial_phase",
    "SignalRegistry",
    "SeedResult",
    "SignalFactory",
    "SchedulerState",
    "TickScheduler",
]
