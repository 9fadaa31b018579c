"""
PhaseClock - pure phase transition function for a single signal.

One call to advance() is one tick. The countdown is decremented until it
would reach zero, at which point the signal enters the next phase with that
phase's full duration:

    Red (45s) -> Green (30s) -> Yellow (6s) -> Red ...
                                      \\-> Walk (20s) -> Red, every 2nd cycle
"""

import math
from typing import NamedTuple

from signal_overlay.models import SIGNAL_TIMING, Phase, SignalTiming, TrafficSignal


class InvalidPhaseError(ValueError):
    """Raised for a phase value outside the Phase enum."""


class PhaseState(NamedTuple):
    """Result of one tick for one signal."""
    phase: Phase
    countdown: int
    pedestrian_walk: bool
    completed_cycles: int


# Initial phases rotate through this sequence so neighbours never all match
INITIAL_SEQUENCE = (Phase.RED, Phase.GREEN, Phase.YELLOW)


def _check_phase(phase) -> Phase:
    if not isinstance(phase, Phase):
        raise InvalidPhaseError(f"unknown phase: {phase!r}")
    return phase


def advance(
    phase: Phase,
    countdown: int,
    completed_cycles: int = 0,
    timing: SignalTiming = SIGNAL_TIMING,
) -> PhaseState:
    """
    Advance a signal by one tick.

    Args:
        phase: Current phase
        countdown: Seconds remaining in the current phase
        completed_cycles: Cycles completed since the last Walk phase
        timing: Duration policy

    Returns:
        PhaseState after the tick

    Raises:
        InvalidPhaseError: If phase is not a Phase member
    """
    phase = _check_phase(phase)
    remaining = countdown - 1

    if remaining > 0:
        return PhaseState(phase, remaining, phase is Phase.WALK, completed_cycles)

    if phase is Phase.RED:
        return PhaseState(Phase.GREEN, timing.green_duration, False, completed_cycles)

    if phase is Phase.GREEN:
        return PhaseState(Phase.YELLOW, timing.yellow_duration, False, completed_cycles)

    if phase is Phase.YELLOW:
        # Count the cycle before deciding where it exits
        cycles = completed_cycles + 1
        if cycles >= timing.walk_every_cycles:
            return PhaseState(Phase.WALK, timing.walk_duration, True, 0)
        return PhaseState(Phase.RED, timing.red_duration, False, cycles)

    # Phase.WALK
    return PhaseState(Phase.RED, timing.red_duration, False, completed_cycles)


def advance_signal(signal: TrafficSignal, timing: SignalTiming = SIGNAL_TIMING) -> PhaseState:
    """Compute the next state of a signal record without mutating it."""
    return advance(signal.phase, signal.countdown, signal.completed_cycles, timing)


def initial_phase(index: int) -> Phase:
    """Staggered starting phase for the signal at position `index` in a batch."""
    return INITIAL_SEQUENCE[index % len(INITIAL_SEQUENCE)]


def initial_countdown(phase: Phase, index: int, timing: SignalTiming = SIGNAL_TIMING) -> int:
    """
    Deterministic starting countdown for the signal at `index`.

    Always within [max(5, floor(duration * 0.2)), duration], so no signal
    starts at zero and signals start at different points of their phase.
    """
    duration = timing.duration(_check_phase(phase))
    min_time = max(5, math.floor(duration * 0.2))
    seed = (index * 7 + 13) % (duration - min_time + 1)
    return min_time + seed
