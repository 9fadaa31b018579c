"""Tests for the phase transition function."""

import pytest

from signal_overlay.models import SIGNAL_TIMING, LatLng, Phase, SignalTiming, TrafficSignal
from signal_overlay.simulation import (
    InvalidPhaseError,
    PhaseState,
    advance,
    advance_signal,
    initial_countdown,
    initial_phase,
)


def run(phase, countdown, ticks, cycles=0, timing=SIGNAL_TIMING):
    """Advance `ticks` times, returning every intermediate state."""
    states = []
    state = PhaseState(phase, countdown, phase is Phase.WALK, cycles)
    for _ in range(ticks):
        state = advance(state.phase, state.countdown, state.completed_cycles, timing)
        states.append(state)
    return states


class TestAdvance:

    def test_countdown_decrements_within_phase(self):
        assert advance(Phase.RED, 45) == PhaseState(Phase.RED, 44, False, 0)
        assert advance(Phase.GREEN, 2, 1) == PhaseState(Phase.GREEN, 1, False, 1)

    def test_red_to_green(self):
        assert advance(Phase.RED, 1) == PhaseState(Phase.GREEN, 30, False, 0)

    def test_green_to_yellow(self):
        assert advance(Phase.GREEN, 1) == PhaseState(Phase.YELLOW, 6, False, 0)

    def test_yellow_to_red_counts_cycle(self):
        assert advance(Phase.YELLOW, 1, 0) == PhaseState(Phase.RED, 45, False, 1)

    def test_yellow_to_walk_on_second_cycle(self):
        assert advance(Phase.YELLOW, 1, 1) == PhaseState(Phase.WALK, 20, True, 0)

    def test_walk_keeps_pedestrian_flag_while_counting(self):
        assert advance(Phase.WALK, 20) == PhaseState(Phase.WALK, 19, True, 0)

    def test_walk_to_red(self):
        assert advance(Phase.WALK, 1) == PhaseState(Phase.RED, 45, False, 0)

    def test_zero_countdown_still_transitions(self):
        assert advance(Phase.RED, 0).phase is Phase.GREEN

    @pytest.mark.parametrize("bad", ["red", None, 3, "blue"])
    def test_unknown_phase_rejected(self, bad):
        with pytest.raises(InvalidPhaseError):
            advance(bad, 10)

    def test_invalid_phase_is_value_error(self):
        with pytest.raises(ValueError):
            advance("amber", 10)

    def test_custom_timing_walk_every_cycle(self):
        timing = SignalTiming(walk_every_cycles=1, walk_duration=7)
        assert advance(Phase.YELLOW, 1, 0, timing) == PhaseState(Phase.WALK, 7, True, 0)


class TestCycle:

    def test_full_cycle_transition_ticks(self):
        """Red 45 reaches Green at 45, Yellow at 75, Red at 81, Walk at 162, Red at 182."""
        states = run(Phase.RED, 45, 182)
        transitions = {}
        previous = Phase.RED
        for tick, state in enumerate(states, start=1):
            if state.phase is not previous:
                transitions.setdefault(state.phase, []).append(tick)
            previous = state.phase

        assert transitions[Phase.GREEN] == [45, 126]
        assert transitions[Phase.YELLOW] == [75, 156]
        assert transitions[Phase.RED] == [81, 182]
        assert transitions[Phase.WALK] == [162]

        assert states[80] == PhaseState(Phase.RED, 45, False, 1)
        assert states[161] == PhaseState(Phase.WALK, 20, True, 0)

    def test_countdown_stays_in_bounds(self):
        for state in run(Phase.GREEN, 30, 600):
            assert 1 <= state.countdown <= SIGNAL_TIMING.duration(state.phase)

    def test_walk_only_follows_yellow(self):
        states = run(Phase.RED, 45, 600)
        previous = Phase.RED
        for state in states:
            if state.phase is Phase.WALK and previous is not Phase.WALK:
                assert previous is Phase.YELLOW
            previous = state.phase

    def test_walk_on_every_second_yellow_exit(self):
        exits = []
        previous = Phase.RED
        for state in run(Phase.RED, 45, 1000):
            if previous is Phase.YELLOW and state.phase is not Phase.YELLOW:
                exits.append(state.phase)
            previous = state.phase

        assert len(exits) >= 6
        for number, phase in enumerate(exits, start=1):
            assert phase is (Phase.WALK if number % 2 == 0 else Phase.RED)

    def test_pedestrian_flag_matches_walk_phase(self):
        for state in run(Phase.YELLOW, 3, 400, cycles=1):
            assert state.pedestrian_walk == (state.phase is Phase.WALK)


class TestInitialState:

    def test_initial_phase_rotates(self):
        phases = [initial_phase(i) for i in range(6)]
        assert phases == [
            Phase.RED, Phase.GREEN, Phase.YELLOW,
            Phase.RED, Phase.GREEN, Phase.YELLOW,
        ]

    def test_demo_countdowns(self):
        countdowns = [initial_countdown(initial_phase(i), i) for i in range(4)]
        assert countdowns == [22, 26, 6, 43]

    @pytest.mark.parametrize("phase", list(Phase))
    def test_initial_countdown_bounds(self, phase):
        duration = SIGNAL_TIMING.duration(phase)
        minimum = max(5, int(duration * 0.2))
        for index in range(200):
            assert minimum <= initial_countdown(phase, index) <= duration

    def test_initial_countdown_is_deterministic(self):
        assert initial_countdown(Phase.RED, 17) == initial_countdown(Phase.RED, 17)

    def test_initial_countdown_rejects_unknown_phase(self):
        with pytest.raises(InvalidPhaseError):
            initial_countdown("red", 0)


def test_advance_signal_does_not_mutate():
    signal = TrafficSignal("s1", LatLng(0.0, 0.0), "S1", Phase.YELLOW, 1, 1)
    state = advance_signal(signal)

    assert state == PhaseState(Phase.WALK, 20, True, 0)
    assert signal.phase is Phase.YELLOW
    assert signal.countdown == 1
    assert signal.completed_cycles == 1
