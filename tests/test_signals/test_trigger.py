"""Tests for the edge-triggered assessment gate."""

from hedger.models import ThresholdState
from hedger.signals.trigger import TriggerZone, commit, evaluate


def _run_sequence(spreads: list[int], trigger_bps: int) -> list[bool]:
    """Evaluate and commit each sample in order, returning the fire flags."""
    state = ThresholdState()
    fired = []
    for bps in spreads:
        decision = evaluate(state, bps, trigger_bps)
        fired.append(decision.fire)
        commit(state, decision)
    return fired


class TestEvaluate:
    """Tests for evaluate/commit."""

    def test_fires_only_on_upward_crossings(self) -> None:
        """[50, 850, 900, 40, 860] at 800 bps fires at indices 1 and 4 only."""
        fired = _run_sequence([50, 850, 900, 40, 860], 800)
        assert fired == [False, True, False, False, True]

    def test_first_sample_above_fires(self) -> None:
        """Initial state is BELOW, so a first sample above the trigger is a crossing."""
        assert _run_sequence([900], 800) == [True]

    def test_equal_to_trigger_counts_as_above(self) -> None:
        assert _run_sequence([0, 800], 800) == [False, True]

    def test_falling_below_does_not_fire(self) -> None:
        state = ThresholdState(was_above_threshold=True)
        decision = evaluate(state, 100, 800)
        assert decision.previous is TriggerZone.ABOVE
        assert decision.current is TriggerZone.BELOW
        assert decision.fire is False

    def test_evaluate_does_not_mutate_state(self) -> None:
        state = ThresholdState()
        evaluate(state, 900, 800)
        assert state.was_above_threshold is False

    def test_commit_records_current_zone(self) -> None:
        state = ThresholdState()
        commit(state, evaluate(state, 900, 800))
        assert state.was_above_threshold is True
        commit(state, evaluate(state, 10, 800))
        assert state.was_above_threshold is False
