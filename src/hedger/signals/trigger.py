"""Edge-triggered gate for the external risk assessment.

Two states, BELOW and ABOVE the spread trigger. Only a BELOW -> ABOVE
transition authorizes calling the external assessor; a spread that stays
above the trigger reuses the local placeholder assessment, so the assessor
is paid for once per crossing rather than once per cycle.

The decision is made against the previous cycle's state; the state is then
advanced unconditionally with ``commit`` at the end of the cycle.
"""

from dataclasses import dataclass
from enum import Enum

from hedger.models import ThresholdState


class TriggerZone(str, Enum):
    """Position of the spread relative to the trigger."""

    BELOW = "below"
    ABOVE = "above"


@dataclass(frozen=True)
class TriggerDecision:
    """Result of evaluating one spread sample against the previous state."""

    previous: TriggerZone
    current: TriggerZone
    fire: bool  # True only on BELOW -> ABOVE

    @property
    def above(self) -> bool:
        return self.current is TriggerZone.ABOVE


def _zone(above: bool) -> TriggerZone:
    return TriggerZone.ABOVE if above else TriggerZone.BELOW


def evaluate(state: ThresholdState, spread_bps: int, trigger_bps: int) -> TriggerDecision:
    """Classify ``spread_bps`` and decide whether the assessor may be invoked."""
    previous = _zone(state.was_above_threshold)
    current = _zone(spread_bps >= trigger_bps)
    return TriggerDecision(
        previous=previous,
        current=current,
        fire=previous is TriggerZone.BELOW and current is TriggerZone.ABOVE,
    )


def commit(state: ThresholdState, decision: TriggerDecision) -> None:
    """Advance the persisted state to this cycle's zone."""
    state.was_above_threshold = decision.above
