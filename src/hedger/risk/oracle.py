"""Deterministic rate-confidence check producing the must-hedge override.

A cheap, model-free forecast of where the floating rate is heading. When it
predicts, with high confidence, that the floating rate will sit well above
the fixed rate, the hedge is taken regardless of the composite score (the
two triggers are OR-combined). The engine only consults it on a fresh
trigger crossing, so a sustained breach hedges at most once.
"""

from decimal import Decimal

from hedger.models import FundingPrediction

_WIDE_SPREAD = Decimal("0.05")
_WIDENING_DRIFT = Decimal("0.02")
_NARROWING_DRIFT = Decimal("0.01")
_CONFIDENT_BPS = 8000
_UNSURE_BPS = 5000


def predict_funding(floating_rate: Decimal, fixed_rate: Decimal) -> FundingPrediction:
    """Forecast the floating APR from the current spread.

    A spread above 5 points is expected to widen by 2 more points; anything
    else drifts back by 1 point. Confidence is 80% when the floating venue
    pays more than the fixed venue, 50% otherwise.
    """
    diff = floating_rate - fixed_rate
    predicted = (
        floating_rate + _WIDENING_DRIFT if diff > _WIDE_SPREAD else floating_rate - _NARROWING_DRIFT
    )
    return FundingPrediction(
        predicted_apr=predicted,
        confidence_bps=_CONFIDENT_BPS if diff > 0 else _UNSURE_BPS,
    )


def must_hedge(
    prediction: FundingPrediction,
    fixed_rate: Decimal,
    margin: Decimal = Decimal("0.05"),
    min_confidence_bps: int = _CONFIDENT_BPS,
) -> bool:
    """True when the prediction is confident and clears the fixed rate by ``margin``."""
    return (
        prediction.confidence_bps >= min_confidence_bps
        and prediction.predicted_apr - fixed_rate >= margin
    )
