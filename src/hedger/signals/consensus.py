"""Consensus rate aggregation across venues.

Combines same-asset annualized rates into a single median, rejecting
observations that deviate too far from the raw median. Pure functions;
nothing here raises on bad or missing data.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from hedger.models import ConsensusRate, RateObservation

#: Below this many observations, outlier rejection is meaningless.
_MIN_SAMPLES_FOR_FILTER = 3


def median(values: list[Decimal]) -> Decimal:
    """Median of a list of Decimals.

    Odd count takes the middle value, even count the mean of the two
    middle values. Empty input yields 0.
    """
    if not values:
        return Decimal("0")

    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / Decimal("2")


def filter_outliers(
    observations: list[RateObservation],
    tolerance_pct: Decimal = Decimal("5"),
) -> list[RateObservation]:
    """Drop observations whose relative deviation from the raw median exceeds tolerance.

    No-op for fewer than three observations, and when the raw median is
    exactly zero (relative deviation is undefined).

    Args:
        observations: Same-asset observations in any order.
        tolerance_pct: Maximum allowed deviation, in percent of the median.

    Returns:
        The surviving observations, in input order.
    """
    if len(observations) < _MIN_SAMPLES_FOR_FILTER:
        return list(observations)

    raw_median = median([o.annualized_rate for o in observations])
    if raw_median == 0:
        return list(observations)

    tolerance = tolerance_pct / Decimal("100")
    return [
        o
        for o in observations
        if abs(o.annualized_rate - raw_median) / abs(raw_median) <= tolerance
    ]


def aggregate(
    observations: list[RateObservation],
    tolerance_pct: Decimal = Decimal("5"),
) -> ConsensusRate:
    """Aggregate observations into a ConsensusRate.

    The engine calls this once per asset, so only observations matching
    the first observation's asset are considered. Empty input yields a
    zero median with no sources; callers treat zero as "no data".
    """
    if not observations:
        return ConsensusRate(asset="", median_rate=Decimal("0"), sources=())

    asset = observations[0].asset
    same_asset = [o for o in observations if o.asset == asset]
    survivors = filter_outliers(same_asset, tolerance_pct)

    return ConsensusRate(
        asset=asset,
        median_rate=median([o.annualized_rate for o in survivors]),
        sources=tuple(survivors),
    )
