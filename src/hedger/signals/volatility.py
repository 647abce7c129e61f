"""Spread volatility amplification factor.

Converts the dispersion of the rolling spread history into a dimensionless
multiplier for the spread term of the composite score. The baseline is the
spread standard deviation regarded as "normal" (0.05 = 5 percentage points);
each baseline of extra deviation adds 1.0 to the factor. The baseline is a
configuration value, not a fitted constant.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

_ONE = Decimal("1")


def population_std_dev(values: list[Decimal]) -> Decimal:
    """Population standard deviation (divides by N, not N-1)."""
    n = Decimal(len(values))
    mean = sum(values, Decimal("0")) / n
    variance = sum(((v - mean) ** 2 for v in values), Decimal("0")) / n
    return variance.sqrt()


def volatility_factor(
    history: list[Decimal],
    baseline: Decimal = Decimal("0.05"),
) -> Decimal:
    """Return ``1 + stddev(history) / baseline``.

    Fewer than two samples carry no dispersion information, so the
    neutral multiplier 1 is returned (cold start).
    """
    if len(history) < 2:
        return _ONE
    return _ONE + population_std_dev(history) / baseline
