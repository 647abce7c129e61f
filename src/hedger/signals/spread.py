"""Venue-vs-venue spread computation and bounded spread history."""

from decimal import ROUND_HALF_UP, Decimal

from hedger.models import DEFAULT_HISTORY_WINDOW, SpreadSample

_BPS = Decimal("10000")


def compute_spread(fixed_rate: Decimal, floating_rate: Decimal) -> SpreadSample:
    """Spread of the floating venue over the fixed venue.

    Sign convention is ``floating - fixed``; basis points are rounded
    half-up to a whole number.
    """
    spread_decimal = floating_rate - fixed_rate
    spread_bps = int((spread_decimal * _BPS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return SpreadSample(spread_decimal=spread_decimal, spread_bps=spread_bps)


def push_history(
    history: list[Decimal],
    spread_decimal: Decimal,
    capacity: int = DEFAULT_HISTORY_WINDOW,
) -> list[Decimal]:
    """Append a spread sample with FIFO eviction, returning a new list.

    When the history is already at (or over) capacity the oldest samples
    are dropped so the result never exceeds ``capacity``.
    """
    if capacity <= 0:
        return []
    updated = [*history, spread_decimal]
    overflow = len(updated) - capacity
    if overflow > 0:
        del updated[:overflow]
    return updated
