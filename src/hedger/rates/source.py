"""Abstract rate source interface.

A rate source returns the current annualized funding/implied rate for one
asset on one venue, as a decimal (0.10 = 10% APR). Each implementation
owns its venue's annualization convention; the engine treats the returned
value as already annualized. Venue-specific transport details stay in the
concrete implementations.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum

from hedger.exceptions import DataUnavailable

#: Funding settlements per year for 8-hour venues (3 per day).
PERIODS_PER_YEAR_8H = Decimal(3 * 365)

#: Funding settlements per year for 1-hour venues.
PERIODS_PER_YEAR_1H = Decimal(24 * 365)


class RateKind(str, Enum):
    """Which side of the spread a venue quotes."""

    FIXED = "fixed"
    FLOATING = "floating"


class RateSource(ABC):
    """Abstract base class for per-venue rate providers."""

    #: Short venue identifier used in observations and logs.
    venue: str = "unknown"

    #: Side of the spread this venue contributes to.
    kind: RateKind = RateKind.FLOATING

    @abstractmethod
    async def fetch_rate(self, asset: str) -> Decimal:
        """Return the annualized rate for ``asset``.

        Raises:
            DataUnavailable: If the venue has no usable rate for the asset.
        """
        ...

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None


class StaticRateSource(RateSource):
    """Rate source returning configured constants (paper mode and tests)."""

    def __init__(self, venue: str, kind: RateKind, rates: dict[str, Decimal]) -> None:
        self.venue = venue
        self.kind = kind
        self._rates = dict(rates)

    def set_rate(self, asset: str, rate: Decimal) -> None:
        self._rates[asset] = rate

    async def fetch_rate(self, asset: str) -> Decimal:
        if asset not in self._rates:
            raise DataUnavailable(f"{self.venue}: no static rate for {asset}")
        return self._rates[asset]
