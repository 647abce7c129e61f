"""Binance USD-M funding rate source via ccxt async.

Binance settles perpetual funding every 8 hours, so the per-period rate is
annualized as ``rate * 3 * 365``.
"""

from decimal import Decimal

import ccxt.async_support as ccxt_async

from hedger.exceptions import DataUnavailable
from hedger.logging import get_logger
from hedger.rates.source import PERIODS_PER_YEAR_8H, RateKind, RateSource

logger = get_logger(__name__)


class BinanceRateSource(RateSource):
    """Floating-rate source reading Binance's last funding rate.

    Args:
        quote: Settlement currency of the perpetual (``ETH/USDT:USDT``).
        exchange: Optional pre-built ccxt exchange (injected in tests).
    """

    venue = "binance"
    kind = RateKind.FLOATING

    def __init__(self, quote: str = "USDT", exchange: ccxt_async.Exchange | None = None) -> None:
        self._quote = quote
        self._exchange = exchange or ccxt_async.binanceusdm({"enableRateLimit": True})

    def symbol_for(self, asset: str) -> str:
        return f"{asset}/{self._quote}:{self._quote}"

    async def fetch_rate(self, asset: str) -> Decimal:
        symbol = self.symbol_for(asset)
        try:
            data = await self._exchange.fetch_funding_rate(symbol)
        except Exception as e:
            raise DataUnavailable(f"binance funding fetch failed for {symbol}: {e}") from e

        raw = data.get("fundingRate")
        if raw is None:
            raw = (data.get("info") or {}).get("lastFundingRate")
        if raw is None:
            raise DataUnavailable(f"binance returned no funding rate for {symbol}")

        period_rate = Decimal(str(raw))
        annualized = period_rate * PERIODS_PER_YEAR_8H
        logger.debug(
            "binance_rate_fetched",
            symbol=symbol,
            period_rate=str(period_rate),
            annualized=str(annualized),
        )
        return annualized

    async def close(self) -> None:
        """Clean up ccxt async resources. CRITICAL: must be called to avoid resource leaks."""
        await self._exchange.close()
