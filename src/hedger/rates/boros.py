"""Boros fixed-rate (implied APR) source.

Reads the Boros order book for the configured market and takes the mid of
the best long/short implied APR ticks (ticks * tick size = decimal APR).
If the order book is empty or unavailable, falls back to the market
listing's ``midApr`` (quoted in percent). Implied APRs are already
annualized, so no interval multiplier applies.
"""

from decimal import Decimal

import httpx

from hedger.exceptions import DataUnavailable
from hedger.logging import get_logger
from hedger.rates.source import RateKind, RateSource

logger = get_logger(__name__)

_MARKET_PAGE_SIZE = 100


def mid_from_order_book(book: dict, tick_size: Decimal) -> Decimal | None:
    """Mid implied APR from an order book response, or None if both sides are empty."""
    best_long = _best_tick(book.get("long"))
    best_short = _best_tick(book.get("short"))

    if best_long is not None and best_short is not None:
        return (best_long + best_short) / Decimal("2") * tick_size
    if best_long is not None:
        return best_long * tick_size
    if best_short is not None:
        return best_short * tick_size
    return None


def _best_tick(side: dict | None) -> Decimal | None:
    ticks = (side or {}).get("ia") or []
    return Decimal(str(ticks[0])) if ticks else None


class BorosRateSource(RateSource):
    """Fixed-rate source for Boros markets, keyed by asset.

    Args:
        api_url: Boros REST base URL.
        markets: Mapping of asset -> market contract address.
        tick_size: Implied APR per order-book tick.
        client: Optional shared httpx.AsyncClient.
    """

    venue = "boros"
    kind = RateKind.FIXED

    def __init__(
        self,
        api_url: str,
        markets: dict[str, str],
        tick_size: Decimal = Decimal("0.001"),
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._api_url = api_url.rstrip("/")
        self._markets = {asset: addr.lower() for asset, addr in markets.items()}
        self._tick_size = tick_size
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._market_cache: dict[str, dict] = {}

    async def _get(self, path: str, params: dict | None = None) -> dict:
        try:
            response = await self._client.get(f"{self._api_url}{path}", params=params)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DataUnavailable(f"boros request {path} failed: {e}") from e

    async def resolve_market(self, address: str) -> dict:
        """Find the market listing for a contract address (cached)."""
        address = address.lower()
        if address in self._market_cache:
            return self._market_cache[address]

        listing = await self._get(
            "/v1/markets",
            params={"skip": 0, "limit": _MARKET_PAGE_SIZE, "isWhitelisted": "true"},
        )
        for market in listing.get("results", []):
            if str(market.get("address", "")).lower() == address:
                self._market_cache[address] = market
                return market

        raise DataUnavailable(
            f"boros market {address} not found in first {_MARKET_PAGE_SIZE} listings"
        )

    async def fetch_rate(self, asset: str) -> Decimal:
        address = self._markets.get(asset)
        if address is None:
            raise DataUnavailable(f"no boros market configured for {asset}")

        market = await self.resolve_market(address)

        try:
            book = await self._get(
                f"/v1/order-books/{market['marketId']}",
                params={"tickSize": str(self._tick_size)},
            )
            mid = mid_from_order_book(book, self._tick_size)
            if mid is not None:
                logger.debug("boros_rate_from_order_book", asset=asset, implied_apr=str(mid))
                return mid
        except DataUnavailable as e:
            logger.warning("boros_order_book_unavailable", asset=asset, error=str(e))

        mid_apr = (market.get("data") or {}).get("midApr")
        if mid_apr:
            rate = Decimal(str(mid_apr)) / Decimal("100")
            logger.debug("boros_rate_from_market_data", asset=asset, implied_apr=str(rate))
            return rate

        raise DataUnavailable(f"boros has no implied APR for {asset}")

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
