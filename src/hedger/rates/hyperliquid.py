"""Hyperliquid predicted funding rate source.

POST ``{"type": "predictedFundings"}`` to the info endpoint returns one
entry per coin::

    [["ETH", [["HlPerp", {"fundingRate": "0.0000125", ...}], ["BinPerp", {...}]]], ...]

Hyperliquid settles hourly, so the rate is annualized as ``rate * 24 * 365``.
"""

from decimal import Decimal, InvalidOperation

import httpx

from hedger.exceptions import DataUnavailable
from hedger.logging import get_logger
from hedger.rates.source import PERIODS_PER_YEAR_1H, RateKind, RateSource

logger = get_logger(__name__)

_HL_PERP_VENUE = "HlPerp"


def extract_predicted_funding(payload: list, coin: str) -> Decimal:
    """Pull the per-hour HlPerp funding rate for ``coin`` out of a predictedFundings payload.

    Raises:
        DataUnavailable: If the coin or its HlPerp entry is missing or malformed.
    """
    coin_entry = next(
        (item for item in payload if isinstance(item, list) and item and item[0] == coin),
        None,
    )
    if coin_entry is None or len(coin_entry) < 2:
        raise DataUnavailable(f"hyperliquid: coin {coin} not found")

    venue_entry = next(
        (v for v in coin_entry[1] if isinstance(v, list) and v and v[0] == _HL_PERP_VENUE),
        None,
    )
    if venue_entry is None or len(venue_entry) < 2 or not isinstance(venue_entry[1], dict):
        raise DataUnavailable(f"hyperliquid: {_HL_PERP_VENUE} entry not found for {coin}")

    raw = venue_entry[1].get("fundingRate")
    try:
        return Decimal(str(raw))
    except (InvalidOperation, ValueError) as e:
        raise DataUnavailable(f"hyperliquid: invalid funding rate {raw!r} for {coin}") from e


class HyperliquidRateSource(RateSource):
    """Floating-rate source reading Hyperliquid's predicted funding."""

    venue = "hyperliquid"
    kind = RateKind.FLOATING

    def __init__(
        self,
        url: str = "https://api.hyperliquid.xyz/info",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_rate(self, asset: str) -> Decimal:
        try:
            response = await self._client.post(self._url, json={"type": "predictedFundings"})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DataUnavailable(f"hyperliquid request failed: {e}") from e

        if not isinstance(payload, list):
            raise DataUnavailable("hyperliquid: unexpected predictedFundings shape")

        hourly = extract_predicted_funding(payload, asset)
        annualized = hourly * PERIODS_PER_YEAR_1H
        logger.debug(
            "hyperliquid_rate_fetched",
            coin=asset,
            hourly_rate=str(hourly),
            annualized=str(annualized),
        )
        return annualized

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
