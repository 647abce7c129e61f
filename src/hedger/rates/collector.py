"""Concurrent rate collection across all configured venues.

Every source is polled at once with its own timeout. A slow or failing
venue is logged and dropped from the cycle; it never blocks the others.
"""

import asyncio
import time

from hedger.exceptions import DataUnavailable
from hedger.logging import get_logger
from hedger.models import Err, Ok, RateObservation, RateResult
from hedger.rates.source import RateKind, RateSource

logger = get_logger(__name__)


async def fetch_observation(source: RateSource, asset: str, timeout: float | None = None) -> RateResult:
    """Fetch one venue's rate as a tagged result instead of raising."""
    try:
        rate = await asyncio.wait_for(source.fetch_rate(asset), timeout=timeout)
    except asyncio.TimeoutError:
        return Err(f"{source.venue}: timed out after {timeout}s")
    except DataUnavailable as e:
        return Err(str(e))
    except Exception as e:
        return Err(f"{source.venue}: {type(e).__name__}: {e}")
    return Ok(rate)


class RateCollector:
    """Polls fixed and floating rate sources concurrently.

    Args:
        sources: All configured sources; each declares its own ``kind``.
    """

    def __init__(self, sources: list[RateSource]) -> None:
        self._sources = list(sources)

    @property
    def sources(self) -> list[RateSource]:
        return list(self._sources)

    async def collect(
        self, asset: str, timeout: float | None = None
    ) -> tuple[list[RateObservation], list[RateObservation]]:
        """Return ``(fixed_observations, floating_observations)`` for ``asset``."""
        if not self._sources:
            return [], []

        results = await asyncio.gather(
            *(fetch_observation(source, asset, timeout) for source in self._sources)
        )

        now = time.time()
        fixed: list[RateObservation] = []
        floating: list[RateObservation] = []

        for source, result in zip(self._sources, results):
            if isinstance(result, Err):
                logger.warning(
                    "rate_source_failed",
                    venue=source.venue,
                    kind=source.kind.value,
                    reason=result.reason,
                )
                continue

            observation = RateObservation(
                venue=source.venue,
                asset=asset,
                annualized_rate=result.value,
                observed_at=now,
            )
            if source.kind == RateKind.FIXED:
                fixed.append(observation)
            else:
                floating.append(observation)

        logger.debug(
            "rates_collected",
            fixed_sources=len(fixed),
            floating_sources=len(floating),
        )
        return fixed, floating

    async def close(self) -> None:
        for source in self._sources:
            try:
                await source.close()
            except Exception as e:
                logger.warning("rate_source_close_failed", venue=source.venue, error=str(e))
