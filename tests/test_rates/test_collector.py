"""Tests for RateCollector: concurrent polling with per-source failure isolation."""

import asyncio
from decimal import Decimal

import pytest

from hedger.exceptions import DataUnavailable
from hedger.models import Err, Ok
from hedger.rates.collector import RateCollector, fetch_observation
from hedger.rates.source import RateKind, RateSource, StaticRateSource


class _FailingSource(RateSource):
    venue = "failing"
    kind = RateKind.FLOATING

    async def fetch_rate(self, asset: str) -> Decimal:
        raise DataUnavailable("venue down")


class _HangingSource(RateSource):
    venue = "hanging"
    kind = RateKind.FLOATING

    async def fetch_rate(self, asset: str) -> Decimal:
        await asyncio.sleep(10)
        return Decimal("1")


class _BrokenSource(RateSource):
    venue = "broken"
    kind = RateKind.FIXED

    async def fetch_rate(self, asset: str) -> Decimal:
        raise KeyError("unexpected payload")


class TestFetchObservation:
    @pytest.mark.asyncio
    async def test_ok(self) -> None:
        source = StaticRateSource("s", RateKind.FIXED, {"ETH": Decimal("0.1")})
        assert await fetch_observation(source, "ETH") == Ok(Decimal("0.1"))

    @pytest.mark.asyncio
    async def test_data_unavailable_is_err(self) -> None:
        result = await fetch_observation(_FailingSource(), "ETH")
        assert isinstance(result, Err)
        assert "venue down" in result.reason

    @pytest.mark.asyncio
    async def test_timeout_is_err(self) -> None:
        result = await fetch_observation(_HangingSource(), "ETH", timeout=0.01)
        assert isinstance(result, Err)
        assert "timed out" in result.reason

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_err(self) -> None:
        result = await fetch_observation(_BrokenSource(), "ETH")
        assert isinstance(result, Err)


class TestRateCollector:
    """Tests for RateCollector.collect."""

    @pytest.mark.asyncio
    async def test_splits_by_kind(self) -> None:
        collector = RateCollector([
            StaticRateSource("boros", RateKind.FIXED, {"ETH": Decimal("0.10")}),
            StaticRateSource("binance", RateKind.FLOATING, {"ETH": Decimal("0.18")}),
            StaticRateSource("hyperliquid", RateKind.FLOATING, {"ETH": Decimal("0.19")}),
        ])

        fixed, floating = await collector.collect("ETH")

        assert [o.venue for o in fixed] == ["boros"]
        assert [o.venue for o in floating] == ["binance", "hyperliquid"]
        assert all(o.asset == "ETH" for o in fixed + floating)

    @pytest.mark.asyncio
    async def test_failures_are_dropped_not_raised(self) -> None:
        collector = RateCollector([
            StaticRateSource("boros", RateKind.FIXED, {"ETH": Decimal("0.10")}),
            _FailingSource(),
            _HangingSource(),
            StaticRateSource("binance", RateKind.FLOATING, {"ETH": Decimal("0.18")}),
        ])

        fixed, floating = await collector.collect("ETH", timeout=0.05)

        assert len(fixed) == 1
        assert [o.venue for o in floating] == ["binance"]

    @pytest.mark.asyncio
    async def test_no_sources(self) -> None:
        assert await RateCollector([]).collect("ETH") == ([], [])
