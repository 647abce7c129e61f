"""Venue rate sources and concurrent collection."""

from hedger.rates.binance import BinanceRateSource
from hedger.rates.boros import BorosRateSource
from hedger.rates.collector import RateCollector, fetch_observation
from hedger.rates.hyperliquid import HyperliquidRateSource
from hedger.rates.source import RateKind, RateSource, StaticRateSource

__all__ = [
    "BinanceRateSource",
    "BorosRateSource",
    "HyperliquidRateSource",
    "RateCollector",
    "RateKind",
    "RateSource",
    "StaticRateSource",
    "fetch_observation",
]
