"""Signal computations for the hedging decision.

Pure functions over Decimal inputs: consensus aggregation, spread and
bounded history, volatility factor, the edge-triggered assessment gate,
and the composite hedge score.
"""

from hedger.signals.composite import (
    ConfidenceSignal,
    KeywordConfidence,
    classify_risk_level,
    score,
)
from hedger.signals.consensus import aggregate, filter_outliers, median
from hedger.signals.spread import compute_spread, push_history
from hedger.signals.trigger import TriggerDecision, TriggerZone, commit, evaluate
from hedger.signals.volatility import volatility_factor

__all__ = [
    "ConfidenceSignal",
    "KeywordConfidence",
    "TriggerDecision",
    "TriggerZone",
    "aggregate",
    "classify_risk_level",
    "commit",
    "compute_spread",
    "evaluate",
    "filter_outliers",
    "median",
    "push_history",
    "score",
    "volatility_factor",
]
