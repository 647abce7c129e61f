"""Risk assessment: external assessor, deterministic fallbacks, must-hedge oracle."""

from hedger.risk.assessor import (
    RiskAssessor,
    assess_with_fallback,
    fallback_assessment,
    parse_assessment,
    placeholder_assessment,
)
from hedger.risk.gemini import GeminiAssessor
from hedger.risk.oracle import must_hedge, predict_funding

__all__ = [
    "GeminiAssessor",
    "RiskAssessor",
    "assess_with_fallback",
    "fallback_assessment",
    "must_hedge",
    "parse_assessment",
    "placeholder_assessment",
    "predict_funding",
]
