"""Composite hedge scoring.

Combines the assessed risk score, a confidence boost derived from the
assessment, and a volatility-weighted spread term into one scalar that is
compared against the hedge threshold:

    spread_term = spread_decimal * 100 * volatility_factor
    composite   = risk_score + confidence_boost + spread_term
    hedge       = composite >= threshold OR must_hedge

The confidence boost comes from a ``ConfidenceSignal``. The default
``KeywordConfidence`` scans the assessment reason for strong wording; any
object with the same ``boost`` method (for example one reading an
assessor-reported confidence field) can replace it without touching the
scorer.

CRITICAL: All computations use Decimal. Never use float for scores.
"""

from decimal import Decimal
from typing import Protocol

from hedger.models import CompositeDecision, RiskAssessment, RiskLevel

#: Words in an assessment reason that indicate a confident call.
CONFIDENCE_KEYWORDS: tuple[str, ...] = (
    "extreme",
    "high",
    "likely",
    "significant",
    "crash",
    "collapse",
)

DEFAULT_CONFIDENCE_BOOST = 20


class ConfidenceSignal(Protocol):
    """Maps a risk assessment to an integer score boost."""

    def boost(self, risk: RiskAssessment) -> int: ...


class KeywordConfidence:
    """Substring keyword classifier over the assessment reason (case-insensitive)."""

    def __init__(
        self,
        keywords: tuple[str, ...] = CONFIDENCE_KEYWORDS,
        boost_value: int = DEFAULT_CONFIDENCE_BOOST,
    ) -> None:
        self._keywords = tuple(k.lower() for k in keywords)
        self._boost_value = boost_value

    def boost(self, risk: RiskAssessment) -> int:
        reason = risk.reason.lower()
        if any(k in reason for k in self._keywords):
            return self._boost_value
        return 0


def compute_spread_term(spread_decimal: Decimal, volatility_factor: Decimal) -> Decimal:
    """Spread in percent, amplified by the volatility factor."""
    return spread_decimal * Decimal("100") * volatility_factor


def score(
    risk: RiskAssessment,
    spread_decimal: Decimal,
    volatility_factor: Decimal,
    hedge_threshold: Decimal = Decimal("100"),
    must_hedge: bool = False,
    confidence: ConfidenceSignal | None = None,
) -> CompositeDecision:
    """Compute the composite decision for one cycle.

    Args:
        risk: Assessment from the external assessor, fallback or placeholder.
        spread_decimal: Floating minus fixed rate.
        volatility_factor: Output of ``volatility_factor`` for the current history.
        hedge_threshold: Composite score at or above which a hedge is taken.
        must_hedge: Override from the deterministic rate-confidence check.
        confidence: Boost provider; defaults to ``KeywordConfidence``.

    Returns:
        CompositeDecision with the score breakdown and hedge flag.
    """
    signal = confidence if confidence is not None else KeywordConfidence()
    boost = signal.boost(risk)
    composite = (
        Decimal(risk.risk_score)
        + Decimal(boost)
        + compute_spread_term(spread_decimal, volatility_factor)
    )
    return CompositeDecision(
        composite_score=composite,
        volatility_factor=volatility_factor,
        confidence_boost=boost,
        hedge=composite >= hedge_threshold or must_hedge,
    )


def classify_risk_level(risk_score: int) -> RiskLevel:
    """Label a risk score: above 75 is CRITICAL, above 50 HIGH, else LOW."""
    if risk_score > 75:
        return RiskLevel.CRITICAL
    if risk_score > 50:
        return RiskLevel.HIGH
    return RiskLevel.LOW
