"""Tests for composite hedge scoring.

Tests verify:
- KeywordConfidence: keyword hit, case-insensitivity, no hit
- score: reference 85 + 20 + 12 = 117 case, threshold boundary, must-hedge override
- classify_risk_level: band edges
"""

from decimal import Decimal

from hedger.models import AssessmentSource, RiskAssessment, RiskLevel
from hedger.signals.composite import (
    KeywordConfidence,
    classify_risk_level,
    compute_spread_term,
    score,
)


def _risk(score_value: int, reason: str) -> RiskAssessment:
    return RiskAssessment(risk_score=score_value, reason=reason, source=AssessmentSource.EXTERNAL)


class TestKeywordConfidence:
    """Tests for the default confidence signal."""

    def test_keyword_gives_boost(self) -> None:
        assert KeywordConfidence().boost(_risk(50, "Reversion is likely within days")) == 20

    def test_case_insensitive(self) -> None:
        assert KeywordConfidence().boost(_risk(50, "EXTREME dislocation")) == 20

    def test_no_keyword(self) -> None:
        assert KeywordConfidence().boost(_risk(50, "Spread looks stable")) == 0

    def test_custom_keywords(self) -> None:
        signal = KeywordConfidence(keywords=("panic",), boost_value=5)
        assert signal.boost(_risk(50, "Panic selling")) == 5
        assert signal.boost(_risk(50, "Extreme move")) == 0


class TestScore:
    """Tests for score."""

    def test_reference_case(self) -> None:
        """85 + 20 + 0.08*100*1.5 = 117 >= 100 -> hedge."""
        decision = score(
            _risk(85, "High probability of sharp reversion"),
            Decimal("0.08"),
            Decimal("1.5"),
        )
        assert compute_spread_term(Decimal("0.08"), Decimal("1.5")) == Decimal("12")
        assert decision.confidence_boost == 20
        assert decision.composite_score == Decimal("117")
        assert decision.hedge is True

    def test_below_threshold_holds(self) -> None:
        decision = score(_risk(10, "Spread looks stable"), Decimal("0.005"), Decimal("1"))
        assert decision.composite_score == Decimal("10.5")
        assert decision.hedge is False

    def test_threshold_is_inclusive(self) -> None:
        decision = score(_risk(100, "Stable"), Decimal("0"), Decimal("1"))
        assert decision.hedge is True

    def test_must_hedge_overrides_low_score(self) -> None:
        decision = score(_risk(10, "Stable"), Decimal("0"), Decimal("1"), must_hedge=True)
        assert decision.composite_score == Decimal("10")
        assert decision.hedge is True

    def test_custom_confidence_signal(self) -> None:
        """Any object with a boost method can replace the keyword classifier."""

        class FixedConfidence:
            def boost(self, risk: RiskAssessment) -> int:
                return 50

        decision = score(
            _risk(40, "Stable"),
            Decimal("0.01"),
            Decimal("1"),
            confidence=FixedConfidence(),
        )
        assert decision.confidence_boost == 50
        assert decision.composite_score == Decimal("91")
        assert decision.hedge is False


class TestClassifyRiskLevel:
    """Tests for classify_risk_level."""

    def test_bands(self) -> None:
        assert classify_risk_level(50) is RiskLevel.LOW
        assert classify_risk_level(51) is RiskLevel.HIGH
        assert classify_risk_level(75) is RiskLevel.HIGH
        assert classify_risk_level(76) is RiskLevel.CRITICAL
