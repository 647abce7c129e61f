"""Tests for assessment parsing, fallbacks, and assess_with_fallback."""

import asyncio
from decimal import Decimal, InvalidOperation
from unittest.mock import AsyncMock

import pytest

from hedger.exceptions import AssessorUnavailable
from hedger.models import AssessmentSource, Err, Ok, RiskAssessment
from hedger.risk.assessor import (
    FALLBACK_REASON,
    PLACEHOLDER_SCORE,
    RiskAssessor,
    assess_with_fallback,
    clamp_score,
    fallback_assessment,
    parse_assessment,
    placeholder_assessment,
)
from hedger.signals.composite import KeywordConfidence


class _SlowAssessor(RiskAssessor):
    async def assess(self, context):  # type: ignore[no-untyped-def]
        await asyncio.sleep(10)
        return Ok(RiskAssessment(risk_score=99, reason="too late"))


class TestFallbackAssessment:
    """Tests for the deterministic fallback formula."""

    def test_formula(self) -> None:
        """min(floor(100), 80) + floor(8) + 10 = 98."""
        result = fallback_assessment(Decimal("0.10"), Decimal("0.18"))
        assert result.risk_score == 98
        assert result.reason == FALLBACK_REASON
        assert result.source is AssessmentSource.FALLBACK

    def test_low_rates(self) -> None:
        """floor(15) + floor(0.5) + 10 = 25."""
        assert fallback_assessment(Decimal("0.015"), Decimal("0.02")).risk_score == 25

    def test_clamped_to_zero(self) -> None:
        """Deeply negative spread cannot push the score below 0."""
        assert fallback_assessment(Decimal("0"), Decimal("-0.50")).risk_score == 0

    def test_clamped_to_hundred(self) -> None:
        assert fallback_assessment(Decimal("0.50"), Decimal("1.50")).risk_score == 100

    def test_fallback_reason_has_no_confidence_keywords(self) -> None:
        assert KeywordConfidence().boost(fallback_assessment(Decimal("0.1"), Decimal("0.2"))) == 0


class TestPlaceholderAssessment:
    def test_low_fixed_score(self) -> None:
        result = placeholder_assessment()
        assert result.risk_score == PLACEHOLDER_SCORE
        assert result.source is AssessmentSource.PLACEHOLDER
        assert KeywordConfidence().boost(result) == 0


class TestParseAssessment:
    """Tests for parse_assessment."""

    def test_plain_json(self) -> None:
        result = parse_assessment('{"riskScore": 85, "reason": "High reversion likelihood"}')
        assert isinstance(result, Ok)
        assert result.value.risk_score == 85
        assert result.value.reason == "High reversion likelihood"

    def test_fenced_json(self) -> None:
        text = '```json\n{"riskScore": 40, "reason": "Calm"}\n```'
        result = parse_assessment(text)
        assert isinstance(result, Ok)
        assert result.value.risk_score == 40

    def test_alternate_score_key_and_clamp(self) -> None:
        result = parse_assessment('{"confidence": 140.4, "reason": "Overheated"}')
        assert isinstance(result, Ok)
        assert result.value.risk_score == 100

    def test_garbage_is_err(self) -> None:
        assert isinstance(parse_assessment("not json at all"), Err)

    def test_missing_score_is_err(self) -> None:
        assert isinstance(parse_assessment('{"reason": "no score"}'), Err)

    def test_boolean_score_is_err(self) -> None:
        assert isinstance(parse_assessment('{"riskScore": true, "reason": "x"}'), Err)

    def test_empty_reason_is_err(self) -> None:
        assert isinstance(parse_assessment('{"riskScore": 50, "reason": "  "}'), Err)

    def test_non_numeric_score_is_err(self) -> None:
        assert isinstance(parse_assessment('{"riskScore": "high", "reason": "x"}'), Err)

    def test_nan_score_is_err(self) -> None:
        result = parse_assessment('{"riskScore": NaN, "reason": "high risk"}')
        assert isinstance(result, Err)
        assert "invalid risk score" in result.reason

    def test_infinite_score_is_err(self) -> None:
        assert isinstance(parse_assessment('{"riskScore": Infinity, "reason": "x"}'), Err)


class TestClampScore:
    def test_rounds_and_clamps(self) -> None:
        assert clamp_score(49.6) == 50
        assert clamp_score(-3) == 0
        assert clamp_score(Decimal("101")) == 100

    def test_rejects_non_finite(self) -> None:
        with pytest.raises(InvalidOperation):
            clamp_score(float("nan"))
        with pytest.raises(InvalidOperation):
            clamp_score(Decimal("-Infinity"))


class TestAssessWithFallback:
    """Every failure path yields the fallback assessment."""

    @pytest.mark.asyncio
    async def test_ok_result_passes_through(self, assessment_context) -> None:
        assessor = AsyncMock(spec=RiskAssessor)
        assessor.assess.return_value = Ok(RiskAssessment(risk_score=85, reason="High risk"))

        result = await assess_with_fallback(assessor, assessment_context)

        assert result.risk_score == 85
        assessor.assess.assert_awaited_once_with(assessment_context)

    @pytest.mark.asyncio
    async def test_err_result_uses_fallback(self, assessment_context) -> None:
        assessor = AsyncMock(spec=RiskAssessor)
        assessor.assess.return_value = Err("quota exceeded")

        result = await assess_with_fallback(assessor, assessment_context)

        assert result.source is AssessmentSource.FALLBACK
        assert result.risk_score == 98

    @pytest.mark.asyncio
    async def test_raising_assessor_uses_fallback(self, assessment_context) -> None:
        assessor = AsyncMock(spec=RiskAssessor)
        assessor.assess.side_effect = RuntimeError("boom")

        result = await assess_with_fallback(assessor, assessment_context)

        assert result.source is AssessmentSource.FALLBACK

    @pytest.mark.asyncio
    async def test_unavailable_assessor_uses_fallback(self, assessment_context) -> None:
        assessor = AsyncMock(spec=RiskAssessor)
        assessor.assess.side_effect = AssessorUnavailable("no key")

        result = await assess_with_fallback(assessor, assessment_context)

        assert result.source is AssessmentSource.FALLBACK

    @pytest.mark.asyncio
    async def test_timeout_uses_fallback(self, assessment_context) -> None:
        result = await assess_with_fallback(_SlowAssessor(), assessment_context, timeout=0.01)
        assert result.source is AssessmentSource.FALLBACK

    @pytest.mark.asyncio
    async def test_no_assessor_uses_fallback(self, assessment_context) -> None:
        result = await assess_with_fallback(None, assessment_context)
        assert result.source is AssessmentSource.FALLBACK
