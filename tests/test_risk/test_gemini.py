"""Tests for GeminiAssessor using httpx.MockTransport (no network)."""

import json

import httpx
import pytest

from hedger.config import AssessorSettings
from hedger.exceptions import AssessorUnavailable
from hedger.models import AssessmentSource, Err, Ok
from hedger.risk.assessor import assess_with_fallback
from hedger.risk.gemini import GeminiAssessor, build_prompt


def _settings(key: str = "test-key") -> AssessorSettings:
    return AssessorSettings(gemini_api_key=key)  # type: ignore[arg-type]


def _candidate(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _client(handler) -> httpx.AsyncClient:  # type: ignore[no-untyped-def]
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestBuildPrompt:
    def test_contains_rates_and_history(self, assessment_context) -> None:
        prompt = build_prompt(assessment_context)
        assert "10.00%" in prompt
        assert "18.00%" in prompt
        assert "800 bps" in prompt
        assert "[7.50%, 8.00%]" in prompt
        assert '"riskScore"' in prompt


class TestGeminiAssessor:
    """Tests for GeminiAssessor.assess."""

    @pytest.mark.asyncio
    async def test_successful_assessment(self, assessment_context) -> None:
        seen: dict = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("x-goog-api-key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json=_candidate('```json\n{"riskScore": 85, "reason": "High reversion risk"}\n```'),
            )

        async with _client(handler) as client:
            result = await GeminiAssessor(_settings(), client=client).assess(assessment_context)

        assert isinstance(result, Ok)
        assert result.value.risk_score == 85
        assert seen["url"].endswith("/gemini-2.5-flash:generateContent")
        assert seen["key"] == "test-key"
        assert "Market data for ETH" in seen["body"]["contents"][0]["parts"][0]["text"]

    @pytest.mark.asyncio
    async def test_missing_key_raises_without_request(self, assessment_context) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with _client(handler) as client:
            assessor = GeminiAssessor(_settings(""), client=client)
            with pytest.raises(AssessorUnavailable, match="api key"):
                await assessor.assess(assessment_context)

        assert assessor.is_available is False

    @pytest.mark.asyncio
    async def test_http_error_is_err(self, assessment_context) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"error": "quota"})

        async with _client(handler) as client:
            result = await GeminiAssessor(_settings(), client=client).assess(assessment_context)

        assert isinstance(result, Err)

    @pytest.mark.asyncio
    async def test_transport_timeout_is_err(self, assessment_context) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        async with _client(handler) as client:
            result = await GeminiAssessor(_settings(), client=client).assess(assessment_context)

        assert isinstance(result, Err)
        assert "timed out" in result.reason

    @pytest.mark.asyncio
    async def test_empty_candidates_is_err(self, assessment_context) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"candidates": []})

        async with _client(handler) as client:
            result = await GeminiAssessor(_settings(), client=client).assess(assessment_context)

        assert isinstance(result, Err)

    @pytest.mark.asyncio
    async def test_unparseable_text_is_err(self, assessment_context) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_candidate("I think the risk is moderate."))

        async with _client(handler) as client:
            result = await GeminiAssessor(_settings(), client=client).assess(assessment_context)

        assert isinstance(result, Err)

    @pytest.mark.asyncio
    async def test_nan_score_is_err(self, assessment_context) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_candidate('{"riskScore": NaN, "reason": "high risk"}'))

        async with _client(handler) as client:
            result = await GeminiAssessor(_settings(), client=client).assess(assessment_context)

        assert isinstance(result, Err)

    @pytest.mark.asyncio
    async def test_missing_key_degrades_to_fallback(self, assessment_context) -> None:
        result = await assess_with_fallback(GeminiAssessor(_settings("")), assessment_context)

        assert result.source is AssessmentSource.FALLBACK
        assert result.risk_score == 98
