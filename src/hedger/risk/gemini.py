"""Gemini-backed external risk assessor.

Sends a prompt describing the fixed/floating spread and its recent history
to the Gemini generateContent endpoint and parses the JSON answer. A missing
API key raises AssessorUnavailable; transport errors, HTTP errors and
malformed answers come back as Err. Both lead to the deterministic fallback.
"""

from __future__ import annotations

import httpx

from hedger.config import AssessorSettings
from hedger.exceptions import AssessorUnavailable
from hedger.logging import get_logger
from hedger.models import AssessmentContext, AssessmentResult, Err
from hedger.risk.assessor import RiskAssessor, parse_assessment

logger = get_logger(__name__)


def build_prompt(context: AssessmentContext) -> str:
    """Render the assessment prompt for one asset."""
    fixed_pct = context.fixed_rate * 100
    floating_pct = context.floating_rate * 100
    spread_pct = context.spread.spread_decimal * 100
    direction_hint = (
        "The floating venue is above the fixed venue; a hedge locks the fixed rate "
        "before the spread reverts."
        if context.spread.spread_decimal >= 0
        else "The floating venue is below the fixed venue; reversion would widen losses "
        "on an unhedged fixed leg."
    )
    return f"""You are an institutional DeFi quant managing a yield vault.

Market data for {context.asset}:
- Fixed venue implied APR (Boros): {fixed_pct:.2f}%
- Floating venue funding APR: {floating_pct:.2f}%
- Spread (floating - fixed): {spread_pct:.2f}% ({context.spread.spread_bps} bps)
- Recent spread history (oldest first): {context.history_text()}

{direction_hint}

Task: estimate the risk (0-100) that this spread dislocation mean-reverts against
an unhedged position in the near term, and explain why in one sentence.
Return ONLY a JSON object: {{"riskScore": number, "reason": "string"}}"""


class GeminiAssessor(RiskAssessor):
    """RiskAssessor calling Google's Gemini API over httpx.

    Args:
        settings: API key, model and base URL.
        client: Optional shared httpx.AsyncClient (created per call otherwise).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        settings: AssessorSettings,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._settings = settings
        self._client = client
        self._timeout = timeout
        if not self.is_available:
            logger.warning(
                "assessor_unavailable",
                note="No ASSESSOR_GEMINI_API_KEY set; every assessment uses the fallback formula.",
            )

    @property
    def is_available(self) -> bool:
        return bool(self._settings.gemini_api_key.get_secret_value())

    @property
    def endpoint(self) -> str:
        return f"{self._settings.base_url}/{self._settings.model}:generateContent"

    async def assess(self, context: AssessmentContext) -> AssessmentResult:
        if not self.is_available:
            raise AssessorUnavailable("gemini api key not configured")

        payload = {
            "contents": [{"parts": [{"text": build_prompt(context)}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self._settings.gemini_api_key.get_secret_value(),
        }

        try:
            if self._client is not None:
                response = await self._client.post(
                    self.endpoint, json=payload, headers=headers, timeout=self._timeout
                )
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self.endpoint, json=payload, headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            logger.error("gemini_timeout", model=self._settings.model)
            return Err("gemini request timed out")
        except httpx.HTTPError as e:
            logger.error("gemini_call_failed", model=self._settings.model, error=str(e))
            return Err(f"gemini request failed: {e}")
        except ValueError as e:
            return Err(f"gemini returned non-JSON body: {e}")

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            logger.warning("gemini_empty_candidate", response_preview=str(data)[:200])
            return Err("gemini response has no candidate text")

        result = parse_assessment(text)
        if isinstance(result, Err):
            logger.warning("gemini_parse_failed", error=result.reason, response_preview=text[:200])
        return result
