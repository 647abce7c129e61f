"""Risk assessor contract, response parsing, and deterministic fallbacks.

The external assessor is an expensive, rate-limited call (an LLM behind
HTTP). The engine only reaches it through ``assess_with_fallback``, which
guarantees a usable RiskAssessment on every path:

- external assessor returns Ok  -> that assessment
- external assessor returns Err, raises, or times out -> ``fallback_assessment``

Cycles where the edge trigger does not fire never call the assessor and use
``placeholder_assessment`` instead.
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from decimal import ROUND_FLOOR, Decimal, InvalidOperation

from hedger.exceptions import AssessorUnavailable
from hedger.logging import get_logger
from hedger.models import (
    AssessmentContext,
    AssessmentResult,
    AssessmentSource,
    Err,
    Ok,
    RiskAssessment,
)

logger = get_logger(__name__)

FALLBACK_REASON = "Simulated fallback assessment: external assessor unavailable."
PLACEHOLDER_REASON = (
    "External assessment skipped: spread did not newly cross the trigger this cycle."
)
PLACEHOLDER_SCORE = 10

# Fallback formula constants
_FALLBACK_BASE_CAP = 80
_FALLBACK_OFFSET = 10

_SCORE_KEYS = ("riskScore", "risk_score", "confidence")


class RiskAssessor(ABC):
    """Abstract external risk assessor.

    Implementations return tagged results. Raising AssessorUnavailable (or
    anything else) is tolerated and treated like an Err.
    """

    @abstractmethod
    async def assess(self, context: AssessmentContext) -> AssessmentResult:
        """Assess reversion risk for the current spread.

        Args:
            context: Current fixed/floating rates, spread and rolling history.

        Returns:
            Ok(RiskAssessment) or Err(reason).
        """
        ...


def clamp_score(value: float | int | Decimal) -> int:
    """Round to the nearest integer and clamp into [0, 100].

    Raises:
        InvalidOperation: For NaN or infinite values.
    """
    d = Decimal(str(value))
    if not d.is_finite():
        raise InvalidOperation(f"non-finite score: {value!r}")
    rounded = int(d.quantize(Decimal("1")))
    return max(0, min(100, rounded))


def _floor_int(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def fallback_assessment(fixed_rate: Decimal, floating_rate: Decimal) -> RiskAssessment:
    """Deterministic stand-in used when the external assessor is unavailable.

    risk = clamp(min(floor(fixed * 1000), 80) + floor((floating - fixed) * 100) + 10)
    """
    base = min(_floor_int(fixed_rate * Decimal("1000")), _FALLBACK_BASE_CAP)
    spread_weight = _floor_int((floating_rate - fixed_rate) * Decimal("100"))
    return RiskAssessment(
        risk_score=clamp_score(base + spread_weight + _FALLBACK_OFFSET),
        reason=FALLBACK_REASON,
        source=AssessmentSource.FALLBACK,
    )


def placeholder_assessment() -> RiskAssessment:
    """Cheap local assessment for cycles that are not a fresh threshold crossing."""
    return RiskAssessment(
        risk_score=PLACEHOLDER_SCORE,
        reason=PLACEHOLDER_REASON,
        source=AssessmentSource.PLACEHOLDER,
    )


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences that models like to wrap JSON in."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.split("\n", 1)[1] if "\n" in cleaned else cleaned[3:]
        cleaned = cleaned.rsplit("```", 1)[0]
    return cleaned.strip()


def parse_assessment(text: str) -> AssessmentResult:
    """Parse an assessor's JSON answer into a RiskAssessment.

    Accepts ``riskScore``, ``risk_score`` or ``confidence`` as the score
    field. Scores are clamped to [0, 100]; an empty reason is rejected.
    """
    try:
        payload = json.loads(strip_code_fences(text))
    except (json.JSONDecodeError, TypeError) as e:
        return Err(f"unparseable assessment: {e}")

    if not isinstance(payload, dict):
        return Err("assessment is not a JSON object")

    raw_score = next((payload[k] for k in _SCORE_KEYS if k in payload), None)
    if raw_score is None or isinstance(raw_score, bool):
        return Err("assessment has no risk score")
    try:
        risk_score = clamp_score(raw_score)
    except ArithmeticError:
        return Err(f"invalid risk score: {raw_score!r}")

    reason = str(payload.get("reason", "")).strip()
    if not reason:
        return Err("assessment has an empty reason")

    return Ok(RiskAssessment(risk_score=risk_score, reason=reason))


async def assess_with_fallback(
    assessor: RiskAssessor | None,
    context: AssessmentContext,
    timeout: float | None = None,
) -> RiskAssessment:
    """Call the external assessor, degrading to the fallback formula on any failure.

    Never raises (other than cancellation).
    """
    if assessor is None:
        result: AssessmentResult = Err("no assessor configured")
    else:
        try:
            result = await asyncio.wait_for(assessor.assess(context), timeout=timeout)
        except asyncio.TimeoutError:
            result = Err(f"assessor timed out after {timeout}s")
        except AssessorUnavailable as e:
            result = Err(str(e))
        except Exception as e:
            logger.warning("assessor_raised", error=str(e), exc_info=True)
            result = Err(str(e) or type(e).__name__)

    if isinstance(result, Ok):
        logger.info(
            "assessment_received",
            risk_score=result.value.risk_score,
            reason=result.value.reason,
        )
        return result.value

    fallback = fallback_assessment(context.fixed_rate, context.floating_rate)
    logger.warning(
        "assessor_fallback_used",
        error=result.reason,
        risk_score=fallback.risk_score,
    )
    return fallback
