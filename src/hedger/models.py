"""Shared data models for the yield-spread hedger.

CRITICAL: All rates, spreads and scores use Decimal. Never use float for
rate arithmetic; venue payloads are converted via Decimal(str(value)).
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")

#: Default SpreadHistory capacity (samples).
DEFAULT_HISTORY_WINDOW = 24


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful collaborator call."""

    value: T


@dataclass(frozen=True)
class Err:
    """Failed collaborator call with a human-readable reason."""

    reason: str


class HedgeStatus(str, Enum):
    """Outcome of a single hedge execution attempt."""

    SUCCESS = "success"
    FAILURE = "failure"


class CycleOutcome(str, Enum):
    """User-visible outcome of one evaluation cycle."""

    HOLD = "HOLD"
    HEDGE_EXECUTED = "HEDGE_EXECUTED"
    FAILED = "FAILED"


class AssessmentSource(str, Enum):
    """Which producer created a RiskAssessment."""

    EXTERNAL = "external"
    FALLBACK = "fallback"
    PLACEHOLDER = "placeholder"


class RiskLevel(str, Enum):
    """Coarse label derived from the risk score."""

    LOW = "LOW"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class SnapshotType(str, Enum):
    """Audit row kinds written alongside HedgeEvents."""

    SNAPSHOT = "snapshot"
    AI_TRIGGER = "ai_trigger"


@dataclass(frozen=True)
class RateObservation:
    """One annualized rate reading from one venue."""

    venue: str
    asset: str
    annualized_rate: Decimal
    observed_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ConsensusRate:
    """Outlier-filtered median across same-asset observations.

    ``median_rate == 0`` is the "no data" sentinel and must suppress hedging.
    """

    asset: str
    median_rate: Decimal
    sources: tuple[RateObservation, ...]
    computed_at: float = field(default_factory=time.time)

    @property
    def has_data(self) -> bool:
        return self.median_rate != 0


@dataclass(frozen=True)
class SpreadSample:
    """Floating minus fixed rate, as a decimal and in whole basis points."""

    spread_decimal: Decimal
    spread_bps: int


@dataclass
class ThresholdState:
    """Edge-detector memory: was the spread above the trigger last cycle?"""

    was_above_threshold: bool = False


@dataclass(frozen=True)
class RiskAssessment:
    """Risk score in [0, 100] with a non-empty rationale."""

    risk_score: int
    reason: str
    source: AssessmentSource = AssessmentSource.EXTERNAL

    def __post_init__(self) -> None:
        if not 0 <= self.risk_score <= 100:
            raise ValueError(f"risk_score out of range: {self.risk_score}")
        if not self.reason.strip():
            raise ValueError("reason must be non-empty")


RateResult = Ok[Decimal] | Err
AssessmentResult = Ok[RiskAssessment] | Err


@dataclass(frozen=True)
class AssessmentContext:
    """Inputs handed to a RiskAssessor."""

    asset: str
    fixed_rate: Decimal
    floating_rate: Decimal
    spread: SpreadSample
    history: tuple[Decimal, ...]

    def history_text(self) -> str:
        """Render the rolling history as a percent list for prompt-style assessors."""
        if not self.history:
            return "[]"
        return "[" + ", ".join(f"{(h * 100):.2f}%" for h in self.history) + "]"


@dataclass(frozen=True)
class FundingPrediction:
    """Deterministic rate-confidence estimate used for the must-hedge override."""

    predicted_apr: Decimal
    confidence_bps: int


@dataclass(frozen=True)
class CompositeDecision:
    """Composite score breakdown; recomputed every cycle, never persisted."""

    composite_score: Decimal
    volatility_factor: Decimal
    confidence_boost: int
    hedge: bool


@dataclass(frozen=True)
class TxReceipt:
    """Confirmed transaction (or simulated equivalent)."""

    tx_hash: str
    block_number: int | None = None
    is_simulated: bool = False


@dataclass(frozen=True)
class HedgeRequest:
    """Everything the orchestrator needs to attempt and audit one hedge."""

    asset: str
    amount: Decimal
    spread_bps: int
    risk_score: int
    composite_score: Decimal
    volatility_factor: Decimal


@dataclass(frozen=True)
class HedgeEvent:
    """Append-only audit record; one per execute_hedge call."""

    asset: str
    spread_bps: int
    amount_notional: Decimal
    venue_ref: str
    status: HedgeStatus
    reason: str
    risk_score: int
    composite_score: Decimal
    volatility_factor: Decimal
    strategy: str | None = None
    tx_hash: str | None = None
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class DecisionSnapshot:
    """Per-cycle numeric trail (and AI trigger log) for the audit sink."""

    event_type: SnapshotType
    asset: str
    fixed_rate: Decimal
    floating_rate: Decimal
    spread_bps: int
    risk_score: int | None = None
    risk_level: RiskLevel | None = None
    composite_score: Decimal | None = None
    reason: str = ""
    action: str = ""
    timestamp: float = field(default_factory=time.time)


@dataclass
class EngineState:
    """Cross-cycle state for one asset. Mutated only inside that asset's cycle."""

    asset: str
    history: list[Decimal] = field(default_factory=list)
    threshold: ThresholdState = field(default_factory=ThresholdState)


@dataclass(frozen=True)
class CycleResult:
    """Structured outcome of one evaluation cycle plus the numbers behind it."""

    asset: str
    outcome: CycleOutcome
    fixed_rate: Decimal
    floating_rate: Decimal
    spread_bps: int | None = None
    risk_score: int | None = None
    composite_score: Decimal | None = None
    assessor_invoked: bool = False
    reason: str = ""
    hedge_event: HedgeEvent | None = None
