"""Decision engine: one evaluation cycle per asset, and the scheduling loop.

Each cycle:
  1. COLLECT: Poll fixed and floating rate sources concurrently
  2. AGGREGATE: Outlier-filtered median per side (zero means no data -> HOLD)
  3. SPREAD: Compute spread, push it into the rolling history, derive volatility
  4. ASSESS: External assessor only on a fresh threshold crossing, else placeholder
  5. SCORE: Composite score, OR-ed with the must-hedge override (fresh crossings only)
  6. EXECUTE: Hand a HedgeRequest to the orchestrator when the decision says hedge
  7. AUDIT: Append a DecisionSnapshot (best-effort) and return a CycleResult

Cycles are serialized per asset by a single-flight lock; different assets
run independently. EngineState (spread history and threshold memory) is
only mutated inside the asset's cycle.
"""

import asyncio
from decimal import Decimal

from hedger.audit.sink import AuditSink, safe_append
from hedger.config import EngineSettings, RuntimeConfig
from hedger.exceptions import HedgerError
from hedger.execution.orchestrator import HedgeOrchestrator
from hedger.logging import bind_cycle_context, get_logger
from hedger.models import (
    AssessmentContext,
    CycleOutcome,
    CycleResult,
    DecisionSnapshot,
    EngineState,
    HedgeRequest,
    SnapshotType,
)
from hedger.rates.collector import RateCollector
from hedger.risk.assessor import RiskAssessor, assess_with_fallback, placeholder_assessment
from hedger.risk.oracle import must_hedge, predict_funding
from hedger.signals import trigger
from hedger.signals.composite import ConfidenceSignal, classify_risk_level, score
from hedger.signals.consensus import aggregate
from hedger.signals.spread import compute_spread, push_history
from hedger.signals.volatility import volatility_factor

logger = get_logger(__name__)

# Back-off after an unexpected loop error
_ERROR_BACKOFF_SECONDS = 10


class DecisionEngine:
    """Runs hedging decision cycles for a set of assets.

    Args:
        settings: Engine thresholds, windows and timeouts.
        collector: Concurrent rate collector over all venues.
        orchestrator: Hedge executor; receives a HedgeRequest when hedging.
        assessor: External risk assessor, or None to always use the fallback.
        sink: Audit sink for per-cycle DecisionSnapshots.
        hedge_amount: Notional hedged per execution, in asset units.
        confidence: Confidence boost provider for the composite score.
    """

    def __init__(
        self,
        settings: EngineSettings,
        collector: RateCollector,
        orchestrator: HedgeOrchestrator,
        assessor: RiskAssessor | None = None,
        sink: AuditSink | None = None,
        hedge_amount: Decimal = Decimal("0.1"),
        confidence: ConfidenceSignal | None = None,
    ) -> None:
        self._settings = settings
        self._collector = collector
        self._orchestrator = orchestrator
        self._assessor = assessor
        self._sink = sink
        self._hedge_amount = hedge_amount
        self._confidence = confidence
        self._states: dict[str, EngineState] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_results: dict[str, CycleResult] = {}
        self._runtime_config: RuntimeConfig | None = None
        self._running = False

    # ──────────────────────────────────────────────
    # State and configuration
    # ──────────────────────────────────────────────

    def state_for(self, asset: str) -> EngineState:
        """Return (creating on first use) the cross-cycle state for ``asset``."""
        if asset not in self._states:
            self._states[asset] = EngineState(asset=asset)
        return self._states[asset]

    def _lock_for(self, asset: str) -> asyncio.Lock:
        if asset not in self._locks:
            self._locks[asset] = asyncio.Lock()
        return self._locks[asset]

    @property
    def last_results(self) -> dict[str, CycleResult]:
        return dict(self._last_results)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def runtime_config(self) -> RuntimeConfig | None:
        return self._runtime_config

    @runtime_config.setter
    def runtime_config(self, config: RuntimeConfig) -> None:
        self._runtime_config = config
        logger.info("runtime_config_updated", config=str(config))

    def _override(self, name: str, default):  # type: ignore[no-untyped-def]
        rc = self._runtime_config
        value = getattr(rc, name) if rc is not None else None
        return default if value is None else value

    @property
    def trigger_bps(self) -> int:
        return self._override("trigger_bps", self._settings.trigger_bps)

    @property
    def hedge_threshold(self) -> Decimal:
        return self._override("hedge_threshold", self._settings.hedge_threshold)

    @property
    def must_hedge_enabled(self) -> bool:
        return self._override("must_hedge_enabled", self._settings.must_hedge_enabled)

    @property
    def scan_interval(self) -> int:
        return self._override("scan_interval", self._settings.scan_interval)

    def status(self) -> dict:
        """Per-asset snapshot of engine state for the status API."""
        assets = {}
        for asset in self._settings.assets:
            state = self.state_for(asset)
            last = self._last_results.get(asset)
            assets[asset] = {
                "history": [str(h) for h in state.history],
                "was_above_threshold": state.threshold.was_above_threshold,
                "last_outcome": last.outcome.value if last else None,
                "last_spread_bps": last.spread_bps if last else None,
                "last_risk_score": last.risk_score if last else None,
                "last_composite_score": (
                    str(last.composite_score)
                    if last and last.composite_score is not None
                    else None
                ),
                "last_reason": last.reason if last else None,
            }
        return {
            "running": self._running,
            "trigger_bps": self.trigger_bps,
            "hedge_threshold": str(self.hedge_threshold),
            "must_hedge_enabled": self.must_hedge_enabled,
            "assets": assets,
        }

    # ──────────────────────────────────────────────
    # Cycle
    # ──────────────────────────────────────────────

    async def run_cycle(self, asset: str) -> CycleResult:
        """Run one evaluation cycle for ``asset`` (serialized per asset)."""
        async with self._lock_for(asset):
            with bind_cycle_context(asset):
                result = await self._cycle(asset)
                self._last_results[asset] = result
                logger.info(
                    "cycle_completed",
                    outcome=result.outcome.value,
                    spread_bps=result.spread_bps,
                    risk_score=result.risk_score,
                    composite_score=(
                        str(result.composite_score)
                        if result.composite_score is not None
                        else None
                    ),
                    assessor_invoked=result.assessor_invoked,
                )
                return result

    async def run_all(self) -> list[CycleResult]:
        """Run one cycle for every configured asset concurrently."""
        outcomes = await asyncio.gather(
            *(self.run_cycle(asset) for asset in self._settings.assets),
            return_exceptions=True,
        )
        results: list[CycleResult] = []
        for asset, outcome in zip(self._settings.assets, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    "cycle_error",
                    asset=asset,
                    error=str(outcome),
                    exc_info=outcome,
                )
                continue
            results.append(outcome)
        return results

    async def _cycle(self, asset: str) -> CycleResult:
        settings = self._settings
        loop = asyncio.get_running_loop()
        deadline = loop.time() + settings.cycle_timeout_seconds
        state = self.state_for(asset)

        fixed_obs, floating_obs = await self._collector.collect(
            asset, timeout=max(deadline - loop.time(), 0)
        )
        fixed = aggregate(fixed_obs, settings.outlier_tolerance_pct)
        floating = aggregate(floating_obs, settings.outlier_tolerance_pct)

        if not fixed.has_data or not floating.has_data:
            missing = [
                side
                for side, consensus in (("fixed", fixed), ("floating", floating))
                if not consensus.has_data
            ]
            reason = f"no {' or '.join(missing)} rate data; hedging suppressed"
            logger.warning("consensus_unavailable", missing=missing)
            await safe_append(
                self._sink,
                DecisionSnapshot(
                    event_type=SnapshotType.SNAPSHOT,
                    asset=asset,
                    fixed_rate=fixed.median_rate,
                    floating_rate=floating.median_rate,
                    spread_bps=0,
                    reason=reason,
                    action=CycleOutcome.HOLD.value,
                ),
            )
            return CycleResult(
                asset=asset,
                outcome=CycleOutcome.HOLD,
                fixed_rate=fixed.median_rate,
                floating_rate=floating.median_rate,
                reason=reason,
            )

        spread = compute_spread(fixed.median_rate, floating.median_rate)
        state.history = push_history(state.history, spread.spread_decimal, settings.history_window)
        vol = volatility_factor(state.history, settings.volatility_baseline)
        decision = trigger.evaluate(state.threshold, spread.spread_bps, self.trigger_bps)

        logger.info(
            "spread_computed",
            fixed_rate=str(fixed.median_rate),
            floating_rate=str(floating.median_rate),
            spread_bps=spread.spread_bps,
            volatility_factor=str(vol),
            trigger_fired=decision.fire,
        )

        try:
            if decision.fire:
                context = AssessmentContext(
                    asset=asset,
                    fixed_rate=fixed.median_rate,
                    floating_rate=floating.median_rate,
                    spread=spread,
                    history=tuple(state.history),
                )
                timeout = min(settings.assessor_timeout_seconds, max(deadline - loop.time(), 0))
                risk = await assess_with_fallback(self._assessor, context, timeout=timeout)
            else:
                risk = placeholder_assessment()

            # Same edge gate as the assessor.
            override = False
            if decision.fire and self.must_hedge_enabled:
                prediction = predict_funding(floating.median_rate, fixed.median_rate)
                override = must_hedge(
                    prediction,
                    fixed.median_rate,
                    margin=settings.must_hedge_margin,
                    min_confidence_bps=settings.must_hedge_min_confidence_bps,
                )

            composite = score(
                risk,
                spread.spread_decimal,
                vol,
                hedge_threshold=self.hedge_threshold,
                must_hedge=override,
                confidence=self._confidence,
            )
            risk_level = classify_risk_level(risk.risk_score)

            logger.info(
                "decision_scored",
                risk_score=risk.risk_score,
                risk_level=risk_level.value,
                assessment_source=risk.source.value,
                confidence_boost=composite.confidence_boost,
                composite_score=str(composite.composite_score),
                must_hedge=override,
                hedge=composite.hedge,
            )

            if decision.fire:
                await safe_append(
                    self._sink,
                    DecisionSnapshot(
                        event_type=SnapshotType.AI_TRIGGER,
                        asset=asset,
                        fixed_rate=fixed.median_rate,
                        floating_rate=floating.median_rate,
                        spread_bps=spread.spread_bps,
                        risk_score=risk.risk_score,
                        risk_level=risk_level,
                        composite_score=composite.composite_score,
                        reason=risk.reason,
                        action="HEDGE" if composite.hedge else "HOLD",
                    ),
                )

            hedge_event = None
            if not composite.hedge:
                outcome = CycleOutcome.HOLD
                reason = (
                    f"composite {composite.composite_score} below threshold {self.hedge_threshold}"
                )
            else:
                request = HedgeRequest(
                    asset=asset,
                    amount=self._hedge_amount,
                    spread_bps=spread.spread_bps,
                    risk_score=risk.risk_score,
                    composite_score=composite.composite_score,
                    volatility_factor=vol,
                )
                try:
                    hedge_event = await self._orchestrator.execute_hedge(request, deadline)
                    outcome = CycleOutcome.HEDGE_EXECUTED
                    reason = hedge_event.reason
                except HedgerError as e:
                    hedge_event = e.hedge_event
                    outcome = CycleOutcome.FAILED
                    reason = str(e)
        finally:
            trigger.commit(state.threshold, decision)

        await safe_append(
            self._sink,
            DecisionSnapshot(
                event_type=SnapshotType.SNAPSHOT,
                asset=asset,
                fixed_rate=fixed.median_rate,
                floating_rate=floating.median_rate,
                spread_bps=spread.spread_bps,
                risk_score=risk.risk_score,
                risk_level=risk_level,
                composite_score=composite.composite_score,
                reason=reason,
                action=outcome.value,
            ),
        )

        return CycleResult(
            asset=asset,
            outcome=outcome,
            fixed_rate=fixed.median_rate,
            floating_rate=floating.median_rate,
            spread_bps=spread.spread_bps,
            risk_score=risk.risk_score,
            composite_score=composite.composite_score,
            assessor_invoked=decision.fire,
            reason=reason,
            hedge_event=hedge_event,
        )

    # ──────────────────────────────────────────────
    # Loop
    # ──────────────────────────────────────────────

    async def start(self) -> None:
        """Run cycles for all assets every ``scan_interval`` seconds until stopped."""
        logger.info(
            "engine_starting",
            assets=self._settings.assets,
            trigger_bps=self.trigger_bps,
            hedge_threshold=str(self.hedge_threshold),
        )
        self._running = True
        try:
            await self._run_loop()
        finally:
            self._running = False
            logger.info("engine_stopped")

    async def stop(self) -> None:
        """Signal the loop to exit after the current iteration."""
        logger.info("engine_stopping")
        self._running = False

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self.run_all()
                await asyncio.sleep(self.scan_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("engine_loop_error", error=str(e), exc_info=True)
                await asyncio.sleep(_ERROR_BACKOFF_SECONDS)
