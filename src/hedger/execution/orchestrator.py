"""Hedge orchestrator: preflight, primary/fallback execution, audit.

State machine per ``execute_hedge`` call::

    IDLE -> PREFLIGHT -> PRIMARY_EXECUTION [-> FALLBACK_EXECUTION] -> AUDITED -> IDLE

Every call writes exactly one HedgeEvent, whichever way it ends (success,
preflight abort, execution failure, deadline, cancellation). Failures are
raised to the caller after the audit write, with the event attached as
``exc.hedge_event``.

Pre-broadcast steps (market resolution, balance reads) are bounded by the
cycle deadline and can be cancelled. On-chain writes are shielded: once a
transaction is broadcast, cancellation waits for it to settle before
propagating so the audit record reflects what actually happened.

The orchestrator does not deduplicate calls. Repeated hedges on a
sustained breach are prevented upstream by the edge trigger.
"""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from hedger.audit.sink import AuditSink, safe_append
from hedger.exceptions import CycleTimeout, ExecutionFailure, HedgerError, PreflightFailure
from hedger.execution.strategies import ExecutionStrategy
from hedger.execution.vault import VaultClient, to_base_units
from hedger.logging import get_logger
from hedger.models import HedgeEvent, HedgeRequest, HedgeStatus, TxReceipt

logger = get_logger(__name__)

T = TypeVar("T")


class OrchestratorState(str, Enum):
    IDLE = "IDLE"
    PREFLIGHT = "PREFLIGHT"
    PRIMARY_EXECUTION = "PRIMARY_EXECUTION"
    FALLBACK_EXECUTION = "FALLBACK_EXECUTION"
    AUDITED = "AUDITED"


@dataclass
class _Attempt:
    """What one execute_hedge call has done so far."""

    venue_ref: str
    strategy: str | None = None
    receipt: TxReceipt | None = None


class HedgeOrchestrator:
    """Runs one hedge attempt against the vault and audits it.

    Args:
        vault: Vault client (paper or live).
        sink: Audit sink receiving one HedgeEvent per call.
        primary: Preferred execution strategy; None disables execution.
        fallback: Strategy tried once if the primary fails; None for no fallback.
        market_address: Yield market the direct-order strategy targets.
        asset_decimals: Decimals used to convert hedge amounts to base units.
        auto_top_up: Deposit native balance to cover a collateral shortfall.
    """

    def __init__(
        self,
        vault: VaultClient,
        sink: AuditSink | None,
        primary: ExecutionStrategy | None,
        fallback: ExecutionStrategy | None = None,
        market_address: str = "",
        asset_decimals: int = 18,
        auto_top_up: bool = True,
    ) -> None:
        self._vault = vault
        self._sink = sink
        self._primary = primary
        self._fallback = fallback
        self._market_address = market_address
        self._asset_decimals = asset_decimals
        self._auto_top_up = auto_top_up
        self._state = OrchestratorState.IDLE

    @property
    def state(self) -> OrchestratorState:
        return self._state

    async def execute_hedge(self, request: HedgeRequest, deadline: float | None = None) -> HedgeEvent:
        """Attempt the hedge described by ``request`` and audit the outcome.

        Args:
            request: Asset, amount and the decision context to record.
            deadline: ``loop.time()`` value after which no new step may start.

        Returns:
            The HedgeEvent written for a successful hedge.

        Raises:
            PreflightFailure: Market or collateral checks failed (nothing broadcast).
            ExecutionFailure: Primary and fallback (if any) both failed.
            CycleTimeout: The deadline passed before a broadcast could start.
        """
        amount_units = to_base_units(request.amount, self._asset_decimals)
        attempt = _Attempt(venue_ref=self._market_address)
        status = HedgeStatus.FAILURE
        reason = ""

        logger.info(
            "hedge_started",
            asset=request.asset,
            amount=str(request.amount),
            spread_bps=request.spread_bps,
            composite_score=str(request.composite_score),
        )

        try:
            self._state = OrchestratorState.PREFLIGHT
            attempt.venue_ref = await self._preflight(amount_units, deadline)
            await self._execute(attempt, amount_units, deadline)
            status = HedgeStatus.SUCCESS
            reason = f"hedge executed via {attempt.strategy}"
        except PreflightFailure as e:
            reason = f"preflight failed: {e}"
            e.hedge_event = await self._audit(request, attempt, status, reason)
            raise
        except HedgerError as e:
            reason = str(e)
            e.hedge_event = await self._audit(request, attempt, status, reason)
            raise
        except asyncio.CancelledError:
            if attempt.receipt is not None:
                status = HedgeStatus.SUCCESS
                reason = f"hedge executed via {attempt.strategy}; cycle cancelled after confirmation"
            else:
                reason = "cancelled before the hedge was confirmed"
            await self._audit(request, attempt, status, reason)
            raise
        except Exception as e:
            reason = f"unexpected error: {type(e).__name__}: {e}"
            failure = ExecutionFailure(reason)
            failure.hedge_event = await self._audit(request, attempt, status, reason)
            raise failure from e

        return await self._audit(request, attempt, status, reason)

    async def _audit(
        self,
        request: HedgeRequest,
        attempt: _Attempt,
        status: HedgeStatus,
        reason: str,
    ) -> HedgeEvent:
        self._state = OrchestratorState.AUDITED
        event = HedgeEvent(
            asset=request.asset,
            spread_bps=request.spread_bps,
            amount_notional=request.amount,
            venue_ref=attempt.venue_ref,
            status=status,
            reason=reason,
            risk_score=request.risk_score,
            composite_score=request.composite_score,
            volatility_factor=request.volatility_factor,
            strategy=attempt.strategy,
            tx_hash=attempt.receipt.tx_hash if attempt.receipt else None,
        )
        await safe_append(self._sink, event)

        log = logger.info if status == HedgeStatus.SUCCESS else logger.error
        log(
            "hedge_executed" if status == HedgeStatus.SUCCESS else "hedge_failed",
            asset=event.asset,
            strategy=event.strategy,
            tx_hash=event.tx_hash,
            reason=reason,
        )
        self._state = OrchestratorState.IDLE
        return event

    # ──────────────────────────────────────────────
    # Preflight
    # ──────────────────────────────────────────────

    async def _preflight(self, amount_units: int, deadline: float | None) -> str:
        """Resolve the market and make sure the vault holds enough collateral."""
        market_ref = await self._before_deadline(
            self._vault.resolve_market(self._market_address), deadline, "market resolution"
        )
        balance = await self._before_deadline(
            self._vault.read_balance(self._vault.account), deadline, "balance read"
        )

        shortfall = amount_units - balance
        if shortfall <= 0:
            return market_ref

        if not self._auto_top_up:
            raise PreflightFailure(
                f"insufficient vault balance: have {balance}, need {amount_units}"
            )

        native = await self._before_deadline(
            self._vault.native_balance(), deadline, "native balance read"
        )
        if native < shortfall:
            raise PreflightFailure(
                f"insufficient collateral: vault {balance} + native {native} "
                f"below required {amount_units}"
            )

        self._check_deadline(deadline, "auto top-up")
        logger.info("collateral_top_up", shortfall=shortfall, native_balance=native)
        try:
            await self._broadcast(self._vault.wrap_native(shortfall))
        except HedgerError as e:
            raise PreflightFailure(f"auto top-up failed: {e}") from e
        return market_ref

    # ──────────────────────────────────────────────
    # Execution
    # ──────────────────────────────────────────────

    async def _execute(self, attempt: _Attempt, amount_units: int, deadline: float | None) -> None:
        if self._primary is None:
            raise ExecutionFailure("no primary execution strategy configured")

        self._state = OrchestratorState.PRIMARY_EXECUTION
        try:
            await self._run_strategy(self._primary, attempt, amount_units, deadline)
            return
        except CycleTimeout:
            raise
        except Exception as e:
            primary_error = e

        if self._fallback is None:
            raise ExecutionFailure(f"{self._primary.name} failed: {primary_error}") from primary_error

        logger.warning(
            "primary_strategy_failed",
            strategy=self._primary.name,
            fallback=self._fallback.name,
            error=str(primary_error),
        )
        self._state = OrchestratorState.FALLBACK_EXECUTION
        try:
            await self._run_strategy(self._fallback, attempt, amount_units, deadline)
        except CycleTimeout:
            raise
        except Exception as e:
            raise ExecutionFailure(
                f"{self._primary.name} failed: {primary_error}; "
                f"{self._fallback.name} failed: {e}"
            ) from e

    async def _run_strategy(
        self,
        strategy: ExecutionStrategy,
        attempt: _Attempt,
        amount_units: int,
        deadline: float | None,
    ) -> None:
        self._check_deadline(deadline, strategy.name)
        attempt.strategy = strategy.name
        await self._broadcast(
            strategy.execute(self._vault, attempt.venue_ref, amount_units),
            attempt,
        )

    # ──────────────────────────────────────────────
    # Deadline and broadcast helpers
    # ──────────────────────────────────────────────

    @staticmethod
    def _remaining(deadline: float | None) -> float | None:
        if deadline is None:
            return None
        return deadline - asyncio.get_running_loop().time()

    def _check_deadline(self, deadline: float | None, step: str) -> None:
        remaining = self._remaining(deadline)
        if remaining is not None and remaining <= 0:
            raise CycleTimeout(f"cycle deadline exceeded before {step}")

    async def _before_deadline(self, aw: Awaitable[T], deadline: float | None, step: str) -> T:
        """Await a cancellable pre-broadcast step within the remaining cycle time."""
        remaining = self._remaining(deadline)
        if remaining is not None and remaining <= 0:
            if asyncio.iscoroutine(aw):
                aw.close()
            raise CycleTimeout(f"cycle deadline exceeded before {step}")
        try:
            return await asyncio.wait_for(aw, timeout=remaining)
        except asyncio.TimeoutError:
            raise CycleTimeout(f"cycle deadline exceeded during {step}") from None

    @staticmethod
    async def _broadcast(aw: Awaitable[TxReceipt], attempt: _Attempt | None = None) -> TxReceipt:
        """Run an on-chain write to completion even if the caller is cancelled."""
        task = asyncio.ensure_future(aw)
        try:
            receipt = await asyncio.shield(task)
        except asyncio.CancelledError:
            logger.warning("broadcast_cancel_deferred")
            await asyncio.wait([task])
            if attempt is not None and not task.cancelled() and task.exception() is None:
                attempt.receipt = task.result()
            raise
        if attempt is not None:
            attempt.receipt = receipt
        return receipt
