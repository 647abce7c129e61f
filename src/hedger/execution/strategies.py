"""Hedge execution strategies.

Each strategy is one way of putting a hedge on the vault. The orchestrator
decides which to try and in what order; strategies never retry or fall
back on their own.
"""

from abc import ABC, abstractmethod

from hedger.config import StrategyName
from hedger.execution.vault import VaultClient
from hedger.models import TxReceipt


class ExecutionStrategy(ABC):
    """One execution path against the vault."""

    name: str = "unknown"

    @abstractmethod
    async def execute(self, vault: VaultClient, market_ref: str, amount: int) -> TxReceipt:
        """Submit the hedge and return the confirmed receipt.

        Raises:
            ExecutionFailure: If the write fails, reverts or is not confirmed.
        """
        ...


class DirectOrderStrategy(ExecutionStrategy):
    """Open a short yield-unit position directly against the market."""

    name = "direct_order"

    async def execute(self, vault: VaultClient, market_ref: str, amount: int) -> TxReceipt:
        return await vault.open_position(market_ref, amount)


class VaultRecordStrategy(ExecutionStrategy):
    """Record the hedge on the vault contract (no market interaction)."""

    name = "vault_record"

    async def execute(self, vault: VaultClient, market_ref: str, amount: int) -> TxReceipt:
        return await vault.record_hedge(amount)


_STRATEGIES: dict[str, type[ExecutionStrategy]] = {
    DirectOrderStrategy.name: DirectOrderStrategy,
    VaultRecordStrategy.name: VaultRecordStrategy,
}


def build_strategy(name: StrategyName) -> ExecutionStrategy | None:
    """Map a configured strategy name to an instance; ``"none"`` maps to None."""
    if name == "none":
        return None
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"unknown execution strategy: {name!r}") from None
