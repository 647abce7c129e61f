"""Abstract vault client interface.

The hedge target is a StabilityVault-style contract: it holds deposited
collateral per account and exposes two write paths, a direct short order
against a yield market and a simpler on-vault hedge record. Both the
on-chain client and the paper simulator implement this ABC so the
orchestrator is identical across modes.

All amounts are integer base units (wei for an 18-decimal asset).
"""

from abc import ABC, abstractmethod
from decimal import ROUND_DOWN, Decimal

from hedger.models import TxReceipt


def to_base_units(amount: Decimal, decimals: int = 18) -> int:
    """Convert an asset amount to integer base units, truncating dust."""
    scaled = (amount * (Decimal(10) ** decimals)).quantize(Decimal("1"), rounding=ROUND_DOWN)
    return int(scaled)


def from_base_units(units: int, decimals: int = 18) -> Decimal:
    return Decimal(units) / (Decimal(10) ** decimals)


class VaultClient(ABC):
    """Read and write capabilities of the hedge vault.

    Every write waits for confirmation before returning; a returned
    TxReceipt means the transaction succeeded.
    """

    @property
    @abstractmethod
    def account(self) -> str:
        """Address whose vault balance funds the hedge."""
        ...

    @abstractmethod
    async def read_balance(self, account: str) -> int:
        """Vault collateral balance of ``account`` in base units."""
        ...

    @abstractmethod
    async def native_balance(self) -> int:
        """Native (gas token) balance held by the signing account."""
        ...

    @abstractmethod
    async def resolve_market(self, address: str) -> str:
        """Validate a market address and return the reference used for orders.

        Raises:
            PreflightFailure: If the market cannot be found.
        """
        ...

    @abstractmethod
    async def wrap_native(self, amount: int) -> TxReceipt:
        """Deposit ``amount`` of native balance into the vault as collateral."""
        ...

    @abstractmethod
    async def open_position(self, market: str, amount: int) -> TxReceipt:
        """Open a short yield-unit position of ``amount`` on ``market``."""
        ...

    @abstractmethod
    async def record_hedge(self, amount: int) -> TxReceipt:
        """Record a hedge of ``amount`` on the vault itself."""
        ...

    async def close(self) -> None:
        return None
