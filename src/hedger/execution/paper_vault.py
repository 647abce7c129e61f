"""Paper vault client with simulated balances and instant confirmations.

Implements the same VaultClient ABC as Web3VaultClient so the orchestrator
and strategies are identical in paper and live mode. All receipts have
is_simulated=True.
"""

from uuid import uuid4

from hedger.exceptions import ExecutionFailure, PreflightFailure
from hedger.execution.vault import VaultClient
from hedger.logging import get_logger
from hedger.models import TxReceipt

logger = get_logger(__name__)

PAPER_ACCOUNT = "0x000000000000000000000000000000000000dEaD"


class PaperVaultClient(VaultClient):
    """Simulated vault.

    Args:
        vault_balance: Starting vault collateral for the paper account (base units).
        native_balance: Starting native balance (base units).
        known_markets: Market addresses that resolve; None accepts any address.
    """

    def __init__(
        self,
        vault_balance: int = 0,
        native_balance: int = 0,
        known_markets: set[str] | None = None,
        account: str = PAPER_ACCOUNT,
    ) -> None:
        self._account = account
        self._balances: dict[str, int] = {account.lower(): vault_balance}
        self._native = native_balance
        self._known_markets = (
            {m.lower() for m in known_markets} if known_markets is not None else None
        )
        self._block = 0
        self.positions: list[tuple[str, int]] = []
        self.recorded_hedges: list[int] = []

    @property
    def account(self) -> str:
        return self._account

    def _receipt(self) -> TxReceipt:
        self._block += 1
        return TxReceipt(
            tx_hash=f"paper_{uuid4().hex[:12]}",
            block_number=self._block,
            is_simulated=True,
        )

    async def read_balance(self, account: str) -> int:
        return self._balances.get(account.lower(), 0)

    async def native_balance(self) -> int:
        return self._native

    async def resolve_market(self, address: str) -> str:
        if not address:
            raise PreflightFailure("no market address configured")
        if self._known_markets is not None and address.lower() not in self._known_markets:
            raise PreflightFailure(f"market {address} not found")
        return address

    async def wrap_native(self, amount: int) -> TxReceipt:
        if amount > self._native:
            raise ExecutionFailure(
                f"insufficient native balance: have {self._native}, need {amount}"
            )
        self._native -= amount
        key = self._account.lower()
        self._balances[key] = self._balances.get(key, 0) + amount
        receipt = self._receipt()
        logger.info("paper_vault_deposit", amount=amount, tx_hash=receipt.tx_hash)
        return receipt

    async def open_position(self, market: str, amount: int) -> TxReceipt:
        key = self._account.lower()
        if self._balances.get(key, 0) < amount:
            raise ExecutionFailure(
                f"vault balance {self._balances.get(key, 0)} below order amount {amount}"
            )
        self._balances[key] -= amount
        self.positions.append((market, amount))
        receipt = self._receipt()
        logger.info(
            "paper_short_opened",
            market=market,
            amount=amount,
            tx_hash=receipt.tx_hash,
        )
        return receipt

    async def record_hedge(self, amount: int) -> TxReceipt:
        self.recorded_hedges.append(amount)
        receipt = self._receipt()
        logger.info("paper_hedge_recorded", amount=amount, tx_hash=receipt.tx_hash)
        return receipt
