"""On-chain StabilityVault client via web3.py AsyncWeb3.

Reads balances through contract calls and submits signed transactions,
waiting for each receipt and checking ``status == 1`` before reporting
success. Reverts, timeouts and RPC errors surface as ExecutionFailure.
"""

from typing import Any

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import TimeExhausted

from hedger.config import VaultSettings
from hedger.exceptions import ExecutionFailure, PreflightFailure
from hedger.execution.vault import VaultClient
from hedger.logging import get_logger
from hedger.models import TxReceipt

logger = get_logger(__name__)

STABILITY_VAULT_ABI: list[dict[str, Any]] = [
    {
        "name": "balances",
        "type": "function",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "name": "deposit",
        "type": "function",
        "stateMutability": "payable",
        "inputs": [],
        "outputs": [],
    },
    {
        "name": "openShortYU",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "market", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "name": "recordHedge",
        "type": "function",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "amount", "type": "uint256"}],
        "outputs": [],
    },
]


class Web3VaultClient(VaultClient):
    """Live vault client.

    Args:
        settings: Vault settings (rpc url, private key, vault address).
        w3: Optional pre-built AsyncWeb3 (shared connection or tests).
    """

    def __init__(self, settings: VaultSettings, w3: AsyncWeb3 | None = None) -> None:
        private_key = settings.private_key.get_secret_value()
        if not private_key:
            raise ValueError("VAULT_PRIVATE_KEY is required in live mode")
        if not settings.vault_address:
            raise ValueError("VAULT_VAULT_ADDRESS is required in live mode")

        self._w3 = w3 or AsyncWeb3(AsyncHTTPProvider(settings.rpc_url))
        self._private_key = private_key
        self._account = self._w3.eth.account.from_key(private_key).address
        self._confirmation_timeout = settings.confirmation_timeout_seconds
        self._vault = self._w3.eth.contract(
            address=Web3.to_checksum_address(settings.vault_address),
            abi=STABILITY_VAULT_ABI,
        )

    @property
    def account(self) -> str:
        return self._account

    async def read_balance(self, account: str) -> int:
        try:
            return await self._vault.functions.balances(
                Web3.to_checksum_address(account)
            ).call()
        except Exception as e:
            raise PreflightFailure(f"vault balance read failed: {e}") from e

    async def native_balance(self) -> int:
        try:
            return await self._w3.eth.get_balance(self._account)
        except Exception as e:
            raise PreflightFailure(f"native balance read failed: {e}") from e

    async def resolve_market(self, address: str) -> str:
        if not address or not Web3.is_address(address):
            raise PreflightFailure(f"invalid market address: {address!r}")
        checksum = Web3.to_checksum_address(address)
        try:
            code = await self._w3.eth.get_code(checksum)
        except Exception as e:
            raise PreflightFailure(f"market lookup failed for {checksum}: {e}") from e
        if not code:
            raise PreflightFailure(f"no market contract deployed at {checksum}")
        return checksum

    async def wrap_native(self, amount: int) -> TxReceipt:
        return await self._transact(self._vault.functions.deposit(), value=amount)

    async def open_position(self, market: str, amount: int) -> TxReceipt:
        return await self._transact(
            self._vault.functions.openShortYU(Web3.to_checksum_address(market), amount)
        )

    async def record_hedge(self, amount: int) -> TxReceipt:
        return await self._transact(self._vault.functions.recordHedge(amount))

    async def _transact(self, fn: Any, value: int = 0) -> TxReceipt:
        """Build, sign, send and confirm one contract call."""
        fn_name = getattr(fn, "fn_name", "call")
        try:
            nonce = await self._w3.eth.get_transaction_count(self._account, "pending")
            tx = await fn.build_transaction(
                {"from": self._account, "nonce": nonce, "value": value}
            )
            signed = self._w3.eth.account.sign_transaction(tx, self._private_key)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise ExecutionFailure(f"{fn_name} submission failed: {e}") from e

        tx_hash_hex = Web3.to_hex(tx_hash)
        logger.info("vault_tx_submitted", function=fn_name, tx_hash=tx_hash_hex, nonce=nonce)

        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._confirmation_timeout
            )
        except TimeExhausted as e:
            raise ExecutionFailure(
                f"{fn_name} tx {tx_hash_hex} not confirmed after {self._confirmation_timeout}s"
            ) from e
        except Exception as e:
            raise ExecutionFailure(f"{fn_name} receipt lookup failed: {e}") from e

        if receipt.get("status") != 1:
            raise ExecutionFailure(f"{fn_name} tx {tx_hash_hex} reverted on-chain")

        logger.info(
            "vault_tx_confirmed",
            function=fn_name,
            tx_hash=tx_hash_hex,
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
        )
        return TxReceipt(tx_hash=tx_hash_hex, block_number=receipt.get("blockNumber"))

    async def close(self) -> None:
        provider = self._w3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()
