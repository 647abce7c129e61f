"""Hedge execution: vault clients, strategies and the hedge orchestrator."""

from hedger.execution.orchestrator import HedgeOrchestrator, OrchestratorState
from hedger.execution.paper_vault import PaperVaultClient
from hedger.execution.strategies import (
    DirectOrderStrategy,
    ExecutionStrategy,
    VaultRecordStrategy,
    build_strategy,
)
from hedger.execution.vault import VaultClient, from_base_units, to_base_units

__all__ = [
    "DirectOrderStrategy",
    "ExecutionStrategy",
    "HedgeOrchestrator",
    "OrchestratorState",
    "PaperVaultClient",
    "VaultClient",
    "VaultRecordStrategy",
    "build_strategy",
    "from_base_units",
    "to_base_units",
]
