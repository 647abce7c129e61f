"""Shared test fixtures for the yield-spread hedger."""

from decimal import Decimal

import pytest

from hedger.audit.sink import MemoryAuditSink
from hedger.config import AppSettings, AuditSettings, EngineSettings, VaultSettings
from hedger.execution.paper_vault import PaperVaultClient
from hedger.execution.vault import to_base_units
from hedger.models import AssessmentContext
from hedger.signals.spread import compute_spread

MARKET = "0x8db1397beb16a368711743bc42b69904e4e82122"


@pytest.fixture
def assessment_context() -> AssessmentContext:
    """Assessment inputs for 10% fixed vs 18% floating with a two-sample history."""
    spread = compute_spread(Decimal("0.10"), Decimal("0.18"))
    return AssessmentContext(
        asset="ETH",
        fixed_rate=Decimal("0.10"),
        floating_rate=Decimal("0.18"),
        spread=spread,
        history=(Decimal("0.075"), spread.spread_decimal),
    )


@pytest.fixture
def engine_settings() -> EngineSettings:
    """EngineSettings with defaults and a single ETH asset."""
    return EngineSettings(
        assets=["ETH"],
        trigger_bps=500,
        hedge_threshold=Decimal("100"),
        cycle_timeout_seconds=5.0,
        assessor_timeout_seconds=1.0,
    )


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (paper mode, audit disabled)."""
    return AppSettings(
        log_level="DEBUG",
        engine=EngineSettings(assets=["ETH"]),
        vault=VaultSettings(mode="paper"),
        audit=AuditSettings(enabled=False),
    )


@pytest.fixture
def memory_sink() -> MemoryAuditSink:
    return MemoryAuditSink()


@pytest.fixture
def paper_vault() -> PaperVaultClient:
    """Paper vault holding 1 unit of collateral and 5 units of native balance."""
    return PaperVaultClient(
        vault_balance=to_base_units(Decimal("1")),
        native_balance=to_base_units(Decimal("5")),
        known_markets={MARKET},
    )
