"""Configuration system using pydantic-settings with environment variable loading."""

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

StrategyName = Literal["direct_order", "vault_record", "none"]


class EngineSettings(BaseSettings):
    """Decision engine parameters (spread trigger, scoring, history)."""

    model_config = SettingsConfigDict(env_prefix="ENGINE_")

    assets: list[str] = ["ETH"]
    trigger_bps: int = 500  # spread bps that edge-triggers the external assessor
    hedge_threshold: Decimal = Decimal("100")  # composite score needed to hedge
    history_window: int = 24
    outlier_tolerance_pct: Decimal = Decimal("5")
    # Reference "normal" spread volatility (5 percentage points). Not fitted.
    volatility_baseline: Decimal = Decimal("0.05")
    cycle_timeout_seconds: float = 60.0
    assessor_timeout_seconds: float = 10.0
    scan_interval: int = 30  # seconds between scheduled cycles

    # Deterministic rate-confidence override (OR-combined with the threshold)
    must_hedge_enabled: bool = True
    must_hedge_margin: Decimal = Decimal("0.05")
    must_hedge_min_confidence_bps: int = 8000


class VenueSettings(BaseSettings):
    """Rate source endpoints and symbol conventions."""

    model_config = SettingsConfigDict(env_prefix="VENUE_")

    binance_enabled: bool = True
    binance_quote: str = "USDT"
    hyperliquid_enabled: bool = True
    hyperliquid_url: str = "https://api.hyperliquid.xyz/info"
    boros_api_url: str = "https://api.boros.finance/core"
    boros_markets: dict[str, str] = {
        "BTC": "0xcaf0d78c581ee8a03b9dd974f2ebfb3026961969",
        "ETH": "0x8db1397beb16a368711743bc42b69904e4e82122",
    }
    boros_tick_size: Decimal = Decimal("0.001")
    http_timeout_seconds: float = 10.0

    # Paper mode: static rates instead of live venues (asset -> APR)
    static_fixed_rates: dict[str, Decimal] = {}
    static_floating_rates: dict[str, Decimal] = {}


class AssessorSettings(BaseSettings):
    """External AI risk assessor (Gemini) connection settings."""

    model_config = SettingsConfigDict(env_prefix="ASSESSOR_")

    gemini_api_key: SecretStr = SecretStr("")
    model: str = "gemini-2.5-flash"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta/models"


class VaultSettings(BaseSettings):
    """Hedge execution target: on-chain vault or paper simulation."""

    model_config = SettingsConfigDict(env_prefix="VAULT_")

    mode: Literal["paper", "live"] = "paper"
    rpc_url: str = "https://arb1.arbitrum.io/rpc"
    private_key: SecretStr = SecretStr("")
    vault_address: str = ""
    market_address: str = "0x8db1397beb16a368711743bc42b69904e4e82122"
    hedge_amount: Decimal = Decimal("0.1")  # in asset units (18 decimals on-chain)
    asset_decimals: int = 18
    auto_top_up: bool = True
    primary_strategy: StrategyName = "direct_order"
    fallback_strategy: StrategyName = "vault_record"
    confirmation_timeout_seconds: int = 120

    # Paper vault starting balances, in asset units
    paper_vault_balance: Decimal = Decimal("1")
    paper_native_balance: Decimal = Decimal("5")


class AuditSettings(BaseSettings):
    """Audit trail persistence."""

    model_config = SettingsConfigDict(env_prefix="AUDIT_")

    enabled: bool = True
    db_path: str = "data/audit.db"


class DashboardSettings(BaseSettings):
    """Status API server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = False


@dataclass
class RuntimeConfig:
    """Mutable runtime config overlay. Non-None fields override EngineSettings values.

    Changes are applied at the start of each engine cycle.
    """

    trigger_bps: int | None = None
    hedge_threshold: Decimal | None = None
    must_hedge_enabled: bool | None = None
    scan_interval: int | None = None


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    engine: EngineSettings = EngineSettings()
    venues: VenueSettings = VenueSettings()
    assessor: AssessorSettings = AssessorSettings()
    vault: VaultSettings = VaultSettings()
    audit: AuditSettings = AuditSettings()
    dashboard: DashboardSettings = DashboardSettings()
