"""Entry point for the yield-spread hedger.

Wires all components together, optionally serves the status API, and
starts the decision engine. When the status API is enabled the engine and
uvicorn share one event loop through FastAPI's lifespan.

Handles SIGINT/SIGTERM for graceful shutdown.

Component wiring order (in _build_components):
1. Rate sources (static or live venues) and RateCollector
2. RiskAssessor (Gemini when a key is configured)
3. Audit sink (SQLite store or in-memory)
4. VaultClient (PaperVaultClient or Web3VaultClient based on mode)
5. Execution strategies and HedgeOrchestrator
6. DecisionEngine
"""

import asyncio
import signal
from contextlib import asynccontextmanager
from typing import Any

import httpx
import uvicorn
from fastapi import FastAPI

from hedger.audit.database import AuditDatabase
from hedger.audit.sink import MemoryAuditSink
from hedger.audit.store import AuditStore
from hedger.config import AppSettings
from hedger.engine import DecisionEngine
from hedger.execution.orchestrator import HedgeOrchestrator
from hedger.execution.strategies import build_strategy
from hedger.execution.vault import to_base_units
from hedger.logging import get_logger, setup_logging
from hedger.rates.binance import BinanceRateSource
from hedger.rates.boros import BorosRateSource
from hedger.rates.collector import RateCollector
from hedger.rates.hyperliquid import HyperliquidRateSource
from hedger.rates.source import RateKind, RateSource, StaticRateSource
from hedger.risk.gemini import GeminiAssessor


def _build_rate_sources(settings: AppSettings, http_client: httpx.AsyncClient) -> list[RateSource]:
    """Static sources when static rates are configured, live venues otherwise."""
    venues = settings.venues
    sources: list[RateSource] = []

    if venues.static_fixed_rates:
        sources.append(StaticRateSource("static_fixed", RateKind.FIXED, venues.static_fixed_rates))
    else:
        sources.append(
            BorosRateSource(
                venues.boros_api_url,
                venues.boros_markets,
                tick_size=venues.boros_tick_size,
                client=http_client,
            )
        )

    if venues.static_floating_rates:
        sources.append(
            StaticRateSource("static_floating", RateKind.FLOATING, venues.static_floating_rates)
        )
    else:
        if venues.binance_enabled:
            sources.append(BinanceRateSource(quote=venues.binance_quote))
        if venues.hyperliquid_enabled:
            sources.append(HyperliquidRateSource(venues.hyperliquid_url, client=http_client))

    return sources


async def _build_components(settings: AppSettings) -> dict[str, Any]:
    """Build all hedger components from settings.

    Does NOT open the audit database; that happens in the lifespan
    (status API mode) or run() (headless mode).

    Returns:
        Dict mapping component names to instances.
    """
    logger = get_logger("hedger.main")

    http_client = httpx.AsyncClient(timeout=settings.venues.http_timeout_seconds)

    # 1. Rate sources
    collector = RateCollector(_build_rate_sources(settings, http_client))

    # 2. Risk assessor
    assessor = None
    if settings.assessor.gemini_api_key.get_secret_value():
        assessor = GeminiAssessor(
            settings.assessor,
            client=http_client,
            timeout=settings.engine.assessor_timeout_seconds,
        )
    else:
        logger.warning(
            "no_assessor_configured",
            note="Threshold crossings will use the deterministic fallback assessment.",
        )

    # 3. Audit sink
    audit_database = None
    if settings.audit.enabled:
        audit_database = AuditDatabase(settings.audit.db_path)
        sink = AuditStore(audit_database)
    else:
        sink = MemoryAuditSink()

    # 4. Vault client based on mode
    vault_settings = settings.vault
    if vault_settings.mode == "paper":
        from hedger.execution.paper_vault import PaperVaultClient

        vault = PaperVaultClient(
            vault_balance=to_base_units(vault_settings.paper_vault_balance, vault_settings.asset_decimals),
            native_balance=to_base_units(vault_settings.paper_native_balance, vault_settings.asset_decimals),
        )
    else:
        from hedger.execution.web3_vault import Web3VaultClient

        vault = Web3VaultClient(vault_settings)

    # 5. Orchestrator with configured strategies
    orchestrator = HedgeOrchestrator(
        vault=vault,
        sink=sink,
        primary=build_strategy(vault_settings.primary_strategy),
        fallback=build_strategy(vault_settings.fallback_strategy),
        market_address=vault_settings.market_address,
        asset_decimals=vault_settings.asset_decimals,
        auto_top_up=vault_settings.auto_top_up,
    )

    # 6. Engine
    engine = DecisionEngine(
        settings=settings.engine,
        collector=collector,
        orchestrator=orchestrator,
        assessor=assessor,
        sink=sink,
        hedge_amount=vault_settings.hedge_amount,
    )

    return {
        "http_client": http_client,
        "collector": collector,
        "assessor": assessor,
        "audit_database": audit_database,
        "sink": sink,
        "vault": vault,
        "orchestrator": orchestrator,
        "engine": engine,
    }


async def _close_components(components: dict[str, Any]) -> None:
    """Release network and database resources."""
    await components["collector"].close()
    await components["vault"].close()
    await components["http_client"].aclose()
    if components["audit_database"] is not None:
        await components["audit_database"].close()


def _setup_signal_handlers(engine: DecisionEngine) -> None:
    """Register SIGINT/SIGTERM to stop the engine after the current cycle.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("hedger.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        asyncio.create_task(engine.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the engine alongside the status API.

    On startup: opens the audit database, stores components on app.state,
    starts the engine as a background task.

    On shutdown: stops the engine, waits for the in-flight cycle, closes
    resources.
    """
    logger = get_logger("hedger.main")
    settings = app.state.settings
    components = app.state.components
    engine = components["engine"]

    if components["audit_database"] is not None:
        await components["audit_database"].connect()
        app.state.audit_store = components["sink"]

    app.state.engine = engine

    _setup_signal_handlers(engine)

    engine_task = asyncio.create_task(engine.start())

    logger.info("lifespan_started", mode=settings.vault.mode, assets=settings.engine.assets)

    yield

    await engine.stop()
    engine_task.cancel()
    try:
        await engine_task
    except asyncio.CancelledError:
        pass

    await _close_components(components)
    logger.info("hedger_stopped")


async def run() -> None:
    """Run the hedger.

    With DASHBOARD_ENABLED=true the status API is served by uvicorn and the
    lifespan manages the engine. Otherwise the engine runs directly.
    """
    settings = AppSettings()

    setup_logging(settings.log_level)
    logger = get_logger("hedger.main")

    components = await _build_components(settings)

    if settings.dashboard.enabled:
        from hedger.dashboard.app import create_dashboard_app

        app = create_dashboard_app(lifespan=lifespan)
        app.state.settings = settings
        app.state.components = components

        logger.info(
            "starting_with_status_api",
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            mode=settings.vault.mode,
        )

        config = uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        _setup_signal_handlers(components["engine"])

        logger.info(
            "starting_without_status_api",
            mode=settings.vault.mode,
            assets=settings.engine.assets,
            trigger_bps=settings.engine.trigger_bps,
            hedge_threshold=str(settings.engine.hedge_threshold),
        )

        try:
            if components["audit_database"] is not None:
                await components["audit_database"].connect()
            await components["engine"].start()
        finally:
            await _close_components(components)
            logger.info("hedger_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
