"""Tests for the status API routes."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from hedger.audit.sink import MemoryAuditSink
from hedger.config import EngineSettings
from hedger.dashboard.app import create_dashboard_app
from hedger.engine import DecisionEngine
from hedger.execution.orchestrator import HedgeOrchestrator
from hedger.execution.paper_vault import PaperVaultClient
from hedger.execution.strategies import DirectOrderStrategy
from hedger.rates.collector import RateCollector


@pytest.fixture
def app():
    return create_dashboard_app()


@pytest.fixture
def engine() -> DecisionEngine:
    sink = MemoryAuditSink()
    orchestrator = HedgeOrchestrator(PaperVaultClient(), sink, DirectOrderStrategy())
    return DecisionEngine(
        EngineSettings(assets=["ETH"], trigger_bps=500),
        RateCollector([]),
        orchestrator,
        sink=sink,
    )


class TestAgentStatus:
    def test_no_store_returns_503(self, app) -> None:
        with TestClient(app) as client:
            response = client.get("/api/agent-status")
        assert response.status_code == 503

    def test_returns_store_payload(self, app) -> None:
        store = MagicMock()
        store.agent_status = AsyncMock(
            return_value={
                "latest": {"spread_bps": 800, "fixed_rate": "0.10"},
                "history": [],
                "hedges": [{"amount": Decimal("0.1"), "status": "success"}],
                "aiLogs": [],
            }
        )
        app.state.audit_store = store

        with TestClient(app) as client:
            response = client.get("/api/agent-status")

        assert response.status_code == 200
        body = response.json()
        assert body["latest"]["spread_bps"] == 800
        assert body["hedges"] == [{"amount": "0.1", "status": "success"}]

    def test_store_error_returns_500(self, app) -> None:
        store = MagicMock()
        store.agent_status = AsyncMock(side_effect=RuntimeError("database not connected"))
        app.state.audit_store = store

        with TestClient(app) as client:
            response = client.get("/api/agent-status")

        assert response.status_code == 500
        assert response.json() == {"error": "database not connected"}


class TestEngineRoutes:
    def test_engine_status_requires_engine(self, app) -> None:
        with TestClient(app) as client:
            assert client.get("/api/engine").status_code == 503
            assert client.post("/api/config", json={"trigger_bps": 700}).status_code == 503

    def test_engine_status(self, app, engine) -> None:
        app.state.engine = engine

        with TestClient(app) as client:
            response = client.get("/api/engine")

        body = response.json()
        assert response.status_code == 200
        assert body["trigger_bps"] == 500
        assert body["hedge_threshold"] == "100"
        assert body["assets"]["ETH"]["last_outcome"] is None

    def test_config_update_overrides_engine(self, app, engine) -> None:
        app.state.engine = engine

        with TestClient(app) as client:
            response = client.post(
                "/api/config",
                json={"trigger_bps": 700, "hedge_threshold": "120"},
            )

        assert response.status_code == 200
        assert engine.trigger_bps == 700
        assert engine.hedge_threshold == Decimal("120")
        assert engine.must_hedge_enabled is True
        assert response.json()["trigger_bps"] == 700

    def test_config_rejects_bad_types(self, app, engine) -> None:
        app.state.engine = engine

        with TestClient(app) as client:
            response = client.post("/api/config", json={"trigger_bps": "lots"})

        assert response.status_code == 422
        assert engine.runtime_config is None

    def test_config_updates_merge(self, app, engine) -> None:
        app.state.engine = engine

        with TestClient(app) as client:
            client.post("/api/config", json={"trigger_bps": 700})
            client.post("/api/config", json={"hedge_threshold": "120"})

        assert engine.trigger_bps == 700
        assert engine.hedge_threshold == Decimal("120")

    def test_explicit_null_clears_override(self, app, engine) -> None:
        app.state.engine = engine

        with TestClient(app) as client:
            client.post("/api/config", json={"trigger_bps": 700, "must_hedge_enabled": False})
            response = client.post("/api/config", json={"trigger_bps": None})

        assert response.status_code == 200
        assert engine.trigger_bps == 500
        assert engine.must_hedge_enabled is False
