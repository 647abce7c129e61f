"""FastAPI application factory for the engine status API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from hedger.dashboard.routes import api


def create_dashboard_app(lifespan: Any = None) -> FastAPI:
    """Create the status API application.

    Args:
        lifespan: Optional async context manager for startup/shutdown.
                  main.py uses it to run the engine alongside the server.

    Returns:
        FastAPI app. ``app.state.engine`` and ``app.state.audit_store`` are
        wired by the lifespan (or directly in tests).
    """
    app = FastAPI(
        title="Yield-Spread Hedger",
        lifespan=lifespan,
    )

    app.state.engine = None
    app.state.audit_store = None

    app.include_router(api.router, prefix="/api")

    return app
