"""JSON endpoints: agent status (audit trail), engine state, runtime config."""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from hedger.config import RuntimeConfig

log = structlog.get_logger(__name__)

router = APIRouter()


class ConfigUpdate(BaseModel):
    """Runtime overrides merged into the engine's current overlay.

    Omitted fields keep their current override; an explicit null clears one
    back to the configured value.
    """

    trigger_bps: int | None = None
    hedge_threshold: Decimal | None = None
    must_hedge_enabled: bool | None = None
    scan_interval: int | None = None


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_decimal_to_str(item) for item in obj]
    return obj


@router.get("/agent-status")
async def get_agent_status(request: Request) -> JSONResponse:
    """Latest snapshot, snapshot history, recent hedges and assessor trigger logs."""
    store = request.app.state.audit_store
    if store is None:
        return JSONResponse(
            content={"error": "audit store not configured"},
            status_code=503,
        )

    try:
        status = await store.agent_status()
    except Exception as e:
        log.error("agent_status_query_failed", error=str(e))
        return JSONResponse(content={"error": str(e)}, status_code=500)

    return JSONResponse(content=_decimal_to_str(status))


@router.get("/engine")
async def get_engine(request: Request) -> JSONResponse:
    """Per-asset spread history, threshold memory and last cycle outcome."""
    engine = request.app.state.engine
    if engine is None:
        return JSONResponse(content={"error": "engine not running"}, status_code=503)
    return JSONResponse(content=_decimal_to_str(engine.status()))


@router.post("/config")
async def update_config(request: Request, update: ConfigUpdate) -> JSONResponse:
    """Apply runtime overrides to the running engine."""
    engine = request.app.state.engine
    if engine is None:
        return JSONResponse(content={"error": "engine not running"}, status_code=503)

    current = engine.runtime_config or RuntimeConfig()
    rc = replace(current, **update.model_dump(exclude_unset=True))
    engine.runtime_config = rc
    log.info("config_updated_via_api", config=str(rc))
    return JSONResponse(content=_decimal_to_str(engine.status()))
