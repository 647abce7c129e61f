"""SQLite-backed audit sink plus the read queries behind the status API.

CRITICAL: Decimal values are stored as TEXT and returned as strings, never floats.
"""

from decimal import Decimal

import aiosqlite

from hedger.audit.database import AuditDatabase
from hedger.audit.sink import AuditRecord, AuditSink
from hedger.exceptions import SinkFailure
from hedger.logging import get_logger
from hedger.models import HedgeEvent

logger = get_logger(__name__)

HEDGE_EVENT_TYPE = "hedge"

_INSERT_SQL = (
    "INSERT INTO hedge_events "
    "(event_type, timestamp, asset, fixed_rate, floating_rate, spread_bps, "
    "risk_score, risk_level, composite_score, volatility_factor, amount, "
    "venue_ref, strategy, status, tx_hash, reason, action) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
)

_SNAPSHOT_COLUMNS = "timestamp, asset, fixed_rate, floating_rate, spread_bps"
_HEDGE_COLUMNS = (
    "timestamp, asset, spread_bps, amount, venue_ref, strategy, status, "
    "tx_hash, risk_score, composite_score, volatility_factor, reason"
)
_AI_LOG_COLUMNS = (
    "timestamp, asset, fixed_rate, floating_rate, spread_bps, risk_score, "
    "risk_level, composite_score, reason, action"
)


def _text(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def _row_params(event: AuditRecord) -> tuple:
    if isinstance(event, HedgeEvent):
        return (
            HEDGE_EVENT_TYPE,
            event.timestamp,
            event.asset,
            None,
            None,
            event.spread_bps,
            event.risk_score,
            None,
            _text(event.composite_score),
            _text(event.volatility_factor),
            _text(event.amount_notional),
            event.venue_ref,
            event.strategy,
            event.status.value,
            event.tx_hash,
            event.reason,
            None,
        )
    return (
        event.event_type.value,
        event.timestamp,
        event.asset,
        _text(event.fixed_rate),
        _text(event.floating_rate),
        event.spread_bps,
        event.risk_score,
        event.risk_level.value if event.risk_level is not None else None,
        _text(event.composite_score),
        None,
        None,
        None,
        None,
        None,
        None,
        event.reason,
        event.action,
    )


class AuditStore(AuditSink):
    """Audit sink writing to the ``hedge_events`` table.

    Usage:
        async with AuditDatabase("data/audit.db") as database:
            store = AuditStore(database)
            await store.append(event)
            status = await store.agent_status()
    """

    def __init__(self, database: AuditDatabase) -> None:
        self._database = database

    async def append(self, event: AuditRecord) -> None:
        try:
            await self._database.db.execute(_INSERT_SQL, _row_params(event))
            await self._database.db.commit()
        except (aiosqlite.Error, RuntimeError) as e:
            raise SinkFailure(f"audit insert failed: {e}") from e

        logger.debug("audit_record_written", record_type=type(event).__name__)

    async def _select(self, columns: str, event_type: str, limit: int) -> list[dict]:
        cursor = await self._database.db.execute(
            f"SELECT {columns} FROM hedge_events "
            "WHERE event_type = ? ORDER BY timestamp DESC, id DESC LIMIT ?",
            (event_type, limit),
        )
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def recent_snapshots(self, limit: int = 50) -> list[dict]:
        return await self._select(_SNAPSHOT_COLUMNS, "snapshot", limit)

    async def recent_hedges(self, limit: int = 10) -> list[dict]:
        return await self._select(_HEDGE_COLUMNS, HEDGE_EVENT_TYPE, limit)

    async def recent_ai_logs(self, limit: int = 10) -> list[dict]:
        return await self._select(_AI_LOG_COLUMNS, "ai_trigger", limit)

    async def agent_status(self) -> dict:
        """Latest snapshot, snapshot history, recent hedges and assessor logs."""
        snapshots = await self.recent_snapshots()
        return {
            "latest": snapshots[0] if snapshots else None,
            "history": snapshots,
            "hedges": await self.recent_hedges(),
            "aiLogs": await self.recent_ai_logs(),
        }
