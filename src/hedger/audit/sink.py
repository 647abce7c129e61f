"""Audit sink interface and best-effort append helper.

The sink is the durable record of what the engine decided and did. Writes
are best-effort: a failing sink is logged and never changes a cycle's
outcome.
"""

from abc import ABC, abstractmethod

from hedger.logging import get_logger
from hedger.models import DecisionSnapshot, HedgeEvent

logger = get_logger(__name__)

AuditRecord = HedgeEvent | DecisionSnapshot


class AuditSink(ABC):
    """Append-only destination for HedgeEvents and DecisionSnapshots."""

    @abstractmethod
    async def append(self, event: AuditRecord) -> None:
        """Persist one record.

        Raises:
            SinkFailure: If the record could not be written.
        """
        ...


class MemoryAuditSink(AuditSink):
    """In-process sink (paper mode without a database, and tests)."""

    def __init__(self) -> None:
        self.events: list[AuditRecord] = []

    async def append(self, event: AuditRecord) -> None:
        self.events.append(event)

    @property
    def hedge_events(self) -> list[HedgeEvent]:
        return [e for e in self.events if isinstance(e, HedgeEvent)]

    @property
    def snapshots(self) -> list[DecisionSnapshot]:
        return [e for e in self.events if isinstance(e, DecisionSnapshot)]


async def safe_append(sink: AuditSink | None, event: AuditRecord) -> bool:
    """Append ``event`` and return whether it was written. Never raises."""
    if sink is None:
        return False
    try:
        await sink.append(event)
    except Exception as e:
        logger.error(
            "audit_append_failed",
            record_type=type(event).__name__,
            asset=event.asset,
            error=str(e),
        )
        return False
    return True
