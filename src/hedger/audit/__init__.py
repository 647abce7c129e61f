"""Audit trail: sink interface, in-memory sink and SQLite store."""

from hedger.audit.database import AuditDatabase
from hedger.audit.sink import AuditRecord, AuditSink, MemoryAuditSink, safe_append
from hedger.audit.store import AuditStore

__all__ = [
    "AuditDatabase",
    "AuditRecord",
    "AuditSink",
    "AuditStore",
    "MemoryAuditSink",
    "safe_append",
]
