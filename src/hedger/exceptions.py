"""Custom exceptions for the yield-spread hedger.

All engine, collaborator and execution-layer exceptions live here
to avoid circular imports between modules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hedger.models import HedgeEvent


class HedgerError(Exception):
    """Base exception for all hedger errors."""

    #: Audit record written for the failed hedge attempt, when there was one.
    hedge_event: HedgeEvent | None = None


class DataUnavailable(HedgerError):
    """Raised when a rate source fails or returns no usable rate."""


class AssessorUnavailable(HedgerError):
    """Raised when the external risk assessor errors, times out or is unconfigured."""


class PreflightFailure(HedgerError):
    """Raised when market resolution or collateral checks fail before execution."""


class ExecutionFailure(HedgerError):
    """Raised when the hedge could not be executed by any configured strategy."""


class CycleTimeout(ExecutionFailure):
    """Raised when the total-cycle deadline passes before a hedge is broadcast."""


class SinkFailure(HedgerError):
    """Raised by audit sinks when an append fails. Never escalated past the engine."""
