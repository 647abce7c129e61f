"""Status API for the hedging engine."""

from hedger.dashboard.app import create_dashboard_app

__all__ = ["create_dashboard_app"]
