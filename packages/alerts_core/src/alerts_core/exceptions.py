"""
Exception hierarchy for the alerts engine.
"""

from typing import Any


class AlertsError(Exception):
    """Base error for the alerts engine."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.details = details or {}


class StoreUnavailableError(AlertsError):
    """The medicine feed or the alert store cannot be reached."""


class AlertNotFoundError(AlertsError):
    """No alert exists with the requested id."""

    def __init__(self, alert_id: Any):
        super().__init__(f"Alert not found: {alert_id}", {"alert_id": str(alert_id)})
        self.alert_id = alert_id


class InvalidConfigError(AlertsError):
    """An alert configuration document failed validation."""
