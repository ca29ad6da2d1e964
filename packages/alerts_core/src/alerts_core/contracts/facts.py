"""
Alert facts - candidate alerts before deduplication and persistence.

A Classification is the pure decision (type, priority, reason, numbers).
An AlertFact is a Classification rendered into human-readable text and
ready to be written to the alert store.
"""

from dataclasses import dataclass, field
from typing import Any

from alerts_core.contracts.types import AlertPriority, AlertReason, AlertType


@dataclass(frozen=True)
class Classification:
    """Outcome of one classification rule for one medicine."""

    type: AlertType
    priority: AlertPriority
    reason: AlertReason
    medicine_id: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def dedup_key(self) -> tuple[str, AlertType]:
        return (self.medicine_id, self.type)


@dataclass(frozen=True)
class AlertFact:
    """
    Candidate alert produced by the classifier.

    Attributes:
        title: Short headline ("Out of Stock", "Expiring Soon"...)
        message: Human-readable text including computed day counts
        type: Alert type (part of the dedup key)
        priority: critical, warning or info
        medicine_id: Medicine the alert is about (part of the dedup key)
        details: Structured payload (currentStock, daysUntilExpiry...)
        reason: The classification reason that produced this fact
    """

    title: str
    message: str
    type: AlertType
    priority: AlertPriority
    medicine_id: str
    details: dict[str, Any] = field(default_factory=dict)
    reason: AlertReason | None = None

    @property
    def dedup_key(self) -> tuple[str, AlertType]:
        return (self.medicine_id, self.type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "priority": self.priority.value,
            "medicine_id": self.medicine_id,
            "details": self.details,
        }
