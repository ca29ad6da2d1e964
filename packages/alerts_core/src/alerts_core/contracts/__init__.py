"""Alert contracts - types, snapshots, facts and inventory events."""

from alerts_core.contracts.events import InventoryEvent
from alerts_core.contracts.facts import AlertFact, Classification
from alerts_core.contracts.snapshot import MedicineSnapshot
from alerts_core.contracts.types import (
    AlertPriority,
    AlertReason,
    AlertStatus,
    AlertType,
    InventoryEventType,
    Rule,
)

__all__ = [
    "AlertFact",
    "AlertPriority",
    "AlertReason",
    "AlertStatus",
    "AlertType",
    "Classification",
    "InventoryEvent",
    "InventoryEventType",
    "MedicineSnapshot",
    "Rule",
]
