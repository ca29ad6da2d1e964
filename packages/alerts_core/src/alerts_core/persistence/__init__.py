"""
Alert engine persistence.

The alerts table is OWNED by the engine. The medicines table is read-only
from the engine's point of view.
"""

from alerts_core.persistence.models import Alert, AlertsBase, MedicineRecord
from alerts_core.persistence.repo import AlertRepository, MedicineRepository

__all__ = [
    "Alert",
    "AlertRepository",
    "AlertsBase",
    "MedicineRecord",
    "MedicineRepository",
]
