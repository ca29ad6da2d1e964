"""Port definitions for the engine's storage collaborators.

Responsibilities:
  - Define the interface contracts the scanner, deduplicator and router need.
Must not:
  - Implement logic; interfaces only.

The SQLAlchemy repositories in alerts_core.persistence implement both ports.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, Protocol

from alerts_core.contracts.facts import AlertFact
from alerts_core.contracts.snapshot import MedicineSnapshot
from alerts_core.contracts.types import AlertType


class MedicineFeed(Protocol):
    """Read-only access to the inventory store."""

    def list_all(self) -> Sequence[Any]:
        """All active medicines, as snapshots or records exposing to_snapshot()."""
        ...

    def list_by_ids(self, medicine_ids: Iterable[str]) -> Sequence[Any]:
        ...

    def count_by_expiry_window(self, from_days: int, to_days: int, now: datetime | None = None) -> int:
        """Count active medicines expiring in (now + from_days, now + to_days]."""
        ...


class AlertStore(Protocol):
    """Persistence for alert records."""

    def create(self, fact: AlertFact) -> Any:
        ...

    def find_open(self, medicine_id: str, alert_type: AlertType) -> Any | None:
        """The alert for (medicine_id, type) whose status is not resolved, if any."""
        ...


def as_snapshot(item: Any) -> MedicineSnapshot:
    """Normalize a feed item to a MedicineSnapshot."""
    if isinstance(item, MedicineSnapshot):
        return item
    if isinstance(item, dict):
        return MedicineSnapshot.from_dict(item)
    return item.to_snapshot()
