"""
Inventory Event - envelope for inventory changes reported to the engine.

The inventory service emits these when stock is adjusted or a medicine is
added. The payload is self-contained so the router does not need to query
the inventory store for the values that changed.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass
class InventoryEvent:
    """
    Inventory change notification.

    Attributes:
        event_type: Type of event ("stock_adjusted", "medicine_added")
        medicine_id: Medicine the event is about
        occurred_at: When the change happened (UTC)
        payload: Event data (previous_stock/new_stock for stock adjustments)
    """

    event_type: str
    medicine_id: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InventoryEvent":
        """Create an InventoryEvent from a dictionary (e.g., from a JSON body)."""
        occurred_at = data.get("occurred_at")
        return cls(
            event_type=data["event_type"],
            medicine_id=str(data["medicine_id"]),
            occurred_at=(
                datetime.fromisoformat(occurred_at) if isinstance(occurred_at, str)
                else occurred_at or datetime.now(timezone.utc)
            ),
            payload=data.get("payload", {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": self.event_type,
            "medicine_id": self.medicine_id,
            "occurred_at": self.occurred_at.isoformat(),
            "payload": self.payload,
        }
