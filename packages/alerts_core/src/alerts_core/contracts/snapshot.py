"""
Medicine Snapshot - read-only view of one inventory item.

Snapshots are the only classification input. They are built from the
inventory store's rows (see persistence.models.MedicineRecord) or from
plain dicts, and the engine never mutates them.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any


def _parse_datetime(value: Any) -> datetime | date | None:
    if value is None or value == "":
        return None
    if isinstance(value, (datetime, date)):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


@dataclass(frozen=True)
class MedicineSnapshot:
    """
    Point-in-time view of a medicine used by the classifier.

    Attributes:
        id: Opaque identity assigned by the inventory store
        name: Display name
        unit: Unit label (tablet, bottle, strip...)
        stock: Current stock quantity (>= 0)
        minimum_stock: Minimum stock threshold
        reorder_level: Optional reorder level
        expiry_date: Optional expiry; None means the item never expires
        batch_number: Batch identifier
        manufacturer: Manufacturer name
        supplier: Supplier name
        updated_at: When the inventory record last changed
    """

    id: str
    name: str
    stock: int
    minimum_stock: int
    unit: str = "unit"
    reorder_level: int | None = None
    expiry_date: datetime | date | None = None
    batch_number: str | None = None
    manufacturer: str | None = None
    supplier: str | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "MedicineSnapshot":
        """
        Create a snapshot from a dictionary.

        Accepts snake_case keys as well as the inventory API's camelCase
        keys (minimumStock, expiryDate, _id...).
        """
        return cls(
            id=str(_pick(data, "id", "_id")),
            name=data["name"],
            unit=_pick(data, "unit", default="unit") or "unit",
            stock=int(data["stock"]),
            minimum_stock=int(_pick(data, "minimum_stock", "minimumStock", default=0)),
            reorder_level=_optional_int(_pick(data, "reorder_level", "reorderLevel")),
            expiry_date=_parse_datetime(_pick(data, "expiry_date", "expiryDate")),
            batch_number=_pick(data, "batch_number", "batchNumber"),
            manufacturer=data.get("manufacturer"),
            supplier=data.get("supplier"),
            updated_at=_parse_datetime(_pick(data, "updated_at", "updatedAt")),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "unit": self.unit,
            "stock": self.stock,
            "minimum_stock": self.minimum_stock,
            "reorder_level": self.reorder_level,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "batch_number": self.batch_number,
            "manufacturer": self.manufacturer,
            "supplier": self.supplier,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
