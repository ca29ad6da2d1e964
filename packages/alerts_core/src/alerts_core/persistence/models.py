"""
Alert engine database models.

Tables:
- alerts: OWNED by the engine. Scans insert rows; external actions flip
  the read flag, resolve or delete them.
- medicines: OWNED by the inventory service. Mapped here read-only so the
  engine can build MedicineSnapshots; the engine never writes to it.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

from alerts_core.contracts.snapshot import MedicineSnapshot
from alerts_core.contracts.types import AlertStatus

AlertsBase = declarative_base()

JSONType = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Alert(AlertsBase):
    """
    Persisted alert.

    Lifecycle: created with status "new" and read=False by a scan. The engine
    never resolves or deletes alerts itself; only the external "mark as read",
    "resolve" and "delete" actions change a row after creation.
    """

    __tablename__ = "alerts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)  # low_stock, expiring, expired, reorder
    priority = Column(String(20), nullable=False)  # critical, warning, info
    status = Column(String(20), nullable=False, default=AlertStatus.NEW.value)
    read = Column(Boolean, nullable=False, default=False)
    medicine_id = Column(String(64), nullable=False, index=True)
    details = Column(JSONType, nullable=False, default=dict)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        # Dedup lookup: (medicine_id, type, status != resolved)
        Index("idx_alerts_medicine_type_status", "medicine_id", "type", "status"),
        Index("idx_alerts_type_status", "type", "status"),
        Index("idx_alerts_priority", "priority"),
        Index("idx_alerts_read", "read"),
        Index("idx_alerts_created_at", "created_at"),
    )

    @property
    def is_open(self) -> bool:
        return self.status != AlertStatus.RESOLVED.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "priority": self.priority,
            "status": self.status,
            "read": self.read,
            "medicine_id": self.medicine_id,
            "details": self.details or {},
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class MedicineRecord(AlertsBase):
    """
    Inventory row as stored by the inventory service.

    Only the columns the engine reads are mapped.
    """

    __tablename__ = "medicines"

    id = Column(String(64), primary_key=True)
    name = Column(String(200), nullable=False)
    unit = Column(String(20), nullable=False, default="tablet")
    stock = Column(Integer, nullable=False, default=0)
    minimum_stock = Column(Integer, nullable=False, default=10)
    reorder_level = Column(Integer, nullable=True)
    expiry_date = Column(DateTime(timezone=True), nullable=True, index=True)
    batch_number = Column(String(100), nullable=True)
    manufacturer = Column(String(200), nullable=True)
    supplier = Column(String(200), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_snapshot(self) -> MedicineSnapshot:
        return MedicineSnapshot(
            id=str(self.id),
            name=self.name,
            unit=self.unit or "unit",
            stock=self.stock,
            minimum_stock=self.minimum_stock,
            reorder_level=self.reorder_level,
            expiry_date=self.expiry_date,
            batch_number=self.batch_number,
            manufacturer=self.manufacturer,
            supplier=self.supplier,
            updated_at=self.updated_at or self.created_at,
        )
