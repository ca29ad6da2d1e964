"""
Repositories for the alerts engine.

AlertRepository implements the AlertStore port on the engine-owned alerts
table. MedicineRepository implements the MedicineFeed port on the inventory
service's medicines table (read-only).

Connection-level failures are raised as StoreUnavailableError so the scanner
can tell "store down, abort the scan" from "this one row is bad".
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from alerts_core.contracts.facts import AlertFact
from alerts_core.contracts.types import AlertPriority, AlertStatus, AlertType
from alerts_core.exceptions import AlertNotFoundError, StoreUnavailableError
from alerts_core.persistence.models import Alert, MedicineRecord

ALL = "all"


@contextmanager
def store_errors(db: Session, operation: str) -> Iterator[None]:
    """Roll back on database errors and translate connection failures."""
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        db.rollback()
        raise StoreUnavailableError(
            f"Store unavailable during {operation}: {e.orig or e}",
            {"operation": operation},
        ) from e
    except SQLAlchemyError:
        db.rollback()
        raise


def _parse_alert_id(alert_id: UUID | str) -> UUID:
    if isinstance(alert_id, UUID):
        return alert_id
    try:
        return UUID(str(alert_id))
    except ValueError:
        raise AlertNotFoundError(alert_id) from None


class AlertRepository:
    """Repository for the alerts table."""

    def __init__(self, db: Session):
        self.db = db

    # --- Scanner operations ---

    def create(self, fact: AlertFact) -> Alert:
        """
        Insert a new alert from a fact.

        Each insert is committed on its own so concurrent scans see it and a
        failed insert does not undo earlier ones.
        """
        alert = Alert(
            title=fact.title,
            message=fact.message,
            type=fact.type.value,
            priority=fact.priority.value,
            status=AlertStatus.NEW.value,
            read=False,
            medicine_id=fact.medicine_id,
            details=fact.details,
        )
        with store_errors(self.db, "create alert"):
            self.db.add(alert)
            self.db.commit()
            self.db.refresh(alert)
        return alert

    def find_open(self, medicine_id: str, alert_type: AlertType) -> Alert | None:
        """Get the unresolved alert for (medicine_id, type), if any."""
        with store_errors(self.db, "find open alert"):
            return (
                self.db.query(Alert)
                .filter(
                    Alert.medicine_id == medicine_id,
                    Alert.type == AlertType(alert_type).value,
                    Alert.status != AlertStatus.RESOLVED.value,
                )
                .first()
            )

    # --- External actions ---

    def get(self, alert_id: UUID | str) -> Alert:
        """
        Get an alert by id.

        Raises:
            AlertNotFoundError: If no alert has this id
        """
        with store_errors(self.db, "get alert"):
            alert = self.db.get(Alert, _parse_alert_id(alert_id))
        if alert is None:
            raise AlertNotFoundError(alert_id)
        return alert

    def list_alerts(
        self,
        type: str | None = None,
        priority: str | None = None,
        status: str | None = None,
        read: bool | None = None,
        medicine_id: str | None = None,
        limit: int | None = None,
    ) -> list[Alert]:
        """
        Get alerts with filters, newest first.

        A filter set to None or "all" is not applied.
        """
        query = self.db.query(Alert)

        if type and type != ALL:
            query = query.filter(Alert.type == AlertType(type).value)

        if priority and priority != ALL:
            query = query.filter(Alert.priority == AlertPriority(priority).value)

        if status and status != ALL:
            query = query.filter(Alert.status == AlertStatus(status).value)

        if read is not None:
            query = query.filter(Alert.read == read)

        if medicine_id:
            query = query.filter(Alert.medicine_id == medicine_id)

        query = query.order_by(Alert.created_at.desc())
        if limit:
            query = query.limit(limit)

        with store_errors(self.db, "list alerts"):
            return query.all()

    def mark_read(self, alert_id: UUID | str) -> Alert:
        alert = self.get(alert_id)
        with store_errors(self.db, "mark alert read"):
            alert.read = True
            self.db.commit()
            self.db.refresh(alert)
        return alert

    def resolve(self, alert_id: UUID | str) -> Alert:
        """
        Resolve an alert.

        Resolution is terminal. It frees the dedup key, so the next scan may
        create a new alert if the condition persists.
        """
        alert = self.get(alert_id)
        with store_errors(self.db, "resolve alert"):
            alert.status = AlertStatus.RESOLVED.value
            alert.resolved_at = datetime.now(timezone.utc)
            self.db.commit()
            self.db.refresh(alert)
        return alert

    def delete(self, alert_id: UUID | str) -> None:
        alert = self.get(alert_id)
        with store_errors(self.db, "delete alert"):
            self.db.delete(alert)
            self.db.commit()

    def stats(self) -> dict[str, Any]:
        """Alert counts: total, unread, per priority, per type and per status."""
        with store_errors(self.db, "alert stats"):
            total = self.db.query(func.count(Alert.id)).scalar() or 0
            unread = (
                self.db.query(func.count(Alert.id))
                .filter(Alert.read == False)  # noqa: E712
                .scalar()
            ) or 0
            by_priority = dict(
                self.db.query(Alert.priority, func.count(Alert.id)).group_by(Alert.priority).all()
            )
            by_type = dict(
                self.db.query(Alert.type, func.count(Alert.id)).group_by(Alert.type).all()
            )
            by_status = dict(
                self.db.query(Alert.status, func.count(Alert.id)).group_by(Alert.status).all()
            )

        stats: dict[str, Any] = {"total": total, "unread": unread}
        for priority in AlertPriority:
            stats[priority.value] = by_priority.get(priority.value, 0)
        stats["by_type"] = {t.value: by_type.get(t.value, 0) for t in AlertType}
        stats["by_status"] = {s.value: by_status.get(s.value, 0) for s in AlertStatus}
        return stats


class MedicineRepository:
    """Read-only access to the medicines table."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, medicine_id: str) -> MedicineRecord | None:
        with store_errors(self.db, "get medicine"):
            return self.db.get(MedicineRecord, medicine_id)

    def list_all(self) -> list[MedicineRecord]:
        """Get all active medicines."""
        with store_errors(self.db, "list medicines"):
            return (
                self.db.query(MedicineRecord)
                .filter(MedicineRecord.is_active == True)  # noqa: E712
                .order_by(MedicineRecord.name)
                .all()
            )

    def list_by_ids(self, medicine_ids: Iterable[str]) -> list[MedicineRecord]:
        ids = [str(medicine_id) for medicine_id in medicine_ids]
        if not ids:
            return []
        with store_errors(self.db, "list medicines by id"):
            return (
                self.db.query(MedicineRecord)
                .filter(MedicineRecord.id.in_(ids))
                .order_by(MedicineRecord.name)
                .all()
            )

    def count_by_expiry_window(self, from_days: int, to_days: int, now: datetime | None = None) -> int:
        """Count active medicines with now + from_days < expiry_date <= now + to_days."""
        now = now or datetime.now(timezone.utc)
        with store_errors(self.db, "count medicines by expiry window"):
            return (
                self.db.query(func.count(MedicineRecord.id))
                .filter(
                    MedicineRecord.is_active == True,  # noqa: E712
                    MedicineRecord.expiry_date.isnot(None),
                    MedicineRecord.expiry_date > now + timedelta(days=from_days),
                    MedicineRecord.expiry_date <= now + timedelta(days=to_days),
                )
                .scalar()
            ) or 0
