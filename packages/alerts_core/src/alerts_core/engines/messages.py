"""
Alert message rendering.

Turns Classification decisions into the title and message text shown to
pharmacy staff. Kept apart from the classifier so severity logic can be
tested without string assertions.
"""

from datetime import datetime

from alerts_core.contracts.facts import AlertFact, Classification
from alerts_core.contracts.snapshot import MedicineSnapshot
from alerts_core.contracts.types import AlertReason

TITLES: dict[AlertReason, str] = {
    AlertReason.OUT_OF_STOCK: "Out of Stock",
    AlertReason.CRITICAL_LOW_STOCK: "Critical Low Stock",
    AlertReason.LOW_STOCK: "Low Stock Alert",
    AlertReason.REORDER_RECOMMENDED: "Reorder Recommended",
    AlertReason.EXPIRED: "Medicine Expired",
    AlertReason.EXPIRY_CRITICAL: "Critical Expiry Alert",
    AlertReason.EXPIRY_WARNING: "Expiring Soon",
    AlertReason.EXPIRY_NOTICE: "Expiry Notice",
    AlertReason.STOCK_REPLENISHED: "Stock Replenished",
    AlertReason.NEW_MEDICINE: "New Medicine Added",
}


def _format_date(value: str | None) -> str:
    if not value:
        return "unknown date"
    return datetime.fromisoformat(value).strftime("%Y-%m-%d")


def _stock_levels(snapshot: MedicineSnapshot) -> str:
    return (
        f"Current stock: {snapshot.stock} {snapshot.unit}, "
        f"Minimum required: {snapshot.minimum_stock} {snapshot.unit}"
    )


def render_message(classification: Classification, snapshot: MedicineSnapshot) -> str:
    """Human-readable message for a classification."""
    reason = classification.reason
    details = classification.details
    name = snapshot.name

    if reason == AlertReason.OUT_OF_STOCK:
        return f"OUT OF STOCK: {name} is completely out of stock. {_stock_levels(snapshot)}. Urgent restock required."
    if reason == AlertReason.CRITICAL_LOW_STOCK:
        return f"CRITICAL LOW STOCK: {name} is critically low. {_stock_levels(snapshot)}"
    if reason == AlertReason.LOW_STOCK:
        return f"Low stock alert for {name}. {_stock_levels(snapshot)}"
    if reason == AlertReason.REORDER_RECOMMENDED:
        return (
            f"Reorder alert for {name}. Current stock: {snapshot.stock} {snapshot.unit}, "
            f"Reorder level: {details['reorderLevel']} {snapshot.unit}"
        )

    if reason == AlertReason.EXPIRED:
        return (
            f"{name} expired {details['daysExpired']} day(s) ago on "
            f"{_format_date(details.get('expiryDate'))}. Remove from inventory immediately."
        )
    if reason == AlertReason.EXPIRY_CRITICAL:
        return (
            f"{name} will expire in just {details['daysUntilExpiry']} day(s) on "
            f"{_format_date(details.get('expiryDate'))}. Urgent attention required."
        )
    if reason in (AlertReason.EXPIRY_WARNING, AlertReason.EXPIRY_NOTICE):
        return (
            f"{name} will expire in {details['daysUntilExpiry']} days on "
            f"{_format_date(details.get('expiryDate'))}."
        )

    if reason == AlertReason.STOCK_REPLENISHED:
        return (
            f"{name} stock has been increased from {details['previousStock']} "
            f"to {details['currentStock']} {snapshot.unit}"
        )
    if reason == AlertReason.NEW_MEDICINE:
        return (
            f'New medicine "{name}" has been added to inventory with initial stock '
            f"of {snapshot.stock} {snapshot.unit}"
        )

    raise ValueError(f"No message template for reason: {reason}")


def render(classification: Classification, snapshot: MedicineSnapshot) -> AlertFact:
    """Render a classification into an AlertFact."""
    return AlertFact(
        title=TITLES[classification.reason],
        message=render_message(classification, snapshot),
        type=classification.type,
        priority=classification.priority,
        medicine_id=classification.medicine_id,
        details=dict(classification.details),
        reason=classification.reason,
    )
