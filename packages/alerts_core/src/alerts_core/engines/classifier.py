"""
Alert Classifier

Maps one MedicineSnapshot and the current ThresholdConfig to candidate
alerts. Pure: no I/O, no clock reads (callers pass `now`).

Rules are independent; one medicine may produce a stock, a reorder and an
expiry classification in the same pass, each under its own dedup key:

- Stock:   stock <= minimum_stock -> low_stock
           (critical when stock == 0 or stock < 50% of minimum, else warning)
- Reorder: reorder_level set and 0 < stock <= reorder_level -> reorder/warning
- Expiry:  days = ceil((expiry_date - now) / 1 day)
           days <= 0                   -> expired/critical
           0 < days <= critical        -> expiring/critical
           critical < days <= warning  -> expiring/warning
           warning < days <= upcoming  -> expiring/info
           days > upcoming             -> nothing

evaluate() returns Classification decisions without any text; classify()
renders them into AlertFacts via engines.messages.
"""

import math
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta, timezone

from alerts_core.config import ThresholdConfig
from alerts_core.contracts.facts import AlertFact, Classification
from alerts_core.contracts.snapshot import MedicineSnapshot
from alerts_core.contracts.types import ALL_RULES, AlertPriority, AlertReason, AlertType, Rule
from alerts_core.engines.messages import render

CRITICAL_STOCK_RATIO = 0.5
REORDER_TARGET_MULTIPLIER = 2
REORDER_BUFFER_PERCENT = 20
ASSUMED_DAILY_USAGE_RATIO = 0.1

ONE_DAY = timedelta(days=1)


def as_utc(value: datetime | date) -> datetime:
    """
    Normalize a date or datetime to an aware UTC datetime.

    Plain dates are taken as midnight UTC and naive datetimes as UTC.
    """
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_until_expiry(expiry_date: datetime | date, now: datetime) -> int:
    """Whole days until expiry, rounded up. Zero or negative means expired."""
    return math.ceil((as_utc(expiry_date) - as_utc(now)) / ONE_DAY)


def suggested_order(stock: int, minimum_stock: int) -> int:
    """Units to order to get back to twice the minimum stock, plus a 20% buffer."""
    shortfall = max(0, REORDER_TARGET_MULTIPLIER * minimum_stock - stock)
    return math.ceil(shortfall * (1 + REORDER_BUFFER_PERCENT / 100))


def days_until_stockout(stock: int, minimum_stock: int) -> int | None:
    """
    Naive stockout estimate assuming daily usage of 10% of minimum stock.

    Returns None when minimum stock is 0 (no usage assumption possible).
    """
    avg_daily_usage = minimum_stock * ASSUMED_DAILY_USAGE_RATIO
    if avg_daily_usage <= 0:
        return None
    return math.floor(stock / avg_daily_usage)


def _check_snapshot(snapshot: MedicineSnapshot) -> None:
    if not isinstance(snapshot.stock, int) or not isinstance(snapshot.minimum_stock, int):
        raise ValueError(f"Malformed snapshot {snapshot.id}: stock and minimum_stock must be integers")
    if snapshot.stock < 0 or snapshot.minimum_stock < 0:
        raise ValueError(f"Malformed snapshot {snapshot.id}: negative stock values")


def evaluate_stock(snapshot: MedicineSnapshot) -> Classification | None:
    stock = snapshot.stock
    minimum = snapshot.minimum_stock

    if stock > minimum:
        return None

    if stock == 0:
        priority, reason = AlertPriority.CRITICAL, AlertReason.OUT_OF_STOCK
    elif stock < minimum * CRITICAL_STOCK_RATIO:
        priority, reason = AlertPriority.CRITICAL, AlertReason.CRITICAL_LOW_STOCK
    else:
        priority, reason = AlertPriority.WARNING, AlertReason.LOW_STOCK

    return Classification(
        type=AlertType.LOW_STOCK,
        priority=priority,
        reason=reason,
        medicine_id=snapshot.id,
        details={
            "currentStock": stock,
            "minimumStock": minimum,
            "reorderLevel": snapshot.reorder_level,
            "suggestedOrder": suggested_order(stock, minimum),
            "daysUntilStockout": days_until_stockout(stock, minimum),
        },
    )


def evaluate_reorder(snapshot: MedicineSnapshot) -> Classification | None:
    reorder_level = snapshot.reorder_level
    if not reorder_level or not 0 < snapshot.stock <= reorder_level:
        return None

    return Classification(
        type=AlertType.REORDER,
        priority=AlertPriority.WARNING,
        reason=AlertReason.REORDER_RECOMMENDED,
        medicine_id=snapshot.id,
        details={
            "currentStock": snapshot.stock,
            "minimumStock": snapshot.minimum_stock,
            "reorderLevel": reorder_level,
            "suggestedOrder": suggested_order(snapshot.stock, snapshot.minimum_stock),
            "supplier": snapshot.supplier,
            "lastOrderDate": snapshot.updated_at.isoformat() if snapshot.updated_at else None,
        },
    )


def evaluate_expiry(
    snapshot: MedicineSnapshot,
    config: ThresholdConfig,
    now: datetime,
) -> Classification | None:
    if snapshot.expiry_date is None:
        return None

    thresholds = config.expiry_thresholds
    days = days_until_expiry(snapshot.expiry_date, now)
    details = {
        "expiryDate": as_utc(snapshot.expiry_date).isoformat(),
        "currentStock": snapshot.stock,
        "batchNumber": snapshot.batch_number,
    }

    if days <= 0:
        return Classification(
            type=AlertType.EXPIRED,
            priority=AlertPriority.CRITICAL,
            reason=AlertReason.EXPIRED,
            medicine_id=snapshot.id,
            details={**details, "daysExpired": abs(days)},
        )

    if days <= thresholds.critical:
        priority, reason = AlertPriority.CRITICAL, AlertReason.EXPIRY_CRITICAL
    elif days <= thresholds.warning:
        priority, reason = AlertPriority.WARNING, AlertReason.EXPIRY_WARNING
    elif days <= thresholds.upcoming:
        priority, reason = AlertPriority.INFO, AlertReason.EXPIRY_NOTICE
    else:
        return None

    return Classification(
        type=AlertType.EXPIRING,
        priority=priority,
        reason=reason,
        medicine_id=snapshot.id,
        details={**details, "daysUntilExpiry": days},
    )


def evaluate(
    snapshot: MedicineSnapshot,
    config: ThresholdConfig,
    now: datetime,
    rules: Iterable[Rule] = ALL_RULES,
) -> list[Classification]:
    """
    Run the selected rules against one snapshot.

    Raises:
        ValueError: If the snapshot is malformed
    """
    _check_snapshot(snapshot)
    rules = frozenset(rules)

    results = []
    if Rule.STOCK in rules:
        results.append(evaluate_stock(snapshot))
    if Rule.REORDER in rules:
        results.append(evaluate_reorder(snapshot))
    if Rule.EXPIRY in rules:
        results.append(evaluate_expiry(snapshot, config, now))

    return [c for c in results if c is not None]


def classify(
    snapshot: MedicineSnapshot,
    config: ThresholdConfig,
    now: datetime,
    rules: Iterable[Rule] = ALL_RULES,
) -> list[AlertFact]:
    """Classify one snapshot into rendered alert facts."""
    return [render(c, snapshot) for c in evaluate(snapshot, config, now, rules)]
