"""
Alert Types - enumerations shared by the classifier, store and CLI.

Values are the strings persisted in the alerts table and used in the
configuration document, so they must never be renamed.
"""

from enum import Enum


class AlertType(str, Enum):
    """Kind of condition an alert reports. Part of the dedup key."""

    LOW_STOCK = "low_stock"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    REORDER = "reorder"

    def __str__(self) -> str:
        return self.value


class AlertPriority(str, Enum):
    """Severity tier of an alert."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    def __str__(self) -> str:
        return self.value


class AlertStatus(str, Enum):
    """
    Lifecycle status of a persisted alert.

    An alert is "open" while its status is anything but RESOLVED.
    """

    NEW = "new"
    PENDING = "pending"
    RESOLVED = "resolved"

    def __str__(self) -> str:
        return self.value


class AlertReason(str, Enum):
    """
    Why a classification fired.

    Finer grained than AlertType; drives title/message rendering.
    """

    OUT_OF_STOCK = "out_of_stock"
    CRITICAL_LOW_STOCK = "critical_low_stock"
    LOW_STOCK = "low_stock"
    REORDER_RECOMMENDED = "reorder_recommended"
    EXPIRED = "expired"
    EXPIRY_CRITICAL = "expiry_critical"
    EXPIRY_WARNING = "expiry_warning"
    EXPIRY_NOTICE = "expiry_notice"
    STOCK_REPLENISHED = "stock_replenished"
    NEW_MEDICINE = "new_medicine"

    def __str__(self) -> str:
        return self.value


class Rule(str, Enum):
    """Independent classification rules a scan can be restricted to."""

    STOCK = "stock"
    REORDER = "reorder"
    EXPIRY = "expiry"

    def __str__(self) -> str:
        return self.value


ALL_RULES = frozenset(Rule)


class InventoryEventType(str, Enum):
    """Inventory events the router turns into informational alerts."""

    STOCK_ADJUSTED = "stock_adjusted"
    MEDICINE_ADDED = "medicine_added"

    def __str__(self) -> str:
        return self.value
