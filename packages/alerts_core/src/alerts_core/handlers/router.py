"""
Inventory Event Router - turns inventory changes into informational alerts.

The inventory service reports stock adjustments and new medicines. The
router maps event_type to the matching handler. Alerts created here go
through the same Deduplicator as scan results, so the one-open-alert-per
(medicine, type) rule holds for every writer.
"""

import logging
from typing import Any

from alerts_core.contracts.events import InventoryEvent
from alerts_core.contracts.facts import Classification
from alerts_core.contracts.snapshot import MedicineSnapshot
from alerts_core.contracts.types import AlertPriority, AlertReason, AlertType, InventoryEventType
from alerts_core.engines.dedup import Deduplicator
from alerts_core.engines.messages import render
from alerts_core.ports import AlertStore, MedicineFeed, as_snapshot

logger = logging.getLogger(__name__)

# Minimum relative stock increase reported as a replenishment
REPLENISHMENT_MIN_INCREASE = 0.1


class EventRouter:
    """Routes inventory events to alert handlers."""

    def __init__(self, feed: MedicineFeed, store: AlertStore):
        self.feed = feed
        self.store = store
        self.dedup = Deduplicator(store)

    def handle(self, event: InventoryEvent) -> dict[str, Any]:
        """
        Handle an inventory event.

        Returns:
            Result dict with status ("created", "ignored", "duplicate") and the
            alert id when one was created
        """
        results: dict[str, Any] = {"event_type": event.event_type, "medicine_id": event.medicine_id}

        try:
            if event.event_type == InventoryEventType.STOCK_ADJUSTED:
                results.update(self._handle_stock_adjusted(event))

            elif event.event_type == InventoryEventType.MEDICINE_ADDED:
                results.update(self._handle_medicine_added(event))

            else:
                logger.warning(f"Unknown inventory event type: {event.event_type}")
                results["status"] = "ignored"
                results["warning"] = f"No handlers for event type: {event.event_type}"

        except Exception as e:
            logger.error(
                f"Error processing {event.event_type} event for medicine {event.medicine_id}",
                extra={
                    "event_type": event.event_type,
                    "medicine_id": event.medicine_id,
                    "error": str(e),
                },
                exc_info=True,
            )
            raise

        return results

    def _load_snapshot(self, medicine_id: str) -> MedicineSnapshot | None:
        records = self.feed.list_by_ids([medicine_id])
        if not records:
            return None
        return as_snapshot(records[0])

    def _handle_stock_adjusted(self, event: InventoryEvent) -> dict[str, Any]:
        previous_stock = int(event.payload["previous_stock"])
        new_stock = int(event.payload["new_stock"])

        if new_stock <= previous_stock:
            return {"status": "ignored", "reason": "stock did not increase"}

        # An increase from zero counts as 100%
        change = (new_stock - previous_stock) / previous_stock if previous_stock > 0 else 1.0
        if change <= REPLENISHMENT_MIN_INCREASE:
            return {"status": "ignored", "reason": "increase below threshold"}

        snapshot = self._load_snapshot(event.medicine_id)
        if snapshot is None:
            logger.warning(f"Stock adjusted for unknown medicine {event.medicine_id}")
            return {"status": "ignored", "reason": "medicine not found"}

        classification = Classification(
            type=AlertType.REORDER,
            priority=AlertPriority.INFO,
            reason=AlertReason.STOCK_REPLENISHED,
            medicine_id=snapshot.id,
            details={
                "currentStock": new_stock,
                "previousStock": previous_stock,
                "difference": new_stock - previous_stock,
                "percentChange": round(change * 100),
            },
        )
        return self._create(classification, snapshot)

    def _handle_medicine_added(self, event: InventoryEvent) -> dict[str, Any]:
        snapshot = self._load_snapshot(event.medicine_id)
        if snapshot is None:
            logger.warning(f"Medicine added event for unknown medicine {event.medicine_id}")
            return {"status": "ignored", "reason": "medicine not found"}

        classification = Classification(
            type=AlertType.REORDER,
            priority=AlertPriority.INFO,
            reason=AlertReason.NEW_MEDICINE,
            medicine_id=snapshot.id,
            details={
                "currentStock": snapshot.stock,
                "manufacturer": snapshot.manufacturer,
                "expiryDate": snapshot.expiry_date.isoformat() if snapshot.expiry_date else None,
            },
        )
        return self._create(classification, snapshot)

    def _create(self, classification: Classification, snapshot: MedicineSnapshot) -> dict[str, Any]:
        fact = render(classification, snapshot)
        if self.dedup.is_duplicate(fact):
            return {"status": "duplicate"}

        alert = self.store.create(fact)
        logger.info(
            f"Created {fact.title} alert for {snapshot.name}",
            extra={"medicine_id": snapshot.id, "reason": classification.reason.value},
        )
        return {"status": "created", "alert_id": str(getattr(alert, "id", ""))}


def handle_event(feed: MedicineFeed, store: AlertStore, event: InventoryEvent) -> dict[str, Any]:
    """
    Convenience function to handle an inventory event.

    Args:
        feed: Medicine feed
        store: Alert store
        event: Inventory event

    Returns:
        Processing results
    """
    router = EventRouter(feed, store)
    return router.handle(event)
