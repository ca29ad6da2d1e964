"""
Alert Deduplicator

Decides whether a candidate alert would duplicate an open alert.

The dedup key is (medicine_id, type). At most one alert per key may be open
(status != resolved). The check-then-create pattern is best effort: two scans
running at the same time can both see no open alert and both insert. That
window is accepted; the store does not enforce uniqueness.
"""

import logging

from alerts_core.contracts.facts import AlertFact
from alerts_core.contracts.types import AlertType
from alerts_core.ports import AlertStore

logger = logging.getLogger(__name__)


class Deduplicator:
    """Checks candidate alerts against open alerts in the store."""

    def __init__(self, store: AlertStore):
        self.store = store

    def exists(self, medicine_id: str, alert_type: AlertType) -> bool:
        """True if an unresolved alert exists for (medicine_id, alert_type)."""
        return self.store.find_open(medicine_id, AlertType(alert_type)) is not None

    def is_duplicate(self, fact: AlertFact) -> bool:
        duplicate = self.exists(fact.medicine_id, fact.type)
        if duplicate:
            logger.debug(f"Open {fact.type} alert already exists for medicine {fact.medicine_id}")
        return duplicate
