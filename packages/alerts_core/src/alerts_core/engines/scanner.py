"""
Alert Scanner

Runs one pass over the medicine feed: classify every medicine, drop facts
that duplicate an open alert, persist the rest.

Entry points (all return a ScanSummary and never raise):
- run_full_scan(): every rule
- check_low_stock_only(): stock rule only
- check_expiry_only(): expiry rule only
- check_imminent_expiry_only(): expiry rule, only if something expires within
  the critical window (cheap count query first)
- generate_expiry_alerts(ids): expiry rule for selected medicines

Failure handling:
- A malformed medicine or a failed insert is logged, counted in `failed`,
  and the scan moves on to the next item.
- StoreUnavailableError (or any unexpected error while loading the feed)
  aborts the scan with status "error". The next scheduled tick retries.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from alerts_core.config import ConfigProvider, ThresholdConfig
from alerts_core.contracts.types import ALL_RULES, Rule
from alerts_core.engines.classifier import classify
from alerts_core.engines.dedup import Deduplicator
from alerts_core.exceptions import StoreUnavailableError
from alerts_core.ports import AlertStore, MedicineFeed, as_snapshot

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScanStatus:
    """Outcome of a scan."""
    OK = "ok"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass
class ScanSummary:
    """
    Counts for one scan.

    Attributes:
        scan: Which entry point ran ("full", "low_stock", ...)
        status: ok, skipped (short-circuited) or error (aborted)
        created: Alerts written to the store
        considered_total: Candidate facts produced by the classifier
        duplicates: Facts dropped because an open alert already exists
        failed: Medicines or facts that raised and were skipped
        medicines: Medicines loaded from the feed
        error: Error message when status is error
    """

    scan: str
    status: str = ScanStatus.OK
    created: int = 0
    considered_total: int = 0
    duplicates: int = 0
    failed: int = 0
    medicines: int = 0
    error: str | None = None
    started_at: datetime = field(default_factory=utcnow)
    finished_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.status != ScanStatus.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "scan": self.scan,
            "status": self.status,
            "created": self.created,
            "considered_total": self.considered_total,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "medicines": self.medicines,
            "error": self.error,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class AlertScanner:
    """
    Scans inventory and persists new alerts.

    The config is loaded once per scan, so threshold edits apply from the
    next scan on.
    """

    def __init__(
        self,
        feed: MedicineFeed,
        store: AlertStore,
        config_provider: ConfigProvider,
        clock: Callable[[], datetime] | None = None,
    ):
        self.feed = feed
        self.store = store
        self.config_provider = config_provider
        self.dedup = Deduplicator(store)
        self.clock = clock or utcnow

    # --- Trigger surface ---

    def run_full_scan(self) -> ScanSummary:
        """Run every rule against every medicine."""
        return self._scan("full", ALL_RULES, self.feed.list_all)

    def check_low_stock_only(self) -> ScanSummary:
        return self._scan("low_stock", {Rule.STOCK}, self.feed.list_all)

    def check_expiry_only(self) -> ScanSummary:
        return self._scan("expiry", {Rule.EXPIRY}, self.feed.list_all)

    def check_imminent_expiry_only(self) -> ScanSummary:
        """
        Expiry scan that short-circuits on quiet inventories.

        Counts medicines expiring within the critical window first and only
        runs classification when that count is nonzero.
        """
        summary = ScanSummary(scan="imminent_expiry")
        config = self.config_provider.load()
        now = self.clock()
        critical_days = config.expiry_thresholds.critical

        try:
            count = self.feed.count_by_expiry_window(0, critical_days, now=now)
        except Exception as e:
            return self._abort(summary, e)

        if count == 0:
            summary.status = ScanStatus.SKIPPED
            summary.finished_at = utcnow()
            logger.debug(f"No medicines expiring within {critical_days} days, skipping expiry scan")
            return summary

        logger.warning(
            f"CRITICAL: {count} medicines expiring within {critical_days} days",
            extra={"expiring_count": count, "critical_days": critical_days},
        )
        return self._scan("imminent_expiry", {Rule.EXPIRY}, self.feed.list_all, config=config, now=now)

    def generate_expiry_alerts(self, medicine_ids: Iterable[str] | None = None) -> ScanSummary:
        """Run the expiry rule for the given medicines (all when none given)."""
        ids = list(medicine_ids or [])
        if ids:
            return self._scan("expiry_bulk", {Rule.EXPIRY}, lambda: self.feed.list_by_ids(ids))
        return self._scan("expiry_bulk", {Rule.EXPIRY}, self.feed.list_all)

    # --- Internals ---

    def _scan(
        self,
        name: str,
        rules: Iterable[Rule],
        load_items: Callable[[], Sequence[Any]],
        config: ThresholdConfig | None = None,
        now: datetime | None = None,
    ) -> ScanSummary:
        summary = ScanSummary(scan=name)
        config = config or self.config_provider.load()
        now = now or self.clock()
        rules = frozenset(rules)

        try:
            items = load_items()
        except Exception as e:
            return self._abort(summary, e)

        summary.medicines = len(items)
        logger.info(f"Running {name} scan over {len(items)} medicines")

        try:
            for item in items:
                self._process_item(item, config, now, rules, summary)
        except StoreUnavailableError as e:
            return self._abort(summary, e)

        summary.finished_at = utcnow()
        logger.info(
            f"{name} scan created {summary.created} new alerts "
            f"({summary.considered_total} considered, {summary.duplicates} duplicates, {summary.failed} failed)",
            extra={"scan_summary": summary.to_dict()},
        )
        return summary

    def _process_item(
        self,
        item: Any,
        config: ThresholdConfig,
        now: datetime,
        rules: frozenset[Rule],
        summary: ScanSummary,
    ) -> None:
        try:
            snapshot = as_snapshot(item)
            facts = classify(snapshot, config, now, rules)
        except Exception as e:
            summary.failed += 1
            logger.error(
                f"Failed to classify medicine {getattr(item, 'id', None)}: {e}",
                extra={"medicine_id": str(getattr(item, "id", None)), "scan": summary.scan},
                exc_info=True,
            )
            return

        summary.considered_total += len(facts)

        for fact in facts:
            try:
                if self.dedup.is_duplicate(fact):
                    summary.duplicates += 1
                    continue

                self.store.create(fact)
                summary.created += 1
                logger.info(
                    f"Created new alert: {fact.type} - {fact.title}",
                    extra={"medicine_id": fact.medicine_id, "type": fact.type.value, "priority": fact.priority.value},
                )

            except StoreUnavailableError:
                raise
            except Exception as e:
                summary.failed += 1
                logger.error(
                    f"Failed to persist {fact.type} alert for medicine {fact.medicine_id}: {e}",
                    extra={"medicine_id": fact.medicine_id, "type": fact.type.value, "scan": summary.scan},
                    exc_info=True,
                )

    def _abort(self, summary: ScanSummary, error: Exception) -> ScanSummary:
        summary.status = ScanStatus.ERROR
        summary.error = str(error)
        summary.finished_at = utcnow()
        logger.error(
            f"{summary.scan} scan aborted: {error}",
            extra={"scan": summary.scan, "error": str(error)},
            exc_info=True,
        )
        return summary
