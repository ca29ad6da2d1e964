"""
Tests for the alert scanner.
"""

from datetime import timedelta

import pytest

from alerts_core.config import StaticConfigProvider, ThresholdConfig
from alerts_core.contracts.types import AlertPriority, AlertStatus, AlertType
from alerts_core.engines.scanner import AlertScanner, ScanStatus
from alerts_core.exceptions import StoreUnavailableError
from alerts_core.persistence.repo import AlertRepository, MedicineRepository


class FakeFeed:
    """In-memory medicine feed."""

    def __init__(self, items=(), fail=False, expiring_count=0):
        self.items = list(items)
        self.fail = fail
        self.expiring_count = expiring_count
        self.list_calls = 0

    def list_all(self):
        self.list_calls += 1
        if self.fail:
            raise StoreUnavailableError("inventory store down")
        return self.items

    def list_by_ids(self, medicine_ids):
        ids = set(medicine_ids)
        return [item for item in self.items if item.id in ids]

    def count_by_expiry_window(self, from_days, to_days, now=None):
        if self.fail:
            raise StoreUnavailableError("inventory store down")
        return self.expiring_count


class FakeStore:
    """In-memory alert store that can fail selected inserts."""

    def __init__(self, fail_for=(), unavailable=False):
        self.alerts = []
        self.fail_for = set(fail_for)
        self.unavailable = unavailable

    def create(self, fact):
        if self.unavailable:
            raise StoreUnavailableError("alert store down")
        if fact.medicine_id in self.fail_for:
            raise RuntimeError(f"write failed for {fact.medicine_id}")
        self.alerts.append(fact)
        return fact

    def find_open(self, medicine_id, alert_type):
        for fact in self.alerts:
            if fact.medicine_id == medicine_id and fact.type == alert_type:
                return fact
        return None


@pytest.fixture
def scanner_for(db, config_provider, now):
    """Scanner over the SQLite repositories with a fixed clock."""

    def _make(provider=None):
        return AlertScanner(
            MedicineRepository(db),
            AlertRepository(db),
            provider or config_provider,
            clock=lambda: now,
        )

    return _make


class TestFullScan:
    """Tests for full scans against the database."""

    def test_creates_alerts(self, scanner_for, add_medicine, db):
        """Test scenario C persisted as two alerts."""
        add_medicine(stock=8, minimum_stock=10, reorder_level=15, expires_in_days=200)

        summary = scanner_for().run_full_scan()

        assert summary.status == ScanStatus.OK
        assert summary.created == 2
        assert summary.considered_total == 2
        assert summary.medicines == 1
        alerts = AlertRepository(db).list_alerts()
        assert {a.type for a in alerts} == {"low_stock", "reorder"}
        assert all(a.status == "new" and a.read is False for a in alerts)

    def test_second_scan_creates_nothing(self, scanner_for, add_medicine):
        """Test scenario D: back-to-back scans are idempotent."""
        add_medicine(stock=8, minimum_stock=10, reorder_level=15, expires_in_days=200)
        scanner = scanner_for()

        first = scanner.run_full_scan()
        second = scanner.run_full_scan()

        assert first.created == 2
        assert second.created == 0
        assert second.duplicates == 2
        assert second.considered_total == 2

    def test_scenario_e_two_dedup_keys(self, scanner_for, add_medicine, db):
        add_medicine(stock=0, minimum_stock=10, expires_in_days=-1)

        summary = scanner_for().run_full_scan()

        assert summary.created == 2
        alerts = AlertRepository(db).list_alerts()
        assert {(a.type, a.priority) for a in alerts} == {("low_stock", "critical"), ("expired", "critical")}

    def test_resolved_alert_is_recreated(self, scanner_for, add_medicine, db):
        """Test that resolving does not block recreation while the condition persists."""
        add_medicine(stock=0, minimum_stock=10)
        scanner = scanner_for()
        repo = AlertRepository(db)

        scanner.run_full_scan()
        original = repo.list_alerts()[0]
        repo.resolve(original.id)

        summary = scanner.run_full_scan()

        assert summary.created == 1
        alerts = repo.list_alerts(type="low_stock")
        assert len(alerts) == 2
        assert {a.status for a in alerts} == {"new", "resolved"}
        assert any(a.id != original.id and a.status == "new" for a in alerts)

    def test_pending_alert_still_blocks(self, scanner_for, add_medicine, db):
        add_medicine(stock=0, minimum_stock=10)
        scanner = scanner_for()
        scanner.run_full_scan()

        alert = AlertRepository(db).list_alerts()[0]
        alert.status = AlertStatus.PENDING.value
        db.commit()

        assert scanner.run_full_scan().created == 0

    def test_inactive_medicines_ignored(self, scanner_for, add_medicine):
        add_medicine(stock=0, minimum_stock=10, is_active=False)
        summary = scanner_for().run_full_scan()
        assert summary.medicines == 0
        assert summary.created == 0

    def test_thresholds_reloaded_every_scan(self, scanner_for, add_medicine, db):
        """Test that a config change applies to the next scan."""
        add_medicine(expires_in_days=10)
        provider = StaticConfigProvider()
        scanner = scanner_for(provider)

        scanner.run_full_scan()
        assert AlertRepository(db).list_alerts()[0].priority == "warning"

        provider.config = ThresholdConfig.from_document(
            {"expiryThresholds": {"critical": 14, "warning": 30, "upcoming": 90}}
        )
        AlertRepository(db).resolve(AlertRepository(db).list_alerts()[0].id)
        scanner.run_full_scan()

        open_alerts = AlertRepository(db).list_alerts(status="new")
        assert [a.priority for a in open_alerts] == ["critical"]


class TestNarrowScans:
    """Tests for the narrower entry points."""

    def test_low_stock_only(self, scanner_for, add_medicine, db):
        add_medicine(stock=0, minimum_stock=10, expires_in_days=3)

        summary = scanner_for().check_low_stock_only()

        assert summary.scan == "low_stock"
        assert summary.created == 1
        assert [a.type for a in AlertRepository(db).list_alerts()] == ["low_stock"]

    def test_expiry_only(self, scanner_for, add_medicine, db):
        add_medicine(stock=0, minimum_stock=10, expires_in_days=3)

        summary = scanner_for().check_expiry_only()

        assert summary.created == 1
        assert [a.type for a in AlertRepository(db).list_alerts()] == ["expiring"]

    def test_imminent_expiry_runs_when_something_expires(self, scanner_for, add_medicine, db):
        add_medicine("med-1", expires_in_days=3)
        add_medicine("med-2", name="Ibuprofen", expires_in_days=20)

        summary = scanner_for().check_imminent_expiry_only()

        assert summary.status == ScanStatus.OK
        assert summary.created == 2
        priorities = {a.medicine_id: a.priority for a in AlertRepository(db).list_alerts()}
        assert priorities == {"med-1": "critical", "med-2": "warning"}

    def test_imminent_expiry_short_circuits(self, config_provider, now):
        """Test that a zero count skips loading and classifying medicines."""
        feed = FakeFeed(expiring_count=0)
        scanner = AlertScanner(feed, FakeStore(), config_provider, clock=lambda: now)

        summary = scanner.check_imminent_expiry_only()

        assert summary.status == ScanStatus.SKIPPED
        assert summary.created == 0
        assert feed.list_calls == 0

    def test_imminent_expiry_ignores_already_expired(self, scanner_for, add_medicine):
        """Test that the count window excludes medicines already past expiry."""
        add_medicine(expires_in_days=-2)
        summary = scanner_for().check_imminent_expiry_only()
        assert summary.status == ScanStatus.SKIPPED

    def test_generate_expiry_alerts_for_selected(self, scanner_for, add_medicine, db):
        add_medicine("med-1", expires_in_days=3)
        add_medicine("med-2", name="Ibuprofen", expires_in_days=3)

        summary = scanner_for().generate_expiry_alerts(["med-2"])

        assert summary.scan == "expiry_bulk"
        assert summary.created == 1
        assert [a.medicine_id for a in AlertRepository(db).list_alerts()] == ["med-2"]


class TestFailures:
    """Tests for partial and total failures."""

    def test_malformed_medicine_is_skipped(self, make_snapshot, config_provider, now):
        """Test that one bad record does not abort the scan."""
        feed = FakeFeed([
            make_snapshot(id="bad", stock=-3),
            make_snapshot(id="good", stock=0),
        ])
        store = FakeStore()

        summary = AlertScanner(feed, store, config_provider, clock=lambda: now).run_full_scan()

        assert summary.status == ScanStatus.OK
        assert summary.failed == 1
        assert summary.created == 1
        assert [f.medicine_id for f in store.alerts] == ["good"]

    def test_failed_insert_is_skipped(self, make_snapshot, config_provider, now):
        feed = FakeFeed([
            make_snapshot(id="med-1", stock=0),
            make_snapshot(id="med-2", stock=0),
        ])
        store = FakeStore(fail_for={"med-1"})

        summary = AlertScanner(feed, store, config_provider, clock=lambda: now).run_full_scan()

        assert summary.failed == 1
        assert summary.created == 1
        assert summary.considered_total == 2

    def test_feed_unavailable_returns_error_summary(self, config_provider, now):
        """Test that an unreachable feed aborts without raising."""
        scanner = AlertScanner(FakeFeed(fail=True), FakeStore(), config_provider, clock=lambda: now)

        summary = scanner.run_full_scan()

        assert summary.status == ScanStatus.ERROR
        assert not summary.ok
        assert "inventory store down" in summary.error
        assert summary.finished_at is not None

    def test_store_unavailable_aborts_scan(self, make_snapshot, config_provider, now):
        feed = FakeFeed([make_snapshot(id="med-1", stock=0), make_snapshot(id="med-2", stock=0)])
        scanner = AlertScanner(feed, FakeStore(unavailable=True), config_provider, clock=lambda: now)

        summary = scanner.run_full_scan()

        assert summary.status == ScanStatus.ERROR
        assert summary.created == 0
        assert summary.failed == 0

    def test_imminent_count_failure_returns_error_summary(self, config_provider, now):
        scanner = AlertScanner(FakeFeed(fail=True), FakeStore(), config_provider, clock=lambda: now)
        assert scanner.check_imminent_expiry_only().status == ScanStatus.ERROR

    def test_dict_items_accepted(self, config_provider, now):
        """Test feeds returning plain dicts in the inventory API shape."""
        feed = FakeFeed([{"_id": "m1", "name": "Amoxicillin", "stock": 0, "minimumStock": 20}])
        store = FakeStore()

        summary = AlertScanner(feed, store, config_provider, clock=lambda: now).run_full_scan()

        assert summary.created == 1
        assert store.alerts[0].priority == AlertPriority.CRITICAL
        assert store.alerts[0].type == AlertType.LOW_STOCK

    def test_summary_to_dict(self, config_provider, now):
        summary = AlertScanner(FakeFeed(), FakeStore(), config_provider, clock=lambda: now).run_full_scan()
        data = summary.to_dict()
        assert data["scan"] == "full"
        assert data["status"] == "ok"
        assert data["created"] == 0
