"""
Alert Scheduler

Drives the scanner at three independent cadences:

- quick:   low stock + imminent expiry (default every 5 minutes)
- regular: full scan + low stock + expiry (default every 30 minutes)
- deep:    full scan (default every 240 minutes)

start() runs a warm-up pass (full scan + low stock + expiry) synchronously,
then starts one daemon Cadence thread per schedule. Each thread owns a stop
token (threading.Event) and waits on it between ticks, so stop() returns as
soon as in-flight ticks finish.

Every tick opens a fresh scanner through the scanner factory. The factory is
a context manager that owns the database session for that tick, so cadences
never share a session.

Interval values are read once at start(); thresholds are re-read by the
scanner on every tick.
"""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager

from alerts_core.config import ConfigProvider
from alerts_core.engines.scanner import AlertScanner, ScanSummary

logger = logging.getLogger(__name__)

ScannerFactory = Callable[[], AbstractContextManager[AlertScanner]]

WARMUP = "warmup"
QUICK = "quick"
REGULAR = "regular"
DEEP = "deep"

# Scanner entry points run by each cadence, in order
CADENCE_STEPS: dict[str, tuple[str, ...]] = {
    WARMUP: ("run_full_scan", "check_low_stock_only", "check_expiry_only"),
    QUICK: ("check_low_stock_only", "check_imminent_expiry_only"),
    REGULAR: ("run_full_scan", "check_low_stock_only", "check_expiry_only"),
    DEEP: ("run_full_scan",),
}


class Cadence(threading.Thread):
    """
    Background thread running one schedule.

    The first tick fires one interval after start. A failing tick is logged
    and the cadence keeps running; there is no backoff.
    """

    def __init__(self, name: str, interval_seconds: float, tick: Callable[[], object]):
        super().__init__(name=f"alerts-cadence-{name}", daemon=True)
        self.cadence = name
        self.interval_seconds = interval_seconds
        self.tick = tick
        self.stop_event = threading.Event()
        self.ticks = 0

    def run(self) -> None:
        logger.info(f"Starting {self.cadence} cadence (interval={self.interval_seconds}s)")

        while not self.stop_event.wait(self.interval_seconds):
            try:
                self.tick()
            except Exception as e:
                logger.error(
                    f"Error in {self.cadence} cadence: {e}",
                    extra={"cadence": self.cadence},
                    exc_info=True,
                )
            self.ticks += 1

        logger.info(f"{self.cadence} cadence stopped")

    def stop(self) -> None:
        self.stop_event.set()


class AlertScheduler:
    """Owns the cadence threads for one worker process."""

    def __init__(
        self,
        scanner_factory: ScannerFactory,
        config_provider: ConfigProvider,
        seconds_per_minute: float = 60,
    ):
        self.scanner_factory = scanner_factory
        self.config_provider = config_provider
        self.seconds_per_minute = seconds_per_minute
        self.cadences: list[Cadence] = []

    @property
    def running(self) -> bool:
        return any(cadence.is_alive() for cadence in self.cadences)

    def run_once(self, name: str) -> list[ScanSummary]:
        """
        Run one tick of a cadence synchronously.

        Raises:
            ValueError: If the cadence name is unknown
        """
        if name not in CADENCE_STEPS:
            raise ValueError(f"Unknown cadence: {name}")

        with self.scanner_factory() as scanner:
            summaries = [getattr(scanner, step)() for step in CADENCE_STEPS[name]]

        created = sum(summary.created for summary in summaries)
        if created:
            logger.info(f"{name} cadence created {created} alerts", extra={"cadence": name})
        return summaries

    def start(self) -> None:
        """
        Run the warm-up pass and start the cadence threads.

        Raises:
            RuntimeError: If the scheduler is already running
        """
        if self.running:
            raise RuntimeError("Scheduler already started")

        intervals = self.config_provider.load().check_intervals

        logger.info("Running initial alert checks")
        try:
            self.run_once(WARMUP)
        except Exception as e:
            logger.error(f"Initial alert checks failed: {e}", exc_info=True)

        self.cadences = [
            Cadence(QUICK, intervals.quick_check * self.seconds_per_minute, lambda: self.run_once(QUICK)),
            Cadence(REGULAR, intervals.regular_check * self.seconds_per_minute, lambda: self.run_once(REGULAR)),
            Cadence(DEEP, intervals.deep_scan * self.seconds_per_minute, lambda: self.run_once(DEEP)),
        ]
        for cadence in self.cadences:
            cadence.start()

        logger.info(
            f"Alert scheduler started (quick={intervals.quick_check}m, "
            f"regular={intervals.regular_check}m, deep={intervals.deep_scan}m)"
        )

    def stop(self, timeout: float | None = None) -> bool:
        """
        Signal every cadence to stop and wait for the threads to exit.

        Returns:
            True if all cadence threads have exited
        """
        for cadence in self.cadences:
            cadence.stop()
        for cadence in self.cadences:
            cadence.join(timeout)

        stopped = not self.running
        if stopped:
            logger.info("Alert scheduler stopped")
        else:
            logger.warning("Alert scheduler stop timed out with cadences still running")
        return stopped


def session_scanner_factory(config_provider: ConfigProvider) -> ScannerFactory:
    """
    Build a scanner factory backed by basecore database sessions.

    Each scanner gets its own session, closed when the tick finishes.
    """
    from basecore.db import session_scope

    from alerts_core.persistence.repo import AlertRepository, MedicineRepository

    @contextmanager
    def factory() -> Iterator[AlertScanner]:
        with session_scope() as db:
            yield AlertScanner(MedicineRepository(db), AlertRepository(db), config_provider)

    return factory
