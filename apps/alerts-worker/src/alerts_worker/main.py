"""
Alerts Worker - Scheduled Alert Scanner

This worker uses ONLY:
- basecore (DB, settings, logging)
- alerts_core (config, scanner, scheduler)

Features:
- Warm-up scan on startup
- Quick, regular and deep cadences on their own threads
- Thresholds re-read on every scan
- Graceful shutdown on SIGTERM/SIGINT
"""

import logging
import signal
import sys
import threading

from basecore.logging import setup_logging
from alerts_core.config import build_config_provider
from alerts_core.scheduler import AlertScheduler, session_scanner_factory

logger = logging.getLogger(__name__)

STOP_TIMEOUT_SEC = 30

# Graceful shutdown
shutdown_requested = threading.Event()


def signal_handler(signum, frame):
    logger.info(f"Received signal {signum}, requesting shutdown...")
    shutdown_requested.set()


def build_scheduler() -> AlertScheduler:
    """Wire the scheduler to the configured stores."""
    config_provider = build_config_provider()
    return AlertScheduler(session_scanner_factory(config_provider), config_provider)


def main():
    """Run the scheduler until a shutdown signal arrives."""
    setup_logging()

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    logger.info("Starting alerts worker")

    try:
        scheduler = build_scheduler()
    except ValueError as e:
        logger.error(f"Invalid worker configuration: {e}")
        sys.exit(1)

    scheduler.start()

    # Main thread only waits; cadences run in the background
    shutdown_requested.wait()

    if not scheduler.stop(timeout=STOP_TIMEOUT_SEC):
        logger.warning(f"Cadences still running after {STOP_TIMEOUT_SEC}s, exiting anyway")

    logger.info("Alerts worker shutting down gracefully")


if __name__ == "__main__":
    main()
