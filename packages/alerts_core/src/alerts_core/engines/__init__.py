"""
Engine implementations.

The classifier is pure; the scanner is the only component that talks to
both the medicine feed and the alert store.
"""

from alerts_core.engines.classifier import classify, evaluate
from alerts_core.engines.dedup import Deduplicator
from alerts_core.engines.scanner import AlertScanner, ScanSummary

__all__ = [
    "AlertScanner",
    "Deduplicator",
    "ScanSummary",
    "classify",
    "evaluate",
]
