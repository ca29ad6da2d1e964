"""Inventory event handlers."""

from alerts_core.handlers.router import EventRouter, handle_event

__all__ = ["EventRouter", "handle_event"]
