"""Operator CLI for the alerts engine."""
