"""
Alerts Core - Pharmacy Alert Generation & Scheduling Engine

This package watches inventory state and turns it into alert records.
It provides:
- Alert contracts (types, medicine snapshots, facts, inventory events)
- Threshold configuration loading (file or Redis backed, live reloaded)
- The classifier, deduplicator and scanner
- The multi-cadence scheduler
- Engine-owned persistence (alerts table) and a read-only medicine feed

The engine does NOT own medicine records. It reads them through the
MedicineFeed port and writes only to the alerts table.
"""
