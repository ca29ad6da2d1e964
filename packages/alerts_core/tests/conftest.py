"""
Pytest fixtures for alert engine tests.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from alerts_core.config import DEFAULT_CONFIG, StaticConfigProvider
from alerts_core.contracts.snapshot import MedicineSnapshot
from alerts_core.persistence.models import AlertsBase, MedicineRecord

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed scan time."""
    return NOW


@pytest.fixture
def config():
    """Default threshold config (7/30/90 days)."""
    return DEFAULT_CONFIG


@pytest.fixture
def config_provider():
    return StaticConfigProvider()


@pytest.fixture
def make_snapshot():
    """Factory for medicine snapshots with sensible defaults."""

    def _make(**overrides):
        fields = {
            "id": "med-1",
            "name": "Paracetamol 500mg",
            "unit": "tablet",
            "stock": 100,
            "minimum_stock": 10,
        }
        fields.update(overrides)
        return MedicineSnapshot(**fields)

    return _make


@pytest.fixture
def engine():
    """In-memory SQLite engine shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    AlertsBase.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    """Database session on the in-memory engine."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def add_medicine(db):
    """Insert a medicines row. expires_in_days is relative to NOW."""

    def _add(medicine_id="med-1", name="Paracetamol 500mg", expires_in_days=None, **overrides):
        fields = {
            "id": medicine_id,
            "name": name,
            "unit": "tablet",
            "stock": 100,
            "minimum_stock": 10,
        }
        if expires_in_days is not None:
            fields["expiry_date"] = NOW + timedelta(days=expires_in_days)
        fields.update(overrides)
        record = MedicineRecord(**fields)
        db.add(record)
        db.commit()
        return record

    return _add
