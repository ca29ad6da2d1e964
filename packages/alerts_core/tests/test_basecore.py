"""
Tests for the basecore settings, logging and database helpers the engine relies on.
"""

import logging

import pytest

from basecore.db import get_engine, reset_caches, session_scope
from basecore.logging import setup_logging
from basecore.settings import Settings, get_settings


@pytest.fixture
def sqlite_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'alerts.db'}")
    get_settings.cache_clear()
    reset_caches()
    yield
    reset_caches()
    get_settings.cache_clear()


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in ("ALERT_CONFIG_BACKEND", "ALERT_CONFIG_PATH", "ALERT_CONFIG_CREATE_IF_MISSING"):
            monkeypatch.delenv(name, raising=False)
        settings = Settings(_env_file=None)
        assert settings.ALERT_CONFIG_BACKEND == "file"
        assert settings.ALERT_CONFIG_PATH == "config/alertSettings.json"
        assert settings.ALERT_CONFIG_CREATE_IF_MISSING is True

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("ALERT_CONFIG_CREATE_IF_MISSING", "false")
        settings = Settings(_env_file=None)
        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.ALERT_CONFIG_CREATE_IF_MISSING is False


class TestLogging:
    """Tests for logging setup."""

    def test_setup_logging_sets_level(self, restore_root_logger):
        setup_logging("debug")

        assert restore_root_logger.level == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


class TestDatabase:
    """Tests for engine caching and session scope."""

    def test_engine_is_cached(self, sqlite_settings):
        assert get_engine() is get_engine()

    def test_session_scope_rolls_back_on_error(self, sqlite_settings):
        from sqlalchemy import text

        with session_scope() as db:
            db.execute(text("CREATE TABLE probe (id INTEGER PRIMARY KEY)"))
            db.commit()

        with pytest.raises(RuntimeError):
            with session_scope() as db:
                db.execute(text("INSERT INTO probe (id) VALUES (1)"))
                raise RuntimeError("boom")

        with session_scope() as db:
            assert db.execute(text("SELECT COUNT(*) FROM probe")).scalar() == 0
