"""
Alert Threshold Configuration

Policy for the classifier (expiry day boundaries, stock boundaries) and the
scheduler (cadence intervals), loaded from an external document.

Document shape (camelCase, as stored by the settings UI):

    {
        "expiryThresholds": {"critical": 7, "warning": 30, "upcoming": 90},
        "stockThresholds": {"critical": 3, "warning": 5},
        "checkIntervals": {"quickCheck": 5, "regularCheck": 30, "deepScan": 240}
    }

Providers re-read the backing document on every load() so operators can change
thresholds without restarting the worker. load() never raises: on any error
the defaults are returned and the problem is logged.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError, model_validator

from alerts_core.exceptions import InvalidConfigError

logger = logging.getLogger(__name__)

REQUIRED_SECTIONS = ("expiryThresholds", "stockThresholds", "checkIntervals")


class ExpiryThresholds(BaseModel):
    """Expiry boundaries in days. Must be ascending."""

    model_config = ConfigDict(frozen=True)

    critical: PositiveInt = 7
    warning: PositiveInt = 30
    upcoming: PositiveInt = 90

    @model_validator(mode="after")
    def check_ascending(self) -> "ExpiryThresholds":
        if not self.critical <= self.warning <= self.upcoming:
            raise ValueError(
                f"expiry thresholds must be ascending "
                f"(critical={self.critical}, warning={self.warning}, upcoming={self.upcoming})"
            )
        return self


class StockThresholds(BaseModel):
    """
    Absolute stock boundaries in units.

    Loaded and validated so the document round-trips, but the classifier
    derives stock severity from minimum stock instead.
    """

    model_config = ConfigDict(frozen=True)

    critical: PositiveInt = 3
    warning: PositiveInt = 5


class CheckIntervals(BaseModel):
    """Scheduler cadence intervals in minutes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    quick_check: PositiveInt = Field(5, alias="quickCheck")
    regular_check: PositiveInt = Field(30, alias="regularCheck")
    deep_scan: PositiveInt = Field(240, alias="deepScan")


class ThresholdConfig(BaseModel):
    """Immutable alert policy for one load."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    expiry_thresholds: ExpiryThresholds = Field(default_factory=ExpiryThresholds, alias="expiryThresholds")
    stock_thresholds: StockThresholds = Field(default_factory=StockThresholds, alias="stockThresholds")
    check_intervals: CheckIntervals = Field(default_factory=CheckIntervals, alias="checkIntervals")

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "ThresholdConfig":
        """
        Build a config from a settings document.

        Missing sections and keys fall back to their defaults.

        Raises:
            pydantic.ValidationError: If a value is not a positive integer or
                the expiry thresholds are not ascending
        """
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the camelCase settings document."""
        return self.model_dump(by_alias=True)


DEFAULT_CONFIG = ThresholdConfig()


def validate_document(document: Any) -> ThresholdConfig:
    """
    Validate a complete configuration document before saving it.

    Unlike load(), saving requires all three sections to be present.

    Raises:
        InvalidConfigError: If the document is incomplete or invalid
    """
    if isinstance(document, ThresholdConfig):
        return document
    if not isinstance(document, dict) or any(section not in document for section in REQUIRED_SECTIONS):
        raise InvalidConfigError(
            "Invalid configuration data",
            {"required_sections": list(REQUIRED_SECTIONS)},
        )
    try:
        return ThresholdConfig.from_document(document)
    except ValidationError as e:
        raise InvalidConfigError(
            "Invalid configuration data",
            {"errors": e.errors(include_url=False)},
        ) from e


class ConfigProvider(ABC):
    """Source of the current ThresholdConfig."""

    @abstractmethod
    def load(self) -> ThresholdConfig:
        """Return the current config. Must never raise."""

    def save(self, document: dict[str, Any] | ThresholdConfig) -> ThresholdConfig:
        """Validate and persist a new configuration document."""
        raise NotImplementedError(f"{type(self).__name__} is read-only")


class StaticConfigProvider(ConfigProvider):
    """Returns a fixed config. Used in tests and for embedded use."""

    def __init__(self, config: ThresholdConfig = DEFAULT_CONFIG):
        self.config = config

    def load(self) -> ThresholdConfig:
        return self.config

    def save(self, document: dict[str, Any] | ThresholdConfig) -> ThresholdConfig:
        self.config = validate_document(document)
        return self.config


class FileConfigProvider(ConfigProvider):
    """
    JSON file backed config.

    The file is read on every load(), so edits take effect on the next scan.
    With create_if_missing the default document is written when the file
    does not exist yet, giving operators a file to edit.
    """

    def __init__(self, path: str | Path, create_if_missing: bool = False):
        self.path = Path(path)
        self.create_if_missing = create_if_missing

    def load(self) -> ThresholdConfig:
        try:
            if not self.path.exists():
                if self.create_if_missing:
                    self._write(DEFAULT_CONFIG.to_document())
                    logger.info(f"Created default alert configuration at {self.path}")
                return DEFAULT_CONFIG

            document = json.loads(self.path.read_text(encoding="utf-8"))
            return ThresholdConfig.from_document(document)

        except Exception as e:
            logger.error(
                f"Error loading alert configuration from {self.path}, using defaults: {e}",
                extra={"config_path": str(self.path)},
            )
            return DEFAULT_CONFIG

    def save(self, document: dict[str, Any] | ThresholdConfig) -> ThresholdConfig:
        config = validate_document(document)
        self._write(config.to_document())
        logger.info(f"Saved alert configuration to {self.path}")
        return config

    def _write(self, document: dict[str, Any]) -> None:
        # load() must never observe a partially written file
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise


class RedisConfigProvider(ConfigProvider):
    """
    Config stored as a JSON document under a Redis key.

    Lets several processes share one settings document.
    """

    def __init__(self, key: str, client=None, create_if_missing: bool = False):
        self.key = key
        self.client = client
        self.create_if_missing = create_if_missing

    def load(self) -> ThresholdConfig:
        from basecore.redis import read_json_document, write_json_document

        try:
            document = read_json_document(self.key, client=self.client)
            if document is None:
                if self.create_if_missing:
                    write_json_document(self.key, DEFAULT_CONFIG.to_document(), client=self.client)
                    logger.info(f"Stored default alert configuration under Redis key {self.key}")
                return DEFAULT_CONFIG

            return ThresholdConfig.from_document(document)

        except Exception as e:
            logger.error(
                f"Error loading alert configuration from Redis key {self.key}, using defaults: {e}",
                extra={"config_key": self.key},
            )
            return DEFAULT_CONFIG

    def save(self, document: dict[str, Any] | ThresholdConfig) -> ThresholdConfig:
        from basecore.redis import write_json_document

        config = validate_document(document)
        write_json_document(self.key, config.to_document(), client=self.client)
        logger.info(f"Saved alert configuration under Redis key {self.key}")
        return config


def build_config_provider(settings=None) -> ConfigProvider:
    """
    Build the config provider selected by settings.

    ALERT_CONFIG_BACKEND picks "file" (ALERT_CONFIG_PATH) or "redis"
    (ALERT_CONFIG_REDIS_KEY on REDIS_URL).
    """
    if settings is None:
        from basecore.settings import get_settings
        settings = get_settings()

    backend = settings.ALERT_CONFIG_BACKEND.lower()
    if backend == "redis":
        return RedisConfigProvider(
            settings.ALERT_CONFIG_REDIS_KEY,
            create_if_missing=settings.ALERT_CONFIG_CREATE_IF_MISSING,
        )
    if backend == "file":
        return FileConfigProvider(
            settings.ALERT_CONFIG_PATH,
            create_if_missing=settings.ALERT_CONFIG_CREATE_IF_MISSING,
        )
    raise ValueError(f"Unknown ALERT_CONFIG_BACKEND: {settings.ALERT_CONFIG_BACKEND}")
