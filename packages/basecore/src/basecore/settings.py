"""
Process settings for basecore consumers.

Values come from environment variables (or a local .env file).
"""

import functools

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings shared by the alerts worker and CLI."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # === Database ===
    DATABASE_URL: str = "sqlite:///./pharmacy.db"

    # === Redis ===
    REDIS_URL: str = "redis://localhost:6379/0"

    # === Logging ===
    LOG_LEVEL: str = "INFO"

    # === Alert configuration document ===
    ALERT_CONFIG_BACKEND: str = "file"  # file, redis
    ALERT_CONFIG_PATH: str = "config/alertSettings.json"
    ALERT_CONFIG_REDIS_KEY: str = "settings:alerts"
    ALERT_CONFIG_CREATE_IF_MISSING: bool = True


@functools.lru_cache()
def get_settings() -> Settings:
    """Get settings (cached)."""
    return Settings()
