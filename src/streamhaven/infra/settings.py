"""
Application settings for StreamHaven.

Everything is read once from the environment and an optional ``.env`` file.
Algorithms never read these directly: the grouping, denormalization and EPG
code take explicit config objects built from them.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """StreamHaven configuration."""

    # Content store
    database_url: str = Field(default="sqlite:///streamhaven.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    echo_sql: bool = Field(default=False, alias="ECHO_SQL")
    # Pool sizing applies to server databases only
    pool_size: int = Field(default=5, ge=1, alias="DB_POOL_SIZE")
    max_overflow: int = Field(default=10, ge=0, alias="DB_MAX_OVERFLOW")
    pool_timeout: int = Field(default=30, ge=1, alias="DB_POOL_TIMEOUT")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    # Provider downloads
    http_timeout: float = Field(default=30.0, gt=0, alias="HTTP_TIMEOUT")
    http_retries: int = Field(default=3, ge=0, alias="HTTP_RETRIES")

    # Reconciliation
    epg_retention_hours: int = Field(default=24, ge=1, alias="EPG_RETENTION_HOURS")
    watched_threshold: float = Field(default=0.9, gt=0, le=1, alias="WATCHED_THRESHOLD")
    xtream_isolate_categories: bool = Field(default=True, alias="XTREAM_ISOLATE_CATEGORIES")
    ingest_max_workers: int = Field(default=4, ge=1, alias="INGEST_MAX_WORKERS")
    rank_groups_by_quality: bool = Field(default=False, alias="RANK_GROUPS_BY_QUALITY")

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return value


def _find_env_file() -> str | None:
    """STREAMHAVEN_ENV_FILE, else ./.env, else the nearest .env above the package."""
    explicit = os.getenv("STREAMHAVEN_ENV_FILE")
    if explicit and Path(explicit).is_file():
        return explicit

    candidates = [Path.cwd() / ".env"]
    candidates += [parent / ".env" for parent in Path(__file__).resolve().parents]
    for candidate in candidates:
        if candidate.is_file():
            return str(candidate)
    return None


_env_file = _find_env_file()
settings = Settings(_env_file=_env_file) if _env_file else Settings()  # type: ignore[call-arg]
