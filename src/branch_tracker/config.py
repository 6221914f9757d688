"""Configuration management for the branch tracker."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrackerSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    directory: Path = Field(default_factory=Path.cwd, validation_alias="BRANCH_TRACKER_DIRECTORY")
    log_level: str = Field(default="INFO", validation_alias="BRANCH_TRACKER_LOG_LEVEL")
    watch_enabled: bool = Field(default=True, validation_alias="BRANCH_TRACKER_WATCH")
    ordered_updates: bool = Field(default=False, validation_alias="BRANCH_TRACKER_ORDERED_UPDATES")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "BRANCH_TRACKER_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("directory", mode="before")
    @classmethod
    def _default_blank_directory(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return Path.cwd()
        return value


@lru_cache(maxsize=1)
def get_settings() -> TrackerSettings:
    """Return cached settings instance."""

    settings = TrackerSettings()
    settings.directory = settings.directory.expanduser().resolve()
    return settings


__all__ = ["TrackerSettings", "get_settings"]
