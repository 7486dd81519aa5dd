"""Configuration management for Portguard."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PortguardSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    state_path: Path | None = Field(default=None, validation_alias="PORTGUARD_STATE_PATH")
    log_level: str = Field(default="INFO", validation_alias="PORTGUARD_LOG_LEVEL")
    auto_resume: bool = Field(default=True, validation_alias="PORTGUARD_AUTO_RESUME")
    kill_timeout: float = Field(default=5.0, validation_alias="PORTGUARD_KILL_TIMEOUT")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "PORTGUARD_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("state_path", mode="before")
    @classmethod
    def _parse_state_path(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return value

    @field_validator("kill_timeout")
    @classmethod
    def _validate_kill_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("PORTGUARD_KILL_TIMEOUT must be > 0")
        return value


@lru_cache(maxsize=1)
def get_settings() -> PortguardSettings:
    """Return cached settings instance."""

    settings = PortguardSettings()
    if settings.state_path is not None:
        settings.state_path = settings.state_path.expanduser().resolve()
    return settings


__all__ = ["PortguardSettings", "get_settings"]
