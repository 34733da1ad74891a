"""
Configuration management using pydantic-settings.

Loads cache configuration from environment variables and .env files.
The engine never reads settings on its own; callers build a Settings
instance (directly or via get_settings()) and pass it in.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TTL_SECONDS = 300
DEFAULT_SWEEP_INTERVAL_SECONDS = 5.0


class Settings(BaseSettings):
    """Cache settings loaded from environment variables.

    Optional:
        CACHE_DISABLED: Bypass all storage and sweeping
        CACHE_SWEEP_INTERVAL_SECONDS: Period between expiry sweeps
        CACHE_DEFAULT_TTL_SECONDS: TTL used when put() gets none
        CACHE_DB_PATH: SQLite database file
        CACHE_BUSY_TIMEOUT_SECONDS: How long a connection waits on a locked database
        LOG_LEVEL: Logging level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    CACHE_DISABLED: bool = Field(
        default=False, description="Disable the cache (all operations become no-ops)"
    )
    CACHE_SWEEP_INTERVAL_SECONDS: float = Field(
        default=DEFAULT_SWEEP_INTERVAL_SECONDS,
        gt=0.0,
        description="Seconds between background expiry sweeps",
    )
    CACHE_DEFAULT_TTL_SECONDS: int = Field(
        default=DEFAULT_TTL_SECONDS,
        description="TTL applied when put() is called without one",
    )
    CACHE_DB_PATH: Path = Field(
        default=Path(".cache") / "mcache.db", description="SQLite database file"
    )
    CACHE_BUSY_TIMEOUT_SECONDS: float = Field(
        default=5.0, ge=0.0, description="SQLite busy timeout in seconds"
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    @property
    def disabled(self) -> bool:
        """Whether the cache is disabled (lowercase alias)."""
        return self.CACHE_DISABLED

    @property
    def sweep_interval_seconds(self) -> float:
        """Get sweep interval (lowercase alias)."""
        return self.CACHE_SWEEP_INTERVAL_SECONDS

    @property
    def default_ttl_seconds(self) -> int:
        """Get default TTL (lowercase alias)."""
        return self.CACHE_DEFAULT_TTL_SECONDS

    @property
    def db_path(self) -> Path:
        """Get database path (lowercase alias)."""
        return self.CACHE_DB_PATH

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    def redacted_display(self) -> dict[str, str | int | float | bool]:
        """Return settings as plain values for display."""
        return {
            "CACHE_DISABLED": self.CACHE_DISABLED,
            "CACHE_SWEEP_INTERVAL_SECONDS": self.CACHE_SWEEP_INTERVAL_SECONDS,
            "CACHE_DEFAULT_TTL_SECONDS": self.CACHE_DEFAULT_TTL_SECONDS,
            "CACHE_DB_PATH": str(self.CACHE_DB_PATH),
            "CACHE_BUSY_TIMEOUT_SECONDS": self.CACHE_BUSY_TIMEOUT_SECONDS,
            "LOG_LEVEL": self.LOG_LEVEL,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings loaded from the environment.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
