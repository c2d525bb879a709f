"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
Validates fields and provides typed access to settings. The stores never
read settings themselves; create_cache() hands them explicit values.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Cache settings loaded from environment variables.

    Optional:
        CACHE_BACKEND: Store to build, "file" (durable) or "memory" (transient)
        CACHE_DIR: Root directory of the file store
        CACHE_DIR_MODE: Permission bits used when creating CACHE_DIR
        CACHE_CODEC: Serializer for file entries, "pickle" or "json"
        LOG_LEVEL: Logging level
        LOG_FILE: JSON-lines log file
        LOG_CONSOLE: Whether to log to the console
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    CACHE_BACKEND: Literal["file", "memory"] = Field(
        default="file", description="Cache backend to construct"
    )
    CACHE_DIR: Path = Field(default=Path(".cache"), description="Cache directory")
    CACHE_DIR_MODE: int = Field(
        default=0o755, description="Permission bits for a newly created cache directory"
    )
    CACHE_CODEC: Literal["pickle", "json"] = Field(
        default="pickle", description="Serializer for file cache entries"
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    LOG_FILE: Path | None = Field(default=None, description="JSON-lines log file")
    LOG_CONSOLE: bool = Field(default=True, description="Enable console logging")

    @field_validator("CACHE_DIR_MODE", mode="before")
    @classmethod
    def parse_octal_dir_mode(cls, v: object) -> object:
        """Read string modes from the environment as octal ("755", "0o700")."""
        if isinstance(v, str):
            return int(v.strip(), 8)
        return v

    @field_validator("CACHE_DIR_MODE")
    @classmethod
    def validate_dir_mode(cls, v: int) -> int:
        """Validate that CACHE_DIR_MODE only carries permission bits."""
        if not 0 <= v <= 0o777:
            raise ValueError("CACHE_DIR_MODE must be between 0 and 0o777")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
