"""Configuration management for the RPG bot.

This module provides centralized configuration management using pydantic-settings,
supporting environment variables, .env files, and runtime configuration overrides.

Example:
    >>> from rpg_bot.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.sessions.idle_timeout_seconds
    900.0

Environment Variables:
    RPG_BOT_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    RPG_BOT_GAME_STARTING_GOLD: Gold granted to new characters
    RPG_BOT_SESSION_IDLE_TIMEOUT_SECONDS: Idle time before a wizard is evicted
    RPG_BOT_STORAGE_DATABASE_PATH: Path to the SQLite database file
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rpg_bot.core.constants import STARTING_GOLD
from rpg_bot.core.exceptions import ConfigurationError


class GameSettings(BaseSettings):
    """Configuration for rules engine behavior.

    Attributes:
        starting_gold: Gold granted to a character at creation.
        enforce_class_item_types: Restrict equippable item types per class.
        grant_starting_kit: Give each new character its class starting kit.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_BOT_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    starting_gold: int = Field(
        default=STARTING_GOLD,
        ge=0,
        description="Gold granted to new characters",
    )
    enforce_class_item_types: bool = Field(
        default=False,
        description="Only allow item types the class is trained with",
    )
    grant_starting_kit: bool = Field(
        default=True,
        description="Grant the class starting kit at creation",
    )


class SessionSettings(BaseSettings):
    """Configuration for character creation sessions.

    Attributes:
        idle_timeout_seconds: Idle time after which a session is evicted.
        sweep_interval_seconds: Period of the background eviction sweep.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_BOT_SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    idle_timeout_seconds: float = Field(
        default=900.0,
        gt=0,
        description="Idle time before a wizard session is evicted",
    )
    sweep_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Interval between idle-session sweeps",
    )

    @model_validator(mode="after")
    def validate_sweep_interval(self) -> "SessionSettings":
        """Ensure the sweep runs at least once per timeout window.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If sweep_interval_seconds > idle_timeout_seconds.
        """
        if self.sweep_interval_seconds > self.idle_timeout_seconds:
            raise ConfigurationError(
                f"sweep_interval_seconds ({self.sweep_interval_seconds}) must not exceed "
                f"idle_timeout_seconds ({self.idle_timeout_seconds})",
                config_key="sweep_interval_seconds",
            )
        return self


class StorageSettings(BaseSettings):
    """Configuration for character storage.

    Attributes:
        database_path: Path to the SQLite database file.
        busy_retries: Attempts made when the database is locked.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_BOT_STORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_path: Path = Field(
        default=Path("data/rpg_bot.db"),
        description="Path to SQLite database",
    )
    busy_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts when the database is locked",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Application logging level.
        json_logs: Emit JSON logs instead of console output.
        game: Rules engine settings.
        sessions: Creation session settings.
        storage: Character storage settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="RPG_BOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="RPG Bot",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_logs: bool = Field(
        default=False,
        description="Emit JSON formatted logs",
    )

    game: GameSettings = Field(default_factory=GameSettings)
    sessions: SessionSettings = Field(default_factory=SessionSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode.

        Returns:
            True if not in debug mode.
        """
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    This is primarily useful for testing or when environment variables
    have changed at runtime.
    """
    get_settings.cache_clear()


__all__ = [
    "GameSettings",
    "SessionSettings",
    "StorageSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
