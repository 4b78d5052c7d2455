"""
Application configuration module using Pydantic Settings.

This module provides centralized configuration for the notification store,
including the document database connection, retention bound, default room
and expiry timers.
"""

from typing import Literal

import pytz
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with validation.

    Settings are loaded from CAMNOTIFY_* environment variables with fallback
    to a .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="CAMNOTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment",
    )
    debug: bool = Field(
        default=False,
        description="Debug mode flag",
    )

    # Document store
    database_url: str = Field(
        default="sqlite+aiosqlite:///./camnotify.db",
        description="SQLAlchemy async connection string for the document store",
    )
    db_echo: bool = Field(
        default=False,
        description="Echo SQL statements to logs (useful for debugging)",
    )

    # Notifications
    notifications_limit: int = Field(
        default=100,
        ge=1,
        description="Maximum number of notifications kept in the collection",
    )
    default_room: str = Field(
        default="Standard",
        min_length=1,
        description="Room assigned to cameras without a per-camera setting",
    )
    timezone: str = Field(
        default="UTC",
        description="IANA timezone used to render notification times",
    )
    notification_remove_after_hours: int = Field(
        default=24,
        ge=0,
        description="Hours after which a notification expires (0 disables expiry)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON instead of console output",
    )

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate timezone is a valid IANA timezone string."""
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError as e:
            raise ValueError(f"Invalid timezone: {v}") from e
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


# Global settings instance
settings = Settings()
