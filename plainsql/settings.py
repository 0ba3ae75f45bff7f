"""Connection settings for plainsql.

Values come from the environment (prefix ``PLAINSQL_``) or a ``.env`` file:

    PLAINSQL_HOST=db.internal
    PLAINSQL_USERNAME=app
    PLAINSQL_PASSWORD=secret
    PLAINSQL_DATABASE=shop
"""

import logging
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """MySQL connection and logging configuration."""

    # =========================================================================
    # CONNECTION
    # =========================================================================
    host: str = "localhost"
    port: int = Field(default=3306, ge=1, le=65535)
    username: str = "root"
    password: SecretStr = SecretStr("")
    database: str = ""
    charset: str = "utf8mb4"

    # =========================================================================
    # LOGGING
    # =========================================================================
    log_level: str = "INFO"
    log_json: bool = True
    # Resolved queries contain interpolated values; off unless debugging
    log_resolved_queries: bool = False

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Accept only standard logging level names."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log level: {v}")
        return level

    model_config = SettingsConfigDict(
        env_prefix="PLAINSQL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # =========================================================================
    # HELPER METHODS
    # =========================================================================
    def configure_logging(self) -> None:
        """Apply log_level and log_json to the process-wide logging setup."""
        from plainsql.logging import configure_logging
        configure_logging(self.log_level, json_output=self.log_json)


# =============================================================================
# GLOBAL SETTINGS (Lazy Initialization)
# =============================================================================

_settings: Optional[DatabaseSettings] = None


def get_settings() -> DatabaseSettings:
    """Get global settings instance.

    Creates a new DatabaseSettings instance lazily if none exists.
    Prefer passing settings explicitly over this global getter.
    """
    global _settings
    if _settings is None:
        _settings = DatabaseSettings()
    return _settings


def set_settings(settings_instance: DatabaseSettings) -> None:
    """Set the global settings instance. Primarily for testing."""
    global _settings
    _settings = settings_instance


def reset_settings() -> None:
    """Reset the global settings instance.

    Forces re-creation on next get_settings() call.
    """
    global _settings
    _settings = None


__all__ = [
    "DatabaseSettings",
    "get_settings",
    "set_settings",
    "reset_settings",
]
