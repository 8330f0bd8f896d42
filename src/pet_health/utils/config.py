"""
Configuration management utilities.

This module provides environment variable handling with type conversion,
database URL validation, logging setup and the settings object consumed by
the database layer and the notification and history loaders.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union
from urllib.parse import parse_qs, urlparse

ENV_PREFIX = "PET_HEALTH_"


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""

    pass


class LogLevel(Enum):
    """Enumeration for log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentConfig:
    """Utility class for handling environment variables with type conversion."""

    @staticmethod
    def get_str(
        key: str, default: Optional[str] = None, required: bool = False
    ) -> Optional[str]:
        """
        Get a string environment variable.

        Args:
            key: Environment variable key
            default: Default value if not found
            required: Whether the variable is required

        Returns:
            String value or default

        Raises:
            ConfigError: If required variable is missing
        """
        value = os.getenv(key, default)

        if required and value is None:
            raise ConfigError(f"Required environment variable '{key}' is not set")

        return value

    @staticmethod
    def get_int(
        key: str, default: Optional[int] = None, required: bool = False
    ) -> Optional[int]:
        """
        Get an integer environment variable.

        Raises:
            ConfigError: If required variable is missing or invalid
        """
        value = os.getenv(key)

        if value is None:
            if required:
                raise ConfigError(f"Required environment variable '{key}' is not set")
            return default

        try:
            return int(value)
        except ValueError:
            raise ConfigError(
                f"Environment variable '{key}' must be an integer, got: {value}"
            )


class DatabaseURLValidator:
    """Utility class for validating database URLs."""

    SUPPORTED_DRIVERS = {
        "postgresql": ["postgresql", "postgresql+asyncpg"],
        "sqlite": ["sqlite", "sqlite+aiosqlite"],
    }

    @classmethod
    def validate_url(cls, url: str) -> Dict[str, Any]:
        """
        Validate a database URL and return parsed components.

        Args:
            url: Database URL to validate

        Returns:
            Dictionary with validation results and parsed components

        Raises:
            ConfigError: If URL is invalid
        """
        if not url:
            raise ConfigError("Database URL cannot be empty")

        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise ConfigError(f"Invalid URL format: {e}")

        if not parsed.scheme:
            raise ConfigError(
                "Database URL must include a scheme (e.g., postgresql+asyncpg://)"
            )

        supported = [
            driver for drivers in cls.SUPPORTED_DRIVERS.values() for driver in drivers
        ]
        if parsed.scheme not in supported:
            raise ConfigError(
                f"Unsupported database driver '{parsed.scheme}'. Supported: {', '.join(supported)}"
            )

        is_sqlite = parsed.scheme.startswith("sqlite")

        if not is_sqlite and not parsed.hostname:
            raise ConfigError("Database URL must include a hostname")

        if not is_sqlite and not parsed.path.lstrip("/"):
            raise ConfigError("Database URL must include a database name")

        return {
            "valid": True,
            "scheme": parsed.scheme,
            "hostname": parsed.hostname,
            "port": parsed.port,
            "database": parsed.path.lstrip("/") if parsed.path else "",
            "username": parsed.username,
            "password": parsed.password,
            "query": dict(parse_qs(parsed.query)),
        }


class LoggingConfigurator:
    """Utility class for configuring logging."""

    DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @staticmethod
    def configure_basic_logging(
        level: Union[str, LogLevel] = LogLevel.INFO,
        format_string: Optional[str] = None,
        log_file: Optional[str] = None,
    ) -> None:
        """
        Configure basic logging for the application.

        Args:
            level: Logging level
            format_string: Custom format string
            log_file: Optional log file path
        """
        if isinstance(level, LogLevel):
            level = level.value

        basic_config_args: Dict[str, Any] = {
            "level": level,
            "format": format_string or LoggingConfigurator.DEFAULT_FORMAT,
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }

        if log_file:
            basic_config_args["filename"] = log_file
            basic_config_args["filemode"] = "a"

        logging.basicConfig(**basic_config_args)


@dataclass(frozen=True)
class PetHealthSettings:
    """Runtime settings for the pet health core."""

    database_url: Optional[str] = None
    notification_window_days: int = 30
    notification_limit: int = 10
    recent_history_limit: int = 5
    log_level: LogLevel = LogLevel.INFO

    def __post_init__(self) -> None:
        if self.notification_window_days < 0:
            raise ConfigError("Notification window cannot be negative")
        if self.notification_limit < 1:
            raise ConfigError("Notification limit must be at least 1")
        if self.recent_history_limit < 0:
            raise ConfigError("Recent history limit cannot be negative")
        if self.database_url:
            DatabaseURLValidator.validate_url(self.database_url)

    @classmethod
    def from_environment(cls, prefix: str = ENV_PREFIX) -> "PetHealthSettings":
        """
        Build settings from ``PET_HEALTH_*`` environment variables.

        Raises:
            ConfigError: If a variable is present but malformed
        """
        raw_level = EnvironmentConfig.get_str(f"{prefix}LOG_LEVEL", "INFO") or "INFO"
        try:
            log_level = LogLevel(raw_level.upper())
        except ValueError:
            raise ConfigError(f"Unknown log level '{raw_level}'")

        return cls(
            database_url=EnvironmentConfig.get_str(f"{prefix}DATABASE_URL"),
            notification_window_days=EnvironmentConfig.get_int(
                f"{prefix}NOTIFICATION_WINDOW_DAYS", 30
            ),
            notification_limit=EnvironmentConfig.get_int(
                f"{prefix}NOTIFICATION_LIMIT", 10
            ),
            recent_history_limit=EnvironmentConfig.get_int(
                f"{prefix}RECENT_HISTORY_LIMIT", 5
            ),
            log_level=log_level,
        )

    def configure_logging(self, log_file: Optional[str] = None) -> None:
        """Apply ``log_level`` through :class:`LoggingConfigurator`."""
        LoggingConfigurator.configure_basic_logging(self.log_level, log_file=log_file)
