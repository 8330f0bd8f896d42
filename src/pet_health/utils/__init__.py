"""
Utility functions and helper modules.

This module provides common utility functions for datetime handling,
validation, and configuration management.
"""

from .config import (
    ConfigError,
    DatabaseURLValidator,
    EnvironmentConfig,
    LoggingConfigurator,
    LogLevel,
    PetHealthSettings,
)
from .datetime_utils import (
    calculate_pet_age,
    days_between,
    format_pet_age,
    local_now,
    parse_flexible_date,
    start_of_day,
    to_local_naive,
)
from .validation import (
    ValidationError,
    ValidationResult,
    clean_payload,
    coerce_decimal,
    enum_value,
    field_value,
    sanitize_string,
    validate_weight,
)

__all__ = [
    # DateTime utilities
    "local_now",
    "to_local_naive",
    "start_of_day",
    "parse_flexible_date",
    "calculate_pet_age",
    "format_pet_age",
    "days_between",
    # Validation helpers
    "ValidationError",
    "ValidationResult",
    "sanitize_string",
    "validate_weight",
    "coerce_decimal",
    "clean_payload",
    "field_value",
    "enum_value",
    # Configuration utilities
    "ConfigError",
    "LogLevel",
    "EnvironmentConfig",
    "DatabaseURLValidator",
    "LoggingConfigurator",
    "PetHealthSettings",
]
