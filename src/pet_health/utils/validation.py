"""
Validation and data processing utilities for pet health records.

This module provides data sanitization functions, numeric coercion used by
the analytics aggregator, and payload cleaning applied before store writes.
"""

import enum
import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Generic, List, Mapping, Optional, TypeVar, Union

# Type variable for generic validation functions
T = TypeVar("T")


class ValidationError(Exception):
    """Custom validation error with structured error information."""

    def __init__(
        self, message: str, field: Optional[str] = None, code: Optional[str] = None
    ):
        self.message = message
        self.field = field
        self.code = code
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary format."""
        return {"message": self.message, "field": self.field, "code": self.code}


class ValidationResult(Generic[T]):
    """Result of a validation operation."""

    def __init__(
        self, value: Optional[T] = None, errors: Optional[List[ValidationError]] = None
    ):
        self.value = value
        self.errors = errors or []
        self.is_valid = len(self.errors) == 0

    def add_error(self, error: ValidationError) -> None:
        """Add an error to the result."""
        self.errors.append(error)
        self.is_valid = False


def sanitize_string(value: str, max_length: Optional[int] = None) -> str:
    """
    Sanitize a string by normalizing unicode and trimming whitespace.

    Args:
        value: The string to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    normalized = unicodedata.normalize("NFKC", value)

    # Strip whitespace and collapse multiple spaces
    sanitized = re.sub(r"\s+", " ", normalized.strip())

    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length].rstrip()

    return sanitized


def validate_weight(weight: Union[str, float, Decimal]) -> ValidationResult[Decimal]:
    """
    Validate a pet's weight in kilograms.

    Args:
        weight: The weight value

    Returns:
        ValidationResult with the weight as Decimal or errors
    """
    result = ValidationResult[Decimal]()

    try:
        weight_decimal = Decimal(str(weight))
    except (InvalidOperation, ValueError):
        result.add_error(
            ValidationError("Weight must be a valid number", "weight", "invalid_number")
        )
        return result

    if not weight_decimal.is_finite():
        result.add_error(
            ValidationError("Weight must be a valid number", "weight", "invalid_number")
        )
        return result

    min_weight, max_weight = Decimal("0.01"), Decimal("227")

    if weight_decimal < min_weight:
        result.add_error(
            ValidationError(
                f"Weight must be at least {min_weight} kg", "weight", "too_low"
            )
        )
        return result

    if weight_decimal > max_weight:
        result.add_error(
            ValidationError(
                f"Weight cannot exceed {max_weight} kg", "weight", "too_high"
            )
        )
        return result

    result.value = weight_decimal
    return result


def coerce_decimal(value: Any) -> Decimal:
    """
    Coerce a loosely typed numeric value to Decimal.

    Missing values, booleans, unparseable strings, NaN and infinities all
    become ``Decimal("0")``. This never raises.

    Args:
        value: A number, numeric string, Decimal or None

    Returns:
        The finite Decimal value, or zero
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")

    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")

    if not result.is_finite():
        return Decimal("0")
    return result


def clean_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Drop ``None`` and empty-string values from a write payload.

    Args:
        data: Field values about to be written to the store

    Returns:
        A new dictionary with only the meaningful values
    """
    return {
        key: value
        for key, value in data.items()
        if value is not None and not (isinstance(value, str) and value == "")
    }


def field_value(record: Any, name: str, default: Any = None) -> Any:
    """
    Read a field from an ORM object or from a plain mapping row.

    Args:
        record: Model instance, dict-like row or any attribute holder
        name: Field name
        default: Value returned when the field is absent

    Returns:
        The field value, or ``default``
    """
    if record is None:
        return default
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def enum_value(value: Any) -> Any:
    """Unwrap enum members to their raw value; other values pass through."""
    if isinstance(value, enum.Enum):
        return value.value
    return value
