"""
Core exceptions for the pet-health package.

Every store, session and view failure surfaces as a subclass of
:class:`PetHealthException`, so callers can catch one root type and still
branch on ``error_code``.
"""

import logging
import time
from typing import Any, Dict, List, Optional


class PetHealthException(Exception):
    """
    Base exception class for all pet-health package exceptions.

    Carries a human-readable message, a machine-readable ``error_code`` and
    a free-form ``details`` mapping.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the exception for logs and callers."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": time.time(),
        }

    def log_error(
        self, logger: Optional[logging.Logger] = None, level: int = logging.ERROR
    ) -> None:
        """
        Log the exception with its code and details attached.

        Args:
            logger: Logger instance to use (module logger if None)
            level: Logging level to use
        """
        if logger is None:
            logger = logging.getLogger(__name__)

        logger.log(
            level,
            f"{self.error_code}: {self.message}",
            extra={"exception_data": self.to_dict()},
        )

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class NotAuthenticatedException(PetHealthException):
    """Raised when an operation needs an owner session and none exists."""

    def __init__(self, message: str = "No authenticated owner session"):
        super().__init__(message=message, error_code="NOT_AUTHENTICATED")


class RecordNotFoundException(PetHealthException):
    """Raised when a record is missing or belongs to another owner."""

    def __init__(
        self,
        message: str = "Record not found",
        record_type: Optional[str] = None,
        record_id: Optional[Any] = None,
    ):
        details: Dict[str, Any] = {}
        if record_type:
            details["record_type"] = record_type
        if record_id is not None:
            details["record_id"] = str(record_id)

        super().__init__(message=message, error_code="RECORD_NOT_FOUND", details=details)


class DatabaseException(PetHealthException):
    """
    Raised when the database cannot serve a read.

    The driver error is kept on ``original_error`` and its text is copied
    into ``details``.
    """

    def __init__(
        self,
        message: str = "Database operation failed",
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, error_code or "DATABASE_ERROR", details)
        self.original_error = original_error
        if original_error is not None:
            self.details.setdefault("original_error", str(original_error))


class TransactionException(DatabaseException):
    """Raised when a database write or transaction fails."""

    def __init__(
        self,
        message: str = "Database transaction failed",
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {"operation": operation} if operation else {}
        super().__init__(
            message,
            error_code="DATABASE_TRANSACTION_ERROR",
            details=details,
            original_error=original_error,
        )


class ValidationException(PetHealthException):
    """Base class for rejected input: bad payloads and broken business rules."""


class SchemaValidationException(ValidationException):
    """Raised when a payload does not satisfy its Pydantic schema."""

    def __init__(
        self,
        message: str = "Schema validation failed",
        schema_name: Optional[str] = None,
        validation_errors: Optional[Dict[str, List[str]]] = None,
    ):
        details: Dict[str, Any] = {}
        if schema_name:
            details["schema_name"] = schema_name
        if validation_errors:
            details["validation_errors"] = validation_errors

        super().__init__(message, error_code="SCHEMA_VALIDATION_ERROR", details=details)


class BusinessRuleException(ValidationException):
    """Raised when a valid payload would break a rule such as course progress bounds."""

    def __init__(
        self,
        message: str = "Business rule validation failed",
        rule_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        details: Dict[str, Any] = {}
        if rule_name:
            details["rule_name"] = rule_name
        if context:
            details["context"] = context

        super().__init__(message, error_code="BUSINESS_RULE_ERROR", details=details)


class ConfigurationException(PetHealthException):
    """Base class for unusable settings."""

    def __init__(
        self,
        message: str = "Configuration error",
        config_key: Optional[str] = None,
        error_code: str = "CONFIGURATION_ERROR",
    ):
        details = {"config_key": config_key} if config_key else {}
        super().__init__(message, error_code=error_code, details=details)


class DatabaseConfigException(ConfigurationException):
    """Raised when the database URL cannot be parsed."""

    def __init__(
        self,
        message: str = "Database configuration error",
        config_key: Optional[str] = None,
    ):
        super().__init__(message, config_key, error_code="DATABASE_CONFIG_ERROR")


def format_validation_errors(errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Group Pydantic validation errors by dotted field path.

    Args:
        errors: Output of ``ValidationError.errors()``

    Returns:
        Dictionary mapping field names to lists of error messages
    """
    formatted_errors: Dict[str, List[str]] = {}

    for error in errors:
        field_path = ".".join(str(loc) for loc in error.get("loc", [])) or "root"
        message = error.get("msg", "Validation error")
        error_type = error.get("type", "unknown")

        if error_type == "value_error":
            formatted_message = message
        elif error_type == "missing":
            formatted_message = "This field is required"
        else:
            formatted_message = f"{message} (type: {error_type})"

        formatted_errors.setdefault(field_path, []).append(formatted_message)

    return formatted_errors
