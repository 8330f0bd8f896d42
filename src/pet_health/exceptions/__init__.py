"""
Custom exceptions for the pet-health package.
"""

from .core_exceptions import (
    BusinessRuleException,
    ConfigurationException,
    DatabaseConfigException,
    DatabaseException,
    NotAuthenticatedException,
    PetHealthException,
    RecordNotFoundException,
    SchemaValidationException,
    TransactionException,
    ValidationException,
    format_validation_errors,
)

__all__ = [
    "PetHealthException",
    "NotAuthenticatedException",
    "RecordNotFoundException",
    "DatabaseException",
    "TransactionException",
    "ValidationException",
    "SchemaValidationException",
    "BusinessRuleException",
    "ConfigurationException",
    "DatabaseConfigException",
    "format_validation_errors",
]
