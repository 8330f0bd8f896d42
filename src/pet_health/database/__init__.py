"""
Database connection and session management utilities.

This module provides async SQLAlchemy engine configuration and session
management for the pet health store.
"""

from .connection import DatabaseConfig, create_engine
from .session import SessionManager

__all__ = [
    "DatabaseConfig",
    "create_engine",
    "SessionManager",
]
