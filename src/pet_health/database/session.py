"""
Database session management utilities for the pet-health package.

This module provides the async session factory plus read and transaction
wrappers that turn driver errors into package exceptions.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Optional

from sqlalchemy import MetaData, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..exceptions import (
    ConfigurationException,
    DatabaseException,
    TransactionException,
)
from ..utils.config import PetHealthSettings
from .connection import create_engine

logger = logging.getLogger(__name__)


class SessionManager:
    """Manages database sessions and provides transaction utilities."""

    def __init__(
        self, engine: AsyncEngine, session_config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize session manager with database engine.

        Args:
            engine: SQLAlchemy async engine
            session_config: Optional session configuration overrides
        """
        self.engine = engine
        self._is_initialized = False

        config = {
            "expire_on_commit": False,
            "autoflush": True,
        }
        if session_config:
            config.update(session_config)

        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            autoflush=config["autoflush"],
            expire_on_commit=config["expire_on_commit"],
        )

    @classmethod
    def from_settings(
        cls, settings: PetHealthSettings, **engine_options: Any
    ) -> "SessionManager":
        """
        Build a session manager on an engine for ``settings.database_url``.

        Raises:
            ConfigurationException: If no database URL is configured
            DatabaseConfigException: If the URL is not usable
        """
        if not settings.database_url:
            raise ConfigurationException(
                "No database URL configured", config_key="database_url"
            )
        return cls(create_engine(settings.database_url, **engine_options))

    async def create_session(self) -> AsyncSession:
        """
        Create a new database session.

        Returns:
            New async database session
        """
        return self.session_factory()

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database sessions with automatic cleanup.

        Yields:
            Database session

        Example:
            async with session_manager.get_session() as session:
                result = await session.execute(select(Pet))
        """
        session = await self.create_session()
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error(f"Session error, rolling back: {e}")
            raise
        finally:
            await session.close()

    @asynccontextmanager
    async def get_transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for database transactions with automatic commit/rollback.

        Yields:
            Database session within a transaction

        Example:
            async with session_manager.get_transaction() as session:
                session.add(Pet(owner_id=owner_id, name="Rex", species="dog"))
                # Transaction is automatically committed on success
        """
        async with self.get_session() as session:
            async with session.begin():
                yield session

    async def execute_in_transaction(
        self, operation: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any
    ) -> Any:
        """
        Execute an operation within a transaction.

        Args:
            operation: Async function taking the session as first argument
            *args: Arguments to pass to the operation
            **kwargs: Keyword arguments to pass to the operation

        Returns:
            Result of the operation

        Raises:
            TransactionException: If the database rejects the transaction
        """
        operation_name = getattr(operation, "__name__", str(operation))
        try:
            async with self.get_transaction() as session:
                return await operation(session, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.error(f"Database operation '{operation_name}' failed: {e}")
            raise TransactionException(
                "Database transaction failed",
                operation=operation_name,
                original_error=e,
            )

    async def execute_read(
        self,
        operation: Callable[[AsyncSession], Awaitable[Any]],
        operation_name: Optional[str] = None,
    ) -> Any:
        """
        Run a read-only operation in a plain session.

        Package exceptions raised by the operation, such as a missing record,
        pass through unchanged.

        Args:
            operation: Async function taking the session
            operation_name: Label used in the error details

        Returns:
            Result of the operation

        Raises:
            DatabaseException: If the database cannot serve the read
        """
        operation_name = operation_name or getattr(operation, "__name__", str(operation))
        try:
            async with self.get_session() as session:
                return await operation(session)
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Failed to load {operation_name}",
                details={"operation": operation_name},
                original_error=e,
            )

    async def health_check(self) -> Dict[str, Any]:
        """
        Health check for database sessions and connections.

        Returns:
            Dictionary with health check results
        """
        health_status: Dict[str, Any] = {
            "status": "healthy",
            "timestamp": time.time(),
            "checks": {},
        }

        try:
            start_time = time.time()
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
            health_status["checks"]["basic_query"] = {
                "status": "pass",
                "response_time": round((time.time() - start_time) * 1000, 2),  # ms
            }

            start_time = time.time()
            async with self.get_transaction() as session:
                await session.execute(text("SELECT 1"))
            health_status["checks"]["transaction"] = {
                "status": "pass",
                "response_time": round((time.time() - start_time) * 1000, 2),  # ms
            }

        except SQLAlchemyError as e:
            health_status["status"] = "unhealthy"
            health_status["checks"]["database"] = {
                "status": "fail",
                "error": str(e),
                "error_type": type(e).__name__,
            }
            logger.error(f"Database error during health check: {e}")

        return health_status

    async def initialize_database(self, metadata: Optional[MetaData] = None) -> bool:
        """
        Initialize database schema.

        Args:
            metadata: SQLAlchemy metadata object containing table definitions

        Returns:
            True if initialization successful, False otherwise
        """
        logger.info("Starting database initialization...")

        health = await self.health_check()
        if health["status"] != "healthy":
            logger.error("Database health check failed during initialization")
            return False

        if metadata is not None:
            try:
                async with self.engine.begin() as conn:
                    await conn.run_sync(metadata.create_all)
            except SQLAlchemyError as e:
                logger.error(f"Database initialization failed: {e}")
                return False
            logger.info("Database tables created successfully")

        self._is_initialized = True
        return True

    async def close_all_sessions(self) -> None:
        """Close all active sessions and dispose of the engine."""
        await self.engine.dispose()
        self._is_initialized = False
        logger.info("All database sessions and connections closed")

    @property
    def is_initialized(self) -> bool:
        """Check if the database has been initialized."""
        return self._is_initialized
