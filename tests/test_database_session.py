"""
Tests for database session management utilities.
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, Mock, patch

import pytest
from sqlalchemy import select, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from pet_health.database.session import SessionManager
from pet_health.exceptions import (
    ConfigurationException,
    DatabaseException,
    RecordNotFoundException,
    TransactionException,
)
from pet_health.models import Base, Pet
from pet_health.utils.config import PetHealthSettings

from .conftest import PetFactory


class TestSessionManager:
    """Test cases for SessionManager class."""

    def test_session_manager_initialization(self):
        """Test SessionManager initialization."""
        mock_engine = Mock()
        manager = SessionManager(mock_engine)

        assert manager.engine == mock_engine
        assert manager.session_factory is not None
        assert not manager.is_initialized

    def test_session_config_overrides(self):
        manager = SessionManager(Mock(), session_config={"expire_on_commit": True})

        assert manager.session_factory.kw["expire_on_commit"] is True
        assert manager.session_factory.kw["autoflush"] is True

    @pytest.mark.asyncio
    async def test_create_session(self):
        """Test session creation."""
        mock_engine = Mock()
        manager = SessionManager(mock_engine)

        with patch.object(manager, "session_factory") as mock_factory:
            mock_session = AsyncMock()
            mock_factory.return_value = mock_session

            session = await manager.create_session()

            assert session == mock_session
            mock_factory.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_session_context_manager(self):
        """Test get_session context manager."""
        mock_engine = Mock()
        manager = SessionManager(mock_engine)
        mock_session = AsyncMock()

        with patch.object(manager, "create_session", return_value=mock_session):
            async with manager.get_session() as session:
                assert session == mock_session

            mock_session.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_session_with_exception(self):
        """Test get_session context manager with exception."""
        mock_engine = Mock()
        manager = SessionManager(mock_engine)
        mock_session = AsyncMock()

        with patch.object(manager, "create_session", return_value=mock_session):
            with pytest.raises(ValueError):
                async with manager.get_session():
                    raise ValueError("Test error")

            mock_session.rollback.assert_called_once()
            mock_session.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_transaction_context_manager(self):
        """Test get_transaction context manager."""
        mock_engine = Mock()
        manager = SessionManager(mock_engine)
        mock_session = AsyncMock()

        @asynccontextmanager
        async def mock_begin():
            yield None

        mock_session.begin = mock_begin

        with patch.object(manager, "get_session") as mock_get_session:
            mock_get_session.return_value.__aenter__.return_value = mock_session

            async with manager.get_transaction() as session:
                assert session == mock_session

    @pytest.mark.asyncio
    async def test_execute_in_transaction_success(self):
        """Test execute_in_transaction with successful operation."""
        mock_engine = Mock()
        manager = SessionManager(mock_engine)
        mock_session = AsyncMock()

        async def double(session, value):
            return value * 2

        with patch.object(manager, "get_transaction") as mock_get_transaction:
            mock_get_transaction.return_value.__aenter__.return_value = mock_session

            result = await manager.execute_in_transaction(double, 5)

            assert result == 10

    @pytest.mark.asyncio
    async def test_execute_in_transaction_sqlalchemy_error(self):
        """Test execute_in_transaction with SQLAlchemy error."""
        mock_engine = Mock()
        manager = SessionManager(mock_engine)
        mock_session = AsyncMock()

        async def failing_operation(session):
            raise SQLAlchemyError("Database error")

        with patch.object(manager, "get_transaction") as mock_get_transaction:
            mock_get_transaction.return_value.__aenter__.return_value = mock_session

            with pytest.raises(TransactionException) as exc_info:
                await manager.execute_in_transaction(failing_operation)

        assert exc_info.value.details["operation"] == "failing_operation"
        assert isinstance(exc_info.value.original_error, SQLAlchemyError)

    @pytest.mark.asyncio
    async def test_execute_in_transaction_domain_error_propagates(self):
        """Errors raised by the operation itself are not wrapped."""
        mock_engine = Mock()
        manager = SessionManager(mock_engine)
        mock_session = AsyncMock()

        async def failing_operation(session):
            raise ValueError("General error")

        with patch.object(manager, "get_transaction") as mock_get_transaction:
            mock_get_transaction.return_value.__aenter__.return_value = mock_session

            with pytest.raises(ValueError):
                await manager.execute_in_transaction(failing_operation)

    @pytest.mark.asyncio
    async def test_health_check_success(self):
        """Test successful health check."""
        mock_engine = Mock()
        manager = SessionManager(mock_engine)
        mock_session = AsyncMock()

        with (
            patch.object(manager, "get_session") as mock_get_session,
            patch.object(manager, "get_transaction") as mock_get_transaction,
        ):
            mock_get_session.return_value.__aenter__.return_value = mock_session
            mock_get_transaction.return_value.__aenter__.return_value = mock_session

            result = await manager.health_check()

            assert result["status"] == "healthy"
            assert result["checks"]["basic_query"]["status"] == "pass"
            assert result["checks"]["transaction"]["status"] == "pass"
            assert "timestamp" in result

    @pytest.mark.asyncio
    async def test_health_check_failure(self):
        """Test health check failure."""
        mock_engine = Mock()
        manager = SessionManager(mock_engine)

        with patch.object(manager, "get_session") as mock_get_session:
            mock_get_session.side_effect = OperationalError(
                "SELECT 1", {}, Exception("Connection failed")
            )

            result = await manager.health_check()

            assert result["status"] == "unhealthy"
            assert result["checks"]["database"]["status"] == "fail"
            assert result["checks"]["database"]["error_type"] == "OperationalError"

    @pytest.mark.asyncio
    async def test_initialize_database_fails_when_unhealthy(self):
        manager = SessionManager(Mock())

        with patch.object(
            manager, "health_check", AsyncMock(return_value={"status": "unhealthy"})
        ):
            assert await manager.initialize_database() is False

        assert not manager.is_initialized

    @pytest.mark.asyncio
    async def test_execute_read_returns_result(self):
        manager = SessionManager(Mock())

        async def count_pets(session):
            return 3

        with patch.object(manager, "get_session") as mock_get_session:
            mock_get_session.return_value.__aenter__.return_value = AsyncMock()

            assert await manager.execute_read(count_pets) == 3

    @pytest.mark.asyncio
    async def test_execute_read_wraps_driver_errors(self):
        manager = SessionManager(Mock())

        async def list_pets(session):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

        with patch.object(manager, "get_session") as mock_get_session:
            mock_get_session.return_value.__aenter__.return_value = AsyncMock()

            with pytest.raises(DatabaseException) as exc_info:
                await manager.execute_read(list_pets, "pets")

        assert not isinstance(exc_info.value, TransactionException)
        assert exc_info.value.message == "Failed to load pets"
        assert exc_info.value.details["operation"] == "pets"
        assert isinstance(exc_info.value.original_error, OperationalError)

    @pytest.mark.asyncio
    async def test_execute_read_wraps_session_open_failures(self):
        manager = SessionManager(Mock())

        with patch.object(manager, "get_session") as mock_get_session:
            mock_get_session.side_effect = OperationalError(
                "SELECT 1", {}, Exception("Connection failed")
            )

            with pytest.raises(DatabaseException) as exc_info:
                await manager.execute_read(AsyncMock(), "pet")

        assert exc_info.value.details["operation"] == "pet"

    @pytest.mark.asyncio
    async def test_execute_read_lets_package_errors_through(self):
        manager = SessionManager(Mock())

        async def get_pet(session):
            raise RecordNotFoundException("Pet not found", record_type="Pet")

        with patch.object(manager, "get_session") as mock_get_session:
            mock_get_session.return_value.__aenter__.return_value = AsyncMock()

            with pytest.raises(RecordNotFoundException):
                await manager.execute_read(get_pet)

    @pytest.mark.asyncio
    async def test_close_all_sessions_disposes_engine(self):
        mock_engine = AsyncMock()
        manager = SessionManager(mock_engine)
        manager._is_initialized = True

        await manager.close_all_sessions()

        mock_engine.dispose.assert_awaited_once()
        assert not manager.is_initialized


class TestSessionManagerWithSQLite:
    """Round trips against the in-memory test database."""

    @pytest.mark.asyncio
    async def test_initialized_database_is_healthy(self, session_manager):
        health = await session_manager.health_check()

        assert session_manager.is_initialized
        assert health["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_transaction_commits(self, session_manager, owner_id):
        pet = await PetFactory.create(session_manager, owner_id=owner_id, name="Bolt")

        async with session_manager.get_session() as session:
            loaded = await session.scalar(select(Pet).where(Pet.id == pet.id))

        assert loaded.name == "Bolt"

    @pytest.mark.asyncio
    async def test_transaction_rolls_back_on_error(self, session_manager, owner_id):
        with pytest.raises(RuntimeError):
            async with session_manager.get_transaction() as session:
                session.add(PetFactory.build(owner_id=owner_id, name="Ghost"))
                await session.flush()
                raise RuntimeError("abort")

        async with session_manager.get_session() as session:
            count = await session.scalar(text("SELECT COUNT(*) FROM pets"))

        assert count == 0


    @pytest.mark.asyncio
    async def test_from_settings_builds_working_manager(self):
        settings = PetHealthSettings(database_url="sqlite+aiosqlite:///:memory:")

        manager = SessionManager.from_settings(settings)
        try:
            assert await manager.initialize_database(Base.metadata)
            async with manager.get_session() as session:
                count = await session.scalar(text("SELECT COUNT(*) FROM pets"))
        finally:
            await manager.close_all_sessions()

        assert count == 0

    def test_from_settings_without_url(self):
        with pytest.raises(ConfigurationException) as exc_info:
            SessionManager.from_settings(PetHealthSettings())

        assert exc_info.value.details == {"config_key": "database_url"}
