"""
Pytest configuration and fixtures for pet-health tests.

This module provides common fixtures for all tests in the package, including
an in-memory database, the owner session, the change bus, the store and
factory classes for test data.
"""

import uuid
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine

from pet_health.database.connection import create_engine
from pet_health.database.session import SessionManager
from pet_health.models import (
    Base,
    Course,
    CourseStatus,
    Event,
    EventStatus,
    EventType,
    Pet,
)
from pet_health.services import ChangeBus, PetHealthStore, SessionIdentityProvider

# Single shared connection, so every session sees the same schema
SQLITE_TEST_URL = "sqlite+aiosqlite:///:memory:"

# Fixed reference time used by the derivation tests
FIXED_NOW = datetime(2024, 6, 10, 9, 30)


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite engine."""
    engine = create_engine(SQLITE_TEST_URL)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_manager(test_engine: AsyncEngine) -> AsyncGenerator[SessionManager, None]:
    """Session manager with all tables created."""
    manager = SessionManager(test_engine)
    initialized = await manager.initialize_database(Base.metadata)
    assert initialized
    yield manager
    await manager.close_all_sessions()


@asynccontextmanager
async def locked_session():
    raise OperationalError("SELECT 1", {}, Exception("database is locked"))
    yield


@pytest.fixture
def break_reads(session_manager: SessionManager, monkeypatch):
    """Call to make every later session fail as if the database were locked."""

    def apply() -> None:
        monkeypatch.setattr(session_manager, "get_session", locked_session)

    return apply


@pytest.fixture
def broken_reads(break_reads) -> None:
    """Sessions fail from the start of the test."""
    break_reads()


@pytest.fixture
def bus() -> ChangeBus:
    return ChangeBus()


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest_asyncio.fixture
async def identity(bus: ChangeBus, owner_id: uuid.UUID) -> SessionIdentityProvider:
    """Identity provider with a signed-in owner."""
    provider = SessionIdentityProvider(bus)
    await provider.sign_in(owner_id, email="owner@example.com", full_name="Test Owner")
    return provider


@pytest.fixture
def store(
    session_manager: SessionManager,
    identity: SessionIdentityProvider,
    bus: ChangeBus,
) -> PetHealthStore:
    return PetHealthStore(session_manager, identity, bus)


class PetFactory:
    """Factory for creating test Pet instances."""

    @staticmethod
    def build(owner_id: Optional[uuid.UUID] = None, **kwargs) -> Pet:
        """Build a Pet instance without saving to database."""
        if owner_id is None:
            owner_id = uuid.uuid4()

        defaults = {
            "owner_id": owner_id,
            "name": f"TestPet_{uuid.uuid4().hex[:8]}",
            "species": "dog",
            "breed": "Golden Retriever",
            "birth_date": date(2020, 1, 1),
            "weight_kg": Decimal("25.5"),
        }
        defaults.update(kwargs)
        return Pet(**defaults)

    @staticmethod
    async def create(
        session_manager: SessionManager, owner_id: Optional[uuid.UUID] = None, **kwargs
    ) -> Pet:
        """Create and save a Pet instance to the database."""
        pet = PetFactory.build(owner_id=owner_id, **kwargs)
        async with session_manager.get_transaction() as session:
            session.add(pet)
        return pet


class CourseFactory:
    """Factory for creating test Course instances."""

    @staticmethod
    def build(pet_id: Optional[uuid.UUID] = None, **kwargs) -> Course:
        """Build a Course instance without saving to database."""
        defaults = {
            "id": uuid.uuid4(),
            "pet_id": pet_id or uuid.uuid4(),
            "drug_name": "Amoxicillin",
            "dosage": "1 tablet",
            "schedule": "every 12 hours",
            "start_date": date.today(),
            "duration_days": 5,
            "status": CourseStatus.ACTIVE,
            "days_completed": 0,
        }
        defaults.update(kwargs)
        return Course(**defaults)

    @staticmethod
    async def create(session_manager: SessionManager, pet: Pet, **kwargs) -> Course:
        """Create and save a Course instance to the database."""
        course = CourseFactory.build(pet_id=pet.id, **kwargs)
        async with session_manager.get_transaction() as session:
            session.add(course)
        return course


class EventFactory:
    """Factory for creating test Event instances."""

    @staticmethod
    def build(pet_id: Optional[uuid.UUID] = None, **kwargs) -> Event:
        """Build an Event instance without saving to database."""
        defaults = {
            "id": uuid.uuid4(),
            "pet_id": pet_id or uuid.uuid4(),
            "title": "Annual checkup",
            "event_type": EventType.CONSULT,
            "status": EventStatus.SCHEDULED,
            "date": date.today() + timedelta(days=3),
            "price": Decimal("120.00"),
        }
        defaults.update(kwargs)
        return Event(**defaults)

    @staticmethod
    async def create(session_manager: SessionManager, pet: Pet, **kwargs) -> Event:
        """Create and save an Event instance to the database."""
        event = EventFactory.build(pet_id=pet.id, **kwargs)
        async with session_manager.get_transaction() as session:
            session.add(event)
        return event


@pytest.fixture
def pet_factory() -> PetFactory:
    return PetFactory()


@pytest.fixture
def course_factory() -> CourseFactory:
    return CourseFactory()


@pytest.fixture
def event_factory() -> EventFactory:
    return EventFactory()


@pytest_asyncio.fixture
async def test_pet(session_manager: SessionManager, owner_id: uuid.UUID) -> Pet:
    """A pet belonging to the signed-in owner."""
    return await PetFactory.create(session_manager, owner_id=owner_id, name="Rex")


@pytest_asyncio.fixture
async def other_owner_pet(session_manager: SessionManager) -> Pet:
    """A pet belonging to somebody else."""
    return await PetFactory.create(session_manager, owner_id=uuid.uuid4(), name="Stranger")
