"""
Pet Health Core

Tracking core for a pet-health application: owners register pets, schedule
medical events and follow medication courses.

The package provides:

- SQLAlchemy models for Pets, medication Courses and medical Events
- Pydantic schemas for input validation and derived outputs
- Async database utilities and an owner-scoped store
- The medication course tracker with optimistic updates and rollback
- Upcoming-event reminders over a 30 day look-ahead window
- Per-pet event history analytics
- A change bus with scoped subscriptions for view reloads

Quick Start:
    >>> from pet_health.database import SessionManager, create_engine
    >>> from pet_health.models import Base
    >>> from pet_health.services import (
    ...     ChangeBus, PetHealthStore, SessionIdentityProvider, TreatmentTracker
    ... )

    >>> engine = create_engine("sqlite+aiosqlite:///:memory:")
    >>> manager = SessionManager(engine)
    >>> await manager.initialize_database(Base.metadata)

    >>> bus = ChangeBus()
    >>> identity = SessionIdentityProvider(bus)
    >>> await identity.sign_in(owner_id)
    >>> store = PetHealthStore(manager, identity, bus)

    >>> course = await store.get_course(course_id)
    >>> course = await TreatmentTracker(store).register_dose(course)

Requirements:
    - Python 3.11+
    - SQLAlchemy 2.0+
    - Pydantic 2.5+
"""

__version__ = "0.1.0"
__author__ = "Pet Health Team"
__license__ = "MIT"

# Import implemented modules
from . import database
from . import exceptions
from . import models
from . import schemas
from . import services
from . import utils

# Convenience imports for common usage patterns
from .database import SessionManager, create_engine
from .exceptions import (
    DatabaseException,
    NotAuthenticatedException,
    PetHealthException,
    RecordNotFoundException,
)
from .models import Course, Event, Pet

__all__ = [
    # Version and metadata
    "__version__",
    "__author__",
    "__license__",
    # Core modules
    "database",
    "exceptions",
    "models",
    "schemas",
    "services",
    "utils",
    # Convenience imports
    "SessionManager",
    "create_engine",
    "PetHealthException",
    "NotAuthenticatedException",
    "RecordNotFoundException",
    "DatabaseException",
    "Pet",
    "Course",
    "Event",
]
