"""
Owner-scoped persistence for pets, medication courses and medical events.

Every query joins through ``Pet.owner_id`` for the signed-in owner, so a
record belonging to someone else behaves exactly like a missing one.

Read failures on list operations are logged and degrade to an empty list
unless the caller asks for ``raise_on_error``. Single-record reads raise
:class:`DatabaseException`. Mutation failures are always raised, wrapped in
:class:`TransactionException`.
"""

import logging
import uuid
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Type, TypeVar, Union

from pydantic import BaseModel as SchemaModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from ..database.session import SessionManager
from ..exceptions import (
    BusinessRuleException,
    DatabaseException,
    RecordNotFoundException,
    SchemaValidationException,
    format_validation_errors,
)
from ..models import Course, CourseStatus, Event, Pet
from ..schemas import (
    CourseCreate,
    CourseUpdate,
    EventCreate,
    EventUpdate,
    PetCreate,
    PetUpdate,
)
from ..utils.validation import clean_payload
from .change_bus import ChangeBus, Topic
from .identity import SessionIdentityProvider

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=SchemaModel)
T = TypeVar("T")

Payload = Union[SchemaModel, Mapping[str, Any]]


def _as_uuid(value: Any, record_type: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise RecordNotFoundException(
            f"{record_type} not found", record_type=record_type, record_id=value
        )


def _validate(schema: Type[S], data: Payload) -> S:
    if isinstance(data, schema):
        return data
    if isinstance(data, SchemaModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(dict(data))
    except PydanticValidationError as e:
        raise SchemaValidationException(
            f"Invalid {schema.__name__} payload",
            schema_name=schema.__name__,
            validation_errors=format_validation_errors(e.errors()),
        )


def _coerce_course_status(status: Union[CourseStatus, str]) -> CourseStatus:
    if isinstance(status, CourseStatus):
        return status
    try:
        return CourseStatus(str(status).lower())
    except ValueError:
        raise BusinessRuleException(
            f"Unknown course status '{status}'", rule_name="course_status"
        )


def _check_progress_range(course: Course) -> None:
    if not 0 <= course.days_completed <= course.duration_days:
        raise BusinessRuleException(
            "Days completed must stay between 0 and the course duration",
            rule_name="course_progress_range",
            context={
                "course_id": str(course.id),
                "days_completed": course.days_completed,
                "duration_days": course.duration_days,
            },
        )


class PetHealthStore:
    """Async store for the signed-in owner's records."""

    def __init__(
        self,
        session_manager: SessionManager,
        identity: SessionIdentityProvider,
        bus: Optional[ChangeBus] = None,
    ):
        self.session_manager = session_manager
        self.identity = identity
        self.bus = bus

    # Helpers

    async def _read(
        self,
        operation_name: str,
        operation: Callable[[AsyncSession], Awaitable[List[T]]],
        raise_on_error: bool,
    ) -> List[T]:
        try:
            return await self.session_manager.execute_read(operation, operation_name)
        except DatabaseException as e:
            if raise_on_error:
                raise
            e.log_error(logger, logging.WARNING)
            return []

    async def _get_owned_pet(
        self, session: AsyncSession, owner_id: uuid.UUID, pet_id: Any
    ) -> Pet:
        pet = await session.scalar(
            select(Pet).where(
                Pet.id == _as_uuid(pet_id, "Pet"), Pet.owner_id == owner_id
            )
        )
        if pet is None:
            raise RecordNotFoundException("Pet not found", record_type="Pet", record_id=pet_id)
        return pet

    async def _get_owned_course(
        self, session: AsyncSession, owner_id: uuid.UUID, course_id: Any
    ) -> Course:
        course = await session.scalar(
            select(Course)
            .join(Course.pet)
            .options(contains_eager(Course.pet))
            .where(Course.id == _as_uuid(course_id, "Course"), Pet.owner_id == owner_id)
        )
        if course is None:
            raise RecordNotFoundException(
                "Course not found", record_type="Course", record_id=course_id
            )
        return course

    async def _get_owned_event(
        self, session: AsyncSession, owner_id: uuid.UUID, event_id: Any
    ) -> Event:
        event = await session.scalar(
            select(Event)
            .join(Event.pet)
            .options(contains_eager(Event.pet))
            .where(Event.id == _as_uuid(event_id, "Event"), Pet.owner_id == owner_id)
        )
        if event is None:
            raise RecordNotFoundException(
                "Event not found", record_type="Event", record_id=event_id
            )
        return event

    async def _events_changed(self, payload: Any) -> None:
        if self.bus is not None:
            await self.bus.publish(Topic.EVENTS_CHANGED, payload)

    # Pets

    async def list_pets(self, raise_on_error: bool = False) -> List[Pet]:
        """All pets of the signed-in owner, by name."""
        owner_id = self.identity.require_owner_id()

        async def operation(session: AsyncSession) -> List[Pet]:
            result = await session.scalars(
                select(Pet).where(Pet.owner_id == owner_id).order_by(Pet.name)
            )
            return list(result)

        return await self._read("pets", operation, raise_on_error)

    async def get_pet(self, pet_id: Any) -> Pet:
        """
        Load one pet.

        Raises:
            RecordNotFoundException: If the pet is missing or not owned
            DatabaseException: If the database cannot serve the read
        """
        owner_id = self.identity.require_owner_id()

        async def operation(session: AsyncSession) -> Pet:
            return await self._get_owned_pet(session, owner_id, pet_id)

        return await self.session_manager.execute_read(operation, "pet")

    async def create_pet(self, data: Payload) -> Pet:
        """Register a pet for the signed-in owner."""
        owner_id = self.identity.require_owner_id()
        payload = clean_payload(_validate(PetCreate, data).model_dump())

        async def create_pet(session: AsyncSession) -> Pet:
            pet = Pet(owner_id=owner_id, **payload)
            session.add(pet)
            await session.flush()
            return pet

        pet = await self.session_manager.execute_in_transaction(create_pet)
        logger.info(f"Created pet {pet.id} for owner {owner_id}")
        return pet

    async def update_pet(self, pet_id: Any, data: Payload) -> Pet:
        """
        Update pet fields.

        Raises:
            RecordNotFoundException: If the pet is missing or not owned
        """
        owner_id = self.identity.require_owner_id()
        changes = clean_payload(_validate(PetUpdate, data).model_dump(exclude_unset=True))

        async def update_pet(session: AsyncSession) -> Pet:
            pet = await self._get_owned_pet(session, owner_id, pet_id)
            pet.update_fields(**changes)
            await session.flush()
            return pet

        return await self.session_manager.execute_in_transaction(update_pet)

    async def delete_pet(self, pet_id: Any) -> None:
        """
        Delete a pet together with its courses and events.

        Raises:
            RecordNotFoundException: If the pet is missing or not owned
        """
        owner_id = self.identity.require_owner_id()

        async def delete_pet(session: AsyncSession) -> None:
            pet = await self._get_owned_pet(session, owner_id, pet_id)
            await session.execute(delete(Course).where(Course.pet_id == pet.id))
            await session.execute(delete(Event).where(Event.pet_id == pet.id))
            await session.delete(pet)

        await self.session_manager.execute_in_transaction(delete_pet)
        logger.info(f"Deleted pet {pet_id}")
        await self._events_changed({"pet_id": str(pet_id)})

    # Courses

    async def list_courses(self, raise_on_error: bool = False) -> List[Course]:
        """All courses across the owner's pets, newest start date first."""
        owner_id = self.identity.require_owner_id()

        async def operation(session: AsyncSession) -> List[Course]:
            result = await session.scalars(
                select(Course)
                .join(Course.pet)
                .options(contains_eager(Course.pet))
                .where(Pet.owner_id == owner_id)
                .order_by(Course.start_date.desc(), Course.created_at.desc())
            )
            return list(result)

        return await self._read("courses", operation, raise_on_error)

    async def list_courses_for_pet(
        self, pet_id: Any, raise_on_error: bool = False
    ) -> List[Course]:
        """Courses of one pet, newest start date first."""
        owner_id = self.identity.require_owner_id()
        pet_uuid = _as_uuid(pet_id, "Pet")

        async def operation(session: AsyncSession) -> List[Course]:
            result = await session.scalars(
                select(Course)
                .join(Course.pet)
                .options(contains_eager(Course.pet))
                .where(Course.pet_id == pet_uuid, Pet.owner_id == owner_id)
                .order_by(Course.start_date.desc(), Course.created_at.desc())
            )
            return list(result)

        return await self._read("courses", operation, raise_on_error)

    async def get_course(self, course_id: Any) -> Course:
        """
        Load one course.

        Raises:
            RecordNotFoundException: If the course is missing or not owned
            DatabaseException: If the database cannot serve the read
        """
        owner_id = self.identity.require_owner_id()

        async def operation(session: AsyncSession) -> Course:
            return await self._get_owned_course(session, owner_id, course_id)

        return await self.session_manager.execute_read(operation, "course")

    async def create_course(self, data: Payload) -> Course:
        """
        Start a medication course for one of the owner's pets.

        Raises:
            RecordNotFoundException: If the pet is missing or not owned
        """
        owner_id = self.identity.require_owner_id()
        payload = clean_payload(_validate(CourseCreate, data).model_dump())
        pet_id = payload.pop("pet_id")

        async def create_course(session: AsyncSession) -> Course:
            pet = await self._get_owned_pet(session, owner_id, pet_id)
            course = Course(pet=pet, **payload)
            session.add(course)
            await session.flush()
            return course

        course = await self.session_manager.execute_in_transaction(create_course)
        logger.info(f"Created course {course.id} for pet {pet_id}")
        return course

    async def update_course(self, course_id: Any, data: Payload) -> Course:
        """
        Edit course details other than progress and status.

        Raises:
            RecordNotFoundException: If the course is missing or not owned
            BusinessRuleException: If a shorter duration would drop below the doses
                already registered
        """
        owner_id = self.identity.require_owner_id()
        changes = clean_payload(
            _validate(CourseUpdate, data).model_dump(exclude_unset=True)
        )

        async def update_course(session: AsyncSession) -> Course:
            course = await self._get_owned_course(session, owner_id, course_id)
            course.update_fields(**changes)
            _check_progress_range(course)
            await session.flush()
            return course

        return await self.session_manager.execute_in_transaction(update_course)

    async def update_course_progress(
        self,
        course_id: Any,
        days_completed: int,
        status: Optional[Union[CourseStatus, str]] = None,
        patch: Optional[Mapping[str, Any]] = None,
    ) -> Course:
        """
        Write the dose counter, and optionally the status, in one update.

        Args:
            course_id: Course to update
            days_completed: New counter value
            status: New stored status, unchanged when None
            patch: Extra course fields written in the same update

        Raises:
            RecordNotFoundException: If the course is missing or not owned
            BusinessRuleException: If the counter leaves ``[0, duration_days]``
            TransactionException: If the database rejects the update
        """
        owner_id = self.identity.require_owner_id()
        new_status = _coerce_course_status(status) if status is not None else None

        async def update_course_progress(session: AsyncSession) -> Course:
            course = await self._get_owned_course(session, owner_id, course_id)
            course.update_fields(**dict(patch or {}))
            course.days_completed = days_completed
            if new_status is not None:
                course.status = new_status
            _check_progress_range(course)
            await session.flush()
            return course

        course = await self.session_manager.execute_in_transaction(update_course_progress)
        logger.debug(
            f"Course {course.id} progress {course.days_completed}/{course.duration_days} "
            f"({course.status.value})"
        )
        return course

    async def update_course_status(
        self,
        course_id: Any,
        status: Union[CourseStatus, str],
        patch: Optional[Mapping[str, Any]] = None,
    ) -> Course:
        """
        Write the stored status, with optional extra fields, in one update.

        Raises:
            RecordNotFoundException: If the course is missing or not owned
            BusinessRuleException: If the patched counter leaves ``[0, duration_days]``
            TransactionException: If the database rejects the update
        """
        owner_id = self.identity.require_owner_id()
        new_status = _coerce_course_status(status)

        async def update_course_status(session: AsyncSession) -> Course:
            course = await self._get_owned_course(session, owner_id, course_id)
            course.update_fields(**dict(patch or {}))
            course.status = new_status
            _check_progress_range(course)
            await session.flush()
            return course

        course = await self.session_manager.execute_in_transaction(update_course_status)
        logger.debug(f"Course {course.id} status {course.status.value}")
        return course

    async def delete_course(self, course_id: Any) -> None:
        """
        Delete a course.

        Raises:
            RecordNotFoundException: If the course is missing or not owned
        """
        owner_id = self.identity.require_owner_id()

        async def delete_course(session: AsyncSession) -> None:
            course = await self._get_owned_course(session, owner_id, course_id)
            await session.delete(course)

        await self.session_manager.execute_in_transaction(delete_course)
        logger.info(f"Deleted course {course_id}")

    # Events

    async def list_events(self, raise_on_error: bool = False) -> List[Event]:
        """
        All events across the owner's pets, earliest first, with ``pet`` loaded.

        Args:
            raise_on_error: Raise :class:`DatabaseException` instead of
                returning an empty list when the read fails
        """
        owner_id = self.identity.require_owner_id()

        async def operation(session: AsyncSession) -> List[Event]:
            result = await session.scalars(
                select(Event)
                .join(Event.pet)
                .options(contains_eager(Event.pet))
                .where(Pet.owner_id == owner_id)
                .order_by(Event.date, Event.time)
            )
            return list(result)

        return await self._read("events", operation, raise_on_error)

    async def list_events_for_pet(
        self, pet_id: Any, raise_on_error: bool = False
    ) -> List[Event]:
        """Complete event history of one pet, most recent first."""
        owner_id = self.identity.require_owner_id()
        pet_uuid = _as_uuid(pet_id, "Pet")

        async def operation(session: AsyncSession) -> List[Event]:
            result = await session.scalars(
                select(Event)
                .join(Event.pet)
                .options(contains_eager(Event.pet))
                .where(Event.pet_id == pet_uuid, Pet.owner_id == owner_id)
                .order_by(Event.date.desc(), Event.time.desc())
            )
            return list(result)

        return await self._read("events", operation, raise_on_error)

    async def get_event(self, event_id: Any) -> Event:
        """
        Load one event.

        Raises:
            RecordNotFoundException: If the event is missing or not owned
            DatabaseException: If the database cannot serve the read
        """
        owner_id = self.identity.require_owner_id()

        async def operation(session: AsyncSession) -> Event:
            return await self._get_owned_event(session, owner_id, event_id)

        return await self.session_manager.execute_read(operation, "event")

    async def create_event(self, data: Payload) -> Event:
        """
        Schedule an event for one of the owner's pets and broadcast the change.

        Raises:
            RecordNotFoundException: If the pet is missing or not owned
        """
        owner_id = self.identity.require_owner_id()
        payload = clean_payload(_validate(EventCreate, data).model_dump())
        pet_id = payload.pop("pet_id")

        async def create_event(session: AsyncSession) -> Event:
            pet = await self._get_owned_pet(session, owner_id, pet_id)
            event = Event(pet=pet, **payload)
            session.add(event)
            await session.flush()
            return event

        event = await self.session_manager.execute_in_transaction(create_event)
        logger.info(f"Created event {event.id} for pet {pet_id}")
        await self._events_changed(event)
        return event

    async def update_event(self, event_id: Any, data: Payload) -> Event:
        """
        Update an event and broadcast the change.

        Raises:
            RecordNotFoundException: If the event is missing or not owned
        """
        owner_id = self.identity.require_owner_id()
        changes = clean_payload(_validate(EventUpdate, data).model_dump(exclude_unset=True))

        async def update_event(session: AsyncSession) -> Event:
            event = await self._get_owned_event(session, owner_id, event_id)
            event.update_fields(**changes)
            await session.flush()
            return event

        event = await self.session_manager.execute_in_transaction(update_event)
        await self._events_changed(event)
        return event

    async def delete_event(self, event_id: Any) -> None:
        """
        Delete an event and broadcast the change.

        Raises:
            RecordNotFoundException: If the event is missing or not owned
        """
        owner_id = self.identity.require_owner_id()

        async def delete_event(session: AsyncSession) -> None:
            event = await self._get_owned_event(session, owner_id, event_id)
            await session.delete(event)

        await self.session_manager.execute_in_transaction(delete_event)
        logger.info(f"Deleted event {event_id}")
        await self._events_changed({"event_id": str(event_id)})
