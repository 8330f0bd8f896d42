"""
Tests for the owner-scoped store.
"""

import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from pet_health.exceptions import (
    BusinessRuleException,
    DatabaseException,
    NotAuthenticatedException,
    RecordNotFoundException,
    SchemaValidationException,
)
from pet_health.models import CourseStatus, EventStatus, EventType
from pet_health.schemas import EventCreate
from pet_health.services import PetHealthStore, SessionIdentityProvider, Topic

from .conftest import CourseFactory, EventFactory, PetFactory


@pytest.fixture
def published(bus):
    received = []
    bus.subscribe(Topic.EVENTS_CHANGED, received.append)
    return received


class TestPets:
    """Pet CRUD and owner scoping."""

    @pytest.mark.asyncio
    async def test_create_and_get_pet(self, store, owner_id):
        pet = await store.create_pet(
            {"name": "Mia", "species": "Cat", "weight_kg": "4.2", "breed": ""}
        )

        loaded = await store.get_pet(pet.id)

        assert loaded.owner_id == owner_id
        assert loaded.name == "Mia"
        assert loaded.species == "cat"
        assert loaded.weight_kg == Decimal("4.20")
        assert loaded.breed is None

    @pytest.mark.asyncio
    async def test_create_pet_rejects_invalid_payload(self, store):
        with pytest.raises(SchemaValidationException) as exc_info:
            await store.create_pet({"name": "", "species": "dog"})

        assert exc_info.value.details["schema_name"] == "PetCreate"
        assert "name" in exc_info.value.details["validation_errors"]

    @pytest.mark.asyncio
    async def test_list_pets_only_returns_owned(self, store, test_pet, other_owner_pet):
        pets = await store.list_pets()

        assert [pet.id for pet in pets] == [test_pet.id]

    @pytest.mark.asyncio
    async def test_list_pets_sorted_by_name(self, store, session_manager, owner_id):
        for name in ("Zeus", "Apollo", "Luna"):
            await PetFactory.create(session_manager, owner_id=owner_id, name=name)

        pets = await store.list_pets()

        assert [pet.name for pet in pets] == ["Apollo", "Luna", "Zeus"]

    @pytest.mark.asyncio
    async def test_other_owner_pet_is_not_found(self, store, other_owner_pet):
        with pytest.raises(RecordNotFoundException):
            await store.get_pet(other_owner_pet.id)
        with pytest.raises(RecordNotFoundException):
            await store.update_pet(other_owner_pet.id, {"name": "Mine now"})

    @pytest.mark.asyncio
    async def test_invalid_id_is_not_found(self, store):
        with pytest.raises(RecordNotFoundException):
            await store.get_pet("not-a-uuid")

    @pytest.mark.asyncio
    async def test_update_pet(self, store, test_pet):
        pet = await store.update_pet(test_pet.id, {"weight_kg": "30", "is_sterilized": True})

        assert pet.weight_kg == Decimal("30")
        assert pet.is_sterilized is True
        assert pet.name == "Rex"

    @pytest.mark.asyncio
    async def test_update_pet_requires_a_field(self, store, test_pet):
        with pytest.raises(SchemaValidationException):
            await store.update_pet(test_pet.id, {})

    @pytest.mark.asyncio
    async def test_delete_pet_removes_children(
        self, store, session_manager, test_pet, published
    ):
        await CourseFactory.create(session_manager, test_pet)
        await EventFactory.create(session_manager, test_pet)

        await store.delete_pet(test_pet.id)

        assert await store.list_pets() == []
        assert await store.list_courses() == []
        assert await store.list_events() == []
        assert published == [{"pet_id": str(test_pet.id)}]

    @pytest.mark.asyncio
    async def test_requires_signed_in_owner(self, session_manager):
        store = PetHealthStore(session_manager, SessionIdentityProvider())

        with pytest.raises(NotAuthenticatedException):
            await store.list_pets()
        with pytest.raises(NotAuthenticatedException):
            await store.list_events()
        with pytest.raises(NotAuthenticatedException):
            await store.create_pet({"name": "Rex", "species": "dog"})


class TestCourses:
    """Course CRUD and progress updates."""

    @pytest.mark.asyncio
    async def test_create_course(self, store, test_pet):
        course = await store.create_course(
            {
                "pet_id": str(test_pet.id),
                "drug_name": "Prednisone",
                "start_date": date(2024, 6, 1),
                "duration_days": 7,
            }
        )

        loaded = await store.get_course(course.id)

        assert loaded.status == CourseStatus.ACTIVE
        assert loaded.days_completed == 0
        assert loaded.days_before_completion is None
        assert loaded.pet.id == test_pet.id

    @pytest.mark.asyncio
    async def test_create_course_for_other_owner_pet(self, store, other_owner_pet):
        with pytest.raises(RecordNotFoundException):
            await store.create_course(
                {
                    "pet_id": other_owner_pet.id,
                    "drug_name": "Prednisone",
                    "start_date": date(2024, 6, 1),
                    "duration_days": 7,
                }
            )

    @pytest.mark.asyncio
    async def test_create_course_rejects_progress_beyond_duration(self, store, test_pet):
        with pytest.raises(SchemaValidationException):
            await store.create_course(
                {
                    "pet_id": test_pet.id,
                    "drug_name": "Prednisone",
                    "start_date": date(2024, 6, 1),
                    "duration_days": 3,
                    "days_completed": 4,
                }
            )

    @pytest.mark.asyncio
    async def test_list_courses_newest_first(
        self, store, session_manager, test_pet, other_owner_pet
    ):
        older = await CourseFactory.create(
            session_manager, test_pet, start_date=date(2024, 1, 1)
        )
        newer = await CourseFactory.create(
            session_manager, test_pet, start_date=date(2024, 3, 1)
        )
        await CourseFactory.create(session_manager, other_owner_pet)

        courses = await store.list_courses()
        for_pet = await store.list_courses_for_pet(test_pet.id)

        assert [c.id for c in courses] == [newer.id, older.id]
        assert [c.id for c in for_pet] == [newer.id, older.id]

    @pytest.mark.asyncio
    async def test_update_course_progress_writes_status_and_patch(
        self, store, session_manager, test_pet
    ):
        course = await CourseFactory.create(
            session_manager, test_pet, duration_days=5, days_completed=4
        )

        updated = await store.update_course_progress(
            course.id, 5, status="completed", patch={"days_before_completion": 4}
        )
        loaded = await store.get_course(course.id)

        assert updated.days_completed == 5
        assert loaded.status == CourseStatus.COMPLETED
        assert loaded.days_before_completion == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("days", [-1, 6])
    async def test_update_course_progress_out_of_range(
        self, store, session_manager, test_pet, days
    ):
        course = await CourseFactory.create(session_manager, test_pet, duration_days=5)

        with pytest.raises(BusinessRuleException):
            await store.update_course_progress(course.id, days)

        assert (await store.get_course(course.id)).days_completed == 0

    @pytest.mark.asyncio
    async def test_update_course_status(self, store, session_manager, test_pet):
        course = await CourseFactory.create(
            session_manager, test_pet, days_completed=2, duration_days=5
        )

        await store.update_course_status(
            course.id,
            CourseStatus.PAUSED,
            patch={"days_before_completion": None, "days_completed": 2},
        )

        assert (await store.get_course(course.id)).status == CourseStatus.PAUSED

    @pytest.mark.asyncio
    async def test_update_course_status_unknown_value(self, store, session_manager, test_pet):
        course = await CourseFactory.create(session_manager, test_pet)

        with pytest.raises(BusinessRuleException):
            await store.update_course_status(course.id, "archived")

    @pytest.mark.asyncio
    async def test_update_course_cannot_shrink_below_progress(
        self, store, session_manager, test_pet
    ):
        course = await CourseFactory.create(
            session_manager, test_pet, duration_days=5, days_completed=4
        )

        with pytest.raises(BusinessRuleException):
            await store.update_course(course.id, {"duration_days": 3})

        updated = await store.update_course(course.id, {"duration_days": 10, "dosage": "2 ml"})
        assert updated.duration_days == 10
        assert updated.dosage == "2 ml"

    @pytest.mark.asyncio
    async def test_other_owner_course_is_not_found(
        self, store, session_manager, other_owner_pet
    ):
        course = await CourseFactory.create(session_manager, other_owner_pet)

        with pytest.raises(RecordNotFoundException):
            await store.update_course_progress(course.id, 1)
        with pytest.raises(RecordNotFoundException):
            await store.delete_course(course.id)

    @pytest.mark.asyncio
    async def test_delete_course(self, store, session_manager, test_pet):
        course = await CourseFactory.create(session_manager, test_pet)

        await store.delete_course(course.id)

        with pytest.raises(RecordNotFoundException):
            await store.get_course(course.id)


class TestEvents:
    """Event CRUD, ordering and change broadcasts."""

    @pytest.mark.asyncio
    async def test_create_event_publishes(self, store, test_pet, published):
        event = await store.create_event(
            EventCreate(
                pet_id=test_pet.id,
                title="Rabies booster",
                event_type=EventType.VACCINATION,
                date=date.today() + timedelta(days=2),
                time="10:15:00",
                price=Decimal("45.00"),
            )
        )

        assert event.time == "10:15"
        assert event.status == EventStatus.SCHEDULED
        assert event.pet.name == "Rex"
        assert published == [event]

    @pytest.mark.asyncio
    async def test_list_events_earliest_first_with_pet(
        self, store, session_manager, test_pet, other_owner_pet
    ):
        later = await EventFactory.create(session_manager, test_pet, date=date(2024, 8, 1))
        earlier = await EventFactory.create(session_manager, test_pet, date=date(2024, 7, 1))
        await EventFactory.create(session_manager, other_owner_pet)

        events = await store.list_events()

        assert [e.id for e in events] == [earlier.id, later.id]
        assert all(e.pet.name == "Rex" for e in events)

    @pytest.mark.asyncio
    async def test_list_events_for_pet_most_recent_first(
        self, store, session_manager, test_pet
    ):
        first = await EventFactory.create(session_manager, test_pet, date=date(2023, 1, 1))
        second = await EventFactory.create(session_manager, test_pet, date=date(2024, 1, 1))

        events = await store.list_events_for_pet(test_pet.id)

        assert [e.id for e in events] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_update_event_publishes(self, store, session_manager, test_pet, published):
        event = await EventFactory.create(session_manager, test_pet)

        updated = await store.update_event(event.id, {"status": "done"})

        assert updated.status == EventStatus.DONE
        assert published == [updated]

    @pytest.mark.asyncio
    async def test_delete_event_publishes(self, store, session_manager, test_pet, published):
        event = await EventFactory.create(session_manager, test_pet)

        await store.delete_event(event.id)

        with pytest.raises(RecordNotFoundException):
            await store.get_event(event.id)
        assert published == [{"event_id": str(event.id)}]

    @pytest.mark.asyncio
    async def test_other_owner_event_is_not_found(
        self, store, session_manager, other_owner_pet, published
    ):
        event = await EventFactory.create(session_manager, other_owner_pet)

        with pytest.raises(RecordNotFoundException):
            await store.update_event(event.id, {"title": "Hijacked"})
        assert published == []

    @pytest.mark.asyncio
    async def test_create_event_rejects_bad_time(self, store, test_pet):
        with pytest.raises(SchemaValidationException):
            await store.create_event(
                {"pet_id": test_pet.id, "title": "Visit", "date": date.today(), "time": "25:00"}
            )


class TestReadFailures:
    """List reads degrade to empty unless asked to raise; single reads always raise."""

    @pytest.mark.asyncio
    async def test_list_events_degrades_to_empty(self, store, broken_reads, caplog):
        events = await store.list_events()

        assert events == []
        assert "Failed to load events" in caplog.text

    @pytest.mark.asyncio
    async def test_list_events_raises_when_asked(self, store, broken_reads):
        with pytest.raises(DatabaseException) as exc_info:
            await store.list_events(raise_on_error=True)

        assert isinstance(exc_info.value.original_error, OperationalError)

    @pytest.mark.asyncio
    async def test_other_lists_degrade_to_empty(self, store, broken_reads):
        pet_id = uuid.uuid4()
        assert await store.list_pets() == []
        assert await store.list_courses() == []
        assert await store.list_courses_for_pet(pet_id) == []
        assert await store.list_events_for_pet(pet_id) == []

    @pytest.mark.asyncio
    async def test_get_pet_raises_database_error(self, store, test_pet, break_reads):
        break_reads()

        with pytest.raises(DatabaseException) as exc_info:
            await store.get_pet(test_pet.id)

        assert not isinstance(exc_info.value, RecordNotFoundException)
        assert exc_info.value.details["operation"] == "pet"
        assert isinstance(exc_info.value.original_error, OperationalError)

    @pytest.mark.asyncio
    async def test_get_course_and_event_raise_database_error(self, store, broken_reads):
        with pytest.raises(DatabaseException):
            await store.get_course(uuid.uuid4())
        with pytest.raises(DatabaseException):
            await store.get_event(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_missing_pet_still_reports_not_found(self, store):
        with pytest.raises(RecordNotFoundException):
            await store.get_pet(uuid.uuid4())
