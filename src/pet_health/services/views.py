"""
View loaders that keep derived state in step with the store.

Each loader rebuilds its derived output wholesale on ``load()``. Attaching a
loader subscribes it to ``events_changed`` so any event mutation triggers a
full reload; detaching releases the subscription.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..exceptions import DatabaseException
from ..models import Course, Event, Pet
from ..schemas.analytics import EventAnalyticsSnapshot
from ..schemas.notification import Notification
from ..utils.config import PetHealthSettings
from ..utils.datetime_utils import local_now
from .analytics import build_event_analytics, filter_events
from .change_bus import ChangeBus, Subscription, Topic
from .notifications import NotificationWindow
from .store import PetHealthStore
from .treatment import DisplayStatus, describe_course

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Could not load notifications."


class _Attachable(ABC):
    """Shared ``events_changed`` subscription handling."""

    bus: Optional[ChangeBus]
    _subscription: Optional[Subscription] = None

    @abstractmethod
    async def load(self) -> Any:
        """Rebuild derived state from the store."""

    async def _on_events_changed(self, payload: Any) -> None:
        await self.load()

    def attach(self) -> Subscription:
        """Reload whenever events change. Returns the live subscription."""
        if self.bus is None:
            raise RuntimeError("No change bus configured")
        if self._subscription is None or not self._subscription.active:
            self._subscription = self.bus.subscribe(
                Topic.EVENTS_CHANGED, self._on_events_changed
            )
        return self._subscription

    def detach(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    @property
    def attached(self) -> bool:
        return self._subscription is not None and self._subscription.active


class NotificationFeed(_Attachable):
    """
    Reminder panel state for the signed-in owner.

    Read marks live in an in-memory overlay keyed by notification id. They
    are never written to the store, and every successful load starts from
    an all-unread list.
    """

    def __init__(
        self,
        store: PetHealthStore,
        bus: Optional[ChangeBus] = None,
        window: Optional[NotificationWindow] = None,
        clock: Callable[[], datetime] = local_now,
    ):
        self.store = store
        self.bus = bus
        self.window = window or NotificationWindow()
        self.clock = clock
        self.loading = False
        self.error: Optional[str] = None
        self.panel_open = False
        self._notifications: List[Notification] = []
        self._read_at: Dict[str, datetime] = {}

    @classmethod
    def from_settings(
        cls,
        store: PetHealthStore,
        settings: PetHealthSettings,
        bus: Optional[ChangeBus] = None,
    ) -> "NotificationFeed":
        return cls(store, bus=bus, window=NotificationWindow.from_settings(settings))

    async def load(self) -> List[Notification]:
        """
        Rebuild reminders from every event of the owner.

        A failed read sets :attr:`error` instead of pretending there is
        nothing to show. A missing session still raises.
        """
        self.loading = True
        self.error = None
        try:
            events = await self.store.list_events(raise_on_error=True)
        except DatabaseException as e:
            e.log_error(logger)
            self.error = LOAD_ERROR_MESSAGE
            return self.notifications
        finally:
            self.loading = False

        self._notifications = self.window.build(events, now=self.clock())
        self._read_at = {}
        return self.notifications

    @property
    def notifications(self) -> List[Notification]:
        """Current reminders with read marks applied."""
        return [
            item.model_copy(update={"read_at": self._read_at[item.id]})
            if item.id in self._read_at
            else item
            for item in self._notifications
        ]

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self._notifications if item.id not in self._read_at)

    @property
    def is_empty(self) -> bool:
        """Loaded successfully and nothing is upcoming."""
        return not self.loading and self.error is None and not self._notifications

    def mark_all_read(self, at: Optional[datetime] = None) -> None:
        """Stamp every loaded, unread reminder as read."""
        stamp = at or self.clock()
        for item in self._notifications:
            self._read_at.setdefault(item.id, stamp)

    def toggle_panel(self) -> bool:
        """Open or close the panel. Opening marks everything read."""
        self.panel_open = not self.panel_open
        if self.panel_open and self.unread_count:
            self.mark_all_read()
        return self.panel_open


class PetHistoryView(_Attachable):
    """Detail page state for one pet: history, analytics and courses."""

    def __init__(
        self,
        store: PetHealthStore,
        pet_id: Any,
        bus: Optional[ChangeBus] = None,
        recent_limit: int = 5,
    ):
        self.store = store
        self.pet_id = pet_id
        self.bus = bus
        self.recent_limit = recent_limit
        self.pet: Optional[Pet] = None
        self.events: List[Event] = []
        self.courses: List[Course] = []
        self.analytics = EventAnalyticsSnapshot()

    @classmethod
    def from_settings(
        cls,
        store: PetHealthStore,
        pet_id: Any,
        settings: PetHealthSettings,
        bus: Optional[ChangeBus] = None,
    ) -> "PetHistoryView":
        return cls(store, pet_id, bus=bus, recent_limit=settings.recent_history_limit)

    async def load(self) -> EventAnalyticsSnapshot:
        """
        Reload the pet, its full event history and its courses.

        Fields keep their previous values when the pet cannot be loaded.

        Raises:
            RecordNotFoundException: If the pet is missing or not owned
            DatabaseException: If the database cannot serve the pet read
        """
        self.pet = await self.store.get_pet(self.pet_id)
        self.events = await self.store.list_events_for_pet(self.pet_id)
        self.courses = await self.store.list_courses_for_pet(self.pet_id)
        self.analytics = build_event_analytics(self.events)
        logger.debug(
            f"Loaded history for pet {self.pet_id}: "
            f"{len(self.events)} events, {len(self.courses)} courses"
        )
        return self.analytics

    @property
    def recent_events(self) -> List[Event]:
        """Most recent events, newest first."""
        return self.events[: self.recent_limit]

    def filtered_events(
        self, event_type: Optional[Any] = None, status: Optional[Any] = None
    ) -> List[Event]:
        return filter_events(self.events, event_type=event_type, status=status)

    def course_statuses(self, now: Optional[datetime] = None) -> Dict[Any, DisplayStatus]:
        """Display status of every loaded course, keyed by course id."""
        now = now or local_now()
        return {course.id: describe_course(course, now) for course in self.courses}
