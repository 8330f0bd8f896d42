"""
Medication course progress tracking.

A course stores two fields that move together: ``status`` and
``days_completed``. This module holds the pure transitions between stored
states, the date-derived display status, and :class:`TreatmentTracker`, which
applies a transition optimistically, persists it with a single combined
update and restores the previous state if the store rejects it.

Example:
    >>> tracker = TreatmentTracker(store)
    >>> course = await tracker.register_dose(course)
    >>> describe_course(course).label
    'In progress'
"""

import enum
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Protocol, Set, Tuple

from ..models.course import CourseStatus
from ..utils.datetime_utils import local_now, parse_flexible_date, start_of_day
from ..utils.validation import field_value

logger = logging.getLogger(__name__)


class DisplayStatus(enum.Enum):
    """Status shown to the owner, derived from stored state and the calendar."""

    COMPLETED = "completed"
    AWAITING_START = "awaiting_start"
    OVERDUE = "overdue"
    PAUSED = "paused"
    IN_PROGRESS = "in_progress"

    @property
    def label(self) -> str:
        return _DISPLAY_LABELS[self]


_DISPLAY_LABELS = {
    DisplayStatus.COMPLETED: "Completed",
    DisplayStatus.AWAITING_START: "Awaiting start",
    DisplayStatus.OVERDUE: "Overdue",
    DisplayStatus.PAUSED: "Paused",
    DisplayStatus.IN_PROGRESS: "In progress",
}


def coerce_course_status(value: Any) -> CourseStatus:
    """
    Normalize a stored status to :class:`CourseStatus`.

    Raw rows carry the plain string; anything unrecognized counts as active.
    """
    if isinstance(value, CourseStatus):
        return value
    try:
        return CourseStatus(str(value).lower())
    except ValueError:
        return CourseStatus.ACTIVE


@dataclass(frozen=True)
class CourseProgress:
    """Snapshot of the mutable part of a course."""

    status: CourseStatus
    days_completed: int
    duration_days: int
    days_before_completion: Optional[int] = None

    @classmethod
    def from_course(cls, course: Any) -> "CourseProgress":
        """Read the progress fields from a Course model or a mapping row."""
        duration = max(0, int(field_value(course, "duration_days") or 0))
        days = int(field_value(course, "days_completed") or 0)
        return cls(
            status=coerce_course_status(field_value(course, "status")),
            days_completed=min(max(days, 0), duration),
            duration_days=duration,
            days_before_completion=field_value(course, "days_before_completion"),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == CourseStatus.COMPLETED

    @property
    def can_register_dose(self) -> bool:
        return not self.is_completed and self.days_completed < self.duration_days

    @property
    def can_undo_dose(self) -> bool:
        return not self.is_completed and self.days_completed > 0

    @property
    def can_toggle_pause(self) -> bool:
        return not self.is_completed

    @property
    def progress_percent(self) -> int:
        """Share of doses registered, rounded to a whole percent."""
        if self.duration_days <= 0:
            return 0
        # Round half up
        return (self.days_completed * 200 + self.duration_days) // (2 * self.duration_days)

    @property
    def remaining_days(self) -> int:
        return max(0, self.duration_days - self.days_completed)


# Transitions. Each returns the next state, or None when the action is
# disabled for the given state.


def dose_registered(progress: CourseProgress) -> Optional[CourseProgress]:
    """Register one dose; reaching the duration completes the course."""
    if not progress.can_register_dose:
        return None

    days = min(progress.days_completed + 1, progress.duration_days)
    if days >= progress.duration_days:
        return replace(
            progress,
            status=CourseStatus.COMPLETED,
            days_completed=days,
            days_before_completion=progress.days_completed,
        )
    return replace(progress, days_completed=days)


def dose_undone(progress: CourseProgress) -> Optional[CourseProgress]:
    """Take back the last registered dose."""
    if not progress.can_undo_dose:
        return None
    return replace(progress, days_completed=max(0, progress.days_completed - 1))


def pause_toggled(progress: CourseProgress) -> Optional[CourseProgress]:
    """Flip between active and paused."""
    if not progress.can_toggle_pause:
        return None
    if progress.status == CourseStatus.PAUSED:
        return replace(progress, status=CourseStatus.ACTIVE)
    return replace(progress, status=CourseStatus.PAUSED)


def completion_toggled(progress: CourseProgress) -> CourseProgress:
    """
    Reopen a completed course or force-complete an open one.

    Reopening restores the counter recorded just before completion and then
    takes one dose off it, so the last dose has to be registered again.
    """
    if progress.is_completed:
        remembered = progress.days_before_completion
        if remembered is None:
            remembered = progress.days_completed
        days = min(max(0, remembered - 1), progress.duration_days)
        return CourseProgress(
            status=CourseStatus.ACTIVE,
            days_completed=days,
            duration_days=progress.duration_days,
            days_before_completion=None,
        )

    days = progress.duration_days if progress.duration_days > 0 else progress.days_completed
    return replace(
        progress,
        status=CourseStatus.COMPLETED,
        days_completed=days,
        days_before_completion=progress.days_completed,
    )


def describe_course(course: Any, now: Optional[datetime] = None) -> DisplayStatus:
    """
    Derive the displayed status of a course. First match wins:

    1. stored completed, or every dose registered: Completed
    2. today before the start date: Awaiting start
    3. today after start date + duration: Overdue
    4. stored paused: Paused
    5. otherwise: In progress

    Dates are compared by calendar day. The result is never persisted.

    Args:
        course: Course model or mapping row
        now: Reference time, defaults to local now

    Returns:
        The display status
    """
    progress = CourseProgress.from_course(course)
    if progress.is_completed or progress.days_completed >= progress.duration_days:
        return DisplayStatus.COMPLETED

    start = parse_flexible_date(field_value(course, "start_date"))
    if start is not None:
        today = start_of_day(now or local_now())
        first_day = start_of_day(start)
        if today < first_day:
            return DisplayStatus.AWAITING_START
        if today > first_day + timedelta(days=progress.duration_days):
            return DisplayStatus.OVERDUE

    if progress.status == CourseStatus.PAUSED:
        return DisplayStatus.PAUSED
    return DisplayStatus.IN_PROGRESS


def progress_percent(course: Any) -> int:
    """Rounded percentage of doses registered (0 for zero-length courses)."""
    return CourseProgress.from_course(course).progress_percent


def remaining_days(course: Any) -> int:
    """Doses still to register."""
    return CourseProgress.from_course(course).remaining_days


class CourseProgressStore(Protocol):
    """Persistence calls the tracker needs."""

    async def update_course_progress(
        self,
        course_id: Any,
        days_completed: int,
        status: Optional[CourseStatus] = None,
        patch: Optional[Dict[str, Any]] = None,
    ) -> Any: ...

    async def update_course_status(
        self,
        course_id: Any,
        status: CourseStatus,
        patch: Optional[Dict[str, Any]] = None,
    ) -> Any: ...


Transition = Callable[[CourseProgress], Optional[CourseProgress]]


class TreatmentTracker:
    """
    Applies course transitions with optimistic local state.

    Each action writes the new state onto the given course, awaits the store,
    and restores the previous state if the store call fails before re-raising.
    While an action is in flight for a course, invoking the same action on
    that course again is a no-op.
    """

    def __init__(self, store: CourseProgressStore):
        self.store = store
        self._in_flight: Set[Tuple[Any, str]] = set()

    def is_pending(self, course: Any, action: str) -> bool:
        """Whether ``action`` is currently awaiting the store for ``course``."""
        return (field_value(course, "id"), action) in self._in_flight

    async def register_dose(self, course: Any) -> Any:
        """Register one dose, completing the course when it reaches its duration."""
        return await self._apply(course, "register_dose", dose_registered)

    async def undo_dose(self, course: Any) -> Any:
        """Remove the last registered dose."""
        return await self._apply(course, "undo_dose", dose_undone)

    async def toggle_pause(self, course: Any) -> Any:
        """Pause an active course or resume a paused one."""
        return await self._apply(course, "toggle_pause", pause_toggled)

    async def toggle_completion(self, course: Any) -> Any:
        """Force-complete an open course or reopen a completed one."""
        return await self._apply(course, "toggle_completion", completion_toggled)

    async def _apply(self, course: Any, action: str, transition: Transition) -> Any:
        course_id = field_value(course, "id")
        key = (course_id, action)
        if key in self._in_flight:
            logger.debug(f"Ignoring {action} on course {course_id}: already in flight")
            return course

        snapshot = CourseProgress.from_course(course)
        target = transition(snapshot)
        if target is None:
            logger.debug(f"Ignoring {action} on course {course_id}: not allowed")
            return course

        self._in_flight.add(key)
        _write_progress(course, target)
        try:
            stored = await self._persist(course_id, action, target)
        except Exception as e:
            _write_progress(course, snapshot)
            logger.warning(
                f"Failed to persist {action} on course {course_id}, state restored: {e}"
            )
            raise
        finally:
            self._in_flight.discard(key)

        logger.info(
            f"Course {course_id} {action}: {snapshot.status.value} "
            f"{snapshot.days_completed}/{snapshot.duration_days} -> "
            f"{target.status.value} {target.days_completed}/{target.duration_days}"
        )
        return stored if stored is not None else course

    async def _persist(self, course_id: Any, action: str, target: CourseProgress) -> Any:
        patch = {"days_before_completion": target.days_before_completion}
        if action in ("register_dose", "undo_dose"):
            return await self.store.update_course_progress(
                course_id, target.days_completed, status=target.status, patch=patch
            )
        patch["days_completed"] = target.days_completed
        return await self.store.update_course_status(course_id, target.status, patch=patch)


def _write_progress(course: Any, progress: CourseProgress) -> None:
    if isinstance(course, dict):
        course["status"] = progress.status.value
        course["days_completed"] = progress.days_completed
        course["days_before_completion"] = progress.days_before_completion
        return

    course.status = progress.status
    course.days_completed = progress.days_completed
    course.days_before_completion = progress.days_before_completion
