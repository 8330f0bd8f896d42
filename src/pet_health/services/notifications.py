"""
Upcoming-event reminders.

Reminders are derived from the owner's scheduled events on every load: events
within the look-ahead window produce one notification each, sorted by the
parsed event instant and truncated to the earliest few. Nothing here is
persisted.
"""

import logging
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from ..schemas.notification import Notification, NotificationSeverity
from ..utils.config import PetHealthSettings
from ..utils.datetime_utils import days_between, local_now, parse_flexible_date
from ..utils.validation import enum_value, field_value

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30
DEFAULT_LIMIT = 10

# Offsets at or below this are shown as warnings
WARNING_OFFSET_DAYS = 1

_CLOSED_STATUSES = frozenset({"done", "canceled"})

FALLBACK_PET_NAME = "your pet"
FALLBACK_EVENT_TYPE = "Appointment"


def notification_id(event_id: Any) -> str:
    """Stable notification id for a source event."""
    return f"event-{event_id}"


def event_pet_name(event: Any) -> Optional[str]:
    """Name of the event's pet from a loaded relationship or a joined column."""
    name = field_value(field_value(event, "pet"), "name")
    return name or field_value(event, "pet_name")


def is_open_event(event: Any) -> bool:
    """Scheduled, or without a status at all."""
    status = enum_value(field_value(event, "status"))
    if not status:
        return True
    return str(status).lower() not in _CLOSED_STATUSES


def _title(offset_days: int, event_title: Any) -> str:
    if offset_days == 0:
        return f"Event today: {event_title}"
    if offset_days == 1:
        return f"Event tomorrow: {event_title}"
    return f"Event in {offset_days} days"


def _message(event: Any, instant: datetime) -> str:
    event_type = enum_value(field_value(event, "event_type")) or FALLBACK_EVENT_TYPE
    pet_name = event_pet_name(event) or FALLBACK_PET_NAME
    message = f"{str(event_type).upper()} with {pet_name} on {instant.strftime('%d/%m/%Y')}"
    event_time = field_value(event, "time")
    if event_time:
        message += f" at {event_time}"
    return message + "."


def build_notifications(
    events: Iterable[Any],
    now: Optional[datetime] = None,
    window_days: int = DEFAULT_WINDOW_DAYS,
    limit: int = DEFAULT_LIMIT,
) -> List[Notification]:
    """
    Build reminders for scheduled events inside the look-ahead window.

    Args:
        events: Event models or mapping rows, across all of the owner's pets
        now: Reference time, defaults to local now
        window_days: Last day offset (inclusive) that still produces a reminder
        limit: Maximum number of reminders returned

    Returns:
        Notifications sorted ascending by event instant, at most ``limit``
    """
    now = now or local_now()
    candidates: List[Tuple[datetime, Notification]] = []

    for event in events:
        if not is_open_event(event):
            continue

        instant = parse_flexible_date(field_value(event, "date"))
        if instant is None:
            continue

        offset_days = days_between(now, instant)
        if offset_days < 0 or offset_days > window_days:
            continue

        event_id = field_value(event, "id")
        candidates.append(
            (
                instant,
                Notification(
                    id=notification_id(event_id),
                    event_id=str(event_id) if event_id is not None else None,
                    title=_title(offset_days, field_value(event, "title")),
                    message=_message(event, instant),
                    severity=(
                        NotificationSeverity.WARNING
                        if offset_days <= WARNING_OFFSET_DAYS
                        else NotificationSeverity.INFO
                    ),
                    source_at=instant,
                    offset_days=offset_days,
                ),
            )
        )

    candidates.sort(key=lambda item: item[0])
    return [notification for _, notification in candidates[:limit]]


class NotificationWindow:
    """Reminder builder bound to a window size and a result limit."""

    def __init__(self, window_days: int = DEFAULT_WINDOW_DAYS, limit: int = DEFAULT_LIMIT):
        if window_days < 0:
            raise ValueError("window_days cannot be negative")
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.window_days = window_days
        self.limit = limit

    @classmethod
    def from_settings(cls, settings: PetHealthSettings) -> "NotificationWindow":
        return cls(
            window_days=settings.notification_window_days,
            limit=settings.notification_limit,
        )

    def build(
        self, events: Iterable[Any], now: Optional[datetime] = None
    ) -> List[Notification]:
        notifications = build_notifications(
            events, now=now, window_days=self.window_days, limit=self.limit
        )
        logger.debug(f"Built {len(notifications)} notifications")
        return notifications
