"""
Schemas for derived reminders.

Notifications are computed from scheduled events on every load and are never
persisted.
"""

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationSeverity(enum.Enum):
    """How urgently a reminder should be presented."""

    INFO = "info"
    WARNING = "warning"


class Notification(BaseModel):
    """Upcoming-event reminder derived from a scheduled event."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stable id derived from the source event")
    event_id: Optional[str] = Field(None, description="Source event id")
    title: str = Field(..., description="Headline, e.g. 'Event tomorrow: Rabies'")
    message: str = Field(..., description="Full reminder text")
    severity: NotificationSeverity = Field(..., description="Presentation severity")
    source_at: datetime = Field(..., description="Parsed instant of the event")
    offset_days: int = Field(..., description="Whole days from today", ge=0)
    read_at: Optional[datetime] = Field(
        None, description="Session-local read timestamp"
    )

    @property
    def is_read(self) -> bool:
        return self.read_at is not None
