"""
Medical event model for the pet-health package.

Events are scheduled consultations, vaccinations, exams and similar entries
on a pet's calendar. They feed the notification window and the history
analytics.
"""

import datetime
import enum
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import CheckConstraint, Date, Enum, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, enum_values

if TYPE_CHECKING:
    from .pet import Pet


class EventType(enum.Enum):
    """Enumeration of medical event types."""

    CONSULT = "consult"
    VACCINATION = "vaccination"
    EXAM = "exam"
    MEDICATION = "medication"
    SURGERY = "surgery"
    OTHER = "other"


class EventStatus(enum.Enum):
    """Enumeration of medical event statuses."""

    SCHEDULED = "scheduled"
    DONE = "done"
    CANCELED = "canceled"


class Event(BaseModel):
    """Scheduled medical event for a pet."""

    __tablename__ = "events"

    def __init__(self, **kwargs: Any) -> None:
        """Initialize Event with default values."""
        if "status" not in kwargs:
            kwargs["status"] = EventStatus.SCHEDULED
        if "event_type" not in kwargs:
            kwargs["event_type"] = EventType.OTHER

        super().__init__(**kwargs)

    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="UUID of the pet",
    )

    title: Mapped[str] = mapped_column(
        String(200), nullable=False, comment="Short title of the event"
    )

    event_type: Mapped[EventType] = mapped_column(
        Enum(EventType, values_callable=enum_values),
        nullable=False,
        default=EventType.OTHER,
        index=True,
        comment="Kind of medical event",
    )

    status: Mapped[EventStatus] = mapped_column(
        Enum(EventStatus, values_callable=enum_values),
        nullable=False,
        default=EventStatus.SCHEDULED,
        index=True,
        comment="Current status of the event",
    )

    date: Mapped[datetime.date] = mapped_column(
        Date, nullable=False, index=True, comment="Calendar date of the event"
    )

    time: Mapped[Optional[str]] = mapped_column(
        String(5), nullable=True, comment="Local time of day, HH:MM"
    )

    price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2), nullable=True, comment="Cost of the event"
    )

    veterinarian: Mapped[Optional[str]] = mapped_column(
        String(200), nullable=True, comment="Name of the veterinarian"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Free text details"
    )

    pet: Mapped["Pet"] = relationship(back_populates="events")

    __table_args__ = (
        CheckConstraint("price IS NULL OR price >= 0", name="ck_events_price_non_negative"),
        Index("idx_events_pet_date", "pet_id", "date"),
    )

    def __repr__(self) -> str:
        """String representation of the Event model."""
        return f"<Event(id={self.id}, title='{self.title}', date={self.date})>"
