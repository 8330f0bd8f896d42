"""
Medication course model for the pet-health package.

A course is a medication plan for one pet: a drug, a dosage, a start date and
a duration in whole days, with a progress counter of doses registered.
"""

import enum
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import CheckConstraint, Date, Enum, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, enum_values

if TYPE_CHECKING:
    from .pet import Pet


class CourseStatus(enum.Enum):
    """Stored status of a medication course."""

    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


class Course(BaseModel):
    """
    Medication course with stored status and progress counter.

    ``days_completed`` always stays within ``[0, duration_days]``; the
    database enforces this with check constraints. Mutations go through
    :class:`pet_health.services.treatment.TreatmentTracker`.
    """

    __tablename__ = "courses"

    def __init__(self, **kwargs: Any) -> None:
        """Initialize Course with default values."""
        if "status" not in kwargs:
            kwargs["status"] = CourseStatus.ACTIVE
        if "days_completed" not in kwargs:
            kwargs["days_completed"] = 0

        super().__init__(**kwargs)

    pet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("pets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="UUID of the treated pet",
    )

    drug_name: Mapped[str] = mapped_column(
        String(200), nullable=False, comment="Name of the medication"
    )

    dosage: Mapped[Optional[str]] = mapped_column(
        String(200), nullable=True, comment="Dosage, free text (e.g. '1 tablet')"
    )

    schedule: Mapped[Optional[str]] = mapped_column(
        String(200), nullable=True, comment="Administration schedule, free text"
    )

    start_date: Mapped[date] = mapped_column(
        Date, nullable=False, comment="First day of the course"
    )

    duration_days: Mapped[int] = mapped_column(
        nullable=False, default=0, comment="Course length in whole days"
    )

    instructions: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="Additional administration instructions"
    )

    status: Mapped[CourseStatus] = mapped_column(
        Enum(CourseStatus, values_callable=enum_values),
        nullable=False,
        default=CourseStatus.ACTIVE,
        index=True,
        comment="Stored status of the course",
    )

    days_completed: Mapped[int] = mapped_column(
        nullable=False, default=0, comment="Number of doses registered"
    )

    days_before_completion: Mapped[Optional[int]] = mapped_column(
        nullable=True,
        comment="Counter value recorded just before the course last became completed",
    )

    pet: Mapped["Pet"] = relationship(back_populates="courses")

    __table_args__ = (
        CheckConstraint("duration_days >= 0", name="ck_courses_duration_non_negative"),
        CheckConstraint(
            "days_completed >= 0 AND days_completed <= duration_days",
            name="ck_courses_days_completed_in_range",
        ),
        Index("idx_courses_pet_status", "pet_id", "status"),
    )

    def __repr__(self) -> str:
        """String representation of the Course model."""
        return (
            f"<Course(id={self.id}, drug_name='{self.drug_name}', "
            f"status='{self.status.value}', days={self.days_completed}/{self.duration_days})>"
        )
