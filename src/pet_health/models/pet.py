"""
Pet model for the pet-health package.

This module contains the Pet SQLAlchemy model. Every pet belongs to exactly
one owner and all queries are scoped through ``owner_id``.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import Boolean, CheckConstraint, Date, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..utils.datetime_utils import calculate_pet_age, format_pet_age
from .base import BaseModel

if TYPE_CHECKING:
    from .course import Course
    from .event import Event


class Pet(BaseModel):
    """
    Pet registered by an owner.

    Courses and medical events hang off the pet and are removed with it.
    """

    __tablename__ = "pets"

    def __init__(self, **kwargs: Any) -> None:
        """Initialize Pet with default values."""
        if "is_sterilized" not in kwargs:
            kwargs["is_sterilized"] = False

        super().__init__(**kwargs)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        nullable=False,
        index=True,
        comment="UUID of the owning account",
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False, comment="Pet's name")

    species: Mapped[str] = mapped_column(
        String(50), nullable=False, comment="Pet's species (dog, cat, ...)"
    )

    breed: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True, comment="Pet's breed"
    )

    birth_date: Mapped[Optional[date]] = mapped_column(
        Date, nullable=True, comment="Pet's birth date"
    )

    weight_kg: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(6, 2), nullable=True, comment="Current weight in kilograms"
    )

    is_sterilized: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether the pet is spayed or neutered",
    )

    photo_url: Mapped[Optional[str]] = mapped_column(
        String(500), nullable=True, comment="Public URL of the pet's photo"
    )

    courses: Mapped[List["Course"]] = relationship(
        back_populates="pet", cascade="all, delete-orphan", passive_deletes=True
    )
    events: Mapped[List["Event"]] = relationship(
        back_populates="pet", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint(
            "weight_kg IS NULL OR weight_kg > 0", name="ck_pets_weight_positive"
        ),
        Index("idx_pets_owner_name", "owner_id", "name"),
    )

    def __repr__(self) -> str:
        """String representation of the Pet model."""
        return f"<Pet(id={self.id}, name='{self.name}', owner_id={self.owner_id})>"

    def age_in_years(self, reference_date: Optional[date] = None) -> Optional[int]:
        """Completed years since birth, or None without a birth date."""
        if not self.birth_date:
            return None
        reference_date = reference_date or date.today()
        if self.birth_date > reference_date:
            return 0
        return calculate_pet_age(self.birth_date, reference_date)["years"]

    def age_display(self, reference_date: Optional[date] = None) -> str:
        """Human-readable age such as ``"2 years, 3 months"``."""
        if not self.birth_date:
            return "Unknown"
        reference_date = reference_date or date.today()
        if self.birth_date > reference_date:
            return "0 days"
        return format_pet_age(calculate_pet_age(self.birth_date, reference_date))

    @property
    def weight_display(self) -> str:
        """Get a human-readable weight display in kg."""
        if self.weight_kg:
            return f"{self.weight_kg} kg"
        return "Unknown"
