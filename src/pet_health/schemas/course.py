"""
Medication course Pydantic schemas for validation and serialization.
"""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.course import CourseStatus
from ..utils.validation import sanitize_string

# Upper bound on course length; longer plans are entered as several courses
MAX_DURATION_DAYS = 3650


class CourseBase(BaseModel):
    """Base Course schema with common fields."""

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    drug_name: str = Field(
        ..., description="Name of the medication", min_length=1, max_length=200
    )
    dosage: Optional[str] = Field(
        None, description="Dosage, free text (e.g. '1 tablet')", max_length=200
    )
    schedule: Optional[str] = Field(
        None, description="Administration schedule, free text", max_length=200
    )
    start_date: date = Field(..., description="First day of the course")
    duration_days: int = Field(
        ..., description="Course length in whole days", ge=0, le=MAX_DURATION_DAYS
    )
    instructions: Optional[str] = Field(
        None, description="Additional administration instructions"
    )

    @field_validator("drug_name")
    @classmethod
    def validate_drug_name(cls, v: str) -> str:
        """Validate drug name."""
        v = sanitize_string(v, max_length=200)
        if not v:
            raise ValueError("Drug name is required")
        return v


class CourseCreate(CourseBase):
    """Schema for creating a new medication course."""

    pet_id: UUID = Field(..., description="UUID of the treated pet")
    status: CourseStatus = Field(CourseStatus.ACTIVE, description="Initial status")
    days_completed: int = Field(0, description="Doses already registered", ge=0)

    @model_validator(mode="after")
    def validate_progress_within_duration(self) -> "CourseCreate":
        """Registered doses cannot exceed the course length."""
        if self.days_completed > self.duration_days:
            raise ValueError("Days completed cannot exceed the course duration")
        return self


class CourseUpdate(BaseModel):
    """
    Schema for editing course details.

    Progress and status are changed through the treatment tracker, not here.
    """

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    drug_name: Optional[str] = Field(
        None, description="Name of the medication", min_length=1, max_length=200
    )
    dosage: Optional[str] = Field(None, description="Dosage", max_length=200)
    schedule: Optional[str] = Field(
        None, description="Administration schedule", max_length=200
    )
    start_date: Optional[date] = Field(None, description="First day of the course")
    duration_days: Optional[int] = Field(
        None, description="Course length in whole days", ge=0, le=MAX_DURATION_DAYS
    )
    instructions: Optional[str] = Field(
        None, description="Additional administration instructions"
    )

    @field_validator("drug_name")
    @classmethod
    def validate_drug_name(cls, v: Optional[str]) -> Optional[str]:
        """Validate drug name."""
        if v is not None:
            return CourseBase.validate_drug_name(v)
        return v

    @model_validator(mode="after")
    def validate_at_least_one_field(self) -> "CourseUpdate":
        """Ensure at least one field is provided for update."""
        field_values = [getattr(self, name) for name in type(self).model_fields]

        if not any(value is not None for value in field_values):
            raise ValueError("At least one field must be provided for update")
        return self


class CourseResponse(BaseModel):
    """Schema for course response data."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: UUID = Field(..., description="Course's unique identifier")
    pet_id: UUID = Field(..., description="UUID of the treated pet")
    drug_name: str = Field(..., description="Name of the medication")
    dosage: Optional[str] = Field(None, description="Dosage")
    schedule: Optional[str] = Field(None, description="Administration schedule")
    start_date: date = Field(..., description="First day of the course")
    duration_days: int = Field(..., description="Course length in whole days")
    instructions: Optional[str] = Field(None, description="Instructions")
    status: CourseStatus = Field(..., description="Stored status")
    days_completed: int = Field(..., description="Doses registered")
    days_before_completion: Optional[int] = Field(
        None, description="Counter recorded before the course last completed"
    )
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
