"""
Medical event Pydantic schemas for validation and serialization.
"""

import datetime
import re
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.event import EventStatus, EventType
from ..utils.validation import sanitize_string

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _validate_time(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not v:
        return None
    # Accept HH:MM:SS from time inputs but store HH:MM
    if len(v) == 8 and v.count(":") == 2:
        v = v[:5]
    if not _TIME_PATTERN.match(v):
        raise ValueError("Time must be in HH:MM format")
    return v


class EventBase(BaseModel):
    """Base Event schema with common fields."""

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    title: str = Field(..., description="Short title", min_length=1, max_length=200)
    event_type: EventType = Field(EventType.OTHER, description="Kind of event")
    status: EventStatus = Field(EventStatus.SCHEDULED, description="Event status")
    date: datetime.date = Field(..., description="Calendar date of the event")
    time: Optional[str] = Field(None, description="Local time of day, HH:MM")
    price: Optional[Decimal] = Field(
        None, description="Cost of the event", ge=0, max_digits=10, decimal_places=2
    )
    veterinarian: Optional[str] = Field(
        None, description="Name of the veterinarian", max_length=200
    )
    description: Optional[str] = Field(None, description="Free text details")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Validate title."""
        v = sanitize_string(v, max_length=200)
        if not v:
            raise ValueError("Event title is required")
        return v

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        """Validate time of day."""
        return _validate_time(v)


class EventCreate(EventBase):
    """Schema for creating a new medical event."""

    pet_id: UUID = Field(..., description="UUID of the pet")


class EventUpdate(BaseModel):
    """Schema for updating an existing medical event."""

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    title: Optional[str] = Field(
        None, description="Short title", min_length=1, max_length=200
    )
    event_type: Optional[EventType] = Field(None, description="Kind of event")
    status: Optional[EventStatus] = Field(None, description="Event status")
    date: Optional[datetime.date] = Field(None, description="Calendar date of the event")
    time: Optional[str] = Field(None, description="Local time of day, HH:MM")
    price: Optional[Decimal] = Field(
        None, description="Cost of the event", ge=0, max_digits=10, decimal_places=2
    )
    veterinarian: Optional[str] = Field(
        None, description="Name of the veterinarian", max_length=200
    )
    description: Optional[str] = Field(None, description="Free text details")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """Validate title."""
        if v is not None:
            return EventBase.validate_title(v)
        return v

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        """Validate time of day."""
        return _validate_time(v)

    @model_validator(mode="after")
    def validate_at_least_one_field(self) -> "EventUpdate":
        """Ensure at least one field is provided for update."""
        field_values = [getattr(self, name) for name in type(self).model_fields]

        if not any(value is not None for value in field_values):
            raise ValueError("At least one field must be provided for update")
        return self


class EventResponse(BaseModel):
    """Schema for event response data."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: UUID = Field(..., description="Event's unique identifier")
    pet_id: UUID = Field(..., description="UUID of the pet")
    title: str = Field(..., description="Short title")
    event_type: EventType = Field(..., description="Kind of event")
    status: EventStatus = Field(..., description="Event status")
    date: datetime.date = Field(..., description="Calendar date of the event")
    time: Optional[str] = Field(None, description="Local time of day")
    price: Optional[Decimal] = Field(None, description="Cost of the event")
    veterinarian: Optional[str] = Field(None, description="Veterinarian")
    description: Optional[str] = Field(None, description="Free text details")
    created_at: datetime.datetime = Field(..., description="Creation timestamp")
    updated_at: datetime.datetime = Field(..., description="Last update timestamp")
