"""
Pet Pydantic schemas for validation and serialization.

This module contains Pydantic schemas for Pet model validation,
including create, update, and response schemas.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.validation import validate_weight


class PetBase(BaseModel):
    """Base Pet schema with common fields."""

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    name: str = Field(..., description="Pet's name", min_length=1, max_length=100)
    species: str = Field(
        ..., description="Pet's species (dog, cat, ...)", min_length=1, max_length=50
    )
    breed: Optional[str] = Field(None, description="Pet's breed", max_length=100)
    birth_date: Optional[date] = Field(None, description="Pet's birth date")
    weight_kg: Optional[Decimal] = Field(
        None, description="Pet's weight in kilograms"
    )
    is_sterilized: bool = Field(
        False, description="Whether the pet is spayed or neutered"
    )
    photo_url: Optional[str] = Field(
        None, description="Public URL of the pet's photo", max_length=500
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate pet name."""
        if not v or not v.strip():
            raise ValueError("Pet name is required")

        # Letters (accented included), numbers, spaces, hyphens, apostrophes, periods
        if not re.match(r"^[\w\s\-'.]+$", v):
            raise ValueError(
                "Pet name can only contain letters, numbers, spaces, hyphens, apostrophes, and periods"
            )

        return v.strip()

    @field_validator("species")
    @classmethod
    def validate_species(cls, v: str) -> str:
        """Species is stored lower-cased."""
        return v.strip().lower()

    @field_validator("breed")
    @classmethod
    def validate_breed(cls, v: Optional[str]) -> Optional[str]:
        """Validate breed."""
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v

    @field_validator("birth_date")
    @classmethod
    def validate_birth_date(cls, v: Optional[date]) -> Optional[date]:
        """Validate birth date."""
        if v is not None and v > date.today():
            raise ValueError("Birth date cannot be in the future")
        return v

    @field_validator("weight_kg")
    @classmethod
    def validate_weight_kg(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        """Validate weight range."""
        if v is None:
            return v
        result = validate_weight(v)
        if not result.is_valid:
            raise ValueError(result.errors[0].message)
        return result.value

    @field_validator("photo_url")
    @classmethod
    def validate_photo_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate photo URL."""
        if v is not None:
            v = v.strip()
            if not v:
                return None
            if not v.startswith(("http://", "https://")):
                raise ValueError("Photo URL must start with http:// or https://")
        return v


class PetCreate(PetBase):
    """Schema for creating a new pet. The owner comes from the active session."""


class PetUpdate(BaseModel):
    """Schema for updating an existing pet."""

    model_config = ConfigDict(
        from_attributes=True,
        validate_assignment=True,
        str_strip_whitespace=True,
    )

    name: Optional[str] = Field(
        None, description="Pet's name", min_length=1, max_length=100
    )
    species: Optional[str] = Field(
        None, description="Pet's species", min_length=1, max_length=50
    )
    breed: Optional[str] = Field(None, description="Pet's breed", max_length=100)
    birth_date: Optional[date] = Field(None, description="Pet's birth date")
    weight_kg: Optional[Decimal] = Field(
        None, description="Pet's weight in kilograms"
    )
    is_sterilized: Optional[bool] = Field(
        None, description="Whether the pet is spayed or neutered"
    )
    photo_url: Optional[str] = Field(
        None, description="Public URL of the pet's photo", max_length=500
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        """Validate pet name."""
        if v is not None:
            return PetBase.validate_name(v)
        return v

    @field_validator("species")
    @classmethod
    def validate_species(cls, v: Optional[str]) -> Optional[str]:
        """Species is stored lower-cased."""
        if v is not None:
            return PetBase.validate_species(v)
        return v

    @field_validator("birth_date")
    @classmethod
    def validate_birth_date(cls, v: Optional[date]) -> Optional[date]:
        """Validate birth date."""
        return PetBase.validate_birth_date(v)

    @field_validator("weight_kg")
    @classmethod
    def validate_weight_kg(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        """Validate weight range."""
        return PetBase.validate_weight_kg(v)

    @field_validator("photo_url")
    @classmethod
    def validate_photo_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate photo URL."""
        return PetBase.validate_photo_url(v)

    @model_validator(mode="after")
    def validate_at_least_one_field(self) -> "PetUpdate":
        """Ensure at least one field is provided for update."""
        field_values = [getattr(self, name) for name in type(self).model_fields]

        if not any(value is not None for value in field_values):
            raise ValueError("At least one field must be provided for update")
        return self


class PetResponse(BaseModel):
    """Schema for pet response data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Pet's unique identifier")
    owner_id: UUID = Field(..., description="Owner's unique identifier")
    name: str = Field(..., description="Pet's name")
    species: str = Field(..., description="Pet's species")
    breed: Optional[str] = Field(None, description="Pet's breed")
    birth_date: Optional[date] = Field(None, description="Pet's birth date")
    weight_kg: Optional[Decimal] = Field(None, description="Pet's weight in kilograms")
    is_sterilized: bool = Field(
        ..., description="Whether the pet is spayed or neutered"
    )
    photo_url: Optional[str] = Field(None, description="Public URL of the pet's photo")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
