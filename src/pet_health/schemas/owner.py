"""
Owner profile schemas.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OwnerProfile(BaseModel):
    """Profile of the signed-in owner."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(..., description="Owner's unique identifier")
    email: Optional[str] = Field(None, description="Contact email", max_length=255)
    full_name: Optional[str] = Field(None, description="Display name", max_length=200)
    phone_number: Optional[str] = Field(None, description="Contact phone", max_length=20)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        """Basic email shape check; stored lower-cased."""
        if v is None:
            return v
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Invalid email address")
        return v.lower()


class OwnerProfileUpdate(BaseModel):
    """Fields the owner may change on their profile."""

    model_config = ConfigDict(str_strip_whitespace=True)

    email: Optional[str] = Field(None, max_length=255)
    full_name: Optional[str] = Field(None, max_length=200)
    phone_number: Optional[str] = Field(None, max_length=20)
