"""
Pydantic schemas for data validation and serialization.

This module contains Pydantic schemas for store input validation, response
serialization and the derived notification and analytics outputs.
"""

from .analytics import EventAnalyticsSnapshot, TimelineBucket
from .course import CourseCreate, CourseResponse, CourseUpdate
from .event import EventCreate, EventResponse, EventUpdate
from .notification import Notification, NotificationSeverity
from .owner import OwnerProfile, OwnerProfileUpdate
from .pet import PetCreate, PetResponse, PetUpdate

__all__ = [
    # Pet schemas
    "PetCreate",
    "PetUpdate",
    "PetResponse",
    # Course schemas
    "CourseCreate",
    "CourseUpdate",
    "CourseResponse",
    # Event schemas
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    # Owner schemas
    "OwnerProfile",
    "OwnerProfileUpdate",
    # Derived outputs
    "Notification",
    "NotificationSeverity",
    "TimelineBucket",
    "EventAnalyticsSnapshot",
]
