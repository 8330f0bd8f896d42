"""
Database models for the pet-health package.

This module contains SQLAlchemy models for pets, medication courses and
medical events.
"""

# Base model will be imported by all other models
from .base import Base, BaseModel
from .course import Course, CourseStatus
from .event import Event, EventStatus, EventType
from .pet import Pet

__all__ = [
    "Base",
    "BaseModel",
    "Pet",
    "Course",
    "CourseStatus",
    "Event",
    "EventStatus",
    "EventType",
]
