"""
Base model class for all SQLAlchemy models in the pet-health package.

This module provides the foundational base model class that all other models
inherit from, including common fields and utility methods.

The BaseModel class follows modern SQLAlchemy 2.0 patterns with:
- UUID primary keys for distributed system compatibility
- Automatic timestamp management for audit trails
- Common utility methods for data conversion and in-place updates

Example:
    >>> from pet_health.models.base import BaseModel
    >>> from sqlalchemy.orm import Mapped, mapped_column
    >>> from sqlalchemy import String

    >>> class MyModel(BaseModel):
    ...     __tablename__ = "my_table"
    ...     name: Mapped[str] = mapped_column(String(100))

    >>> instance = MyModel(name="Test")
    >>> data = instance.to_dict()
    >>> print(data['name'])  # "Test"
"""

import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Type, TypeVar

from sqlalchemy import DateTime, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func

# Type variable for model classes
T = TypeVar("T", bound="BaseModel")


def utc_now() -> datetime:
    """Timestamp factory for audit columns."""
    return datetime.now(timezone.utc)


def enum_values(enum_class: Type[enum.Enum]) -> List[str]:
    """Persist enum columns by value ("active") rather than by member name."""
    return [member.value for member in enum_class]


class Base(DeclarativeBase):
    """
    Base declarative class for all SQLAlchemy models.

    Maps ``uuid.UUID`` annotations to the portable ``Uuid`` type so the same
    models run on PostgreSQL and SQLite.
    """

    type_annotation_map = {
        uuid.UUID: Uuid(as_uuid=True),
    }


class BaseModel(Base):
    """
    Abstract base model class providing common functionality for all entities.

    - **UUID Primary Keys**: Uses UUID4 generated client-side
    - **Audit Fields**: Creation and modification timestamps (UTC)
    - **Utility Methods**: Dictionary conversion and validated bulk updates

    Attributes:
        id (UUID): Primary key, automatically generated UUID4
        created_at (datetime): Timestamp when record was created (UTC)
        updated_at (datetime): Timestamp when record was last updated (UTC)

    Note:
        This is an abstract base class and cannot be instantiated directly.
        All concrete models must define a __tablename__ attribute.
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Audit fields. Python-side defaults keep the values loaded after a flush,
    # so async sessions never need a lazy refresh to read them.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
    )

    def __repr__(self) -> str:
        """Return string representation in format: <ModelName(id=uuid)>."""
        return f"<{self.__class__.__name__}(id={self.id})>"

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert model instance to dictionary representation.

        Converts all column values to JSON-serializable types:
        - date and datetime objects to ISO format strings
        - UUID objects to string representation
        - Enum members to their values
        - Decimal values to strings
        - Other types remain unchanged

        Returns:
            Dictionary with column names as keys and serialized values.
        """
        result: Dict[str, Any] = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, (datetime, date)):
                result[column.key] = value.isoformat()
            elif isinstance(value, uuid.UUID):
                result[column.key] = str(value)
            elif isinstance(value, enum.Enum):
                result[column.key] = value.value
            elif isinstance(value, Decimal):
                result[column.key] = str(value)
            else:
                result[column.key] = value
        return result

    @classmethod
    def get_table_name(cls) -> str:
        """Get the database table name for this model."""
        return cls.__tablename__

    def update_fields(self, **kwargs: Any) -> None:
        """
        Update multiple fields on the model instance in a single operation.

        Args:
            **kwargs: Field names as keys and new values as values.
                     Only existing model attributes can be updated.

        Raises:
            AttributeError: If any field name doesn't exist on the model.

        Note:
            This method only modifies the instance. You must commit the
            transaction to persist changes to the database.
        """
        for field, value in kwargs.items():
            if hasattr(self, field):
                setattr(self, field, value)
            else:
                raise AttributeError(
                    f"'{self.__class__.__name__}' has no attribute '{field}'"
                )
