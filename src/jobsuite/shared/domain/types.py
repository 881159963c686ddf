"""
Shared domain types and value objects.
"""

from datetime import datetime, timezone
from typing import Optional

from bson import ObjectId
from pydantic import Field, field_validator

from .base import ValueObject
from .exceptions import ValidationException


class EntityId(ValueObject):
    """Value object for entity identifiers backed by MongoDB ObjectIds."""

    value: str = Field(...)

    @field_validator("value")
    @classmethod
    def validate_id(cls, v):
        if not v or not v.strip():
            raise ValidationException("ID cannot be empty")
        return v.strip()

    @classmethod
    def generate(cls) -> "EntityId":
        """Generate a new unique ID."""
        return cls(value=str(ObjectId()))

    def __str__(self) -> str:
        return self.value


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
