"""Shared domain concepts and base classes."""

from .base import Entity, ValueObject
from .exceptions import DomainException, InvalidStateException, ValidationException
from .types import EntityId, ensure_utc, utc_now

__all__ = [
    "Entity",
    "ValueObject",
    "DomainException",
    "InvalidStateException",
    "ValidationException",
    "EntityId",
    "ensure_utc",
    "utc_now",
]
