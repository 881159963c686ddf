"""Shared application layer."""

from .exceptions import (
    ApplicationException,
    BusinessRuleException,
    NotFoundException,
)

__all__ = [
    "ApplicationException",
    "BusinessRuleException",
    "NotFoundException",
]
