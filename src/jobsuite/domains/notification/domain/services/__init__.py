"""Notification domain services."""

from .reminder_registry import ReminderRegistry

__all__ = ["ReminderRegistry"]
