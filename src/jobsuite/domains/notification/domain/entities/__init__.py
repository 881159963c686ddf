"""Notification domain entities."""

from .reminder_job import (
    DispatchOutcome,
    DispatchResult,
    QueueStatus,
    ReminderJob,
    ReminderKind,
    ReminderSlot,
)

__all__ = [
    "DispatchOutcome",
    "DispatchResult",
    "QueueStatus",
    "ReminderJob",
    "ReminderKind",
    "ReminderSlot",
]
