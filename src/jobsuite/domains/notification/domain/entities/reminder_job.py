"""
Reminder job domain objects.

A reminder job is one pending notification for one interview slot. Jobs live
only in the in-process registry and are deleted once they fire or are
cancelled.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional


class ReminderKind(str, Enum):
    """Which trigger cadence processes a job."""
    REMINDER = "reminder"
    THANK_YOU = "thank_you"
    FOLLOW_UP = "follow_up"


class ReminderSlot(str, Enum):
    """Named fire offsets relative to the interview start."""
    ONE_DAY = "one_day"
    FOUR_HOURS = "four_hours"
    ONE_HOUR = "one_hour"
    FIFTEEN_MINS = "fifteen_mins"
    THANK_YOU = "thank_you"

    @property
    def offset(self) -> timedelta:
        return _SLOT_OFFSETS[self]

    @property
    def kind(self) -> ReminderKind:
        if self is ReminderSlot.THANK_YOU:
            return ReminderKind.THANK_YOU
        return ReminderKind.REMINDER

    @property
    def label(self) -> str:
        """Human readable lead time used in email copy."""
        return _SLOT_LABELS[self]

    @property
    def notification_field(self) -> str:
        """Path of the persisted sent flag under ``notifications``."""
        if self is ReminderSlot.THANK_YOU:
            return "follow_up_reminders.thank_you"
        return f"reminders.{self.value}_before"

    def fire_time(self, scheduled_date: datetime) -> datetime:
        """Wall-clock time this slot fires for an interview."""
        return scheduled_date + self.offset

    @classmethod
    def reminder_slots(cls):
        """The four pre-interview slots, earliest first."""
        return [cls.ONE_DAY, cls.FOUR_HOURS, cls.ONE_HOUR, cls.FIFTEEN_MINS]


_SLOT_OFFSETS = {
    ReminderSlot.ONE_DAY: timedelta(hours=-24),
    ReminderSlot.FOUR_HOURS: timedelta(hours=-4),
    ReminderSlot.ONE_HOUR: timedelta(hours=-1),
    ReminderSlot.FIFTEEN_MINS: timedelta(minutes=-15),
    ReminderSlot.THANK_YOU: timedelta(hours=24),
}

_SLOT_LABELS = {
    ReminderSlot.ONE_DAY: "24 hours",
    ReminderSlot.FOUR_HOURS: "4 hours",
    ReminderSlot.ONE_HOUR: "1 hour",
    ReminderSlot.FIFTEEN_MINS: "15 minutes",
    ReminderSlot.THANK_YOU: "24 hours after",
}


def make_job_id(interview_id: str, slot: ReminderSlot) -> str:
    return f"{interview_id}-{slot.value}"


@dataclass(eq=False)
class ReminderJob:
    """A scheduled notification for one (interview, slot) pair."""
    interview_id: str
    user_id: str
    slot: ReminderSlot
    fires_at: datetime
    executed: bool = False
    attempts: int = 0
    last_error: Optional[str] = None
    id: str = field(init=False)

    def __post_init__(self):
        self.id = make_job_id(self.interview_id, self.slot)

    @property
    def kind(self) -> ReminderKind:
        return self.slot.kind

    def is_due(self, now: datetime) -> bool:
        return not self.executed and self.fires_at <= now

    def record_failure(self, error: str) -> None:
        self.attempts += 1
        self.last_error = error


class DispatchOutcome(str, Enum):
    """Result of processing one due job in a trigger tick."""
    SENT = "sent"
    SKIPPED_MISSING = "skipped_missing"
    SKIPPED_INACTIVE = "skipped_inactive"
    SKIPPED_ALREADY_SENT = "skipped_already_sent"
    SKIPPED_STALE = "skipped_stale"
    RETRY = "retry"
    FAILED = "failed"


@dataclass(frozen=True)
class DispatchResult:
    """Per-job outcome of one trigger tick."""
    job_id: str
    interview_id: str
    slot: ReminderSlot
    outcome: DispatchOutcome
    attempts: int = 0
    error: Optional[str] = None

    @classmethod
    def for_job(cls, job: ReminderJob, outcome: DispatchOutcome, error: Optional[str] = None) -> "DispatchResult":
        return cls(
            job_id=job.id,
            interview_id=job.interview_id,
            slot=job.slot,
            outcome=outcome,
            attempts=job.attempts,
            error=error,
        )


@dataclass(frozen=True)
class QueueStatus:
    """Snapshot of registry contents."""
    total_jobs: int
    pending_jobs: int
    executed_jobs: int
    retrying_jobs: int
    jobs_by_type: Dict[str, int]
