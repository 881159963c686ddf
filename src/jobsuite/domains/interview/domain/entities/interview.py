"""
Interview aggregate.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from jobsuite.shared.domain.base import Entity
from jobsuite.shared.domain.exceptions import InvalidStateException
from jobsuite.shared.domain.types import ensure_utc, utc_now


class InterviewStatus(str, Enum):
    """Interview lifecycle status."""
    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"
    NO_SHOW = "no_show"
    PENDING_CONFIRMATION = "pending_confirmation"


# Statuses for which reminders are still delivered
ACTIVE_STATUSES = frozenset({InterviewStatus.SCHEDULED, InterviewStatus.CONFIRMED})


class InterviewType(str, Enum):
    """Interview format."""
    PHONE = "phone"
    VIDEO = "video"
    ON_SITE = "on_site"
    TECHNICAL = "technical"
    BEHAVIORAL = "behavioral"
    CASE_STUDY = "case_study"
    PRESENTATION = "presentation"
    PANEL = "panel"
    FINAL = "final"
    HR_SCREEN = "hr_screen"


class InterviewLocationType(str, Enum):
    VIRTUAL = "virtual"
    ON_SITE = "on_site"
    PHONE = "phone"


class InterviewDecision(str, Enum):
    PASSED = "passed"
    REJECTED = "rejected"
    PENDING = "pending"


class HistoryAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    RESCHEDULED = "rescheduled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


REMINDER_FIELDS = (
    "one_day_before",
    "four_hours_before",
    "one_hour_before",
    "fifteen_mins_before",
)

DEFAULT_DURATION_MINUTES = 60
DEFAULT_TIMEZONE = "UTC"


def default_notifications() -> Dict[str, Any]:
    """Fresh notification tracking document."""
    return {
        "email_confirmation_sent": False,
        "calendar_invite_sent": False,
        "reminders": {name: {"sent": False, "sent_at": None} for name in REMINDER_FIELDS},
        "follow_up_reminders": {
            "thank_you": {"sent": False, "sent_at": None},
            "decision_follow_up": {"sent": False, "sent_at": None},
        },
    }


class Interview(Entity[str]):
    """
    Interview aggregate root.

    Owns the schedule, status and the notification tracking document that
    the reminder dispatcher writes back to.
    """

    def __init__(
        self,
        interview_id: str,
        user_id: str,
        application_id: str,
        interview_type: InterviewType,
        scheduled_date: datetime,
        duration: int = DEFAULT_DURATION_MINUTES,
        title: Optional[str] = None,
        round: int = 1,
        timezone: str = DEFAULT_TIMEZONE,
        status: InterviewStatus = InterviewStatus.SCHEDULED,
        location: Optional[Dict[str, Any]] = None,
        meeting_details: Optional[Dict[str, Any]] = None,
        interviewers: Optional[List[Dict[str, Any]]] = None,
        notes: Optional[str] = None,
        follow_up: Optional[Dict[str, Any]] = None,
        notifications: Optional[Dict[str, Any]] = None,
        history: Optional[List[Dict[str, Any]]] = None,
        version: int = 1,
        end_date: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        super().__init__(interview_id)
        self.user_id = user_id
        self.application_id = application_id
        self.type = InterviewType(interview_type)
        self.round = round
        self.title = title or f"{self.type_label} Interview - Round {round}"
        self.scheduled_date = ensure_utc(scheduled_date)
        self.duration = duration
        self.end_date = ensure_utc(end_date) or self.scheduled_date + timedelta(minutes=duration)
        self.timezone = timezone
        self.status = InterviewStatus(status)
        self.location = location or {}
        self.meeting_details = meeting_details or {}
        self.interviewers = interviewers or []
        self.notes = notes
        self.follow_up = follow_up or {"thank_you_sent": False, "thank_you_sent_date": None, "decision": None}
        self.notifications = notifications or default_notifications()
        self.history = history or []
        self.version = version
        self.created_at = ensure_utc(created_at) or utc_now()
        self.updated_at = ensure_utc(updated_at) or self.created_at

    @property
    def type_label(self) -> str:
        return self.type.value.replace("_", " ").title()

    @property
    def is_active(self) -> bool:
        """Whether reminders should still be delivered."""
        return self.status in ACTIVE_STATUSES

    def is_upcoming(self, now: Optional[datetime] = None) -> bool:
        return self.scheduled_date > (now or utc_now())

    @property
    def scheduled_since(self) -> datetime:
        """When the current schedule was set: creation or the latest reschedule."""
        for entry in reversed(self.history):
            if entry.get("action") in (HistoryAction.CREATED.value, HistoryAction.RESCHEDULED.value):
                timestamp = entry.get("timestamp")
                if timestamp:
                    return ensure_utc(timestamp)
        return self.created_at

    @property
    def thank_you_note_sent(self) -> bool:
        """Whether the candidate has recorded sending a thank-you note."""
        return bool(self.follow_up.get("thank_you_sent"))

    def notification_sent(self, field_path: str) -> bool:
        """Read a ``sent`` flag by its dotted path under ``notifications``."""
        node: Any = self.notifications
        for part in field_path.split("."):
            if not isinstance(node, dict):
                return False
            node = node.get(part)
        return bool(node and node.get("sent"))

    def add_history(self, action: HistoryAction, details: str, previous_data: Optional[Dict[str, Any]] = None) -> None:
        entry = {
            "action": action.value,
            "timestamp": utc_now(),
            "user_id": self.user_id,
            "details": details,
        }
        if previous_data:
            entry["previous_data"] = previous_data
        self.history.append(entry)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "scheduled_date": self.scheduled_date,
            "duration": self.duration,
            "status": self.status.value,
            "type": self.type.value,
        }

    def reschedule(self, new_date: datetime, duration: Optional[int] = None) -> datetime:
        """Move the interview, reset its pre-interview reminder flags and return the old date."""
        if self.status in (InterviewStatus.CANCELLED, InterviewStatus.COMPLETED):
            raise InvalidStateException(f"Cannot reschedule interview in status: {self.status.value}")

        previous = self.snapshot()
        old_date = self.scheduled_date
        self.scheduled_date = ensure_utc(new_date)
        if duration is not None:
            self.duration = duration
        self.end_date = self.scheduled_date + timedelta(minutes=self.duration)

        self.notifications.setdefault("reminders", {})
        for name in REMINDER_FIELDS:
            self.notifications["reminders"][name] = {"sent": False, "sent_at": None}

        self.version += 1
        self.add_history(
            HistoryAction.RESCHEDULED,
            f"Rescheduled from {old_date.isoformat()}",
            previous,
        )
        self.updated_at = utc_now()
        return old_date

    def cancel(self, reason: Optional[str] = None) -> bool:
        """Cancel the interview. Returns whether it was active beforehand."""
        if self.status == InterviewStatus.CANCELLED:
            return False

        was_active = self.is_active
        previous = self.snapshot()
        self.status = InterviewStatus.CANCELLED
        self.add_history(HistoryAction.CANCELLED, reason or "Interview cancelled", previous)
        self.updated_at = utc_now()
        return was_active

    def to_document(self) -> Dict[str, Any]:
        """Persisted representation, without ``_id``."""
        return {
            "user_id": self.user_id,
            "application_id": self.application_id,
            "title": self.title,
            "type": self.type.value,
            "round": self.round,
            "scheduled_date": self.scheduled_date,
            "end_date": self.end_date,
            "duration": self.duration,
            "timezone": self.timezone,
            "status": self.status.value,
            "location": self.location,
            "meeting_details": self.meeting_details,
            "interviewers": self.interviewers,
            "notes": self.notes,
            "follow_up": self.follow_up,
            "notifications": self.notifications,
            "history": self.history,
            "version": self.version,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Interview":
        return cls(
            interview_id=str(document["_id"]),
            user_id=str(document["user_id"]),
            application_id=str(document["application_id"]),
            interview_type=document["type"],
            scheduled_date=document["scheduled_date"],
            duration=document.get("duration", DEFAULT_DURATION_MINUTES),
            title=document.get("title"),
            round=document.get("round", 1),
            timezone=document.get("timezone", DEFAULT_TIMEZONE),
            status=document.get("status", InterviewStatus.SCHEDULED.value),
            location=document.get("location"),
            meeting_details=document.get("meeting_details"),
            interviewers=document.get("interviewers"),
            notes=document.get("notes"),
            follow_up=document.get("follow_up"),
            notifications=document.get("notifications"),
            history=document.get("history"),
            version=document.get("version", 1),
            end_date=document.get("end_date"),
            created_at=document.get("created_at"),
            updated_at=document.get("updated_at"),
        )
