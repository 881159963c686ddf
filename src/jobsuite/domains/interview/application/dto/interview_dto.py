"""
Data Transfer Objects for interview operations.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, field_validator

from jobsuite.domains.interview.domain.entities.interview import (
    Interview,
    InterviewDecision,
    InterviewLocationType,
    InterviewStatus,
    InterviewType,
)
from jobsuite.domains.notification.domain.entities.reminder_job import QueueStatus
from jobsuite.shared.domain.types import ensure_utc


def _validate_timezone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Invalid timezone: {value}")
    return value


class LocationDTO(BaseModel):
    type: InterviewLocationType = InterviewLocationType.VIRTUAL
    address: Optional[str] = None
    building: Optional[str] = None
    room: Optional[str] = None


class MeetingDetailsDTO(BaseModel):
    platform: Optional[str] = None
    meeting_url: Optional[str] = None
    meeting_id: Optional[str] = None
    passcode: Optional[str] = None


class InterviewerDTO(BaseModel):
    name: str
    title: Optional[str] = None
    email: Optional[str] = None
    is_lead: bool = False


class FollowUpDTO(BaseModel):
    """Candidate-reported follow-up state."""

    thank_you_sent: Optional[bool] = None
    decision: Optional[InterviewDecision] = None


class InterviewCreateDTO(BaseModel):
    """DTO for scheduling an interview."""

    user_id: str = Field(..., description="Owner of the interview")
    application_id: str = Field(..., description="Job application the interview belongs to")
    type: InterviewType = Field(..., description="Interview format")
    scheduled_date: datetime = Field(..., description="Start time; naive values are read as UTC")
    duration: int = Field(60, ge=15, le=480, description="Length in minutes")
    title: Optional[str] = Field(None, max_length=200)
    round: int = Field(1, ge=1, le=20)
    timezone: str = Field("UTC", description="IANA time zone used in email copy")
    location: Optional[LocationDTO] = None
    meeting_details: Optional[MeetingDetailsDTO] = None
    interviewers: List[InterviewerDTO] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=5000)

    @field_validator("scheduled_date")
    @classmethod
    def normalize_scheduled_date(cls, v):
        return ensure_utc(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        return _validate_timezone(v)


class InterviewUpdateDTO(BaseModel):
    """DTO for updating an interview. Only fields that are set are applied."""

    type: Optional[InterviewType] = None
    scheduled_date: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=15, le=480)
    title: Optional[str] = Field(None, max_length=200)
    round: Optional[int] = Field(None, ge=1, le=20)
    timezone: Optional[str] = None
    status: Optional[InterviewStatus] = None
    location: Optional[LocationDTO] = None
    meeting_details: Optional[MeetingDetailsDTO] = None
    interviewers: Optional[List[InterviewerDTO]] = None
    notes: Optional[str] = Field(None, max_length=5000)
    follow_up: Optional[FollowUpDTO] = None

    @field_validator("scheduled_date")
    @classmethod
    def normalize_scheduled_date(cls, v):
        return ensure_utc(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        return _validate_timezone(v)


class InterviewCancelDTO(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class ReminderTriggerDTO(BaseModel):
    """Manual reminder trigger. The slot name is validated by the endpoint."""

    reminder_type: str = Field("one_hour", description="one_day, four_hours, one_hour, fifteen_mins or thank_you")


class InterviewResponseDTO(BaseModel):
    """DTO for interview responses."""

    id: str
    user_id: str
    application_id: str
    title: str
    type: str
    round: int
    scheduled_date: datetime
    end_date: datetime
    duration: int
    timezone: str
    status: str
    location: Dict[str, Any] = Field(default_factory=dict)
    meeting_details: Dict[str, Any] = Field(default_factory=dict)
    interviewers: List[Dict[str, Any]] = Field(default_factory=list)
    notes: Optional[str] = None
    follow_up: Dict[str, Any] = Field(default_factory=dict)
    notifications: Dict[str, Any] = Field(default_factory=dict)
    version: int = 1
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, interview: Interview) -> "InterviewResponseDTO":
        """Create DTO from Interview entity."""
        return cls(
            id=interview.id,
            user_id=interview.user_id,
            application_id=interview.application_id,
            title=interview.title,
            type=interview.type.value,
            round=interview.round,
            scheduled_date=interview.scheduled_date,
            end_date=interview.end_date,
            duration=interview.duration,
            timezone=interview.timezone,
            status=interview.status.value,
            location=interview.location,
            meeting_details=interview.meeting_details,
            interviewers=interview.interviewers,
            notes=interview.notes,
            follow_up=interview.follow_up,
            notifications=interview.notifications,
            version=interview.version,
            created_at=interview.created_at,
            updated_at=interview.updated_at,
        )


class QueueStatusDTO(BaseModel):
    """Reminder registry snapshot."""

    running: bool
    total_jobs: int
    pending_jobs: int
    executed_jobs: int
    retrying_jobs: int
    jobs_by_type: Dict[str, int] = Field(default_factory=dict)

    @classmethod
    def from_status(cls, status: QueueStatus, running: bool) -> "QueueStatusDTO":
        return cls(
            running=running,
            total_jobs=status.total_jobs,
            pending_jobs=status.pending_jobs,
            executed_jobs=status.executed_jobs,
            retrying_jobs=status.retrying_jobs,
            jobs_by_type=status.jobs_by_type,
        )
