"""Interview domain entities."""

from .interview import (
    ACTIVE_STATUSES,
    Interview,
    InterviewDecision,
    InterviewLocationType,
    InterviewStatus,
    InterviewType,
)
from .participants import InterviewContext, JobApplication, User

__all__ = [
    "ACTIVE_STATUSES",
    "Interview",
    "InterviewDecision",
    "InterviewLocationType",
    "InterviewStatus",
    "InterviewType",
    "InterviewContext",
    "JobApplication",
    "User",
]
