"""Interview DTOs."""

from .interview_dto import (
    FollowUpDTO,
    InterviewCancelDTO,
    InterviewCreateDTO,
    InterviewerDTO,
    InterviewResponseDTO,
    InterviewUpdateDTO,
    LocationDTO,
    MeetingDetailsDTO,
    QueueStatusDTO,
    ReminderTriggerDTO,
)

__all__ = [
    "FollowUpDTO",
    "InterviewCancelDTO",
    "InterviewCreateDTO",
    "InterviewerDTO",
    "InterviewResponseDTO",
    "InterviewUpdateDTO",
    "LocationDTO",
    "MeetingDetailsDTO",
    "QueueStatusDTO",
    "ReminderTriggerDTO",
]
