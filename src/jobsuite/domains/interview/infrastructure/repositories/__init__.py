"""Interview repositories."""

from .interview_repository import InterviewRepository
from .participant_repository import JobApplicationRepository, UserRepository

__all__ = ["InterviewRepository", "JobApplicationRepository", "UserRepository"]
