"""
Records the interview subsystem reads but does not own.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from .interview import Interview


@dataclass
class User:
    """Interview owner and email recipient."""
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.first_name:
            return f"{self.first_name} {self.last_name or ''}".strip()
        return self.email

    @property
    def greeting_name(self) -> str:
        return self.first_name or self.email.split("@")[0]

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "User":
        profile = document.get("profile") or {}
        return cls(
            id=str(document["_id"]),
            email=document["email"],
            first_name=document.get("first_name") or profile.get("first_name"),
            last_name=document.get("last_name") or profile.get("last_name"),
        )


@dataclass
class JobApplication:
    """The job application an interview belongs to."""
    id: str
    user_id: str
    job_title: str
    company_name: str

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "JobApplication":
        return cls(
            id=str(document["_id"]),
            user_id=str(document["user_id"]),
            job_title=document.get("job_title", ""),
            company_name=document.get("company_name", ""),
        )


@dataclass
class InterviewContext:
    """An interview together with the records needed to notify about it."""
    interview: Interview
    user: User
    application: JobApplication
