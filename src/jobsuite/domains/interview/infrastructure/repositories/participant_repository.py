"""
Read-only repositories for users and job applications.
"""

from typing import Any, Dict

from motor.motor_asyncio import AsyncIOMotorDatabase

from jobsuite.domains.interview.domain.entities.participants import JobApplication, User
from jobsuite.shared.infrastructure.repositories import BaseMongoRepository


class UserRepository(BaseMongoRepository[User]):
    """Repository for interview owners."""

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "users", User)

    def _document_to_entity(self, document: Dict[str, Any]) -> User:
        return User.from_document(document)


class JobApplicationRepository(BaseMongoRepository[JobApplication]):
    """Repository for the job applications interviews hang off."""

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "job_applications", JobApplication)

    def _document_to_entity(self, document: Dict[str, Any]) -> JobApplication:
        return JobApplication.from_document(document)
