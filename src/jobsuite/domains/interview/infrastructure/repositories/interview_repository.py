"""
Interview repository implementation.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase

from jobsuite.domains.interview.domain.entities.interview import (
    ACTIVE_STATUSES,
    REMINDER_FIELDS,
    Interview,
    InterviewDecision,
    InterviewStatus,
)
from jobsuite.shared.infrastructure.repositories import BaseMongoRepository, to_object_id

logger = structlog.get_logger(__name__)


class InterviewRepository(BaseMongoRepository[Interview]):
    """Repository for interviews and their notification tracking document."""

    def __init__(self, database: AsyncIOMotorDatabase):
        super().__init__(database, "interviews", Interview)

    async def create(self, interview: Interview) -> Interview:
        """Insert a new interview. The entity id must be an ObjectId string."""
        document = interview.to_document()
        document["_id"] = ObjectId(interview.id)
        await self.collection.insert_one(document)
        return interview

    async def update(self, interview: Interview) -> None:
        """Persist the mutable fields of an interview.

        The notification tracking document is left alone: the dispatcher
        writes its flags through targeted updates that a stale entity
        snapshot must not overwrite.
        """
        document = interview.to_document()
        document.pop("created_at", None)
        document.pop("notifications", None)
        await self.collection.update_one(
            {"_id": ObjectId(interview.id)},
            {"$set": document}
        )

    async def find_by_user(
        self,
        user_id: str,
        status: Optional[InterviewStatus] = None,
        upcoming_after: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[Interview]:
        """Find a user's interviews, soonest first."""
        filters: Dict[str, Any] = {"user_id": str(user_id)}
        if status:
            filters["status"] = status.value
        if upcoming_after:
            filters["scheduled_date"] = {"$gt": upcoming_after}

        cursor = self.collection.find(filters).sort("scheduled_date", 1).skip(offset).limit(limit)
        documents = await cursor.to_list(length=limit)
        return [self._document_to_entity(doc) for doc in documents]

    async def find_upcoming_active(self, now: datetime) -> List[Interview]:
        """Interviews that start after ``now`` and still expect reminders."""
        filters = {
            "scheduled_date": {"$gt": now},
            "status": {"$in": [status.value for status in ACTIVE_STATUSES]},
        }
        cursor = self.collection.find(filters).sort("scheduled_date", 1)
        documents = await cursor.to_list(length=None)
        return [self._document_to_entity(doc) for doc in documents]

    async def find_needing_decision_follow_up(self, since: datetime, now: datetime) -> List[Interview]:
        """Completed interviews with a thank-you note sent but no decision yet."""
        filters = {
            "status": InterviewStatus.COMPLETED.value,
            "scheduled_date": {"$gte": since, "$lte": now},
            "follow_up.thank_you_sent": True,
            "follow_up.decision": {"$in": [None, InterviewDecision.PENDING.value]},
            "notifications.follow_up_reminders.decision_follow_up.sent": {"$ne": True},
        }
        cursor = self.collection.find(filters)
        documents = await cursor.to_list(length=None)
        return [self._document_to_entity(doc) for doc in documents]

    async def mark_notification_sent(self, interview_id: str, field_path: str, sent_at: datetime) -> bool:
        """Set ``notifications.<field_path>.sent`` and ``sent_at``."""
        return await self._set_fields(interview_id, {
            f"notifications.{field_path}.sent": True,
            f"notifications.{field_path}.sent_at": sent_at,
        })

    async def reset_reminder_flags(self, interview_id: str) -> bool:
        """Clear the pre-interview reminder flags after a reschedule."""
        return await self._set_fields(interview_id, {
            f"notifications.reminders.{name}": {"sent": False, "sent_at": None}
            for name in REMINDER_FIELDS
        })

    async def mark_confirmation_sent(self, interview_id: str) -> bool:
        return await self._set_fields(interview_id, {
            "notifications.email_confirmation_sent": True,
            "notifications.calendar_invite_sent": True,
        })

    async def mark_calendar_invite_sent(self, interview_id: str) -> bool:
        return await self._set_fields(interview_id, {
            "notifications.calendar_invite_sent": True,
        })

    async def _set_fields(self, interview_id: str, fields: Dict[str, Any]) -> bool:
        object_id = to_object_id(interview_id)
        if object_id is None:
            return False
        result = await self.collection.update_one({"_id": object_id}, {"$set": fields})
        if result.matched_count == 0:
            logger.warning("Interview not found for notification update", interview_id=interview_id)
        return result.matched_count > 0

    def _document_to_entity(self, document: Dict[str, Any]) -> Interview:
        return Interview.from_document(document)
