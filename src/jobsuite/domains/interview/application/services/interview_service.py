"""
Interview application service.
"""

from datetime import timedelta
from typing import List, Optional

import structlog

from jobsuite.domains.interview.application.dto.interview_dto import (
    InterviewCreateDTO,
    InterviewResponseDTO,
    InterviewUpdateDTO,
)
from jobsuite.domains.interview.domain.entities.interview import (
    ACTIVE_STATUSES,
    HistoryAction,
    Interview,
    InterviewStatus,
)
from jobsuite.domains.interview.infrastructure.repositories import (
    InterviewRepository,
    JobApplicationRepository,
    UserRepository,
)
from jobsuite.domains.notification.application.services import InterviewNotificationService
from jobsuite.domains.notification.infrastructure.calendar.calendar_service import CalendarService
from jobsuite.domains.notification.infrastructure.email.email_service import InterviewEmailService
from jobsuite.shared.application.exceptions import BusinessRuleException, NotFoundException
from jobsuite.shared.domain.types import EntityId, utc_now


logger = structlog.get_logger(__name__)


class InterviewService:
    """Application service for interview scheduling."""

    def __init__(
        self,
        interview_repository: InterviewRepository,
        user_repository: UserRepository,
        application_repository: JobApplicationRepository,
        notification_service: InterviewNotificationService,
        email_service: InterviewEmailService,
        calendar_service: CalendarService
    ):
        self.interview_repository = interview_repository
        self.user_repository = user_repository
        self.application_repository = application_repository
        self.notification_service = notification_service
        self.email_service = email_service
        self.calendar_service = calendar_service

    async def create_interview(self, create_request: InterviewCreateDTO) -> InterviewResponseDTO:
        """Persist a new interview and schedule its notifications."""
        logger.info(
            "Creating interview",
            user_id=create_request.user_id,
            application_id=create_request.application_id,
            type=create_request.type.value
        )

        user = await self.user_repository.find_by_id(create_request.user_id)
        if not user:
            raise NotFoundException("User", create_request.user_id)

        application = await self.application_repository.find_by_id(create_request.application_id)
        if not application:
            raise NotFoundException("Job application", create_request.application_id)
        if application.user_id != user.id:
            raise BusinessRuleException(
                "application_ownership",
                "Job application does not belong to this user"
            )

        interview = Interview(
            interview_id=str(EntityId.generate()),
            user_id=user.id,
            application_id=application.id,
            interview_type=create_request.type,
            scheduled_date=create_request.scheduled_date,
            duration=create_request.duration,
            title=create_request.title,
            round=create_request.round,
            timezone=create_request.timezone,
            location=create_request.location.model_dump(mode="json", exclude_none=True) if create_request.location else None,
            meeting_details=create_request.meeting_details.model_dump(exclude_none=True) if create_request.meeting_details else None,
            interviewers=[i.model_dump(exclude_none=True) for i in create_request.interviewers],
            notes=create_request.notes,
        )
        interview.add_history(HistoryAction.CREATED, "Interview created")

        await self.interview_repository.create(interview)
        jobs = await self.notification_service.schedule_interview_notifications(interview.id)

        logger.info("Interview created", interview_id=interview.id, reminder_jobs=jobs)
        return await self._response(interview.id)

    async def get_interview(self, interview_id: str) -> InterviewResponseDTO:
        return InterviewResponseDTO.from_entity(await self._get(interview_id))

    async def list_interviews(
        self,
        user_id: str,
        status: Optional[InterviewStatus] = None,
        upcoming_only: bool = False
    ) -> List[InterviewResponseDTO]:
        interviews = await self.interview_repository.find_by_user(
            user_id,
            status=status,
            upcoming_after=utc_now() if upcoming_only else None
        )
        return [InterviewResponseDTO.from_entity(interview) for interview in interviews]

    async def update_interview(self, interview_id: str, update_request: InterviewUpdateDTO) -> InterviewResponseDTO:
        """Apply an update, rescheduling or cancelling notifications when needed."""
        interview = await self._get(interview_id)
        changes = update_request.model_dump(exclude_unset=True)

        new_date = update_request.scheduled_date
        is_rescheduling = new_date is not None and new_date != interview.scheduled_date
        new_status = update_request.status
        becomes_cancelled = new_status == InterviewStatus.CANCELLED and interview.status != InterviewStatus.CANCELLED
        becomes_active = (
            new_status in ACTIVE_STATUSES
            and not interview.is_active
            and not is_rescheduling
        )

        previous = interview.snapshot()
        self._apply_changes(interview, update_request, changes)

        old_date = None
        if is_rescheduling:
            old_date = interview.reschedule(new_date)

        if becomes_cancelled:
            interview.cancel("Interview cancelled")
        elif not is_rescheduling:
            interview.add_history(HistoryAction.UPDATED, "Interview updated", previous)
        interview.updated_at = utc_now()

        await self.interview_repository.update(interview)

        if becomes_cancelled:
            await self.notification_service.cancel_interview_notifications(interview_id)
        elif is_rescheduling:
            await self.interview_repository.reset_reminder_flags(interview_id)
            await self.notification_service.reschedule_interview_notifications(interview_id, old_date, new_date)
        elif becomes_active:
            await self.notification_service.schedule_interview_notifications(interview_id, send_confirmation=False)

        logger.info(
            "Interview updated",
            interview_id=interview_id,
            rescheduled=is_rescheduling,
            cancelled=becomes_cancelled,
            reactivated=becomes_active
        )
        return await self._response(interview_id)

    def _apply_changes(self, interview: Interview, update_request: InterviewUpdateDTO, changes: dict) -> None:
        for field in ("title", "round", "timezone", "notes", "type"):
            if field in changes and changes[field] is not None:
                setattr(interview, field, getattr(update_request, field))
        if update_request.status is not None and update_request.status != InterviewStatus.CANCELLED:
            interview.status = update_request.status

        if "duration" in changes and update_request.duration is not None:
            interview.duration = update_request.duration
            interview.end_date = interview.scheduled_date + timedelta(minutes=interview.duration)
        if update_request.location is not None:
            interview.location = update_request.location.model_dump(mode="json", exclude_none=True)
        if update_request.meeting_details is not None:
            interview.meeting_details = update_request.meeting_details.model_dump(exclude_none=True)
        if update_request.interviewers is not None:
            interview.interviewers = [i.model_dump(exclude_none=True) for i in update_request.interviewers]
        if update_request.follow_up is not None:
            interview.follow_up.update(update_request.follow_up.model_dump(mode="json", exclude_none=True))
            if update_request.follow_up.thank_you_sent:
                if not interview.follow_up.get("thank_you_sent_date"):
                    interview.follow_up["thank_you_sent_date"] = utc_now()

    async def cancel_interview(self, interview_id: str, reason: Optional[str] = None) -> InterviewResponseDTO:
        """Cancel an interview, its reminders, and tell the candidate."""
        interview = await self._get(interview_id)
        await self.notification_service.cancel_interview_notifications(interview_id)

        was_active = interview.cancel(reason)
        await self.interview_repository.update(interview)

        if was_active:
            await self._send_cancellation(interview, reason)

        logger.info("Interview cancelled", interview_id=interview_id, notified=was_active)
        return InterviewResponseDTO.from_entity(interview)

    async def _send_cancellation(self, interview: Interview, reason: Optional[str]) -> None:
        user = await self.user_repository.find_by_id(interview.user_id)
        application = await self.application_repository.find_by_id(interview.application_id)
        if not user or not application:
            logger.warning("Related records missing, cancellation email not sent", interview_id=interview.id)
            return

        ics_content = self.calendar_service.generate_cancellation_ics(interview, user, application)
        success = await self.email_service.send_interview_cancellation(
            user, interview, application, reason or "Interview cancelled by user", ics_content
        )
        if not success:
            logger.warning("Cancellation email failed", interview_id=interview.id)

    async def delete_interview(self, interview_id: str) -> None:
        await self._get(interview_id)
        await self.notification_service.cancel_interview_notifications(interview_id)
        await self.interview_repository.delete_by_id(interview_id)
        logger.info("Interview deleted", interview_id=interview_id)

    async def _get(self, interview_id: str) -> Interview:
        interview = await self.interview_repository.find_by_id(interview_id)
        if not interview:
            raise NotFoundException("Interview", interview_id)
        return interview

    async def _response(self, interview_id: str) -> InterviewResponseDTO:
        """Re-read so the response carries notification flags set during scheduling."""
        return InterviewResponseDTO.from_entity(await self._get(interview_id))
