"""
Unit tests for the interview application service
Notification side effects are checked against a mocked notification service
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock

from bson import ObjectId

from jobsuite.domains.interview.application.dto import (
    FollowUpDTO,
    InterviewCreateDTO,
    InterviewUpdateDTO,
)
from jobsuite.domains.interview.application.services import InterviewService
from jobsuite.domains.interview.domain.entities.interview import InterviewStatus, InterviewType
from jobsuite.domains.interview.domain.entities.participants import JobApplication
from jobsuite.shared.application.exceptions import BusinessRuleException, NotFoundException
from jobsuite.shared.domain.exceptions import InvalidStateException

from conftest import NOW


@pytest.fixture
def notifications():
    service = AsyncMock()
    service.schedule_interview_notifications.return_value = 5
    service.reschedule_interview_notifications.return_value = 5
    service.cancel_interview_notifications.return_value = 5
    return service


@pytest.fixture
def interview_service(
    interview_repository,
    user_repository,
    application_repository,
    notifications,
    email_service,
    calendar_service,
    interview_store,
):
    def store(interview):
        interview_store[interview.id] = interview
        return interview

    interview_repository.create.side_effect = store
    interview_repository.update.side_effect = store
    return InterviewService(
        interview_repository=interview_repository,
        user_repository=user_repository,
        application_repository=application_repository,
        notification_service=notifications,
        email_service=email_service,
        calendar_service=calendar_service,
    )


class TestCreateInterview:
    """Test scheduling new interviews"""

    @pytest.mark.asyncio
    async def test_create_interview(self, interview_service, notifications, interview_store, user, application):
        """Test that a created interview is stored and its notifications scheduled"""
        request = InterviewCreateDTO(
            user_id=user.id,
            application_id=application.id,
            type=InterviewType.TECHNICAL,
            scheduled_date=NOW + timedelta(days=2),
            duration=90,
            round=2,
        )

        response = await interview_service.create_interview(request)

        assert response.status == "scheduled"
        assert response.title == "Technical Interview - Round 2"
        assert response.end_date == NOW + timedelta(days=2, minutes=90)
        assert ObjectId.is_valid(response.id)
        stored = interview_store[response.id]
        assert stored.history[0]["action"] == "created"
        notifications.schedule_interview_notifications.assert_awaited_once_with(response.id)

    @pytest.mark.asyncio
    async def test_create_for_unknown_user(self, interview_service, application):
        """Test that an unknown user is rejected"""
        request = InterviewCreateDTO(
            user_id=str(ObjectId()),
            application_id=application.id,
            type=InterviewType.PHONE,
            scheduled_date=NOW + timedelta(days=2),
        )

        with pytest.raises(NotFoundException):
            await interview_service.create_interview(request)

    @pytest.mark.asyncio
    async def test_create_for_someone_elses_application(self, interview_service, application_repository, user, notifications):
        """Test that the application must belong to the user"""
        foreign = JobApplication(id=str(ObjectId()), user_id=str(ObjectId()), job_title="SRE", company_name="Globex")
        application_repository.find_by_id.side_effect = lambda application_id: foreign
        request = InterviewCreateDTO(
            user_id=user.id,
            application_id=foreign.id,
            type=InterviewType.PHONE,
            scheduled_date=NOW + timedelta(days=2),
        )

        with pytest.raises(BusinessRuleException) as exc_info:
            await interview_service.create_interview(request)

        assert exc_info.value.rule == "application_ownership"
        notifications.schedule_interview_notifications.assert_not_awaited()


class TestUpdateInterview:
    """Test updates, reschedules and status changes"""

    @pytest.mark.asyncio
    async def test_reschedule(self, interview_service, make_interview, notifications, interview_repository):
        """Test that a new date bumps the version and reschedules notifications"""
        interview = make_interview(NOW + timedelta(days=2))
        interview.notifications["reminders"]["one_day_before"] = {"sent": True, "sent_at": NOW}
        old_date = interview.scheduled_date
        new_date = NOW + timedelta(days=3)

        response = await interview_service.update_interview(
            interview.id, InterviewUpdateDTO(scheduled_date=new_date)
        )

        assert response.version == 2
        assert response.scheduled_date == new_date
        assert response.notifications["reminders"]["one_day_before"]["sent"] is False
        assert interview.history[-1]["action"] == "rescheduled"
        interview_repository.reset_reminder_flags.assert_awaited_once_with(interview.id)
        notifications.reschedule_interview_notifications.assert_awaited_once_with(interview.id, old_date, new_date)
        notifications.schedule_interview_notifications.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_same_date_is_plain_update(self, interview_service, make_interview, notifications):
        """Test that resubmitting the same date does not reschedule"""
        interview = make_interview(NOW + timedelta(days=2))

        response = await interview_service.update_interview(
            interview.id,
            InterviewUpdateDTO(scheduled_date=interview.scheduled_date, title="Onsite loop"),
        )

        assert response.title == "Onsite loop"
        assert response.version == 1
        assert interview.history[-1]["action"] == "updated"
        notifications.reschedule_interview_notifications.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duration_change_moves_end(self, interview_service, make_interview):
        interview = make_interview(NOW + timedelta(days=2))

        response = await interview_service.update_interview(interview.id, InterviewUpdateDTO(duration=30))

        assert response.end_date == interview.scheduled_date + timedelta(minutes=30)

    @pytest.mark.asyncio
    async def test_status_cancelled_cancels_notifications(self, interview_service, make_interview, notifications):
        """Test that cancelling through an update removes pending reminders"""
        interview = make_interview(NOW + timedelta(days=2))

        response = await interview_service.update_interview(
            interview.id, InterviewUpdateDTO(status=InterviewStatus.CANCELLED)
        )

        assert response.status == "cancelled"
        assert interview.history[-1]["action"] == "cancelled"
        notifications.cancel_interview_notifications.assert_awaited_once_with(interview.id)

    @pytest.mark.asyncio
    async def test_reactivation_reschedules_without_confirmation(self, interview_service, make_interview, notifications):
        """Test that moving back to an active status registers reminders again"""
        interview = make_interview(NOW + timedelta(days=2), status=InterviewStatus.PENDING_CONFIRMATION)

        response = await interview_service.update_interview(
            interview.id, InterviewUpdateDTO(status=InterviewStatus.CONFIRMED)
        )

        assert response.status == "confirmed"
        notifications.schedule_interview_notifications.assert_awaited_once_with(
            interview.id, send_confirmation=False
        )

    @pytest.mark.asyncio
    async def test_confirming_active_interview_does_not_reschedule(self, interview_service, make_interview, notifications):
        interview = make_interview(NOW + timedelta(days=2))

        await interview_service.update_interview(interview.id, InterviewUpdateDTO(status=InterviewStatus.CONFIRMED))

        notifications.schedule_interview_notifications.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cannot_reschedule_cancelled(self, interview_service, make_interview, notifications):
        """Test that a cancelled interview cannot be moved"""
        interview = make_interview(NOW + timedelta(days=2), status=InterviewStatus.CANCELLED)

        with pytest.raises(InvalidStateException):
            await interview_service.update_interview(
                interview.id, InterviewUpdateDTO(scheduled_date=NOW + timedelta(days=4))
            )

        notifications.reschedule_interview_notifications.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_thank_you_note_recorded(self, interview_service, make_interview):
        """Test that recording a thank-you note stamps its date"""
        interview = make_interview(NOW - timedelta(days=1), status=InterviewStatus.COMPLETED)

        response = await interview_service.update_interview(
            interview.id, InterviewUpdateDTO(follow_up=FollowUpDTO(thank_you_sent=True))
        )

        assert response.follow_up["thank_you_sent"] is True
        assert response.follow_up["thank_you_sent_date"] is not None

    @pytest.mark.asyncio
    async def test_update_unknown_interview(self, interview_service):
        with pytest.raises(NotFoundException):
            await interview_service.update_interview(str(ObjectId()), InterviewUpdateDTO(title="x"))


class TestCancelAndDelete:
    """Test explicit cancellation and deletion"""

    @pytest.mark.asyncio
    async def test_cancel_active_interview(self, interview_service, make_interview, notifications, email_service, calendar_service):
        """Test that cancelling sends a cancellation email with an invite"""
        interview = make_interview(NOW + timedelta(days=2))

        response = await interview_service.cancel_interview(interview.id, "Position filled")

        assert response.status == "cancelled"
        notifications.cancel_interview_notifications.assert_awaited_once_with(interview.id)
        calendar_service.generate_cancellation_ics.assert_called_once()
        email_service.send_interview_cancellation.assert_awaited_once()
        assert email_service.send_interview_cancellation.await_args.args[3] == "Position filled"

    @pytest.mark.asyncio
    async def test_cancel_already_cancelled(self, interview_service, make_interview, email_service):
        """Test that no email goes out for an interview that was not active"""
        interview = make_interview(NOW + timedelta(days=2), status=InterviewStatus.CANCELLED)

        await interview_service.cancel_interview(interview.id)

        email_service.send_interview_cancellation.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete(self, interview_service, make_interview, notifications, interview_repository):
        interview = make_interview(NOW + timedelta(days=2))

        await interview_service.delete_interview(interview.id)

        notifications.cancel_interview_notifications.assert_awaited_once_with(interview.id)
        interview_repository.delete_by_id.assert_awaited_once_with(interview.id)

    @pytest.mark.asyncio
    async def test_delete_unknown(self, interview_service, interview_repository):
        with pytest.raises(NotFoundException):
            await interview_service.delete_interview(str(ObjectId()))

        interview_repository.delete_by_id.assert_not_awaited()


class TestQueries:
    """Test reading interviews"""

    @pytest.mark.asyncio
    async def test_list_upcoming(self, interview_service, make_interview, interview_repository, user):
        interview = make_interview(NOW + timedelta(days=2))
        interview_repository.find_by_user.return_value = [interview]

        results = await interview_service.list_interviews(user.id, upcoming_only=True)

        assert [r.id for r in results] == [interview.id]
        kwargs = interview_repository.find_by_user.await_args.kwargs
        assert kwargs["upcoming_after"] is not None
        assert kwargs["status"] is None

    @pytest.mark.asyncio
    async def test_get_interview(self, interview_service, make_interview):
        interview = make_interview(NOW + timedelta(days=2))

        response = await interview_service.get_interview(interview.id)

        assert response.id == interview.id
        assert response.type == "video"
