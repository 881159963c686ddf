"""
Shared fixtures for interview notification tests.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest
from bson import ObjectId

from jobsuite.config.settings import ReminderSettings
from jobsuite.domains.interview.domain.entities.interview import (
    Interview,
    InterviewStatus,
    InterviewType,
)
from jobsuite.domains.interview.domain.entities.participants import JobApplication, User
from jobsuite.domains.notification.application.services import InterviewNotificationService
from jobsuite.domains.notification.domain.services.reminder_registry import ReminderRegistry
from jobsuite.shared.infrastructure.monitoring.metrics import MetricsCollector


NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def user():
    return User(id=str(ObjectId()), email="ada@example.com", first_name="Ada", last_name="Lovelace")


@pytest.fixture
def application(user):
    return JobApplication(
        id=str(ObjectId()),
        user_id=user.id,
        job_title="Backend Engineer",
        company_name="Acme",
    )


@pytest.fixture
def interview_store():
    return {}


@pytest.fixture
def make_interview(user, application, interview_store):
    """Build an interview for the fixture user and store it."""

    def _make(scheduled_date: datetime, status: InterviewStatus = InterviewStatus.SCHEDULED, **kwargs) -> Interview:
        interview = Interview(
            interview_id=str(ObjectId()),
            user_id=user.id,
            application_id=application.id,
            interview_type=kwargs.pop("interview_type", InterviewType.VIDEO),
            scheduled_date=scheduled_date,
            status=status,
            created_at=kwargs.pop("created_at", NOW),
            **kwargs,
        )
        interview_store[interview.id] = interview
        return interview

    return _make


def _mark_sent(interview_store):
    def _mark(interview_id, field_path, sent_at):
        interview = interview_store.get(interview_id)
        if interview is None:
            return False
        node = interview.notifications
        for part in field_path.split("."):
            node = node.setdefault(part, {})
        node.update(sent=True, sent_at=sent_at)
        return True
    return _mark


@pytest.fixture
def interview_repository(interview_store):
    repository = AsyncMock()
    repository.find_by_id.side_effect = lambda interview_id: interview_store.get(interview_id)
    repository.find_upcoming_active.side_effect = lambda now: [
        interview for interview in interview_store.values()
        if interview.is_active and interview.scheduled_date > now
    ]
    repository.find_needing_decision_follow_up.return_value = []
    repository.mark_notification_sent.side_effect = _mark_sent(interview_store)
    repository.mark_confirmation_sent.return_value = True
    repository.mark_calendar_invite_sent.return_value = True
    return repository


@pytest.fixture
def user_repository(user):
    repository = AsyncMock()
    repository.find_by_id.side_effect = lambda user_id: user if user_id == user.id else None
    return repository


@pytest.fixture
def application_repository(application):
    repository = AsyncMock()
    repository.find_by_id.side_effect = (
        lambda application_id: application if application_id == application.id else None
    )
    return repository


@pytest.fixture
def email_service():
    service = AsyncMock()
    service.send_interview_confirmation.return_value = True
    service.send_interview_reminder.return_value = True
    service.send_interview_rescheduled.return_value = True
    service.send_interview_cancellation.return_value = True
    service.send_thank_you_reminder.return_value = True
    service.send_decision_follow_up.return_value = True
    return service


@pytest.fixture
def calendar_service():
    service = Mock()
    service.generate_interview_ics.return_value = b"BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n"
    service.generate_cancellation_ics.return_value = b"BEGIN:VCALENDAR\r\nMETHOD:CANCEL\r\nEND:VCALENDAR\r\n"
    return service


@pytest.fixture
def scheduler():
    scheduler = MagicMock()
    scheduler.running = False
    return scheduler


@pytest.fixture
def reminder_settings():
    return ReminderSettings(
        enabled=True,
        queue_interval_minutes=5,
        thank_you_hour=9,
        follow_up_hour=10,
        follow_up_window_days=7,
        max_dispatch_attempts=3,
        timezone="UTC",
    )


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def notification_service(
    interview_repository,
    user_repository,
    application_repository,
    email_service,
    calendar_service,
    scheduler,
    reminder_settings,
    clock,
    metrics,
):
    return InterviewNotificationService(
        interview_repository=interview_repository,
        user_repository=user_repository,
        application_repository=application_repository,
        email_service=email_service,
        calendar_service=calendar_service,
        registry=ReminderRegistry(),
        scheduler=scheduler,
        settings=reminder_settings,
        clock=clock,
        metrics=metrics,
    )
