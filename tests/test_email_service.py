"""
Unit tests for interview emails
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from jobsuite.config.settings import EmailSettings
from jobsuite.domains.interview.domain.entities.participants import JobApplication
from jobsuite.domains.notification.domain.entities.reminder_job import ReminderSlot
from jobsuite.domains.notification.infrastructure.email.email_service import (
    InterviewEmailService,
    format_interview_time,
)


SEND_PATH = "jobsuite.domains.notification.infrastructure.email.email_service.aiosmtplib.send"
START = datetime(2026, 3, 4, 17, 0, tzinfo=timezone.utc)


@pytest.fixture
def smtp_settings():
    return EmailSettings(
        smtp_server="smtp.test",
        smtp_port=2525,
        smtp_username="mailer",
        smtp_password="secret",
        smtp_use_tls=True,
        email_from="interviews@jobsuite.test",
        email_from_name="Job Suite",
    )


@pytest.fixture
def mailer(smtp_settings):
    return InterviewEmailService(settings=smtp_settings, frontend_url="https://app.jobsuite.test")


@pytest.fixture
def interview(make_interview):
    return make_interview(START, timezone="America/New_York", meeting_details={"meeting_url": "https://meet.example.com/x"})


class TestFormatInterviewTime:
    """Test rendering interview times in their own time zone"""

    def test_local_time(self):
        assert format_interview_time(START, "America/New_York") == "Wednesday, March 04, 2026 at 12:00 PM EST"

    def test_unknown_timezone_falls_back_to_utc(self):
        assert format_interview_time(START, "Mars/Olympus_Mons") == "Wednesday, March 04, 2026 at 05:00 PM UTC"


class TestTransport:
    """Test SMTP delivery"""

    @pytest.mark.asyncio
    async def test_unconfigured_smtp_uses_mock_transport(self, user, application, interview):
        """Test that sends succeed without SMTP credentials"""
        service = InterviewEmailService(settings=EmailSettings(smtp_username=None, smtp_password=None))

        with patch(SEND_PATH, new_callable=AsyncMock) as send:
            result = await service.send_interview_reminder(user, interview, application, ReminderSlot.ONE_HOUR)

        assert result is True
        send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reminder_sent_over_smtp(self, mailer, user, application, interview):
        """Test the SMTP call and reminder subject"""
        with patch(SEND_PATH, new_callable=AsyncMock) as send:
            result = await mailer.send_interview_reminder(user, interview, application, ReminderSlot.ONE_HOUR)

        assert result is True
        send.assert_awaited_once()
        message = send.await_args.args[0]
        assert message["Subject"] == "Reminder: Interview in 1 hour - Acme"
        assert message["To"] == "ada@example.com"
        assert message["From"] == "Job Suite <interviews@jobsuite.test>"
        assert send.await_args.kwargs["hostname"] == "smtp.test"
        assert send.await_args.kwargs["port"] == 2525
        assert send.await_args.kwargs["start_tls"] is True
        assert send.await_args.kwargs["username"] == "mailer"

    @pytest.mark.asyncio
    async def test_smtp_failure_returns_false(self, mailer, user, application, interview):
        """Test that transport errors are reported as a failed send"""
        with patch(SEND_PATH, new_callable=AsyncMock) as send:
            send.side_effect = ConnectionRefusedError("no smtp")
            result = await mailer.send_thank_you_reminder(user, interview, application)

        assert result is False

    @pytest.mark.asyncio
    async def test_confirmation_attaches_invite(self, mailer, user, application, interview):
        """Test that the calendar invite is attached as interview.ics"""
        ics = b"BEGIN:VCALENDAR\r\nEND:VCALENDAR\r\n"

        with patch(SEND_PATH, new_callable=AsyncMock) as send:
            await mailer.send_interview_confirmation(user, interview, application, ics)

        message = send.await_args.args[0]
        assert message.get_content_type() == "multipart/mixed"
        body, attachment = message.get_payload()
        assert body.get_content_type() == "multipart/alternative"
        assert attachment.get_filename() == "interview.ics"
        assert attachment.get_payload(decode=True) == ics
        assert message["Subject"] == "Interview Confirmed: Backend Engineer at Acme"

    @pytest.mark.asyncio
    async def test_reminder_has_no_attachment(self, mailer, user, application, interview):
        with patch(SEND_PATH, new_callable=AsyncMock) as send:
            await mailer.send_interview_reminder(user, interview, application, ReminderSlot.FIFTEEN_MINS)

        message = send.await_args.args[0]
        assert message.get_content_type() == "multipart/alternative"
        assert message["Subject"] == "Reminder: Interview in 15 minutes - Acme"

    @pytest.mark.asyncio
    async def test_cancellation_attachment_name(self, mailer, user, application, interview):
        with patch(SEND_PATH, new_callable=AsyncMock) as send:
            await mailer.send_interview_cancellation(user, interview, application, "Position filled", b"ICS")

        message = send.await_args.args[0]
        _, attachment = message.get_payload()
        assert attachment.get_filename() == "cancellation.ics"
        assert message["Subject"] == "Interview Cancelled: Backend Engineer at Acme"


class TestTemplates:
    """Test email copy"""

    def test_reminder_template_uses_local_time(self, mailer, user, application, interview):
        subject, html, text = mailer._get_reminder_template(user, interview, application, ReminderSlot.ONE_DAY)

        assert subject == "Reminder: Interview in 24 hours - Acme"
        assert "Hi Ada" in html
        assert "12:00 PM EST" in text
        assert "https://meet.example.com/x" in text
        assert "https://app.jobsuite.test/dashboard/interviews" in html

    def test_rescheduled_template_shows_previous_time(self, mailer, user, application, interview):
        old_date = datetime(2026, 3, 3, 17, 0, tzinfo=timezone.utc)

        subject, html, text = mailer._get_rescheduled_template(user, interview, application, old_date)

        assert subject == "Interview Rescheduled: Backend Engineer at Acme"
        assert "Tuesday, March 03, 2026 at 12:00 PM EST" in text

    def test_thank_you_template(self, mailer, user, application, interview):
        subject, _, text = mailer._get_thank_you_template(user, interview, application)

        assert subject == "Reminder: Send thank you note for Acme interview"
        assert "Backend Engineer" in text

    def test_html_escapes_user_supplied_values(self, mailer, user, make_interview):
        """Test that markup in stored fields is not rendered in the HTML body"""
        application = JobApplication(
            id="app-1", user_id=user.id, job_title="Engineer <Platform>", company_name="Smith & Sons"
        )
        interview = make_interview(
            START, meeting_details={"meeting_url": 'https://meet.example.com/x"><script>alert(1)</script>'}
        )

        _, html, text = mailer._get_cancellation_template(user, interview, application, "<b>Role filled</b>")

        assert "<script>" not in html
        assert "<b>Role filled</b>" not in html
        assert "&lt;b&gt;Role filled&lt;/b&gt;" in html
        assert 'href="https://meet.example.com/x&quot;&gt;&lt;script&gt;alert(1)&lt;/script&gt;"' in html
        assert "Engineer &lt;Platform&gt;" in html
        assert "Smith &amp; Sons" in html
        assert "Reason: <b>Role filled</b>" in text
        assert "Smith & Sons" in text

    def test_address_escaped_for_onsite_interviews(self, mailer, user, application, make_interview):
        interview = make_interview(START, location={"address": "1 Main St <Suite 2>"})

        _, html, _ = mailer._get_confirmation_template(user, interview, application)

        assert "1 Main St &lt;Suite 2&gt;" in html
