"""
Unit tests for iCalendar invite generation
"""

from datetime import datetime, timedelta, timezone

import pytest

from jobsuite.domains.interview.domain.entities.interview import InterviewStatus
from jobsuite.domains.notification.infrastructure.calendar.calendar_service import (
    CalendarService,
    escape_text,
    fold_line,
    format_ics_datetime,
)


START = datetime(2026, 3, 4, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def calendar():
    return CalendarService(frontend_url="https://app.jobsuite.test")


@pytest.fixture
def virtual_interview(make_interview):
    return make_interview(
        START,
        location={"type": "virtual"},
        meeting_details={"meeting_url": "https://meet.example.com/abc-defg", "passcode": "4242"},
        interviewers=[
            {"name": "Grace Hopper", "email": "grace@acme.com", "title": "Staff Engineer", "is_lead": True},
            {"name": "Linus", "email": "linus@acme.com"},
            {"name": "No Email"},
        ],
    )


def _unfold(content: str) -> str:
    return content.replace("\r\n ", "")


class TestFormatting:
    """Test iCalendar value helpers"""

    def test_format_aware_datetime(self):
        """Test that aware datetimes are converted to UTC"""
        eastern = timezone(timedelta(hours=-5))
        assert format_ics_datetime(datetime(2026, 3, 4, 10, 0, tzinfo=eastern)) == "20260304T150000Z"

    def test_format_naive_datetime(self):
        """Test that naive datetimes are read as UTC"""
        assert format_ics_datetime(datetime(2026, 3, 4, 15, 0)) == "20260304T150000Z"

    def test_escape_text(self):
        """Test escaping of RFC 5545 special characters"""
        assert escape_text("a;b,c\\d\ne") == "a\\;b\\,c\\\\d\\ne"

    def test_short_line_not_folded(self):
        assert fold_line("SUMMARY:short") == "SUMMARY:short"

    def test_long_line_folded(self):
        """Test folding at 75 octets with space continuations"""
        line = "DESCRIPTION:" + "x" * 200
        folded = fold_line(line)

        parts = folded.split("\r\n")
        assert all(len(part.encode("utf-8")) <= 75 for part in parts)
        assert all(part.startswith(" ") for part in parts[1:])
        assert _unfold(folded) == line

    def test_multibyte_characters_not_split(self):
        """Test that folding never splits a UTF-8 sequence"""
        line = "SUMMARY:" + "é" * 100
        folded = fold_line(line)

        for part in folded.split("\r\n"):
            assert len(part.encode("utf-8")) <= 75
        assert _unfold(folded) == line


class TestInterviewInvite:
    """Test invites for scheduled interviews"""

    def test_invite_structure(self, calendar, virtual_interview, user, application):
        """Test the core VEVENT properties"""
        content = calendar.generate_interview_ics(virtual_interview, user, application).decode("utf-8")
        unfolded = _unfold(content)

        assert content.startswith("BEGIN:VCALENDAR\r\n")
        assert content.endswith("END:VCALENDAR\r\n")
        assert "METHOD:REQUEST" in unfolded
        assert f"UID:interview-{virtual_interview.id}@jobsuite.com" in unfolded
        assert "DTSTART:20260304T150000Z" in unfolded
        assert "DTEND:20260304T160000Z" in unfolded
        assert "SUMMARY:Interview: Backend Engineer at Acme" in unfolded
        assert "STATUS:CONFIRMED" in unfolded
        assert "SEQUENCE:1" in unfolded

    def test_invite_lines_are_crlf_and_folded(self, calendar, virtual_interview, user, application):
        """Test that every physical line fits in 75 octets and uses CRLF"""
        content = calendar.generate_interview_ics(virtual_interview, user, application).decode("utf-8")

        assert "\n" not in content.replace("\r\n", "")
        for line in content.split("\r\n"):
            assert len(line.encode("utf-8")) <= 75

    def test_invite_alarms(self, calendar, virtual_interview, user, application):
        """Test the 15 minute, 1 hour and 1 day alarms"""
        content = _unfold(calendar.generate_interview_ics(virtual_interview, user, application).decode("utf-8"))

        assert content.count("BEGIN:VALARM") == 3
        for trigger in ("TRIGGER:-PT15M", "TRIGGER:-PT60M", "TRIGGER:-PT1440M"):
            assert trigger in content

    def test_invite_participants(self, calendar, virtual_interview, user, application):
        """Test organizer and attendee lines"""
        content = _unfold(calendar.generate_interview_ics(virtual_interview, user, application).decode("utf-8"))

        assert "ORGANIZER;CN=Ada Lovelace:mailto:ada@example.com" in content
        assert "ATTENDEE;CN=Grace Hopper;ROLE=REQ-PARTICIPANT" in content
        assert "ATTENDEE;CN=Linus;ROLE=OPT-PARTICIPANT" in content
        assert content.count("ATTENDEE;") == 2

    def test_virtual_location_uses_meeting_url(self, calendar, virtual_interview, user, application):
        content = _unfold(calendar.generate_interview_ics(virtual_interview, user, application).decode("utf-8"))

        assert "LOCATION:https://meet.example.com/abc-defg" in content
        assert "URL:https://meet.example.com/abc-defg" in content
        assert "Passcode: 4242" in content

    def test_on_site_location(self, calendar, make_interview, user, application):
        """Test that address parts are joined and escaped"""
        interview = make_interview(
            START,
            location={"type": "on_site", "address": "1 Main St", "building": "B", "room": "4"},
        )

        content = _unfold(calendar.generate_interview_ics(interview, user, application).decode("utf-8"))

        assert "LOCATION:1 Main St\\, B\\, 4" in content
        assert "URL:" not in content

    def test_description_escaped(self, calendar, virtual_interview, user, application):
        content = _unfold(calendar.generate_interview_ics(virtual_interview, user, application).decode("utf-8"))

        assert "DESCRIPTION:Interview Details:\\nPosition: Backend Engineer\\nCompany: Acme" in content
        assert "https://app.jobsuite.test/dashboard/interviews" in content

    def test_sequence_follows_version(self, calendar, virtual_interview, user, application):
        """Test that a rescheduled invite supersedes the previous one"""
        virtual_interview.reschedule(START + timedelta(days=1))

        content = _unfold(calendar.generate_interview_ics(virtual_interview, user, application).decode("utf-8"))

        assert "SEQUENCE:2" in content
        assert "DTSTART:20260305T150000Z" in content


class TestCancellationInvite:
    """Test invites that remove a cancelled interview"""

    def test_cancellation(self, calendar, virtual_interview, user, application):
        virtual_interview.status = InterviewStatus.CANCELLED

        content = _unfold(calendar.generate_cancellation_ics(virtual_interview, user, application).decode("utf-8"))

        assert "METHOD:CANCEL" in content
        assert "STATUS:CANCELLED" in content
        assert f"UID:interview-{virtual_interview.id}@jobsuite.com" in content
        assert "SUMMARY:CANCELLED: Interview - Backend Engineer at Acme" in content
        assert "SEQUENCE:2" in content
        assert "BEGIN:VALARM" not in content
