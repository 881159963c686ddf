"""
iCalendar (RFC 5545) invite generation for interviews.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from jobsuite.config.settings import get_settings
from jobsuite.domains.interview.domain.entities.interview import Interview, InterviewLocationType
from jobsuite.domains.interview.domain.entities.participants import JobApplication, User
from jobsuite.shared.domain.types import ensure_utc, utc_now


PRODUCT_ID = "-//Job Suite//Interview Scheduler//EN"
UID_DOMAIN = "jobsuite.com"

# VALARM lead times in minutes
DEFAULT_ALARMS = (15, 60, 1440)

LINE_LENGTH = 75


def format_ics_datetime(value: datetime) -> str:
    """Render a datetime as a UTC ``YYYYMMDDTHHMMSSZ`` stamp."""
    return ensure_utc(value).strftime("%Y%m%dT%H%M%SZ")


def escape_text(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\\n")
        .replace("\n", "\\n")
    )


def fold_line(line: str) -> str:
    """Fold a content line at 75 octets with CRLF + space continuations."""
    encoded = line.encode("utf-8")
    if len(encoded) <= LINE_LENGTH:
        return line

    parts = []
    current = ""
    limit = LINE_LENGTH
    for char in line:
        if len((current + char).encode("utf-8")) > limit:
            parts.append(current)
            current = char
            # continuation lines lose one octet to the leading space
            limit = LINE_LENGTH - 1
        else:
            current += char
    parts.append(current)
    return "\r\n ".join(parts)


class CalendarService:
    """Builds ``.ics`` invites attached to interview emails."""

    def __init__(self, frontend_url: Optional[str] = None):
        self.frontend_url = frontend_url or get_settings().frontend_url

    def generate_ics(
        self,
        uid: str,
        start: datetime,
        end: datetime,
        summary: str,
        description: str,
        location: Optional[str] = None,
        organizer_name: Optional[str] = None,
        organizer_email: Optional[str] = None,
        attendees: Iterable[dict] = (),
        url: Optional[str] = None,
        alarms: Iterable[int] = DEFAULT_ALARMS,
        method: str = "REQUEST",
        status: str = "CONFIRMED",
        sequence: int = 0,
    ) -> str:
        lines: List[str] = [
            "BEGIN:VCALENDAR",
            "VERSION:2.0",
            f"PRODID:{PRODUCT_ID}",
            "CALSCALE:GREGORIAN",
            f"METHOD:{method}",
            "BEGIN:VEVENT",
            f"UID:{uid}",
            f"SEQUENCE:{sequence}",
            f"DTSTART:{format_ics_datetime(start)}",
            f"DTEND:{format_ics_datetime(end)}",
            f"DTSTAMP:{format_ics_datetime(utc_now())}",
            f"SUMMARY:{escape_text(summary)}",
            f"DESCRIPTION:{escape_text(description)}",
        ]

        if location:
            lines.append(f"LOCATION:{escape_text(location)}")

        if organizer_email:
            name = escape_text(organizer_name or organizer_email)
            lines.append(f"ORGANIZER;CN={name}:mailto:{organizer_email}")

        for attendee in attendees:
            role = attendee.get("role") or "REQ-PARTICIPANT"
            lines.append(
                f"ATTENDEE;CN={escape_text(attendee['name'])};ROLE={role};"
                f"PARTSTAT=NEEDS-ACTION;RSVP=TRUE:mailto:{attendee['email']}"
            )

        if url:
            lines.append(f"URL:{url}")

        for minutes in alarms:
            lines.extend([
                "BEGIN:VALARM",
                "ACTION:DISPLAY",
                f"TRIGGER:-PT{minutes}M",
                f"DESCRIPTION:Reminder: {escape_text(summary)}",
                "END:VALARM",
            ])

        lines.extend([
            f"STATUS:{status}",
            "TRANSP:OPAQUE",
            "END:VEVENT",
            "END:VCALENDAR",
        ])

        return "\r\n".join(fold_line(line) for line in lines) + "\r\n"

    def generate_interview_ics(self, interview: Interview, user: User, application: JobApplication) -> bytes:
        """Invite for a scheduled or rescheduled interview."""
        summary = f"Interview: {application.job_title} at {application.company_name}"

        attendees = [
            {
                "name": interviewer.get("name") or interviewer["email"],
                "email": interviewer["email"],
                "role": "REQ-PARTICIPANT" if interviewer.get("is_lead") else "OPT-PARTICIPANT",
            }
            for interviewer in interview.interviewers
            if interviewer.get("email")
        ]

        content = self.generate_ics(
            uid=self.interview_uid(interview),
            start=interview.scheduled_date,
            end=interview.end_date,
            summary=summary,
            description=self._interview_description(interview, application),
            location=self._interview_location(interview),
            organizer_name=user.display_name,
            organizer_email=user.email,
            attendees=attendees,
            url=interview.meeting_details.get("meeting_url"),
            sequence=interview.version,
        )
        return content.encode("utf-8")

    def generate_cancellation_ics(self, interview: Interview, user: User, application: JobApplication) -> bytes:
        """Invite that removes the interview from the recipient's calendar."""
        summary = f"CANCELLED: Interview - {application.job_title} at {application.company_name}"
        description = (
            "This interview has been cancelled.\n\n"
            f"Position: {application.job_title}\n"
            f"Company: {application.company_name}\n"
            f"Type: {interview.type_label} Interview (Round {interview.round})\n\n"
            "Please remove this event from your calendar."
        )

        content = self.generate_ics(
            uid=self.interview_uid(interview),
            start=interview.scheduled_date,
            end=interview.end_date,
            summary=summary,
            description=description,
            organizer_name=user.display_name,
            organizer_email=user.email,
            alarms=(),
            method="CANCEL",
            status="CANCELLED",
            sequence=interview.version + 1,
        )
        return content.encode("utf-8")

    @staticmethod
    def interview_uid(interview: Interview) -> str:
        return f"interview-{interview.id}@{UID_DOMAIN}"

    def _interview_description(self, interview: Interview, application: JobApplication) -> str:
        lines = [
            "Interview Details:",
            f"Position: {application.job_title}",
            f"Company: {application.company_name}",
            f"Type: {interview.type_label} Interview",
            f"Round: {interview.round}",
            f"Duration: {interview.duration} minutes",
            "",
        ]

        if interview.interviewers:
            lines.append("Interviewers:")
            for interviewer in interview.interviewers:
                entry = f"- {interviewer.get('name', '')}"
                if interviewer.get("title"):
                    entry += f" ({interviewer['title']})"
                lines.append(entry)
            lines.append("")

        meeting = interview.meeting_details
        if meeting.get("meeting_url"):
            lines.append(f"Meeting URL: {meeting['meeting_url']}")
            if meeting.get("meeting_id"):
                lines.append(f"Meeting ID: {meeting['meeting_id']}")
            if meeting.get("passcode"):
                lines.append(f"Passcode: {meeting['passcode']}")
            lines.append("")

        lines.append(f"Created via Job Suite - {self.frontend_url}/dashboard/interviews")
        return "\n".join(lines)

    @staticmethod
    def _interview_location(interview: Interview) -> Optional[str]:
        location = interview.location
        meeting_url = interview.meeting_details.get("meeting_url")
        if location.get("type") == InterviewLocationType.VIRTUAL.value and meeting_url:
            return meeting_url

        address = location.get("address")
        if not address:
            return None
        parts = [address] + [location[key] for key in ("building", "room") if location.get(key)]
        return ", ".join(parts)
