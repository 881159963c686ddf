"""
Interview email notifications over SMTP.
"""

from datetime import datetime, timezone
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import aiosmtplib
import structlog

from jobsuite.config.settings import EmailSettings, get_settings
from jobsuite.domains.interview.domain.entities.interview import Interview
from jobsuite.domains.interview.domain.entities.participants import JobApplication, User
from jobsuite.domains.notification.domain.entities.reminder_job import ReminderSlot
from jobsuite.shared.infrastructure.monitoring.metrics import get_metrics_collector

logger = structlog.get_logger(__name__)


# Header colour per reminder urgency
_URGENCY_COLORS = {
    ReminderSlot.FIFTEEN_MINS: "#ff4444",
    ReminderSlot.ONE_HOUR: "#ffa726",
}
_DEFAULT_COLOR = "#2196f3"


def format_interview_time(value: datetime, timezone_name: str) -> str:
    """Render a UTC datetime in the interview's own time zone."""
    try:
        zone = ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        zone = timezone.utc
    local = value.astimezone(zone)
    return local.strftime("%A, %B %d, %Y at %I:%M %p %Z")


class InterviewEmailService:
    """Sends interview lifecycle emails. Every send returns a success flag and never raises."""

    def __init__(self, settings: Optional[EmailSettings] = None, frontend_url: Optional[str] = None):
        app_settings = get_settings()
        self.settings = settings or app_settings.email
        self.frontend_url = frontend_url or app_settings.frontend_url

    @property
    def interviews_url(self) -> str:
        return f"{self.frontend_url}/dashboard/interviews"

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        attachment: Optional[bytes] = None,
        attachment_name: str = "interview.ics",
        template: str = "generic"
    ) -> bool:
        """Send an email using SMTP"""
        metrics = get_metrics_collector()
        try:
            message = self._build_message(
                to_email, subject, html_content, text_content, attachment, attachment_name
            )

            if not self.settings.is_configured:
                # Mock transport for local development
                logger.info(
                    "SMTP not configured, email logged instead of sent",
                    to=to_email,
                    subject=subject,
                    template=template,
                )
                metrics.record_email(template, True)
                return True

            await aiosmtplib.send(
                message,
                hostname=self.settings.smtp_server,
                port=self.settings.smtp_port,
                start_tls=self.settings.smtp_use_tls,
                username=self.settings.smtp_username,
                password=self.settings.smtp_password,
                timeout=self.settings.smtp_timeout,
            )

            logger.info("Email sent", to=to_email, template=template)
            metrics.record_email(template, True)
            return True

        except Exception as e:
            logger.error("Failed to send email", to=to_email, template=template, error=str(e))
            metrics.record_email(template, False)
            metrics.record_error(type(e).__name__, "email")
            return False

    def _build_message(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str],
        attachment: Optional[bytes],
        attachment_name: str
    ) -> MIMEMultipart:
        body = MIMEMultipart("alternative")
        if text_content:
            body.attach(MIMEText(text_content, "plain"))
        body.attach(MIMEText(html_content, "html"))

        if attachment is None:
            message = body
        else:
            message = MIMEMultipart("mixed")
            message.attach(body)
            part = MIMEApplication(attachment, _subtype="ics")
            part.add_header("Content-Disposition", "attachment", filename=attachment_name)
            message.attach(part)

        message["Subject"] = subject
        message["From"] = f"{self.settings.email_from_name} <{self.settings.email_from}>"
        message["To"] = to_email
        return message

    async def send_interview_confirmation(
        self,
        user: User,
        interview: Interview,
        application: JobApplication,
        ics_content: Optional[bytes] = None
    ) -> bool:
        subject, html, text = self._get_confirmation_template(user, interview, application)
        return await self.send_email(
            user.email, subject, html, text,
            attachment=ics_content,
            template="confirmation",
        )

    async def send_interview_reminder(
        self,
        user: User,
        interview: Interview,
        application: JobApplication,
        slot: ReminderSlot
    ) -> bool:
        subject, html, text = self._get_reminder_template(user, interview, application, slot)
        return await self.send_email(user.email, subject, html, text, template=f"reminder_{slot.value}")

    async def send_interview_rescheduled(
        self,
        user: User,
        interview: Interview,
        application: JobApplication,
        old_date: datetime,
        ics_content: Optional[bytes] = None
    ) -> bool:
        subject, html, text = self._get_rescheduled_template(user, interview, application, old_date)
        return await self.send_email(
            user.email, subject, html, text,
            attachment=ics_content,
            template="rescheduled",
        )

    async def send_interview_cancellation(
        self,
        user: User,
        interview: Interview,
        application: JobApplication,
        reason: Optional[str] = None,
        ics_content: Optional[bytes] = None
    ) -> bool:
        subject, html, text = self._get_cancellation_template(user, interview, application, reason)
        return await self.send_email(
            user.email, subject, html, text,
            attachment=ics_content,
            attachment_name="cancellation.ics",
            template="cancellation",
        )

    async def send_thank_you_reminder(self, user: User, interview: Interview, application: JobApplication) -> bool:
        subject, html, text = self._get_thank_you_template(user, interview, application)
        return await self.send_email(user.email, subject, html, text, template="thank_you")

    async def send_decision_follow_up(self, user: User, interview: Interview, application: JobApplication) -> bool:
        subject, html, text = self._get_decision_follow_up_template(user, interview, application)
        return await self.send_email(user.email, subject, html, text, template="decision_follow_up")

    def _wrap_html(self, title: str, heading: str, color: str, body: str) -> str:
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <title>{title}</title>
            <style>
                body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background: {color}; color: white; padding: 30px; border-radius: 8px 8px 0 0; text-align: center; }}
                .content {{ background: #f8f9fa; padding: 30px; border-radius: 0 0 8px 8px; }}
                .details {{ background: white; padding: 20px; border-radius: 6px; margin: 20px 0; }}
                .btn {{ display: inline-block; background: {color}; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header"><h1>{heading}</h1></div>
                <div class="content">
                    {body}
                    <p><a href="{self.interviews_url}" class="btn">View Interview Details</a></p>
                </div>
            </div>
        </body>
        </html>
        """

    def _details_html(self, interview: Interview, application: JobApplication) -> str:
        when = format_interview_time(interview.scheduled_date, interview.timezone)
        rows = [
            f"<p><strong>Position:</strong> {escape(application.job_title)}</p>",
            f"<p><strong>Company:</strong> {escape(application.company_name)}</p>",
            f"<p><strong>When:</strong> {when}</p>",
            f"<p><strong>Type:</strong> {interview.type_label} Interview (Round {interview.round})</p>",
            f"<p><strong>Duration:</strong> {interview.duration} minutes</p>",
        ]
        meeting_url = interview.meeting_details.get("meeting_url")
        if meeting_url:
            link = escape(meeting_url)
            rows.append(f'<p><strong>Meeting link:</strong> <a href="{link}">{link}</a></p>')
        elif interview.location.get("address"):
            rows.append(f"<p><strong>Location:</strong> {escape(interview.location['address'])}</p>")
        return '<div class="details">' + "".join(rows) + "</div>"

    def _details_text(self, interview: Interview, application: JobApplication) -> str:
        when = format_interview_time(interview.scheduled_date, interview.timezone)
        lines = [
            f"- Position: {application.job_title}",
            f"- Company: {application.company_name}",
            f"- When: {when}",
            f"- Type: {interview.type_label} Interview (Round {interview.round})",
            f"- Duration: {interview.duration} minutes",
        ]
        meeting_url = interview.meeting_details.get("meeting_url")
        if meeting_url:
            lines.append(f"- Meeting link: {meeting_url}")
        elif interview.location.get("address"):
            lines.append(f"- Location: {interview.location['address']}")
        return "\n".join(lines)

    def _get_confirmation_template(
        self, user: User, interview: Interview, application: JobApplication
    ) -> Tuple[str, str, str]:
        subject = f"Interview Confirmed: {application.job_title} at {application.company_name}"
        html = self._wrap_html(
            "Interview Confirmation",
            "Interview Confirmed!",
            "#667eea",
            f"<p>Hi {escape(user.greeting_name)},</p>"
            "<p>Your interview has been scheduled. A calendar invite is attached.</p>"
            + self._details_html(interview, application),
        )
        text = (
            f"{subject}\n\n"
            f"Hi {user.greeting_name},\n\n"
            "Your interview has been scheduled. A calendar invite is attached.\n\n"
            f"{self._details_text(interview, application)}\n\n"
            f"View details: {self.interviews_url}"
        )
        return subject, html, text

    def _get_reminder_template(
        self, user: User, interview: Interview, application: JobApplication, slot: ReminderSlot
    ) -> Tuple[str, str, str]:
        subject = f"Reminder: Interview in {slot.label} - {application.company_name}"
        html = self._wrap_html(
            "Interview Reminder",
            "Interview Reminder",
            _URGENCY_COLORS.get(slot, _DEFAULT_COLOR),
            f"<p>Hi {escape(user.greeting_name)},</p>"
            f"<p>Your interview starts in {slot.label}.</p>"
            + self._details_html(interview, application),
        )
        text = (
            f"Interview Reminder - In {slot.label}\n\n"
            f"Hi {user.greeting_name},\n\n"
            f"{self._details_text(interview, application)}\n\n"
            f"View details: {self.interviews_url}"
        )
        return subject, html, text

    def _get_rescheduled_template(
        self, user: User, interview: Interview, application: JobApplication, old_date: datetime
    ) -> Tuple[str, str, str]:
        subject = f"Interview Rescheduled: {application.job_title} at {application.company_name}"
        previous = format_interview_time(old_date, interview.timezone)
        html = self._wrap_html(
            "Interview Rescheduled",
            "Interview Rescheduled",
            "#ff9800",
            f"<p>Hi {escape(user.greeting_name)},</p>"
            f"<p>Your interview originally scheduled for <s>{previous}</s> has moved. "
            "An updated calendar invite is attached.</p>"
            + self._details_html(interview, application),
        )
        text = (
            f"{subject}\n\n"
            f"Hi {user.greeting_name},\n\n"
            f"Previously scheduled: {previous}\n\n"
            f"New details:\n{self._details_text(interview, application)}\n\n"
            f"View details: {self.interviews_url}"
        )
        return subject, html, text

    def _get_cancellation_template(
        self, user: User, interview: Interview, application: JobApplication, reason: Optional[str]
    ) -> Tuple[str, str, str]:
        subject = f"Interview Cancelled: {application.job_title} at {application.company_name}"
        reason_html = f"<p><strong>Reason:</strong> {escape(reason)}</p>" if reason else ""
        html = self._wrap_html(
            "Interview Cancelled",
            "Interview Cancelled",
            "#f44336",
            f"<p>Hi {escape(user.greeting_name)},</p>"
            "<p>The following interview has been cancelled.</p>"
            + reason_html
            + self._details_html(interview, application),
        )
        text = (
            f"{subject}\n\n"
            f"Hi {user.greeting_name},\n\n"
            "The following interview has been cancelled.\n"
            + (f"Reason: {reason}\n" if reason else "")
            + f"\n{self._details_text(interview, application)}"
        )
        return subject, html, text

    def _get_thank_you_template(
        self, user: User, interview: Interview, application: JobApplication
    ) -> Tuple[str, str, str]:
        subject = f"Reminder: Send thank you note for {application.company_name} interview"
        html = self._wrap_html(
            "Thank You Note Reminder",
            "Thank You Note Reminder",
            "#4caf50",
            f"<p>Hi {escape(user.greeting_name)},</p>"
            f"<p>A short thank-you note after your {escape(application.job_title)} interview at "
            f"{escape(application.company_name)} can make all the difference. Mention something specific "
            "from the conversation and restate your interest in the role.</p>",
        )
        text = (
            f"{subject}\n\n"
            f"Hi {user.greeting_name},\n\n"
            f"A short thank-you note after your {application.job_title} interview at "
            f"{application.company_name} can make all the difference.\n\n"
            f"Record it here: {self.interviews_url}"
        )
        return subject, html, text

    def _get_decision_follow_up_template(
        self, user: User, interview: Interview, application: JobApplication
    ) -> Tuple[str, str, str]:
        subject = f"Follow up on your {application.company_name} interview decision"
        html = self._wrap_html(
            "Decision Follow-up",
            "Time to Follow Up",
            "#3f51b5",
            f"<p>Hi {escape(user.greeting_name)},</p>"
            f"<p>You have not heard back about your {escape(application.job_title)} interview at "
            f"{escape(application.company_name)} yet. A polite check-in with the recruiter is a good next step.</p>",
        )
        text = (
            f"{subject}\n\n"
            f"Hi {user.greeting_name},\n\n"
            f"You have not heard back about your {application.job_title} interview at "
            f"{application.company_name} yet. A polite check-in with the recruiter is a good next step.\n\n"
            f"Update the outcome: {self.interviews_url}"
        )
        return subject, html, text
