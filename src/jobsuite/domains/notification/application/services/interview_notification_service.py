"""
Interview notification service.

Keeps the reminder registry in step with persisted interviews and fires due
reminder jobs from APScheduler triggers:

* every ``queue_interval_minutes``: pre-interview reminders
* daily at ``thank_you_hour``: thank-you note reminders
* daily at ``follow_up_hour``: decision follow-up sweep over persisted interviews
"""

from datetime import datetime, timedelta
from typing import Awaitable, Callable, List, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from jobsuite.config.settings import ReminderSettings, get_settings
from jobsuite.domains.interview.domain.entities.interview import Interview, InterviewStatus
from jobsuite.domains.interview.domain.entities.participants import InterviewContext
from jobsuite.domains.interview.infrastructure.repositories import (
    InterviewRepository,
    JobApplicationRepository,
    UserRepository,
)
from jobsuite.domains.notification.domain.entities.reminder_job import (
    DispatchOutcome,
    DispatchResult,
    QueueStatus,
    ReminderJob,
    ReminderKind,
    ReminderSlot,
)
from jobsuite.domains.notification.domain.services.reminder_registry import ReminderRegistry
from jobsuite.domains.notification.infrastructure.calendar.calendar_service import CalendarService
from jobsuite.domains.notification.infrastructure.email.email_service import InterviewEmailService
from jobsuite.shared.application.exceptions import NotFoundException
from jobsuite.shared.domain.types import ensure_utc, utc_now
from jobsuite.shared.infrastructure.monitoring.logging import JobLogContext
from jobsuite.shared.infrastructure.monitoring.metrics import MetricsCollector, get_metrics_collector

logger = structlog.get_logger(__name__)

DECISION_FOLLOW_UP_FIELD = "follow_up_reminders.decision_follow_up"

REMINDER_TRIGGER_ID = "interview_reminders"
THANK_YOU_TRIGGER_ID = "interview_thank_you_reminders"
FOLLOW_UP_TRIGGER_ID = "interview_follow_up_reminders"

DispatchHandler = Callable[[ReminderJob, InterviewContext], Awaitable[DispatchResult]]


class InterviewNotificationService:
    """Schedules, cancels and dispatches interview reminder jobs."""

    def __init__(
        self,
        interview_repository: InterviewRepository,
        user_repository: UserRepository,
        application_repository: JobApplicationRepository,
        email_service: InterviewEmailService,
        calendar_service: CalendarService,
        registry: Optional[ReminderRegistry] = None,
        scheduler: Optional[AsyncIOScheduler] = None,
        settings: Optional[ReminderSettings] = None,
        clock: Callable[[], datetime] = utc_now,
        metrics: Optional[MetricsCollector] = None
    ):
        self.interview_repository = interview_repository
        self.user_repository = user_repository
        self.application_repository = application_repository
        self.email_service = email_service
        self.calendar_service = calendar_service
        self.settings = settings or get_settings().reminders
        self.registry = registry if registry is not None else ReminderRegistry()
        self.scheduler = scheduler or AsyncIOScheduler(timezone=self.settings.timezone)
        self.clock = clock
        self.metrics = metrics or get_metrics_collector()
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Register trigger jobs, rebuild the registry and start the scheduler."""
        if self._running:
            return
        if not self.settings.enabled:
            logger.info("Interview notifications disabled")
            return

        try:
            self._register_triggers()
            await self.initialize_existing_interviews()
            self.scheduler.start()
            self._running = True
            logger.info(
                "Interview notification service started",
                queue_interval_minutes=self.settings.queue_interval_minutes,
                jobs=len(self.registry),
            )
        except Exception as e:
            logger.error("Failed to start interview notification service", error=str(e), exc_info=True)
            self.metrics.record_error(type(e).__name__, "notification_scheduler")
            self.registry.clear()
            self.scheduler.remove_all_jobs()

    async def stop(self) -> None:
        """Shut the scheduler down and drop all pending jobs."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.registry.clear()
        self._update_queue_metrics()
        self._running = False
        logger.info("Interview notification service stopped")

    def _register_triggers(self) -> None:
        timezone = self.settings.timezone

        self.scheduler.add_job(
            self.process_reminder_queue,
            trigger=IntervalTrigger(minutes=self.settings.queue_interval_minutes, timezone=timezone),
            id=REMINDER_TRIGGER_ID,
            name="Process interview reminder queue",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )

        self.scheduler.add_job(
            self.process_thank_you_reminders,
            trigger=CronTrigger(hour=self.settings.thank_you_hour, minute=0, timezone=timezone),
            id=THANK_YOU_TRIGGER_ID,
            name="Process thank-you note reminders",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )

        self.scheduler.add_job(
            self.process_follow_up_reminders,
            trigger=CronTrigger(hour=self.settings.follow_up_hour, minute=0, timezone=timezone),
            id=FOLLOW_UP_TRIGGER_ID,
            name="Send decision follow-up reminders",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )

    async def schedule_interview_notifications(self, interview_id: str, send_confirmation: bool = True) -> int:
        """Register reminder jobs for an interview. Returns the number of jobs registered."""
        context = await self._load_context(interview_id)
        if context is None:
            logger.warning("Interview or related records not found, nothing scheduled", interview_id=interview_id)
            return 0
        return await self._schedule(context, send_confirmation)

    async def _schedule(self, context: InterviewContext, send_confirmation: bool) -> int:
        interview = context.interview
        now = self.clock()

        if not interview.is_upcoming(now):
            logger.info("Interview is in the past, nothing scheduled", interview_id=interview.id)
            return 0
        if not interview.is_active:
            logger.info(
                "Interview is not active, nothing scheduled",
                interview_id=interview.id,
                status=interview.status.value,
            )
            return 0

        if send_confirmation:
            await self._send_confirmation(context)

        count = self._register_jobs(interview, now)
        logger.info("Scheduled interview notifications", interview_id=interview.id, jobs=count)
        return count

    def _register_jobs(self, interview: Interview, now: datetime) -> int:
        self.registry.cancel_interview(interview.id)

        count = 0
        for slot in ReminderSlot.reminder_slots():
            fires_at = slot.fire_time(interview.scheduled_date)
            if fires_at <= now:
                continue
            self.registry.add(ReminderJob(interview.id, interview.user_id, slot, fires_at))
            count += 1

        thank_you = ReminderSlot.THANK_YOU
        self.registry.add(
            ReminderJob(interview.id, interview.user_id, thank_you, thank_you.fire_time(interview.scheduled_date))
        )
        count += 1

        self._update_queue_metrics()
        return count

    async def _send_confirmation(self, context: InterviewContext) -> None:
        interview = context.interview
        try:
            ics_content = self.calendar_service.generate_interview_ics(interview, context.user, context.application)
            success = await self.email_service.send_interview_confirmation(
                context.user, interview, context.application, ics_content
            )
            if success:
                await self.interview_repository.mark_confirmation_sent(interview.id)
                logger.info("Sent interview confirmation", interview_id=interview.id)
        except Exception as e:
            logger.error("Failed to send interview confirmation", interview_id=interview.id, error=str(e))
            self.metrics.record_error(type(e).__name__, "notification_dispatch")

    async def cancel_interview_notifications(self, interview_id: str) -> int:
        """Remove every pending job of an interview."""
        removed = self.registry.cancel_interview(interview_id)
        self._update_queue_metrics()
        logger.info("Cancelled interview notifications", interview_id=interview_id, jobs=removed)
        return removed

    async def reschedule_interview_notifications(
        self,
        interview_id: str,
        old_date: datetime,
        new_date: datetime
    ) -> int:
        """Replace an interview's jobs and announce the new time."""
        await self.cancel_interview_notifications(interview_id)

        context = await self._load_context(interview_id)
        if context is None:
            logger.warning("Interview or related records not found, nothing rescheduled", interview_id=interview_id)
            return 0

        interview = context.interview
        if interview.scheduled_date != ensure_utc(new_date):
            logger.warning(
                "Persisted interview date differs from reschedule target",
                interview_id=interview_id,
                persisted=interview.scheduled_date.isoformat(),
                requested=new_date.isoformat(),
            )

        try:
            ics_content = self.calendar_service.generate_interview_ics(interview, context.user, context.application)
            success = await self.email_service.send_interview_rescheduled(
                context.user, interview, context.application, old_date, ics_content
            )
            if success:
                await self.interview_repository.mark_calendar_invite_sent(interview_id)
        except Exception as e:
            logger.error("Failed to send reschedule notification", interview_id=interview_id, error=str(e))
            self.metrics.record_error(type(e).__name__, "notification_dispatch")

        count = await self._schedule(context, send_confirmation=False)
        logger.info(
            "Rescheduled interview notifications",
            interview_id=interview_id,
            old_date=old_date.isoformat(),
            new_date=interview.scheduled_date.isoformat(),
            jobs=count,
        )
        return count

    async def process_reminder_queue(self, now: Optional[datetime] = None) -> List[DispatchResult]:
        """Fire every due pre-interview reminder."""
        return await self._process_due(ReminderKind.REMINDER, now, self._dispatch_reminder)

    async def process_thank_you_reminders(self, now: Optional[datetime] = None) -> List[DispatchResult]:
        """Fire every due thank-you note reminder."""
        return await self._process_due(ReminderKind.THANK_YOU, now, self._dispatch_thank_you)

    async def _process_due(
        self,
        kind: ReminderKind,
        now: Optional[datetime],
        handler: DispatchHandler
    ) -> List[DispatchResult]:
        now = now or self.clock()
        due = self.registry.due_jobs(kind, now)
        if not due:
            return []

        logger.info("Processing due reminder jobs", kind=kind.value, count=len(due))
        results = []
        with self.metrics.reminder_tick_duration.labels(kind=kind.value).time():
            for job in due:
                with JobLogContext(job.id):
                    result = await self._dispatch(job, handler)
                self.metrics.record_notification(kind.value, result.outcome.value)
                results.append(result)

        self._update_queue_metrics()
        return results

    async def _dispatch(self, job: ReminderJob, handler: DispatchHandler) -> DispatchResult:
        if job not in self.registry:
            return DispatchResult.for_job(job, DispatchOutcome.SKIPPED_STALE)

        try:
            context = await self._load_context(job.interview_id)

            # Cancelled or replaced while the records were loading
            if job not in self.registry:
                return DispatchResult.for_job(job, DispatchOutcome.SKIPPED_STALE)

            if context is None:
                logger.warning("Interview or related records missing, dropping job", interview_id=job.interview_id)
                return self._drop(job, DispatchOutcome.SKIPPED_MISSING)

            return await handler(job, context)

        except Exception as e:
            logger.error("Unexpected error processing reminder job", interview_id=job.interview_id, error=str(e), exc_info=True)
            self.metrics.record_error(type(e).__name__, "notification_dispatch")
            return self._record_failure(job, str(e))

    async def _dispatch_reminder(self, job: ReminderJob, context: InterviewContext) -> DispatchResult:
        interview = context.interview
        if not interview.is_active:
            logger.info(
                "Interview no longer active, dropping reminder",
                interview_id=interview.id,
                status=interview.status.value,
            )
            return self._drop(job, DispatchOutcome.SKIPPED_INACTIVE)

        if interview.notification_sent(job.slot.notification_field):
            return self._drop(job, DispatchOutcome.SKIPPED_ALREADY_SENT)

        success = await self.email_service.send_interview_reminder(
            context.user, interview, context.application, job.slot
        )
        return await self._complete(job, success)

    async def _dispatch_thank_you(self, job: ReminderJob, context: InterviewContext) -> DispatchResult:
        interview = context.interview
        if interview.status != InterviewStatus.COMPLETED:
            logger.info("Interview not completed, skipping thank-you reminder", interview_id=interview.id)
            return self._drop(job, DispatchOutcome.SKIPPED_INACTIVE)

        if interview.thank_you_note_sent or interview.notification_sent(job.slot.notification_field):
            logger.info("Thank-you already handled", interview_id=interview.id)
            return self._drop(job, DispatchOutcome.SKIPPED_ALREADY_SENT)

        success = await self.email_service.send_thank_you_reminder(context.user, interview, context.application)
        return await self._complete(job, success)

    async def _complete(self, job: ReminderJob, success: bool) -> DispatchResult:
        if not success:
            return self._record_failure(job, "Email delivery failed")

        job.executed = True
        still_current = self.registry.discard(job)
        if still_current:
            try:
                await self.interview_repository.mark_notification_sent(
                    job.interview_id, job.slot.notification_field, self.clock()
                )
            except Exception as e:
                logger.error("Reminder sent but tracking update failed", interview_id=job.interview_id, error=str(e))
                self.metrics.record_error(type(e).__name__, "notification_tracking")

        logger.info("Sent interview reminder", interview_id=job.interview_id, slot=job.slot.value)
        return DispatchResult.for_job(job, DispatchOutcome.SENT)

    def _drop(self, job: ReminderJob, outcome: DispatchOutcome) -> DispatchResult:
        self.registry.discard(job)
        return DispatchResult.for_job(job, outcome)

    def _record_failure(self, job: ReminderJob, error: str) -> DispatchResult:
        job.record_failure(error)

        if job.attempts >= self.settings.max_dispatch_attempts:
            self.registry.discard(job)
            logger.error(
                "Giving up on reminder job",
                interview_id=job.interview_id,
                slot=job.slot.value,
                attempts=job.attempts,
                error=error,
            )
            return DispatchResult.for_job(job, DispatchOutcome.FAILED, error)

        logger.warning(
            "Reminder job failed, will retry",
            interview_id=job.interview_id,
            slot=job.slot.value,
            attempts=job.attempts,
            error=error,
        )
        return DispatchResult.for_job(job, DispatchOutcome.RETRY, error)

    async def process_follow_up_reminders(self, now: Optional[datetime] = None) -> int:
        """Nudge users about recent completed interviews still awaiting a decision."""
        now = now or self.clock()
        since = now - timedelta(days=self.settings.follow_up_window_days)

        try:
            interviews = await self.interview_repository.find_needing_decision_follow_up(since, now)
        except Exception as e:
            logger.error("Failed to query interviews for decision follow-up", error=str(e))
            self.metrics.record_error(type(e).__name__, "notification_follow_up")
            return 0

        logger.info("Found interviews needing decision follow-up", count=len(interviews))

        sent = 0
        for interview in interviews:
            try:
                user = await self.user_repository.find_by_id(interview.user_id)
                application = await self.application_repository.find_by_id(interview.application_id)
                if not user or not application:
                    logger.warning("Related records missing for follow-up", interview_id=interview.id)
                    self.metrics.record_notification(ReminderKind.FOLLOW_UP.value, DispatchOutcome.SKIPPED_MISSING.value)
                    continue

                if await self.email_service.send_decision_follow_up(user, interview, application):
                    await self.interview_repository.mark_notification_sent(interview.id, DECISION_FOLLOW_UP_FIELD, now)
                    self.metrics.record_notification(ReminderKind.FOLLOW_UP.value, DispatchOutcome.SENT.value)
                    sent += 1
                else:
                    self.metrics.record_notification(ReminderKind.FOLLOW_UP.value, DispatchOutcome.FAILED.value)
            except Exception as e:
                logger.error("Failed to send decision follow-up", interview_id=interview.id, error=str(e))
                self.metrics.record_error(type(e).__name__, "notification_follow_up")

        return sent

    async def initialize_existing_interviews(self, now: Optional[datetime] = None) -> int:
        """Rebuild the registry from persisted upcoming interviews without resending confirmations."""
        now = now or self.clock()
        interviews = await self.interview_repository.find_upcoming_active(now)

        total = 0
        for interview in interviews:
            self._log_missed_slots(interview, now)
            total += self._register_jobs(interview, now)

        logger.info(
            "Initialized notifications for existing interviews",
            interviews=len(interviews),
            jobs=total,
        )
        return total

    def _log_missed_slots(self, interview: Interview, now: datetime) -> None:
        """Report slots that came due while no process was running."""
        scheduled_since = interview.scheduled_since
        for slot in ReminderSlot.reminder_slots():
            fires_at = slot.fire_time(interview.scheduled_date)
            if scheduled_since < fires_at <= now and not interview.notification_sent(slot.notification_field):
                logger.warning(
                    "Reminder slot elapsed while service was down, not resent",
                    interview_id=interview.id,
                    slot=slot.value,
                    fires_at=fires_at.isoformat(),
                )
                self.metrics.record_notification(ReminderKind.REMINDER.value, "missed")

    async def send_test_reminder(self, interview_id: str, slot: ReminderSlot) -> bool:
        """Send one reminder right away without touching the registry."""
        context = await self._load_context(interview_id)
        if context is None:
            raise NotFoundException("Interview", interview_id)

        if slot is ReminderSlot.THANK_YOU:
            return await self.email_service.send_thank_you_reminder(
                context.user, context.interview, context.application
            )
        return await self.email_service.send_interview_reminder(
            context.user, context.interview, context.application, slot
        )

    def get_queue_status(self) -> QueueStatus:
        return self.registry.status()

    async def _load_context(self, interview_id: str) -> Optional[InterviewContext]:
        interview = await self.interview_repository.find_by_id(interview_id)
        if not interview:
            return None

        user = await self.user_repository.find_by_id(interview.user_id)
        application = await self.application_repository.find_by_id(interview.application_id)
        if not user or not application:
            return None

        return InterviewContext(interview=interview, user=user, application=application)

    def _update_queue_metrics(self) -> None:
        status = self.registry.status()
        self.metrics.update_queue_size({
            "pending": status.pending_jobs,
            "executed": status.executed_jobs,
            "retrying": status.retrying_jobs,
        })
