"""
In-process registry of pending reminder jobs.
"""

from datetime import datetime
from typing import Dict, Iterator, List, Optional

from jobsuite.domains.notification.domain.entities.reminder_job import (
    QueueStatus,
    ReminderJob,
    ReminderKind,
)


class ReminderRegistry:
    """
    Maps job keys ``"{interview_id}-{slot}"`` to reminder jobs.

    The registry is process-local and holds no locks. All mutation happens
    on the event loop thread, so each method runs to completion without
    interleaving.
    """

    def __init__(self):
        self._jobs: Dict[str, ReminderJob] = {}

    def add(self, job: ReminderJob) -> None:
        """Insert a job, replacing any job under the same key."""
        self._jobs[job.id] = job

    def get(self, job_id: str) -> Optional[ReminderJob]:
        return self._jobs.get(job_id)

    def __contains__(self, job: object) -> bool:
        if isinstance(job, ReminderJob):
            return self._jobs.get(job.id) is job
        return job in self._jobs

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[ReminderJob]:
        return iter(self.jobs())

    def jobs(self) -> List[ReminderJob]:
        """Snapshot of all jobs."""
        return list(self._jobs.values())

    def jobs_for_interview(self, interview_id: str) -> List[ReminderJob]:
        return [job for job in self._jobs.values() if job.interview_id == interview_id]

    def cancel_interview(self, interview_id: str) -> int:
        """Remove every job owned by an interview. Returns the number removed."""
        doomed = [job.id for job in self.jobs_for_interview(interview_id)]
        for job_id in doomed:
            del self._jobs[job_id]
        return len(doomed)

    def due_jobs(self, kind: ReminderKind, now: datetime) -> List[ReminderJob]:
        """Unexecuted jobs of ``kind`` due at ``now``, oldest first."""
        due = [job for job in self._jobs.values() if job.kind == kind and job.is_due(now)]
        return sorted(due, key=lambda job: job.fires_at)

    def discard(self, job: ReminderJob) -> bool:
        """Remove ``job`` only if it is still the registered job for its key."""
        if self._jobs.get(job.id) is job:
            del self._jobs[job.id]
            return True
        return False

    def status(self) -> QueueStatus:
        jobs_by_type: Dict[str, int] = {}
        pending = executed = retrying = 0
        for job in self._jobs.values():
            jobs_by_type[job.kind.value] = jobs_by_type.get(job.kind.value, 0) + 1
            if job.executed:
                executed += 1
            else:
                pending += 1
                if job.attempts > 0:
                    retrying += 1

        return QueueStatus(
            total_jobs=len(self._jobs),
            pending_jobs=pending,
            executed_jobs=executed,
            retrying_jobs=retrying,
            jobs_by_type=jobs_by_type,
        )

    def clear(self) -> None:
        self._jobs.clear()
