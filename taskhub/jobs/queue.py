"""Database-backed job queue.

push() only adds a row to the caller's session. The job becomes visible
to workers when that session commits, so jobs pushed from inside a
failed transaction are discarded with it.
"""

import logging
from datetime import datetime, timedelta

from sqlmodel import Session, func, select

from taskhub.jobs.base import Job
from taskhub.models.queued_job import JobStatus, QueuedJob

logger = logging.getLogger(__name__)


class JobQueue:
    """Enqueue and inspect queued jobs."""

    def push(self, session: Session, job: Job, delay_seconds: float = 0) -> QueuedJob:
        """Queue `job` inside the caller's transaction.

        Args:
            session: Session of the unit of work producing the job
            job: The job to queue
            delay_seconds: Earliest start, relative to now

        Returns:
            QueuedJob: The pending queue row (flushed, not committed)
        """
        row = QueuedJob(
            job_type=job.job_type,
            payload=job.to_payload(),
            status=JobStatus.PENDING,
            max_attempts=job.tries,
            timeout_seconds=job.timeout,
            available_at=datetime.utcnow() + timedelta(seconds=delay_seconds),
        )
        session.add(row)
        session.flush()

        logger.debug(
            "Job queued",
            extra={"job_id": row.id, "job_type": row.job_type},
        )
        return row

    def pending(self, session: Session, job_type: str | None = None) -> list[QueuedJob]:
        """Pending rows in queue order, optionally of one job type."""
        statement = select(QueuedJob).where(QueuedJob.status == JobStatus.PENDING)
        if job_type is not None:
            statement = statement.where(QueuedJob.job_type == job_type)
        statement = statement.order_by(QueuedJob.available_at, QueuedJob.id)
        return list(session.exec(statement).all())

    def count(
        self,
        session: Session,
        job_type: str | None = None,
        status: JobStatus | None = None,
    ) -> int:
        statement = select(func.count()).select_from(QueuedJob)
        if job_type is not None:
            statement = statement.where(QueuedJob.job_type == job_type)
        if status is not None:
            statement = statement.where(QueuedJob.status == status)
        return session.exec(statement).one()


_queue_instance: JobQueue | None = None


def get_job_queue() -> JobQueue:
    """Get or create the job queue singleton."""
    global _queue_instance
    if _queue_instance is None:
        _queue_instance = JobQueue()
    return _queue_instance
