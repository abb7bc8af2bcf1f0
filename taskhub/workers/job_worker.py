"""Queue worker that executes jobs from the `queued_jobs` table.

Retry policy lives here rather than in the jobs: a failed attempt is
rolled back, counted, and either rescheduled with exponential backoff
or, once the job's attempts are used up, marked FAILED and reported to
the job's failed() hook.
"""

import logging
import signal
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlmodel import Session, select

from taskhub.config import get_settings
from taskhub.jobs.base import JobTimeoutError, UnknownJobTypeError, resolve_job
from taskhub.models.queued_job import JobStatus, QueuedJob
from taskhub.workers.base import WorkerBase

logger = logging.getLogger(__name__)


@contextmanager
def time_limit(seconds: float, job_id: int | None = None) -> Iterator[None]:
    """Interrupt the enclosed block with JobTimeoutError after `seconds`.

    Uses SIGALRM, which is only available on Unix and only in the main
    thread. Elsewhere the block runs unbounded and the caller's elapsed
    time check applies instead.
    """
    can_alarm = (
        seconds > 0
        and hasattr(signal, "SIGALRM")
        and threading.current_thread() is threading.main_thread()
    )
    if not can_alarm:
        yield
        return

    def _on_alarm(signum, frame):
        raise JobTimeoutError(f"Job {job_id} exceeded its {seconds}s timeout")

    previous = signal.signal(signal.SIGALRM, _on_alarm)
    signal.setitimer(signal.ITIMER_REAL, seconds)
    try:
        yield
    finally:
        signal.setitimer(signal.ITIMER_REAL, 0)
        signal.signal(signal.SIGALRM, previous)


class JobWorker(WorkerBase[QueuedJob]):
    """Executes due jobs, each in its own transaction.

    Args:
        batch_size: Maximum jobs per cycle
        retry_delay_seconds: Base backoff; the n-th retry waits
            retry_delay_seconds * 2 ** (n - 1)
    """

    def __init__(
        self,
        batch_size: int | None = None,
        retry_delay_seconds: float | None = None,
    ) -> None:
        settings = get_settings()
        super().__init__(batch_size=batch_size or settings.WORKER_BATCH_SIZE)
        self.retry_delay_seconds = (
            settings.WORKER_RETRY_DELAY_SECONDS
            if retry_delay_seconds is None
            else retry_delay_seconds
        )

    @property
    def worker_name(self) -> str:
        return "JobWorker"

    def fetch_pending(self, session: Session) -> list[QueuedJob]:
        now = datetime.utcnow()
        jobs = session.exec(
            select(QueuedJob)
            .where(
                QueuedJob.status == JobStatus.PENDING,
                QueuedJob.available_at <= now,
            )
            .order_by(QueuedJob.available_at, QueuedJob.id)
            .limit(self.batch_size)
        ).all()
        return list(jobs)

    def mark_processing(self, session: Session, item: QueuedJob) -> bool:
        """Claim the row; False when another worker already holds it.

        The conditional UPDATE blocks on a row another worker has claimed
        but not yet committed, then matches nothing once it commits.
        """
        if item.status != JobStatus.PENDING:
            return False

        claimed = session.exec(
            update(QueuedJob)
            .where(QueuedJob.id == item.id, QueuedJob.status == JobStatus.PENDING)
            .values(status=JobStatus.PROCESSING, reserved_at=datetime.utcnow())
        )
        if claimed.rowcount != 1:
            # Drop the stale in-memory state so the caller does not write it back
            session.rollback()
            logger.info("Job already claimed", extra={"job_id": item.id})
            return False

        session.refresh(item)
        return True

    def process_item(self, session: Session, item: QueuedJob) -> None:
        job = resolve_job(item.job_type).from_payload(item.payload)

        started = time.monotonic()
        with time_limit(item.timeout_seconds, item.id):
            job.handle(session)
        elapsed = time.monotonic() - started

        if item.timeout_seconds and elapsed > item.timeout_seconds:
            raise JobTimeoutError(
                f"Job {item.id} took {elapsed:.2f}s, timeout is {item.timeout_seconds}s"
            )

    def mark_completed(self, session: Session, item: QueuedJob) -> None:
        item.status = JobStatus.COMPLETED
        item.attempts += 1
        item.completed_at = datetime.utcnow()
        item.last_error = None
        session.add(item)

    def mark_failed(
        self, session: Session, item: QueuedJob, error: str, can_retry: bool
    ) -> None:
        now = datetime.utcnow()
        item.attempts += 1
        item.last_error = error[:1000]
        item.reserved_at = None

        if can_retry:
            backoff = self.retry_delay_seconds * (2 ** (item.attempts - 1))
            item.status = JobStatus.PENDING
            item.available_at = now + timedelta(seconds=backoff)
            session.add(item)
            return

        item.status = JobStatus.FAILED
        item.failed_at = now
        session.add(item)

        try:
            job = resolve_job(item.job_type).from_payload(item.payload)
        except (UnknownJobTypeError, TypeError) as e:
            logger.error(
                "Permanently failed job could not be rebuilt",
                extra={"job_id": item.id, "job_type": item.job_type, "error": str(e)},
            )
            return
        job.failed(error)

    def get_item_id(self, item: QueuedJob) -> int:
        return item.id

    def should_retry(self, item: QueuedJob) -> bool:
        # The attempt that just failed has not been counted yet
        return item.attempts + 1 < item.max_attempts
