"""Queued jobs and the database-backed queue they travel on."""

from taskhub.jobs.base import Job, JobTimeoutError, UnknownJobTypeError, resolve_job
from taskhub.jobs.call_queued_listener import CallQueuedListener
from taskhub.jobs.queue import JobQueue, get_job_queue
from taskhub.jobs.send_notification import SendNotificationJob

__all__ = [
    "Job",
    "JobTimeoutError",
    "UnknownJobTypeError",
    "resolve_job",
    "JobQueue",
    "get_job_queue",
    "SendNotificationJob",
    "CallQueuedListener",
]
