"""Background workers for the database-backed job queue.

`JobWorker` executes due rows of `queued_jobs`; `WorkerRunner` drives it
once (`run_worker_once`) or in a polling loop (`run_worker_loop`).
"""

from taskhub.workers.base import WorkerBase, WorkerResult, WorkerStatus
from taskhub.workers.job_worker import JobWorker, time_limit
from taskhub.workers.runner import (
    RunnerResult,
    WorkerRunner,
    configure_worker_logging,
    run_worker_loop,
    run_worker_once,
)

__all__ = [
    "WorkerBase",
    "WorkerResult",
    "WorkerStatus",
    "JobWorker",
    "time_limit",
    "WorkerRunner",
    "RunnerResult",
    "configure_worker_logging",
    "run_worker_loop",
    "run_worker_once",
]
