"""Drives the background workers against the configured database.

Entry points:
- run_worker_once(): one cycle of every worker
- run_worker_loop(): cycles until a shutdown signal or an iteration cap
"""

import logging
import signal
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlmodel import Session

from taskhub.config import get_settings
from taskhub.db.session import engine
from taskhub.workers.base import WorkerBase, WorkerResult
from taskhub.workers.job_worker import JobWorker

logger = logging.getLogger(__name__)


@dataclass
class RunnerResult:
    """Aggregated counters for one pass over every worker."""

    started_at: datetime
    completed_at: datetime | None = None
    workers_run: int = 0
    total_processed: int = 0
    total_failed: int = 0
    worker_results: dict[str, WorkerResult] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @property
    def busy(self) -> bool:
        """Whether this pass found any work at all."""
        return self.total_processed + self.total_failed > 0

    def record(self, name: str, result: WorkerResult) -> None:
        self.worker_results[name] = result
        self.workers_run += 1
        self.total_processed += result.processed_count
        self.total_failed += result.failed_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "workers_run": self.workers_run,
            "total_processed": self.total_processed,
            "total_failed": self.total_failed,
            "worker_results": {
                name: result.to_dict() for name, result in self.worker_results.items()
            },
            "errors": self.errors,
        }


class WorkerRunner:
    """Runs each configured worker in turn.

    Args:
        batch_size: Batch size for the default JobWorker
        retry_delay_seconds: Base backoff for the default JobWorker
        workers: Use these workers instead of the default JobWorker
    """

    def __init__(
        self,
        batch_size: int | None = None,
        retry_delay_seconds: float | None = None,
        workers: list[WorkerBase] | None = None,
    ) -> None:
        self._workers: list[WorkerBase] = workers or [
            JobWorker(batch_size=batch_size, retry_delay_seconds=retry_delay_seconds),
        ]
        self._logger = logging.getLogger(self.__class__.__name__)
        self._shutdown_requested = False

    @contextmanager
    def _session_scope(self, session: Session | None) -> Iterator[Session]:
        if session is not None:
            yield session
            return
        with Session(engine) as own_session:
            yield own_session

    def run_once(self, session: Session | None = None) -> RunnerResult:
        """One cycle of every worker; opens a session unless one is given."""
        result = RunnerResult(started_at=datetime.utcnow())

        with self._session_scope(session) as active:
            for worker in self._workers:
                try:
                    result.record(worker.worker_name, worker.run(active))
                except Exception as e:
                    message = f"{worker.worker_name} failed: {e}"
                    result.errors.append(message)
                    self._logger.error(message, extra={"worker": worker.worker_name}, exc_info=True)

        result.completed_at = datetime.utcnow()
        if result.busy or result.errors:
            self._logger.info("Worker pass completed", extra=result.to_dict())
        return result

    def run_loop(
        self,
        interval_seconds: int | None = None,
        max_iterations: int | None = None,
    ) -> None:
        """Keep running passes; sleep `interval_seconds` only after an idle one."""
        interval = interval_seconds or get_settings().WORKER_POLL_INTERVAL_SECONDS
        iterations = 0
        self._setup_signal_handlers()
        self._logger.info(
            "Worker loop started",
            extra={"interval_seconds": interval, "max_iterations": max_iterations},
        )

        try:
            while not self._shutdown_requested:
                if max_iterations is not None and iterations >= max_iterations:
                    self._logger.info(f"Stopping after {iterations} iterations")
                    break

                result = self.run_once()
                iterations += 1

                if not result.busy and not self._shutdown_requested:
                    time.sleep(interval)
        except KeyboardInterrupt:
            self._logger.info("Interrupted, shutting down")

        self._logger.info("Worker loop stopped", extra={"total_iterations": iterations})

    def _setup_signal_handlers(self) -> None:
        def _on_signal(signum, frame):
            self._logger.info(f"Signal {signum} received, finishing current pass")
            self._shutdown_requested = True

        signal.signal(signal.SIGINT, _on_signal)
        signal.signal(signal.SIGTERM, _on_signal)

    def request_shutdown(self) -> None:
        """Ask the loop to stop before its next pass."""
        self._shutdown_requested = True


def run_worker_once(
    batch_size: int | None = None,
    retry_delay_seconds: float | None = None,
) -> RunnerResult:
    """Run every worker once against the configured database."""
    return WorkerRunner(batch_size=batch_size, retry_delay_seconds=retry_delay_seconds).run_once()


def run_worker_loop(
    interval_seconds: int | None = None,
    max_iterations: int | None = None,
    batch_size: int | None = None,
    retry_delay_seconds: float | None = None,
) -> None:
    """Run workers until interrupted or `max_iterations` passes have run."""
    runner = WorkerRunner(batch_size=batch_size, retry_delay_seconds=retry_delay_seconds)
    runner.run_loop(interval_seconds=interval_seconds, max_iterations=max_iterations)


def configure_worker_logging(level: int = logging.INFO) -> None:
    """Console logging for worker processes."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.getLogger("taskhub").setLevel(level)
    # Keep SQL echo out of worker output
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
