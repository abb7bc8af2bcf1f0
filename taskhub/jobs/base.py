"""Base class for queued jobs.

A job is a small serializable unit of work. Concrete jobs are
dataclasses whose fields form the queued payload; each subclass that
declares a `job_type` is registered so the worker can rebuild it from a
`queued_jobs` row.
"""

import dataclasses
import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from sqlmodel import Session

logger = logging.getLogger(__name__)


class UnknownJobTypeError(LookupError):
    """A queued row names a job type with no registered class."""


class JobTimeoutError(Exception):
    """A job ran past its timeout. Treated as a retryable failure."""


class Job(ABC):
    """Queued unit of work.

    Class attributes:
        job_type: Registry key stored on the queued row
        tries: Total attempts before the job is marked failed
        timeout: Seconds a single attempt may run
    """

    job_type: ClassVar[str]
    tries: ClassVar[int] = 3
    timeout: ClassVar[float] = 60

    _registry: ClassVar[dict[str, type["Job"]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        job_type = cls.__dict__.get("job_type")
        if job_type:
            Job._registry[job_type] = cls

    @abstractmethod
    def handle(self, session: Session) -> None:
        """Run the job. Raising marks the attempt as failed."""
        pass

    def failed(self, error: str) -> None:
        """Called once after the final attempt failed."""
        logger.error(
            "Job permanently failed",
            extra={"job_type": self.job_type, "error": error},
        )

    def to_payload(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Job":
        return cls(**payload)


def resolve_job(job_type: str) -> type[Job]:
    """Look up the job class registered under `job_type`."""
    try:
        return Job._registry[job_type]
    except KeyError:
        raise UnknownJobTypeError(f"No job registered for type '{job_type}'") from None
