"""QueuedJob entity model backing the at-least-once job queue."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from taskhub.models.common import JSONType


class JobStatus(str, Enum):
    """Processing status for queue workers."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class QueuedJob(SQLModel, table=True):
    """Queued unit of work.

    Rows are written inside the transaction that produced the work
    (outbox style), so a job exists only if that transaction committed.
    A FAILED row has exhausted max_attempts and will not run again.
    """

    __tablename__ = "queued_jobs"

    id: int | None = Field(default=None, primary_key=True)
    job_type: str = Field(max_length=100, index=True)
    payload: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSONType))
    status: JobStatus = Field(default=JobStatus.PENDING, index=True)
    attempts: int = Field(default=0)
    max_attempts: int = Field(default=3)
    timeout_seconds: float = Field(default=60)
    available_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    reserved_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    failed_at: datetime | None = Field(default=None)
    last_error: str | None = Field(default=None, max_length=1000)
    created_at: datetime = Field(default_factory=datetime.utcnow)
