"""Task entity model."""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import field_validator
from sqlmodel import Field, Relationship, SQLModel

from taskhub.models.common import PaginationMeta

if TYPE_CHECKING:
    from taskhub.models.comment import Comment


class TaskStatus(str, Enum):
    """Allowed task states."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class Task(SQLModel, table=True):
    """Task database model."""

    __tablename__ = "tasks"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    status: str = Field(default=TaskStatus.TODO.value, max_length=20, index=True)
    due_date: date | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    comments: list["Comment"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class TaskCreate(SQLModel):
    """Schema for task creation."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    status: TaskStatus = TaskStatus.TODO
    due_date: date | None = None

    model_config = {"use_enum_values": True}

    @field_validator("due_date")
    @classmethod
    def due_date_not_in_past(cls, value: date | None) -> date | None:
        if value is not None and value < date.today():
            raise ValueError("The due date must be today or a later date.")
        return value


class TaskUpdate(SQLModel):
    """Schema for partial task update.

    Fields sent as null are dropped before the merge, so a nullable
    column cannot be cleared through this schema.
    """

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    status: TaskStatus | None = None
    due_date: date | None = None

    model_config = {"use_enum_values": True}


class TaskFilters(SQLModel):
    """Listing filters; every filter that is set is AND-combined."""

    status: str | None = None
    due_before: date | None = None
    due_after: date | None = None
    search: str | None = None
    overdue: bool = False

    @field_validator("status")
    @classmethod
    def drop_unknown_status(cls, value: str | None) -> str | None:
        # Unknown statuses are ignored rather than rejected
        if value is None or value not in TaskStatus.values():
            return None
        return value

    @field_validator("search")
    @classmethod
    def blank_search_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class TaskResponse(SQLModel):
    """Schema for task response."""

    id: int
    title: str
    description: str | None
    status: str
    due_date: date | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskPage(SQLModel):
    """One page of tasks."""

    tasks: list[TaskResponse]
    pagination: PaginationMeta


class TaskData(SQLModel):
    """Envelope payload for single-task endpoints."""

    task: TaskResponse
    message: str | None = None


class DeletedTask(SQLModel):
    """Snapshot of a task taken right before it was deleted."""

    id: int
    title: str
    status: str


class DeletedTaskData(SQLModel):
    """Envelope payload for task deletion."""

    message: str
    deleted_task: DeletedTask
