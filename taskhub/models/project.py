"""Project entity model."""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import ValidationInfo, field_validator
from sqlalchemy import Column, ForeignKey, Integer
from sqlmodel import Field, Relationship, SQLModel

from taskhub.models.common import PaginationMeta

if TYPE_CHECKING:
    from taskhub.models.user import User


class ProjectStatus(str, Enum):
    """Allowed project states."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class Project(SQLModel, table=True):
    """Project database model."""

    __tablename__ = "projects"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    status: str = Field(default=ProjectStatus.PENDING.value, max_length=20, index=True)
    start_date: date | None = Field(default=None)
    end_date: date | None = Field(default=None)
    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    user: "User" = Relationship(back_populates="projects")


def _check_date_range(start: date | None, end: date | None) -> None:
    if start is not None and end is not None and end < start:
        raise ValueError("The end date must be a date after or equal to the start date.")


class ProjectCreate(SQLModel):
    """Schema for project creation."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    status: ProjectStatus = ProjectStatus.PENDING
    start_date: date | None = None
    end_date: date | None = None
    user_id: int

    model_config = {"use_enum_values": True}

    @field_validator("start_date")
    @classmethod
    def start_date_not_in_past(cls, value: date | None) -> date | None:
        if value is not None and value < date.today():
            raise ValueError("The start date must be today or a later date.")
        return value

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, value: date | None, info: ValidationInfo) -> date | None:
        _check_date_range(info.data.get("start_date"), value)
        return value


class ProjectUpdate(SQLModel):
    """Schema for partial project update; null fields are ignored."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    status: ProjectStatus | None = None
    start_date: date | None = None
    end_date: date | None = None

    model_config = {"use_enum_values": True}

    @field_validator("end_date")
    @classmethod
    def end_after_start(cls, value: date | None, info: ValidationInfo) -> date | None:
        _check_date_range(info.data.get("start_date"), value)
        return value


class ProjectOwner(SQLModel):
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}


class ProjectResponse(SQLModel):
    """Schema for project response."""

    id: int
    title: str
    description: str | None
    status: str
    start_date: date | None
    end_date: date | None
    user_id: int
    user: ProjectOwner | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectPage(SQLModel):
    projects: list[ProjectResponse]
    pagination: PaginationMeta


class ProjectData(SQLModel):
    project: ProjectResponse
    message: str | None = None


class DeletedProject(SQLModel):
    id: int
    title: str
    status: str


class DeletedProjectData(SQLModel):
    message: str
    deleted_project: DeletedProject
