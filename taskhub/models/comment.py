"""Comment entity model."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlmodel import Field, Relationship, SQLModel

from taskhub.models.common import PaginationMeta

if TYPE_CHECKING:
    from taskhub.models.task import Task


class Comment(SQLModel, table=True):
    """Comment database model."""

    __tablename__ = "comments"

    id: int | None = Field(default=None, primary_key=True)
    task_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    task: "Task" = Relationship(back_populates="comments")


class CommentWrite(SQLModel):
    """Schema for comment creation and update."""

    content: str = Field(min_length=1)


class CommentResponse(SQLModel):
    id: int
    task_id: int
    content: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CommentData(SQLModel):
    comment: CommentResponse
    message: str | None = None


class CommentPage(SQLModel):
    comments: list[CommentResponse]
    pagination: PaginationMeta


class DeletedComment(SQLModel):
    id: int
    content: str
    task_id: int


class DeletedCommentData(SQLModel):
    message: str
    deleted_comment: DeletedComment
