"""Notification entity model."""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, ForeignKey, Integer
from sqlmodel import Field, Relationship, SQLModel

from taskhub.models.common import JSONType, PaginationMeta

if TYPE_CHECKING:
    from taskhub.models.user import User


class Notification(SQLModel, table=True):
    """Notification database model.

    A row with a null read_at is unread. Rows are only ever created by
    the notification dispatch job.
    """

    __tablename__ = "notifications"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    type: str = Field(max_length=100, index=True)
    data: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSONType))
    read_at: datetime | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    user: "User" = Relationship(back_populates="notifications")

    @property
    def is_read(self) -> bool:
        return self.read_at is not None


class NotificationResponse(SQLModel):
    """Schema for notification response."""

    id: int
    user_id: int
    type: str
    data: dict[str, Any]
    read_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NotificationPage(SQLModel):
    """One page of a user's notifications."""

    notifications: list[NotificationResponse]
    pagination: PaginationMeta


class UnreadCountData(SQLModel):
    unread_count: int


class NotificationData(SQLModel):
    message: str
    notification: NotificationResponse


class MarkAllReadData(SQLModel):
    message: str
    updated_count: int


class DeletedNotification(SQLModel):
    id: int
    type: str
    user_id: int


class DeletedNotificationData(SQLModel):
    message: str
    deleted_notification: DeletedNotification
