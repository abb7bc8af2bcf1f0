"""Notification endpoints, scoped to the user in the path."""

from fastapi import APIRouter, Query

from taskhub.api.deps import CurrentUser, DBSession
from taskhub.models.common import ApiResponse
from taskhub.models.notification import (
    DeletedNotificationData,
    MarkAllReadData,
    NotificationData,
    NotificationPage,
    UnreadCountData,
)
from taskhub.services.notifications import (
    delete_notification,
    list_notifications,
    mark_all_read,
    mark_read,
    mark_unread,
    unread_count,
)

router = APIRouter(prefix="/api/users/{user_id}/notifications", tags=["Notifications"])


@router.get("", response_model=ApiResponse[NotificationPage])
def list_notifications_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    user_id: str,
    unread_only: bool = Query(default=False, description="Only unread notifications"),
    per_page: int | None = Query(default=None, description="Page size, clamped to 1-100"),
    page: int | None = Query(default=None, description="1-based page number"),
) -> ApiResponse[NotificationPage]:
    """List a user's notifications, newest first."""
    return ApiResponse(
        data=list_notifications(
            session, user_id, unread_only=unread_only, per_page=per_page, page=page
        )
    )


@router.get("/unread-count", response_model=ApiResponse[UnreadCountData])
def unread_count_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    user_id: str,
) -> ApiResponse[UnreadCountData]:
    return ApiResponse(data=UnreadCountData(unread_count=unread_count(session, user_id)))


@router.patch("/mark-all-read", response_model=ApiResponse[MarkAllReadData])
def mark_all_read_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    user_id: str,
) -> ApiResponse[MarkAllReadData]:
    updated = mark_all_read(session, user_id)
    return ApiResponse(
        data=MarkAllReadData(message="All notifications marked as read", updated_count=updated)
    )


@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationData])
def mark_read_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    user_id: str,
    notification_id: str,
) -> ApiResponse[NotificationData]:
    notification = mark_read(session, user_id, notification_id)
    return ApiResponse(
        data=NotificationData(message="Notification marked as read", notification=notification)
    )


@router.patch("/{notification_id}/unread", response_model=ApiResponse[NotificationData])
def mark_unread_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    user_id: str,
    notification_id: str,
) -> ApiResponse[NotificationData]:
    notification = mark_unread(session, user_id, notification_id)
    return ApiResponse(
        data=NotificationData(message="Notification marked as unread", notification=notification)
    )


@router.delete("/{notification_id}", response_model=ApiResponse[DeletedNotificationData])
def delete_notification_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    user_id: str,
    notification_id: str,
) -> ApiResponse[DeletedNotificationData]:
    deleted = delete_notification(session, user_id, notification_id)
    return ApiResponse(
        data=DeletedNotificationData(
            message="Notification deleted successfully",
            deleted_notification=deleted,
        )
    )
