"""Per-user notification store.

Every operation is scoped to one user. A notification that belongs to
someone else is reported exactly like one that does not exist.
"""

import logging
from datetime import datetime

from sqlmodel import Session, func, select

from taskhub.db.session import transaction
from taskhub.models.common import PaginationMeta, clamp_per_page, normalize_page
from taskhub.models.notification import (
    DeletedNotification,
    Notification,
    NotificationPage,
    NotificationResponse,
)
from taskhub.models.user import User
from taskhub.services.errors import NotFoundError, parse_id

logger = logging.getLogger(__name__)


def _require_user(session: Session, user_id: int | str) -> int:
    user_id = parse_id(user_id, "user")
    if session.get(User, user_id) is None:
        raise NotFoundError("user", user_id)
    return user_id


def _get_owned(session: Session, user_id: int | str, notification_id: int | str) -> Notification:
    user_id = _require_user(session, user_id)
    notification_id = parse_id(notification_id, "notification")
    notification = session.exec(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    ).first()
    if notification is None:
        raise NotFoundError("notification", notification_id)
    return notification


def list_notifications(
    session: Session,
    user_id: int | str,
    unread_only: bool = False,
    per_page: int | None = None,
    page: int | None = None,
) -> NotificationPage:
    """A user's notifications, newest first."""
    user_id = _require_user(session, user_id)
    per_page = clamp_per_page(per_page)
    page = normalize_page(page)

    conditions = [Notification.user_id == user_id]
    if unread_only:
        conditions.append(Notification.read_at.is_(None))

    total = session.exec(
        select(func.count()).select_from(Notification).where(*conditions)
    ).one()
    notifications = session.exec(
        select(Notification)
        .where(*conditions)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    ).all()

    return NotificationPage(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        pagination=PaginationMeta.build(page, per_page, total, len(notifications)),
    )


def unread_count(session: Session, user_id: int | str) -> int:
    user_id = _require_user(session, user_id)
    return session.exec(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read_at.is_(None))
    ).one()


def mark_read(session: Session, user_id: int | str, notification_id: int | str) -> NotificationResponse:
    """Set read_at to now. An already-read notification keeps its original read_at."""
    notification = _get_owned(session, user_id, notification_id)
    if notification.read_at is not None:
        return NotificationResponse.model_validate(notification)

    now = datetime.utcnow()

    with transaction(session):
        notification.read_at = now
        notification.updated_at = now
        session.add(notification)
    session.refresh(notification)
    return NotificationResponse.model_validate(notification)


def mark_unread(session: Session, user_id: int | str, notification_id: int | str) -> NotificationResponse:
    notification = _get_owned(session, user_id, notification_id)

    with transaction(session):
        notification.read_at = None
        notification.updated_at = datetime.utcnow()
        session.add(notification)
    session.refresh(notification)
    return NotificationResponse.model_validate(notification)


def mark_all_read(session: Session, user_id: int | str) -> int:
    """Mark every unread notification of the user as read; returns how many changed."""
    user_id = _require_user(session, user_id)
    now = datetime.utcnow()

    unread = session.exec(
        select(Notification).where(
            Notification.user_id == user_id,
            Notification.read_at.is_(None),
        )
    ).all()

    with transaction(session):
        for notification in unread:
            notification.read_at = now
            notification.updated_at = now
            session.add(notification)
    updated = len(unread)

    logger.info(
        "Notifications marked as read",
        extra={"user_id": user_id, "updated_count": updated},
    )
    return updated


def delete_notification(
    session: Session, user_id: int | str, notification_id: int | str
) -> DeletedNotification:
    notification = _get_owned(session, user_id, notification_id)
    snapshot = DeletedNotification(
        id=notification.id,
        type=notification.type,
        user_id=notification.user_id,
    )

    with transaction(session):
        session.delete(notification)
    return snapshot
