"""User account listing and removal."""

import logging

from sqlmodel import Session, func, select

from taskhub.db.session import transaction
from taskhub.models.common import PaginationMeta, clamp_per_page, normalize_page
from taskhub.models.user import DeletedUser, User, UserListData, UserResponse
from taskhub.services.errors import NotFoundError, parse_id

logger = logging.getLogger(__name__)


def list_users(session: Session, per_page: int | None = None, page: int | None = None) -> UserListData:
    """Newest accounts first."""
    per_page = clamp_per_page(per_page)
    page = normalize_page(page)

    total = session.exec(select(func.count()).select_from(User)).one()
    users = session.exec(
        select(User)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    ).all()

    return UserListData(
        users=[UserResponse.model_validate(user) for user in users],
        pagination=PaginationMeta.build(page, per_page, total, len(users)),
    )


def get_user(session: Session, user_id: int | str) -> User:
    """Load a user or raise NotFoundError("user")."""
    user = session.get(User, parse_id(user_id, "user"))
    if user is None:
        raise NotFoundError("user", user_id)
    return user


def delete_user(session: Session, user_id: int | str) -> DeletedUser:
    """Delete an account together with its notifications and projects."""
    user = get_user(session, user_id)
    snapshot = DeletedUser(id=user.id, name=user.name, email=user.email)

    with transaction(session):
        session.delete(user)

    logger.info("User deleted", extra={"user_id": snapshot.id})
    return snapshot
