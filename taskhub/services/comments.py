"""Comments nested under a task."""

from datetime import datetime
from typing import Any

from sqlmodel import Session, func, select

from taskhub.db.session import transaction
from taskhub.models.comment import (
    Comment,
    CommentPage,
    CommentResponse,
    CommentWrite,
    DeletedComment,
)
from taskhub.models.common import PaginationMeta, clamp_per_page, normalize_page
from taskhub.models.task import Task
from taskhub.services.errors import NotFoundError, parse_id, validate_input

PREVIEW_LENGTH = 50


def _content(data: CommentWrite | dict[str, Any]) -> str:
    return validate_input(CommentWrite, data).content


def _require_task(session: Session, task_id: int | str) -> int:
    task_id = parse_id(task_id, "task")
    if session.get(Task, task_id) is None:
        raise NotFoundError("task", task_id)
    return task_id


def _get(session: Session, task_id: int | str, comment_id: int | str) -> Comment:
    task_id = _require_task(session, task_id)
    comment_id = parse_id(comment_id, "comment")
    comment = session.exec(
        select(Comment).where(Comment.id == comment_id, Comment.task_id == task_id)
    ).first()
    if comment is None:
        raise NotFoundError("comment", comment_id)
    return comment


def preview(content: str) -> str:
    """First 50 characters followed by an ellipsis."""
    return content[:PREVIEW_LENGTH] + "..."


def list_comments(
    session: Session,
    task_id: int | str,
    per_page: int | None = None,
    page: int | None = None,
) -> CommentPage:
    task_id = _require_task(session, task_id)
    per_page = clamp_per_page(per_page)
    page = normalize_page(page)

    total = session.exec(
        select(func.count()).select_from(Comment).where(Comment.task_id == task_id)
    ).one()
    comments = session.exec(
        select(Comment)
        .where(Comment.task_id == task_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    ).all()

    return CommentPage(
        comments=[CommentResponse.model_validate(c) for c in comments],
        pagination=PaginationMeta.build(page, per_page, total, len(comments)),
    )


def get_comment(session: Session, task_id: int | str, comment_id: int | str) -> CommentResponse:
    return CommentResponse.model_validate(_get(session, task_id, comment_id))


def create_comment(
    session: Session, task_id: int | str, data: CommentWrite | dict[str, Any]
) -> CommentResponse:
    task_id = _require_task(session, task_id)
    comment = Comment(task_id=task_id, content=_content(data))

    with transaction(session):
        session.add(comment)
    session.refresh(comment)
    return CommentResponse.model_validate(comment)


def update_comment(
    session: Session,
    task_id: int | str,
    comment_id: int | str,
    data: CommentWrite | dict[str, Any],
) -> CommentResponse:
    comment = _get(session, task_id, comment_id)
    content = _content(data)

    with transaction(session):
        comment.content = content
        comment.updated_at = datetime.utcnow()
        session.add(comment)
    session.refresh(comment)
    return CommentResponse.model_validate(comment)


def delete_comment(session: Session, task_id: int | str, comment_id: int | str) -> DeletedComment:
    comment = _get(session, task_id, comment_id)
    snapshot = DeletedComment(
        id=comment.id,
        content=preview(comment.content),
        task_id=comment.task_id,
    )

    with transaction(session):
        session.delete(comment)
    return snapshot
