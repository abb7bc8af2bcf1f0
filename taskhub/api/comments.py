"""Task comment endpoints."""

from fastapi import APIRouter, Query, status

from taskhub.api.deps import CurrentUser, DBSession
from taskhub.models.comment import (
    CommentData,
    CommentPage,
    CommentResponse,
    CommentWrite,
    DeletedCommentData,
)
from taskhub.models.common import ApiResponse
from taskhub.services.comments import (
    create_comment,
    delete_comment,
    get_comment,
    list_comments,
    update_comment,
)

router = APIRouter(prefix="/api/tasks/{task_id}/comments", tags=["Comments"])


@router.get("", response_model=ApiResponse[CommentPage])
def list_comments_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    task_id: str,
    per_page: int | None = Query(default=None),
    page: int | None = Query(default=None),
) -> ApiResponse[CommentPage]:
    return ApiResponse(data=list_comments(session, task_id, per_page=per_page, page=page))


@router.post("", response_model=ApiResponse[CommentData], status_code=status.HTTP_201_CREATED)
def create_comment_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    task_id: str,
    comment_data: CommentWrite,
) -> ApiResponse[CommentData]:
    comment = create_comment(session, task_id, comment_data)
    return ApiResponse(data=CommentData(comment=comment, message="Comment created successfully"))


@router.get("/{comment_id}", response_model=ApiResponse[CommentResponse])
def get_comment_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    task_id: str,
    comment_id: str,
) -> ApiResponse[CommentResponse]:
    return ApiResponse(data=get_comment(session, task_id, comment_id))


@router.put("/{comment_id}", response_model=ApiResponse[CommentData])
def update_comment_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    task_id: str,
    comment_id: str,
    comment_data: CommentWrite,
) -> ApiResponse[CommentData]:
    comment = update_comment(session, task_id, comment_id, comment_data)
    return ApiResponse(data=CommentData(comment=comment, message="Comment updated successfully"))


@router.delete("/{comment_id}", response_model=ApiResponse[DeletedCommentData])
def delete_comment_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    task_id: str,
    comment_id: str,
) -> ApiResponse[DeletedCommentData]:
    deleted = delete_comment(session, task_id, comment_id)
    return ApiResponse(
        data=DeletedCommentData(message="Comment deleted successfully", deleted_comment=deleted)
    )
