"""User administration endpoints."""

from fastapi import APIRouter, Query

from taskhub.api.deps import CurrentUser, DBSession
from taskhub.models.common import ApiResponse
from taskhub.models.user import DeletedUserData, UserListData
from taskhub.services.users import delete_user, list_users

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=ApiResponse[UserListData])
def list_users_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    per_page: int | None = Query(default=None, description="Page size, clamped to 1-100"),
    page: int | None = Query(default=None, description="1-based page number"),
) -> ApiResponse[UserListData]:
    """List user accounts, newest first."""
    return ApiResponse(data=list_users(session, per_page=per_page, page=page))


@router.delete("/{user_id}", response_model=ApiResponse[DeletedUserData])
def delete_user_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    user_id: str,
) -> ApiResponse[DeletedUserData]:
    """Delete a user along with their notifications and projects."""
    deleted = delete_user(session, user_id)
    return ApiResponse(
        data=DeletedUserData(message="User deleted successfully", deleted_user=deleted)
    )
