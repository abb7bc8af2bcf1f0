"""Authentication API endpoints."""

from fastapi import APIRouter, status

from taskhub.api.deps import CurrentUser, DBSession
from taskhub.models.common import ApiResponse, MessageData
from taskhub.models.user import AuthData, UserCreate, UserLogin, UserResponse
from taskhub.services.auth import authenticate_user, create_auth_data, register_user

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
)
def register_endpoint(session: DBSession, user_data: UserCreate) -> ApiResponse[AuthData]:
    """Register a new user account."""
    user = register_user(session, user_data)
    return ApiResponse(data=create_auth_data(user))


@router.post("/login", response_model=ApiResponse[AuthData])
def login_endpoint(session: DBSession, credentials: UserLogin) -> ApiResponse[AuthData]:
    """Sign in with email and password."""
    user = authenticate_user(session, credentials.email, credentials.password)
    return ApiResponse(data=create_auth_data(user))


@router.post("/logout", response_model=ApiResponse[MessageData])
def logout_endpoint(current_user: CurrentUser) -> ApiResponse[MessageData]:
    """Sign out."""
    # Tokens are stateless; the client discards its copy.
    return ApiResponse(data=MessageData(message="Logged out successfully"))


@router.get("/me", response_model=ApiResponse[UserResponse])
def me_endpoint(current_user: CurrentUser) -> ApiResponse[UserResponse]:
    """Return the authenticated user."""
    return ApiResponse(data=UserResponse.model_validate(current_user))
