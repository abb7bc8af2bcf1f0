"""API dependencies for dependency injection."""

from collections.abc import Generator
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from taskhub.cache.tagged import TaggedCache, get_cache
from taskhub.db.session import get_session
from taskhub.events.dispatcher import EventDispatcher, get_event_dispatcher
from taskhub.models.user import User
from taskhub.services.auth import decode_jwt
from taskhub.services.errors import AuthenticationError
from taskhub.services.tasks import TaskService

# Missing credentials are reported through the error envelope, not FastAPI's 403
security = HTTPBearer(auto_error=False)


def get_db_session() -> Generator[Session, None, None]:
    """Get database session dependency."""
    yield from get_session()


DBSession = Annotated[Session, Depends(get_db_session)]


def get_current_user(
    session: DBSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> User:
    """Get current authenticated user from JWT token."""
    if credentials is None:
        raise AuthenticationError()

    user = session.get(User, decode_jwt(credentials.credentials))
    if user is None:
        raise AuthenticationError("Invalid or expired token.")

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_task_cache() -> TaggedCache:
    return get_cache()


def get_dispatcher() -> EventDispatcher:
    return get_event_dispatcher()


def get_task_service(
    session: DBSession,
    cache: Annotated[TaggedCache, Depends(get_task_cache)],
    dispatcher: Annotated[EventDispatcher, Depends(get_dispatcher)],
) -> TaskService:
    return TaskService(session, cache, dispatcher)


TaskServiceDep = Annotated[TaskService, Depends(get_task_service)]
