"""Shared pytest fixtures.

Every test gets its own in-memory SQLite database. The API client runs
against that same session, so tests can arrange data directly and then
observe it over HTTP (and the other way round).
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_SECRET", "test-secret")
os.environ.setdefault("CACHE_BACKEND", "memory")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from taskhub.api.deps import get_db_session, get_task_cache
from taskhub.cache import InMemoryCache, TaggedCache
from taskhub.db.session import enable_sqlite_foreign_keys
from taskhub.events.dispatcher import EventDispatcher
from taskhub.jobs.queue import JobQueue
from taskhub.main import app
from taskhub.models import Comment, Notification, Project, QueuedJob, Task, User  # noqa: F401
from taskhub.services.auth import generate_jwt, hash_password
from taskhub.services.tasks import TaskService
from taskhub.workers.job_worker import JobWorker

PASSWORD = "password123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine():
    """Create an isolated in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    """Create a test database session."""
    with Session(engine) as session:
        yield session


@pytest.fixture
def make_user(db_session: Session):
    """Factory for users with unique emails."""
    counter = {"n": 0}

    def _make(name: str | None = None, email: str | None = None) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"User {counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            hashed_password=PASSWORD_HASH,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def test_user(make_user):
    """Create a test user."""
    return make_user(name="Test User", email="test@example.com")


@pytest.fixture
def cache() -> TaggedCache:
    return TaggedCache(InMemoryCache())


@pytest.fixture
def queue() -> JobQueue:
    return JobQueue()


@pytest.fixture
def dispatcher(queue: JobQueue) -> EventDispatcher:
    return EventDispatcher(queue=queue)


@pytest.fixture
def task_service(db_session: Session, cache: TaggedCache, dispatcher: EventDispatcher) -> TaskService:
    return TaskService(db_session, cache, dispatcher)


@pytest.fixture
def worker() -> JobWorker:
    """Queue worker that retries immediately."""
    return JobWorker(batch_size=50, retry_delay_seconds=0)


@pytest.fixture
def client(db_session: Session, cache: TaggedCache):
    """API client bound to the test database and cache."""

    def _session_override():
        yield db_session

    app.dependency_overrides[get_db_session] = _session_override
    app.dependency_overrides[get_task_cache] = lambda: cache
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(test_user: User) -> dict[str, str]:
    token, _ = generate_jwt(test_user.id)
    return {"Authorization": f"Bearer {token}"}
