"""Engine, session dependency and transaction helper."""

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import event
from sqlmodel import Session, create_engine

from taskhub.config import get_settings


def resolve_database_url(url: str) -> str:
    """Route plain postgresql:// URLs to the psycopg v3 driver."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def engine_connect_args(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    # Hosted PostgreSQL requires TLS; a local server usually has none
    if "localhost" in url or "127.0.0.1" in url:
        return {}
    return {"sslmode": "require"}


def enable_sqlite_foreign_keys(target_engine) -> None:
    """Make SQLite enforce ON DELETE CASCADE like PostgreSQL does."""

    @event.listens_for(target_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


database_url = resolve_database_url(get_settings().DATABASE_URL)

engine = create_engine(
    database_url,
    echo=False,
    pool_pre_ping=True,
    connect_args=engine_connect_args(database_url),
)

if database_url.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine)


def get_session() -> Generator[Session, None, None]:
    """Yield a session that is closed when the request ends."""
    with Session(engine) as session:
        yield session


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit the enclosed unit of work, or roll all of it back."""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
