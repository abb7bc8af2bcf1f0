"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import SQLModel

import taskhub.models  # noqa: F401  (registers every table)
from taskhub.api import auth, comments, notifications, projects, tasks, users
from taskhub.api.errors import register_exception_handlers
from taskhub.config import get_settings
from taskhub.db.session import engine

logger = logging.getLogger(__name__)

LOCAL_ORIGINS = ("http://localhost:3000", "http://localhost:3001")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate settings and create missing tables on startup."""
    get_settings().validate()
    SQLModel.metadata.create_all(engine)
    logger.info("Database schema ready")
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    application = FastAPI(
        title="Taskhub API",
        description="Tasks, projects, comments and user notifications",
        version="1.0.0",
        lifespan=lifespan,
    )

    origins = sorted({origin for origin in (settings.FRONTEND_URL, *LOCAL_ORIGINS) if origin})
    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(application)
    for module in (auth, users, tasks, comments, projects, notifications):
        application.include_router(module.router)

    @application.get("/health")
    def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    return application


app = create_app()
