"""Shared response schemas: the JSON envelope and pagination metadata."""

from math import ceil
from typing import Generic, TypeVar

from pydantic import BaseModel, Field
from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON everywhere else (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")

DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 100

T = TypeVar("T")


def clamp_per_page(per_page: int | None, default: int = DEFAULT_PER_PAGE) -> int:
    """Clamp a requested page size into [1, MAX_PER_PAGE]."""
    if per_page is None:
        return default
    return max(1, min(int(per_page), MAX_PER_PAGE))


def normalize_page(page: int | None) -> int:
    """Pages are 1-based; anything lower falls back to the first page."""
    if page is None:
        return 1
    return max(1, int(page))


class PaginationMeta(BaseModel):
    """Pagination block returned alongside every paginated collection."""

    current_page: int
    total_pages: int
    per_page: int
    total: int
    from_: int | None = Field(default=None, alias="from")
    to: int | None = None

    model_config = {"populate_by_name": True}

    @classmethod
    def build(cls, page: int, per_page: int, total: int, count: int) -> "PaginationMeta":
        """Describe one page of `count` rows out of `total`."""
        first = (page - 1) * per_page + 1 if count else None
        return cls(
            current_page=page,
            total_pages=max(1, ceil(total / per_page)),
            per_page=per_page,
            total=total,
            from_=first,
            to=first + count - 1 if first is not None else None,
        )


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {"success": true, "data": ...}."""

    success: bool = True
    data: T


class MessageData(BaseModel):
    """Payload for endpoints that only confirm an action."""

    message: str
