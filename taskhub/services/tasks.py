"""Task service: CRUD with read-through caching and update events.

Reads go through the cache under the "tasks" tag. Every mutation runs in
one transaction and then invalidates the whole tag; cached entries are
never patched in place.
"""

import hashlib
import json
import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy import or_
from sqlmodel import Session, func, select

from taskhub.cache.tagged import TaggedCache
from taskhub.config import get_settings
from taskhub.db.session import transaction
from taskhub.events.dispatcher import EventDispatcher
from taskhub.events.types import TaskUpdatedEvent
from taskhub.models.common import PaginationMeta, clamp_per_page, normalize_page
from taskhub.models.task import (
    DeletedTask,
    Task,
    TaskCreate,
    TaskFilters,
    TaskPage,
    TaskResponse,
    TaskStatus,
    TaskUpdate,
)
from taskhub.services.errors import NotFoundError, parse_id, validate_input

logger = logging.getLogger(__name__)

CACHE_TAG = "tasks"
CACHE_PREFIX = "tasks"


class TaskService:
    """Task lifecycle operations.

    Args:
        session: Database session for the unit of work
        cache: Read-through cache shared across requests
        dispatcher: Receives a TaskUpdatedEvent for every effective update
    """

    def __init__(
        self,
        session: Session,
        cache: TaggedCache,
        dispatcher: EventDispatcher,
    ) -> None:
        self.session = session
        self.cache = cache
        self.dispatcher = dispatcher
        settings = get_settings()
        self.cache_ttl = settings.CACHE_TTL_SECONDS
        self.events_enabled = settings.EVENTS_ENABLED

    # ------------------------------------------------------------------
    # Cache keys
    # ------------------------------------------------------------------

    @staticmethod
    def list_cache_key(filters: TaskFilters, per_page: int, page: int) -> str:
        """Same filters, page size and page always give the same key."""
        active = {
            name: value.isoformat() if isinstance(value, date) else value
            for name, value in sorted(filters.model_dump().items())
            if value not in (None, "", False)
        }
        active["per_page"] = per_page
        active["page"] = page
        digest = hashlib.md5(
            json.dumps(active, sort_keys=True, separators=(",", ":")).encode("utf-8")
        ).hexdigest()
        return f"{CACHE_PREFIX}:paginated:{digest}"

    @staticmethod
    def task_cache_key(task_id: int) -> str:
        return f"{CACHE_PREFIX}:task:id:{task_id}"

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_tasks(
        self,
        filters: TaskFilters | dict[str, Any] | None = None,
        per_page: int | None = None,
        page: int | None = None,
    ) -> TaskPage:
        """One page of tasks matching every given filter, newest first."""
        filters = validate_input(TaskFilters, filters or {})
        per_page = clamp_per_page(per_page)
        page = normalize_page(page)

        cached = self.cache.remember(
            self.list_cache_key(filters, per_page, page),
            self.cache_ttl,
            lambda: self._query_page(filters, per_page, page).model_dump(mode="json", by_alias=True),
            tags=(CACHE_TAG,),
        )
        return TaskPage.model_validate(cached)

    def _query_page(self, filters: TaskFilters, per_page: int, page: int) -> TaskPage:
        conditions = []
        if filters.status:
            conditions.append(Task.status == filters.status)
        if filters.due_before:
            conditions.append(Task.due_date <= filters.due_before)
        if filters.due_after:
            conditions.append(Task.due_date >= filters.due_after)
        if filters.search:
            term = filters.search.lower()
            conditions.append(
                or_(
                    func.lower(Task.title).contains(term, autoescape=True),
                    func.lower(Task.description).contains(term, autoescape=True),
                )
            )
        if filters.overdue:
            conditions.append(Task.due_date < date.today())
            conditions.append(Task.status != TaskStatus.DONE.value)

        total = self.session.exec(
            select(func.count()).select_from(Task).where(*conditions)
        ).one()
        tasks = self.session.exec(
            select(Task)
            .where(*conditions)
            .order_by(Task.created_at.desc(), Task.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        ).all()

        logger.debug(
            "Tasks loaded from store",
            extra={"total": total, "page": page, "per_page": per_page},
        )
        return TaskPage(
            tasks=[TaskResponse.model_validate(task) for task in tasks],
            pagination=PaginationMeta.build(page, per_page, total, len(tasks)),
        )

    def get_task(self, task_id: int | str) -> TaskResponse:
        """Load one task; NotFoundError("task") if it does not exist."""
        task_id = parse_id(task_id, "task")

        def resolve() -> dict[str, Any] | None:
            task = self.session.get(Task, task_id)
            if task is None:
                return None
            return TaskResponse.model_validate(task).model_dump(mode="json")

        cached = self.cache.remember(
            self.task_cache_key(task_id),
            self.cache_ttl,
            resolve,
            tags=(CACHE_TAG,),
        )
        if cached is None:
            raise NotFoundError("task", task_id)
        return TaskResponse.model_validate(cached)

    def _load(self, task_id: int | str) -> Task:
        task = self.session.get(Task, parse_id(task_id, "task"))
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_task(self, data: TaskCreate | dict[str, Any]) -> TaskResponse:
        task_data = validate_input(TaskCreate, data)
        task = Task(
            title=task_data.title,
            description=task_data.description,
            status=task_data.status,
            due_date=task_data.due_date,
        )

        with transaction(self.session):
            self.session.add(task)
        self.session.refresh(task)

        self.cache.invalidate_tags(CACHE_TAG)
        logger.info("Task created", extra={"task_id": task.id})
        return TaskResponse.model_validate(task)

    def update_task(self, task_id: int | str, data: TaskUpdate | dict[str, Any]) -> TaskResponse:
        """Apply a partial update and raise a TaskUpdatedEvent.

        Fields given as null are dropped, so nullable columns cannot be
        cleared here. The event lists only the fields whose value actually
        changed and is not raised when nothing changed.
        """
        task = self._load(task_id)
        task_data = validate_input(TaskUpdate, data)
        changes = {
            name: value
            for name, value in task_data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        updated_fields = [name for name, value in changes.items() if getattr(task, name) != value]

        with transaction(self.session):
            for name, value in changes.items():
                setattr(task, name, value)
            task.updated_at = datetime.utcnow()
            self.session.add(task)
            self.session.flush()

            if updated_fields and self.events_enabled:
                self.dispatcher.dispatch(
                    self.session,
                    TaskUpdatedEvent.for_task(task, updated_fields),
                )

        self.session.refresh(task)
        self.cache.invalidate_tags(CACHE_TAG)

        logger.info(
            "Task updated",
            extra={"task_id": task.id, "updated_fields": updated_fields},
        )
        return TaskResponse.model_validate(task)

    def delete_task(self, task_id: int | str) -> DeletedTask:
        """Delete a task and its comments; returns what was removed."""
        task = self._load(task_id)
        snapshot = DeletedTask(id=task.id, title=task.title, status=task.status)

        with transaction(self.session):
            self.session.delete(task)

        self.cache.invalidate_tags(CACHE_TAG)
        logger.info("Task deleted", extra={"task_id": snapshot.id})
        return snapshot
