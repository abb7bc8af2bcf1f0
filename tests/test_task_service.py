"""Tests for TaskService: validation, filtering, pagination, caching and events."""

from datetime import date, datetime, timedelta
from unittest.mock import Mock

import pytest
from sqlmodel import Session, select

from taskhub.events.dispatcher import EventDispatcher
from taskhub.events.types import EventType, TaskUpdatedEvent
from taskhub.models.comment import Comment
from taskhub.models.task import Task, TaskFilters
from taskhub.services.errors import InvalidArgumentError, NotFoundError, ValidationFailedError
from taskhub.services.tasks import TaskService


def _insert(session: Session, title: str, **fields) -> Task:
    """Insert a task directly, bypassing the service and its cache."""
    task = Task(title=title, **fields)
    session.add(task)
    session.commit()
    session.refresh(task)
    return task


@pytest.fixture
def recording_dispatcher() -> Mock:
    return Mock(spec=EventDispatcher)


@pytest.fixture
def recorded_service(db_session, cache, recording_dispatcher) -> TaskService:
    return TaskService(db_session, cache, recording_dispatcher)


class TestCreateTask:
    """Tests for task creation."""

    def test_create_defaults_status_to_todo(self, task_service: TaskService):
        task = task_service.create_task({"title": "Write report"})

        assert task.id is not None
        assert task.status == "todo"
        assert task.description is None
        assert task.due_date is None

    def test_create_rejects_past_due_date(self, task_service: TaskService):
        yesterday = date.today() - timedelta(days=1)

        with pytest.raises(ValidationFailedError) as exc_info:
            task_service.create_task({"title": "Late", "due_date": yesterday.isoformat()})

        assert exc_info.value.code == "VALIDATION_ERROR"
        assert exc_info.value.details == {
            "due_date": ["The due date must be today or a later date."]
        }

    def test_create_accepts_today(self, task_service: TaskService):
        task = task_service.create_task({"title": "Today", "due_date": date.today()})
        assert task.due_date == date.today()

    def test_create_requires_title(self, task_service: TaskService):
        with pytest.raises(ValidationFailedError) as exc_info:
            task_service.create_task({"description": "no title"})
        assert "title" in exc_info.value.details

    def test_create_rejects_unknown_status(self, task_service: TaskService):
        with pytest.raises(ValidationFailedError) as exc_info:
            task_service.create_task({"title": "x", "status": "archived"})
        assert "status" in exc_info.value.details

    def test_create_rejects_long_title(self, task_service: TaskService):
        with pytest.raises(ValidationFailedError):
            task_service.create_task({"title": "x" * 256})

    def test_create_then_list_contains_task(self, task_service: TaskService):
        created = task_service.create_task({"title": "Visible"})
        page = task_service.list_tasks()

        assert [t.id for t in page.tasks] == [created.id]

    def test_create_does_not_emit_event(self, recorded_service, recording_dispatcher):
        recorded_service.create_task({"title": "Quiet"})
        recording_dispatcher.dispatch.assert_not_called()


class TestListTasks:
    """Tests for filtering, ordering and pagination."""

    def test_newest_first(self, db_session: Session, task_service: TaskService):
        base = datetime(2026, 1, 1, 12, 0, 0)
        first = _insert(db_session, "first", created_at=base)
        second = _insert(db_session, "second", created_at=base + timedelta(minutes=1))
        # Same timestamp: higher id wins the tie
        third = _insert(db_session, "third", created_at=base + timedelta(minutes=1))

        ids = [t.id for t in task_service.list_tasks().tasks]
        assert ids == [third.id, second.id, first.id]

    @pytest.mark.parametrize(
        "requested, expected",
        [(None, 15), (0, 1), (-5, 1), (1, 1), (50, 50), (1000, 100)],
    )
    def test_per_page_is_clamped(self, task_service: TaskService, requested, expected):
        page = task_service.list_tasks(per_page=requested)
        assert page.pagination.per_page == expected

    def test_pagination_metadata(self, db_session: Session, task_service: TaskService):
        for i in range(5):
            _insert(db_session, f"task {i}")

        page = task_service.list_tasks(per_page=2, page=2)

        assert len(page.tasks) == 2
        assert page.pagination.total == 5
        assert page.pagination.total_pages == 3
        assert page.pagination.current_page == 2
        assert page.pagination.from_ == 3
        assert page.pagination.to == 4

    def test_page_below_one_is_first_page(self, db_session: Session, task_service: TaskService):
        _insert(db_session, "only")
        page = task_service.list_tasks(page=0)
        assert page.pagination.current_page == 1
        assert len(page.tasks) == 1

    def test_status_filter(self, db_session: Session, task_service: TaskService):
        _insert(db_session, "a", status="todo")
        done = _insert(db_session, "b", status="done")

        page = task_service.list_tasks({"status": "done"})
        assert [t.id for t in page.tasks] == [done.id]

    def test_unknown_status_filter_is_ignored(self, db_session: Session, task_service: TaskService):
        _insert(db_session, "a", status="todo")
        _insert(db_session, "b", status="done")

        page = task_service.list_tasks({"status": "archived"})
        assert page.pagination.total == 2

    def test_due_range_is_inclusive(self, db_session: Session, task_service: TaskService):
        d = date(2030, 5, 10)
        before = _insert(db_session, "before", due_date=d - timedelta(days=1))
        on = _insert(db_session, "on", due_date=d)
        after = _insert(db_session, "after", due_date=d + timedelta(days=1))

        up_to = {t.id for t in task_service.list_tasks({"due_before": d}).tasks}
        from_ = {t.id for t in task_service.list_tasks({"due_after": d}).tasks}

        assert up_to == {before.id, on.id}
        assert from_ == {on.id, after.id}

    def test_search_is_case_insensitive_over_title_or_description(
        self, db_session: Session, task_service: TaskService
    ):
        by_title = _insert(db_session, "Quarterly REPORT")
        by_description = _insert(db_session, "Misc", description="draft the report outline")
        _insert(db_session, "Unrelated", description="nothing here")

        page = task_service.list_tasks({"search": "Report"})
        assert {t.id for t in page.tasks} == {by_title.id, by_description.id}

    def test_search_treats_wildcards_literally(self, db_session: Session, task_service: TaskService):
        literal = _insert(db_session, "100% done")
        _insert(db_session, "100 percent")

        page = task_service.list_tasks({"search": "100%"})
        assert [t.id for t in page.tasks] == [literal.id]

    def test_overdue_excludes_done_and_future(self, db_session: Session, task_service: TaskService):
        past = date.today() - timedelta(days=3)
        overdue = _insert(db_session, "late", due_date=past, status="in-progress")
        _insert(db_session, "late but done", due_date=past, status="done")
        _insert(db_session, "today", due_date=date.today())
        _insert(db_session, "no due date")

        page = task_service.list_tasks({"overdue": True})
        assert [t.id for t in page.tasks] == [overdue.id]

    def test_filters_are_combined(self, db_session: Session, task_service: TaskService):
        match = _insert(db_session, "report", status="todo")
        _insert(db_session, "report", status="done")
        _insert(db_session, "other", status="todo")

        page = task_service.list_tasks({"status": "todo", "search": "report"})
        assert [t.id for t in page.tasks] == [match.id]


class TestListCaching:
    """The listing is served from the cache until a mutation invalidates it."""

    def test_cache_hit_does_not_query_store(self, db_session: Session, task_service: TaskService):
        _insert(db_session, "cached")
        assert task_service.list_tasks().pagination.total == 1

        # Written behind the service's back: invisible until invalidation
        _insert(db_session, "sneaky")
        assert task_service.list_tasks().pagination.total == 1

    def test_mutation_invalidates_listing(self, db_session: Session, task_service: TaskService):
        _insert(db_session, "cached")
        task_service.list_tasks()
        _insert(db_session, "sneaky")

        task_service.create_task({"title": "via service"})

        assert task_service.list_tasks().pagination.total == 3

    def test_cache_key_is_deterministic(self):
        a = TaskFilters(search="x", status="todo")
        b = TaskFilters(status="todo", search="x")

        assert TaskService.list_cache_key(a, 15, 1) == TaskService.list_cache_key(b, 15, 1)
        assert TaskService.list_cache_key(a, 15, 1) != TaskService.list_cache_key(a, 20, 1)
        assert TaskService.list_cache_key(a, 15, 1) != TaskService.list_cache_key(a, 15, 2)

    def test_empty_filters_share_a_key(self):
        assert TaskService.list_cache_key(TaskFilters(), 15, 1) == TaskService.list_cache_key(
            TaskFilters(search="   ", status="bogus"), 15, 1
        )


class TestGetTask:
    """Tests for fetching a single task."""

    def test_get_existing(self, task_service: TaskService):
        created = task_service.create_task({"title": "find me"})
        assert task_service.get_task(created.id).title == "find me"

    def test_get_missing_raises_not_found(self, task_service: TaskService):
        with pytest.raises(NotFoundError) as exc_info:
            task_service.get_task(999)
        assert exc_info.value.code == "TASK_NOT_FOUND"
        assert exc_info.value.status_code == 404

    @pytest.mark.parametrize("bad_id", ["abc", "0", "-1", "1.5", 0, -3, ""])
    def test_get_invalid_id(self, task_service: TaskService, bad_id):
        with pytest.raises(InvalidArgumentError) as exc_info:
            task_service.get_task(bad_id)
        assert exc_info.value.code == "INVALID_TASK_ID"
        assert exc_info.value.status_code == 400

    def test_get_is_cached(self, db_session: Session, task_service: TaskService):
        task = _insert(db_session, "original")
        task_service.get_task(task.id)

        task.title = "changed behind the cache"
        db_session.add(task)
        db_session.commit()

        assert task_service.get_task(task.id).title == "original"

    def test_miss_is_not_cached(self, db_session: Session, task_service: TaskService):
        with pytest.raises(NotFoundError):
            task_service.get_task(1)

        task = _insert(db_session, "arrives later")
        assert task_service.get_task(task.id).title == "arrives later"


class TestUpdateTask:
    """Tests for partial updates and the TaskUpdatedEvent."""

    def test_update_then_get_reflects_change(self, task_service: TaskService):
        created = task_service.create_task({"title": "before"})
        task_service.get_task(created.id)

        task_service.update_task(created.id, {"title": "after"})

        assert task_service.get_task(created.id).title == "after"

    def test_update_emits_one_event_with_changed_fields(
        self, recorded_service: TaskService, recording_dispatcher: Mock
    ):
        created = recorded_service.create_task({"title": "t", "status": "todo"})

        recorded_service.update_task(created.id, {"status": "done", "title": "t"})

        recording_dispatcher.dispatch.assert_called_once()
        _, event = recording_dispatcher.dispatch.call_args.args
        assert isinstance(event, TaskUpdatedEvent)
        assert event.event_type == EventType.TASK_UPDATED
        assert event.updated_fields == ("status",)
        assert event.task.id == created.id
        assert event.task.status == "done"

    def test_event_lists_every_changed_field(
        self, recorded_service: TaskService, recording_dispatcher: Mock
    ):
        created = recorded_service.create_task({"title": "t"})

        recorded_service.update_task(
            created.id, {"status": "in-progress", "description": "d", "title": "t2"}
        )

        _, event = recording_dispatcher.dispatch.call_args.args
        assert set(event.updated_fields) == {"status", "description", "title"}

    def test_no_event_when_nothing_changed(
        self, recorded_service: TaskService, recording_dispatcher: Mock
    ):
        created = recorded_service.create_task({"title": "same"})

        recorded_service.update_task(created.id, {"title": "same"})

        recording_dispatcher.dispatch.assert_not_called()

    def test_null_fields_are_dropped(self, task_service: TaskService):
        created = task_service.create_task({"title": "keep", "description": "stays"})

        updated = task_service.update_task(created.id, {"description": None, "status": "done"})

        assert updated.description == "stays"
        assert updated.status == "done"

    def test_events_can_be_disabled(
        self, recorded_service: TaskService, recording_dispatcher: Mock
    ):
        created = recorded_service.create_task({"title": "t"})
        recorded_service.events_enabled = False

        recorded_service.update_task(created.id, {"title": "u"})

        recording_dispatcher.dispatch.assert_not_called()

    def test_dispatch_failure_rolls_back_update(
        self, db_session: Session, recorded_service: TaskService, recording_dispatcher: Mock
    ):
        created = recorded_service.create_task({"title": "original"})
        recording_dispatcher.dispatch.side_effect = RuntimeError("queue down")

        with pytest.raises(RuntimeError):
            recorded_service.update_task(created.id, {"title": "lost"})

        assert db_session.get(Task, created.id).title == "original"

    def test_update_missing_task(self, task_service: TaskService):
        with pytest.raises(NotFoundError):
            task_service.update_task(42, {"title": "x"})

    def test_update_invalid_id(self, task_service: TaskService):
        with pytest.raises(InvalidArgumentError):
            task_service.update_task("abc", {"title": "x"})

    def test_update_rejects_invalid_status(self, task_service: TaskService):
        created = task_service.create_task({"title": "t"})
        with pytest.raises(ValidationFailedError):
            task_service.update_task(created.id, {"status": "nope"})

    def test_update_bumps_updated_at(self, task_service: TaskService):
        created = task_service.create_task({"title": "t"})
        updated = task_service.update_task(created.id, {"title": "u"})
        assert updated.updated_at >= created.updated_at


class TestDeleteTask:
    """Tests for task deletion."""

    def test_delete_returns_snapshot(self, task_service: TaskService):
        created = task_service.create_task({"title": "bye", "status": "in-progress"})

        deleted = task_service.delete_task(created.id)

        assert deleted.model_dump() == {"id": created.id, "title": "bye", "status": "in-progress"}

    def test_get_after_delete_is_not_found(self, task_service: TaskService):
        created = task_service.create_task({"title": "bye"})
        task_service.get_task(created.id)

        task_service.delete_task(created.id)

        with pytest.raises(NotFoundError):
            task_service.get_task(created.id)

    def test_delete_removes_comments(self, db_session: Session, task_service: TaskService):
        created = task_service.create_task({"title": "with comments"})
        db_session.add(Comment(task_id=created.id, content="hello"))
        db_session.commit()

        task_service.delete_task(created.id)

        assert db_session.exec(select(Comment)).all() == []

    def test_delete_does_not_emit_event(self, recorded_service, recording_dispatcher):
        created = recorded_service.create_task({"title": "bye"})
        recorded_service.delete_task(created.id)
        recording_dispatcher.dispatch.assert_not_called()

    def test_delete_missing(self, task_service: TaskService):
        with pytest.raises(NotFoundError):
            task_service.delete_task(7)


class TestCreateUpdateDeleteScenario:
    """Create, update, then delete a task and check each observable step."""

    def test_full_lifecycle(self, task_service: TaskService):
        created = task_service.create_task({"title": "Draft", "due_date": date.today()})
        assert task_service.list_tasks().pagination.total == 1

        updated = task_service.update_task(created.id, {"status": "in-progress"})
        assert updated.status == "in-progress"
        assert task_service.get_task(created.id).status == "in-progress"

        deleted = task_service.delete_task(created.id)
        assert deleted.id == created.id
        assert task_service.list_tasks().pagination.total == 0
        with pytest.raises(NotFoundError):
            task_service.get_task(created.id)
