"""Tests for projects and task comments."""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from taskhub.models.task import Task
from taskhub.services.comments import create_comment, delete_comment, list_comments, preview
from taskhub.services.errors import NotFoundError, ValidationFailedError
from taskhub.services.projects import create_project, list_projects, update_project

TODAY = date.today()


@pytest.fixture
def task(db_session: Session) -> Task:
    task = Task(title="Commented task")
    db_session.add(task)
    db_session.commit()
    db_session.refresh(task)
    return task


class TestProjectService:
    """Service-level project rules."""

    def test_create(self, db_session: Session, test_user):
        project = create_project(
            db_session,
            {"title": "Launch", "user_id": test_user.id, "start_date": TODAY},
        )

        assert project.status == "pending"
        assert project.user.email == test_user.email

    def test_start_date_in_past(self, db_session: Session, test_user):
        with pytest.raises(ValidationFailedError) as exc_info:
            create_project(
                db_session,
                {"title": "Late", "user_id": test_user.id, "start_date": TODAY - timedelta(days=1)},
            )
        assert "start_date" in exc_info.value.details

    def test_end_before_start(self, db_session: Session, test_user):
        with pytest.raises(ValidationFailedError) as exc_info:
            create_project(
                db_session,
                {
                    "title": "Backwards",
                    "user_id": test_user.id,
                    "start_date": TODAY + timedelta(days=5),
                    "end_date": TODAY + timedelta(days=1),
                },
            )
        assert exc_info.value.details == {
            "end_date": ["The end date must be a date after or equal to the start date."]
        }

    def test_unknown_owner(self, db_session: Session):
        with pytest.raises(ValidationFailedError) as exc_info:
            create_project(db_session, {"title": "Orphan", "user_id": 999})
        assert exc_info.value.details == {"user_id": ["The selected user id is invalid."]}

    def test_update_checks_range_against_stored_dates(self, db_session: Session, test_user):
        project = create_project(
            db_session,
            {"title": "P", "user_id": test_user.id, "start_date": TODAY + timedelta(days=3)},
        )

        with pytest.raises(ValidationFailedError):
            update_project(db_session, project.id, {"end_date": TODAY + timedelta(days=1)})

        updated = update_project(
            db_session, project.id, {"end_date": TODAY + timedelta(days=10), "title": None}
        )
        assert updated.end_date == TODAY + timedelta(days=10)
        assert updated.title == "P"

    def test_list_filters(self, db_session: Session, make_user):
        owner, other = make_user(), make_user()
        create_project(db_session, {"title": "a", "user_id": owner.id, "status": "completed"})
        create_project(db_session, {"title": "b", "user_id": owner.id})
        create_project(db_session, {"title": "c", "user_id": other.id, "status": "completed"})

        assert list_projects(db_session, user_id=owner.id).pagination.total == 2
        assert list_projects(db_session, status="completed").pagination.total == 2
        assert list_projects(db_session, user_id=owner.id, status="completed").pagination.total == 1
        assert list_projects(db_session, status="bogus").pagination.total == 3


class TestProjectEndpoints:
    """HTTP tests for /api/projects."""

    def test_crud(self, client: TestClient, auth_headers, test_user):
        created = client.post(
            "/api/projects",
            json={"title": "Roadmap", "user_id": test_user.id},
            headers=auth_headers,
        )
        assert created.status_code == 201
        assert created.json()["data"]["message"] == "Project created successfully"
        project_id = created.json()["data"]["project"]["id"]

        updated = client.put(
            f"/api/projects/{project_id}",
            json={"status": "in_progress"},
            headers=auth_headers,
        )
        assert updated.json()["data"]["project"]["status"] == "in_progress"

        fetched = client.get(f"/api/projects/{project_id}", headers=auth_headers)
        assert fetched.json()["data"]["title"] == "Roadmap"

        deleted = client.delete(f"/api/projects/{project_id}", headers=auth_headers)
        assert deleted.json()["data"] == {
            "message": "Project deleted successfully",
            "deleted_project": {"id": project_id, "title": "Roadmap", "status": "in_progress"},
        }

        missing = client.get(f"/api/projects/{project_id}", headers=auth_headers)
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "PROJECT_NOT_FOUND"

    def test_status_filter(self, client: TestClient, auth_headers, test_user):
        client.post(
            "/api/projects",
            json={"title": "done", "user_id": test_user.id, "status": "completed"},
            headers=auth_headers,
        )
        client.post("/api/projects", json={"title": "open", "user_id": test_user.id}, headers=auth_headers)

        response = client.get("/api/projects", params={"status": "completed"}, headers=auth_headers)

        assert [p["title"] for p in response.json()["data"]["projects"]] == ["done"]

    def test_invalid_id(self, client: TestClient, auth_headers):
        response = client.get("/api/projects/0", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_PROJECT_ID"


class TestComments:
    """Service and HTTP tests for task comments."""

    def test_preview_truncates(self):
        assert preview("short") == "short..."
        assert preview("x" * 80) == "x" * 50 + "..."

    def test_list_scoped_to_task(self, db_session: Session, task: Task):
        other = Task(title="Other")
        db_session.add(other)
        db_session.commit()
        create_comment(db_session, task.id, {"content": "mine"})
        create_comment(db_session, other.id, {"content": "theirs"})

        page = list_comments(db_session, task.id)

        assert [c.content for c in page.comments] == ["mine"]

    def test_comment_of_other_task_is_not_found(self, db_session: Session, task: Task):
        other = Task(title="Other")
        db_session.add(other)
        db_session.commit()
        comment = create_comment(db_session, other.id, {"content": "theirs"})

        with pytest.raises(NotFoundError) as exc_info:
            delete_comment(db_session, task.id, comment.id)
        assert exc_info.value.code == "COMMENT_NOT_FOUND"

    def test_missing_task(self, db_session: Session):
        with pytest.raises(NotFoundError) as exc_info:
            create_comment(db_session, 404, {"content": "hello"})
        assert exc_info.value.code == "TASK_NOT_FOUND"

    def test_empty_content(self, db_session: Session, task: Task):
        with pytest.raises(ValidationFailedError):
            create_comment(db_session, task.id, {"content": ""})

    def test_crud_endpoints(self, client: TestClient, auth_headers, task: Task):
        base = f"/api/tasks/{task.id}/comments"
        long_text = "A detailed note that runs well past the fifty character preview limit."

        created = client.post(base, json={"content": long_text}, headers=auth_headers)
        assert created.status_code == 201
        assert created.json()["data"]["message"] == "Comment created successfully"
        comment_id = created.json()["data"]["comment"]["id"]

        updated = client.put(
            f"{base}/{comment_id}", json={"content": long_text + "!"}, headers=auth_headers
        )
        assert updated.json()["data"]["comment"]["content"] == long_text + "!"

        listing = client.get(base, headers=auth_headers).json()["data"]
        assert listing["pagination"]["total"] == 1

        deleted = client.delete(f"{base}/{comment_id}", headers=auth_headers)
        assert deleted.json()["data"] == {
            "message": "Comment deleted successfully",
            "deleted_comment": {
                "id": comment_id,
                "content": long_text[:50] + "...",
                "task_id": task.id,
            },
        }

        missing = client.get(f"{base}/{comment_id}", headers=auth_headers)
        assert missing.json()["error"]["code"] == "COMMENT_NOT_FOUND"
