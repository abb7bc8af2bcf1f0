"""HTTP tests for /api/tasks and the shared error envelope."""

from datetime import date, timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from taskhub.models.queued_job import QueuedJob
from taskhub.services.tasks import TaskService


class TestEnvelope:
    """Every response is wrapped in the success or error envelope."""

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.json() == {"status": "healthy"}

    def test_success_envelope(self, client: TestClient, auth_headers):
        response = client.get("/api/tasks", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["tasks"] == []
        assert set(body["data"]["pagination"]) == {
            "current_page", "total_pages", "per_page", "total", "from", "to",
        }

    def test_missing_token(self, client: TestClient):
        response = client.get("/api/tasks")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "error": {"code": "UNAUTHENTICATED", "message": "Authentication required."},
        }

    def test_bad_token(self, client: TestClient):
        response = client.get("/api/tasks", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHENTICATED"

    def test_unknown_route(self, client: TestClient):
        response = client.get("/api/nothing-here")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_unexpected_error_is_opaque(self, client: TestClient, auth_headers):
        with patch.object(TaskService, "list_tasks", side_effect=RuntimeError("secret detail")):
            response = client.get("/api/tasks", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": {"code": "SERVER_ERROR", "message": "Something went wrong."},
        }


class TestTaskEndpoints:
    """CRUD over HTTP."""

    def test_create(self, client: TestClient, auth_headers):
        response = client.post(
            "/api/tasks",
            json={"title": "Write docs", "description": "API reference"},
            headers=auth_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["message"] == "Task created successfully"
        assert data["task"]["title"] == "Write docs"
        assert data["task"]["status"] == "todo"

    def test_create_validation_details(self, client: TestClient, auth_headers):
        yesterday = (date.today() - timedelta(days=1)).isoformat()

        response = client.post(
            "/api/tasks",
            json={"title": "", "status": "bogus", "due_date": yesterday},
            headers=auth_headers,
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert set(error["details"]) == {"title", "status", "due_date"}
        assert error["details"]["due_date"] == ["The due date must be today or a later date."]

    def test_get_invalid_id(self, client: TestClient, auth_headers):
        response = client.get("/api/tasks/abc", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == {
            "code": "INVALID_TASK_ID",
            "message": "Invalid task ID provided.",
        }

    def test_get_missing(self, client: TestClient, auth_headers):
        response = client.get("/api/tasks/404", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "TASK_NOT_FOUND"

    def test_list_filters_and_pagination(self, client: TestClient, auth_headers):
        for title, status in [("alpha", "todo"), ("beta", "done"), ("gamma", "todo")]:
            client.post("/api/tasks", json={"title": title, "status": status}, headers=auth_headers)

        response = client.get(
            "/api/tasks",
            params={"status": "todo", "per_page": 1, "page": 2},
            headers=auth_headers,
        )

        data = response.json()["data"]
        assert [t["title"] for t in data["tasks"]] == ["alpha"]
        assert data["pagination"] == {
            "current_page": 2,
            "total_pages": 2,
            "per_page": 1,
            "total": 2,
            "from": 2,
            "to": 2,
        }

    def test_list_search(self, client: TestClient, auth_headers):
        client.post("/api/tasks", json={"title": "Plan Sprint"}, headers=auth_headers)
        client.post("/api/tasks", json={"title": "Other"}, headers=auth_headers)

        response = client.get("/api/tasks", params={"search": "sprint"}, headers=auth_headers)

        assert [t["title"] for t in response.json()["data"]["tasks"]] == ["Plan Sprint"]

    def test_update_queues_notification_fan_out(
        self, client: TestClient, auth_headers, db_session: Session
    ):
        created = client.post("/api/tasks", json={"title": "t"}, headers=auth_headers).json()
        task_id = created["data"]["task"]["id"]

        response = client.put(
            f"/api/tasks/{task_id}", json={"status": "done"}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["message"] == "Task updated successfully"
        assert data["task"]["status"] == "done"
        jobs = db_session.exec(select(QueuedJob)).all()
        assert [job.job_type for job in jobs] == ["call_queued_listener"]

    def test_update_validation(self, client: TestClient, auth_headers):
        created = client.post("/api/tasks", json={"title": "t"}, headers=auth_headers).json()
        task_id = created["data"]["task"]["id"]

        response = client.put(f"/api/tasks/{task_id}", json={"status": "nope"}, headers=auth_headers)

        assert response.status_code == 422
        assert "status" in response.json()["error"]["details"]

    def test_create_update_delete_scenario(self, client: TestClient, auth_headers):
        created = client.post(
            "/api/tasks", json={"title": "Lifecycle"}, headers=auth_headers
        ).json()["data"]["task"]

        client.put(
            f"/api/tasks/{created['id']}",
            json={"title": "Lifecycle v2", "description": None},
            headers=auth_headers,
        )
        fetched = client.get(f"/api/tasks/{created['id']}", headers=auth_headers).json()
        assert fetched["data"]["title"] == "Lifecycle v2"

        deleted = client.delete(f"/api/tasks/{created['id']}", headers=auth_headers)
        assert deleted.json()["data"] == {
            "message": "Task deleted successfully",
            "deleted_task": {"id": created["id"], "title": "Lifecycle v2", "status": "todo"},
        }

        missing = client.get(f"/api/tasks/{created['id']}", headers=auth_headers)
        assert missing.status_code == 404
        listing = client.get("/api/tasks", headers=auth_headers).json()
        assert listing["data"]["pagination"]["total"] == 0
