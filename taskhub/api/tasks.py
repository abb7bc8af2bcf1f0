"""Task API endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status

from taskhub.api.deps import CurrentUser, TaskServiceDep
from taskhub.models.common import ApiResponse
from taskhub.models.task import (
    DeletedTaskData,
    TaskCreate,
    TaskData,
    TaskFilters,
    TaskPage,
    TaskResponse,
    TaskUpdate,
)

router = APIRouter(prefix="/api/tasks", tags=["Tasks"])


@router.get("", response_model=ApiResponse[TaskPage])
def list_tasks_endpoint(
    service: TaskServiceDep,
    current_user: CurrentUser,
    status_filter: str | None = Query(
        default=None, alias="status", description="todo, in-progress or done"
    ),
    due_before: date | None = Query(default=None, description="Due on or before"),
    due_after: date | None = Query(default=None, description="Due on or after"),
    search: str | None = Query(default=None, description="Matches title or description"),
    overdue: bool = Query(default=False, description="Past due and not done"),
    per_page: int | None = Query(default=None, description="Page size, clamped to 1-100"),
    page: int | None = Query(default=None, description="1-based page number"),
) -> ApiResponse[TaskPage]:
    """List tasks with optional filters."""
    filters = TaskFilters(
        status=status_filter,
        due_before=due_before,
        due_after=due_after,
        search=search,
        overdue=overdue,
    )
    return ApiResponse(data=service.list_tasks(filters, per_page=per_page, page=page))


@router.post("", response_model=ApiResponse[TaskData], status_code=status.HTTP_201_CREATED)
def create_task_endpoint(
    service: TaskServiceDep,
    current_user: CurrentUser,
    task_data: TaskCreate,
) -> ApiResponse[TaskData]:
    """Create a new task."""
    task = service.create_task(task_data)
    return ApiResponse(data=TaskData(task=task, message="Task created successfully"))


@router.get("/{task_id}", response_model=ApiResponse[TaskResponse])
def get_task_endpoint(
    service: TaskServiceDep,
    current_user: CurrentUser,
    task_id: str,
) -> ApiResponse[TaskResponse]:
    """Get a specific task by ID."""
    return ApiResponse(data=service.get_task(task_id))


@router.put("/{task_id}", response_model=ApiResponse[TaskData])
def update_task_endpoint(
    service: TaskServiceDep,
    current_user: CurrentUser,
    task_id: str,
    task_data: TaskUpdate,
) -> ApiResponse[TaskData]:
    """Update a task; every user is notified of the change."""
    task = service.update_task(task_id, task_data)
    return ApiResponse(data=TaskData(task=task, message="Task updated successfully"))


@router.delete("/{task_id}", response_model=ApiResponse[DeletedTaskData])
def delete_task_endpoint(
    service: TaskServiceDep,
    current_user: CurrentUser,
    task_id: str,
) -> ApiResponse[DeletedTaskData]:
    """Delete a task and its comments."""
    deleted = service.delete_task(task_id)
    return ApiResponse(
        data=DeletedTaskData(message="Task deleted successfully", deleted_task=deleted)
    )
