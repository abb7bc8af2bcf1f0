"""Project API endpoints."""

from fastapi import APIRouter, Query, status

from taskhub.api.deps import CurrentUser, DBSession
from taskhub.models.common import ApiResponse
from taskhub.models.project import (
    DeletedProjectData,
    ProjectCreate,
    ProjectData,
    ProjectPage,
    ProjectResponse,
    ProjectUpdate,
)
from taskhub.services.projects import (
    create_project,
    delete_project,
    get_project,
    list_projects,
    update_project,
)

router = APIRouter(prefix="/api/projects", tags=["Projects"])


@router.get("", response_model=ApiResponse[ProjectPage])
def list_projects_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    user_id: int | None = Query(default=None, description="Only projects of this user"),
    status_filter: str | None = Query(default=None, alias="status"),
    per_page: int | None = Query(default=None, description="Page size, clamped to 1-100"),
    page: int | None = Query(default=None, description="1-based page number"),
) -> ApiResponse[ProjectPage]:
    """List projects, newest first."""
    return ApiResponse(
        data=list_projects(
            session,
            user_id=user_id,
            status=status_filter,
            per_page=per_page,
            page=page,
        )
    )


@router.post("", response_model=ApiResponse[ProjectData], status_code=status.HTTP_201_CREATED)
def create_project_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    project_data: ProjectCreate,
) -> ApiResponse[ProjectData]:
    project = create_project(session, project_data)
    return ApiResponse(data=ProjectData(project=project, message="Project created successfully"))


@router.get("/{project_id}", response_model=ApiResponse[ProjectResponse])
def get_project_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    project_id: str,
) -> ApiResponse[ProjectResponse]:
    return ApiResponse(data=get_project(session, project_id))


@router.put("/{project_id}", response_model=ApiResponse[ProjectData])
def update_project_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    project_id: str,
    project_data: ProjectUpdate,
) -> ApiResponse[ProjectData]:
    project = update_project(session, project_id, project_data)
    return ApiResponse(data=ProjectData(project=project, message="Project updated successfully"))


@router.delete("/{project_id}", response_model=ApiResponse[DeletedProjectData])
def delete_project_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    project_id: str,
) -> ApiResponse[DeletedProjectData]:
    deleted = delete_project(session, project_id)
    return ApiResponse(
        data=DeletedProjectData(message="Project deleted successfully", deleted_project=deleted)
    )
