"""Project CRUD."""

import logging
from datetime import datetime
from typing import Any

from sqlmodel import Session, func, select

from taskhub.db.session import transaction
from taskhub.models.common import PaginationMeta, clamp_per_page, normalize_page
from taskhub.models.project import (
    DeletedProject,
    Project,
    ProjectCreate,
    ProjectPage,
    ProjectResponse,
    ProjectStatus,
    ProjectUpdate,
)
from taskhub.models.user import User
from taskhub.services.errors import NotFoundError, ValidationFailedError, parse_id, validate_input

logger = logging.getLogger(__name__)


def _get(session: Session, project_id: int | str) -> Project:
    project_id = parse_id(project_id, "project")
    project = session.get(Project, project_id)
    if project is None:
        raise NotFoundError("project", project_id)
    return project


def list_projects(
    session: Session,
    user_id: int | None = None,
    status: str | None = None,
    per_page: int | None = None,
    page: int | None = None,
) -> ProjectPage:
    """Projects, newest first. An unknown status filter is ignored."""
    per_page = clamp_per_page(per_page)
    page = normalize_page(page)

    conditions = []
    if user_id is not None:
        conditions.append(Project.user_id == user_id)
    if status in ProjectStatus.values():
        conditions.append(Project.status == status)

    total = session.exec(
        select(func.count()).select_from(Project).where(*conditions)
    ).one()
    projects = session.exec(
        select(Project)
        .where(*conditions)
        .order_by(Project.created_at.desc(), Project.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    ).all()

    return ProjectPage(
        projects=[ProjectResponse.model_validate(p) for p in projects],
        pagination=PaginationMeta.build(page, per_page, total, len(projects)),
    )


def get_project(session: Session, project_id: int | str) -> ProjectResponse:
    return ProjectResponse.model_validate(_get(session, project_id))


def create_project(session: Session, data: ProjectCreate | dict[str, Any]) -> ProjectResponse:
    """Create a project owned by an existing user."""
    project_data = validate_input(ProjectCreate, data)
    if session.get(User, project_data.user_id) is None:
        raise ValidationFailedError.for_field("user_id", "The selected user id is invalid.")

    project = Project(**project_data.model_dump())
    with transaction(session):
        session.add(project)
    session.refresh(project)

    logger.info("Project created", extra={"project_id": project.id, "user_id": project.user_id})
    return ProjectResponse.model_validate(project)


def update_project(
    session: Session, project_id: int | str, data: ProjectUpdate | dict[str, Any]
) -> ProjectResponse:
    """Partial update; the resulting date range must stay ordered."""
    project = _get(session, project_id)
    project_data = validate_input(ProjectUpdate, data)
    changes = {
        name: value
        for name, value in project_data.model_dump(exclude_unset=True).items()
        if value is not None
    }

    start = changes.get("start_date", project.start_date)
    end = changes.get("end_date", project.end_date)
    if start is not None and end is not None and end < start:
        raise ValidationFailedError.for_field(
            "end_date", "The end date must be a date after or equal to the start date."
        )

    with transaction(session):
        for name, value in changes.items():
            setattr(project, name, value)
        project.updated_at = datetime.utcnow()
        session.add(project)
    session.refresh(project)
    return ProjectResponse.model_validate(project)


def delete_project(session: Session, project_id: int | str) -> DeletedProject:
    project = _get(session, project_id)
    snapshot = DeletedProject(id=project.id, title=project.title, status=project.status)

    with transaction(session):
        session.delete(project)

    logger.info("Project deleted", extra={"project_id": snapshot.id})
    return snapshot
