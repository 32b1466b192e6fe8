from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from portfolio_api.api.dependencies import get_container
from portfolio_api.core.auth import require_admin
from portfolio_api.core.errors import ValidationAppError
from portfolio_api.schemas.project import ProjectCreate, ProjectUpdate
from portfolio_api.schemas.responses import Envelope

router = APIRouter(tags=["Projects"])


@router.get("/projects")
def read_projects(
    action: str = Query("", description="Empty to list, 'single' to fetch one project"),
    id: int | None = Query(None, description="Project id for action=single"),
    container=Depends(get_container),
) -> dict:
    """List published projects, or fetch one with ``?action=single&id=<id>``.

    Raises:
        ValidationAppError: 400 unknown action or missing id.
        NotFoundAppError: 404 unknown id.
    """
    if not action:
        projects = container.projects.list_published()
        return Envelope(data=[project.to_public() for project in projects]).dump()

    if action == "single":
        return Envelope(data=container.projects.get(id).to_public()).dump()

    raise ValidationAppError(code="invalid_action", message="Invalid action", details={"field": "action"})


@router.post("/projects", status_code=201, dependencies=[Depends(require_admin)])
def create_project(payload: ProjectCreate, container=Depends(get_container)) -> dict:
    """Create a project (admin). ``title``, ``description`` and ``category`` are required."""
    project = container.projects.create(payload)
    return Envelope(message="Project created successfully", data=project.to_public()).dump()


@router.put("/projects", dependencies=[Depends(require_admin)])
def update_project(payload: ProjectUpdate, container=Depends(get_container)) -> dict:
    """Partially update the project whose ``id`` is given in the body (admin).

    Only fields present in the body are changed; see :class:`ProjectUpdate`.
    """
    project = container.projects.update(payload)
    return Envelope(message="Project updated successfully", data=project.to_public()).dump()


@router.delete("/projects", dependencies=[Depends(require_admin)])
def delete_project(
    id: int | None = Query(None, description="Project id"),
    container=Depends(get_container),
) -> dict:
    """Delete a project by ``?id=`` (admin)."""
    container.projects.delete(id)
    return Envelope(message="Project deleted successfully").dump()
