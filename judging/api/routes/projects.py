"""Project Routes — create (one or many), partial update, delete with score cascade.

Invariants:
    - POST accepts an object or an array; the response mirrors the request shape
    - PUT uses the path id for lookup; an `id` in the body is ignored
    - DELETE removes every score whose projectId equals the project id
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, status

from judging.api.dependencies import get_service
from judging.core.domain_types import Collection
from judging.schemas.entities import ProjectCreate, ProjectUpdate
from judging.services.judging_service import JudgingService

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_projects(
    body: Annotated[ProjectCreate | list[ProjectCreate], Body()],
    service: JudgingService = Depends(get_service),
):
    """Create one project, or a batch (CSV import on the dashboard)."""
    items = body if isinstance(body, list) else [body]
    created = await service.create(
        Collection.PROJECTS, [item.to_fields() for item in items],
    )
    return created if isinstance(body, list) else created[0]


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    body: ProjectUpdate,
    service: JudgingService = Depends(get_service),
):
    return await service.update(Collection.PROJECTS, project_id, body.to_fields())


@router.delete("/{project_id}")
async def delete_project(
    project_id: str, service: JudgingService = Depends(get_service),
):
    cascaded = await service.delete(Collection.PROJECTS, project_id)
    return {"success": True, "deletedScores": cascaded}
