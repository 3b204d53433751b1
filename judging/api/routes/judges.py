"""Judge Routes — CRUD plus the judge's own view (eligible projects and scores).

Invariants:
    - DELETE removes every score whose judgeId equals the judge id
    - GET /{id}/assignments lists only projects whose track is in the judge's tracks
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, status

from judging.api.dependencies import get_service
from judging.core.domain_types import Collection
from judging.schemas.entities import JudgeCreate, JudgeUpdate
from judging.services.judging_service import JudgingService

router = APIRouter(prefix="/api/v1/judges", tags=["judges"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_judges(
    body: Annotated[JudgeCreate | list[JudgeCreate], Body()],
    service: JudgingService = Depends(get_service),
):
    items = body if isinstance(body, list) else [body]
    created = await service.create(
        Collection.JUDGES, [item.to_fields() for item in items],
    )
    return created if isinstance(body, list) else created[0]


@router.put("/{judge_id}")
async def update_judge(
    judge_id: str,
    body: JudgeUpdate,
    service: JudgingService = Depends(get_service),
):
    return await service.update(Collection.JUDGES, judge_id, body.to_fields())


@router.delete("/{judge_id}")
async def delete_judge(
    judge_id: str, service: JudgingService = Depends(get_service),
):
    cascaded = await service.delete(Collection.JUDGES, judge_id)
    return {"success": True, "deletedScores": cascaded}


@router.get("/{judge_id}/assignments")
async def get_judge_assignments(
    judge_id: str, service: JudgingService = Depends(get_service),
):
    """Judge dashboard data: the judge, eligible projects, criteria, own scores."""
    return await service.assignments(judge_id)
