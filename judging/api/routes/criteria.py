"""Criterion Routes — CRUD without cascade.

Invariants:
    - Deleting a criterion leaves scores untouched; their values for it become orphaned
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, status

from judging.api.dependencies import get_service
from judging.core.domain_types import Collection
from judging.schemas.entities import CriterionCreate, CriterionUpdate
from judging.services.judging_service import JudgingService

router = APIRouter(prefix="/api/v1/criteria", tags=["criteria"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_criteria(
    body: Annotated[CriterionCreate | list[CriterionCreate], Body()],
    service: JudgingService = Depends(get_service),
):
    items = body if isinstance(body, list) else [body]
    created = await service.create(
        Collection.CRITERIA, [item.to_fields() for item in items],
    )
    return created if isinstance(body, list) else created[0]


@router.put("/{criterion_id}")
async def update_criterion(
    criterion_id: str,
    body: CriterionUpdate,
    service: JudgingService = Depends(get_service),
):
    return await service.update(Collection.CRITERIA, criterion_id, body.to_fields())


@router.delete("/{criterion_id}")
async def delete_criterion(
    criterion_id: str, service: JudgingService = Depends(get_service),
):
    await service.delete(Collection.CRITERIA, criterion_id)
    return {"success": True}
