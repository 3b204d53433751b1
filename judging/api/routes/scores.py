"""Score Routes — idempotent upsert keyed by the client id, delete without cascade.

Invariants:
    - POST is an upsert: same id twice leaves one score holding the second payload
    - POST always answers 200 with the submitted payload (never 201: creation is not observable)
    - Score ids are opaque strings — no identifier format validation on DELETE
"""

from fastapi import APIRouter, Depends, status

from judging.api.dependencies import get_service
from judging.schemas.entities import ScoreUpsert
from judging.services.judging_service import JudgingService

router = APIRouter(prefix="/api/v1/scores", tags=["scores"])


@router.post("", status_code=status.HTTP_200_OK)
async def upsert_score(
    body: ScoreUpsert, service: JudgingService = Depends(get_service),
):
    return await service.upsert_score(body)


@router.delete("/{score_id}")
async def delete_score(
    score_id: str, service: JudgingService = Depends(get_service),
):
    await service.delete_score(score_id)
    return {"success": True}
