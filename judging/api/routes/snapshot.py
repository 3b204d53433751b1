"""Snapshot Routes — full-state read for viewers and the aggregated results view.

Invariants:
    - GET /data returns {projects, judges, criteria, scores}, each document with a string id
    - Two reads with no mutation in between are byte-identical (ordered listings)
    - ETag is the snapshot fingerprint; If-None-Match with the current ETag → 304, no body

Design Decisions:
    - Conditional GET makes 5-second polling cheap for idle viewers without a delta protocol
    - Results computed from the snapshot on every call (no stored aggregates)
"""

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from judging.api.dependencies import get_service
from judging.core.snapshot import fingerprint_snapshot
from judging.services.judging_service import JudgingService

router = APIRouter(prefix="/api/v1", tags=["snapshot"])


@router.get("/data")
async def read_all_data(
    request: Request, service: JudgingService = Depends(get_service),
):
    """Full snapshot used by every viewer for wholesale state replacement."""
    snapshot = await service.read_snapshot()
    etag = f'"{fingerprint_snapshot(snapshot)}"'
    headers = {"ETag": etag, "Cache-Control": "no-cache"}
    if request.headers.get("if-none-match") == etag:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)
    return JSONResponse(content=snapshot, headers=headers)


@router.get("/results")
async def read_results(service: JudgingService = Depends(get_service)):
    """Per-project weighted totals and ranks."""
    return {"results": await service.results()}
