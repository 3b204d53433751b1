"""Sync Events — Server-Sent Events stream of DATA_UPDATE snapshots.

Invariants:
    - Subscription happens before the initial snapshot read: no update can fall in between
    - First event is the current snapshot; then one event per committed mutation (latest wins)
    - Idle connections receive a keep-alive comment every sse_keepalive_seconds
    - Client disconnect unsubscribes; it never cancels in-flight mutations
    - The initial read uses its own session, released before streaming starts

Design Decisions:
    - SSE over WebSocket: one-way server → viewer traffic, plain HTTP, auto-reconnect in browsers
    - data_update_stream is a standalone async generator: testable without an HTTP client
"""

import asyncio
import json
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from judging.api.dependencies import get_app_settings, get_broadcaster
from judging.config import Settings
from judging.core.domain_types import Snapshot
from judging.core.snapshot import build_data_update_event
from judging.infrastructure.broadcaster import SnapshotBroadcaster
from judging.infrastructure.database import DatabaseSessionManager, get_session_manager
from judging.services.judging_service import JudgingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["sync"])

# Prevent proxy/browser buffering of streamed events
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
    "Connection": "keep-alive",
}

KEEPALIVE_LINE = ": keepalive\n\n"


def sse_line(event: dict) -> str:
    """Format event as SSE data line."""
    return f"data: {json.dumps(event, ensure_ascii=False)}\n\n"


async def data_update_stream(
    broadcaster: SnapshotBroadcaster,
    queue: asyncio.Queue,
    initial: Snapshot,
    keepalive_seconds: float,
):
    """Yield SSE lines for one subscribed viewer until the broadcaster closes."""
    try:
        yield sse_line(build_data_update_event(initial, broadcaster.version))
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except asyncio.TimeoutError:
                yield KEEPALIVE_LINE
                continue
            if event is None:
                return
            yield sse_line(event)
    except asyncio.CancelledError:
        logger.info("Viewer disconnected from event stream")
        return
    finally:
        broadcaster.unsubscribe(queue)


@router.get("/events")
async def stream_data_updates(
    manager: DatabaseSessionManager = Depends(get_session_manager),
    broadcaster: SnapshotBroadcaster = Depends(get_broadcaster),
    settings: Settings = Depends(get_app_settings),
):
    """SSE stream — current snapshot first, then every change."""
    queue = broadcaster.subscribe()
    try:
        # Own short-lived session: the stream must not pin a pooled connection
        async with manager.session() as db:
            snapshot = await JudgingService(db).read_snapshot()
    except Exception:
        broadcaster.unsubscribe(queue)
        raise
    return StreamingResponse(
        data_update_stream(
            broadcaster, queue, snapshot, settings.sse_keepalive_seconds,
        ),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
