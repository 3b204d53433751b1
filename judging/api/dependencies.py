"""Request Dependencies — per-request access to app-scoped resources.

Invariants:
    - Store pool, broadcaster, and settings live on app.state (one set per app instance)
    - JudgingService is request-scoped: built on the request's own AsyncSession

Design Decisions:
    - app.state over module globals: tests build their own pool/broadcaster per test
      and the lifespan owns creation and disposal
    - Broadcaster created on first use if the lifespan did not run (ASGI test transports)
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from judging.config import Settings, get_settings
from judging.infrastructure.broadcaster import SnapshotBroadcaster
from judging.infrastructure.database import get_db
from judging.services.judging_service import JudgingService


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()


def get_broadcaster(request: Request) -> SnapshotBroadcaster:
    broadcaster = getattr(request.app.state, "broadcaster", None)
    if broadcaster is None:
        broadcaster = SnapshotBroadcaster()
        request.app.state.broadcaster = broadcaster
    return broadcaster


def get_service(
    db: AsyncSession = Depends(get_db),
    broadcaster: SnapshotBroadcaster = Depends(get_broadcaster),
    settings: Settings = Depends(get_app_settings),
) -> JudgingService:
    return JudgingService(
        db, broadcaster,
        enforce_score_references=settings.enforce_score_references,
    )
