"""Judging API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map JudgingError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Store pool and broadcaster created in the lifespan and held on app.state
    - eager strategy: missing DATABASE_URL aborts startup; any store error at boot
      (unreachable, missing database, failed schema creation) is logged and retried per request

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Three error handler layers live in api/error_handlers.py
"""

import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from judging.api.error_handlers import register_error_handlers
from judging.api.routes import (
    criteria, health, judges, projects, scores, snapshot, sync_events,
)
from judging.config import get_settings
from judging.core.domain_types import ConnectionStrategy
from judging.core.errors import JudgingError
from judging.infrastructure.broadcaster import SnapshotBroadcaster
from judging.infrastructure.database import DatabaseSessionManager
from judging.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = DatabaseSessionManager(
        settings.database_url,
        strategy=settings.connection_strategy,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        auto_create_schema=settings.auto_create_schema,
    )
    if settings.connection_strategy == ConnectionStrategy.EAGER:
        try:
            await manager.connect()
        except JudgingError as e:
            # Requests answer 503/500 until the store recovers; the process stays up
            logger.error(
                f"Store not usable at startup: {e.message}",
                extra={"error_code": e.code, "reason": getattr(e, "reason", None)},
            )
    app.state.settings = settings
    app.state.db_manager = manager
    app.state.broadcaster = SnapshotBroadcaster()
    logger.info(
        f"Judging API started ({settings.connection_strategy.value} connection)",
    )
    yield
    await app.state.broadcaster.close()
    await manager.dispose()
    logger.info("Judging API shutting down")


app = FastAPI(
    title="Hackathon Judging API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag"],
)

register_error_handlers(app)

app.include_router(health.router)
app.include_router(snapshot.router)
app.include_router(sync_events.router)
app.include_router(projects.router)
app.include_router(judges.router)
app.include_router(criteria.router)
app.include_router(scores.router)

# Dashboard build, mounted AFTER API routes so /api/v1/* takes precedence
if os.path.isdir("static"):
    app.mount("/", StaticFiles(directory="static", html=True), name="static")


def serve() -> None:
    """Console entry point: run uvicorn on HOST:PORT."""
    current = get_settings()
    uvicorn.run("judging.main:app", host=current.host, port=current.port)
