"""Database Session Manager — async connection pool, connect strategy, and store error translation.

Invariants:
    - Every session auto-rolls-back on a storage exception (no partial commits leak)
    - Every storage exception leaves this module as a JudgingError:
      connection-class failures → StoreConnectionError(reason), anything else → UnexpectedStorageError
    - eager: engine built at construction, missing URL raises ConfigurationError (fatal at boot)
    - lazy: engine built on first session(), missing URL raises StoreConnectionError per request
    - Connection pool uses pool_pre_ping for stale connection detection
    - auto_create_schema: tables created once, on the first session that reaches the store;
      a store that is down at boot gets its schema on the first request after it recovers

Design Decisions:
    - Manager instance lives on app.state (created in lifespan, injected via get_db) instead of a
      module-global handle: tests and multiple apps get independent pools
    - Failure classification by message markers: drivers (asyncpg, aiosqlite) disagree on exception
      types for auth/timeout, but their messages are stable
    - expire_on_commit=False: prevents lazy-load issues in async context
"""

import asyncio
import logging
from contextlib import asynccontextmanager, contextmanager
from typing import AsyncGenerator, Iterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import (
    ArgumentError, DBAPIError, InterfaceError, NoSuchModuleError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine,
)

from judging.core.domain_types import ConnectionStrategy
from judging.core.errors import (
    ConfigurationError, JudgingError, StoreConnectionError, UnexpectedStorageError,
)
from judging.db.base import Base

logger = logging.getLogger(__name__)

_AUTH_MARKERS = (
    "bad auth", "authentication failed", "password authentication",
    "invalid password", "access denied",
)
_TIMEOUT_MARKERS = ("timeout", "timed out")
_UNREACHABLE_MARKERS = (
    "unable to open database", "could not connect", "connection refused",
    "connect call failed", "connection reset", "connection is closed",
    "server closed the connection", "could not translate host name",
    "name or service not known", "nodename nor servname", "no route to host",
    "network is unreachable",
)

# Exceptions the store layer translates; everything else propagates untouched
STORE_EXCEPTIONS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


def classify_connection_failure(exc: BaseException) -> str | None:
    """Return 'auth' | 'timeout' | 'unreachable' for connection failures, else None."""
    message = str(exc).lower()
    if any(marker in message for marker in _AUTH_MARKERS):
        return "auth"
    if isinstance(exc, asyncio.TimeoutError) or any(
        marker in message for marker in _TIMEOUT_MARKERS
    ):
        return "timeout"
    if any(marker in message for marker in _UNREACHABLE_MARKERS):
        return "unreachable"
    if isinstance(exc, (OSError, InterfaceError)):
        return "unreachable"
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return "unreachable"
    return None


def translate_store_error(exc: BaseException, operation: str = "execute") -> JudgingError:
    """Map a driver/SQLAlchemy exception onto the judging error taxonomy."""
    if isinstance(exc, JudgingError):
        return exc
    reason = classify_connection_failure(exc)
    if reason:
        return StoreConnectionError(reason)
    orig = getattr(exc, "orig", None)
    return UnexpectedStorageError(str(orig or exc), operation)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate storage exceptions raised inside the block."""
    try:
        yield
    except STORE_EXCEPTIONS as e:
        error = translate_store_error(e, operation)
        logger.error(
            f"Store {operation} failed: {e}",
            extra={"error_code": error.code},
        )
        raise error from e


class DatabaseSessionManager:
    """Manages async database sessions with pooling, rollback, and health checks."""

    def __init__(
        self,
        database_url: str | None,
        strategy: ConnectionStrategy | str = ConnectionStrategy.EAGER,
        pool_size: int = 20,
        max_overflow: int = 10,
        auto_create_schema: bool = False,
    ):
        self.database_url = database_url
        self.auto_create_schema = auto_create_schema
        self._schema_ready = not auto_create_schema
        self._schema_lock = asyncio.Lock()
        self.strategy = ConnectionStrategy(strategy)
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        if self.strategy == ConnectionStrategy.EAGER:
            if not database_url:
                raise ConfigurationError(StoreConnectionError.MESSAGES["not_configured"])
            self._build_engine()

    def _build_engine(self) -> async_sessionmaker[AsyncSession]:
        if not self.database_url:
            raise StoreConnectionError("not_configured")
        options: dict = {"pool_pre_ping": True}
        # SQLite picks its own pool class (StaticPool for :memory:), which rejects sizing args
        if not self.database_url.startswith("sqlite"):
            options.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_recycle=3600,
            )
        try:
            self.engine = create_async_engine(self.database_url, **options)
        except (ArgumentError, NoSuchModuleError) as e:
            raise ConfigurationError(f"Invalid DATABASE_URL: {e}") from e
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        return self._session_factory

    @property
    def is_initialized(self) -> bool:
        return self._session_factory is not None

    def _factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            factory = self._build_engine()
            logger.info("Store engine created on first use (lazy strategy)")
            return factory
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        if not self._schema_ready:
            await self._ensure_schema()
        session = self._factory()()
        try:
            yield session
        except STORE_EXCEPTIONS as e:
            error = translate_store_error(e)
            logger.error(
                f"DB session error: {e}", extra={"error_code": error.code},
            )
            try:
                await session.rollback()
            except STORE_EXCEPTIONS as rollback_error:
                logger.warning(f"Rollback after store failure also failed: {rollback_error}")
            raise error from e
        finally:
            await session.close()

    async def connect(self) -> None:
        """Build the engine if needed and round-trip one query. Raises StoreConnectionError."""
        with store_errors("connect"):
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        logger.info("Successfully connected to the store")

    async def _ensure_schema(self) -> None:
        async with self._schema_lock:
            if self._schema_ready:
                return
            await self.create_schema()
            self._schema_ready = True
            logger.info("Store schema created (AUTO_CREATE_SCHEMA)")

    async def create_schema(self) -> None:
        """Create all tables (dev/test convenience; alembic manages production schema)."""
        import judging.models  # noqa: F401 — populate Base.metadata

        self._factory()
        with store_errors("create_schema"):
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

    async def health_check(self) -> bool:
        """Check database connectivity (for readiness probes)."""
        try:
            await self.connect()
            return True
        except JudgingError as e:
            logger.error(f"DB health check failed: {e.message}")
            return False

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def get_session_manager(request: Request) -> DatabaseSessionManager:
    """The app's store manager; absent means the store was never configured."""
    manager: DatabaseSessionManager | None = getattr(
        request.app.state, "db_manager", None,
    )
    if manager is None:
        raise StoreConnectionError("not_configured")
    return manager


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions (held until the response is sent)."""
    async with get_session_manager(request).session() as session:
        yield session
