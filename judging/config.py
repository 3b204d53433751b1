"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - The connection string comes only from the environment (DATABASE_URL), never hardcoded
    - get_settings() is cached (lru_cache) — single instance per process
    - A missing DATABASE_URL is not a settings error: the connection strategy decides
      whether it is fatal at boot (eager) or per request (lazy)

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box locally
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from judging.core.domain_types import ConnectionStrategy


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Store
    database_url: str | None = None

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str | None) -> str | None:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str):
            v = v.strip() or None
        if isinstance(v, str) and v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    connection_strategy: ConnectionStrategy = ConnectionStrategy.EAGER
    database_pool_size: int = 20
    database_max_overflow: int = 10
    auto_create_schema: bool = False

    # Integrity — off: references kept consistent only by cascade deletes
    enforce_score_references: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = ["http://localhost:5173"]

    # Sync
    sse_keepalive_seconds: float = 15.0
    sync_poll_interval_seconds: float = 5.0
    sync_max_consecutive_failures: int = 3

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
