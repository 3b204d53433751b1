"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database and a fresh broadcaster
    - app.state is populated the way the lifespan does it (ASGITransport skips lifespan)
    - app.state is reset after each test so no pool leaks between tests

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (ADR: hackathon — PostgreSQL-specific features not exercised here)
    - The real DatabaseSessionManager is used, not a dependency override: the error
      translation in session() is part of what the route tests cover
"""

import pytest
from httpx import ASGITransport, AsyncClient

from judging.config import Settings
from judging.core.domain_types import ConnectionStrategy
from judging.infrastructure.broadcaster import SnapshotBroadcaster
from judging.infrastructure.database import DatabaseSessionManager
from judging.main import app

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_manager():
    manager = DatabaseSessionManager(MEMORY_URL, strategy=ConnectionStrategy.EAGER)
    await manager.create_schema()
    yield manager
    await manager.dispose()


@pytest.fixture
async def test_db(db_manager):
    async with db_manager.session() as session:
        yield session


@pytest.fixture
def broadcaster():
    return SnapshotBroadcaster()


@pytest.fixture
def settings():
    return Settings(database_url=MEMORY_URL, log_format="text")


async def _client_for(manager, broadcaster, settings):
    app.state.db_manager = manager
    app.state.broadcaster = broadcaster
    app.state.settings = settings
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.fixture
async def client(db_manager, broadcaster, settings):
    """FastAPI test client wired to the per-test store and broadcaster."""
    async with await _client_for(db_manager, broadcaster, settings) as c:
        yield c
    app.state.db_manager = None
    app.state.broadcaster = None
    app.state.settings = None


@pytest.fixture
async def strict_client(db_manager, broadcaster):
    """Client with ENFORCE_SCORE_REFERENCES switched on."""
    settings = Settings(
        database_url=MEMORY_URL, log_format="text", enforce_score_references=True,
    )
    async with await _client_for(db_manager, broadcaster, settings) as c:
        yield c
    app.state.db_manager = None
    app.state.broadcaster = None
    app.state.settings = None


@pytest.fixture
async def seed(client):
    """Two projects on different tracks, two judges, two criteria."""
    projects = (await client.post("/api/v1/projects", json=[
        {"name": "Alpha", "track": "ai", "teamName": "A-Team", "teamMembers": ["Ana", "Bo"]},
        {"name": "Beta", "track": "web"},
    ])).json()
    judges = (await client.post("/api/v1/judges", json=[
        {"name": "Jane", "tracks": ["ai"]},
        {"name": "Joe", "tracks": ["ai", "web"]},
    ])).json()
    criteria = (await client.post("/api/v1/criteria", json=[
        {"name": "Innovation", "weight": 2.0},
        {"name": "Execution"},
    ])).json()
    return {"projects": projects, "judges": judges, "criteria": criteria}
