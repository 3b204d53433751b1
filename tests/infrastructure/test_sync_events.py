"""Sync Events stream — initial snapshot, broadcast delivery, keep-alive, clean unsubscribe.

Design Decisions:
    - Drives data_update_stream directly: an HTTP test client would buffer the endless stream
    - The endpoint is awaited directly too, against a file-backed SQLite store whose
      queue pool reports checked-out connections
"""

import asyncio
import json

import pytest

from judging.api.routes.sync_events import (
    KEEPALIVE_LINE, data_update_stream, sse_line, stream_data_updates,
)
from judging.config import Settings
from judging.core.domain_types import ConnectionStrategy
from judging.core.errors import StoreConnectionError
from judging.core.snapshot import build_snapshot, empty_snapshot
from judging.infrastructure.broadcaster import SnapshotBroadcaster
from judging.infrastructure.database import DatabaseSessionManager


def _decode(line: str) -> dict:
    assert line.startswith("data: ") and line.endswith("\n\n")
    return json.loads(line[len("data: "):])


def test_sse_line_format():
    line = sse_line({"type": "DATA_UPDATE", "version": 1, "payload": empty_snapshot()})
    assert _decode(line)["version"] == 1


async def test_stream_starts_with_current_snapshot():
    broadcaster = SnapshotBroadcaster()
    broadcaster.publish(empty_snapshot())
    queue = broadcaster.subscribe()
    current = build_snapshot([{"id": "p1", "name": "Alpha", "track": "ai"}], [], [], [])

    stream = data_update_stream(broadcaster, queue, current, keepalive_seconds=5)
    first = _decode(await stream.__anext__())

    assert first["type"] == "DATA_UPDATE"
    assert first["version"] == 1
    assert first["payload"] == current
    await stream.aclose()


async def test_stream_forwards_broadcasts():
    broadcaster = SnapshotBroadcaster()
    queue = broadcaster.subscribe()
    stream = data_update_stream(broadcaster, queue, empty_snapshot(), keepalive_seconds=5)
    await stream.__anext__()

    event = broadcaster.publish(build_snapshot([], [{"id": "j1", "name": "Jane", "tracks": []}], [], []))
    received = _decode(await stream.__anext__())

    assert received == event
    await stream.aclose()


async def test_idle_stream_sends_keepalive():
    broadcaster = SnapshotBroadcaster()
    queue = broadcaster.subscribe()
    stream = data_update_stream(broadcaster, queue, empty_snapshot(), keepalive_seconds=0.01)
    await stream.__anext__()

    assert await stream.__anext__() == KEEPALIVE_LINE
    await stream.aclose()


async def test_stream_ends_on_broadcaster_close():
    broadcaster = SnapshotBroadcaster()
    queue = broadcaster.subscribe()
    lines = []

    async def consume():
        async for line in data_update_stream(broadcaster, queue, empty_snapshot(), 5):
            lines.append(line)

    task = asyncio.create_task(consume())
    await asyncio.sleep(0)
    await broadcaster.close()
    await asyncio.wait_for(task, timeout=1)

    assert len(lines) == 1


async def test_disconnect_unsubscribes():
    broadcaster = SnapshotBroadcaster()
    queue = broadcaster.subscribe()
    stream = data_update_stream(broadcaster, queue, empty_snapshot(), keepalive_seconds=5)
    await stream.__anext__()

    await stream.aclose()

    assert broadcaster.subscriber_count == 0


# ─── Endpoint ─────────────────────────────────────────────────────

@pytest.fixture
async def file_store(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'judging.db'}")
    await manager.create_schema()
    yield manager
    await manager.dispose()


async def test_open_stream_holds_no_store_connection(file_store):
    broadcaster = SnapshotBroadcaster()
    response = await stream_data_updates(
        manager=file_store, broadcaster=broadcaster, settings=Settings(log_format="text"),
    )
    stream = response.body_iterator

    first = _decode(await stream.__anext__())

    assert first["payload"] == empty_snapshot()
    assert broadcaster.subscriber_count == 1
    assert file_store.engine.pool.checkedout() == 0
    await stream.aclose()
    assert broadcaster.subscriber_count == 0


async def test_many_open_streams_do_not_exhaust_the_pool(file_store):
    broadcaster = SnapshotBroadcaster()
    streams = []
    for _ in range(20):
        response = await stream_data_updates(
            manager=file_store, broadcaster=broadcaster, settings=Settings(log_format="text"),
        )
        await response.body_iterator.__anext__()
        streams.append(response.body_iterator)

    assert file_store.engine.pool.checkedout() == 0
    for stream in streams:
        await stream.aclose()


async def test_failed_initial_read_unsubscribes():
    broadcaster = SnapshotBroadcaster()
    manager = DatabaseSessionManager(None, strategy=ConnectionStrategy.LAZY)

    with pytest.raises(StoreConnectionError):
        await stream_data_updates(
            manager=manager, broadcaster=broadcaster, settings=Settings(log_format="text"),
        )
    assert broadcaster.subscriber_count == 0
