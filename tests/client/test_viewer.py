"""Snapshot Viewer — polling with conditional GET, SSE replacement, failure threshold.

Invariants:
    - Each successful fetch replaces the local snapshot wholesale
    - 304 keeps the snapshot and counts as success
    - Repeated failures keep the last snapshot, then halt in Error until retry()
"""

import json

import httpx
import pytest

from judging.client.viewer import SnapshotViewer, parse_sse_line
from judging.config import Settings
from judging.core.domain_types import ViewerState
from judging.core.errors import SyncHaltedError
from judging.core.snapshot import build_data_update_event, build_snapshot, empty_snapshot


def _snapshot(*names):
    return build_snapshot(
        [{"id": f"p{i}", "name": n, "track": "ai"} for i, n in enumerate(names)],
        [{"id": "j1", "name": "Jane", "tracks": ["ai"]}],
        [],
        [{"id": "s1", "projectId": "p0", "judgeId": "j1", "criteria": {}}],
    )


class FakeServer:
    """Scripted /api/v1/data responses; records request headers."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _viewer(server, **kwargs) -> SnapshotViewer:
    return SnapshotViewer(
        "http://judging.test", transport=httpx.MockTransport(server), **kwargs,
    )


async def test_first_refresh_loads_snapshot():
    server = FakeServer(httpx.Response(200, json=_snapshot("Alpha"), headers={"ETag": '"v1"'}))
    async with _viewer(server) as viewer:
        state = await viewer.refresh()

        assert state == ViewerState.READY
        assert viewer.snapshot == _snapshot("Alpha")
        assert viewer.etag == '"v1"'
        assert "if-none-match" not in server.requests[0].headers


async def test_refresh_replaces_snapshot_wholesale():
    changes = []
    server = FakeServer(
        httpx.Response(200, json=_snapshot("Alpha", "Beta")),
        httpx.Response(200, json=_snapshot("Gamma")),
    )
    async with _viewer(server, on_change=changes.append) as viewer:
        await viewer.refresh()
        await viewer.refresh()

        assert viewer.snapshot == _snapshot("Gamma")
        assert len(changes) == 2


async def test_not_modified_keeps_snapshot():
    server = FakeServer(
        httpx.Response(200, json=_snapshot("Alpha"), headers={"ETag": '"v1"'}),
        httpx.Response(304, headers={"ETag": '"v1"'}),
    )
    async with _viewer(server) as viewer:
        await viewer.refresh()
        state = await viewer.refresh()

        assert state == ViewerState.READY
        assert viewer.snapshot == _snapshot("Alpha")
        assert server.requests[1].headers["if-none-match"] == '"v1"'


async def test_failed_refresh_keeps_stale_snapshot():
    server = FakeServer(
        httpx.Response(200, json=_snapshot("Alpha")),
        httpx.Response(503, json={"error": {"message": "Could not establish database connection."}}),
    )
    async with _viewer(server) as viewer:
        await viewer.refresh()
        state = await viewer.refresh()

        assert state == ViewerState.READY
        assert viewer.status.is_stale
        assert viewer.status.last_error == "Could not establish database connection."
        assert viewer.snapshot == _snapshot("Alpha")


async def test_malformed_payload_counts_as_failure():
    server = FakeServer(httpx.Response(200, json={"projects": []}))
    async with _viewer(server) as viewer:
        state = await viewer.refresh()

        assert state == ViewerState.LOADING
        assert viewer.status.failures == 1
        assert viewer.snapshot is None


async def test_repeated_failures_halt_until_retry():
    server = FakeServer(
        httpx.ConnectError("refused"),
        httpx.ConnectError("refused"),
        httpx.Response(200, json=_snapshot("Alpha")),
    )
    async with _viewer(server, max_consecutive_failures=2) as viewer:
        await viewer.refresh()
        state = await viewer.refresh()
        assert state == ViewerState.ERROR

        with pytest.raises(SyncHaltedError):
            await viewer.refresh()

        state = await viewer.retry()
        assert state == ViewerState.READY
        assert viewer.status.failures == 0


async def test_poll_stops_after_max_ticks():
    server = FakeServer(*[httpx.Response(200, json=_snapshot("Alpha")) for _ in range(3)])
    async with _viewer(server, poll_interval=0) as viewer:
        state = await viewer.poll(max_ticks=3)

        assert state == ViewerState.READY
        assert len(server.requests) == 3


async def test_poll_stops_in_error():
    server = FakeServer(*[httpx.ConnectError("refused") for _ in range(3)])
    async with _viewer(server, poll_interval=0, max_consecutive_failures=3) as viewer:
        state = await viewer.poll()

        assert state == ViewerState.ERROR
        assert len(server.requests) == 3


async def test_close_returns_to_disconnected():
    server = FakeServer(httpx.Response(200, json=_snapshot("Alpha")))
    viewer = _viewer(server)
    await viewer.refresh()

    await viewer.close()

    assert viewer.state == ViewerState.DISCONNECTED


async def test_judge_view_uses_local_snapshot():
    server = FakeServer(httpx.Response(200, json=_snapshot("Alpha")))
    async with _viewer(server) as viewer:
        assert viewer.judge_view("j1") is None
        await viewer.refresh()

        view = viewer.judge_view("j1")

        assert [p["name"] for p in view["projects"]] == ["Alpha"]
        assert [s["id"] for s in view["scores"]] == ["s1"]


# ─── Push mode ────────────────────────────────────────────────────

def _sse_body(*events) -> bytes:
    lines = [": keepalive\n\n"]
    lines += [f"data: {json.dumps(e)}\n\n" for e in events]
    return "".join(lines).encode()


def test_parse_sse_line():
    event = build_data_update_event(empty_snapshot(), 4)
    assert parse_sse_line(f"data: {json.dumps(event)}") == event
    assert parse_sse_line(": keepalive") is None
    assert parse_sse_line("data: {not json") is None
    assert parse_sse_line('data: {"type": "OTHER"}') is None


async def test_listen_replaces_snapshot_per_event():
    first = build_data_update_event(_snapshot("Alpha"), 1)
    second = build_data_update_event(_snapshot("Beta"), 2)
    server = FakeServer(httpx.Response(
        200, content=_sse_body(first, second),
        headers={"Content-Type": "text/event-stream"},
    ))
    async with _viewer(server) as viewer:
        state = await viewer.listen()

        assert viewer.snapshot == _snapshot("Beta")
        assert viewer.version == 2
        # Server closed the stream: last snapshot kept, marked stale
        assert state == ViewerState.READY
        assert viewer.status.is_stale
        assert server.requests[0].url.path == "/api/v1/events"


async def test_listen_store_unavailable():
    server = FakeServer(httpx.Response(
        503, json={"error": {"message": "Could not establish database connection."}},
    ))
    async with _viewer(server) as viewer:
        state = await viewer.listen()

        assert state == ViewerState.LOADING
        assert viewer.status.last_error == "Could not establish database connection."


class DroppingStream(httpx.AsyncByteStream):
    """SSE body that delivers some bytes, then loses the connection."""

    def __init__(self, body: bytes):
        self.body = body

    async def __aiter__(self):
        yield self.body
        raise httpx.ReadError("connection lost")


async def test_listen_connection_drop_after_update_keeps_snapshot():
    event = build_data_update_event(_snapshot("Alpha"), 1)
    server = FakeServer(httpx.Response(
        200, stream=DroppingStream(_sse_body(event)),
        headers={"Content-Type": "text/event-stream"},
    ))
    async with _viewer(server) as viewer:
        state = await viewer.listen()

        assert state == ViewerState.READY
        assert viewer.status.is_stale
        assert viewer.status.failures == 1
        assert viewer.status.last_error == "connection lost"
        assert viewer.snapshot == _snapshot("Alpha")


async def test_repeated_stream_drops_halt_in_error():
    server = FakeServer(
        httpx.Response(200, json=_snapshot("Alpha")),
        httpx.ReadError("connection lost"),
        httpx.ReadError("connection lost"),
    )
    async with _viewer(server, max_consecutive_failures=2) as viewer:
        await viewer.refresh()

        assert await viewer.listen() == ViewerState.READY
        assert await viewer.listen() == ViewerState.ERROR
        assert viewer.snapshot == _snapshot("Alpha")
        with pytest.raises(SyncHaltedError):
            await viewer.listen()


# ─── Configuration ────────────────────────────────────────────────

async def test_from_settings_uses_sync_settings():
    settings = Settings(
        sync_poll_interval_seconds=1.5, sync_max_consecutive_failures=7, log_format="text",
    )
    async with SnapshotViewer.from_settings("http://judging.test", settings) as viewer:
        assert viewer.poll_interval == 1.5
        assert viewer.max_consecutive_failures == 7


async def test_from_settings_explicit_arguments_win():
    settings = Settings(sync_poll_interval_seconds=1.5, log_format="text")
    viewer = SnapshotViewer.from_settings(
        "http://judging.test", settings, poll_interval=0.2,
        transport=httpx.MockTransport(FakeServer()),
    )
    async with viewer:
        assert viewer.poll_interval == 0.2
        assert viewer.max_consecutive_failures == settings.sync_max_consecutive_failures
