"""Snapshot Viewer — pull (polling) and push (SSE) synchronization for one viewer.

Invariants:
    - State changes go through core.viewer_state.transition (Disconnected/Loading/Ready/Refreshing/Error)
    - Every successful fetch or DATA_UPDATE replaces the snapshot wholesale
    - A failed fetch keeps the previous snapshot; max_consecutive_failures failures → Error
    - In Error, refresh()/listen() raise SyncHaltedError until retry()
    - 304 Not Modified counts as a successful fetch (snapshot unchanged)

Design Decisions:
    - httpx.AsyncClient with injectable transport: tests drive it with MockTransport or ASGITransport
    - Polling sleeps between ticks, never before the first fetch: a new viewer renders immediately
"""

import asyncio
import json
import logging
from typing import Callable

import httpx

from judging.config import Settings, get_settings
from judging.core.domain_types import DATA_UPDATE, Snapshot, SyncEvent, ViewerState
from judging.core.errors import SyncHaltedError
from judging.core.results import judge_assignments
from judging.core.snapshot import is_valid_snapshot
from judging.core.viewer_state import ViewerStatus, transition

logger = logging.getLogger(__name__)

DATA_PATH = "/api/v1/data"
EVENTS_PATH = "/api/v1/events"


def parse_sse_line(line: str) -> dict | None:
    """Decode one `data:` line into a DATA_UPDATE event; anything else → None."""
    if not line.startswith("data:"):
        return None
    try:
        event = json.loads(line[len("data:"):].strip())
    except ValueError:
        logger.warning(f"Ignoring undecodable SSE line: {line[:80]}")
        return None
    if not isinstance(event, dict) or event.get("type") != DATA_UPDATE:
        return None
    if not is_valid_snapshot(event.get("payload")):
        return None
    return event


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return f"HTTP {response.status_code}"


class SnapshotViewer:
    """One viewer's synchronized copy of the server snapshot."""

    def __init__(
        self,
        base_url: str,
        *,
        poll_interval: float = 5.0,
        max_consecutive_failures: int = 3,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        on_change: Callable[[Snapshot], None] | None = None,
    ):
        self.poll_interval = poll_interval
        self.max_consecutive_failures = max_consecutive_failures
        self.on_change = on_change
        self.status = ViewerStatus()
        self.snapshot: Snapshot | None = None
        self.etag: str | None = None
        self.version: int | None = None
        self._client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout, transport=transport,
        )

    @classmethod
    def from_settings(
        cls, base_url: str, settings: Settings | None = None, **kwargs,
    ) -> "SnapshotViewer":
        """Viewer using SYNC_POLL_INTERVAL_SECONDS and SYNC_MAX_CONSECUTIVE_FAILURES."""
        settings = settings or get_settings()
        kwargs.setdefault("poll_interval", settings.sync_poll_interval_seconds)
        kwargs.setdefault(
            "max_consecutive_failures", settings.sync_max_consecutive_failures,
        )
        return cls(base_url, **kwargs)

    @property
    def state(self) -> ViewerState:
        return self.status.state

    async def __aenter__(self) -> "SnapshotViewer":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # -- State ---------------------------------------------------------------

    def _apply(self, event: SyncEvent, error: str | None = None) -> None:
        previous = self.status.state
        self.status = transition(
            self.status, event, self.max_consecutive_failures, error,
        )
        if self.status.state == previous:
            return
        if self.status.state == ViewerState.ERROR:
            logger.warning(
                f"Viewer halted after repeated failures: {error}",
                extra={"state": self.status.state.value, "failures": self.status.failures},
            )
        else:
            logger.info(
                f"Viewer {previous.value} → {self.status.state.value}",
                extra={"state": self.status.state.value, "failures": self.status.failures},
            )

    def _replace(self, snapshot: Snapshot, version: int | None = None) -> None:
        self.snapshot = snapshot
        self.version = version
        if self.on_change:
            self.on_change(snapshot)

    def _begin(self) -> None:
        if self.status.state == ViewerState.DISCONNECTED:
            self._apply(SyncEvent.START)
        else:
            self._apply(SyncEvent.TICK)

    # -- Pull ----------------------------------------------------------------

    async def refresh(self) -> ViewerState:
        """One poll tick: fetch the snapshot and replace local state."""
        self._begin()
        await self._fetch()
        return self.status.state

    async def _fetch(self) -> None:
        headers = {"If-None-Match": self.etag} if self.etag and self.snapshot else {}
        try:
            response = await self._client.get(DATA_PATH, headers=headers)
        except httpx.HTTPError as e:
            self._apply(SyncEvent.FETCH_FAILED, str(e) or type(e).__name__)
            return

        if response.status_code == 304 and self.snapshot is not None:
            self._apply(SyncEvent.FETCH_OK)
            return
        if response.status_code != 200:
            self._apply(SyncEvent.FETCH_FAILED, _error_message(response))
            return
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not is_valid_snapshot(payload):
            self._apply(SyncEvent.FETCH_FAILED, "Malformed snapshot response")
            return

        self.etag = response.headers.get("etag")
        self._replace(payload)
        self._apply(SyncEvent.FETCH_OK)

    async def poll(self, max_ticks: int | None = None) -> ViewerState:
        """Refresh every poll_interval seconds until Error (or max_ticks)."""
        ticks = 0
        while True:
            state = await self.refresh()
            ticks += 1
            if state == ViewerState.ERROR:
                return state
            if max_ticks is not None and ticks >= max_ticks:
                return state
            await asyncio.sleep(self.poll_interval)

    async def retry(self) -> ViewerState:
        """Leave Error explicitly and fetch again."""
        self._apply(SyncEvent.RETRY)
        await self._fetch()
        return self.status.state

    # -- Push ----------------------------------------------------------------

    async def listen(self) -> ViewerState:
        """Follow the SSE stream; returns when the stream ends or fails."""
        if self.status.state == ViewerState.ERROR:
            raise SyncHaltedError(self.status.last_error)
        self._begin()
        try:
            async with self._client.stream("GET", EVENTS_PATH) as response:
                if response.status_code != 200:
                    await response.aread()
                    self._apply(SyncEvent.FETCH_FAILED, _error_message(response))
                    return self.status.state
                async for line in response.aiter_lines():
                    event = parse_sse_line(line)
                    if event is None:
                        continue
                    self._replace(event["payload"], event.get("version"))
                    if self.status.state != ViewerState.READY:
                        self._apply(SyncEvent.FETCH_OK)
        except httpx.HTTPError as e:
            return self._stream_lost(str(e) or type(e).__name__)
        return self._stream_lost("Event stream closed")

    def _stream_lost(self, error: str) -> ViewerState:
        """Stream ended or dropped: keep the snapshot, count one failed fetch."""
        if self.status.state == ViewerState.READY:
            self._apply(SyncEvent.TICK)
        self._apply(SyncEvent.FETCH_FAILED, error)
        return self.status.state

    # -- Views ---------------------------------------------------------------

    def judge_view(self, judge_id: str) -> dict | None:
        """The judge dashboard slice of the local snapshot."""
        if self.snapshot is None:
            return None
        return judge_assignments(self.snapshot, judge_id)

    async def close(self) -> None:
        self._apply(SyncEvent.CLOSE)
        await self._client.aclose()
