"""Viewer State Machine — pure transitions for a snapshot-synchronizing viewer.

Invariants:
    - Disconnected → Loading → Ready ⇄ Refreshing; any state → Disconnected on close
    - A failed fetch below the threshold keeps the last snapshot (Refreshing → Ready, stale)
    - consecutive failures >= max_failures → Error; Error only leaves via retry or close
    - A successful fetch always resets the failure counter

Design Decisions:
    - Table-driven, no IO: the viewer client owns the HTTP calls and feeds events in
    - Tick in Error raises SyncHaltedError instead of silently idling: the poll loop must stop
"""

from dataclasses import dataclass

from judging.core.domain_types import SyncEvent, ViewerState
from judging.core.errors import SyncHaltedError, ValidationError


@dataclass(frozen=True)
class ViewerStatus:
    """Immutable viewer status: state plus consecutive failure count."""
    state: ViewerState = ViewerState.DISCONNECTED
    failures: int = 0
    last_error: str | None = None

    @property
    def is_stale(self) -> bool:
        """Ready, but the most recent refresh failed."""
        return self.state == ViewerState.READY and self.failures > 0


_SIMPLE = {
    (ViewerState.DISCONNECTED, SyncEvent.START): ViewerState.LOADING,
    (ViewerState.READY, SyncEvent.TICK): ViewerState.REFRESHING,
    (ViewerState.LOADING, SyncEvent.TICK): ViewerState.LOADING,
    (ViewerState.ERROR, SyncEvent.RETRY): ViewerState.LOADING,
}

_FETCHING = (ViewerState.LOADING, ViewerState.REFRESHING)


def transition(
    status: ViewerStatus,
    event: SyncEvent,
    max_failures: int = 3,
    error: str | None = None,
) -> ViewerStatus:
    """Apply one event. Raises on transitions the machine does not allow."""
    if event == SyncEvent.CLOSE:
        return ViewerStatus()

    if status.state == ViewerState.ERROR and event == SyncEvent.TICK:
        raise SyncHaltedError(status.last_error)

    if (status.state, event) in _SIMPLE:
        target = _SIMPLE[(status.state, event)]
        if event == SyncEvent.RETRY:
            return ViewerStatus(state=target)
        return ViewerStatus(target, status.failures, status.last_error)

    if status.state in _FETCHING and event == SyncEvent.FETCH_OK:
        return ViewerStatus(state=ViewerState.READY)

    if status.state in _FETCHING and event == SyncEvent.FETCH_FAILED:
        failures = status.failures + 1
        if failures >= max_failures:
            return ViewerStatus(ViewerState.ERROR, failures, error)
        fallback = (
            ViewerState.READY if status.state == ViewerState.REFRESHING
            else ViewerState.LOADING
        )
        return ViewerStatus(fallback, failures, error)

    raise ValidationError(
        f"Invalid viewer transition: {status.state.value} --{event.value}-->",
        field="event", code="INVALID_TRANSITION",
    )
