"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ProjectId, JudgeId, CriterionId wrap UUIDs (storage keys); ScoreId is the client's string
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support (ADR: hackathon speed)
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

ProjectId = NewType("ProjectId", UUID)
JudgeId = NewType("JudgeId", UUID)
CriterionId = NewType("CriterionId", UUID)
ScoreId = NewType("ScoreId", str)           # client-generated, never translated

Track = NewType("Track", str)

Snapshot = dict[str, list[dict]]            # {projects, judges, criteria, scores}


# ─── Enums ───────────────────────────────────────────────────────

class Collection(str, Enum):
    """The four collections that make up a snapshot, in wire order."""
    PROJECTS = "projects"
    JUDGES = "judges"
    CRITERIA = "criteria"
    SCORES = "scores"


class ConnectionStrategy(str, Enum):
    """When the store connection is established."""
    EAGER = "eager"     # at process start; missing URL is fatal
    LAZY = "lazy"       # on first request; missing URL fails each request


class ViewerState(str, Enum):
    """Per-viewer synchronization state."""
    DISCONNECTED = "disconnected"
    LOADING = "loading"
    READY = "ready"
    REFRESHING = "refreshing"
    ERROR = "error"


class SyncEvent(str, Enum):
    """Inputs driving the viewer state machine."""
    START = "start"
    TICK = "tick"
    FETCH_OK = "fetch_ok"
    FETCH_FAILED = "fetch_failed"
    RETRY = "retry"
    CLOSE = "close"


DATA_UPDATE = "DATA_UPDATE"
