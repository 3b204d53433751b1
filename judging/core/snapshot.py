"""Snapshot — pure construction, fingerprinting, and event framing of the full state.

Invariants:
    - A snapshot always has exactly the four collection keys, in wire order
    - fingerprint_snapshot is deterministic: same content → same digest (key order irrelevant)
    - build_data_update_event carries the whole snapshot, never a diff

Design Decisions:
    - Fingerprint doubles as HTTP ETag: pull-mode viewers get 304 on unchanged polls
      (ADR: groundwork for delta sync without committing to a delta protocol)
    - Pure functions, no IO: the service layer does the reads, this module only shapes
"""

import hashlib
import json

from judging.core.domain_types import DATA_UPDATE, Collection, Snapshot


def build_snapshot(
    projects: list[dict], judges: list[dict],
    criteria: list[dict], scores: list[dict],
) -> Snapshot:
    return {
        Collection.PROJECTS.value: projects,
        Collection.JUDGES.value: judges,
        Collection.CRITERIA.value: criteria,
        Collection.SCORES.value: scores,
    }


def empty_snapshot() -> Snapshot:
    return build_snapshot([], [], [], [])


def fingerprint_snapshot(snapshot: Snapshot) -> str:
    """SHA-256 over canonical JSON (sorted keys, compact separators)."""
    canonical = json.dumps(
        snapshot, sort_keys=True, separators=(",", ":"),
        ensure_ascii=False, default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def build_data_update_event(snapshot: Snapshot, version: int) -> dict:
    """Broadcast message: {type: DATA_UPDATE, version, payload: snapshot}."""
    return {"type": DATA_UPDATE, "version": version, "payload": snapshot}


def is_valid_snapshot(payload: object) -> bool:
    """True when payload has every collection key mapped to a list."""
    if not isinstance(payload, dict):
        return False
    return all(
        isinstance(payload.get(c.value), list) for c in Collection
    )
