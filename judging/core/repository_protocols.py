"""Boundary Protocols — contracts between the service layer and the store.

Invariants:
    - Services depend on these Protocols, never on SQLAlchemy directly
    - All documents crossing the boundary are plain dicts in external (wire) shape
    - Missing update/delete targets raise NotFoundError; they never return None

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO, callers await
"""

from typing import Protocol
from uuid import UUID


class EntityStore(Protocol):
    """Contract for projects, judges and criteria — storage-assigned ids."""
    async def list_all(self) -> list[dict]: ...
    async def insert_one(self, fields: dict) -> dict: ...
    async def insert_many(self, items: list[dict]) -> list[dict]: ...
    async def update_by_id(self, entity_id: UUID, fields: dict) -> dict: ...
    async def delete_by_id(self, entity_id: UUID) -> None: ...
    async def exists(self, entity_id: UUID) -> bool: ...


class ScoreStore(Protocol):
    """Contract for scores — client-supplied ids, upsert writes."""
    async def list_all(self) -> list[dict]: ...
    async def upsert(self, document: dict) -> None: ...
    async def delete_by_id(self, score_id: str) -> None: ...
    async def delete_by_project(self, project_id: str) -> int: ...
    async def delete_by_judge(self, judge_id: str) -> int: ...
