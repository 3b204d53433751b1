"""Store Repositories — SQLAlchemy implementations of the boundary protocols.

Invariants:
    - Every statement runs inside store_errors(): callers only ever see JudgingError subclasses
    - update_by_id / delete_by_id are single statements; zero affected rows → NotFoundError
    - Documents leave as {"id": <string>, ...wire fields}; storage keys never leak as UUID objects
    - Listings are ordered by (created_at, id) so repeated reads are identical
    - Repositories never commit: the service owns the unit of work
    - Reads use populate_existing: bulk UPDATE/upsert statements bypass the identity map

Design Decisions:
    - One generic EntityRepository for projects/judges/criteria: they differ only in columns,
      which each model declares in __document_fields__
    - Score upsert uses the dialect's INSERT ... ON CONFLICT DO UPDATE: atomic per call,
      no read-modify-write window (PostgreSQL and SQLite share the API)
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from judging.core.errors import NotFoundError, UnexpectedStorageError
from judging.core.identifiers import format_entity_id
from judging.infrastructure.database import store_errors
from judging.models.score import Score

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def to_document(row) -> dict:
    """Normalize an ORM row into its external shape with a single string `id`."""
    document = {"id": format_entity_id(row.id) if not isinstance(row.id, str) else row.id}
    for attribute, wire_name in row.__document_fields__:
        document[wire_name] = getattr(row, attribute)
    return document


def score_to_document(row: Score) -> dict:
    """Scores come back as stored: known fields plus the client's extra fields."""
    document = to_document(row)
    for key, value in (row.extra or {}).items():
        document.setdefault(key, value)
    return document


class EntityRepository:
    """CRUD for a collection with storage-assigned UUID keys."""

    def __init__(self, db: AsyncSession, model, resource_name: str):
        self.db = db
        self.model = model
        self.resource_name = resource_name

    def _columns(self, fields: dict) -> dict:
        allowed = {attribute for attribute, _ in self.model.__document_fields__}
        return {k: v for k, v in fields.items() if k in allowed}

    async def list_all(self) -> list[dict]:
        with store_errors(f"list {self.model.__tablename__}"):
            result = await self.db.execute(
                select(self.model)
                .order_by(self.model.created_at, self.model.id)
                .execution_options(populate_existing=True),
            )
            return [to_document(row) for row in result.scalars().all()]

    async def insert_many(self, items: list[dict]) -> list[dict]:
        rows = [
            self.model(id=uuid.uuid4(), **self._columns(fields)) for fields in items
        ]
        with store_errors(f"insert {self.model.__tablename__}"):
            self.db.add_all(rows)
            await self.db.flush()
        logger.info(
            f"Inserted {len(rows)} {self.model.__tablename__}",
            extra={"entity": self.model.__tablename__},
        )
        return [to_document(row) for row in rows]

    async def insert_one(self, fields: dict) -> dict:
        created = await self.insert_many([fields])
        return created[0]

    async def exists(self, entity_id: uuid.UUID) -> bool:
        with store_errors(f"lookup {self.model.__tablename__}"):
            result = await self.db.execute(
                select(self.model.id).where(self.model.id == entity_id),
            )
            return result.scalar_one_or_none() is not None

    async def _get_document(self, entity_id: uuid.UUID) -> dict:
        with store_errors(f"read {self.model.__tablename__}"):
            result = await self.db.execute(
                select(self.model)
                .where(self.model.id == entity_id)
                .execution_options(populate_existing=True),
            )
            row = result.scalar_one_or_none()
        if row is None:
            raise NotFoundError(self.resource_name, format_entity_id(entity_id))
        return to_document(row)

    async def update_by_id(self, entity_id: uuid.UUID, fields: dict) -> dict:
        """Set only the given fields; untouched fields keep their stored values."""
        values = self._columns(fields)
        if values:
            with store_errors(f"update {self.model.__tablename__}"):
                result = await self.db.execute(
                    update(self.model)
                    .where(self.model.id == entity_id)
                    .values(**values)
                    .execution_options(synchronize_session=False),
                )
            if result.rowcount == 0:
                raise NotFoundError(self.resource_name, format_entity_id(entity_id))
        return await self._get_document(entity_id)

    async def delete_by_id(self, entity_id: uuid.UUID) -> None:
        with store_errors(f"delete {self.model.__tablename__}"):
            result = await self.db.execute(
                delete(self.model)
                .where(self.model.id == entity_id)
                .execution_options(synchronize_session=False),
            )
        if result.rowcount == 0:
            raise NotFoundError(self.resource_name, format_entity_id(entity_id))


class ScoreRepository:
    """Scores — keyed by the client id, written by atomic upsert."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_all(self) -> list[dict]:
        with store_errors("list scores"):
            result = await self.db.execute(
                select(Score)
                .order_by(Score.created_at, Score.id)
                .execution_options(populate_existing=True),
            )
            return [score_to_document(row) for row in result.scalars().all()]

    def _insert(self):
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is None:
            raise UnexpectedStorageError(
                f"Score upsert is not supported on dialect '{dialect}'", "upsert",
            )
        return insert

    async def upsert(self, document: dict) -> None:
        """Insert, or replace every field of the score with the same id."""
        now = datetime.now(timezone.utc)
        values = {
            "project_id": document["project_id"],
            "judge_id": document["judge_id"],
            "criteria": document.get("criteria") or {},
            "feedback": document.get("feedback"),
            "extra": document.get("extra") or {},
            "updated_at": now,
        }
        with store_errors("upsert score"):
            insert = self._insert()
            statement = insert(Score).values(
                id=document["id"], created_at=now, **values,
            )
            statement = statement.on_conflict_do_update(
                index_elements=[Score.id], set_=values,
            )
            await self.db.execute(statement)

    async def delete_by_id(self, score_id: str) -> None:
        with store_errors("delete score"):
            result = await self.db.execute(
                delete(Score).where(Score.id == score_id)
                .execution_options(synchronize_session=False),
            )
        if result.rowcount == 0:
            raise NotFoundError("Score", score_id)

    async def delete_by_project(self, project_id: str) -> int:
        with store_errors("cascade scores by project"):
            result = await self.db.execute(
                delete(Score).where(Score.project_id == project_id)
                .execution_options(synchronize_session=False),
            )
        return result.rowcount

    async def delete_by_judge(self, judge_id: str) -> int:
        with store_errors("cascade scores by judge"):
            result = await self.db.execute(
                delete(Score).where(Score.judge_id == judge_id)
                .execution_options(synchronize_session=False),
            )
        return result.rowcount
