"""Judging Service — unit of work for every mutation, cascade rules, and snapshot publishing.

Invariants:
    - One commit per mutation; a delete and its cascade commit together or not at all
    - Deleting a project removes scores with projectId == its id; same for judges/judgeId
    - Criterion and score deletes never cascade
    - A snapshot is published only after a successful commit, and only when a viewer listens
    - A failed publish is logged, never turned into a failed mutation (the write is durable)
    - Score upsert returns the submitted payload; references are checked only when enforced
    - Score references are stored in canonical id form so cascades find them

Design Decisions:
    - Service owns commit, repositories only stage: cascade + delete share one transaction
    - Collections addressed by the Collection enum: projects/judges/criteria share one code path
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from judging.core.domain_types import Collection, Snapshot
from judging.core.errors import ErrorContext, JudgingError, NotFoundError, ValidationError
from judging.core.identifiers import (
    format_entity_id, normalize_reference, parse_entity_id,
)
from judging.core.repository_protocols import EntityStore, ScoreStore
from judging.core.results import compute_results, judge_assignments
from judging.core.snapshot import build_snapshot
from judging.infrastructure.broadcaster import SnapshotBroadcaster
from judging.infrastructure.database import store_errors
from judging.infrastructure.repositories import EntityRepository, ScoreRepository
from judging.models import Criterion, Judge, Project
from judging.schemas.entities import ScoreUpsert

logger = logging.getLogger(__name__)

RESOURCE_NAMES = {
    Collection.PROJECTS: "Project",
    Collection.JUDGES: "Judge",
    Collection.CRITERIA: "Criterion",
    Collection.SCORES: "Score",
}


class JudgingService:
    """Request-scoped facade over the repositories; one instance per request session."""

    def __init__(
        self,
        db: AsyncSession,
        broadcaster: SnapshotBroadcaster | None = None,
        enforce_score_references: bool = False,
    ):
        self.db = db
        self.broadcaster = broadcaster
        self.enforce_score_references = enforce_score_references
        self.scores: ScoreStore = ScoreRepository(db)
        self._entities: dict[Collection, EntityStore] = {
            Collection.PROJECTS: EntityRepository(db, Project, "Project"),
            Collection.JUDGES: EntityRepository(db, Judge, "Judge"),
            Collection.CRITERIA: EntityRepository(db, Criterion, "Criterion"),
        }

    def repository(self, collection: Collection) -> EntityStore:
        return self._entities[collection]

    # -- Reads -----------------------------------------------------------------

    async def read_snapshot(self) -> Snapshot:
        """All four collections, normalized, in wire order."""
        return build_snapshot(
            await self._entities[Collection.PROJECTS].list_all(),
            await self._entities[Collection.JUDGES].list_all(),
            await self._entities[Collection.CRITERIA].list_all(),
            await self.scores.list_all(),
        )

    async def results(self) -> list[dict]:
        return compute_results(await self.read_snapshot())

    async def assignments(self, raw_judge_id: str) -> dict:
        judge_id = format_entity_id(parse_entity_id(raw_judge_id, "judges"))
        view = judge_assignments(await self.read_snapshot(), judge_id)
        if view is None:
            raise NotFoundError("Judge", judge_id)
        return view

    # -- Projects / judges / criteria -----------------------------------------

    async def create(self, collection: Collection, items: list[dict]) -> list[dict]:
        created = await self.repository(collection).insert_many(items)
        await self._commit(f"create {collection.value}")
        logger.info(
            f"Created {len(created)} {collection.value}",
            extra={"entity": collection.value},
        )
        return created

    async def update(self, collection: Collection, raw_id: str, fields: dict) -> dict:
        """Partial update by path id; an `id` inside fields is never written."""
        entity_id = parse_entity_id(raw_id, collection.value)
        fields = {k: v for k, v in fields.items() if k != "id"}
        document = await self.repository(collection).update_by_id(entity_id, fields)
        await self._commit(f"update {collection.value}")
        logger.info(
            f"Updated {RESOURCE_NAMES[collection]}",
            extra={"entity": collection.value, "entity_id": document["id"]},
        )
        return document

    async def delete(self, collection: Collection, raw_id: str) -> int:
        """Delete one document; returns how many scores the cascade removed."""
        entity_id = parse_entity_id(raw_id, collection.value)
        await self.repository(collection).delete_by_id(entity_id)
        key = format_entity_id(entity_id)
        cascaded = 0
        if collection == Collection.PROJECTS:
            cascaded = await self.scores.delete_by_project(key)
        elif collection == Collection.JUDGES:
            cascaded = await self.scores.delete_by_judge(key)
        await self._commit(f"delete {collection.value}")
        logger.info(
            f"Deleted {RESOURCE_NAMES[collection]}",
            extra={"entity": collection.value, "entity_id": key, "cascaded": cascaded},
        )
        return cascaded

    # -- Scores ----------------------------------------------------------------

    async def upsert_score(self, body: ScoreUpsert) -> dict:
        """Idempotent write keyed by the client id; returns the submitted payload."""
        if self.enforce_score_references:
            await self._check_score_references(body)
        await self.scores.upsert({
            "id": body.id,
            "project_id": normalize_reference(body.project_id),
            "judge_id": normalize_reference(body.judge_id),
            "criteria": body.criteria,
            "feedback": body.feedback,
            "extra": body.extra_fields(),
        })
        await self._commit("upsert score")
        logger.info("Upserted score", extra={"entity": "scores", "entity_id": body.id})
        return body.to_wire()

    async def delete_score(self, score_id: str) -> None:
        await self.scores.delete_by_id(score_id)
        await self._commit("delete score")
        logger.info("Deleted score", extra={"entity": "scores", "entity_id": score_id})

    async def _check_score_references(self, body: ScoreUpsert) -> None:
        """Reject dangling project/judge/criterion references and out-of-range values."""
        for field, collection, raw_id in (
            ("projectId", Collection.PROJECTS, body.project_id),
            ("judgeId", Collection.JUDGES, body.judge_id),
        ):
            entity_id = self._reference_id(raw_id, field)
            if not await self.repository(collection).exists(entity_id):
                raise ValidationError(
                    f"{field} references a {RESOURCE_NAMES[collection]} that does not exist",
                    field, ErrorContext(entity="scores", entity_id=body.id),
                )

        criteria = {
            c["id"]: c
            for c in await self.repository(Collection.CRITERIA).list_all()
        }
        for key, value in body.criteria.items():
            criterion = criteria.get(key)
            if criterion is None:
                raise ValidationError(
                    f"criteria['{key}'] references a Criterion that does not exist",
                    "criteria", ErrorContext(entity="scores", entity_id=body.id),
                )
            if value > criterion["maxScore"]:
                raise ValidationError(
                    f"criteria['{key}'] exceeds maxScore {criterion['maxScore']}",
                    "criteria", ErrorContext(entity="scores", entity_id=body.id),
                )

    @staticmethod
    def _reference_id(raw_id: str, field: str):
        try:
            return parse_entity_id(raw_id)
        except ValidationError:
            raise ValidationError(f"{field} is not a valid ID", field)

    # -- Unit of work ------------------------------------------------------------

    async def _commit(self, operation: str) -> None:
        with store_errors(operation):
            await self.db.commit()
        await self._publish()

    async def _publish(self) -> None:
        if self.broadcaster is None or self.broadcaster.subscriber_count == 0:
            return
        try:
            snapshot = await self.read_snapshot()
        except JudgingError as e:
            logger.error(
                f"Mutation committed but snapshot read for broadcast failed: {e.message}",
                extra={"error_code": e.code},
            )
            return
        self.broadcaster.publish(snapshot)
