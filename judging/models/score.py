"""Score ORM — one judge's evaluation of one project, keyed by a client-generated id.

Invariants:
    - id is the client's string, never generated or translated server-side
    - project_id / judge_id hold external id strings (no foreign keys: dangling refs allowed)
    - Writes are upserts on id (INSERT ... ON CONFLICT DO UPDATE), last write wins
    - extra holds any additional client fields, returned verbatim

Design Decisions:
    - criteria as JSON {criterion_id: value}: the set of criteria changes during an event,
      a column per criterion would need migrations mid-hackathon
    - Indexes on project_id and judge_id: cascade deletes filter on them
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column

from judging.db.base import Base


class Score(Base):
    """Score entity — the only collection with client-supplied identity."""
    __tablename__ = "scores"

    __document_fields__ = (
        ("project_id", "projectId"),
        ("judge_id", "judgeId"),
        ("criteria", "criteria"),
        ("feedback", "feedback"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    project_id: Mapped[str] = mapped_column(
        String(128), nullable=False, index=True,
    )
    judge_id: Mapped[str] = mapped_column(
        String(128), nullable=False, index=True,
    )
    criteria: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    feedback: Mapped[str | None] = mapped_column(Text, nullable=True)
    extra: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
