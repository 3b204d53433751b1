"""Criterion ORM — one scoring dimension with a weight and an upper bound.

Invariants:
    - weight > 0, max_score > 0 (validated at the API boundary)
    - No cascade on delete: score values keyed by a deleted criterion become orphaned
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, Integer, Float, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from judging.db.base import Base


class Criterion(Base):
    """Criterion entity."""
    __tablename__ = "criteria"

    __document_fields__ = (
        ("name", "name"),
        ("description", "description"),
        ("weight", "weight"),
        ("max_score", "maxScore"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    weight: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    max_score: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
