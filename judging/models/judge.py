"""Judge ORM — evaluates the projects of the tracks assigned to them.

Invariants:
    - id is a UUID primary key assigned on insert
    - tracks is a JSON list of track names (may be empty)
    - Deleting a judge removes scores whose judge_id equals str(id) (service layer)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from judging.db.base import Base


class Judge(Base):
    """Judge entity."""
    __tablename__ = "judges"

    __document_fields__ = (
        ("name", "name"),
        ("tracks", "tracks"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    tracks: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
