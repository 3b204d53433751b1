"""Project ORM — a hackathon submission scored by judges of its track.

Invariants:
    - id is a UUID primary key assigned on insert (exposed as its string form)
    - name and track are non-nullable
    - Deleting a project removes scores whose project_id equals str(id) (service layer)

Design Decisions:
    - team_members as JSON list: read and written whole, never queried
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from judging.db.base import Base


class Project(Base):
    """Project entity — one submission, one track."""
    __tablename__ = "projects"

    # (attribute, wire name) — order defines document key order
    __document_fields__ = (
        ("name", "name"),
        ("track", "track"),
        ("description", "description"),
        ("team_name", "teamName"),
        ("team_members", "teamMembers"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    track: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    team_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    team_members: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
