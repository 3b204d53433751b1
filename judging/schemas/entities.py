"""Entity Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - Wire format is camelCase (teamName, maxScore, projectId); Python side is snake_case
    - Create payloads never carry an id for projects/judges/criteria (ignored if sent)
    - Update payloads are partial: only fields the client sent are written (exclude_unset)
    - A non-nullable column can never be set to null through an update
    - ScoreUpsert keeps unknown fields (extra="allow") so scores round-trip as submitted

Design Decisions:
    - alias_generator=to_camel over per-field aliases: one rule for every model
    - field_validator for side-effect-free transforms (strip) — keeps models pure
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for all request bodies — camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def strip_required(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("value cannot be empty or whitespace")
    return v


def clean_names(values: list[str] | None) -> list[str] | None:
    """Strip entries, drop blanks and duplicates, keep first-seen order."""
    if values is None:
        return values
    cleaned: list[str] = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


class PartialUpdate(WireModel):
    """Partial update — `id` is accepted for symmetry with the client model, never stored."""
    NON_NULLABLE: ClassVar[tuple[str, ...]] = ()

    id: str | None = None

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in self.NON_NULLABLE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def to_fields(self) -> dict:
        """Storage attributes the client actually sent."""
        return self.model_dump(exclude_unset=True, exclude={"id"})


# --- Projects -----------------------------------------------------------------

class ProjectCreate(WireModel):
    """Project creation — name and track required."""
    name: str = Field(min_length=1, max_length=200)
    track: str = Field(min_length=1, max_length=100)
    description: str | None = Field(None, max_length=10_000)
    team_name: str | None = Field(None, max_length=200)
    team_members: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("name", "track")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return strip_required(v)

    @field_validator("team_members")
    @classmethod
    def clean_members(cls, v: list[str]) -> list[str]:
        return clean_names(v)

    def to_fields(self) -> dict:
        return self.model_dump(exclude={"id"})


class ProjectUpdate(PartialUpdate):
    NON_NULLABLE: ClassVar[tuple[str, ...]] = ("name", "track", "team_members")

    name: str | None = Field(None, min_length=1, max_length=200)
    track: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=10_000)
    team_name: str | None = Field(None, max_length=200)
    team_members: list[str] | None = Field(None, max_length=50)

    @field_validator("name", "track")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return strip_required(v)

    @field_validator("team_members")
    @classmethod
    def clean_members(cls, v: list[str] | None) -> list[str] | None:
        return clean_names(v)


# --- Judges -------------------------------------------------------------------

class JudgeCreate(WireModel):
    """Judge creation — tracks may be empty (judge sees no projects yet)."""
    name: str = Field(min_length=1, max_length=200)
    tracks: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return strip_required(v)

    @field_validator("tracks")
    @classmethod
    def clean_tracks(cls, v: list[str]) -> list[str]:
        return clean_names(v)

    def to_fields(self) -> dict:
        return self.model_dump(exclude={"id"})


class JudgeUpdate(PartialUpdate):
    NON_NULLABLE: ClassVar[tuple[str, ...]] = ("name", "tracks")

    name: str | None = Field(None, min_length=1, max_length=200)
    tracks: list[str] | None = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return strip_required(v)

    @field_validator("tracks")
    @classmethod
    def clean_tracks(cls, v: list[str] | None) -> list[str] | None:
        return clean_names(v)


# --- Criteria -----------------------------------------------------------------

class CriterionCreate(WireModel):
    """Criterion creation — weight scales its share of the weighted total."""
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    weight: float = Field(1.0, gt=0, le=1000)
    max_score: int = Field(10, gt=0, le=1000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return strip_required(v)

    def to_fields(self) -> dict:
        return self.model_dump(exclude={"id"})


class CriterionUpdate(PartialUpdate):
    NON_NULLABLE: ClassVar[tuple[str, ...]] = ("name", "weight", "max_score")

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    weight: float | None = Field(None, gt=0, le=1000)
    max_score: int | None = Field(None, gt=0, le=1000)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return strip_required(v)


# --- Scores -------------------------------------------------------------------

class ScoreUpsert(WireModel):
    """Score upsert — identity is the client id; unknown fields are kept verbatim."""
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow",
    )

    id: str = Field(min_length=1, max_length=128)
    project_id: str = Field(min_length=1, max_length=128)
    judge_id: str = Field(min_length=1, max_length=128)
    criteria: dict[str, float] = Field(default_factory=dict)
    feedback: str | None = Field(None, max_length=10_000)

    @field_validator("criteria")
    @classmethod
    def non_negative_values(cls, v: dict[str, float]) -> dict[str, float]:
        for key, value in v.items():
            if value < 0:
                raise ValueError(f"criteria['{key}'] must be >= 0")
        return v

    def extra_fields(self) -> dict:
        return dict(self.model_extra or {})

    def to_wire(self) -> dict:
        """The payload as submitted (defaults filled in), camelCase keys."""
        return self.model_dump(by_alias=True)
