"""Identifier Translation — external string ids <-> storage keys.

Invariants:
    - parse_entity_id never returns None: malformed input raises InvalidIdentifierError
    - format_entity_id output is canonical (lowercase, hyphenated), so a round-trip is stable
    - Score ids are opaque client strings and never pass through here
    - Score references (projectId/judgeId) are stored canonical when they parse, so
      cascades match every spelling of the same id
"""

from uuid import UUID

from judging.core.errors import ErrorContext, InvalidIdentifierError


def parse_entity_id(raw_id: str, entity: str | None = None) -> UUID:
    """Convert an external id to the storage key type."""
    try:
        return UUID(str(raw_id).strip())
    except (ValueError, AttributeError, TypeError):
        raise InvalidIdentifierError(
            str(raw_id), ErrorContext(entity=entity, entity_id=str(raw_id)),
        )


def format_entity_id(key: UUID) -> str:
    return str(key)


def canonical_entity_id(raw_id: str, entity: str | None = None) -> str:
    """Parse-then-format: the form cascade deletes match scores against."""
    return format_entity_id(parse_entity_id(raw_id, entity))


def normalize_reference(raw_id: str) -> str:
    """Canonical form for a stored reference; unparseable ids are kept verbatim."""
    try:
        return canonical_entity_id(raw_id)
    except InvalidIdentifierError:
        return raw_id
