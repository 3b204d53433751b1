"""ORM Models — SQLAlchemy declarative models for the four collections.

Invariants:
    - All models inherit from Base (db/base.py)
    - Scores reference projects/judges by external id string, not by foreign key

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all / alembic
"""

from judging.models.project import Project  # noqa: F401
from judging.models.judge import Judge  # noqa: F401
from judging.models.criterion import Criterion  # noqa: F401
from judging.models.score import Score  # noqa: F401
