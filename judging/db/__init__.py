"""Database Infrastructure — SQLAlchemy declarative Base.

Invariants:
    - One engine per process, owned by DatabaseSessionManager (infrastructure/database.py)
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite for local runs and tests
"""
