"""Root conftest — shared test configuration."""

import os

# Tests never reach a real store; fixtures build their own in-memory managers
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")
