"""Infrastructure Layer — store access, event fan-out, and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from api/ or services/
    - All store calls wrapped with error translation (database.store_errors)

Design Decisions:
    - Resilient wrappers over raw clients: routes and services only see JudgingError
"""
