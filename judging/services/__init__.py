"""Services Layer — unit of work, cascade rules, and snapshot publishing.

Invariants:
    - Only the service commits; repositories stage statements

Design Decisions:
    - One request-scoped JudgingService over all four collections (ADR: small domain, no per-entity services)
"""
