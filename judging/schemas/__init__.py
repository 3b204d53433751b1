"""Pydantic Schemas — request validation for the entity and score endpoints.

Invariants:
    - Schemas validate at system boundary (client payloads), camelCase on the wire

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence (ADR: DDD boundary)
"""
