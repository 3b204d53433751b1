"""API Layer — FastAPI routes, request dependencies, and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return JSON (SSE stream excepted); errors use the JudgingError envelope

Design Decisions:
    - Thin routes delegate to JudgingService
"""
