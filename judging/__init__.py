"""Hackathon Judging Backend — REST + real-time snapshot sync for projects, judges, criteria and scores.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
