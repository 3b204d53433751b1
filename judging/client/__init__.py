"""Viewer Client — keeps a local snapshot in sync with the judging API (poll or SSE).

Invariants:
    - The client only ever replaces its snapshot wholesale; it never merges

Design Decisions:
    - Lives beside the server so dashboards, scripts and tests share one sync implementation
"""
