# db_schema/recovery.py
"""SQLite SSOT schema: recovery milestone tracking.

One row per injury holds the ordered milestone list and the adherence log as
JSON. ``version`` is bumped on every write (optimistic concurrency); the row is
deleted when every milestone is completed.
"""

from __future__ import annotations


def ddl(*, now: str, schema_version: str) -> str:  # noqa: ARG001
    """Return DDL SQL for recovery tables (as a single executescript string)."""

    return """

                CREATE TABLE IF NOT EXISTS recovery_state (
                    injury_id TEXT PRIMARY KEY,
                    protocol_type TEXT NOT NULL,
                    milestones_json TEXT NOT NULL DEFAULT '[]',
                    entries_json TEXT NOT NULL DEFAULT '[]',
                    version INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

"""
