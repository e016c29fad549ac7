# db_schema/load.py
"""SQLite SSOT schema: load compliance trends.

load_trends is append-only per player; rows older than the retention window
are pruned by the load service on every write.
"""

from __future__ import annotations


def ddl(*, now: str, schema_version: str) -> str:  # noqa: ARG001
    """Return DDL SQL for load tables (as a single executescript string)."""

    return """

                CREATE TABLE IF NOT EXISTS load_trends (
                    trend_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    player_id TEXT NOT NULL,
                    date TEXT NOT NULL,
                    planned_load REAL NOT NULL,
                    actual_load REAL NOT NULL,
                    compliance INTEGER NOT NULL,
                    notes TEXT,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_load_trends_player_date
                    ON load_trends(player_id, date);

"""
