# db_schema/injury.py
"""SQLite SSOT schema: injuries, wellness and availability.

This module introduces:
  - injuries (diagnosed injuries; never deleted, only status-transitioned)
  - wellness_entries (self-reported wellness; latest per player is consulted)
  - player_availability (availability history; one is_current=1 row per player)

Notes
-----
* Dates are stored as ISO strings (YYYY-MM-DD), timestamps as ISO datetimes.
* The one-current-row invariant for player_availability is enforced by
  MedicalRepo on write (old rows are flipped to is_current=0 in the same
  transaction) and guarded by a partial unique index.
"""

from __future__ import annotations

import sqlite3
from typing import Callable, Mapping

EnsureColumnsFn = Callable[[sqlite3.Cursor, str, Mapping[str, str]], None]


def ddl(*, now: str, schema_version: str) -> str:  # noqa: ARG001
    """Return DDL SQL for injury tables (as a single executescript string)."""

    return """

                CREATE TABLE IF NOT EXISTS injuries (
                    injury_id TEXT PRIMARY KEY,
                    player_id TEXT NOT NULL,
                    body_part TEXT NOT NULL,
                    injury_type TEXT NOT NULL,
                    severity INTEGER NOT NULL CHECK(severity BETWEEN 1 AND 5),
                    recovery_status TEXT NOT NULL DEFAULT 'active'
                        CHECK(recovery_status IN ('active', 'recovering', 'recovered')),
                    injury_date TEXT NOT NULL,
                    expected_return_date TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_injuries_player_status
                    ON injuries(player_id, recovery_status);


                CREATE TABLE IF NOT EXISTS wellness_entries (
                    entry_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    player_id TEXT NOT NULL,
                    entry_date TEXT NOT NULL,
                    sleep_hours REAL NOT NULL,
                    stress_level INTEGER NOT NULL,
                    soreness_level INTEGER NOT NULL,
                    energy_level INTEGER NOT NULL,
                    hydration_level INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_wellness_player_date
                    ON wellness_entries(player_id, entry_date);


                CREATE TABLE IF NOT EXISTS player_availability (
                    availability_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    player_id TEXT NOT NULL,
                    availability_status TEXT NOT NULL
                        CHECK(availability_status IN ('available', 'injured', 'load_management', 'illness')),
                    is_current INTEGER NOT NULL DEFAULT 1,
                    medical_clearance_required INTEGER NOT NULL DEFAULT 0,
                    reason TEXT,
                    effective_date TEXT NOT NULL,
                    created_at TEXT NOT NULL
                );

                CREATE UNIQUE INDEX IF NOT EXISTS ux_player_availability_current
                    ON player_availability(player_id) WHERE is_current = 1;

"""


def migrate(cur: sqlite3.Cursor, *, ensure_columns: EnsureColumnsFn) -> None:
    """Columns added after the first schema release."""
    ensure_columns(
        cur,
        "wellness_entries",
        {
            "max_heart_rate": "INTEGER",
            "notes": "TEXT",
        },
    )
