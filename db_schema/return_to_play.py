# db_schema/return_to_play.py
"""SQLite SSOT schema: return-to-play protocols.

This module introduces:
  - rtp_protocols (one per injury; phase/clearance state machine, versioned)
  - rtp_sessions (append-only rehabilitation sessions)
  - rtp_assessments (append-only clearance assessments)
"""

from __future__ import annotations


def ddl(*, now: str, schema_version: str) -> str:  # noqa: ARG001
    """Return DDL SQL for return-to-play tables (as a single executescript string)."""

    return """

                CREATE TABLE IF NOT EXISTS rtp_protocols (
                    protocol_id TEXT PRIMARY KEY,
                    player_id TEXT NOT NULL,
                    injury_id TEXT NOT NULL UNIQUE,
                    template_id TEXT NOT NULL,
                    status TEXT NOT NULL
                        CHECK(status IN ('initiated', 'in_progress', 'completed', 'failed', 'paused')),
                    current_phase TEXT NOT NULL,
                    clearance_level TEXT NOT NULL,
                    medical_officer_id TEXT NOT NULL,
                    supervising_trainer_id TEXT,
                    start_date TEXT NOT NULL,
                    expected_completion_date TEXT NOT NULL,
                    actual_completion_date TEXT,
                    compliance_score REAL NOT NULL DEFAULT 0,
                    completion_percentage REAL NOT NULL DEFAULT 0,
                    sessions_completed INTEGER NOT NULL DEFAULT 0,
                    sessions_required INTEGER NOT NULL DEFAULT 0,
                    milestones_json TEXT NOT NULL DEFAULT '[]',
                    version INTEGER NOT NULL DEFAULT 1,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_rtp_protocols_player
                    ON rtp_protocols(player_id);


                CREATE TABLE IF NOT EXISTS rtp_sessions (
                    session_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    protocol_id TEXT NOT NULL,
                    session_date TEXT NOT NULL,
                    session_json TEXT NOT NULL,
                    adherence_score REAL NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(protocol_id) REFERENCES rtp_protocols(protocol_id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_rtp_sessions_protocol
                    ON rtp_sessions(protocol_id, session_date);


                CREATE TABLE IF NOT EXISTS rtp_assessments (
                    assessment_id TEXT PRIMARY KEY,
                    protocol_id TEXT NOT NULL,
                    assessment_date TEXT NOT NULL,
                    assessment_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    FOREIGN KEY(protocol_id) REFERENCES rtp_protocols(protocol_id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_rtp_assessments_protocol
                    ON rtp_assessments(protocol_id, assessment_date);

"""
