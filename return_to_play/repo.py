from __future__ import annotations

"""DB access layer for return-to-play protocols, sessions and assessments.

Protocol writes are compare-and-swap on ``version``; ``update_protocol``
returns False when another writer got there first.
"""

import json
import logging
import sqlite3
from typing import Any, List, Optional

from .types import ClearanceAssessment, ClearanceLevel, Phase, Protocol, RehabSession, milestones_from_json

logger = logging.getLogger(__name__)

_PROTOCOL_COLUMNS = """
    protocol_id, player_id, injury_id, template_id, status, current_phase, clearance_level,
    medical_officer_id, supervising_trainer_id, start_date, expected_completion_date,
    actual_completion_date, compliance_score, completion_percentage, sessions_completed,
    sessions_required, milestones_json, version
"""


def _json_dumps(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), sort_keys=True, default=str)


def _json_loads(value: Any, default: Any) -> Any:
    if value is None:
        return default
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        logger.warning("rtp JSON decode failed preview=%r", str(value)[:120])
        return default


def _row_to_protocol(row: sqlite3.Row) -> Protocol:
    return Protocol(
        protocol_id=str(row["protocol_id"]),
        player_id=str(row["player_id"]),
        injury_id=str(row["injury_id"]),
        template_id=str(row["template_id"]),
        status=str(row["status"]),
        current_phase=Phase(row["current_phase"]),
        clearance_level=ClearanceLevel(row["clearance_level"]),
        medical_officer_id=str(row["medical_officer_id"]),
        supervising_trainer_id=row["supervising_trainer_id"],
        start_date=str(row["start_date"]),
        expected_completion_date=str(row["expected_completion_date"]),
        actual_completion_date=row["actual_completion_date"],
        compliance_score=float(row["compliance_score"] or 0.0),
        completion_percentage=float(row["completion_percentage"] or 0.0),
        sessions_completed=int(row["sessions_completed"] or 0),
        sessions_required=int(row["sessions_required"] or 0),
        milestones=milestones_from_json(_json_loads(row["milestones_json"], default=[]) or []),
        version=int(row["version"] or 1),
    )


def get_protocol(cur: sqlite3.Cursor, protocol_id: str) -> Optional[Protocol]:
    row = cur.execute(
        f"SELECT {_PROTOCOL_COLUMNS} FROM rtp_protocols WHERE protocol_id=?;",
        (str(protocol_id),),
    ).fetchone()
    return _row_to_protocol(row) if row else None


def get_protocol_by_injury(cur: sqlite3.Cursor, injury_id: str) -> Optional[Protocol]:
    row = cur.execute(
        f"SELECT {_PROTOCOL_COLUMNS} FROM rtp_protocols WHERE injury_id=?;",
        (str(injury_id),),
    ).fetchone()
    return _row_to_protocol(row) if row else None


def list_protocols_by_player(cur: sqlite3.Cursor, player_id: str) -> List[Protocol]:
    rows = cur.execute(
        f"SELECT {_PROTOCOL_COLUMNS} FROM rtp_protocols WHERE player_id=? ORDER BY start_date DESC, protocol_id;",
        (str(player_id),),
    ).fetchall()
    return [_row_to_protocol(r) for r in rows]


def insert_protocol(cur: sqlite3.Cursor, p: Protocol, *, now: str) -> None:
    cur.execute(
        f"""
        INSERT INTO rtp_protocols({_PROTOCOL_COLUMNS}, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?);
        """,
        (
            p.protocol_id,
            p.player_id,
            p.injury_id,
            p.template_id,
            p.status,
            p.current_phase.value,
            p.clearance_level.value,
            p.medical_officer_id,
            p.supervising_trainer_id,
            p.start_date,
            p.expected_completion_date,
            p.actual_completion_date,
            float(p.compliance_score),
            float(p.completion_percentage),
            int(p.sessions_completed),
            int(p.sessions_required),
            _json_dumps([m.to_dict() for m in p.milestones]),
            now,
            now,
        ),
    )


def update_protocol(cur: sqlite3.Cursor, p: Protocol, *, expected_version: int, now: str) -> bool:
    cur.execute(
        """
        UPDATE rtp_protocols
        SET status=?, current_phase=?, clearance_level=?, actual_completion_date=?,
            compliance_score=?, completion_percentage=?, sessions_completed=?,
            milestones_json=?, version=version + 1, updated_at=?
        WHERE protocol_id=? AND version=?;
        """,
        (
            p.status,
            p.current_phase.value,
            p.clearance_level.value,
            p.actual_completion_date,
            float(p.compliance_score),
            float(p.completion_percentage),
            int(p.sessions_completed),
            _json_dumps([m.to_dict() for m in p.milestones]),
            now,
            p.protocol_id,
            int(expected_version),
        ),
    )
    return int(cur.rowcount or 0) == 1


def insert_session(cur: sqlite3.Cursor, session: RehabSession, *, now: str) -> int:
    cur.execute(
        """
        INSERT INTO rtp_sessions(protocol_id, session_date, session_json, adherence_score, created_at)
        VALUES (?, ?, ?, ?, ?);
        """,
        (
            session.protocol_id,
            session.session_date,
            _json_dumps(session.to_dict()),
            float(session.adherence_score),
            now,
        ),
    )
    return int(cur.lastrowid)


def list_sessions(cur: sqlite3.Cursor, protocol_id: str) -> List[RehabSession]:
    rows = cur.execute(
        """
        SELECT session_id, session_json
        FROM rtp_sessions
        WHERE protocol_id=?
        ORDER BY session_date ASC, session_id ASC;
        """,
        (str(protocol_id),),
    ).fetchall()
    out: List[RehabSession] = []
    for r in rows:
        payload = _json_loads(r["session_json"], default=None)
        if isinstance(payload, dict):
            out.append(RehabSession.from_dict(payload, session_id=int(r["session_id"])))
    return out


def session_adherence_stats(cur: sqlite3.Cursor, protocol_id: str) -> tuple[int, float]:
    row = cur.execute(
        "SELECT COUNT(*), COALESCE(AVG(adherence_score), 0) FROM rtp_sessions WHERE protocol_id=?;",
        (str(protocol_id),),
    ).fetchone()
    return int(row[0] or 0), float(row[1] or 0.0)


def insert_assessment(cur: sqlite3.Cursor, assessment: ClearanceAssessment, *, now: str) -> None:
    cur.execute(
        """
        INSERT INTO rtp_assessments(assessment_id, protocol_id, assessment_date, assessment_json, created_at)
        VALUES (?, ?, ?, ?, ?);
        """,
        (
            assessment.assessment_id,
            assessment.protocol_id,
            assessment.assessment_date,
            _json_dumps(assessment.to_dict()),
            now,
        ),
    )


def get_latest_assessment(cur: sqlite3.Cursor, protocol_id: str) -> Optional[ClearanceAssessment]:
    row = cur.execute(
        """
        SELECT assessment_json
        FROM rtp_assessments
        WHERE protocol_id=?
        ORDER BY assessment_date DESC, created_at DESC, rowid DESC
        LIMIT 1;
        """,
        (str(protocol_id),),
    ).fetchone()
    if not row:
        return None
    payload = _json_loads(row["assessment_json"], default=None)
    if not isinstance(payload, dict):
        return None
    return ClearanceAssessment.from_dict(payload)
