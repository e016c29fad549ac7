from __future__ import annotations

"""DB access layer for recovery_state (pure DB I/O).

Writes are version-checked: ``update_state`` only matches the row when the
stored version equals ``expected_version`` and returns False otherwise.
"""

import json
import logging
import sqlite3
from typing import Any, Optional

from .types import AdherenceEntry, RecoveryMilestone, RecoveryState

logger = logging.getLogger(__name__)


def _json_dumps(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), sort_keys=True, default=str)


def _json_loads(value: Any, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, (dict, list)):
        return value
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        logger.warning("recovery_state JSON decode failed preview=%r", str(value)[:120])
        return default


def get_state(cur: sqlite3.Cursor, injury_id: str) -> Optional[RecoveryState]:
    row = cur.execute(
        """
        SELECT injury_id, protocol_type, milestones_json, entries_json, version
        FROM recovery_state
        WHERE injury_id=?;
        """,
        (str(injury_id),),
    ).fetchone()
    if not row:
        return None
    milestones = _json_loads(row[2], default=[]) or []
    entries = _json_loads(row[3], default=[]) or []
    return RecoveryState(
        injury_id=str(row[0]),
        protocol_type=str(row[1]),
        milestones=tuple(RecoveryMilestone.from_dict(m) for m in milestones if isinstance(m, dict)),
        entries=tuple(AdherenceEntry.from_dict(e) for e in entries if isinstance(e, dict)),
        version=int(row[4] or 0),
    )


def insert_state(cur: sqlite3.Cursor, state: RecoveryState, *, now: str) -> RecoveryState:
    cur.execute(
        """
        INSERT INTO recovery_state(
            injury_id, protocol_type, milestones_json, entries_json, version, created_at, updated_at
        )
        VALUES (?, ?, ?, ?, 1, ?, ?);
        """,
        (
            state.injury_id,
            state.protocol_type,
            _json_dumps([m.to_dict() for m in state.milestones]),
            _json_dumps([e.to_dict() for e in state.entries]),
            now,
            now,
        ),
    )
    return RecoveryState(
        injury_id=state.injury_id,
        protocol_type=state.protocol_type,
        milestones=state.milestones,
        entries=state.entries,
        version=1,
    )


def update_state(cur: sqlite3.Cursor, state: RecoveryState, *, expected_version: int, now: str) -> bool:
    cur.execute(
        """
        UPDATE recovery_state
        SET protocol_type=?, milestones_json=?, entries_json=?, version=version + 1, updated_at=?
        WHERE injury_id=? AND version=?;
        """,
        (
            state.protocol_type,
            _json_dumps([m.to_dict() for m in state.milestones]),
            _json_dumps([e.to_dict() for e in state.entries]),
            now,
            state.injury_id,
            int(expected_version),
        ),
    )
    return int(cur.rowcount or 0) == 1


def delete_state(cur: sqlite3.Cursor, injury_id: str, *, expected_version: int) -> bool:
    cur.execute(
        "DELETE FROM recovery_state WHERE injury_id=? AND version=?;",
        (str(injury_id), int(expected_version)),
    )
    return int(cur.rowcount or 0) == 1
