from __future__ import annotations

"""DB access layer for the injury subsystem.

This module is intentionally *pure DB I/O*:
- no imports from the rule engines (avoid circular dependencies)
- no business logic beyond id and status normalization

Tables: injuries, wellness_entries, player_availability.
All dates are stored as ISO YYYY-MM-DD strings.
"""

import datetime as _dt
import sqlite3
from typing import Any, List, Optional

from .types import Injury, PlayerAvailability, WellnessEntry


def _norm_date_iso(value: Any) -> Optional[str]:
    """Normalize date-like value to YYYY-MM-DD, else None."""
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    s = s[:10]
    try:
        _dt.date.fromisoformat(s)
    except ValueError:
        return None
    return s


def _opt_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


_INJURY_COLS = """
    injury_id,
    player_id,
    body_part,
    injury_type,
    severity,
    recovery_status,
    injury_date,
    expected_return_date
"""


def _injury_from_row(r: Any) -> Injury:
    return Injury(
        injury_id=str(r[0]),
        player_id=str(r[1]),
        body_part=str(r[2] or ""),
        injury_type=str(r[3] or ""),
        severity=int(r[4] or 1),
        recovery_status=str(r[5] or "active"),
        injury_date=_norm_date_iso(r[6]) or "",
        expected_return_date=_norm_date_iso(r[7]),
    )


# ---------------------------------------------------------------------------
# injuries
# ---------------------------------------------------------------------------


def upsert_injury(cur: sqlite3.Cursor, injury: Injury, *, now: str) -> None:
    cur.execute(
        """
        INSERT INTO injuries(
            injury_id, player_id, body_part, injury_type, severity,
            recovery_status, injury_date, expected_return_date,
            created_at, updated_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(injury_id) DO UPDATE SET
            body_part=excluded.body_part,
            injury_type=excluded.injury_type,
            severity=excluded.severity,
            recovery_status=excluded.recovery_status,
            injury_date=excluded.injury_date,
            expected_return_date=excluded.expected_return_date,
            updated_at=excluded.updated_at;
        """,
        (
            injury.injury_id,
            injury.player_id,
            injury.body_part,
            injury.injury_type,
            int(injury.severity),
            injury.recovery_status,
            injury.injury_date,
            injury.expected_return_date,
            now,
            now,
        ),
    )


def get_injury(cur: sqlite3.Cursor, injury_id: str) -> Optional[Injury]:
    row = cur.execute(
        f"SELECT {_INJURY_COLS} FROM injuries WHERE injury_id=?;",
        (str(injury_id),),
    ).fetchone()
    return _injury_from_row(row) if row else None


def list_injuries_by_player(cur: sqlite3.Cursor, player_id: str) -> List[Injury]:
    rows = cur.execute(
        f"""
        SELECT {_INJURY_COLS}
        FROM injuries
        WHERE player_id=?
        ORDER BY injury_date ASC, created_at ASC;
        """,
        (str(player_id),),
    ).fetchall()
    return [_injury_from_row(r) for r in rows]


# ---------------------------------------------------------------------------
# wellness_entries
# ---------------------------------------------------------------------------


def insert_wellness(cur: sqlite3.Cursor, entry: WellnessEntry, *, now: str) -> None:
    row = entry.to_row()
    cur.execute(
        """
        INSERT INTO wellness_entries(
            player_id, entry_date, sleep_hours, stress_level, soreness_level,
            energy_level, hydration_level, max_heart_rate, notes, created_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
        """,
        (
            row["player_id"],
            row["entry_date"],
            row["sleep_hours"],
            row["stress_level"],
            row["soreness_level"],
            row["energy_level"],
            row["hydration_level"],
            row["max_heart_rate"],
            row["notes"],
            now,
        ),
    )


def get_latest_wellness(cur: sqlite3.Cursor, player_id: str) -> Optional[WellnessEntry]:
    r = cur.execute(
        """
        SELECT
            player_id, entry_date, sleep_hours, stress_level, soreness_level,
            energy_level, hydration_level, max_heart_rate, notes
        FROM wellness_entries
        WHERE player_id=?
        ORDER BY entry_date DESC, entry_id DESC
        LIMIT 1;
        """,
        (str(player_id),),
    ).fetchone()
    if not r:
        return None
    return WellnessEntry(
        player_id=str(r[0]),
        entry_date=_norm_date_iso(r[1]) or "",
        sleep_hours=float(r[2] or 0.0),
        stress_level=int(r[3] or 0),
        soreness_level=int(r[4] or 0),
        energy_level=int(r[5] or 0),
        hydration_level=int(r[6] or 0),
        max_heart_rate=_opt_int(r[7]),
        notes=str(r[8]) if r[8] is not None else None,
    )


# ---------------------------------------------------------------------------
# player_availability
# ---------------------------------------------------------------------------


def get_current_availability(cur: sqlite3.Cursor, player_id: str) -> Optional[PlayerAvailability]:
    r = cur.execute(
        """
        SELECT
            player_id, availability_status, is_current,
            medical_clearance_required, reason, effective_date
        FROM player_availability
        WHERE player_id=? AND is_current=1
        LIMIT 1;
        """,
        (str(player_id),),
    ).fetchone()
    if not r:
        return None
    return PlayerAvailability(
        player_id=str(r[0]),
        availability_status=str(r[1]),
        is_current=bool(r[2]),
        medical_clearance_required=bool(r[3]),
        reason=str(r[4]) if r[4] is not None else None,
        effective_date=_norm_date_iso(r[5]) or "",
    )


def replace_current_availability(cur: sqlite3.Cursor, availability: PlayerAvailability, *, now: str) -> None:
    """Retire the current row (if any) and insert ``availability`` as current.

    Must run inside a transaction so the one-current-row invariant holds.
    """
    cur.execute(
        "UPDATE player_availability SET is_current=0 WHERE player_id=? AND is_current=1;",
        (availability.player_id,),
    )
    cur.execute(
        """
        INSERT INTO player_availability(
            player_id, availability_status, is_current,
            medical_clearance_required, reason, effective_date, created_at
        )
        VALUES (?, ?, 1, ?, ?, ?, ?);
        """,
        (
            availability.player_id,
            availability.availability_status,
            1 if availability.medical_clearance_required else 0,
            availability.reason,
            availability.effective_date,
            now,
        ),
    )


def list_availability_history(cur: sqlite3.Cursor, player_id: str) -> List[PlayerAvailability]:
    rows = cur.execute(
        """
        SELECT
            player_id, availability_status, is_current,
            medical_clearance_required, reason, effective_date
        FROM player_availability
        WHERE player_id=?
        ORDER BY availability_id ASC;
        """,
        (str(player_id),),
    ).fetchall()
    return [
        PlayerAvailability(
            player_id=str(r[0]),
            availability_status=str(r[1]),
            is_current=bool(r[2]),
            medical_clearance_required=bool(r[3]),
            reason=str(r[4]) if r[4] is not None else None,
            effective_date=_norm_date_iso(r[5]) or "",
        )
        for r in rows
    ]
