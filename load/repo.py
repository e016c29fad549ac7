from __future__ import annotations

"""DB access layer for load compliance trends (pure DB I/O)."""

import sqlite3
from typing import List, Optional

from .types import LoadTrend


def insert_trend(cur: sqlite3.Cursor, trend: LoadTrend, *, now: str) -> None:
    cur.execute(
        """
        INSERT INTO load_trends(player_id, date, planned_load, actual_load, compliance, notes, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?);
        """,
        (
            trend.player_id,
            trend.date,
            float(trend.planned_load),
            float(trend.actual_load),
            1 if trend.compliance else 0,
            trend.notes,
            now,
        ),
    )


def prune_trends(cur: sqlite3.Cursor, player_id: str, *, before_date: str) -> int:
    """Delete trends dated strictly before ``before_date``. Returns rows removed."""
    cur.execute(
        "DELETE FROM load_trends WHERE player_id=? AND date < ?;",
        (str(player_id), str(before_date)),
    )
    return int(cur.rowcount or 0)


def list_trends(
    cur: sqlite3.Cursor,
    player_id: str,
    *,
    since_date: Optional[str] = None,
) -> List[LoadTrend]:
    if since_date:
        rows = cur.execute(
            """
            SELECT player_id, date, planned_load, actual_load, compliance, notes
            FROM load_trends
            WHERE player_id=? AND date >= ?
            ORDER BY date ASC, trend_id ASC;
            """,
            (str(player_id), str(since_date)),
        ).fetchall()
    else:
        rows = cur.execute(
            """
            SELECT player_id, date, planned_load, actual_load, compliance, notes
            FROM load_trends
            WHERE player_id=?
            ORDER BY date ASC, trend_id ASC;
            """,
            (str(player_id),),
        ).fetchall()
    return [
        LoadTrend(
            player_id=str(r[0]),
            date=str(r[1]),
            planned_load=float(r[2]),
            actual_load=float(r[3]),
            compliance=bool(r[4]),
            notes=str(r[5]) if r[5] is not None else None,
        )
        for r in rows
    ]
