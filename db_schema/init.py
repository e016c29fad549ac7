"""Apply the medical SQLite schema.

Every schema module exposes ``ddl(now=, schema_version=) -> str`` and may
expose ``migrate(cur, ensure_columns=)`` for additive column changes on
databases created by an older version.
"""

from __future__ import annotations

import sqlite3
from types import ModuleType
from typing import Callable, Iterable, Mapping

from . import core, injury, load, recovery, return_to_play

# MedicalRepo._ensure_table_columns(cur, table, columns)
EnsureColumnsFn = Callable[[sqlite3.Cursor, str, Mapping[str, str]], None]

# core first (meta); injuries before the tables keyed by injury_id.
DEFAULT_MODULES: tuple[ModuleType, ...] = (core, injury, load, recovery, return_to_play)


def apply_schema(
    cur: sqlite3.Cursor,
    *,
    now: str,
    schema_version: str,
    ensure_columns: EnsureColumnsFn,
    modules: Iterable[ModuleType] = DEFAULT_MODULES,
) -> None:
    mods = tuple(modules)
    cur.executescript("\n\n".join(m.ddl(now=now, schema_version=schema_version) for m in mods))
    for m in mods:
        migrate = getattr(m, "migrate", None)
        if migrate is not None:
            migrate(cur, ensure_columns=ensure_columns)
