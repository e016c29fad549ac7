# medical_repo.py
# Developer note:
# - SQLite DB is the single source of truth (SSOT) for persisted medical data.
# - player_id values are canonical numeric strings; always normalize via schema.py.
# - Subsystem packages own their SQL (injury/repo.py, load/repo.py, ...); this
#   module owns the connection, transactions and schema application.
"""
MedicalRepository: persisted-data SSOT (SQLite)

Usage (CLI):
  python medical_repo.py init --db <db_path>
  python medical_repo.py validate --db <db_path>

Python:
  from medical_repo import MedicalRepo
  with MedicalRepo("<db_path>") as repo:
      repo.init_db()
      with repo.transaction() as cur:
          ...

Async callers go through ``run_in_repo``, which opens a connection on a worker
thread and bounds the call with ``config.REPO_TIMEOUT_S``.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, TypeVar

import clock
import config
from schema import SCHEMA_VERSION

logger = logging.getLogger(__name__)
_WARN_COUNTS: Dict[str, int] = {}

T = TypeVar("T")


def _warn_limited(code: str, msg: str, *, limit: int = 5) -> None:
    n = _WARN_COUNTS.get(code, 0)
    if n < limit:
        logger.warning("%s %s", code, msg, exc_info=True)
    _WARN_COUNTS[code] = n + 1


# ----------------------------
# Repository
# ----------------------------

class MedicalRepo:
    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, timeout=config.SQLITE_BUSY_TIMEOUT_S)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON;")
        self._conn.execute("PRAGMA journal_mode = WAL;")
        # Nested transaction support (SAVEPOINT) for callers that compose repo functions.
        self._savepoint_seq = 0

    def close(self) -> None:
        try:
            self._conn.close()
        except sqlite3.Error:
            _warn_limited("REPO_CLOSE_FAILED", f"db_path={self.db_path!r}", limit=3)

    @contextlib.contextmanager
    def transaction(self):
        """Commit on success, roll back on any exception.

        A call made while a transaction is already open becomes a SAVEPOINT, so
        only the inner block is undone when it raises.
        """
        cur = self._conn.cursor()
        nested = bool(getattr(self._conn, "in_transaction", False))
        sp_name = None
        try:
            if nested:
                self._savepoint_seq += 1
                sp_name = f"sp_{self._savepoint_seq}"
                cur.execute(f"SAVEPOINT {sp_name};")
            else:
                # IMMEDIATE takes the writer lock up front so read-modify-write
                # sequences never deadlock on lock upgrade.
                self._conn.execute("BEGIN IMMEDIATE;")

            yield cur

            if nested and sp_name:
                cur.execute(f"RELEASE SAVEPOINT {sp_name};")
            else:
                self._conn.commit()
        except Exception:
            if nested and sp_name:
                try:
                    cur.execute(f"ROLLBACK TO SAVEPOINT {sp_name};")
                finally:
                    cur.execute(f"RELEASE SAVEPOINT {sp_name};")
            else:
                self._conn.rollback()
            raise
        finally:
            cur.close()

    @contextlib.contextmanager
    def read(self):
        """Cursor for read-only access (no explicit transaction)."""
        cur = self._conn.cursor()
        try:
            yield cur
        finally:
            cur.close()

    # ------------------------
    # Schema
    # ------------------------

    def _ensure_table_columns(self, cur: sqlite3.Cursor, table: str, columns: Mapping[str, str]) -> None:
        """SQLite has no ADD COLUMN IF NOT EXISTS; check PRAGMA table_info first."""
        rows = cur.execute(f"PRAGMA table_info({table});").fetchall()
        existing = {r["name"] for r in rows}
        for col, ddl in columns.items():
            if col in existing:
                continue
            cur.execute(f"ALTER TABLE {table} ADD COLUMN {col} {ddl};")

    def init_db(self) -> None:
        """Apply SQLite schema (DDL + migrations) via db_schema."""
        from db_schema import apply_schema

        now = clock.now_iso()
        with self.transaction() as cur:
            apply_schema(
                cur,
                now=now,
                schema_version=SCHEMA_VERSION,
                ensure_columns=self._ensure_table_columns,
            )

    def get_schema_version(self) -> Optional[str]:
        row = self._conn.execute("SELECT value FROM meta WHERE key='schema_version';").fetchone()
        return str(row[0]) if row else None

    def validate_integrity(self) -> None:
        """Fail loudly if the one-current-availability-row invariant is broken."""
        rows = self._conn.execute(
            """
            SELECT player_id, COUNT(*)
            FROM player_availability
            WHERE is_current=1
            GROUP BY player_id
            HAVING COUNT(*) > 1;
            """
        ).fetchall()
        if rows:
            bad = ", ".join(str(r[0]) for r in rows[:10])
            raise ValueError(f"multiple current availability rows for players: {bad}")
        version = self.get_schema_version()
        if version != SCHEMA_VERSION:
            raise ValueError(f"schema_version mismatch: db={version!r} code={SCHEMA_VERSION!r}")

    # ------------------------
    # Convenience
    # ------------------------

    def __enter__(self) -> "MedicalRepo":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# ----------------------------
# Async runner
# ----------------------------

def _call_with_repo(db_path: str, fn: Callable[..., T], args: tuple, kwargs: dict) -> T:
    with MedicalRepo(db_path) as repo:
        return fn(repo, *args, **kwargs)


async def run_in_repo(
    db_path: str,
    fn: Callable[..., T],
    *args: Any,
    timeout: Optional[float] = None,
    **kwargs: Any,
) -> T:
    """Run ``fn(repo, *args, **kwargs)`` on a worker thread with its own connection.

    Raises ``asyncio.TimeoutError`` when the call exceeds ``timeout``
    (default ``config.REPO_TIMEOUT_S``). The worker thread is not cancelled:
    ``fn`` keeps running after the timeout and its transaction may still
    commit. Append-only writes (adherence entries, load trends) must be
    re-read before a retry, or they are recorded twice.
    """
    limit = config.REPO_TIMEOUT_S if timeout is None else float(timeout)
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(_call_with_repo, str(db_path), fn, args, kwargs),
            timeout=limit,
        )
    except asyncio.TimeoutError:
        _warn_limited(
            "REPO_CALL_TIMEOUT",
            f"fn={getattr(fn, '__name__', fn)!r} timeout={limit}s; worker may still commit",
        )
        raise


def init_db(db_path: str) -> None:
    with MedicalRepo(db_path) as repo:
        repo.init_db()


# ----------------------------
# CLI
# ----------------------------

def _cmd_init(args) -> None:
    init_db(args.db)
    print(f"OK: initialized {args.db}")


def _cmd_validate(args) -> None:
    with MedicalRepo(args.db) as repo:
        repo.validate_integrity()
        version = repo.get_schema_version()
    print(f"OK: validation passed for {args.db} (schema_version={version})")


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="medical-repo", description="Medical SQLite store maintenance")
    commands = parser.add_subparsers(dest="cmd", required=True)
    for name, func, summary in (
        ("init", _cmd_init, "create or migrate the medical schema"),
        ("validate", _cmd_validate, "check availability rows and schema version"),
    ):
        cmd = commands.add_parser(name, help=summary)
        cmd.add_argument("--db", required=True, help="SQLite file (MEDICAL_DB_PATH)")
        cmd.set_defaults(func=func)

    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
