from __future__ import annotations

"""Process-local runtime state.

Only the SQLite path is held here. It is set once by the FastAPI startup hook
and read by the route handlers; service functions always receive ``db_path``
explicitly so they stay testable without this module.
"""

from typing import Optional

_DB_PATH: Optional[str] = None


def set_db_path(db_path: str) -> None:
    global _DB_PATH
    s = str(db_path or "").strip()
    if not s:
        raise ValueError("db_path must be a non-empty string")
    _DB_PATH = s


def get_db_path() -> str:
    if not _DB_PATH:
        raise RuntimeError("db_path is not configured (call state.set_db_path first)")
    return _DB_PATH


def reset() -> None:
    global _DB_PATH
    _DB_PATH = None
