from __future__ import annotations

"""Process-level settings.

Subsystem tuning constants live in each package's own ``config.py``
(``load/config.py``, ``recovery/config.py`` ...). This module only carries the
values that come from the environment.
"""

import os


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not str(raw).strip():
        return float(default)
    try:
        return float(raw)
    except ValueError:
        return float(default)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return str(raw).strip().lower() not in {"0", "false", "no", "off", ""}


# SQLite file used by the HTTP app (tests pass db_path explicitly).
DB_PATH_ENV: str = "MEDICAL_DB_PATH"

# Upper bound for a single repository call (seconds).
REPO_TIMEOUT_S: float = _env_float("MEDICAL_REPO_TIMEOUT_S", 5.0)

# sqlite3 busy timeout for a connection waiting on a writer lock.
SQLITE_BUSY_TIMEOUT_S: float = _env_float("MEDICAL_SQLITE_BUSY_TIMEOUT_S", 10.0)

CACHE_ENABLED: bool = _env_flag("MEDICAL_CACHE_ENABLED", True)
