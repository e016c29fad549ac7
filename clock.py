from __future__ import annotations

"""Time source for the medical subsystems.

Every "now" in service code goes through this module so that retention windows,
overdue checks and timestamps are reproducible in tests (``set_now``) and never
depend on where the caller happens to read the wall clock.

All datetimes are timezone-aware UTC. Dates are stored as ISO strings:
``YYYY-MM-DD`` for dates and ``YYYY-MM-DDTHH:MM:SS+00:00`` for timestamps.
"""

import datetime as _dt
from typing import Any, Callable, Optional

_NOW_PROVIDER: Optional[Callable[[], _dt.datetime]] = None


def _system_now() -> _dt.datetime:
    return _dt.datetime.now(_dt.timezone.utc)


def set_now(value: Any) -> None:
    """Freeze the clock at ``value`` (datetime, date or ISO string)."""
    frozen = to_datetime(value, field="now")
    set_now_provider(lambda: frozen)


def set_now_provider(provider: Optional[Callable[[], _dt.datetime]]) -> None:
    global _NOW_PROVIDER
    _NOW_PROVIDER = provider


def reset() -> None:
    set_now_provider(None)


def now() -> _dt.datetime:
    provider = _NOW_PROVIDER or _system_now
    return to_datetime(provider(), field="now")


def today() -> _dt.date:
    return now().date()


def now_iso() -> str:
    return now().isoformat()


def today_iso() -> str:
    return today().isoformat()


def require_date_iso(value: Any, *, field: str = "date_iso") -> str:
    """Ensure value is a valid YYYY-MM-DD (ISO date) and return it normalized.

    Fail-loud: raises ValueError for missing or malformed input.
    """
    if value is None:
        raise ValueError(f"{field} is required")
    if isinstance(value, _dt.datetime):
        return to_datetime(value, field=field).date().isoformat()
    if isinstance(value, _dt.date):
        return value.isoformat()
    s = str(value).strip()
    if len(s) > 10:
        # Full timestamps keep their UTC calendar date.
        return to_datetime(s, field=field).date().isoformat()
    try:
        return _dt.date.fromisoformat(s).isoformat()
    except ValueError as exc:
        raise ValueError(f"Invalid {field}: {value!r}") from exc


def to_date(value: Any, *, field: str = "date") -> _dt.date:
    return _dt.date.fromisoformat(require_date_iso(value, field=field))


def to_datetime(value: Any, *, field: str = "datetime") -> _dt.datetime:
    """Coerce a datetime/date/ISO string into an aware UTC datetime."""
    if value is None:
        raise ValueError(f"{field} is required")
    if isinstance(value, _dt.datetime):
        dt = value
    elif isinstance(value, _dt.date):
        dt = _dt.datetime(value.year, value.month, value.day)
    else:
        s = str(value).strip()
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        try:
            dt = _dt.datetime.fromisoformat(s)
        except ValueError as exc:
            raise ValueError(f"Invalid {field}: {value!r}") from exc
    if dt.tzinfo is None:
        return dt.replace(tzinfo=_dt.timezone.utc)
    return dt.astimezone(_dt.timezone.utc)


def optional_datetime(value: Any) -> Optional[_dt.datetime]:
    """Best-effort variant of :func:`to_datetime` for stored columns."""
    if value is None or value == "":
        return None
    try:
        return to_datetime(value)
    except ValueError:
        return None


def days_between(start: Any, end: Any) -> int:
    """Whole days from ``start`` to ``end`` (negative when end is earlier)."""
    delta = to_datetime(end) - to_datetime(start)
    return int(delta.total_seconds() // 86400)
