from __future__ import annotations

"""Canonical identifiers and enum strings shared by every subsystem.

Player ids are numeric strings ("42"). Injury and protocol ids are opaque
non-empty strings. Callers must normalize ids through the helpers below before
touching the repository.
"""

from typing import Any, FrozenSet

SCHEMA_VERSION = "1"

# Injury.recovery_status
RECOVERY_ACTIVE = "active"
RECOVERY_RECOVERING = "recovering"
RECOVERY_RECOVERED = "recovered"
RECOVERY_STATUSES: FrozenSet[str] = frozenset({RECOVERY_ACTIVE, RECOVERY_RECOVERING, RECOVERY_RECOVERED})

# PlayerAvailability.availability_status
AVAILABLE = "available"
INJURED = "injured"
LOAD_MANAGEMENT = "load_management"
ILLNESS = "illness"
AVAILABILITY_STATUSES: FrozenSet[str] = frozenset({AVAILABLE, INJURED, LOAD_MANAGEMENT, ILLNESS})


def normalize_player_id(value: Any) -> str:
    """Return the canonical player id or raise ValueError.

    Accepts ints and numeric strings (surrounding whitespace ignored).
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid player_id: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Invalid player_id: {value!r}")
        return str(value)
    s = str(value if value is not None else "").strip()
    if not s.isdigit():
        raise ValueError(f"Invalid player_id: {value!r}")
    return str(int(s))


def normalize_entity_id(value: Any, *, field: str = "id") -> str:
    s = str(value if value is not None else "").strip()
    if not s:
        raise ValueError(f"{field} is required")
    return s


def normalize_recovery_status(value: Any) -> str:
    s = str(value or "").strip().lower()
    if s not in RECOVERY_STATUSES:
        raise ValueError(f"Invalid recovery_status: {value!r}")
    return s


def normalize_availability_status(value: Any) -> str:
    s = str(value or "").strip().lower()
    if s not in AVAILABILITY_STATUSES:
        raise ValueError(f"Invalid availability_status: {value!r}")
    return s
