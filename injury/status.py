from __future__ import annotations

"""Injury status helpers.

This module centralizes the interpretation of injury and availability records
so that compliance, load and recovery code agree on the same rules.

Status semantics (SSOT)
-----------------------
- An injury restricts training only while ``recovery_status == "active"``.
- ``recovering`` injuries are still on the player's record but no longer drive
  restrictions.
- ``recovered`` is terminal for the injury record.

The current availability of a player is derived on every injury write:

- any active injury           -> ``injured`` (medical clearance required)
- none, and staff-set status  -> kept (``load_management`` / ``illness``)
- otherwise                   -> ``available``
"""

from typing import Iterable, Optional

import schema

from .types import Injury, PlayerAvailability

# Statuses staff set by hand; injury write-back must not overwrite them.
_STAFF_STATUSES = frozenset({schema.LOAD_MANAGEMENT, schema.ILLNESS})


def active_injuries(injuries: Iterable[Injury]) -> list[Injury]:
    return [i for i in injuries if i.recovery_status == schema.RECOVERY_ACTIVE]


def derive_availability_status(
    injuries: Iterable[Injury],
    current: Optional[PlayerAvailability],
) -> tuple[str, bool]:
    """Return ``(availability_status, medical_clearance_required)``."""
    if active_injuries(injuries):
        return schema.INJURED, True
    if current is not None and current.availability_status in _STAFF_STATUSES:
        return current.availability_status, bool(current.medical_clearance_required)
    return schema.AVAILABLE, False


def is_under_load_management(availability: Optional[PlayerAvailability]) -> bool:
    return availability is not None and availability.availability_status == schema.LOAD_MANAGEMENT
