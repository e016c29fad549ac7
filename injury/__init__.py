"""Injury subsystem package.

Public API (v1)
---------------
- record_injury(...) / update_recovery_status(...) / get_injury(...)
- record_wellness(...) / set_availability(...)
- load_medical_status(...)

Rule engines (restrictions/, risk/, load/) consume ``MedicalStatus`` snapshots
and never touch these tables directly.

All side effects are contained to SQLite SSOT tables:
- injuries
- wellness_entries
- player_availability
"""

from .catalog import canonical_body_part
from .service import (
    find_injury,
    get_injury,
    list_player_injuries,
    load_medical_status,
    record_injury,
    record_wellness,
    save_injury,
    set_availability,
    update_recovery_status,
)
from .types import Injury, MedicalStatus, PlayerAvailability, WellnessEntry

__all__ = [
    "Injury",
    "MedicalStatus",
    "PlayerAvailability",
    "WellnessEntry",
    "canonical_body_part",
    "find_injury",
    "get_injury",
    "list_player_injuries",
    "load_medical_status",
    "record_injury",
    "record_wellness",
    "save_injury",
    "set_availability",
    "update_recovery_status",
]
