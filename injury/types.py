from __future__ import annotations

"""Public data types for the injury subsystem."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import schema


@dataclass(frozen=True, slots=True)
class Injury:
    """A diagnosed injury. Never deleted; only ``recovery_status`` transitions."""

    injury_id: str
    player_id: str
    body_part: str
    injury_type: str
    severity: int
    recovery_status: str = schema.RECOVERY_ACTIVE
    injury_date: str = ""
    expected_return_date: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.recovery_status == schema.RECOVERY_ACTIVE

    def to_row(self) -> Dict[str, Any]:
        return {
            "injury_id": self.injury_id,
            "player_id": self.player_id,
            "body_part": self.body_part,
            "injury_type": self.injury_type,
            "severity": int(self.severity),
            "recovery_status": self.recovery_status,
            "injury_date": self.injury_date,
            "expected_return_date": self.expected_return_date,
        }


@dataclass(frozen=True, slots=True)
class WellnessEntry:
    """Self-reported wellness. Levels are 1..10; sleep is in hours."""

    player_id: str
    entry_date: str
    sleep_hours: float
    stress_level: int
    soreness_level: int
    energy_level: int
    hydration_level: int
    max_heart_rate: Optional[int] = None
    notes: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "entry_date": self.entry_date,
            "sleep_hours": float(self.sleep_hours),
            "stress_level": int(self.stress_level),
            "soreness_level": int(self.soreness_level),
            "energy_level": int(self.energy_level),
            "hydration_level": int(self.hydration_level),
            "max_heart_rate": self.max_heart_rate,
            "notes": self.notes,
        }


@dataclass(frozen=True, slots=True)
class PlayerAvailability:
    player_id: str
    availability_status: str
    is_current: bool = True
    medical_clearance_required: bool = False
    reason: Optional[str] = None
    effective_date: str = ""

    def to_row(self) -> Dict[str, Any]:
        return {
            "player_id": self.player_id,
            "availability_status": self.availability_status,
            "is_current": bool(self.is_current),
            "medical_clearance_required": bool(self.medical_clearance_required),
            "reason": self.reason,
            "effective_date": self.effective_date,
        }


@dataclass(frozen=True, slots=True)
class MedicalStatus:
    """Current medical picture of one player, as consumed by compliance/risk/load.

    ``degraded`` lists collaborator failures that were replaced by safe defaults.
    """

    player_id: str
    injuries: Tuple[Injury, ...] = ()
    wellness: Optional[WellnessEntry] = None
    availability: Optional[PlayerAvailability] = None
    degraded: List[str] = field(default_factory=list)

    @property
    def active_injuries(self) -> List[Injury]:
        return [i for i in self.injuries if i.is_active]
