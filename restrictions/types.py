from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


PROHIBITED = "prohibited"
LIMITED = "limited"
MODIFIED = "modified"


@dataclass(frozen=True, slots=True)
class RestrictionRule:
    """Declarative restriction template for one canonical body part.

    intensity_limit = max(100 - severity * multiplier, floor)
    restriction_type = "prohibited" once severity >= prohibited_at, else ``otherwise``.
    ``prohibited_at=None`` means the body part is never prohibited.
    """

    movement_pattern: str
    body_part: str
    multiplier: int
    floor: int
    prohibited_at: int | None
    otherwise: str


@dataclass(frozen=True, slots=True)
class ExerciseRestriction:
    movement_pattern: str
    body_part: str
    intensity_limit: int
    restriction_type: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "movementPattern": self.movement_pattern,
            "bodyPart": self.body_part,
            "intensityLimit": int(self.intensity_limit),
            "restrictionType": self.restriction_type,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class SubstitutionTemplate:
    keyword: str
    substitute: str
    modifications: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ExerciseSubstitution:
    original_exercise: str
    substitute_exercise: str
    modifications: Tuple[str, ...]
    reason: str
    regression_level: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originalExercise": self.original_exercise,
            "substituteExercise": self.substitute_exercise,
            "modifications": list(self.modifications),
            "reason": self.reason,
            "regressionLevel": int(self.regression_level),
        }
