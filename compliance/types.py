from __future__ import annotations

"""Compliance-check result types.

``ComplianceCheckResult`` round-trips through ``to_dict``/``from_dict`` so the
cache can hold plain JSON-compatible values.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from restrictions.types import ExerciseRestriction, ExerciseSubstitution


@dataclass(frozen=True, slots=True)
class LoadRecommendation:
    player_id: str
    current_load: float
    recommended_load: float
    load_reduction: float
    reason: str
    duration_days: int
    modifications: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player_id,
            "currentLoad": self.current_load,
            "recommendedLoad": self.recommended_load,
            "loadReduction": self.load_reduction,
            "reason": self.reason,
            "durationDays": int(self.duration_days),
            "modifications": list(self.modifications),
        }


@dataclass(frozen=True, slots=True)
class ComplianceCheckResult:
    """Aggregated answer of one workout compliance check.

    ``risk_alerts`` and ``load_recommendations`` hold ``to_dict`` payloads.
    Invariant: is_compliant iff no restrictions and no alert demands
    immediate action.
    """

    player_id: str
    is_compliant: bool
    restrictions: Tuple[ExerciseRestriction, ...] = ()
    substitutions: Tuple[ExerciseSubstitution, ...] = ()
    risk_alerts: Tuple[Dict[str, Any], ...] = ()
    load_recommendations: Tuple[Dict[str, Any], ...] = ()
    medical_notes: Tuple[str, ...] = ()
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "playerId": self.player_id,
            "isCompliant": bool(self.is_compliant),
            "restrictions": [r.to_dict() for r in self.restrictions],
            "substitutions": [s.to_dict() for s in self.substitutions],
            "riskAlerts": [dict(a) for a in self.risk_alerts],
            "loadRecommendations": [dict(r) for r in self.load_recommendations],
            "medicalNotes": list(self.medical_notes),
        }
        if self.error is not None:
            out["error"] = self.error
        return out

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ComplianceCheckResult":
        restrictions: List[ExerciseRestriction] = [
            ExerciseRestriction(
                movement_pattern=str(r["movementPattern"]),
                body_part=str(r["bodyPart"]),
                intensity_limit=int(r["intensityLimit"]),
                restriction_type=str(r["restrictionType"]),
                reason=str(r["reason"]),
            )
            for r in d.get("restrictions") or ()
        ]
        substitutions: List[ExerciseSubstitution] = [
            ExerciseSubstitution(
                original_exercise=str(s["originalExercise"]),
                substitute_exercise=str(s["substituteExercise"]),
                modifications=tuple(s.get("modifications") or ()),
                reason=str(s["reason"]),
                regression_level=int(s["regressionLevel"]),
            )
            for s in d.get("substitutions") or ()
        ]
        return cls(
            player_id=str(d.get("playerId") or ""),
            is_compliant=bool(d["isCompliant"]),
            restrictions=tuple(restrictions),
            substitutions=tuple(substitutions),
            risk_alerts=tuple(dict(a) for a in d.get("riskAlerts") or ()),
            load_recommendations=tuple(dict(r) for r in d.get("loadRecommendations") or ()),
            medical_notes=tuple(d.get("medicalNotes") or ()),
            error=d.get("error"),
        )
