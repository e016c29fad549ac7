from __future__ import annotations

"""Recovery milestone tracking types.

Milestones and adherence entries are persisted as JSON lists inside one
``recovery_state`` row per injury; ``to_dict``/``from_dict`` define that
format (camelCase keys, ISO timestamps).
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple


ENTRY_EXERCISE = "exercise"
ENTRY_ASSESSMENT = "assessment"
ENTRY_MILESTONE = "milestone"
ENTRY_APPOINTMENT = "appointment"
ENTRY_TYPES = frozenset({ENTRY_EXERCISE, ENTRY_ASSESSMENT, ENTRY_MILESTONE, ENTRY_APPOINTMENT})


def _str_tuple(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(str(v) for v in value)


@dataclass(frozen=True, slots=True)
class MilestoneTemplate:
    name: str
    description: str
    prerequisites: Tuple[str, ...] = ()
    exercises: Tuple[str, ...] = ()
    assessments: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RecoveryMilestone:
    """One checkpoint. Completion is one-way: pending -> completed."""

    id: str
    name: str
    description: str
    target_date: str
    is_completed: bool = False
    completed_date: Optional[str] = None
    prerequisites: Tuple[str, ...] = ()
    exercises: Tuple[str, ...] = ()
    assessments: Tuple[str, ...] = ()
    notes: Optional[str] = None

    def completed(self, at: str) -> "RecoveryMilestone":
        return replace(self, is_completed=True, completed_date=at)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "targetDate": self.target_date,
            "isCompleted": bool(self.is_completed),
            "completedDate": self.completed_date,
            "prerequisites": list(self.prerequisites),
            "exercises": list(self.exercises),
            "assessments": list(self.assessments),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "RecoveryMilestone":
        return cls(
            id=str(d.get("id") or ""),
            name=str(d.get("name") or ""),
            description=str(d.get("description") or ""),
            target_date=str(d.get("targetDate") or ""),
            is_completed=bool(d.get("isCompleted")),
            completed_date=d.get("completedDate"),
            prerequisites=_str_tuple(d.get("prerequisites")),
            exercises=_str_tuple(d.get("exercises")),
            assessments=_str_tuple(d.get("assessments")),
            notes=d.get("notes"),
        )


@dataclass(frozen=True, slots=True)
class AdherenceEntry:
    date: str
    activity: str
    type: str
    completed: bool
    notes: Optional[str] = None
    metrics: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "activity": self.activity,
            "type": self.type,
            "completed": bool(self.completed),
            "notes": self.notes,
            "metrics": dict(self.metrics),
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AdherenceEntry":
        return cls(
            date=str(d.get("date") or ""),
            activity=str(d.get("activity") or ""),
            type=str(d.get("type") or ""),
            completed=bool(d.get("completed")),
            notes=d.get("notes"),
            metrics=dict(d.get("metrics") or {}),
        )


@dataclass(frozen=True, slots=True)
class RecoveryState:
    injury_id: str
    protocol_type: str
    milestones: Tuple[RecoveryMilestone, ...]
    entries: Tuple[AdherenceEntry, ...]
    version: int = 0

    @property
    def all_completed(self) -> bool:
        return bool(self.milestones) and all(m.is_completed for m in self.milestones)


@dataclass(frozen=True, slots=True)
class AdherenceMetrics:
    player_id: str
    injury_id: str
    protocol_id: str
    overall_compliance: float
    milestone_completion: float
    exercise_compliance: float
    assessment_compliance: float
    days_active: int
    expected_duration: int
    actual_duration: Optional[int]
    risk_factors: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    last_updated: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player_id,
            "injuryId": self.injury_id,
            "protocolId": self.protocol_id,
            "overallCompliance": self.overall_compliance,
            "milestoneCompletion": self.milestone_completion,
            "exerciseCompliance": self.exercise_compliance,
            "assessmentCompliance": self.assessment_compliance,
            "daysActive": int(self.days_active),
            "expectedDuration": int(self.expected_duration),
            "actualDuration": self.actual_duration,
            "riskFactors": list(self.risk_factors),
            "recommendations": list(self.recommendations),
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AdherenceMetrics":
        return cls(
            player_id=str(d.get("playerId") or ""),
            injury_id=str(d.get("injuryId") or ""),
            protocol_id=str(d.get("protocolId") or ""),
            overall_compliance=float(d["overallCompliance"]),
            milestone_completion=float(d["milestoneCompletion"]),
            exercise_compliance=float(d["exerciseCompliance"]),
            assessment_compliance=float(d["assessmentCompliance"]),
            days_active=int(d["daysActive"]),
            expected_duration=int(d["expectedDuration"]),
            actual_duration=d.get("actualDuration"),
            risk_factors=_str_tuple(d.get("riskFactors")),
            recommendations=_str_tuple(d.get("recommendations")),
            last_updated=str(d.get("lastUpdated") or ""),
        )


@dataclass(frozen=True, slots=True)
class AdherenceAlert:
    type: str
    severity: str
    message: str
    action: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "severity": self.severity, "message": self.message, "action": self.action}


@dataclass(frozen=True, slots=True)
class RecoveryTimeline:
    injury_id: str
    milestones: Tuple[RecoveryMilestone, ...]
    entries: Tuple[AdherenceEntry, ...]
    progress_percentage: float
    estimated_completion: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "injuryId": self.injury_id,
            "milestones": [m.to_dict() for m in self.milestones],
            "entries": [e.to_dict() for e in self.entries],
            "progressPercentage": self.progress_percentage,
            "estimatedCompletion": self.estimated_completion,
        }

