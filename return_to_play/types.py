from __future__ import annotations

"""Return-to-play protocol types.

Phases and clearance levels are closed, totally ordered enums. A protocol moves
through phases strictly one step at a time; the clearance level is a function
of the phase (see ``config.PHASE_CLEARANCE``) until a clearance assessment or
decision overrides it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Phase(str, Enum):
    REST = "rest"
    LIGHT_ACTIVITY = "light_activity"
    SPORT_SPECIFIC = "sport_specific"
    NON_CONTACT_TRAINING = "non_contact_training"
    FULL_CONTACT_PRACTICE = "full_contact_practice"
    GAME_CLEARANCE = "game_clearance"

    @property
    def position(self) -> int:
        return PHASE_ORDER.index(self)

    @property
    def successor(self) -> Optional["Phase"]:
        i = self.position
        return PHASE_ORDER[i + 1] if i + 1 < len(PHASE_ORDER) else None


PHASE_ORDER: Tuple[Phase, ...] = tuple(Phase)


class ClearanceLevel(str, Enum):
    NO_CONTACT = "no_contact"
    LIMITED_CONTACT = "limited_contact"
    FULL_CONTACT = "full_contact"
    GAME_READY = "game_ready"

    @property
    def rank(self) -> int:
        return CLEARANCE_ORDER.index(self)


CLEARANCE_ORDER: Tuple[ClearanceLevel, ...] = tuple(ClearanceLevel)


# Protocol.status
STATUS_INITIATED = "initiated"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
STATUS_PAUSED = "paused"
CLOSED_STATUSES = frozenset({STATUS_COMPLETED, STATUS_FAILED, STATUS_PAUSED})

# Clearance decisions
CLEARED = "cleared"
NOT_CLEARED = "not_cleared"
CONDITIONAL = "conditional"
DECISIONS = frozenset({CLEARED, NOT_CLEARED, CONDITIONAL})

# Test / assessment results
PASS = "pass"
FAIL = "fail"
PARTIAL = "partial"
MARGINAL = "marginal"


def _num(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float(default)


@dataclass(frozen=True, slots=True)
class PhaseTemplate:
    phase: Phase
    name: str
    description: str
    estimated_days: int
    requirements: Tuple[str, ...] = ()
    clearance_criteria: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "name": self.name,
            "description": self.description,
            "estimatedDays": self.estimated_days,
            "requirements": list(self.requirements),
            "clearanceCriteria": list(self.clearance_criteria),
        }


@dataclass(frozen=True, slots=True)
class ProtocolTemplate:
    id: str
    name: str
    injury_type: str
    body_part: str
    description: str
    phases: Tuple[PhaseTemplate, ...]

    @property
    def estimated_duration_days(self) -> int:
        return sum(p.estimated_days for p in self.phases)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "injuryType": self.injury_type,
            "bodyPart": self.body_part,
            "description": self.description,
            "estimatedDurationDays": self.estimated_duration_days,
            "phases": [p.to_dict() for p in self.phases],
        }


@dataclass(frozen=True, slots=True)
class ProgressionMilestone:
    """Per-phase record, stamped when the protocol advances out of that phase."""

    phase_id: str
    phase_name: str
    completed_date: Optional[str] = None
    assessment_score: Optional[int] = None
    notes: Optional[str] = None
    clearing_officer: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phaseId": self.phase_id,
            "phaseName": self.phase_name,
            "completedDate": self.completed_date,
            "assessmentScore": self.assessment_score,
            "notes": self.notes,
            "clearingOfficer": self.clearing_officer,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ProgressionMilestone":
        score = d.get("assessmentScore")
        return cls(
            phase_id=str(d.get("phaseId") or ""),
            phase_name=str(d.get("phaseName") or ""),
            completed_date=d.get("completedDate"),
            assessment_score=int(score) if score is not None else None,
            notes=d.get("notes"),
            clearing_officer=d.get("clearingOfficer"),
        )


@dataclass(frozen=True, slots=True)
class Protocol:
    protocol_id: str
    player_id: str
    injury_id: str
    template_id: str
    status: str
    current_phase: Phase
    clearance_level: ClearanceLevel
    medical_officer_id: str
    start_date: str
    expected_completion_date: str
    supervising_trainer_id: Optional[str] = None
    actual_completion_date: Optional[str] = None
    compliance_score: float = 0.0
    completion_percentage: float = 0.0
    sessions_completed: int = 0
    sessions_required: int = 0
    milestones: Tuple[ProgressionMilestone, ...] = ()
    version: int = 1

    @property
    def is_closed(self) -> bool:
        return self.status in CLOSED_STATUSES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocolId": self.protocol_id,
            "playerId": self.player_id,
            "injuryId": self.injury_id,
            "templateId": self.template_id,
            "status": self.status,
            "currentPhase": self.current_phase.value,
            "clearanceLevel": self.clearance_level.value,
            "medicalOfficerId": self.medical_officer_id,
            "supervisingTrainerId": self.supervising_trainer_id,
            "startDate": self.start_date,
            "expectedCompletionDate": self.expected_completion_date,
            "actualCompletionDate": self.actual_completion_date,
            "complianceScore": self.compliance_score,
            "completionPercentage": self.completion_percentage,
            "sessionsCompleted": self.sessions_completed,
            "sessionsRequired": self.sessions_required,
            "progressionMilestones": [m.to_dict() for m in self.milestones],
            "version": self.version,
        }


@dataclass(frozen=True, slots=True)
class RehabSession:
    protocol_id: str
    session_date: str
    session_type: str
    duration_minutes: int
    supervising_staff_id: str
    exercises_completed: Tuple[Any, ...] = ()
    session_rating: Optional[float] = None
    pain_level_pre: Optional[float] = None
    pain_level_post: Optional[float] = None
    notes: Optional[str] = None
    is_milestone_session: bool = False
    milestone_assessment_results: Tuple[Dict[str, Any], ...] = ()
    adherence_score: float = 0.0
    session_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "protocolId": self.protocol_id,
            "sessionDate": self.session_date,
            "sessionType": self.session_type,
            "durationMinutes": self.duration_minutes,
            "supervisingStaffId": self.supervising_staff_id,
            "exercisesCompleted": list(self.exercises_completed),
            "sessionRating": self.session_rating,
            "painLevelPre": self.pain_level_pre,
            "painLevelPost": self.pain_level_post,
            "notes": self.notes,
            "isMilestoneSession": bool(self.is_milestone_session),
            "milestoneAssessmentResults": [dict(r) for r in self.milestone_assessment_results],
            "adherenceScore": self.adherence_score,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any], *, session_id: Optional[int] = None) -> "RehabSession":
        def opt(key: str) -> Optional[float]:
            v = d.get(key)
            return None if v is None else _num(v)

        return cls(
            session_id=session_id if session_id is not None else d.get("sessionId"),
            protocol_id=str(d.get("protocolId") or ""),
            session_date=str(d.get("sessionDate") or ""),
            session_type=str(d.get("sessionType") or ""),
            duration_minutes=int(_num(d.get("durationMinutes"))),
            supervising_staff_id=str(d.get("supervisingStaffId") or ""),
            exercises_completed=tuple(d.get("exercisesCompleted") or ()),
            session_rating=opt("sessionRating"),
            pain_level_pre=opt("painLevelPre"),
            pain_level_post=opt("painLevelPost"),
            notes=d.get("notes"),
            is_milestone_session=bool(d.get("isMilestoneSession")),
            milestone_assessment_results=tuple(
                dict(r) for r in d.get("milestoneAssessmentResults") or () if isinstance(r, Mapping)
            ),
            adherence_score=_num(d.get("adherenceScore")),
        )


@dataclass(frozen=True, slots=True)
class NextMilestone:
    name: str
    target_date: str
    requirements: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "targetDate": self.target_date, "requirements": list(self.requirements)}


@dataclass(frozen=True, slots=True)
class ProtocolProgress:
    protocol_id: str
    current_phase: Phase
    phase_progress: float
    overall_progress: float
    days_since_start: int
    estimated_days_remaining: int
    is_on_track: bool
    next_milestone: Optional[NextMilestone]
    recent_assessments: Tuple[Dict[str, Any], ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocolId": self.protocol_id,
            "currentPhase": self.current_phase.value,
            "phaseProgress": self.phase_progress,
            "overallProgress": self.overall_progress,
            "daysSinceStart": self.days_since_start,
            "estimatedDaysRemaining": self.estimated_days_remaining,
            "isOnTrack": self.is_on_track,
            "nextMilestone": self.next_milestone.to_dict() if self.next_milestone else None,
            "recentAssessments": [dict(a) for a in self.recent_assessments],
        }


# ---------------------------------------------------------------------------
# Clearance assessment
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FieldTest:
    test_name: str
    status: str
    result: float = 0.0
    unit: str = ""
    percentage_of_baseline: float = 0.0
    passing_threshold: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "testName": self.test_name,
            "result": self.result,
            "unit": self.unit,
            "percentageOfBaseline": self.percentage_of_baseline,
            "passingThreshold": self.passing_threshold,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "FieldTest":
        return cls(
            test_name=str(d.get("testName") or ""),
            status=str(d.get("status") or FAIL).lower(),
            result=_num(d.get("result")),
            unit=str(d.get("unit") or ""),
            percentage_of_baseline=_num(d.get("percentageOfBaseline")),
            passing_threshold=_num(d.get("passingThreshold")),
        )


@dataclass(frozen=True, slots=True)
class AssessmentInput:
    """Measured inputs of a clearance assessment (all scores 0-100 unless noted)."""

    structural_healing: str
    pain_level: float
    range_of_motion: float
    strength: float
    proprioception: float = 0.0
    balance: float = 0.0
    clinical_exam: str = ""
    field_tests: Tuple[FieldTest, ...] = ()
    fear_of_reinjury: float = 0.0
    confidence_level: float = 0.0
    psych_readiness: float = 0.0

    @property
    def failed_tests(self) -> int:
        return sum(1 for t in self.field_tests if t.status != PASS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medicalClearance": {
                "structuralHealing": {
                    "status": self.structural_healing,
                    "clinicalExam": self.clinical_exam,
                    "painLevel": self.pain_level,
                },
                "functionalStatus": {
                    "rangeOfMotion": self.range_of_motion,
                    "strength": self.strength,
                    "proprioception": self.proprioception,
                    "balance": self.balance,
                },
            },
            "performanceTesting": {"fieldTests": [t.to_dict() for t in self.field_tests]},
            "psychologicalReadiness": {
                "fearOfReinjury": self.fear_of_reinjury,
                "confidenceLevel": self.confidence_level,
                "overallPsychReadiness": self.psych_readiness,
            },
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "AssessmentInput":
        medical = d.get("medicalClearance") or {}
        healing = medical.get("structuralHealing") or {}
        functional = medical.get("functionalStatus") or {}
        performance = d.get("performanceTesting") or {}
        psych = d.get("psychologicalReadiness") or {}
        return cls(
            structural_healing=str(healing.get("status") or "incomplete").lower(),
            pain_level=_num(healing.get("painLevel"), 10.0),
            clinical_exam=str(healing.get("clinicalExam") or ""),
            range_of_motion=_num(functional.get("rangeOfMotion")),
            strength=_num(functional.get("strength")),
            proprioception=_num(functional.get("proprioception")),
            balance=_num(functional.get("balance")),
            field_tests=tuple(
                FieldTest.from_dict(t) for t in performance.get("fieldTests") or () if isinstance(t, Mapping)
            ),
            fear_of_reinjury=_num(psych.get("fearOfReinjury")),
            confidence_level=_num(psych.get("confidenceLevel")),
            psych_readiness=_num(psych.get("overallPsychReadiness")),
        )


@dataclass(frozen=True, slots=True)
class ClearanceOutcome:
    decision: str
    level: ClearanceLevel
    rationale: str
    conditions: Tuple[str, ...] = ()
    restrictions: Tuple[str, ...] = ()
    follow_up_required: bool = True
    next_assessment_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decision": self.decision,
            "level": self.level.value,
            "rationale": self.rationale,
            "conditions": list(self.conditions),
            "restrictions": list(self.restrictions),
            "followUpRequired": self.follow_up_required,
            "nextAssessmentDate": self.next_assessment_date,
        }

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ClearanceOutcome":
        return cls(
            decision=str(d.get("decision") or NOT_CLEARED),
            level=ClearanceLevel(d.get("level") or ClearanceLevel.NO_CONTACT.value),
            rationale=str(d.get("rationale") or ""),
            conditions=tuple(d.get("conditions") or ()),
            restrictions=tuple(d.get("restrictions") or ()),
            follow_up_required=bool(d.get("followUpRequired", True)),
            next_assessment_date=d.get("nextAssessmentDate"),
        )


@dataclass(frozen=True, slots=True)
class ClearanceAssessment:
    assessment_id: str
    protocol_id: str
    player_id: str
    injury_id: str
    assessment_date: str
    assessor: Dict[str, Any]
    inputs: AssessmentInput
    reinjury_risk: float
    risk_factors: Tuple[str, ...]
    outcome: ClearanceOutcome

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "assessmentId": self.assessment_id,
            "protocolId": self.protocol_id,
            "playerId": self.player_id,
            "injuryId": self.injury_id,
            "assessmentDate": self.assessment_date,
            "assessor": dict(self.assessor),
        }
        out.update(self.inputs.to_dict())
        out["riskAssessment"] = {"reinjuryRisk": self.reinjury_risk, "riskFactors": list(self.risk_factors)}
        out["clearanceDecision"] = self.outcome.to_dict()
        return out

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "ClearanceAssessment":
        risk = d.get("riskAssessment") or {}
        return cls(
            assessment_id=str(d.get("assessmentId") or ""),
            protocol_id=str(d.get("protocolId") or ""),
            player_id=str(d.get("playerId") or ""),
            injury_id=str(d.get("injuryId") or ""),
            assessment_date=str(d.get("assessmentDate") or ""),
            assessor=dict(d.get("assessor") or {}),
            inputs=AssessmentInput.from_dict(d),
            reinjury_risk=_num(risk.get("reinjuryRisk")),
            risk_factors=tuple(risk.get("riskFactors") or ()),
            outcome=ClearanceOutcome.from_dict(d.get("clearanceDecision") or {}),
        )


@dataclass(frozen=True, slots=True)
class ClearanceDecision:
    """Officer decision recorded against a protocol."""

    player_id: str
    protocol_id: str
    decision: str
    clearance_level: ClearanceLevel
    deciding_officer: str
    rationale: str
    restrictions: Tuple[str, ...] = ()
    conditions: Tuple[str, ...] = ()
    next_review_date: Optional[str] = None
    supporting_data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "playerId": self.player_id,
            "protocolId": self.protocol_id,
            "decision": self.decision,
            "clearanceLevel": self.clearance_level.value,
            "decidingOfficer": self.deciding_officer,
            "rationale": self.rationale,
            "restrictions": list(self.restrictions),
            "conditions": list(self.conditions),
            "nextReviewDate": self.next_review_date,
            "supportingData": dict(self.supporting_data),
        }


@dataclass(frozen=True, slots=True)
class ReturnToPlayDecision:
    decision_id: str
    player_id: str
    injury_id: str
    protocol_id: str
    decision_date: str
    clearance_level: ClearanceLevel
    final_assessment: ClearanceAssessment
    required_approvals: Tuple[str, ...]
    activity_restrictions: Tuple[str, ...]
    monitoring_requirements: Tuple[str, ...]
    conditions: Tuple[str, ...]
    emergency_protocol: str
    return_to_play_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decisionId": self.decision_id,
            "playerId": self.player_id,
            "injuryId": self.injury_id,
            "protocolId": self.protocol_id,
            "decisionDate": self.decision_date,
            "clearanceLevel": self.clearance_level.value,
            "returnToPlayDate": self.return_to_play_date,
            "finalAssessment": self.final_assessment.to_dict(),
            "requiredApprovals": list(self.required_approvals),
            "conditions": {
                "activityRestrictions": list(self.activity_restrictions),
                "monitoringRequirements": list(self.monitoring_requirements),
                "additionalConditions": list(self.conditions),
                "emergencyProtocol": self.emergency_protocol,
            },
        }


def milestones_from_json(items: List[Any]) -> Tuple[ProgressionMilestone, ...]:
    return tuple(ProgressionMilestone.from_dict(m) for m in items if isinstance(m, Mapping))
