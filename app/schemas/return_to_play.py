from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ProtocolCreateRequest(BaseModel):
    injury_id: str
    template_id: str = "standard"
    medical_officer_id: str
    supervising_trainer_id: Optional[str] = None


class AdvancePhaseRequest(BaseModel):
    new_phase: str
    officer: str
    assessment_results: List[Dict[str, Any]] = []
    notes: Optional[str] = None
    expected_version: Optional[int] = None


class RehabSessionRequest(BaseModel):
    # camelCase payload, stored as given (sessionType, durationMinutes, ...).
    session: Dict[str, Any]


class ClearanceAssessmentRequest(BaseModel):
    assessor: Dict[str, Any] = {}
    # medicalClearance / performanceTesting / psychologicalReadiness
    assessment: Dict[str, Any]


class AutomatedClearanceRequest(BaseModel):
    clearance_level: str
    conditions: List[str] = []


class ClearanceDecisionRequest(BaseModel):
    deciding_officer: str
    decision: str  # cleared | not_cleared | conditional
    clearance_level: str
    rationale: str = ""
    restrictions: Optional[List[str]] = None
    conditions: Optional[List[str]] = None
