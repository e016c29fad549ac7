"""Return-to-play clearance workflow.

Public API (v1)
---------------
- create_protocol(injury_id, template_id, medical_officer_id, db_path=...)
- advance_phase(protocol_id, new_phase, assessment_results, officer, notes, db_path=...)
- record_rehabilitation_session(protocol_id, session, db_path=...)
- get_protocol / get_protocol_progress / find_protocol_for_injury
- conduct_clearance_assessment(protocol_id, assessor, assessment_data, db_path=...)
- process_automated_clearance(protocol_id, level, conditions, db_path=...)
- make_clearance_decision(protocol_id, deciding_officer, decision, clearance_level, rationale, db_path=...)
"""

from .service import (
    advance_phase,
    assessment_score,
    clearance_for_phase,
    conduct_clearance_assessment,
    create_protocol,
    evaluate_clearance,
    find_protocol_for_injury,
    get_protocol,
    get_protocol_progress,
    get_template,
    is_valid_progression,
    list_templates,
    make_clearance_decision,
    process_automated_clearance,
    record_rehabilitation_session,
    reinjury_risk,
)
from .types import (
    PHASE_ORDER,
    AssessmentInput,
    ClearanceAssessment,
    ClearanceDecision,
    ClearanceLevel,
    Phase,
    Protocol,
    ProtocolProgress,
    RehabSession,
    ReturnToPlayDecision,
)

__all__ = [
    "PHASE_ORDER",
    "AssessmentInput",
    "ClearanceAssessment",
    "ClearanceDecision",
    "ClearanceLevel",
    "Phase",
    "Protocol",
    "ProtocolProgress",
    "RehabSession",
    "ReturnToPlayDecision",
    "advance_phase",
    "assessment_score",
    "clearance_for_phase",
    "conduct_clearance_assessment",
    "create_protocol",
    "evaluate_clearance",
    "find_protocol_for_injury",
    "get_protocol",
    "get_protocol_progress",
    "get_template",
    "is_valid_progression",
    "list_templates",
    "make_clearance_decision",
    "process_automated_clearance",
    "record_rehabilitation_session",
    "reinjury_risk",
]
