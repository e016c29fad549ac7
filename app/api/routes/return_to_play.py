from __future__ import annotations

import logging

from fastapi import APIRouter

import state
from app.schemas.return_to_play import (
    AdvancePhaseRequest,
    AutomatedClearanceRequest,
    ClearanceAssessmentRequest,
    ClearanceDecisionRequest,
    ProtocolCreateRequest,
    RehabSessionRequest,
)
from return_to_play import service as rtp_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/api/medical/rtp/templates")
async def api_list_protocol_templates():
    return {"templates": [t.to_dict() for t in rtp_service.list_templates()]}


@router.post("/api/medical/rtp/protocols")
async def api_create_protocol(req: ProtocolCreateRequest):
    """Create the injury's protocol; an existing one is returned unchanged."""
    db_path = state.get_db_path()
    protocol = await rtp_service.create_protocol(
        req.injury_id,
        req.template_id,
        req.medical_officer_id,
        db_path=db_path,
        supervising_trainer_id=req.supervising_trainer_id,
    )
    return {"ok": True, "protocol": protocol.to_dict()}


@router.get("/api/medical/rtp/protocols/{protocol_id}")
async def api_get_protocol(protocol_id: str):
    db_path = state.get_db_path()
    protocol = await rtp_service.get_protocol(protocol_id, db_path=db_path)
    return protocol.to_dict()


@router.post("/api/medical/rtp/protocols/{protocol_id}/advance")
async def api_advance_phase(protocol_id: str, req: AdvancePhaseRequest):
    db_path = state.get_db_path()
    protocol = await rtp_service.advance_phase(
        protocol_id,
        req.new_phase,
        req.assessment_results,
        req.officer,
        req.notes,
        db_path=db_path,
        expected_version=req.expected_version,
    )
    return {"ok": True, "protocol": protocol.to_dict()}


@router.post("/api/medical/rtp/protocols/{protocol_id}/sessions")
async def api_record_rehab_session(protocol_id: str, req: RehabSessionRequest):
    db_path = state.get_db_path()
    session = await rtp_service.record_rehabilitation_session(protocol_id, req.session, db_path=db_path)
    return {"ok": True, "session": session.to_dict()}


@router.get("/api/medical/rtp/protocols/{protocol_id}/progress")
async def api_protocol_progress(protocol_id: str):
    db_path = state.get_db_path()
    progress = await rtp_service.get_protocol_progress(protocol_id, db_path=db_path)
    return progress.to_dict()


@router.post("/api/medical/rtp/protocols/{protocol_id}/assessments")
async def api_clearance_assessment(protocol_id: str, req: ClearanceAssessmentRequest):
    """Score a clearance assessment and apply its outcome to the protocol."""
    db_path = state.get_db_path()
    assessment = await rtp_service.conduct_clearance_assessment(
        protocol_id, req.assessor, req.assessment, db_path=db_path
    )
    return {"ok": True, "assessment": assessment.to_dict()}


@router.post("/api/medical/rtp/protocols/{protocol_id}/clearance/automated")
async def api_automated_clearance(protocol_id: str, req: AutomatedClearanceRequest):
    db_path = state.get_db_path()
    decision = await rtp_service.process_automated_clearance(
        protocol_id, req.clearance_level, req.conditions, db_path=db_path
    )
    return {"ok": True, "decision": decision.to_dict()}


@router.post("/api/medical/rtp/protocols/{protocol_id}/clearance/decision")
async def api_clearance_decision(protocol_id: str, req: ClearanceDecisionRequest):
    db_path = state.get_db_path()
    decision = await rtp_service.make_clearance_decision(
        protocol_id,
        req.deciding_officer,
        req.decision,
        req.clearance_level,
        req.rationale,
        db_path=db_path,
        restrictions=req.restrictions,
        conditions=req.conditions,
    )
    return {"ok": True, "decision": decision.to_dict()}
