from __future__ import annotations

import logging

from fastapi import APIRouter

import state
from app.schemas.recovery import AdherenceRequest, MilestoneCompleteRequest, RecoveryInitRequest
from recovery import service as recovery_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/medical/recovery/{injury_id}/initialize")
async def api_initialize_recovery(injury_id: str, req: RecoveryInitRequest):
    """Create (or replace) the injury's milestone list."""
    db_path = state.get_db_path()
    milestones = await recovery_service.initialize_recovery_protocol(
        injury_id,
        req.protocol_type,
        req.custom_milestones,
        db_path=db_path,
        expected_version=req.expected_version,
    )
    return {"ok": True, "injury_id": injury_id, "milestones": [m.to_dict() for m in milestones]}


@router.post("/api/medical/recovery/{injury_id}/adherence")
async def api_record_adherence(injury_id: str, req: AdherenceRequest):
    db_path = state.get_db_path()
    entry = {
        "activity": req.activity,
        "type": req.type,
        "completed": req.completed,
        "date": req.date,
        "notes": req.notes,
        "metrics": req.metrics,
    }
    saved = await recovery_service.record_adherence(
        injury_id, entry, db_path=db_path, expected_version=req.expected_version
    )
    return {"ok": True, "entry": saved.to_dict()}


@router.post("/api/medical/recovery/{injury_id}/milestones/complete")
async def api_complete_milestone(injury_id: str, req: MilestoneCompleteRequest):
    db_path = state.get_db_path()
    changed = await recovery_service.complete_milestone(injury_id, req.milestone_name, db_path=db_path)
    return {"ok": True, "changed": bool(changed)}


@router.get("/api/medical/recovery/{injury_id}/milestones")
async def api_recovery_milestones(injury_id: str):
    db_path = state.get_db_path()
    milestones = await recovery_service.get_recovery_milestones(injury_id, db_path=db_path)
    return {"injury_id": injury_id, "milestones": [m.to_dict() for m in milestones]}


@router.get("/api/medical/recovery/{injury_id}/metrics")
async def api_adherence_metrics(injury_id: str):
    db_path = state.get_db_path()
    metrics = await recovery_service.calculate_adherence_metrics(injury_id, db_path=db_path)
    return metrics.to_dict()


@router.get("/api/medical/recovery/{injury_id}/alerts")
async def api_adherence_alerts(injury_id: str):
    db_path = state.get_db_path()
    alerts = await recovery_service.generate_adherence_alerts(injury_id, db_path=db_path)
    return {"injury_id": injury_id, "alerts": [a.to_dict() for a in alerts]}


@router.get("/api/medical/recovery/{injury_id}/timeline")
async def api_recovery_timeline(injury_id: str):
    db_path = state.get_db_path()
    timeline = await recovery_service.get_recovery_timeline(injury_id, db_path=db_path)
    return timeline.to_dict()


@router.get("/api/medical/recovery/{injury_id}/analysis")
async def api_recovery_analysis(injury_id: str):
    db_path = state.get_db_path()
    return await recovery_service.get_recovery_analysis(injury_id, db_path=db_path)
