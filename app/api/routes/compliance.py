from __future__ import annotations

import logging

from fastapi import APIRouter

import state
from app.schemas.compliance import BatchComplianceRequest, ComplianceCheckRequest, RealTimeMetricsRequest
from compliance import batch_check_workout_compliance, check_workout_compliance
from risk.service import assess_real_time_injury_risk

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/medical/compliance/check")
async def api_check_workout_compliance(req: ComplianceCheckRequest):
    """Check a planned workout against the player's medical restrictions."""
    db_path = state.get_db_path()
    result = await check_workout_compliance(
        req.player_id, req.exercises, req.intensity, db_path=db_path
    )
    return result.to_dict()


@router.post("/api/medical/compliance/batch")
async def api_batch_check_workout_compliance(req: BatchComplianceRequest):
    db_path = state.get_db_path()
    results = await batch_check_workout_compliance(
        req.player_ids, req.exercises, req.intensity, db_path=db_path
    )
    return {"results": {pid: r.to_dict() for pid, r in results.items()}}


@router.post("/api/medical/risk/real-time")
async def api_real_time_injury_risk(req: RealTimeMetricsRequest):
    """Live-metrics risk. ``alert`` is null when nothing fires."""
    db_path = state.get_db_path()
    result = await assess_real_time_injury_risk(req.player_id, req.metrics, db_path=db_path)
    return {"player_id": req.player_id, "alert": result.to_dict()}
