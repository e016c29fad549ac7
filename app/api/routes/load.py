from __future__ import annotations

import logging

from fastapi import APIRouter

import state
from app.schemas.load import BatchLoadRequest, LoadComplianceRequest, RealTimeLoadRequest
from load import (
    calculate_batch_load_management,
    calculate_load_management,
    calculate_workload_ratio,
    get_load_trends,
    record_load_compliance,
    update_real_time_load,
)
from load import config as load_config

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/medical/load/batch")
async def api_batch_load_management(req: BatchLoadRequest):
    """Per-player recommendations; players that fail are omitted."""
    db_path = state.get_db_path()
    results = await calculate_batch_load_management(
        req.player_ids, db_path=db_path, current_loads=req.current_loads
    )
    return {"results": {pid: r.to_dict() for pid, r in results.items()}}


@router.get("/api/medical/load/{player_id}")
async def api_load_management(player_id: str, current_load: float = 100.0):
    db_path = state.get_db_path()
    result = await calculate_load_management(player_id, current_load, db_path=db_path)
    return result.to_dict()


@router.post("/api/medical/load/{player_id}/compliance")
async def api_record_load_compliance(player_id: str, req: LoadComplianceRequest):
    db_path = state.get_db_path()
    trend = await record_load_compliance(
        player_id,
        req.planned_load,
        req.actual_load,
        db_path=db_path,
        date=req.date,
        notes=req.notes,
    )
    return {"ok": True, "trend": trend.to_dict()}


@router.get("/api/medical/load/{player_id}/trends")
async def api_load_trends(player_id: str, days: int = load_config.DEFAULT_TREND_DAYS):
    db_path = state.get_db_path()
    trends = await get_load_trends(player_id, days, db_path=db_path)
    return {"player_id": player_id, "days": days, "trends": [t.to_dict() for t in trends]}


@router.post("/api/medical/load/{player_id}/real-time")
async def api_real_time_load(player_id: str, req: RealTimeLoadRequest):
    """``adjustment`` is null when the live metrics call for no change."""
    db_path = state.get_db_path()
    adjustment = await update_real_time_load(player_id, req.metrics, db_path=db_path)
    return {"player_id": player_id, "adjustment": adjustment.to_dict() if adjustment else None}


@router.get("/api/medical/load/{player_id}/workload-ratio")
async def api_workload_ratio(player_id: str):
    db_path = state.get_db_path()
    ratio = await calculate_workload_ratio(player_id, db_path=db_path)
    return ratio.to_dict()
