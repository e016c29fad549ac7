from __future__ import annotations

import logging

from fastapi import APIRouter

import state
from app.schemas.injury import AvailabilityRequest, InjuryCreateRequest, InjuryStatusRequest, WellnessRequest
from injury import service as injury_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/api/medical/injuries")
async def api_record_injury(req: InjuryCreateRequest):
    """Record a diagnosed injury (status active)."""
    db_path = state.get_db_path()
    injury = await injury_service.record_injury(
        req.player_id,
        body_part=req.body_part,
        injury_type=req.injury_type,
        severity=req.severity,
        db_path=db_path,
        injury_date=req.injury_date,
        expected_return_date=req.expected_return_date,
        injury_id=req.injury_id,
    )
    return {"ok": True, "injury": injury.to_row()}


@router.post("/api/medical/injuries/{injury_id}/status")
async def api_update_injury_status(injury_id: str, req: InjuryStatusRequest):
    db_path = state.get_db_path()
    injury = await injury_service.update_recovery_status(injury_id, req.recovery_status, db_path=db_path)
    return {"ok": True, "injury": injury.to_row()}


@router.get("/api/medical/injuries/{injury_id}")
async def api_get_injury(injury_id: str):
    db_path = state.get_db_path()
    injury = await injury_service.get_injury(injury_id, db_path=db_path)
    return injury.to_row()


@router.get("/api/medical/players/{player_id}/injuries")
async def api_list_player_injuries(player_id: str):
    db_path = state.get_db_path()
    injuries = await injury_service.list_player_injuries(player_id, db_path=db_path)
    return {"player_id": player_id, "injuries": [i.to_row() for i in injuries]}


@router.post("/api/medical/players/{player_id}/wellness")
async def api_record_wellness(player_id: str, req: WellnessRequest):
    """Record a wellness check-in. A concerning entry flags load management."""
    db_path = state.get_db_path()
    entry = await injury_service.record_wellness(
        player_id,
        sleep_hours=req.sleep_hours,
        stress_level=req.stress_level,
        soreness_level=req.soreness_level,
        energy_level=req.energy_level,
        hydration_level=req.hydration_level,
        db_path=db_path,
        entry_date=req.entry_date,
        max_heart_rate=req.max_heart_rate,
        notes=req.notes,
    )
    return {"ok": True, "wellness": entry.to_row()}


@router.post("/api/medical/players/{player_id}/availability")
async def api_set_availability(player_id: str, req: AvailabilityRequest):
    db_path = state.get_db_path()
    availability = await injury_service.set_availability(
        player_id,
        req.availability_status,
        db_path=db_path,
        reason=req.reason,
        medical_clearance_required=req.medical_clearance_required,
    )
    return {"ok": True, "availability": availability.to_row()}
