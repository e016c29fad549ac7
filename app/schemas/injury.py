from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class InjuryCreateRequest(BaseModel):
    player_id: str
    body_part: str
    injury_type: str
    severity: int
    injury_date: Optional[str] = None  # YYYY-MM-DD, defaults to today
    expected_return_date: Optional[str] = None
    injury_id: Optional[str] = None


class InjuryStatusRequest(BaseModel):
    recovery_status: str


class WellnessRequest(BaseModel):
    sleep_hours: float
    stress_level: int
    soreness_level: int
    energy_level: int
    hydration_level: int
    entry_date: Optional[str] = None
    max_heart_rate: Optional[int] = None
    notes: Optional[str] = None


class AvailabilityRequest(BaseModel):
    availability_status: str
    reason: Optional[str] = None
    medical_clearance_required: bool = False
