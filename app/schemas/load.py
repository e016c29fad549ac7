from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class LoadComplianceRequest(BaseModel):
    planned_load: float
    actual_load: float
    date: Optional[str] = None  # YYYY-MM-DD
    notes: Optional[str] = None


class BatchLoadRequest(BaseModel):
    player_ids: List[str]
    current_loads: Optional[Dict[str, float]] = None


class RealTimeLoadRequest(BaseModel):
    metrics: Dict[str, Any] = {}
