from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel


class ComplianceCheckRequest(BaseModel):
    player_id: str
    exercises: List[Any] = []  # names or {"name": ...}
    intensity: float = 100


class BatchComplianceRequest(BaseModel):
    player_ids: List[str]
    exercises: List[Any] = []
    intensity: float = 100


class RealTimeMetricsRequest(BaseModel):
    player_id: str
    metrics: Dict[str, Any] = {}
