from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class RecoveryInitRequest(BaseModel):
    protocol_type: str = "default"
    custom_milestones: Optional[List[Dict[str, Any]]] = None
    expected_version: Optional[int] = None


class AdherenceRequest(BaseModel):
    activity: str
    type: str  # exercise | assessment | milestone | appointment
    completed: bool
    date: Optional[str] = None
    notes: Optional[str] = None
    metrics: Optional[Dict[str, float]] = None
    expected_version: Optional[int] = None


class MilestoneCompleteRequest(BaseModel):
    milestone_name: str
