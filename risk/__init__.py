"""Injury risk scoring.

Public API
----------
- assess_pre_workout_risk(player_id, active_injuries, wellness, intensity)
- assess_real_time_risk(player_id, metrics, active_injuries, wellness)
- assess_real_time_injury_risk(player_id, metrics, db_path=...)  (async)

Results are ``NoAlert | InjuryRiskAlert``.
"""

from .service import (
    assess_pre_workout_risk,
    assess_real_time_injury_risk,
    assess_real_time_risk,
    infer_activity,
    recommendations_for,
)
from .types import InjuryRiskAlert, NoAlert, RiskAssessment, RiskLevel, escalate, max_level

__all__ = [
    "InjuryRiskAlert",
    "NoAlert",
    "RiskAssessment",
    "RiskLevel",
    "assess_pre_workout_risk",
    "assess_real_time_injury_risk",
    "assess_real_time_risk",
    "escalate",
    "infer_activity",
    "max_level",
    "recommendations_for",
]
