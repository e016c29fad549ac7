"""Workout compliance checks.

Public API
----------
- check_workout_compliance(player_id, exercises, intensity, db_path=...)
- batch_check_workout_compliance(player_ids, exercises, intensity, db_path=...)
- evaluate_compliance(status, exercises, intensity)  (pure)
"""

from .service import (
    batch_check_workout_compliance,
    check_workout_compliance,
    compliance_cache_key,
    evaluate_compliance,
    load_recommendation,
)
from .types import ComplianceCheckResult, LoadRecommendation

__all__ = [
    "ComplianceCheckResult",
    "LoadRecommendation",
    "batch_check_workout_compliance",
    "check_workout_compliance",
    "compliance_cache_key",
    "evaluate_compliance",
    "load_recommendation",
]
