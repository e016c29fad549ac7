"""Training-load recommendation and compliance tracking.

Public API (v1)
---------------
- calculate_load_management(player_id, current_load, db_path=...)
- calculate_batch_load_management(player_ids, db_path=...)
- record_load_compliance(player_id, planned, actual, db_path=...)
- get_load_trends(player_id, days, db_path=...)
- update_real_time_load(player_id, metrics, db_path=...)
- calculate_workload_ratio(player_id, db_path=...)

Side effects are contained to the SQLite table ``load_trends`` (rolling
30-day window per player).
"""

from .service import (
    calculate_batch_load_management,
    calculate_load_management,
    calculate_workload_ratio,
    compute_load_management,
    compute_workload_ratio,
    get_load_trends,
    is_load_compliant,
    real_time_adjustment,
    record_load_compliance,
    update_real_time_load,
)
from .types import LoadAdjustment, LoadManagementData, LoadTrend, WorkloadRatio

__all__ = [
    "LoadAdjustment",
    "LoadManagementData",
    "LoadTrend",
    "WorkloadRatio",
    "calculate_batch_load_management",
    "calculate_load_management",
    "calculate_workload_ratio",
    "compute_load_management",
    "compute_workload_ratio",
    "get_load_trends",
    "is_load_compliant",
    "real_time_adjustment",
    "record_load_compliance",
    "update_real_time_load",
]
