"""Recovery milestone tracking.

Public API (v1)
---------------
- initialize_recovery_protocol(injury_id, protocol_type, custom_milestones, db_path=...)
- record_adherence(injury_id, entry, db_path=...)
- complete_milestone(injury_id, milestone_name, db_path=...)
- calculate_adherence_metrics(injury_id, db_path=...)
- generate_adherence_alerts(injury_id, db_path=...)
- get_recovery_milestones / get_recovery_timeline / get_recovery_analysis

Side effects are contained to ``recovery_state`` plus the owning injury's
recovery status once every milestone is complete.
"""

from .service import (
    apply_completion,
    build_alerts,
    build_milestones,
    calculate_adherence_metrics,
    complete_milestone,
    compute_adherence_metrics,
    estimate_expected_duration,
    generate_adherence_alerts,
    get_recovery_analysis,
    get_recovery_milestones,
    get_recovery_timeline,
    initialize_recovery_protocol,
    record_adherence,
)
from .types import AdherenceAlert, AdherenceEntry, AdherenceMetrics, RecoveryMilestone, RecoveryTimeline

__all__ = [
    "AdherenceAlert",
    "AdherenceEntry",
    "AdherenceMetrics",
    "RecoveryMilestone",
    "RecoveryTimeline",
    "apply_completion",
    "build_alerts",
    "build_milestones",
    "calculate_adherence_metrics",
    "complete_milestone",
    "compute_adherence_metrics",
    "estimate_expected_duration",
    "generate_adherence_alerts",
    "get_recovery_analysis",
    "get_recovery_milestones",
    "get_recovery_timeline",
    "initialize_recovery_protocol",
    "record_adherence",
]
