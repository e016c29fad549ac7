from __future__ import annotations

"""Tuning parameters for the load calculator.

Recommended load
----------------
    total = sum(injury contributions) + wellness penalty + availability penalty
    recommended = clamp(min(BASELINE - total, current), FLOOR, BASELINE)

Injury contribution: min(severity * INJURY_POINTS_PER_SEVERITY * modifier, INJURY_CONTRIBUTION_CAP)
where modifier is looked up by the lower-cased body part as recorded (no
synonym folding: "acl" and "knee" deliberately weigh differently).
"""

from typing import Dict, Tuple

from risk.types import RiskLevel

# ---------------------------------------------------------------------------
# Baseline / floor
# ---------------------------------------------------------------------------

BASELINE_LOAD: float = 100.0
MIN_RECOMMENDED_LOAD: float = 20.0

# ---------------------------------------------------------------------------
# Injuries
# ---------------------------------------------------------------------------

INJURY_POINTS_PER_SEVERITY: float = 10.0
INJURY_CONTRIBUTION_CAP: float = 70.0

BODY_PART_MODIFIERS: Dict[str, float] = {
    "knee": 1.5,
    "acl": 2.0,
    "spine": 2.0,
    "ankle": 1.3,
    "shoulder": 1.2,
    "back": 1.8,
    "wrist": 0.8,
    "hand": 0.6,
}
DEFAULT_BODY_PART_MODIFIER: float = 1.0

# ---------------------------------------------------------------------------
# Wellness penalties: (threshold, penalty, factor label), most severe first
# ---------------------------------------------------------------------------

SLEEP_PENALTIES: Tuple[Tuple[float, float, str], ...] = (
    (6.0, 20.0, "Severe sleep deficit"),
    (7.0, 10.0, "Insufficient sleep"),
)
STRESS_PENALTIES: Tuple[Tuple[float, float, str], ...] = (
    (8.0, 15.0, "Very high stress"),
    (7.0, 10.0, "Elevated stress"),
)
SORENESS_PENALTIES: Tuple[Tuple[float, float, str], ...] = (
    (8.0, 20.0, "Severe muscle soreness"),
    (7.0, 15.0, "High muscle soreness"),
)
ENERGY_PENALTIES: Tuple[Tuple[float, float, str], ...] = (
    (3.0, 15.0, "Very low energy"),
    (5.0, 10.0, "Low energy"),
)
WELLNESS_PENALTY_CAP: float = 50.0

# ---------------------------------------------------------------------------
# Availability
# ---------------------------------------------------------------------------

LOAD_MANAGEMENT_PENALTY: float = 30.0
FACTOR_LOAD_MANAGEMENT: str = "Load management protocol"

# ---------------------------------------------------------------------------
# Risk / duration
# ---------------------------------------------------------------------------

INJURY_RISK_HIGH_SEVERITY: int = 4
INJURY_RISK_MEDIUM_SEVERITY: int = 2
WELLNESS_RISK_HIGH: float = 30.0
WELLNESS_RISK_MEDIUM: float = 15.0

DURATION_DAYS_BY_RISK: Dict[RiskLevel, int] = {
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 3,
    RiskLevel.HIGH: 7,
    RiskLevel.CRITICAL: 7,
}

FACTOR_MALFORMED_ID: str = "Invalid player id; no medical data applied"

# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

LOAD_MANAGEMENT_CACHE_NS: str = "load_management"
LOAD_MANAGEMENT_TTL_S: int = 300

WORKLOAD_RATIO_CACHE_NS: str = "workload_ratio"
WORKLOAD_RATIO_TTL_S: int = 300

# ---------------------------------------------------------------------------
# Compliance history
# ---------------------------------------------------------------------------

COMPLIANCE_TOLERANCE: float = 10.0
TREND_RETENTION_DAYS: int = 30
DEFAULT_TREND_DAYS: int = 7

# ---------------------------------------------------------------------------
# Real-time adjustment (percentage points, negative)
# ---------------------------------------------------------------------------

RT_RPE_LIMIT: float = 8.0
RT_RPE_ADJUSTMENT: int = -20
RT_HR_CRITICAL_PCT: float = 95.0
RT_HR_CRITICAL_ADJUSTMENT: int = -50
RT_HR_HIGH_PCT: float = 90.0
RT_HR_HIGH_ADJUSTMENT: int = -30
RT_INJURED_DURATION_MIN: float = 60.0
RT_INJURED_DURATION_ADJUSTMENT: int = -25

RT_REASON_RPE: str = "High perceived exertion"
RT_REASON_HR_CRITICAL: str = "Heart rate above 95% of max"
RT_REASON_HR_HIGH: str = "Heart rate above 90% of max"
RT_REASON_DURATION: str = "Extended session with active injury"

# ---------------------------------------------------------------------------
# Acute:chronic workload ratio
# ---------------------------------------------------------------------------

ACUTE_WINDOW_DAYS: int = 7
CHRONIC_WINDOW_DAYS: int = 28

ACR_BAND_NO_DATA = "no_data"
ACR_BAND_UNDER = "under"
ACR_BAND_OPTIMAL = "optimal"
ACR_BAND_ELEVATED = "elevated"
ACR_BAND_HIGH = "high"

ACR_UNDER_BELOW: float = 0.8
ACR_OPTIMAL_MAX: float = 1.3
ACR_ELEVATED_MAX: float = 1.5
