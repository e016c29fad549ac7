from __future__ import annotations

"""Thresholds and text for the risk scorer.

Factor labels are part of the output contract (clients match on them), so they
are named here rather than inlined.
"""

from typing import Dict, Tuple

from injury import catalog

from .types import RiskLevel

# ---------------------------------------------------------------------------
# Pre-workout
# ---------------------------------------------------------------------------

HIGH_INTENSITY_THRESHOLD: float = 90.0

# ---------------------------------------------------------------------------
# Real-time
# ---------------------------------------------------------------------------

RPE_LIMIT: float = 8.0

# Percent of max heart rate.
HR_CRITICAL_PCT: float = 95.0
HR_HIGH_PCT: float = 90.0

HIGH_SEVERITY: int = 4

# Activity inference from live metrics.
POWER_LIFTING_THRESHOLD: float = 200.0
HR_HIGH_INTENSITY_THRESHOLD: float = 150.0

ACTIVITY_RUNNING = "running"
ACTIVITY_LIFTING = "lifting"
ACTIVITY_HIGH_INTENSITY = "high_intensity"
ACTIVITY_GENERAL = "general"

# canonical body part -> activities that load it
ACTIVITY_RISK_MAP: Dict[str, Tuple[str, ...]] = {
    catalog.KNEE: ("running", "jumping", "squatting"),
    catalog.ANKLE: ("running", "jumping", "landing"),
    catalog.SHOULDER: ("overhead", "throwing", "swimming"),
    catalog.SPINE: ("lifting", "rowing", "deadlifting"),
}

# ---------------------------------------------------------------------------
# Wellness
# ---------------------------------------------------------------------------

SLEEP_DEPRIVATION_HOURS: float = 6.0
STRESS_LIMIT: int = 8
SORENESS_LIMIT: int = 8

# ---------------------------------------------------------------------------
# Factor labels
# ---------------------------------------------------------------------------

FACTOR_ACTIVE_INJURY = "Active injury"
FACTOR_HIGH_INTENSITY = "High workout intensity"
FACTOR_HIGH_STRESS = "High stress levels"
FACTOR_HIGH_SORENESS = "High muscle soreness"
FACTOR_RPE = "Excessive perceived exertion"
FACTOR_HR = "Heart rate exceeding safe threshold"
FACTOR_HR_ELEVATED = "Heart rate approaching safe threshold"
FACTOR_SLEEP = "Sleep deprivation"

# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

RECOMMENDATIONS_BY_LEVEL: Dict[RiskLevel, Tuple[str, ...]] = {
    RiskLevel.CRITICAL: (
        "STOP exercise immediately",
        "Seek immediate medical attention",
        "Monitor vital signs",
    ),
    RiskLevel.HIGH: (
        "Reduce intensity by 50%",
        "Increase rest periods",
        "Monitor closely for symptoms",
        "Consider ending session early",
    ),
    RiskLevel.MEDIUM: (
        "Reduce intensity by 25%",
        "Focus on proper form",
        "Additional warm-up recommended",
    ),
    RiskLevel.LOW: (
        "Continue with caution",
        "Monitor symptoms",
    ),
}

RECOMMENDATIONS_BY_FACTOR: Dict[str, str] = {
    FACTOR_SLEEP: "Emphasize recovery exercises",
    FACTOR_HIGH_STRESS: "Include stress-reducing activities",
}
