from __future__ import annotations

"""Tuning parameters for recovery milestone tracking.

Target dates
------------
    target_i = injury_date + (i + 1) * (1 + severity / 5) weeks

so a severity-5 injury spaces milestones two weeks apart, severity-1 about
8.4 days.
"""

from typing import Dict, Tuple

from .types import MilestoneTemplate

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

DEFAULT_PROTOCOL = "default"

# Stored protocol_type when adherence is logged before any protocol was initialized.
UNTRACKED_PROTOCOL = "untracked"

MILESTONE_TEMPLATES: Dict[str, Tuple[MilestoneTemplate, ...]] = {
    "knee_injury": (
        MilestoneTemplate(
            "Initial Assessment",
            "Comprehensive initial assessment and treatment plan",
            (),
            ("Range of motion assessment", "Strength baseline"),
            ("MRI review", "Physical examination"),
        ),
        MilestoneTemplate(
            "Pain Management",
            "Achieve pain-free daily activities",
            ("Initial Assessment",),
            ("Ice therapy", "Elevation", "Rest"),
            ("Pain scale evaluation",),
        ),
        MilestoneTemplate(
            "Range of Motion",
            "Restore full range of motion",
            ("Pain Management",),
            ("Gentle stretching", "Passive ROM", "Active ROM"),
            ("Goniometer measurement",),
        ),
        MilestoneTemplate(
            "Strength Building",
            "Regain baseline strength",
            ("Range of Motion",),
            ("Isometric exercises", "Resistance training", "Functional movements"),
            ("Strength testing", "Functional assessment"),
        ),
        MilestoneTemplate(
            "Sport-Specific Training",
            "Return to sport-specific movements",
            ("Strength Building",),
            ("Agility drills", "Sport-specific movements", "Plyometrics"),
            ("Movement screening", "Performance testing"),
        ),
        MilestoneTemplate(
            "Return to Play",
            "Medical clearance for full participation",
            ("Sport-Specific Training",),
            ("Full practice participation",),
            ("Medical clearance", "Functional movement screen"),
        ),
    ),
    "ankle_injury": (
        MilestoneTemplate(
            "Initial Assessment",
            "Ligament assessment and swelling control plan",
            (),
            ("Ankle pumps", "Alphabet tracing"),
            ("Physical examination", "Ottawa ankle rules screen"),
        ),
        MilestoneTemplate(
            "Weight Bearing",
            "Pain-free full weight bearing",
            ("Initial Assessment",),
            ("Partial weight bearing", "Calf raises"),
            ("Gait analysis",),
        ),
        MilestoneTemplate(
            "Balance and Proprioception",
            "Restore single-leg balance",
            ("Weight Bearing",),
            ("Single-leg stance", "Wobble board", "Resistance band eversion"),
            ("Star excursion balance test",),
        ),
        MilestoneTemplate(
            "Return to Play",
            "Medical clearance for full participation",
            ("Balance and Proprioception",),
            ("Cutting drills", "Full practice participation"),
            ("Hop tests", "Medical clearance"),
        ),
    ),
    "shoulder_injury": (
        MilestoneTemplate(
            "Initial Assessment",
            "Joint stability assessment and treatment plan",
            (),
            ("Pendulum swings",),
            ("Physical examination", "Imaging review"),
        ),
        MilestoneTemplate(
            "Range of Motion",
            "Restore pain-free shoulder range of motion",
            ("Initial Assessment",),
            ("Wall slides", "Passive ROM", "Active-assisted ROM"),
            ("Goniometer measurement",),
        ),
        MilestoneTemplate(
            "Rotator Cuff Strength",
            "Restore rotator cuff and scapular strength",
            ("Range of Motion",),
            ("External rotation with band", "Scapular retraction", "Prone Y-T-W"),
            ("Isokinetic strength testing",),
        ),
        MilestoneTemplate(
            "Overhead Function",
            "Return to overhead and contact movements",
            ("Rotator Cuff Strength",),
            ("Overhead carries", "Medicine ball throws"),
            ("Closed kinetic chain stability test",),
        ),
        MilestoneTemplate(
            "Return to Play",
            "Medical clearance for full participation",
            ("Overhead Function",),
            ("Full practice participation",),
            ("Medical clearance",),
        ),
    ),
    "concussion": (
        MilestoneTemplate(
            "Symptom Resolution",
            "Symptom-free at rest",
            (),
            ("Relative rest",),
            ("Symptom checklist", "Cognitive screening"),
        ),
        MilestoneTemplate(
            "Light Aerobic Exercise",
            "Symptom-free light aerobic activity",
            ("Symptom Resolution",),
            ("Stationary bike", "Walking"),
            ("Exertion symptom check",),
        ),
        MilestoneTemplate(
            "Non-Contact Training",
            "Symptom-free sport drills without contact",
            ("Light Aerobic Exercise",),
            ("Skating drills", "Passing drills"),
            ("Balance assessment",),
        ),
        MilestoneTemplate(
            "Return to Play",
            "Physician clearance for full contact",
            ("Non-Contact Training",),
            ("Full contact practice",),
            ("Physician clearance", "Baseline cognitive comparison"),
        ),
    ),
    DEFAULT_PROTOCOL: (
        MilestoneTemplate(
            "Initial Assessment",
            "Initial medical assessment",
            (),
            ("Assessment exercises",),
            ("Medical examination",),
        ),
        MilestoneTemplate(
            "Recovery Phase",
            "Active recovery program",
            ("Initial Assessment",),
            ("Recovery exercises",),
            ("Progress assessment",),
        ),
        MilestoneTemplate(
            "Return to Activity",
            "Cleared for full activity",
            ("Recovery Phase",),
            ("Full activity",),
            ("Final clearance",),
        ),
    ),
}

SEVERITY_SPACING_DIVISOR: float = 5.0
DAYS_PER_WEEK: int = 7

# ---------------------------------------------------------------------------
# Retention / windows
# ---------------------------------------------------------------------------

ADHERENCE_RETENTION_DAYS: int = 90
COMPLIANCE_WINDOW_DAYS: int = 30

# Compliance when no entries of a type exist in the window.
NO_ENTRIES_COMPLIANCE: float = 100.0

# ---------------------------------------------------------------------------
# Expected duration (days) when no expected return date exists
# ---------------------------------------------------------------------------

# Matched as a substring of the lower-cased injury type, in order.
BASE_DURATION_DAYS: Tuple[Tuple[str, int], ...] = (
    ("knee", 28),
    ("ankle", 21),
    ("shoulder", 35),
    ("back", 42),
    ("hamstring", 14),
)
DEFAULT_BASE_DURATION_DAYS: int = 21
DURATION_SEVERITY_DIVISOR: float = 3.0

# ---------------------------------------------------------------------------
# Risk factors / alerts
# ---------------------------------------------------------------------------

SLOW_MILESTONE_BELOW: float = 50.0
POOR_EXERCISE_BELOW: float = 70.0
POOR_EXERCISE_HIGH_BELOW: float = 50.0
MISSED_ASSESSMENT_BELOW: float = 80.0
MISSED_ASSESSMENT_HIGH_BELOW: float = 60.0
EXTENDED_RECOVERY_FACTOR: float = 1.2
PROTOCOL_DEVIATION_FACTOR: float = 1.5
LOW_OVERALL_BELOW: float = 70.0

OVERDUE_HIGH_DAYS: int = 7
OVERDUE_MEDIUM_DAYS: int = 3

RISK_SLOW_MILESTONES = "Slow milestone progress"
RISK_POOR_EXERCISE = "Poor exercise adherence"
RISK_MISSED_ASSESSMENTS = "Missed assessments"
RISK_EXTENDED_RECOVERY = "Extended recovery time"

RECOMMENDATIONS_BY_RISK: Dict[str, Tuple[str, ...]] = {
    RISK_POOR_EXERCISE: (
        "Schedule regular check-ins with physical therapist",
        "Review and modify exercise program for better compliance",
    ),
    RISK_MISSED_ASSESSMENTS: (
        "Set up automated appointment reminders",
        "Consider telehealth options for assessments",
    ),
    RISK_EXTENDED_RECOVERY: (
        "Review current treatment approach with medical team",
        "Consider additional diagnostic imaging",
    ),
}
LOW_OVERALL_RECOMMENDATIONS: Tuple[str, ...] = (
    "Identify and address barriers to adherence",
    "Consider motivational interviewing techniques",
)

ALERT_MILESTONE_OVERDUE = "milestone_overdue"
ALERT_POOR_COMPLIANCE = "poor_compliance"
ALERT_MISSED_ASSESSMENT = "missed_assessment"
ALERT_PROTOCOL_DEVIATION = "protocol_deviation"

ACTION_MILESTONE_OVERDUE = "Schedule assessment with medical staff"
ACTION_POOR_COMPLIANCE = "Review exercise program and barriers to completion"
ACTION_MISSED_ASSESSMENT = "Schedule regular assessment appointments"
ACTION_PROTOCOL_DEVIATION = "Review protocol and consider alternative treatment approaches"

# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

MILESTONES_CACHE_NS = "recovery_milestones"
MILESTONES_TTL_S: int = 3600
METRICS_CACHE_NS = "adherence_metrics"
METRICS_TTL_S: int = 300
