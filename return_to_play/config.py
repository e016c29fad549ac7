from __future__ import annotations

"""Return-to-play tuning: protocol templates, clearance thresholds, scoring.

Clearance assessment
--------------------
- cleared (game_ready): structural healing complete, ROM >= 90, strength >= 90,
  psychological readiness >= 80 and every field test passing
- conditional (limited_contact): medical criteria met, some field test not passing
- conditional (no_contact): ROM >= 75 and pain <= 3
- not_cleared (no_contact): otherwise

Re-injury risk (0..100)
-----------------------
    (100 - mean(ROM, strength)) * 0.5
  + fear_of_reinjury * 0.3
  + healing penalty (incomplete 30, partial 15, complete 0)
  + 5 per field test not passing
"""

from typing import Dict, Mapping, Tuple

from .types import ClearanceLevel, Phase, PhaseTemplate, ProtocolTemplate

# ---------------------------------------------------------------------------
# Phase -> clearance
# ---------------------------------------------------------------------------

PHASE_CLEARANCE: Mapping[Phase, ClearanceLevel] = {
    Phase.REST: ClearanceLevel.NO_CONTACT,
    Phase.LIGHT_ACTIVITY: ClearanceLevel.NO_CONTACT,
    Phase.SPORT_SPECIFIC: ClearanceLevel.LIMITED_CONTACT,
    Phase.NON_CONTACT_TRAINING: ClearanceLevel.LIMITED_CONTACT,
    Phase.FULL_CONTACT_PRACTICE: ClearanceLevel.FULL_CONTACT,
    Phase.GAME_CLEARANCE: ClearanceLevel.GAME_READY,
}

# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

DEFAULT_TEMPLATE_ID = "standard"


def _phases(*rows: Tuple[Phase, str, str, int, Tuple[str, ...], Tuple[str, ...]]) -> Tuple[PhaseTemplate, ...]:
    return tuple(PhaseTemplate(*row) for row in rows)


PROTOCOL_TEMPLATES: Dict[str, ProtocolTemplate] = {
    "standard": ProtocolTemplate(
        id="standard",
        name="Standard Return-to-Play",
        injury_type="General",
        body_part="general",
        description="Six-stage graduated return-to-play protocol",
        phases=_phases(
            (Phase.REST, "Rest", "Protection and symptom control", 3,
             ("Pain level < 4",), ("Pain-free daily activities",)),
            (Phase.LIGHT_ACTIVITY, "Light Activity", "Low-intensity aerobic and mobility work", 5,
             ("Pain-free daily activities",), ("Full pain-free range of motion",)),
            (Phase.SPORT_SPECIFIC, "Sport-Specific", "Individual skill drills without contact", 7,
             ("Full pain-free range of motion",), ("Strength >= 80% of baseline",)),
            (Phase.NON_CONTACT_TRAINING, "Non-Contact Training", "Full team drills without contact", 6,
             ("Strength >= 80% of baseline",), ("Field tests passed",)),
            (Phase.FULL_CONTACT_PRACTICE, "Full Contact Practice", "Unrestricted practice participation", 4,
             ("Field tests passed",), ("Coach and physician sign-off",)),
            (Phase.GAME_CLEARANCE, "Game Clearance", "Cleared for competition", 3,
             ("Coach and physician sign-off",), ("Medical clearance",)),
        ),
    ),
    "ankle-sprain": ProtocolTemplate(
        id="ankle-sprain",
        name="Ankle Sprain Return-to-Play",
        injury_type="Ankle Sprain",
        body_part="ankle",
        description="Comprehensive ankle sprain rehabilitation protocol",
        phases=_phases(
            (Phase.REST, "Acute Rest Phase", "Initial rest and protection phase", 3,
             ("Pain level < 4", "No swelling"), ("Pain-free weight bearing", "Minimal swelling")),
            (Phase.LIGHT_ACTIVITY, "Early Mobilization", "Begin gentle range of motion exercises", 5,
             ("Pain-free weight bearing", "Basic ankle mobility"),
             ("Full pain-free range of motion", "Normal gait pattern")),
            (Phase.SPORT_SPECIFIC, "Balance and Skating", "Proprioception and straight-line skating", 5,
             ("Normal gait pattern",), ("Single-leg balance 30s",)),
            (Phase.NON_CONTACT_TRAINING, "Agility", "Cutting, crossovers and stops", 4,
             ("Single-leg balance 30s",), ("Hop test >= 90% of uninjured side",)),
            (Phase.FULL_CONTACT_PRACTICE, "Contact Practice", "Full practice with contact", 2,
             ("Hop test >= 90% of uninjured side",), ("No pain after contact practice",)),
            (Phase.GAME_CLEARANCE, "Game Clearance", "Cleared for competition", 2,
             ("No pain after contact practice",), ("Medical clearance",)),
        ),
    ),
    "knee-ligament": ProtocolTemplate(
        id="knee-ligament",
        name="Knee Ligament Return-to-Play",
        injury_type="Knee Ligament",
        body_part="knee",
        description="Progressive knee ligament rehabilitation protocol",
        phases=_phases(
            (Phase.REST, "Protection", "Brace protection and swelling control", 5,
             ("Swelling controlled",), ("Quadriceps activation",)),
            (Phase.LIGHT_ACTIVITY, "Range of Motion", "Restore flexion and extension", 8,
             ("Quadriceps activation",), ("Full extension", "Flexion >= 120 degrees")),
            (Phase.SPORT_SPECIFIC, "Strength", "Closed-chain strength and straight-line skating", 10,
             ("Full extension",), ("Quadriceps strength >= 80% of uninjured side",)),
            (Phase.NON_CONTACT_TRAINING, "Agility", "Pivoting, cutting and plyometrics", 9,
             ("Quadriceps strength >= 80% of uninjured side",), ("Hop test battery >= 90%",)),
            (Phase.FULL_CONTACT_PRACTICE, "Contact Practice", "Full practice with contact", 6,
             ("Hop test battery >= 90%",), ("No effusion after contact practice",)),
            (Phase.GAME_CLEARANCE, "Game Clearance", "Cleared for competition", 4,
             ("No effusion after contact practice",), ("Surgeon and physician clearance",)),
        ),
    ),
    "concussion": ProtocolTemplate(
        id="concussion",
        name="Concussion Return-to-Play",
        injury_type="Concussion",
        body_part="head",
        description="Progressive concussion return-to-play protocol",
        phases=_phases(
            (Phase.REST, "Complete Rest", "Complete physical and cognitive rest", 2,
             ("Symptom-free for 24 hours",), ("Symptom-free for 24 hours", "Normal cognitive function")),
            (Phase.LIGHT_ACTIVITY, "Light Aerobic Exercise", "Walking or stationary cycling", 2,
             ("Symptom-free for 24 hours",), ("No symptom return with exertion",)),
            (Phase.SPORT_SPECIFIC, "Sport-Specific Exercise", "Skating drills without head impact", 2,
             ("No symptom return with exertion",), ("No symptom return with drills",)),
            (Phase.NON_CONTACT_TRAINING, "Non-Contact Training", "Complex drills and resistance training", 3,
             ("No symptom return with drills",), ("Cognitive test at baseline",)),
            (Phase.FULL_CONTACT_PRACTICE, "Full Contact Practice", "Normal training after clearance", 3,
             ("Cognitive test at baseline",), ("No symptom return with contact",)),
            (Phase.GAME_CLEARANCE, "Return to Play", "Normal game play", 2,
             ("No symptom return with contact",), ("Physician clearance",)),
        ),
    ),
}

# Each phase needs ceil(estimated_days / SESSION_EVERY_DAYS) sessions.
SESSION_EVERY_DAYS: int = 2

# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

RESULT_SCORES: Mapping[str, int] = {"pass": 100, "partial": 50}

ADHERENCE_BASE: float = 70.0
ADHERENCE_EXERCISES_MIN: int = 3
ADHERENCE_EXERCISES_BONUS: float = 15.0
ADHERENCE_RATING_MIN: float = 7.0
ADHERENCE_RATING_BONUS: float = 10.0
ADHERENCE_PAIN_BONUS: float = 5.0
ADHERENCE_MAX: float = 100.0

# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------

ON_TRACK_TOLERANCE_PCT: float = 10.0
NO_EXPECTED_DATE_PROGRESS_PCT: float = 50.0
SESSIONS_PER_PHASE_ESTIMATE: int = 5
NEXT_MILESTONE_DAYS: int = 5
NEXT_MILESTONE_REQUIREMENTS: Tuple[str, ...] = (
    "Complete current phase assessments",
    "Meet clearance criteria",
)
RECENT_ASSESSMENTS_LIMIT: int = 5

# ---------------------------------------------------------------------------
# Clearance assessment
# ---------------------------------------------------------------------------

HEALING_COMPLETE = "complete"
HEALING_PARTIAL = "partial"
HEALING_INCOMPLETE = "incomplete"

FULL_ROM_MIN: float = 90.0
FULL_STRENGTH_MIN: float = 90.0
FULL_PSYCH_MIN: float = 80.0
LIMITED_ROM_MIN: float = 75.0
LIMITED_PAIN_MAX: float = 3.0

RATIONALE_FULL = "All assessment criteria met for full return to play"
RATIONALE_PERFORMANCE_DEFICIT = "Medical clearance achieved, performance testing shows minor deficits"
RATIONALE_LIMITED = "Progressing well, cleared for limited activity"
RATIONALE_NONE = "Continued healing required before advancing clearance level"

CONDITIONS_PERFORMANCE_DEFICIT: Tuple[str, ...] = ("Complete additional performance training",)
RESTRICTIONS_LIMITED: Tuple[str, ...] = ("No contact activities", "Modified training load")
RESTRICTIONS_NONE: Tuple[str, ...] = ("Complete rest", "Medical follow-up required")

FOLLOW_UP_DAYS: int = 7

RISK_DEFICIT_WEIGHT: float = 0.5
RISK_FEAR_WEIGHT: float = 0.3
RISK_HEALING_PENALTY: Mapping[str, float] = {
    HEALING_INCOMPLETE: 30.0,
    HEALING_PARTIAL: 15.0,
    HEALING_COMPLETE: 0.0,
}
RISK_PER_FAILED_TEST: float = 5.0

RISK_FACTOR_STRENGTH = "Strength deficit"
RISK_FACTOR_ROM = "Range of motion deficit"
RISK_FACTOR_HEALING = "Incomplete structural healing"
RISK_FACTOR_FEAR = "Fear of re-injury"
RISK_FACTOR_TESTS = "Failed field tests"
RISK_FEAR_NOTABLE: float = 50.0

# ---------------------------------------------------------------------------
# Automated clearance
# ---------------------------------------------------------------------------

REQUIRED_APPROVALS: Mapping[ClearanceLevel, Tuple[str, ...]] = {
    ClearanceLevel.GAME_READY: ("team_physician", "coach"),
    ClearanceLevel.FULL_CONTACT: ("team_physician",),
}
RESTRICTED_ACTIVITY: Tuple[str, ...] = ("Modified contact", "Gradual increase in intensity")
MONITORING_REQUIREMENTS: Tuple[str, ...] = ("Daily pain assessment", "Weekly function evaluation")
EMERGENCY_PROTOCOL = "Contact team physician immediately if pain exceeds 5/10 or function deteriorates"
