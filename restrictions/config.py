from __future__ import annotations

"""Rule tables for exercise restrictions and substitutions.

Tables are keyed by canonical body part (see ``injury.catalog``). They are
plain module-level data, loaded once at import.
"""

from typing import Dict, Tuple

from injury import catalog

from .types import LIMITED, MODIFIED, RestrictionRule, SubstitutionTemplate

# ---------------------------------------------------------------------------
# Restriction templates
# ---------------------------------------------------------------------------

RESTRICTION_RULES: Dict[str, RestrictionRule] = {
    catalog.KNEE: RestrictionRule(
        movement_pattern="knee flexion/extension",
        body_part="knee",
        multiplier=20,
        floor=20,
        prohibited_at=4,
        otherwise=LIMITED,
    ),
    catalog.SHOULDER: RestrictionRule(
        movement_pattern="overhead movements",
        body_part="shoulder",
        multiplier=15,
        floor=30,
        prohibited_at=4,
        otherwise=MODIFIED,
    ),
    catalog.SPINE: RestrictionRule(
        movement_pattern="spinal loading",
        body_part="spine",
        multiplier=25,
        floor=10,
        prohibited_at=3,
        otherwise=LIMITED,
    ),
    catalog.ANKLE: RestrictionRule(
        movement_pattern="weight bearing",
        body_part="ankle",
        multiplier=20,
        floor=25,
        prohibited_at=4,
        otherwise=LIMITED,
    ),
    catalog.WRIST: RestrictionRule(
        movement_pattern="grip intensive",
        body_part="wrist",
        multiplier=15,
        floor=40,
        prohibited_at=None,
        otherwise=MODIFIED,
    ),
}

# ---------------------------------------------------------------------------
# Affected-exercise matching
# ---------------------------------------------------------------------------

# movement_pattern -> exercise-name keywords in that movement family.
MOVEMENT_FAMILY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "knee flexion/extension": ("squat", "lunge", "step-up", "jump"),
    "overhead movements": ("press", "raise", "pullup", "overhead"),
    "spinal loading": ("deadlift", "squat", "row", "clean"),
}

# ---------------------------------------------------------------------------
# Substitutions
# ---------------------------------------------------------------------------

# Ordered: the first keyword contained in the exercise name wins.
SUBSTITUTIONS: Tuple[SubstitutionTemplate, ...] = (
    SubstitutionTemplate("squat", "seated leg press", ("Reduced range of motion", "Lower weight", "Slower tempo")),
    SubstitutionTemplate("deadlift", "glute bridge", ("No spinal loading", "Focus on glute activation")),
    SubstitutionTemplate("bench press", "chest fly machine", ("Reduced range of motion", "Lighter weight")),
    SubstitutionTemplate("overhead press", "seated shoulder press", ("Seated position for stability", "Reduced weight")),
    SubstitutionTemplate("running", "stationary bike", ("Lower impact", "Controlled intensity")),
    SubstitutionTemplate("jumping", "step-ups", ("Controlled movement", "Lower height")),
)

GENERIC_SUBSTITUTE: str = "Modified version with restrictions"
GENERIC_REGRESSION_LEVEL: int = 3

# Table substitutions: regression = ceil(intensity_limit / REGRESSION_STEP), clamped.
REGRESSION_STEP: int = 20
REGRESSION_MIN: int = 1
REGRESSION_MAX: int = 5
