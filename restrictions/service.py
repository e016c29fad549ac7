from __future__ import annotations

"""Restriction derivation and exercise substitution.

Both operations are pure functions of their inputs (no I/O, no clock), so the
compliance check can call them on every request without caching.
"""

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from injury import catalog
from injury.types import Injury

from . import config
from .types import PROHIBITED, ExerciseRestriction, ExerciseSubstitution, RestrictionRule

logger = logging.getLogger(__name__)


def _clamp_int(x: float, lo: int, hi: int) -> int:
    return int(max(lo, min(hi, x)))


def exercise_name(exercise: Any) -> str:
    """Display name of an exercise given as a string or a mapping with ``name``."""
    if isinstance(exercise, Mapping):
        return str(exercise.get("name") or "")
    return str(exercise or "")


# ---------------------------------------------------------------------------
# Restriction Deriver
# ---------------------------------------------------------------------------


def restriction_for(rule: RestrictionRule, *, severity: int, injury_type: str) -> ExerciseRestriction:
    sev = int(severity)
    prohibited = rule.prohibited_at is not None and sev >= rule.prohibited_at
    return ExerciseRestriction(
        movement_pattern=rule.movement_pattern,
        body_part=rule.body_part,
        intensity_limit=_clamp_int(max(100 - sev * rule.multiplier, rule.floor), 0, 100),
        restriction_type=PROHIBITED if prohibited else rule.otherwise,
        reason=f"Active {injury_type} - severity {sev}",
    )


def derive_restrictions(injuries: Iterable[Injury]) -> List[ExerciseRestriction]:
    """One restriction per active injury with a known body part, in input order.

    Inactive injuries and unmapped body parts contribute nothing.
    """
    out: List[ExerciseRestriction] = []
    for injury in injuries:
        if not injury.is_active:
            continue
        key = catalog.canonical_body_part(injury.body_part)
        rule = config.RESTRICTION_RULES.get(key) if key else None
        if rule is None:
            logger.debug("no restriction rule for body_part=%r", injury.body_part)
            continue
        out.append(restriction_for(rule, severity=injury.severity, injury_type=injury.injury_type))
    return out


# ---------------------------------------------------------------------------
# Substitution Resolver
# ---------------------------------------------------------------------------


def is_exercise_affected(exercise: Any, restriction: ExerciseRestriction) -> bool:
    name = exercise_name(exercise).lower()
    if not name:
        return False
    pattern = restriction.movement_pattern.lower()
    keywords = config.MOVEMENT_FAMILY_KEYWORDS.get(pattern, ())
    if any(k in name for k in keywords):
        return True
    return restriction.body_part.lower() in name


def applicable_restrictions(exercise: Any, restrictions: Sequence[ExerciseRestriction]) -> List[ExerciseRestriction]:
    return [r for r in restrictions if is_exercise_affected(exercise, r)]


def _regression_level(intensity_limit: int) -> int:
    level = math.ceil(int(intensity_limit) / config.REGRESSION_STEP)
    return _clamp_int(level, config.REGRESSION_MIN, config.REGRESSION_MAX)


def resolve_substitution(
    exercise: Any,
    restrictions: Sequence[ExerciseRestriction],
) -> Optional[ExerciseSubstitution]:
    """Substitute for ``exercise`` under the applicable ``restrictions``.

    The first restriction is the primary one: its reason is carried over and,
    when no table entry matches, its fields shape the generic substitute.
    Returns None when ``restrictions`` is empty.
    """
    if not restrictions:
        return None
    primary = restrictions[0]
    original = exercise_name(exercise)
    lowered = original.lower()

    for template in config.SUBSTITUTIONS:
        if template.keyword in lowered:
            return ExerciseSubstitution(
                original_exercise=original,
                substitute_exercise=template.substitute,
                modifications=template.modifications,
                reason=primary.reason,
                regression_level=_regression_level(primary.intensity_limit),
            )

    return ExerciseSubstitution(
        original_exercise=original,
        substitute_exercise=config.GENERIC_SUBSTITUTE,
        modifications=(
            f"{primary.restriction_type} intensity",
            f"Avoid {primary.movement_pattern}",
            f"Protect {primary.body_part}",
        ),
        reason=primary.reason,
        regression_level=config.GENERIC_REGRESSION_LEVEL,
    )


def substitutions_for(
    exercises: Iterable[Any],
    restrictions: Sequence[ExerciseRestriction],
) -> List[ExerciseSubstitution]:
    """One substitution per affected exercise, in exercise order."""
    out: List[ExerciseSubstitution] = []
    if not restrictions:
        return out
    for exercise in exercises:
        sub = resolve_substitution(exercise, applicable_restrictions(exercise, restrictions))
        if sub is not None:
            out.append(sub)
    return out
