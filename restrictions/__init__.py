"""Exercise restriction and substitution rules.

Public API
----------
- derive_restrictions(injuries) -> list[ExerciseRestriction]
- is_exercise_affected(exercise, restriction) -> bool
- resolve_substitution(exercise, restrictions) -> ExerciseSubstitution | None
- substitutions_for(exercises, restrictions) -> list[ExerciseSubstitution]

Restrictions and substitutions are ephemeral: recomputed per request from the
player's active injuries and never persisted.
"""

from .service import (
    applicable_restrictions,
    derive_restrictions,
    exercise_name,
    is_exercise_affected,
    resolve_substitution,
    substitutions_for,
)
from .types import ExerciseRestriction, ExerciseSubstitution

__all__ = [
    "ExerciseRestriction",
    "ExerciseSubstitution",
    "applicable_restrictions",
    "derive_restrictions",
    "exercise_name",
    "is_exercise_affected",
    "resolve_substitution",
    "substitutions_for",
]
