from __future__ import annotations

"""Compliance-check tuning.

Load recommendation caps (each applies when its condition holds; the lowest
cap wins and reasons are joined with "; "):

- availability load_management -> 70
- sleep < 7 h                  -> 80
- stress > 7                   -> 75
- soreness > 7                 -> 65
"""

from typing import Tuple

CACHE_NS = "workout_compliance"
CACHE_TTL_S: int = 300

LOAD_MANAGEMENT_CAP: float = 70.0
LOAD_MANAGEMENT_REASON = "Player under load management protocol"
LOAD_MANAGEMENT_MODS: Tuple[str, ...] = ("Reduce intensity to 70%", "Increase rest periods")

SLEEP_BELOW_HOURS: float = 7.0
SLEEP_CAP: float = 80.0
SLEEP_REASON = "Insufficient sleep"
SLEEP_MODS: Tuple[str, ...] = ("Light to moderate intensity only",)

STRESS_ABOVE: int = 7
STRESS_CAP: float = 75.0
STRESS_REASON = "Elevated stress levels"
STRESS_MODS: Tuple[str, ...] = ("Focus on technique over intensity",)

SORENESS_ABOVE: int = 7
SORENESS_CAP: float = 65.0
SORENESS_REASON = "High muscle soreness"
SORENESS_MODS: Tuple[str, ...] = ("Active recovery exercises", "Extended warm-up")

REASON_SEPARATOR = "; "
RECOMMENDATION_DURATION_DAYS: int = 1

NOTE_ACTIVE_INJURIES = "Active injuries: {types}"
NOTE_LOAD_MANAGEMENT = "Player under load management: {reason}"
NOTE_LOAD_MANAGEMENT_DEFAULT_REASON = "Medical precaution"
NOTE_CHECK_ERROR = "Compliance check error"
