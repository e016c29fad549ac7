from __future__ import annotations

"""Tuning parameters for the injury subsystem.

Only value ranges and labels live here; the rule tables that consume injury
records are owned by restrictions/, risk/ and load/.
"""

# ---------------------------------------------------------------------------
# Value ranges
# ---------------------------------------------------------------------------

SEVERITY_MIN: int = 1
SEVERITY_MAX: int = 5

# Wellness scales (stress, soreness, energy, hydration).
WELLNESS_LEVEL_MIN: int = 1
WELLNESS_LEVEL_MAX: int = 10

SLEEP_HOURS_MAX: float = 24.0

# Plausible bounds for a recorded max heart rate (bpm).
MAX_HEART_RATE_RANGE: tuple[int, int] = (100, 240)

# ---------------------------------------------------------------------------
# Availability write-back
# ---------------------------------------------------------------------------

# Reason stored on availability rows written as a side effect of an injury save.
WRITEBACK_REASON_INJURED: str = "Active injury"
WRITEBACK_REASON_CLEARED: str = "No active injuries"

# Note attached to a MedicalStatus when a collaborator read failed.
DEGRADED_NOTE_INJURIES: str = "Injury records unavailable"
DEGRADED_NOTE_WELLNESS: str = "Wellness data unavailable"
DEGRADED_NOTE_AVAILABILITY: str = "Availability data unavailable"

# ---------------------------------------------------------------------------
# Wellness-triggered load management
# ---------------------------------------------------------------------------

# A wellness entry crossing any of these moves an uninjured player to
# load_management. The reason lists every concern that fired.
CONCERN_SLEEP_HOURS_BELOW: float = 5.0
CONCERN_STRESS_AT_LEAST: int = 9
CONCERN_SORENESS_AT_LEAST: int = 9

CONCERN_LABEL_SLEEP: str = "severe sleep deprivation"
CONCERN_LABEL_STRESS: str = "extreme stress"
CONCERN_LABEL_SORENESS: str = "severe soreness"
CONCERN_REASON_PREFIX: str = "Wellness concern"
