from __future__ import annotations

"""Injury risk scoring.

Two entry points share one model:

- ``assess_pre_workout_risk``: active injuries + latest wellness + planned
  intensity (used by the compliance check).
- ``assess_real_time_risk``: live metrics (heartRate, rpe, pace, powerOutput,
  duration, optional activity) + active injuries + latest wellness.

Within one evaluation the level only moves up (``max_level``). When no factor
fires the result is :class:`NoAlert`.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

import clock
import schema
from injury import catalog, load_medical_status
from injury.types import Injury, WellnessEntry

from . import config
from .types import InjuryRiskAlert, NoAlert, RiskAssessment, RiskLevel, escalate, max_level

logger = logging.getLogger(__name__)


def _num(metrics: Mapping[str, Any], *keys: str) -> Optional[float]:
    """First numeric value among ``keys`` (camelCase or snake_case accepted)."""
    for k in keys:
        v = metrics.get(k)
        if v is None or isinstance(v, bool):
            continue
        try:
            return float(v)
        except (TypeError, ValueError):
            continue
    return None


def recommendations_for(level: RiskLevel, factors: Iterable[str]) -> List[str]:
    out = list(config.RECOMMENDATIONS_BY_LEVEL[level])
    factor_set = set(factors)
    for factor, extra in config.RECOMMENDATIONS_BY_FACTOR.items():
        if factor in factor_set:
            out.append(extra)
    return out


def _build(
    player_id: str,
    level: RiskLevel,
    factors: List[str],
    *,
    immediate_action: bool,
) -> RiskAssessment:
    if not factors:
        return NoAlert(player_id=player_id)
    return InjuryRiskAlert(
        player_id=player_id,
        risk_level=level,
        risk_factors=tuple(factors),
        recommendations=tuple(recommendations_for(level, factors)),
        immediate_action=bool(immediate_action),
        timestamp=clock.now(),
    )


# ---------------------------------------------------------------------------
# Pre-workout
# ---------------------------------------------------------------------------


def assess_pre_workout_risk(
    player_id: str,
    active_injuries: Iterable[Injury],
    wellness: Optional[WellnessEntry],
    intensity: float,
) -> RiskAssessment:
    factors: List[str] = []
    level = RiskLevel.LOW

    if any(i.is_active for i in active_injuries):
        factors.append(config.FACTOR_ACTIVE_INJURY)
        level = max_level(level, RiskLevel.MEDIUM)

    if float(intensity) >= config.HIGH_INTENSITY_THRESHOLD:
        factors.append(config.FACTOR_HIGH_INTENSITY)
        level = escalate(level)

    if wellness is not None:
        if wellness.stress_level > config.STRESS_LIMIT:
            factors.append(config.FACTOR_HIGH_STRESS)
            level = max_level(level, RiskLevel.HIGH)
        if wellness.soreness_level > config.SORENESS_LIMIT:
            factors.append(config.FACTOR_HIGH_SORENESS)
            level = max_level(level, RiskLevel.HIGH)

    return _build(player_id, level, factors, immediate_action=level == RiskLevel.CRITICAL)


# ---------------------------------------------------------------------------
# Real-time
# ---------------------------------------------------------------------------


def infer_activity(metrics: Mapping[str, Any]) -> str:
    explicit = str(metrics.get("activity") or "").strip().lower()
    if explicit:
        return explicit
    if _num(metrics, "pace"):
        return config.ACTIVITY_RUNNING
    power = _num(metrics, "powerOutput", "power_output")
    if power is not None and power > config.POWER_LIFTING_THRESHOLD:
        return config.ACTIVITY_LIFTING
    hr = _num(metrics, "heartRate", "heart_rate")
    if hr is not None and hr > config.HR_HIGH_INTENSITY_THRESHOLD:
        return config.ACTIVITY_HIGH_INTENSITY
    return config.ACTIVITY_GENERAL


def is_body_part_at_risk(body_part: str, activity: str) -> bool:
    key = catalog.canonical_body_part(body_part)
    if key is None:
        return False
    return activity in config.ACTIVITY_RISK_MAP.get(key, ())


def heart_rate_pct(metrics: Mapping[str, Any], wellness: Optional[WellnessEntry]) -> Optional[float]:
    hr = _num(metrics, "heartRate", "heart_rate")
    max_hr = _num(metrics, "maxHeartRate", "max_heart_rate")
    if max_hr is None and wellness is not None and wellness.max_heart_rate:
        max_hr = float(wellness.max_heart_rate)
    if not hr or not max_hr:
        return None
    return hr / max_hr * 100.0


def assess_real_time_risk(
    player_id: str,
    metrics: Mapping[str, Any],
    active_injuries: Iterable[Injury],
    wellness: Optional[WellnessEntry],
) -> RiskAssessment:
    factors: List[str] = []
    level = RiskLevel.LOW
    immediate_action = False

    rpe = _num(metrics, "rpe")
    if rpe is not None and rpe > config.RPE_LIMIT:
        factors.append(config.FACTOR_RPE)
        level = max_level(level, RiskLevel.HIGH)

    hr_pct = heart_rate_pct(metrics, wellness)
    if hr_pct is not None:
        if hr_pct > config.HR_CRITICAL_PCT:
            factors.append(config.FACTOR_HR)
            level = max_level(level, RiskLevel.CRITICAL)
            immediate_action = True
        elif hr_pct > config.HR_HIGH_PCT:
            factors.append(config.FACTOR_HR_ELEVATED)
            level = max_level(level, RiskLevel.HIGH)

    activity = infer_activity(metrics)
    for injury in active_injuries:
        if not injury.is_active:
            continue
        if injury.severity >= config.HIGH_SEVERITY:
            factors.append(f"High severity {injury.body_part} injury")
            level = max_level(level, RiskLevel.HIGH)
        if is_body_part_at_risk(injury.body_part, activity):
            factors.append(f"Activity affecting injured {injury.body_part}")
            level = max_level(level, RiskLevel.MEDIUM)

    if wellness is not None:
        if wellness.sleep_hours < config.SLEEP_DEPRIVATION_HOURS:
            factors.append(config.FACTOR_SLEEP)
            level = max_level(level, RiskLevel.MEDIUM)
        if wellness.stress_level > config.STRESS_LIMIT:
            factors.append(config.FACTOR_HIGH_STRESS)
            level = max_level(level, RiskLevel.MEDIUM)
        if wellness.soreness_level > config.SORENESS_LIMIT:
            factors.append(config.FACTOR_HIGH_SORENESS)
            level = max_level(level, RiskLevel.MEDIUM)

    return _build(player_id, level, factors, immediate_action=immediate_action)


async def assess_real_time_injury_risk(
    player_id: Any,
    metrics: Mapping[str, Any],
    *,
    db_path: str,
) -> RiskAssessment:
    """Real-time assessment with the player's stored medical context.

    A malformed player id is scored on the live metrics alone.
    """
    try:
        pid = schema.normalize_player_id(player_id)
    except ValueError:
        logger.warning("real-time risk for malformed player_id=%r; scoring metrics only", player_id)
        return assess_real_time_risk(str(player_id), metrics or {}, [], None)

    status = await load_medical_status(pid, db_path=db_path)
    result = assess_real_time_risk(pid, metrics or {}, status.active_injuries, status.wellness)
    if isinstance(result, InjuryRiskAlert) and result.immediate_action:
        logger.warning("immediate action player_id=%s factors=%s", pid, list(result.risk_factors))
    return result
