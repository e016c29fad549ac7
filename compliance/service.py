from __future__ import annotations

"""Workout compliance check.

One check reads the player's medical status once and fans it out to the
restriction deriver, substitution resolver, pre-workout risk scorer and the
load recommendation rule. Results are cached per (player, intensity,
exercise list, player generation) for ``CACHE_TTL_S``;
any injury, wellness or availability write retires them (see ``cache``).

Degradation
-----------
- malformed player id: permissive result annotated with a check-error note
- repository failure: safe defaults (no injuries, no wellness), not cached
- cache failure: recompute (see ``cache.Cache``)
"""

import asyncio
import hashlib
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import cache
import schema
from errors import INVALID_INPUT, MedicalWorkflowError
from injury import load_medical_status
from injury import status as inj_status
from injury.types import MedicalStatus, PlayerAvailability, WellnessEntry
from restrictions import derive_restrictions, exercise_name, substitutions_for
from risk import InjuryRiskAlert, assess_pre_workout_risk

from . import config
from .types import ComplianceCheckResult, LoadRecommendation

logger = logging.getLogger(__name__)


def _exercise_digest(exercises: Sequence[Any]) -> str:
    names = [exercise_name(e) for e in exercises]
    raw = json.dumps(names, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()[:16]


def compliance_cache_key(player_id: str, intensity: float, exercises: Sequence[Any]) -> str:
    return cache.build_cache_key(
        config.CACHE_NS,
        player_id,
        cache.player_generation(player_id),
        f"{float(intensity):g}",
        _exercise_digest(exercises),
    )


def _require_intensity(value: Any) -> float:
    try:
        intensity = float(value)
    except (TypeError, ValueError) as exc:
        raise MedicalWorkflowError(INVALID_INPUT, f"Invalid intensity: {value!r}", {"intensity": value}) from exc
    if intensity < 0:
        raise MedicalWorkflowError(INVALID_INPUT, "intensity must be >= 0", {"intensity": value})
    return intensity


def permissive_result(player_id: str, *, error: Optional[str] = None) -> ComplianceCheckResult:
    return ComplianceCheckResult(
        player_id=str(player_id),
        is_compliant=True,
        medical_notes=(config.NOTE_CHECK_ERROR,),
        error=error,
    )


def load_recommendation(
    player_id: str,
    availability: Optional[PlayerAvailability],
    wellness: Optional[WellnessEntry],
    intensity: float,
) -> Optional[LoadRecommendation]:
    """Workout-level cap from availability and wellness; None when nothing lowers it."""
    recommended = float(intensity)
    reasons: List[str] = []
    mods: List[str] = []

    def cap(limit: float, reason: str, extra: Iterable[str]) -> None:
        nonlocal recommended
        recommended = min(recommended, limit)
        reasons.append(reason)
        mods.extend(extra)

    if inj_status.is_under_load_management(availability):
        cap(config.LOAD_MANAGEMENT_CAP, config.LOAD_MANAGEMENT_REASON, config.LOAD_MANAGEMENT_MODS)
    if wellness is not None:
        if wellness.sleep_hours < config.SLEEP_BELOW_HOURS:
            cap(config.SLEEP_CAP, config.SLEEP_REASON, config.SLEEP_MODS)
        if wellness.stress_level > config.STRESS_ABOVE:
            cap(config.STRESS_CAP, config.STRESS_REASON, config.STRESS_MODS)
        if wellness.soreness_level > config.SORENESS_ABOVE:
            cap(config.SORENESS_CAP, config.SORENESS_REASON, config.SORENESS_MODS)

    if recommended >= intensity:
        return None
    return LoadRecommendation(
        player_id=player_id,
        current_load=float(intensity),
        recommended_load=recommended,
        load_reduction=round((intensity - recommended) / intensity * 100.0, 2),
        reason=config.REASON_SEPARATOR.join(reasons),
        duration_days=config.RECOMMENDATION_DURATION_DAYS,
        modifications=tuple(mods),
    )


def evaluate_compliance(status: MedicalStatus, exercises: Sequence[Any], intensity: float) -> ComplianceCheckResult:
    """Pure aggregation over an already-loaded medical status."""
    active = status.active_injuries
    restrictions = derive_restrictions(active)
    substitutions = substitutions_for(exercises, restrictions)

    alerts: List[Dict[str, Any]] = []
    immediate = False
    assessment = assess_pre_workout_risk(status.player_id, active, status.wellness, intensity)
    if isinstance(assessment, InjuryRiskAlert):
        alerts.append(assessment.to_dict())
        immediate = assessment.immediate_action

    recs: List[Dict[str, Any]] = []
    rec = load_recommendation(status.player_id, status.availability, status.wellness, intensity)
    if rec is not None:
        recs.append(rec.to_dict())

    notes: List[str] = []
    if active:
        notes.append(config.NOTE_ACTIVE_INJURIES.format(types=", ".join(i.injury_type for i in active)))
    if inj_status.is_under_load_management(status.availability):
        reason = status.availability.reason or config.NOTE_LOAD_MANAGEMENT_DEFAULT_REASON
        notes.append(config.NOTE_LOAD_MANAGEMENT.format(reason=reason))
    notes.extend(status.degraded)

    return ComplianceCheckResult(
        player_id=status.player_id,
        is_compliant=not restrictions and not immediate,
        restrictions=tuple(restrictions),
        substitutions=tuple(substitutions),
        risk_alerts=tuple(alerts),
        load_recommendations=tuple(recs),
        medical_notes=tuple(notes),
    )


async def check_workout_compliance(
    player_id: Any,
    exercises: Optional[Sequence[Any]] = None,
    intensity: Any = 100,
    *,
    db_path: str,
) -> ComplianceCheckResult:
    exercises = list(exercises or ())
    level = _require_intensity(intensity)
    try:
        pid = schema.normalize_player_id(player_id)
    except ValueError:
        logger.info("compliance check with malformed player_id=%r; returning permissive result", player_id)
        return permissive_result(str(player_id))

    c = cache.get_cache()
    key = compliance_cache_key(pid, level, exercises)
    cached = c.get(key)
    if cached is not None:
        return ComplianceCheckResult.from_dict(cached)

    status = await load_medical_status(pid, db_path=db_path)
    result = evaluate_compliance(status, exercises, level)
    if not status.degraded:
        c.set(key, result.to_dict(), config.CACHE_TTL_S)
    return result


async def batch_check_workout_compliance(
    player_ids: Sequence[Any],
    exercises: Optional[Sequence[Any]] = None,
    intensity: Any = 100,
    *,
    db_path: str,
) -> Dict[str, ComplianceCheckResult]:
    """Concurrent per-player checks; a failing player gets an error entry."""
    keys = [str(p) for p in player_ids]
    results = await asyncio.gather(
        *(check_workout_compliance(p, exercises, intensity, db_path=db_path) for p in player_ids),
        return_exceptions=True,
    )
    out: Dict[str, ComplianceCheckResult] = {}
    for key, res in zip(keys, results):
        if isinstance(res, BaseException):
            if not isinstance(res, Exception):
                raise res
            logger.warning("compliance check failed player_id=%s: %s", key, res, exc_info=res)
            out[key] = permissive_result(key, error=str(res))
        else:
            out[key] = res
    return out
