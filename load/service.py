from __future__ import annotations

"""Load calculator.

Public entrypoints (coroutines unless noted):
- compute_load_management (sync, pure): MedicalStatus -> LoadManagementData
- calculate_load_management / calculate_batch_load_management
- record_load_compliance / get_load_trends
- update_real_time_load
- calculate_workload_ratio (acute:chronic)

Caching
-------
``calculate_load_management`` results are cached per (player, current load)
for ``LOAD_MANAGEMENT_TTL_S``. A miss (or a broken cache) recomputes the same
answer from the repository.
"""

import asyncio
import datetime as _dt
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import cache
import clock
import schema
from errors import INVALID_INPUT, MedicalWorkflowError
from injury import load_medical_status
from injury import status as inj_status
from injury.catalog import raw_body_part
from injury.types import Injury, MedicalStatus, WellnessEntry
from medical_repo import MedicalRepo, run_in_repo
from risk.service import heart_rate_pct
from risk.types import RiskLevel, max_level

from . import config
from . import repo as load_repo
from .types import LoadAdjustment, LoadManagementData, LoadTrend, WorkloadRatio

logger = logging.getLogger(__name__)


def _clamp(x: float, lo: float, hi: float) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        v = float(lo)
    if math.isnan(v):
        v = float(lo)
    if v < lo:
        return float(lo)
    if v > hi:
        return float(hi)
    return float(v)


def _round2(x: float) -> float:
    return round(float(x), 2)


# ---------------------------------------------------------------------------
# Pure calculation
# ---------------------------------------------------------------------------


def injury_contribution(injury: Injury) -> float:
    modifier = config.BODY_PART_MODIFIERS.get(raw_body_part(injury.body_part), config.DEFAULT_BODY_PART_MODIFIER)
    return min(
        float(injury.severity) * config.INJURY_POINTS_PER_SEVERITY * modifier,
        config.INJURY_CONTRIBUTION_CAP,
    )


def _first_below(value: float, table: Sequence[Tuple[float, float, str]]) -> Optional[Tuple[float, str]]:
    for threshold, penalty, label in table:
        if value < threshold:
            return penalty, label
    return None


def _first_above(value: float, table: Sequence[Tuple[float, float, str]]) -> Optional[Tuple[float, str]]:
    for threshold, penalty, label in table:
        if value > threshold:
            return penalty, label
    return None


def wellness_penalty(wellness: Optional[WellnessEntry]) -> Tuple[float, List[str]]:
    """Capped wellness penalty and the labels of every sub-penalty that fired."""
    if wellness is None:
        return 0.0, []
    hits = [
        _first_below(float(wellness.sleep_hours), config.SLEEP_PENALTIES),
        _first_above(float(wellness.stress_level), config.STRESS_PENALTIES),
        _first_above(float(wellness.soreness_level), config.SORENESS_PENALTIES),
        _first_below(float(wellness.energy_level), config.ENERGY_PENALTIES),
    ]
    fired = [h for h in hits if h is not None]
    total = sum(p for p, _ in fired)
    return min(total, config.WELLNESS_PENALTY_CAP), [label for _, label in fired]


def _injury_risk(active: Sequence[Injury]) -> RiskLevel:
    if not active:
        return RiskLevel.LOW
    worst = max(int(i.severity) for i in active)
    if worst >= config.INJURY_RISK_HIGH_SEVERITY:
        return RiskLevel.HIGH
    if worst >= config.INJURY_RISK_MEDIUM_SEVERITY:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _wellness_risk(penalty: float) -> RiskLevel:
    if penalty >= config.WELLNESS_RISK_HIGH:
        return RiskLevel.HIGH
    if penalty >= config.WELLNESS_RISK_MEDIUM:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _duration_days(active: Sequence[Injury], risk: RiskLevel, today: _dt.date) -> int:
    returns = [i.expected_return_date for i in active if i.expected_return_date]
    if returns:
        latest = max(clock.to_date(d) for d in returns)
        return max(1, (latest - today).days)
    return int(config.DURATION_DAYS_BY_RISK[risk])


def recommend_load(total_reduction: float, current_load: float) -> float:
    """recommended = clamp(min(baseline - total, current), floor, baseline)."""
    base = config.BASELINE_LOAD
    current = _clamp(current_load, 0.0, base)
    return _clamp(min(base - float(total_reduction), current), config.MIN_RECOMMENDED_LOAD, base)


def load_reduction_pct(current_load: float, recommended_load: float) -> float:
    current = _clamp(current_load, 0.0, config.BASELINE_LOAD)
    if current <= 0:
        return 0.0
    return _round2(max(0.0, (current - recommended_load) / current * 100.0))


def compute_load_management(status: MedicalStatus, current_load: float = 100.0) -> LoadManagementData:
    active = inj_status.active_injuries(status.injuries)
    factors: List[str] = []

    injury_total = 0.0
    for injury in active:
        injury_total += injury_contribution(injury)
        factors.append(f"Active {injury.body_part} injury (severity {injury.severity})")

    w_penalty, w_labels = wellness_penalty(status.wellness)
    factors.extend(w_labels)

    availability_total = 0.0
    if inj_status.is_under_load_management(status.availability):
        availability_total = config.LOAD_MANAGEMENT_PENALTY
        factors.append(config.FACTOR_LOAD_MANAGEMENT)

    factors.extend(status.degraded)

    current = _clamp(current_load, 0.0, config.BASELINE_LOAD)
    recommended = recommend_load(injury_total + w_penalty + availability_total, current)
    risk = max_level(_injury_risk(active), _wellness_risk(w_penalty))

    return LoadManagementData(
        player_id=status.player_id,
        baseline_load=config.BASELINE_LOAD,
        current_load=current,
        recommended_load=_round2(recommended),
        load_reduction=load_reduction_pct(current, recommended),
        risk_level=risk,
        factors=tuple(factors),
        duration_days=_duration_days(active, risk, clock.today()),
        last_updated=clock.now_iso(),
    )


def _degraded_load_management(player_id: str, current_load: float, note: str) -> LoadManagementData:
    current = _clamp(current_load, 0.0, config.BASELINE_LOAD)
    recommended = recommend_load(0.0, current)
    return LoadManagementData(
        player_id=player_id,
        baseline_load=config.BASELINE_LOAD,
        current_load=current,
        recommended_load=_round2(recommended),
        load_reduction=load_reduction_pct(current, recommended),
        risk_level=RiskLevel.LOW,
        factors=(note,),
        duration_days=config.DURATION_DAYS_BY_RISK[RiskLevel.LOW],
        last_updated=clock.now_iso(),
    )


# ---------------------------------------------------------------------------
# Load management (cached)
# ---------------------------------------------------------------------------


def load_management_cache_key(player_id: str, current_load: float) -> str:
    return cache.build_cache_key(
        config.LOAD_MANAGEMENT_CACHE_NS, player_id, cache.player_generation(player_id), _round2(current_load)
    )


async def calculate_load_management(
    player_id: Any,
    current_load: float = 100.0,
    *,
    db_path: str,
) -> LoadManagementData:
    """Recommended load for one player.

    Missing medical data means no reduction; a malformed id yields the same
    permissive answer annotated with a factor note.
    """
    try:
        pid = schema.normalize_player_id(player_id)
    except ValueError:
        logger.warning("load management for malformed player_id=%r", player_id)
        return _degraded_load_management(str(player_id), current_load, config.FACTOR_MALFORMED_ID)

    c = cache.get_cache()
    key = load_management_cache_key(pid, current_load)
    cached = c.get(key)
    if cached is not None:
        return LoadManagementData.from_dict(cached)

    status = await load_medical_status(pid, db_path=db_path)
    result = compute_load_management(status, current_load)
    if not status.degraded:
        c.set(key, result.to_dict(), config.LOAD_MANAGEMENT_TTL_S)
    return result


async def calculate_batch_load_management(
    player_ids: Iterable[Any],
    *,
    db_path: str,
    current_loads: Optional[Mapping[str, float]] = None,
) -> Dict[str, LoadManagementData]:
    """Concurrent per-player load management; failed players are left out."""
    ids = [str(p) for p in player_ids]
    loads = dict(current_loads or {})
    results = await asyncio.gather(
        *(calculate_load_management(pid, loads.get(pid, 100.0), db_path=db_path) for pid in ids),
        return_exceptions=True,
    )
    out: Dict[str, LoadManagementData] = {}
    for pid, res in zip(ids, results):
        if isinstance(res, BaseException):
            logger.warning("batch load management failed player_id=%s: %r", pid, res)
            continue
        out[pid] = res
    return out


# ---------------------------------------------------------------------------
# Compliance history
# ---------------------------------------------------------------------------


def is_load_compliant(planned: float, actual: float) -> bool:
    return abs(float(actual) - float(planned)) <= config.COMPLIANCE_TOLERANCE


def _record_trend_tx(repo: MedicalRepo, trend: LoadTrend, cutoff: str, now: str) -> int:
    with repo.transaction() as cur:
        load_repo.insert_trend(cur, trend, now=now)
        return load_repo.prune_trends(cur, trend.player_id, before_date=cutoff)


def _list_trends(repo: MedicalRepo, player_id: str, since: Optional[str]) -> List[LoadTrend]:
    with repo.read() as cur:
        return load_repo.list_trends(cur, player_id, since_date=since)


def _cutoff(days: int) -> str:
    return (clock.today() - _dt.timedelta(days=int(days))).isoformat()


async def record_load_compliance(
    player_id: Any,
    planned_load: float,
    actual_load: float,
    *,
    db_path: str,
    date: Any = None,
    notes: Optional[str] = None,
) -> LoadTrend:
    """Append one planned-vs-actual trend row. Not idempotent; re-read trends before retrying a timeout."""
    try:
        pid = schema.normalize_player_id(player_id)
        entry_date = clock.require_date_iso(date if date is not None else clock.today_iso(), field="date")
        planned = float(planned_load)
        actual = float(actual_load)
    except (TypeError, ValueError) as exc:
        raise MedicalWorkflowError(INVALID_INPUT, str(exc), {"player_id": player_id}) from exc

    trend = LoadTrend(
        player_id=pid,
        date=entry_date,
        planned_load=planned,
        actual_load=actual,
        compliance=is_load_compliant(planned, actual),
        notes=notes,
    )
    pruned = await run_in_repo(
        db_path, _record_trend_tx, trend, _cutoff(config.TREND_RETENTION_DAYS), clock.now_iso()
    )
    if pruned:
        logger.debug("pruned %s load trends player_id=%s", pruned, pid)
    cache.get_cache().delete(cache.build_cache_key(config.WORKLOAD_RATIO_CACHE_NS, pid))
    return trend


async def get_load_trends(
    player_id: Any,
    days: int = config.DEFAULT_TREND_DAYS,
    *,
    db_path: str,
) -> List[LoadTrend]:
    """Trends dated within the last ``days`` days, oldest first."""
    try:
        pid = schema.normalize_player_id(player_id)
    except ValueError:
        logger.warning("load trends for malformed player_id=%r", player_id)
        return []
    window = max(0, min(int(days), config.TREND_RETENTION_DAYS))
    return await run_in_repo(db_path, _list_trends, pid, _cutoff(window))


# ---------------------------------------------------------------------------
# Real-time adjustment
# ---------------------------------------------------------------------------


def _num(metrics: Mapping[str, Any], *keys: str) -> Optional[float]:
    for k in keys:
        v = metrics.get(k)
        if v is None or isinstance(v, bool):
            continue
        try:
            return float(v)
        except (TypeError, ValueError):
            continue
    return None


def real_time_adjustment(
    metrics: Mapping[str, Any],
    *,
    wellness: Optional[WellnessEntry],
    injured: bool,
) -> Optional[LoadAdjustment]:
    """Most negative applicable adjustment (reasons joined), or None."""
    hits: List[Tuple[int, str]] = []

    rpe = _num(metrics, "rpe")
    if rpe is not None and rpe > config.RT_RPE_LIMIT:
        hits.append((config.RT_RPE_ADJUSTMENT, config.RT_REASON_RPE))

    hr_pct = heart_rate_pct(metrics, wellness)
    if hr_pct is not None:
        if hr_pct > config.RT_HR_CRITICAL_PCT:
            hits.append((config.RT_HR_CRITICAL_ADJUSTMENT, config.RT_REASON_HR_CRITICAL))
        elif hr_pct > config.RT_HR_HIGH_PCT:
            hits.append((config.RT_HR_HIGH_ADJUSTMENT, config.RT_REASON_HR_HIGH))

    duration = _num(metrics, "duration")
    if injured and duration is not None and duration > config.RT_INJURED_DURATION_MIN:
        hits.append((config.RT_INJURED_DURATION_ADJUSTMENT, config.RT_REASON_DURATION))

    if not hits:
        return None
    return LoadAdjustment(
        recommended_adjustment=min(adj for adj, _ in hits),
        reason="; ".join(reason for _, reason in hits),
    )


async def update_real_time_load(
    player_id: Any,
    metrics: Mapping[str, Any],
    *,
    db_path: str,
) -> Optional[LoadAdjustment]:
    try:
        pid = schema.normalize_player_id(player_id)
    except ValueError:
        logger.warning("real-time load for malformed player_id=%r; metrics only", player_id)
        return real_time_adjustment(metrics or {}, wellness=None, injured=False)

    status = await load_medical_status(pid, db_path=db_path)
    return real_time_adjustment(
        metrics or {},
        wellness=status.wellness,
        injured=bool(status.active_injuries),
    )


# ---------------------------------------------------------------------------
# Acute:chronic workload ratio
# ---------------------------------------------------------------------------


def acr_band(ratio: float, chronic: float) -> str:
    if chronic <= 0:
        return config.ACR_BAND_NO_DATA
    if ratio < config.ACR_UNDER_BELOW:
        return config.ACR_BAND_UNDER
    if ratio <= config.ACR_OPTIMAL_MAX:
        return config.ACR_BAND_OPTIMAL
    if ratio <= config.ACR_ELEVATED_MAX:
        return config.ACR_BAND_ELEVATED
    return config.ACR_BAND_HIGH


def compute_workload_ratio(player_id: str, trends: Sequence[LoadTrend], today: _dt.date) -> WorkloadRatio:
    """acute = 7-day actual-load sum; chronic = 28-day sum / 4 (weekly average)."""
    acute_from = today - _dt.timedelta(days=config.ACUTE_WINDOW_DAYS - 1)
    chronic_from = today - _dt.timedelta(days=config.CHRONIC_WINDOW_DAYS - 1)
    acute = 0.0
    chronic_sum = 0.0
    for t in trends:
        d = clock.to_date(t.date)
        if d > today:
            continue
        if d >= chronic_from:
            chronic_sum += float(t.actual_load)
        if d >= acute_from:
            acute += float(t.actual_load)
    chronic = chronic_sum / (config.CHRONIC_WINDOW_DAYS / config.ACUTE_WINDOW_DAYS)
    ratio = acute / chronic if chronic > 0 else 0.0
    return WorkloadRatio(
        player_id=player_id,
        acute_load=_round2(acute),
        chronic_load=_round2(chronic),
        ratio=_round2(ratio),
        band=acr_band(ratio, chronic),
    )


async def calculate_workload_ratio(player_id: Any, *, db_path: str) -> WorkloadRatio:
    try:
        pid = schema.normalize_player_id(player_id)
    except ValueError as exc:
        raise MedicalWorkflowError(INVALID_INPUT, str(exc), {"player_id": player_id}) from exc

    c = cache.get_cache()
    key = cache.build_cache_key(config.WORKLOAD_RATIO_CACHE_NS, pid)
    cached = c.get(key)
    if cached is not None:
        return WorkloadRatio(
            player_id=str(cached["playerId"]),
            acute_load=float(cached["acuteLoad"]),
            chronic_load=float(cached["chronicLoad"]),
            ratio=float(cached["ratio"]),
            band=str(cached["band"]),
        )

    trends = await run_in_repo(db_path, _list_trends, pid, _cutoff(config.CHRONIC_WINDOW_DAYS))
    result = compute_workload_ratio(pid, trends, clock.today())
    c.set(key, result.to_dict(), config.WORKLOAD_RATIO_TTL_S)
    return result
