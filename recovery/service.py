from __future__ import annotations

"""Recovery milestone tracker.

State per injury lives in one versioned ``recovery_state`` row:
- milestones: ordered, each pending -> completed (one-way)
- entries: adherence log, rolling 90-day window

Terminal cleanup
----------------
When the last pending milestone completes, the owning injury becomes
``recovered`` (availability written back) and the row is deleted, in the same
transaction. Later calls see no state and are no-ops.

Concurrency
-----------
Every write is ``UPDATE ... WHERE version = ?``. Callers may also pass the
version they read (``expected_version``); a mismatch raises
``CONCURRENT_MODIFICATION`` instead of overwriting.
"""

import asyncio
import dataclasses
import datetime as _dt
import logging
import sqlite3
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import cache
import clock
import schema
from errors import CONCURRENT_MODIFICATION, INJURY_NOT_FOUND, INVALID_INPUT, MedicalWorkflowError
from injury import repo as inj_repo
from injury import save_injury
from injury.types import Injury
from medical_repo import MedicalRepo, run_in_repo

from . import config
from . import repo as rec_repo
from .types import (
    ENTRY_ASSESSMENT,
    ENTRY_EXERCISE,
    ENTRY_MILESTONE,
    ENTRY_TYPES,
    AdherenceAlert,
    AdherenceEntry,
    AdherenceMetrics,
    MilestoneTemplate,
    RecoveryMilestone,
    RecoveryState,
    RecoveryTimeline,
)

logger = logging.getLogger(__name__)
_WARN_COUNTS: Dict[str, int] = {}


def _warn_limited(code: str, msg: str, *, limit: int = 5) -> None:
    n = _WARN_COUNTS.get(code, 0)
    if n < limit:
        logger.warning("%s %s", code, msg, exc_info=True)
    _WARN_COUNTS[code] = n + 1


def _pct(part: int, whole: int, *, empty: float) -> float:
    if whole <= 0:
        return float(empty)
    return round(part / whole * 100.0, 2)


def _cache_keys(injury_id: str) -> Tuple[str, str]:
    return (
        cache.build_cache_key(config.MILESTONES_CACHE_NS, injury_id),
        cache.build_cache_key(config.METRICS_CACHE_NS, injury_id),
    )


def _invalidate(injury_id: str) -> None:
    c = cache.get_cache()
    for key in _cache_keys(injury_id):
        c.delete(key)


# ---------------------------------------------------------------------------
# Milestone construction
# ---------------------------------------------------------------------------


def resolve_template(protocol_type: str) -> Tuple[str, Tuple[MilestoneTemplate, ...]]:
    key = str(protocol_type or "").strip().lower()
    if key in config.MILESTONE_TEMPLATES:
        return key, config.MILESTONE_TEMPLATES[key]
    return config.DEFAULT_PROTOCOL, config.MILESTONE_TEMPLATES[config.DEFAULT_PROTOCOL]


def _template_from_custom(raw: Any) -> Tuple[Optional[str], MilestoneTemplate]:
    if isinstance(raw, RecoveryMilestone):
        return raw.id or None, MilestoneTemplate(
            raw.name, raw.description, raw.prerequisites, raw.exercises, raw.assessments
        )
    if not isinstance(raw, Mapping):
        raise MedicalWorkflowError(INVALID_INPUT, "custom milestone must be a mapping", {"milestone": raw})
    name = str(raw.get("name") or "").strip()
    if not name:
        raise MedicalWorkflowError(INVALID_INPUT, "custom milestone name is required", {"milestone": dict(raw)})
    return (
        str(raw.get("id")) if raw.get("id") else None,
        MilestoneTemplate(
            name,
            str(raw.get("description") or ""),
            tuple(str(x) for x in raw.get("prerequisites") or ()),
            tuple(str(x) for x in raw.get("exercises") or ()),
            tuple(str(x) for x in raw.get("assessments") or ()),
        ),
    )


def milestone_spacing(severity: int) -> _dt.timedelta:
    weeks = 1.0 + float(severity) / config.SEVERITY_SPACING_DIVISOR
    return _dt.timedelta(days=weeks * config.DAYS_PER_WEEK)


def build_milestones(
    templates: Sequence[MilestoneTemplate],
    *,
    injury_date: str,
    severity: int,
    ids: Optional[Sequence[Optional[str]]] = None,
) -> List[RecoveryMilestone]:
    """Pending milestones with strictly increasing target dates from ``injury_date``."""
    start = clock.to_datetime(injury_date)
    step = milestone_spacing(severity)
    out: List[RecoveryMilestone] = []
    for i, t in enumerate(templates):
        given = ids[i] if ids is not None and i < len(ids) else None
        out.append(
            RecoveryMilestone(
                id=given or f"milestone-{i + 1}",
                name=t.name,
                description=t.description,
                target_date=(start + step * (i + 1)).isoformat(),
                prerequisites=t.prerequisites,
                exercises=t.exercises,
                assessments=t.assessments,
            )
        )
    return out


# ---------------------------------------------------------------------------
# State transitions (pure)
# ---------------------------------------------------------------------------


def apply_completion(state: RecoveryState, milestone: str, *, at: str) -> Tuple[RecoveryState, bool]:
    """Complete the first pending milestone named (or id'd) ``milestone``.

    Returns ``(state, changed)``; unknown or already-completed names leave the
    state untouched.
    """
    key = str(milestone or "").strip()
    updated: List[RecoveryMilestone] = []
    changed = False
    for m in state.milestones:
        if not changed and not m.is_completed and key in (m.name, m.id):
            updated.append(m.completed(at))
            changed = True
        else:
            updated.append(m)
    if not changed:
        return state, False
    return dataclasses.replace(state, milestones=tuple(updated)), True


def prune_entries(entries: Iterable[AdherenceEntry], *, now: _dt.datetime) -> Tuple[AdherenceEntry, ...]:
    cutoff = now - _dt.timedelta(days=config.ADHERENCE_RETENTION_DAYS)
    kept: List[AdherenceEntry] = []
    for e in entries:
        when = clock.optional_datetime(e.date)
        if when is None or when >= cutoff:
            kept.append(e)
    return tuple(kept)


# ---------------------------------------------------------------------------
# Transactional building blocks (sync, run on a repo thread)
# ---------------------------------------------------------------------------


def _check_version(state: RecoveryState, expected_version: Optional[int]) -> None:
    if expected_version is not None and int(expected_version) != state.version:
        raise MedicalWorkflowError(
            CONCURRENT_MODIFICATION,
            f"Recovery state for injury {state.injury_id} changed (version {state.version})",
            {"injury_id": state.injury_id, "expected_version": expected_version, "version": state.version},
        )


def _write_state(cur: sqlite3.Cursor, state: RecoveryState, *, expected_version: int, now: str) -> RecoveryState:
    if not rec_repo.update_state(cur, state, expected_version=expected_version, now=now):
        raise MedicalWorkflowError(
            CONCURRENT_MODIFICATION,
            f"Recovery state for injury {state.injury_id} was modified concurrently",
            {"injury_id": state.injury_id, "expected_version": expected_version},
        )
    return dataclasses.replace(state, version=expected_version + 1)


def _finalize(cur: sqlite3.Cursor, state: RecoveryState, *, now: str) -> None:
    """All milestones complete: mark the injury recovered and drop the state row."""
    injury = inj_repo.get_injury(cur, state.injury_id)
    if injury is not None and injury.recovery_status != schema.RECOVERY_RECOVERED:
        save_injury(cur, dataclasses.replace(injury, recovery_status=schema.RECOVERY_RECOVERED), now=now)
    if not rec_repo.delete_state(cur, state.injury_id, expected_version=state.version):
        raise MedicalWorkflowError(
            CONCURRENT_MODIFICATION,
            f"Recovery state for injury {state.injury_id} was modified concurrently",
            {"injury_id": state.injury_id},
        )


def _persist(cur: sqlite3.Cursor, before: RecoveryState, after: RecoveryState, *, now: str) -> Optional[RecoveryState]:
    """Write ``after``; finalize instead when every milestone is complete.

    Returns the stored state, or None once finalized.
    """
    if after.all_completed:
        _finalize(cur, dataclasses.replace(after, version=before.version), now=now)
        return None
    return _write_state(cur, after, expected_version=before.version, now=now)


def _initialize_tx(
    repo: MedicalRepo,
    injury_id: str,
    protocol_type: str,
    custom: Optional[Sequence[Any]],
    expected_version: Optional[int],
    now: str,
) -> List[RecoveryMilestone]:
    with repo.transaction() as cur:
        injury = inj_repo.get_injury(cur, injury_id)
        if injury is None:
            raise MedicalWorkflowError(INJURY_NOT_FOUND, f"Injury not found: {injury_id}", {"injury_id": injury_id})

        if custom:
            parsed = [_template_from_custom(c) for c in custom]
            ids = [p[0] for p in parsed]
            templates: Sequence[MilestoneTemplate] = [p[1] for p in parsed]
            stored_type = str(protocol_type or "").strip().lower() or config.DEFAULT_PROTOCOL
        else:
            ids = None
            stored_type, templates = resolve_template(protocol_type)

        milestones = build_milestones(templates, injury_date=injury.injury_date, severity=injury.severity, ids=ids)

        existing = rec_repo.get_state(cur, injury_id)
        if existing is None:
            rec_repo.insert_state(
                cur,
                RecoveryState(injury_id=injury_id, protocol_type=stored_type, milestones=tuple(milestones), entries=()),
                now=now,
            )
        else:
            _check_version(existing, expected_version)
            _write_state(
                cur,
                dataclasses.replace(existing, protocol_type=stored_type, milestones=tuple(milestones)),
                expected_version=existing.version,
                now=now,
            )
        return milestones


def _record_adherence_tx(
    repo: MedicalRepo,
    injury_id: str,
    entry: AdherenceEntry,
    expected_version: Optional[int],
    now: _dt.datetime,
) -> Tuple[bool, bool]:
    """Returns ``(milestone_completed, recovery_finalized)``."""
    now_iso = now.isoformat()
    with repo.transaction() as cur:
        state = rec_repo.get_state(cur, injury_id)
        if state is None:
            if inj_repo.get_injury(cur, injury_id) is None:
                raise MedicalWorkflowError(INJURY_NOT_FOUND, f"Injury not found: {injury_id}", {"injury_id": injury_id})
            state = rec_repo.insert_state(
                cur,
                RecoveryState(injury_id=injury_id, protocol_type=config.UNTRACKED_PROTOCOL, milestones=(), entries=()),
                now=now_iso,
            )
        else:
            _check_version(state, expected_version)

        after = dataclasses.replace(state, entries=prune_entries((*state.entries, entry), now=now))
        completed = False
        if entry.type == ENTRY_MILESTONE and entry.completed:
            after, completed = apply_completion(after, entry.activity, at=now_iso)

        stored = _persist(cur, state, after, now=now_iso)
        return completed, stored is None


def _complete_milestone_tx(repo: MedicalRepo, injury_id: str, milestone: str, now: str) -> Tuple[bool, bool]:
    with repo.transaction() as cur:
        state = rec_repo.get_state(cur, injury_id)
        if state is None:
            return False, False
        after, changed = apply_completion(state, milestone, at=now)
        if not changed:
            return False, False
        stored = _persist(cur, state, after, now=now)
        return True, stored is None


def _read_context(repo: MedicalRepo, injury_id: str) -> Tuple[Optional[Injury], Optional[RecoveryState]]:
    with repo.read() as cur:
        return inj_repo.get_injury(cur, injury_id), rec_repo.get_state(cur, injury_id)


async def _on_finalized(injury_id: str, *, db_path: str) -> None:
    logger.info("recovery protocol completed injury_id=%s; injury marked recovered", injury_id)
    injury, _ = await _safe_context(injury_id, db_path=db_path)
    if injury is not None:
        cache.bump_player_generation(injury.player_id)


# ---------------------------------------------------------------------------
# Public API: mutations
# ---------------------------------------------------------------------------


async def initialize_recovery_protocol(
    injury_id: str,
    protocol_type: str = config.DEFAULT_PROTOCOL,
    custom_milestones: Optional[Sequence[Any]] = None,
    *,
    db_path: str,
    expected_version: Optional[int] = None,
) -> List[RecoveryMilestone]:
    """Create (or replace) the milestone list for an injury.

    Unknown protocol types fall back to the default template. Raises
    ``INJURY_NOT_FOUND`` when the injury does not exist.
    """
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    milestones = await run_in_repo(
        db_path, _initialize_tx, iid, protocol_type, custom_milestones, expected_version, clock.now_iso()
    )
    _invalidate(iid)
    logger.info("recovery protocol initialized injury_id=%s type=%s milestones=%d", iid, protocol_type, len(milestones))
    return milestones


def _coerce_entry(raw: Mapping[str, Any] | AdherenceEntry, *, now: _dt.datetime) -> AdherenceEntry:
    if isinstance(raw, AdherenceEntry):
        return raw
    etype = str(raw.get("type") or "").strip().lower()
    if etype not in ENTRY_TYPES:
        raise MedicalWorkflowError(INVALID_INPUT, f"Invalid adherence type: {raw.get('type')!r}", {"type": raw.get("type")})
    activity = str(raw.get("activity") or "").strip()
    if not activity:
        raise MedicalWorkflowError(INVALID_INPUT, "activity is required", {"activity": raw.get("activity")})
    when = raw.get("date")
    try:
        date_iso = clock.to_datetime(when).isoformat() if when is not None else now.isoformat()
    except ValueError as exc:
        raise MedicalWorkflowError(INVALID_INPUT, str(exc), {"date": when}) from exc
    metrics: Dict[str, float] = {}
    for k, v in dict(raw.get("metrics") or {}).items():
        try:
            metrics[str(k)] = float(v)
        except (TypeError, ValueError):
            continue
    return AdherenceEntry(
        date=date_iso,
        activity=activity,
        type=etype,
        completed=bool(raw.get("completed")),
        notes=raw.get("notes"),
        metrics=metrics,
    )


async def record_adherence(
    injury_id: str,
    entry: Mapping[str, Any] | AdherenceEntry,
    *,
    db_path: str,
    expected_version: Optional[int] = None,
) -> AdherenceEntry:
    """Append an adherence entry; a completed ``milestone`` entry completes that milestone.

    Not idempotent. After a ``TimeoutError`` the entry may still have been
    stored, so check ``get_recovery_timeline`` before retrying.
    """
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    now = clock.now()
    adherence = _coerce_entry(entry, now=now)
    _, finalized = await run_in_repo(db_path, _record_adherence_tx, iid, adherence, expected_version, now)
    _invalidate(iid)
    if finalized:
        await _on_finalized(iid, db_path=db_path)
    return adherence


async def complete_milestone(injury_id: str, milestone_name: str, *, db_path: str) -> bool:
    """Complete a milestone. Idempotent: returns False when nothing changed."""
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    changed, finalized = await run_in_repo(db_path, _complete_milestone_tx, iid, milestone_name, clock.now_iso())
    if changed:
        _invalidate(iid)
    if finalized:
        await _on_finalized(iid, db_path=db_path)
    return changed


# ---------------------------------------------------------------------------
# Metrics / alerts (pure)
# ---------------------------------------------------------------------------


def estimate_expected_duration(injury_type: str, severity: int) -> int:
    lowered = str(injury_type or "").lower()
    base = config.DEFAULT_BASE_DURATION_DAYS
    for key, days in config.BASE_DURATION_DAYS:
        if key in lowered:
            base = days
            break
    return int(round(base * float(severity) / config.DURATION_SEVERITY_DIVISOR))


def _window_compliance(entries: Sequence[AdherenceEntry], etype: str, since: _dt.datetime) -> float:
    recent = []
    for e in entries:
        when = clock.optional_datetime(e.date)
        if e.type == etype and when is not None and when >= since:
            recent.append(e)
    return _pct(sum(1 for e in recent if e.completed), len(recent), empty=config.NO_ENTRIES_COMPLIANCE)


def identify_risk_factors(
    milestone_completion: float,
    exercise_compliance: float,
    assessment_compliance: float,
    days_active: int,
    expected_duration: int,
) -> List[str]:
    risks: List[str] = []
    if milestone_completion < config.SLOW_MILESTONE_BELOW:
        risks.append(config.RISK_SLOW_MILESTONES)
    if exercise_compliance < config.POOR_EXERCISE_BELOW:
        risks.append(config.RISK_POOR_EXERCISE)
    if assessment_compliance < config.MISSED_ASSESSMENT_BELOW:
        risks.append(config.RISK_MISSED_ASSESSMENTS)
    if days_active > expected_duration * config.EXTENDED_RECOVERY_FACTOR:
        risks.append(config.RISK_EXTENDED_RECOVERY)
    return risks


def recommendations_for(risk_factors: Sequence[str], overall_compliance: float) -> List[str]:
    out: List[str] = []
    for risk in risk_factors:
        out.extend(config.RECOMMENDATIONS_BY_RISK.get(risk, ()))
    if overall_compliance < config.LOW_OVERALL_BELOW:
        out.extend(config.LOW_OVERALL_RECOMMENDATIONS)
    return out


def compute_adherence_metrics(
    injury_id: str,
    injury: Optional[Injury],
    state: Optional[RecoveryState],
    *,
    now: _dt.datetime,
) -> AdherenceMetrics:
    milestones = state.milestones if state else ()
    entries = state.entries if state else ()

    milestone_completion = _pct(
        sum(1 for m in milestones if m.is_completed), len(milestones), empty=0.0
    )
    since = now - _dt.timedelta(days=config.COMPLIANCE_WINDOW_DAYS)
    exercise = _window_compliance(entries, ENTRY_EXERCISE, since)
    assessment = _window_compliance(entries, ENTRY_ASSESSMENT, since)
    overall = round((milestone_completion + exercise + assessment) / 3.0, 2)

    if injury is not None and injury.injury_date:
        days_active = max(0, clock.days_between(injury.injury_date, now))
        if injury.expected_return_date:
            expected = clock.days_between(injury.injury_date, injury.expected_return_date)
        else:
            expected = estimate_expected_duration(injury.injury_type, injury.severity)
        recovered = injury.recovery_status == schema.RECOVERY_RECOVERED
        player_id = injury.player_id
    else:
        days_active = 0
        expected = config.DEFAULT_BASE_DURATION_DAYS
        recovered = False
        player_id = ""

    risks = identify_risk_factors(milestone_completion, exercise, assessment, days_active, expected)
    return AdherenceMetrics(
        player_id=player_id,
        injury_id=injury_id,
        protocol_id=f"protocol-{injury_id}",
        overall_compliance=overall,
        milestone_completion=milestone_completion,
        exercise_compliance=exercise,
        assessment_compliance=assessment,
        days_active=days_active,
        expected_duration=int(expected),
        actual_duration=days_active if recovered else None,
        risk_factors=tuple(risks),
        recommendations=tuple(recommendations_for(risks, overall)),
        last_updated=now.isoformat(),
    )


def _overdue_severity(days_overdue: int) -> str:
    if days_overdue > config.OVERDUE_HIGH_DAYS:
        return "high"
    if days_overdue > config.OVERDUE_MEDIUM_DAYS:
        return "medium"
    return "low"


def build_alerts(
    milestones: Sequence[RecoveryMilestone],
    metrics: AdherenceMetrics,
    *,
    now: _dt.datetime,
) -> List[AdherenceAlert]:
    alerts: List[AdherenceAlert] = []
    for m in milestones:
        target = clock.optional_datetime(m.target_date)
        if m.is_completed or target is None or target >= now:
            continue
        days_overdue = int((now - target).total_seconds() // 86400)
        alerts.append(
            AdherenceAlert(
                type=config.ALERT_MILESTONE_OVERDUE,
                severity=_overdue_severity(days_overdue),
                message=f'Milestone "{m.name}" is {days_overdue} days overdue',
                action=config.ACTION_MILESTONE_OVERDUE,
            )
        )

    if metrics.exercise_compliance < config.POOR_EXERCISE_BELOW:
        alerts.append(
            AdherenceAlert(
                type=config.ALERT_POOR_COMPLIANCE,
                severity="high" if metrics.exercise_compliance < config.POOR_EXERCISE_HIGH_BELOW else "medium",
                message=f"Exercise compliance is low ({metrics.exercise_compliance:.0f}%)",
                action=config.ACTION_POOR_COMPLIANCE,
            )
        )

    if metrics.assessment_compliance < config.MISSED_ASSESSMENT_BELOW:
        alerts.append(
            AdherenceAlert(
                type=config.ALERT_MISSED_ASSESSMENT,
                severity="high" if metrics.assessment_compliance < config.MISSED_ASSESSMENT_HIGH_BELOW else "medium",
                message=f"Assessment compliance is low ({metrics.assessment_compliance:.0f}%)",
                action=config.ACTION_MISSED_ASSESSMENT,
            )
        )

    if metrics.days_active > metrics.expected_duration * config.PROTOCOL_DEVIATION_FACTOR:
        alerts.append(
            AdherenceAlert(
                type=config.ALERT_PROTOCOL_DEVIATION,
                severity="high",
                message="Recovery duration significantly exceeds expected timeline",
                action=config.ACTION_PROTOCOL_DEVIATION,
            )
        )
    return alerts


def estimate_completion(milestones: Sequence[RecoveryMilestone], *, now: _dt.datetime) -> _dt.datetime:
    """Last target date shifted by the average lateness of completed milestones."""
    if not milestones:
        return now
    last = milestones[-1]
    last_target = clock.optional_datetime(last.target_date) or now
    done = [m for m in milestones if m.is_completed]
    if len(done) == len(milestones):
        return clock.optional_datetime(last.completed_date) or now
    if not done:
        return last_target
    total_delay = _dt.timedelta(0)
    for m in done:
        completed_at = clock.optional_datetime(m.completed_date)
        target = clock.optional_datetime(m.target_date)
        if completed_at is None or target is None:
            continue
        total_delay += max(_dt.timedelta(0), completed_at - target)
    return last_target + total_delay / len(done)


# ---------------------------------------------------------------------------
# Public API: reads
# ---------------------------------------------------------------------------


async def _safe_context(injury_id: str, *, db_path: str) -> Tuple[Optional[Injury], Optional[RecoveryState]]:
    try:
        return await run_in_repo(db_path, _read_context, injury_id)
    except (sqlite3.Error, asyncio.TimeoutError, OSError):
        _warn_limited("RECOVERY_READ_FAILED", f"injury_id={injury_id!r}")
        return None, None


async def get_recovery_milestones(injury_id: str, *, db_path: str) -> List[RecoveryMilestone]:
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    c = cache.get_cache()
    key, _ = _cache_keys(iid)
    cached = c.get(key)
    if cached is not None:
        return [RecoveryMilestone.from_dict(m) for m in cached]
    _, state = await _safe_context(iid, db_path=db_path)
    milestones = list(state.milestones) if state else []
    if state is not None:
        c.set(key, [m.to_dict() for m in milestones], config.MILESTONES_TTL_S)
    return milestones


async def calculate_adherence_metrics(injury_id: str, *, db_path: str) -> AdherenceMetrics:
    """Adherence metrics; a missing injury or state yields neutral defaults."""
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    c = cache.get_cache()
    _, key = _cache_keys(iid)
    cached = c.get(key)
    if cached is not None:
        return AdherenceMetrics.from_dict(cached)

    injury, state = await _safe_context(iid, db_path=db_path)
    metrics = compute_adherence_metrics(iid, injury, state, now=clock.now())
    c.set(key, metrics.to_dict(), config.METRICS_TTL_S)
    return metrics


async def generate_adherence_alerts(injury_id: str, *, db_path: str) -> List[AdherenceAlert]:
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    _, state = await _safe_context(iid, db_path=db_path)
    metrics = await calculate_adherence_metrics(iid, db_path=db_path)
    return build_alerts(state.milestones if state else (), metrics, now=clock.now())


async def get_recovery_timeline(injury_id: str, *, db_path: str) -> RecoveryTimeline:
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    _, state = await _safe_context(iid, db_path=db_path)
    milestones = state.milestones if state else ()
    now = clock.now()
    return RecoveryTimeline(
        injury_id=iid,
        milestones=milestones,
        entries=state.entries if state else (),
        progress_percentage=_pct(sum(1 for m in milestones if m.is_completed), len(milestones), empty=0.0),
        estimated_completion=estimate_completion(milestones, now=now).isoformat(),
    )


async def get_recovery_analysis(injury_id: str, *, db_path: str) -> Dict[str, Any]:
    """Targeted read: injury + metrics + alerts + timeline. Raises ``INJURY_NOT_FOUND``."""
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    injury, _ = await run_in_repo(db_path, _read_context, iid)
    if injury is None:
        raise MedicalWorkflowError(INJURY_NOT_FOUND, f"Injury not found: {iid}", {"injury_id": iid})
    metrics, alerts, timeline = await asyncio.gather(
        calculate_adherence_metrics(iid, db_path=db_path),
        generate_adherence_alerts(iid, db_path=db_path),
        get_recovery_timeline(iid, db_path=db_path),
    )
    return {
        "injury": injury.to_row(),
        "metrics": metrics.to_dict(),
        "alerts": [a.to_dict() for a in alerts],
        "timeline": timeline.to_dict(),
    }
