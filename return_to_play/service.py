from __future__ import annotations

"""Return-to-play clearance workflow.

Protocol lifecycle
------------------
- ``create_protocol``: one protocol per injury (idempotent), phase ``rest``,
  clearance ``no_contact``, status ``initiated``.
- ``advance_phase``: only to the immediate successor of the current phase.
  Updates the clearance level from the phase table and stamps the milestone of
  the phase being left.
- ``conduct_clearance_assessment``: scores the assessment, stores it, and
  moves the protocol's clearance level. ``cleared`` completes the protocol.
- ``process_automated_clearance`` / ``make_clearance_decision``: apply a
  clearance level backed by the latest assessment or by an officer.

Closed protocols (completed, failed, paused) reject every mutation with
``PROTOCOL_CLOSED``. All protocol writes are version-checked.
"""

import dataclasses
import datetime as _dt
import logging
import math
import sqlite3
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import clock
import schema
from errors import (
    CLEARANCE_NOT_SUPPORTED,
    CONCURRENT_MODIFICATION,
    INJURY_NOT_FOUND,
    INVALID_INPUT,
    INVALID_PHASE_TRANSITION,
    NO_ASSESSMENT_AVAILABLE,
    PROTOCOL_CLOSED,
    PROTOCOL_NOT_FOUND,
    PROTOCOL_TEMPLATE_NOT_FOUND,
    MedicalWorkflowError,
)
from injury import repo as inj_repo
from medical_repo import MedicalRepo, run_in_repo

from . import config
from . import repo as rtp_repo
from .types import (
    CLEARED,
    CONDITIONAL,
    DECISIONS,
    NOT_CLEARED,
    PASS,
    STATUS_COMPLETED,
    STATUS_INITIATED,
    STATUS_IN_PROGRESS,
    AssessmentInput,
    ClearanceAssessment,
    ClearanceDecision,
    ClearanceLevel,
    ClearanceOutcome,
    NextMilestone,
    Phase,
    PHASE_ORDER,
    ProgressionMilestone,
    Protocol,
    ProtocolProgress,
    ProtocolTemplate,
    RehabSession,
    ReturnToPlayDecision,
)

logger = logging.getLogger(__name__)


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


# ---------------------------------------------------------------------------
# Templates / phase rules (pure)
# ---------------------------------------------------------------------------


def list_templates() -> List[ProtocolTemplate]:
    return list(config.PROTOCOL_TEMPLATES.values())


def get_template(template_id: str) -> ProtocolTemplate:
    key = str(template_id or "").strip().lower()
    template = config.PROTOCOL_TEMPLATES.get(key)
    if template is None:
        raise MedicalWorkflowError(
            PROTOCOL_TEMPLATE_NOT_FOUND,
            f"Protocol template {template_id} not found",
            {"template_id": template_id, "available": sorted(config.PROTOCOL_TEMPLATES)},
        )
    return template


def sessions_required(template: ProtocolTemplate) -> int:
    return sum(math.ceil(p.estimated_days / config.SESSION_EVERY_DAYS) for p in template.phases)


def clearance_for_phase(phase: Phase) -> ClearanceLevel:
    return config.PHASE_CLEARANCE[phase]


def is_valid_progression(current: Phase, new: Phase) -> bool:
    """True only for the immediate successor: no skipping, no going back."""
    return current.successor is new


def parse_phase(value: Any) -> Phase:
    if isinstance(value, Phase):
        return value
    try:
        return Phase(str(value or "").strip().lower())
    except ValueError as exc:
        raise MedicalWorkflowError(
            INVALID_INPUT,
            f"Unknown phase: {value!r}",
            {"phase": value, "allowed": [p.value for p in PHASE_ORDER]},
        ) from exc


def parse_clearance_level(value: Any) -> ClearanceLevel:
    if isinstance(value, ClearanceLevel):
        return value
    try:
        return ClearanceLevel(str(value or "").strip().lower())
    except ValueError as exc:
        raise MedicalWorkflowError(
            INVALID_INPUT,
            f"Unknown clearance level: {value!r}",
            {"clearance_level": value, "allowed": [c.value for c in ClearanceLevel]},
        ) from exc


def assessment_score(results: Sequence[Any]) -> int:
    """Mean of per-result scores (pass 100, partial 50, anything else 0)."""
    if not results:
        return 0
    total = 0
    for r in results:
        outcome = r.get("result") if isinstance(r, Mapping) else r
        total += config.RESULT_SCORES.get(str(outcome or "").lower(), 0)
    return int(round(total / len(results)))


def adherence_score(session: RehabSession) -> float:
    score = config.ADHERENCE_BASE
    if len(session.exercises_completed) >= config.ADHERENCE_EXERCISES_MIN:
        score += config.ADHERENCE_EXERCISES_BONUS
    if session.session_rating is not None and session.session_rating >= config.ADHERENCE_RATING_MIN:
        score += config.ADHERENCE_RATING_BONUS
    pre, post = session.pain_level_pre, session.pain_level_post
    if pre is not None and post is not None and post < pre:
        score += config.ADHERENCE_PAIN_BONUS
    return min(config.ADHERENCE_MAX, score)


# ---------------------------------------------------------------------------
# Clearance evaluation (pure)
# ---------------------------------------------------------------------------


def medical_criteria_met(inputs: AssessmentInput) -> bool:
    return (
        inputs.structural_healing == config.HEALING_COMPLETE
        and inputs.range_of_motion >= config.FULL_ROM_MIN
        and inputs.strength >= config.FULL_STRENGTH_MIN
        and inputs.psych_readiness >= config.FULL_PSYCH_MIN
    )


def evaluate_clearance(inputs: AssessmentInput, *, now: _dt.datetime) -> ClearanceOutcome:
    follow_up = (now + _dt.timedelta(days=config.FOLLOW_UP_DAYS)).isoformat()
    if medical_criteria_met(inputs):
        if all(t.status == PASS for t in inputs.field_tests):
            return ClearanceOutcome(
                decision=CLEARED,
                level=ClearanceLevel.GAME_READY,
                rationale=config.RATIONALE_FULL,
                follow_up_required=False,
            )
        return ClearanceOutcome(
            decision=CONDITIONAL,
            level=ClearanceLevel.LIMITED_CONTACT,
            rationale=config.RATIONALE_PERFORMANCE_DEFICIT,
            conditions=config.CONDITIONS_PERFORMANCE_DEFICIT,
            next_assessment_date=follow_up,
        )
    if inputs.range_of_motion >= config.LIMITED_ROM_MIN and inputs.pain_level <= config.LIMITED_PAIN_MAX:
        return ClearanceOutcome(
            decision=CONDITIONAL,
            level=ClearanceLevel.NO_CONTACT,
            rationale=config.RATIONALE_LIMITED,
            restrictions=config.RESTRICTIONS_LIMITED,
            next_assessment_date=follow_up,
        )
    return ClearanceOutcome(
        decision=NOT_CLEARED,
        level=ClearanceLevel.NO_CONTACT,
        rationale=config.RATIONALE_NONE,
        restrictions=config.RESTRICTIONS_NONE,
        next_assessment_date=follow_up,
    )


def reinjury_risk(inputs: AssessmentInput) -> Tuple[float, List[str]]:
    deficit = 100.0 - (inputs.range_of_motion + inputs.strength) / 2.0
    healing = config.RISK_HEALING_PENALTY.get(inputs.structural_healing, config.RISK_HEALING_PENALTY["incomplete"])
    risk = (
        deficit * config.RISK_DEFICIT_WEIGHT
        + inputs.fear_of_reinjury * config.RISK_FEAR_WEIGHT
        + healing
        + inputs.failed_tests * config.RISK_PER_FAILED_TEST
    )

    factors: List[str] = []
    if inputs.strength < config.FULL_STRENGTH_MIN:
        factors.append(config.RISK_FACTOR_STRENGTH)
    if inputs.range_of_motion < config.FULL_ROM_MIN:
        factors.append(config.RISK_FACTOR_ROM)
    if inputs.structural_healing != config.HEALING_COMPLETE:
        factors.append(config.RISK_FACTOR_HEALING)
    if inputs.fear_of_reinjury >= config.RISK_FEAR_NOTABLE:
        factors.append(config.RISK_FACTOR_FEAR)
    if inputs.failed_tests:
        factors.append(config.RISK_FACTOR_TESTS)
    return round(_clamp(risk, 0.0, 100.0), 2), factors


def completion_from_assessment(inputs: AssessmentInput) -> float:
    parts = [(inputs.range_of_motion + inputs.strength) / 2.0, inputs.psych_readiness]
    if inputs.field_tests:
        parts.append(sum(t.percentage_of_baseline for t in inputs.field_tests) / len(inputs.field_tests))
    return float(round(_clamp(sum(parts) / len(parts), 0.0, 100.0)))


def phase_completion(phase: Phase) -> float:
    return round(phase.position / (len(PHASE_ORDER) - 1) * 100.0, 2)


# ---------------------------------------------------------------------------
# Transaction helpers
# ---------------------------------------------------------------------------


def _load(cur: sqlite3.Cursor, protocol_id: str) -> Protocol:
    protocol = rtp_repo.get_protocol(cur, protocol_id)
    if protocol is None:
        raise MedicalWorkflowError(PROTOCOL_NOT_FOUND, f"Protocol {protocol_id} not found", {"protocol_id": protocol_id})
    return protocol


def _load_open(cur: sqlite3.Cursor, protocol_id: str, expected_version: Optional[int] = None) -> Protocol:
    protocol = _load(cur, protocol_id)
    if protocol.is_closed:
        raise MedicalWorkflowError(
            PROTOCOL_CLOSED,
            f"Protocol {protocol_id} is {protocol.status}",
            {"protocol_id": protocol_id, "status": protocol.status},
        )
    if expected_version is not None and int(expected_version) != protocol.version:
        raise MedicalWorkflowError(
            CONCURRENT_MODIFICATION,
            f"Protocol {protocol_id} changed (version {protocol.version})",
            {"protocol_id": protocol_id, "expected_version": expected_version, "version": protocol.version},
        )
    return protocol


def _save(cur: sqlite3.Cursor, before: Protocol, after: Protocol, *, now: str) -> Protocol:
    if not rtp_repo.update_protocol(cur, after, expected_version=before.version, now=now):
        raise MedicalWorkflowError(
            CONCURRENT_MODIFICATION,
            f"Protocol {before.protocol_id} was modified concurrently",
            {"protocol_id": before.protocol_id, "expected_version": before.version},
        )
    return dataclasses.replace(after, version=before.version + 1)


def _complete(p: Protocol, *, level: ClearanceLevel, now: str) -> Protocol:
    return dataclasses.replace(
        p,
        status=STATUS_COMPLETED,
        clearance_level=level,
        actual_completion_date=now,
        completion_percentage=100.0,
    )


def _create_tx(
    repo: MedicalRepo,
    injury_id: str,
    template: ProtocolTemplate,
    medical_officer_id: str,
    supervising_trainer_id: Optional[str],
    now: _dt.datetime,
) -> Tuple[Protocol, bool]:
    with repo.transaction() as cur:
        existing = rtp_repo.get_protocol_by_injury(cur, injury_id)
        if existing is not None:
            return existing, False
        injury = inj_repo.get_injury(cur, injury_id)
        if injury is None:
            raise MedicalWorkflowError(INJURY_NOT_FOUND, f"Injury not found: {injury_id}", {"injury_id": injury_id})

        protocol = Protocol(
            protocol_id=f"RTP_{uuid.uuid4().hex}",
            player_id=injury.player_id,
            injury_id=injury_id,
            template_id=template.id,
            status=STATUS_INITIATED,
            current_phase=Phase.REST,
            clearance_level=clearance_for_phase(Phase.REST),
            medical_officer_id=medical_officer_id,
            supervising_trainer_id=supervising_trainer_id,
            start_date=now.isoformat(),
            expected_completion_date=(now + _dt.timedelta(days=template.estimated_duration_days)).isoformat(),
            sessions_required=sessions_required(template),
            milestones=tuple(ProgressionMilestone(p.phase.value, p.name) for p in template.phases),
        )
        rtp_repo.insert_protocol(cur, protocol, now=now.isoformat())
        return protocol, True


def _advance_tx(
    repo: MedicalRepo,
    protocol_id: str,
    new_phase: Phase,
    results: Sequence[Any],
    officer: str,
    notes: Optional[str],
    expected_version: Optional[int],
    now: str,
) -> Protocol:
    with repo.transaction() as cur:
        p = _load_open(cur, protocol_id, expected_version)
        if not is_valid_progression(p.current_phase, new_phase):
            raise MedicalWorkflowError(
                INVALID_PHASE_TRANSITION,
                f"Invalid phase progression from {p.current_phase.value} to {new_phase.value}",
                {
                    "protocol_id": protocol_id,
                    "current_phase": p.current_phase.value,
                    "requested_phase": new_phase.value,
                    "allowed_phase": p.current_phase.successor.value if p.current_phase.successor else None,
                },
            )

        score = assessment_score(results)
        milestones = tuple(
            dataclasses.replace(
                m, completed_date=now, assessment_score=score, notes=notes, clearing_officer=officer
            )
            if m.phase_id == p.current_phase.value
            else m
            for m in p.milestones
        )
        sessions, _ = rtp_repo.session_adherence_stats(cur, protocol_id)
        after = dataclasses.replace(
            p,
            current_phase=new_phase,
            status=STATUS_IN_PROGRESS,
            clearance_level=clearance_for_phase(new_phase),
            milestones=milestones,
            sessions_completed=sessions,
            completion_percentage=max(p.completion_percentage, phase_completion(new_phase)),
        )
        return _save(cur, p, after, now=now)


def _session_tx(repo: MedicalRepo, session: RehabSession, now: str) -> RehabSession:
    with repo.transaction() as cur:
        p = _load_open(cur, session.protocol_id)
        session_id = rtp_repo.insert_session(cur, session, now=now)
        count, avg = rtp_repo.session_adherence_stats(cur, session.protocol_id)
        _save(
            cur,
            p,
            dataclasses.replace(p, compliance_score=round(avg, 2), sessions_completed=count),
            now=now,
        )
        return dataclasses.replace(session, session_id=session_id)


def _read_protocol(repo: MedicalRepo, protocol_id: str) -> Tuple[Protocol, List[RehabSession]]:
    with repo.read() as cur:
        return _load(cur, protocol_id), rtp_repo.list_sessions(cur, protocol_id)


def _find_by_injury(repo: MedicalRepo, injury_id: str) -> Optional[Protocol]:
    with repo.read() as cur:
        return rtp_repo.get_protocol_by_injury(cur, injury_id)


def _assessment_tx(
    repo: MedicalRepo,
    protocol_id: str,
    assessor: Dict[str, Any],
    inputs: AssessmentInput,
    now: _dt.datetime,
) -> Tuple[ClearanceAssessment, Protocol]:
    now_iso = now.isoformat()
    with repo.transaction() as cur:
        p = _load_open(cur, protocol_id)
        outcome = evaluate_clearance(inputs, now=now)
        risk, factors = reinjury_risk(inputs)
        assessment = ClearanceAssessment(
            assessment_id=f"ASMT_{uuid.uuid4().hex}",
            protocol_id=p.protocol_id,
            player_id=p.player_id,
            injury_id=p.injury_id,
            assessment_date=now_iso,
            assessor=assessor,
            inputs=inputs,
            reinjury_risk=risk,
            risk_factors=tuple(factors),
            outcome=outcome,
        )
        rtp_repo.insert_assessment(cur, assessment, now=now_iso)

        if outcome.decision == CLEARED:
            after = _complete(p, level=outcome.level, now=now_iso)
        else:
            after = dataclasses.replace(
                p, clearance_level=outcome.level, completion_percentage=completion_from_assessment(inputs)
            )
        return assessment, _save(cur, p, after, now=now_iso)


def _automated_clearance_tx(
    repo: MedicalRepo,
    protocol_id: str,
    level: ClearanceLevel,
    conditions: Tuple[str, ...],
    now: str,
) -> ReturnToPlayDecision:
    with repo.transaction() as cur:
        p = _load_open(cur, protocol_id)
        latest = rtp_repo.get_latest_assessment(cur, protocol_id)
        if latest is None:
            raise MedicalWorkflowError(
                NO_ASSESSMENT_AVAILABLE,
                "No assessment available for clearance decision",
                {"protocol_id": protocol_id},
            )
        supported = latest.outcome.level
        if level.rank > supported.rank:
            raise MedicalWorkflowError(
                CLEARANCE_NOT_SUPPORTED,
                f"Latest assessment supports {supported.value}, not {level.value}",
                {"protocol_id": protocol_id, "requested": level.value, "supported": supported.value},
            )

        if level is ClearanceLevel.GAME_READY:
            after = _complete(p, level=level, now=now)
        else:
            after = dataclasses.replace(p, clearance_level=level)
        _save(cur, p, after, now=now)

        return ReturnToPlayDecision(
            decision_id=f"RTPD_{uuid.uuid4().hex}",
            player_id=p.player_id,
            injury_id=p.injury_id,
            protocol_id=p.protocol_id,
            decision_date=now,
            clearance_level=level,
            final_assessment=latest,
            required_approvals=config.REQUIRED_APPROVALS.get(level, ()),
            activity_restrictions=() if level is ClearanceLevel.GAME_READY else config.RESTRICTED_ACTIVITY,
            monitoring_requirements=config.MONITORING_REQUIREMENTS,
            conditions=conditions,
            emergency_protocol=config.EMERGENCY_PROTOCOL,
            return_to_play_date=now if level is ClearanceLevel.GAME_READY else None,
        )


def _decision_tx(
    repo: MedicalRepo,
    protocol_id: str,
    decision: str,
    level: ClearanceLevel,
    now: str,
) -> Tuple[Protocol, List[RehabSession]]:
    with repo.transaction() as cur:
        p = _load_open(cur, protocol_id)
        if decision == CLEARED:
            after = _complete(p, level=level, now=now)
        elif decision == NOT_CLEARED:
            after = dataclasses.replace(p, status=STATUS_IN_PROGRESS)
        else:
            after = p
        if after is not p:
            p = _save(cur, p, after, now=now)
        return p, rtp_repo.list_sessions(cur, protocol_id)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_protocol(
    injury_id: str,
    template_id: str = config.DEFAULT_TEMPLATE_ID,
    medical_officer_id: str = "",
    *,
    db_path: str,
    supervising_trainer_id: Optional[str] = None,
) -> Protocol:
    """Create the injury's protocol, or return the existing one unchanged."""
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    officer = str(medical_officer_id or "").strip()
    if not officer:
        raise MedicalWorkflowError(INVALID_INPUT, "medical_officer_id is required", {"medical_officer_id": medical_officer_id})
    template = get_template(template_id)
    protocol, created = await run_in_repo(
        db_path, _create_tx, iid, template, officer, supervising_trainer_id, clock.now()
    )
    if created:
        logger.info(
            "rtp protocol created protocol_id=%s injury_id=%s template=%s",
            protocol.protocol_id,
            iid,
            template.id,
        )
    return protocol


async def get_protocol(protocol_id: str, *, db_path: str) -> Protocol:
    pid = schema.normalize_entity_id(protocol_id, field="protocol_id")
    protocol, _ = await run_in_repo(db_path, _read_protocol, pid)
    return protocol


async def find_protocol_for_injury(injury_id: str, *, db_path: str) -> Optional[Protocol]:
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    return await run_in_repo(db_path, _find_by_injury, iid)


async def advance_phase(
    protocol_id: str,
    new_phase: Any,
    assessment_results: Optional[Sequence[Any]],
    officer: str,
    notes: Optional[str] = None,
    *,
    db_path: str,
    expected_version: Optional[int] = None,
) -> Protocol:
    """Advance to the immediate successor phase.

    Raises ``INVALID_PHASE_TRANSITION`` for any other target, ``PROTOCOL_CLOSED``
    for a closed protocol and ``PROTOCOL_NOT_FOUND`` for an unknown id.
    """
    pid = schema.normalize_entity_id(protocol_id, field="protocol_id")
    phase = parse_phase(new_phase)
    protocol = await run_in_repo(
        db_path,
        _advance_tx,
        pid,
        phase,
        list(assessment_results or ()),
        str(officer or "").strip(),
        notes,
        expected_version,
        clock.now_iso(),
    )
    logger.info(
        "rtp phase advanced protocol_id=%s phase=%s clearance=%s",
        pid,
        protocol.current_phase.value,
        protocol.clearance_level.value,
    )
    return protocol


def _coerce_session(protocol_id: str, raw: Mapping[str, Any], *, now: str) -> RehabSession:
    payload = dict(raw)
    payload["protocolId"] = protocol_id
    when = payload.get("sessionDate")
    try:
        payload["sessionDate"] = clock.to_datetime(when).isoformat() if when else now
    except ValueError as exc:
        raise MedicalWorkflowError(INVALID_INPUT, str(exc), {"sessionDate": when}) from exc
    session = RehabSession.from_dict(payload)
    if session.duration_minutes < 0:
        raise MedicalWorkflowError(INVALID_INPUT, "durationMinutes must be >= 0", {"durationMinutes": session.duration_minutes})
    return dataclasses.replace(session, adherence_score=adherence_score(session))


async def record_rehabilitation_session(
    protocol_id: str,
    session: Mapping[str, Any],
    *,
    db_path: str,
) -> RehabSession:
    pid = schema.normalize_entity_id(protocol_id, field="protocol_id")
    now = clock.now_iso()
    saved = await run_in_repo(db_path, _session_tx, _coerce_session(pid, session, now=now), now)
    logger.debug("rtp session recorded protocol_id=%s adherence=%.0f", pid, saved.adherence_score)
    return saved


def _phase_start(p: Protocol) -> str:
    prev_index = p.current_phase.position - 1
    if prev_index >= 0:
        prev = PHASE_ORDER[prev_index].value
        for m in p.milestones:
            if m.phase_id == prev and m.completed_date:
                return m.completed_date
    return p.start_date


def _recent_assessments(sessions: Sequence[RehabSession]) -> Tuple[Dict[str, Any], ...]:
    marked = [s for s in sessions if s.is_milestone_session and s.milestone_assessment_results]
    return tuple(
        {
            "date": s.session_date,
            "type": s.session_type,
            "result": str(s.milestone_assessment_results[0].get("result") or "partial"),
            "notes": s.notes,
        }
        for s in marked[-config.RECENT_ASSESSMENTS_LIMIT:]
    )


def compute_progress(p: Protocol, sessions: Sequence[RehabSession], *, now: _dt.datetime) -> ProtocolProgress:
    days_since_start = max(0, clock.days_between(p.start_date, now))
    remaining = max(0, clock.days_between(now, p.expected_completion_date))

    span = days_since_start + remaining
    expected_pct = (days_since_start / span * 100.0) if span > 0 else config.NO_EXPECTED_DATE_PROGRESS_PCT
    on_track = p.completion_percentage >= expected_pct - config.ON_TRACK_TOLERANCE_PCT

    phase_start = clock.to_datetime(_phase_start(p))
    in_phase = 0
    for s in sessions:
        when = clock.optional_datetime(s.session_date)
        if when is not None and when >= phase_start:
            in_phase += 1
    phase_progress = min(100.0, round(in_phase / config.SESSIONS_PER_PHASE_ESTIMATE * 100.0, 2))

    nxt = p.current_phase.successor
    next_milestone = None
    if nxt is not None:
        next_milestone = NextMilestone(
            name=f"Advance to {nxt.value.replace('_', ' ')}",
            target_date=(now + _dt.timedelta(days=config.NEXT_MILESTONE_DAYS)).isoformat(),
            requirements=config.NEXT_MILESTONE_REQUIREMENTS,
        )

    return ProtocolProgress(
        protocol_id=p.protocol_id,
        current_phase=p.current_phase,
        phase_progress=phase_progress,
        overall_progress=p.completion_percentage,
        days_since_start=days_since_start,
        estimated_days_remaining=remaining,
        is_on_track=on_track,
        next_milestone=next_milestone,
        recent_assessments=_recent_assessments(sessions),
    )


async def get_protocol_progress(protocol_id: str, *, db_path: str) -> ProtocolProgress:
    pid = schema.normalize_entity_id(protocol_id, field="protocol_id")
    protocol, sessions = await run_in_repo(db_path, _read_protocol, pid)
    return compute_progress(protocol, sessions, now=clock.now())


async def conduct_clearance_assessment(
    protocol_id: str,
    assessor: Mapping[str, Any],
    assessment_data: Mapping[str, Any] | AssessmentInput,
    *,
    db_path: str,
) -> ClearanceAssessment:
    """Score and store a clearance assessment, updating the protocol's clearance."""
    pid = schema.normalize_entity_id(protocol_id, field="protocol_id")
    inputs = assessment_data if isinstance(assessment_data, AssessmentInput) else AssessmentInput.from_dict(assessment_data)
    assessment, protocol = await run_in_repo(db_path, _assessment_tx, pid, dict(assessor or {}), inputs, clock.now())
    logger.info(
        "rtp clearance assessed protocol_id=%s decision=%s level=%s reinjury_risk=%.1f",
        pid,
        assessment.outcome.decision,
        assessment.outcome.level.value,
        assessment.reinjury_risk,
    )
    if protocol.status == STATUS_COMPLETED:
        logger.info("rtp protocol completed protocol_id=%s", pid)
    return assessment


async def process_automated_clearance(
    protocol_id: str,
    level: Any,
    conditions: Optional[Sequence[str]] = None,
    *,
    db_path: str,
) -> ReturnToPlayDecision:
    """Apply ``level`` if the latest stored assessment supports it."""
    pid = schema.normalize_entity_id(protocol_id, field="protocol_id")
    clearance = parse_clearance_level(level)
    decision = await run_in_repo(
        db_path,
        _automated_clearance_tx,
        pid,
        clearance,
        tuple(str(c) for c in conditions or ()),
        clock.now_iso(),
    )
    logger.info("rtp automated clearance protocol_id=%s level=%s", pid, clearance.value)
    return decision


async def make_clearance_decision(
    protocol_id: str,
    deciding_officer: str,
    decision: str,
    clearance_level: Any,
    rationale: str,
    *,
    db_path: str,
    restrictions: Optional[Sequence[str]] = None,
    conditions: Optional[Sequence[str]] = None,
) -> ClearanceDecision:
    """Record an officer's decision. ``cleared`` must be at ``game_ready`` and completes the protocol."""
    pid = schema.normalize_entity_id(protocol_id, field="protocol_id")
    kind = str(decision or "").strip().lower()
    if kind not in DECISIONS:
        raise MedicalWorkflowError(INVALID_INPUT, f"Invalid decision: {decision!r}", {"allowed": sorted(DECISIONS)})
    level = parse_clearance_level(clearance_level)
    if kind == CLEARED and level is not ClearanceLevel.GAME_READY:
        raise MedicalWorkflowError(
            INVALID_INPUT,
            "A cleared decision requires clearance level game_ready",
            {"clearance_level": level.value},
        )

    now = clock.now()
    protocol, sessions = await run_in_repo(db_path, _decision_tx, pid, kind, level, now.isoformat())
    logger.info("rtp clearance decision protocol_id=%s decision=%s", pid, kind)

    return ClearanceDecision(
        player_id=protocol.player_id,
        protocol_id=pid,
        decision=kind,
        clearance_level=level,
        deciding_officer=str(deciding_officer or ""),
        rationale=str(rationale or ""),
        restrictions=tuple(restrictions or ()),
        conditions=tuple(conditions or ()),
        next_review_date=(
            None if kind == CLEARED else (now + _dt.timedelta(days=config.FOLLOW_UP_DAYS)).isoformat()
        ),
        supporting_data={
            "assessmentResults": [r for s in sessions for r in s.milestone_assessment_results],
            "sessionsCompleted": protocol.sessions_completed,
            "psychologicalReadiness": int(round((protocol.compliance_score + protocol.completion_percentage) / 2.0)),
        },
    )
