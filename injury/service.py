from __future__ import annotations

"""Injury subsystem business logic.

Public entrypoints (all coroutines, ``db_path`` keyword):
- record_injury / update_recovery_status / get_injury / list_player_injuries
- record_wellness / set_availability
- load_medical_status: concurrent read of injuries + latest wellness +
  current availability used by the compliance, risk and load engines

Write-back
----------
Every injury write recomputes the player's current availability in the same
transaction (see ``status.derive_availability_status``). Every write also bumps
the player's cache generation (``cache.bump_player_generation``).

Safe defaults
-------------
``load_medical_status`` never raises for collaborator failures: a failed read
is replaced by an empty/None value and reported in ``MedicalStatus.degraded``.
"""

import asyncio
import dataclasses
import logging
import sqlite3
import uuid
from typing import Any, Dict, List, Optional

import cache
import clock
import schema
from errors import INJURY_NOT_FOUND, INVALID_INPUT, MedicalWorkflowError
from medical_repo import MedicalRepo, run_in_repo

from . import config
from . import repo as inj_repo
from . import status as inj_status
from .types import Injury, MedicalStatus, PlayerAvailability, WellnessEntry


logger = logging.getLogger(__name__)
_WARN_COUNTS: Dict[str, int] = {}


def _warn_limited(code: str, msg: str, *, limit: int = 5) -> None:
    n = _WARN_COUNTS.get(code, 0)
    if n < limit:
        logger.warning("%s %s", code, msg, exc_info=True)
    _WARN_COUNTS[code] = n + 1


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _require_player_id(value: Any) -> str:
    try:
        return schema.normalize_player_id(value)
    except ValueError as exc:
        raise MedicalWorkflowError(INVALID_INPUT, str(exc), {"player_id": value}) from exc


def _require_int_in(value: Any, lo: int, hi: int, *, field: str) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError) as exc:
        raise MedicalWorkflowError(INVALID_INPUT, f"{field} must be an integer", {field: value}) from exc
    if v < lo or v > hi:
        raise MedicalWorkflowError(INVALID_INPUT, f"{field} must be in [{lo}, {hi}]", {field: v})
    return v


def _require_text(value: Any, *, field: str) -> str:
    s = str(value or "").strip()
    if not s:
        raise MedicalWorkflowError(INVALID_INPUT, f"{field} is required", {field: value})
    return s


def _require_date(value: Any, *, field: str) -> str:
    try:
        return clock.require_date_iso(value, field=field)
    except ValueError as exc:
        raise MedicalWorkflowError(INVALID_INPUT, str(exc), {field: value}) from exc


# ---------------------------------------------------------------------------
# Transactional building blocks (sync, run on a repo thread)
# ---------------------------------------------------------------------------


def save_injury(cur: sqlite3.Cursor, injury: Injury, *, now: str) -> Injury:
    """Upsert ``injury`` and write back the player's current availability.

    Callers must hold a transaction on ``cur``.
    """
    inj_repo.upsert_injury(cur, injury, now=now)

    injuries = inj_repo.list_injuries_by_player(cur, injury.player_id)
    current = inj_repo.get_current_availability(cur, injury.player_id)
    status, clearance = inj_status.derive_availability_status(injuries, current)

    unchanged = (
        current is not None
        and current.availability_status == status
        and bool(current.medical_clearance_required) == clearance
    )
    if not unchanged:
        reason = config.WRITEBACK_REASON_INJURED if status == schema.INJURED else config.WRITEBACK_REASON_CLEARED
        if current is not None and current.availability_status == status:
            reason = current.reason or reason
        inj_repo.replace_current_availability(
            cur,
            PlayerAvailability(
                player_id=injury.player_id,
                availability_status=status,
                medical_clearance_required=clearance,
                reason=reason,
                effective_date=now[:10],
            ),
            now=now,
        )
    return injury


def _record_injury_tx(repo: MedicalRepo, injury: Injury, now: str) -> Injury:
    with repo.transaction() as cur:
        return save_injury(cur, injury, now=now)


def _update_status_tx(repo: MedicalRepo, injury_id: str, new_status: str, now: str) -> Injury:
    with repo.transaction() as cur:
        current = inj_repo.get_injury(cur, injury_id)
        if current is None:
            raise MedicalWorkflowError(INJURY_NOT_FOUND, f"Injury not found: {injury_id}", {"injury_id": injury_id})
        if current.recovery_status == new_status:
            return current
        return save_injury(cur, dataclasses.replace(current, recovery_status=new_status), now=now)


def _get_injury(repo: MedicalRepo, injury_id: str) -> Optional[Injury]:
    with repo.read() as cur:
        return inj_repo.get_injury(cur, injury_id)


def _list_player_injuries(repo: MedicalRepo, player_id: str) -> List[Injury]:
    with repo.read() as cur:
        return inj_repo.list_injuries_by_player(cur, player_id)


def _latest_wellness(repo: MedicalRepo, player_id: str) -> Optional[WellnessEntry]:
    with repo.read() as cur:
        return inj_repo.get_latest_wellness(cur, player_id)


def _current_availability(repo: MedicalRepo, player_id: str) -> Optional[PlayerAvailability]:
    with repo.read() as cur:
        return inj_repo.get_current_availability(cur, player_id)


def wellness_concerns(entry: WellnessEntry) -> List[str]:
    concerns: List[str] = []
    if entry.sleep_hours < config.CONCERN_SLEEP_HOURS_BELOW:
        concerns.append(config.CONCERN_LABEL_SLEEP)
    if entry.stress_level >= config.CONCERN_STRESS_AT_LEAST:
        concerns.append(config.CONCERN_LABEL_STRESS)
    if entry.soreness_level >= config.CONCERN_SORENESS_AT_LEAST:
        concerns.append(config.CONCERN_LABEL_SORENESS)
    return concerns


def _insert_wellness_tx(repo: MedicalRepo, entry: WellnessEntry, now: str) -> Optional[PlayerAvailability]:
    """Insert the entry; flag load management for concerning values.

    Returns the availability row written, if any. Injured players are left alone.
    """
    with repo.transaction() as cur:
        inj_repo.insert_wellness(cur, entry, now=now)

        concerns = wellness_concerns(entry)
        if not concerns:
            return None
        current = inj_repo.get_current_availability(cur, entry.player_id)
        if current is not None and current.availability_status == schema.INJURED:
            return None
        availability = PlayerAvailability(
            player_id=entry.player_id,
            availability_status=schema.LOAD_MANAGEMENT,
            medical_clearance_required=bool(current.medical_clearance_required) if current else False,
            reason=f"{config.CONCERN_REASON_PREFIX}: {', '.join(concerns)}",
            effective_date=now[:10],
        )
        inj_repo.replace_current_availability(cur, availability, now=now)
        return availability


def _set_availability_tx(repo: MedicalRepo, availability: PlayerAvailability, now: str) -> None:
    with repo.transaction() as cur:
        inj_repo.replace_current_availability(cur, availability, now=now)


async def _write_for_player(player_id: str, db_path: str, fn, *args: Any) -> Any:
    """Run a write for one player, then retire that player's cached read-models.

    The bump also runs when the call raises: a timed-out write may still commit.
    """
    try:
        return await run_in_repo(db_path, fn, *args)
    finally:
        cache.bump_player_generation(player_id)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def record_injury(
    player_id: Any,
    *,
    body_part: str,
    injury_type: str,
    severity: int,
    db_path: str,
    injury_date: Any = None,
    expected_return_date: Any = None,
    injury_id: Optional[str] = None,
) -> Injury:
    """Persist a diagnosed injury (status ``active``)."""
    injury = Injury(
        injury_id=str(injury_id).strip() if injury_id else uuid.uuid4().hex,
        player_id=_require_player_id(player_id),
        body_part=_require_text(body_part, field="body_part"),
        injury_type=_require_text(injury_type, field="injury_type"),
        severity=_require_int_in(severity, config.SEVERITY_MIN, config.SEVERITY_MAX, field="severity"),
        recovery_status=schema.RECOVERY_ACTIVE,
        injury_date=_require_date(injury_date if injury_date is not None else clock.today_iso(), field="injury_date"),
        expected_return_date=(
            _require_date(expected_return_date, field="expected_return_date")
            if expected_return_date is not None
            else None
        ),
    )
    saved = await _write_for_player(injury.player_id, db_path, _record_injury_tx, injury, clock.now_iso())
    logger.info(
        "injury recorded injury_id=%s player_id=%s body_part=%s severity=%s",
        saved.injury_id,
        saved.player_id,
        saved.body_part,
        saved.severity,
    )
    return saved


async def update_recovery_status(injury_id: str, recovery_status: str, *, db_path: str) -> Injury:
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    try:
        new_status = schema.normalize_recovery_status(recovery_status)
    except ValueError as exc:
        raise MedicalWorkflowError(INVALID_INPUT, str(exc), {"recovery_status": recovery_status}) from exc
    updated = await run_in_repo(db_path, _update_status_tx, iid, new_status, clock.now_iso())
    cache.bump_player_generation(updated.player_id)
    logger.info("injury status injury_id=%s status=%s", iid, updated.recovery_status)
    return updated


async def get_injury(injury_id: str, *, db_path: str) -> Injury:
    """Targeted read: raises ``INJURY_NOT_FOUND`` when missing."""
    iid = schema.normalize_entity_id(injury_id, field="injury_id")
    injury = await run_in_repo(db_path, _get_injury, iid)
    if injury is None:
        raise MedicalWorkflowError(INJURY_NOT_FOUND, f"Injury not found: {iid}", {"injury_id": iid})
    return injury


async def find_injury(injury_id: str, *, db_path: str) -> Optional[Injury]:
    return await run_in_repo(db_path, _get_injury, str(injury_id))


async def list_player_injuries(player_id: Any, *, db_path: str) -> List[Injury]:
    pid = _require_player_id(player_id)
    return await run_in_repo(db_path, _list_player_injuries, pid)


async def record_wellness(
    player_id: Any,
    *,
    sleep_hours: float,
    stress_level: int,
    soreness_level: int,
    energy_level: int,
    hydration_level: int,
    db_path: str,
    entry_date: Any = None,
    max_heart_rate: Optional[int] = None,
    notes: Optional[str] = None,
) -> WellnessEntry:
    lo, hi = config.WELLNESS_LEVEL_MIN, config.WELLNESS_LEVEL_MAX
    try:
        sleep = float(sleep_hours)
    except (TypeError, ValueError) as exc:
        raise MedicalWorkflowError(INVALID_INPUT, "sleep_hours must be a number", {"sleep_hours": sleep_hours}) from exc
    if sleep < 0 or sleep > config.SLEEP_HOURS_MAX:
        raise MedicalWorkflowError(INVALID_INPUT, "sleep_hours out of range", {"sleep_hours": sleep})

    hr = None
    if max_heart_rate is not None:
        hr_lo, hr_hi = config.MAX_HEART_RATE_RANGE
        hr = _require_int_in(max_heart_rate, hr_lo, hr_hi, field="max_heart_rate")

    entry = WellnessEntry(
        player_id=_require_player_id(player_id),
        entry_date=_require_date(entry_date if entry_date is not None else clock.today_iso(), field="entry_date"),
        sleep_hours=sleep,
        stress_level=_require_int_in(stress_level, lo, hi, field="stress_level"),
        soreness_level=_require_int_in(soreness_level, lo, hi, field="soreness_level"),
        energy_level=_require_int_in(energy_level, lo, hi, field="energy_level"),
        hydration_level=_require_int_in(hydration_level, lo, hi, field="hydration_level"),
        max_heart_rate=hr,
        notes=notes,
    )
    flagged = await _write_for_player(entry.player_id, db_path, _insert_wellness_tx, entry, clock.now_iso())
    if flagged is not None:
        logger.info("load management set player_id=%s reason=%s", entry.player_id, flagged.reason)
    return entry


async def set_availability(
    player_id: Any,
    availability_status: str,
    *,
    db_path: str,
    reason: Optional[str] = None,
    medical_clearance_required: bool = False,
) -> PlayerAvailability:
    """Staff-set availability (e.g. ``load_management``). Replaces the current row."""
    try:
        status = schema.normalize_availability_status(availability_status)
    except ValueError as exc:
        raise MedicalWorkflowError(
            INVALID_INPUT, str(exc), {"availability_status": availability_status}
        ) from exc
    now = clock.now_iso()
    availability = PlayerAvailability(
        player_id=_require_player_id(player_id),
        availability_status=status,
        medical_clearance_required=bool(medical_clearance_required),
        reason=reason,
        effective_date=now[:10],
    )
    await _write_for_player(availability.player_id, db_path, _set_availability_tx, availability, now)
    return availability


async def _safe_read(read_fn, pid: str, db_path: str, *, default: Any, code: str, note: str, degraded: List[str]) -> Any:
    try:
        return await run_in_repo(db_path, read_fn, pid)
    except (sqlite3.Error, asyncio.TimeoutError, OSError):
        _warn_limited(code, f"player_id={pid!r}")
        degraded.append(note)
        return default


async def load_medical_status(player_id: Any, *, db_path: str) -> MedicalStatus:
    """Concurrently read the player's medical picture with safe defaults.

    Raises ValueError for a malformed player id (callers decide how to degrade).
    """
    pid = schema.normalize_player_id(player_id)
    degraded: List[str] = []
    injuries, wellness, availability = await asyncio.gather(
        _safe_read(
            _list_player_injuries, pid, db_path,
            default=[], code="INJURY_READ_FAILED", note=config.DEGRADED_NOTE_INJURIES, degraded=degraded,
        ),
        _safe_read(
            _latest_wellness, pid, db_path,
            default=None, code="WELLNESS_READ_FAILED", note=config.DEGRADED_NOTE_WELLNESS, degraded=degraded,
        ),
        _safe_read(
            _current_availability, pid, db_path,
            default=None, code="AVAILABILITY_READ_FAILED", note=config.DEGRADED_NOTE_AVAILABILITY, degraded=degraded,
        ),
    )
    return MedicalStatus(
        player_id=pid,
        injuries=tuple(injuries),
        wellness=wellness,
        availability=availability,
        degraded=degraded,
    )
