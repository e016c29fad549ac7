from __future__ import annotations

import datetime as _dt

import pytest

import cache
import clock
from errors import CONCURRENT_MODIFICATION, INJURY_NOT_FOUND, INVALID_INPUT, MedicalWorkflowError
from injury import get_injury, record_injury
from load import calculate_load_management
from medical_repo import MedicalRepo
from recovery import (
    calculate_adherence_metrics,
    complete_milestone,
    compute_adherence_metrics,
    estimate_expected_duration,
    generate_adherence_alerts,
    get_recovery_analysis,
    get_recovery_milestones,
    get_recovery_timeline,
    initialize_recovery_protocol,
    record_adherence,
)
from recovery import config as recovery_config
from recovery import repo as recovery_repo
from recovery.service import build_alerts
from recovery.types import AdherenceMetrics, RecoveryMilestone


async def _injury(db_path, *, injury_id="inj-1", severity=3, injury_date=None, **kw):
    return await record_injury(
        "7",
        body_part=kw.pop("body_part", "knee"),
        injury_type=kw.pop("injury_type", "Sprain"),
        severity=severity,
        injury_id=injury_id,
        injury_date=injury_date,
        db_path=db_path,
        **kw,
    )


def _stored_state(db_path, injury_id):
    with MedicalRepo(db_path) as repo:
        with repo.read() as cur:
            return recovery_repo.get_state(cur, injury_id)


async def test_knee_protocol_has_six_pending_milestones(db_path):
    await _injury(db_path)
    milestones = await initialize_recovery_protocol("inj-1", "knee_injury", db_path=db_path)
    assert len(milestones) == 6
    assert not any(m.is_completed for m in milestones)
    targets = [clock.to_datetime(m.target_date) for m in milestones]
    assert all(a < b for a, b in zip(targets, targets[1:]))
    assert targets[0] == clock.to_datetime("2025-03-01") + _dt.timedelta(days=11.2)
    assert [m.id for m in milestones][:2] == ["milestone-1", "milestone-2"]


async def test_unknown_protocol_type_uses_default_template(db_path):
    await _injury(db_path)
    milestones = await initialize_recovery_protocol("inj-1", "elbow_injury", db_path=db_path)
    assert [m.name for m in milestones] == ["Initial Assessment", "Recovery Phase", "Return to Activity"]


async def test_custom_milestones(db_path):
    await _injury(db_path, severity=5)
    custom = [{"name": "Swelling down", "id": "m-a"}, {"name": "Jogging", "exercises": ["Treadmill"]}]
    milestones = await initialize_recovery_protocol("inj-1", "custom", custom, db_path=db_path)
    assert [m.id for m in milestones] == ["m-a", "milestone-2"]
    assert milestones[1].exercises == ("Treadmill",)
    assert clock.days_between(milestones[0].target_date, milestones[1].target_date) == 14


async def test_custom_milestone_requires_name(db_path):
    await _injury(db_path)
    with pytest.raises(MedicalWorkflowError) as exc:
        await initialize_recovery_protocol("inj-1", "custom", [{"description": "no name"}], db_path=db_path)
    assert exc.value.code == INVALID_INPUT


async def test_initialize_for_unknown_injury(db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await initialize_recovery_protocol("ghost", "knee_injury", db_path=db_path)
    assert exc.value.code == INJURY_NOT_FOUND


async def test_completing_every_milestone_recovers_injury_once(db_path):
    await _injury(db_path)
    milestones = await initialize_recovery_protocol("inj-1", "concussion", db_path=db_path)

    for m in milestones[:-1]:
        assert await complete_milestone("inj-1", m.name, db_path=db_path) is True
    assert (await get_injury("inj-1", db_path=db_path)).recovery_status == "active"

    assert await complete_milestone("inj-1", milestones[-1].name, db_path=db_path) is True
    injury = await get_injury("inj-1", db_path=db_path)
    assert injury.recovery_status == "recovered"
    assert _stored_state(db_path, "inj-1") is None
    assert await get_recovery_milestones("inj-1", db_path=db_path) == []

    assert await complete_milestone("inj-1", milestones[-1].name, db_path=db_path) is False
    assert (await get_injury("inj-1", db_path=db_path)).recovery_status == "recovered"


async def test_recovered_injury_retires_cached_load(db_path):
    await _injury(db_path)
    milestones = await initialize_recovery_protocol("inj-1", "concussion", db_path=db_path)
    for m in milestones[:-1]:
        await complete_milestone("inj-1", m.name, db_path=db_path)
    assert (await calculate_load_management("7", db_path=db_path)).recommended_load < 100

    generation = cache.player_generation("7")
    await complete_milestone("inj-1", milestones[-1].name, db_path=db_path)
    assert cache.player_generation("7") != generation
    assert (await calculate_load_management("7", db_path=db_path)).recommended_load == 100


async def test_complete_milestone_is_idempotent(db_path):
    await _injury(db_path)
    await initialize_recovery_protocol("inj-1", "knee_injury", db_path=db_path)
    assert await complete_milestone("inj-1", "Pain Management", db_path=db_path) is True
    assert await complete_milestone("inj-1", "Pain Management", db_path=db_path) is False
    assert await complete_milestone("inj-1", "No Such Milestone", db_path=db_path) is False
    assert await complete_milestone("inj-2", "Pain Management", db_path=db_path) is False

    milestones = await get_recovery_milestones("inj-1", db_path=db_path)
    done = [m for m in milestones if m.is_completed]
    assert [m.name for m in done] == ["Pain Management"]
    assert done[0].completed_date == clock.now_iso()


async def test_milestone_adherence_entry_completes_milestone(db_path):
    await _injury(db_path)
    await initialize_recovery_protocol("inj-1", "knee_injury", db_path=db_path)
    entry = await record_adherence(
        "inj-1", {"activity": "Initial Assessment", "type": "milestone", "completed": True}, db_path=db_path
    )
    assert entry.date == clock.now_iso()
    milestones = await get_recovery_milestones("inj-1", db_path=db_path)
    assert milestones[0].is_completed is True


async def test_adherence_validation(db_path):
    await _injury(db_path)
    with pytest.raises(MedicalWorkflowError) as exc:
        await record_adherence("inj-1", {"activity": "Squats", "type": "homework"}, db_path=db_path)
    assert exc.value.code == INVALID_INPUT
    with pytest.raises(MedicalWorkflowError):
        await record_adherence("inj-1", {"activity": " ", "type": "exercise"}, db_path=db_path)
    with pytest.raises(MedicalWorkflowError) as exc:
        await record_adherence("ghost", {"activity": "Squats", "type": "exercise"}, db_path=db_path)
    assert exc.value.code == INJURY_NOT_FOUND


async def test_adherence_before_protocol_is_kept_on_initialize(db_path):
    await _injury(db_path)
    await record_adherence("inj-1", {"activity": "Ice", "type": "exercise", "completed": True}, db_path=db_path)
    state = _stored_state(db_path, "inj-1")
    assert state.protocol_type == recovery_config.UNTRACKED_PROTOCOL
    assert state.milestones == ()

    await initialize_recovery_protocol("inj-1", "knee_injury", db_path=db_path)
    state = _stored_state(db_path, "inj-1")
    assert state.protocol_type == "knee_injury"
    assert [e.activity for e in state.entries] == ["Ice"]


async def test_old_adherence_entries_are_pruned(db_path):
    await _injury(db_path)
    old = (clock.now() - _dt.timedelta(days=120)).isoformat()
    await record_adherence("inj-1", {"activity": "Bike", "type": "exercise", "date": old}, db_path=db_path)
    await record_adherence("inj-1", {"activity": "Bands", "type": "exercise"}, db_path=db_path)
    state = _stored_state(db_path, "inj-1")
    assert [e.activity for e in state.entries] == ["Bands"]


async def test_stale_version_is_rejected(db_path):
    await _injury(db_path)
    await initialize_recovery_protocol("inj-1", "knee_injury", db_path=db_path)
    entry = {"activity": "Bands", "type": "exercise", "completed": True}
    await record_adherence("inj-1", entry, expected_version=1, db_path=db_path)

    with pytest.raises(MedicalWorkflowError) as exc:
        await record_adherence("inj-1", entry, expected_version=1, db_path=db_path)
    assert exc.value.code == CONCURRENT_MODIFICATION
    with pytest.raises(MedicalWorkflowError) as exc:
        await initialize_recovery_protocol("inj-1", "default", expected_version=1, db_path=db_path)
    assert exc.value.code == CONCURRENT_MODIFICATION
    assert _stored_state(db_path, "inj-1").version == 2


async def test_adherence_metrics(db_path):
    await _injury(db_path, severity=5, injury_date="2025-02-10")
    await initialize_recovery_protocol("inj-1", "default", db_path=db_path)
    for done in (True, False, False):
        await record_adherence("inj-1", {"activity": "Bands", "type": "exercise", "completed": done}, db_path=db_path)
    for done in (True, False):
        await record_adherence("inj-1", {"activity": "Check", "type": "assessment", "completed": done}, db_path=db_path)

    metrics = await calculate_adherence_metrics("inj-1", db_path=db_path)
    assert metrics.player_id == "7"
    assert metrics.milestone_completion == 0
    assert metrics.exercise_compliance == 33.33
    assert metrics.assessment_compliance == 50
    assert metrics.overall_compliance == 27.78
    assert metrics.days_active == 19
    assert metrics.expected_duration == 35
    assert metrics.actual_duration is None
    assert metrics.risk_factors == (
        recovery_config.RISK_SLOW_MILESTONES,
        recovery_config.RISK_POOR_EXERCISE,
        recovery_config.RISK_MISSED_ASSESSMENTS,
    )
    assert metrics.recommendations[-2:] == recovery_config.LOW_OVERALL_RECOMMENDATIONS


async def test_metrics_without_injury_use_defaults(db_path):
    metrics = await calculate_adherence_metrics("unknown", db_path=db_path)
    assert metrics.expected_duration == recovery_config.DEFAULT_BASE_DURATION_DAYS
    assert metrics.exercise_compliance == 100
    assert metrics.days_active == 0


def test_expected_duration_by_injury_type():
    assert estimate_expected_duration("Knee Sprain", 3) == 28
    assert estimate_expected_duration("Hamstring Strain", 6) == 28
    assert estimate_expected_duration("Bruise", 3) == 21


def test_extended_recovery_flags_protocol_deviation(make_injury):
    injury = make_injury("knee", 2, injury_date="2024-12-01", expected_return_date="2024-12-15")
    metrics = compute_adherence_metrics(injury.injury_id, injury, None, now=clock.now())
    assert metrics.expected_duration == 14
    assert recovery_config.RISK_EXTENDED_RECOVERY in metrics.risk_factors


async def test_alerts(db_path):
    await _injury(db_path, severity=5, injury_date="2025-02-10")
    await initialize_recovery_protocol("inj-1", "default", db_path=db_path)
    for done in (True, False, False):
        await record_adherence("inj-1", {"activity": "Bands", "type": "exercise", "completed": done}, db_path=db_path)
    for done in (True, False):
        await record_adherence("inj-1", {"activity": "Check", "type": "assessment", "completed": done}, db_path=db_path)

    alerts = await generate_adherence_alerts("inj-1", db_path=db_path)
    assert [(a.type, a.severity) for a in alerts] == [
        (recovery_config.ALERT_MILESTONE_OVERDUE, "medium"),
        (recovery_config.ALERT_POOR_COMPLIANCE, "high"),
        (recovery_config.ALERT_MISSED_ASSESSMENT, "high"),
    ]
    assert alerts[0].message == 'Milestone "Initial Assessment" is 5 days overdue'


def _steady_metrics(**kw):
    values = {
        "player_id": "7",
        "injury_id": "inj-1",
        "protocol_id": "protocol-inj-1",
        "overall_compliance": 100.0,
        "milestone_completion": 0.0,
        "exercise_compliance": 100.0,
        "assessment_compliance": 100.0,
        "days_active": 5,
        "expected_duration": 28,
        "actual_duration": None,
        "risk_factors": (),
        "recommendations": (),
        "last_updated": clock.now_iso(),
    }
    values.update(kw)
    return AdherenceMetrics(**values)


@pytest.mark.parametrize(
    "days_overdue, severity",
    [(3, "low"), (4, "medium"), (7, "medium"), (8, "high")],
)
def test_overdue_severity_scales_with_lateness(days_overdue, severity):
    now = clock.now()
    milestone = RecoveryMilestone(
        id="m-1",
        name="Gait Check",
        description="Normal gait",
        target_date=(now - _dt.timedelta(days=days_overdue)).isoformat(),
    )
    (alert,) = build_alerts([milestone], _steady_metrics(), now=now)
    assert alert.type == recovery_config.ALERT_MILESTONE_OVERDUE
    assert alert.severity == severity
    assert alert.message == f'Milestone "Gait Check" is {days_overdue} days overdue'


async def test_long_recovery_raises_protocol_deviation(db_path):
    await _injury(db_path, severity=2, injury_date="2024-12-01", expected_return_date="2024-12-15")
    alerts = await generate_adherence_alerts("inj-1", db_path=db_path)
    deviations = [a for a in alerts if a.type == recovery_config.ALERT_PROTOCOL_DEVIATION]
    assert len(deviations) == 1
    assert deviations[0].severity == "high"
    assert deviations[0].action == recovery_config.ACTION_PROTOCOL_DEVIATION


async def test_timeline_shifts_estimate_by_average_delay(db_path):
    await _injury(db_path, severity=5, injury_date="2025-02-10")
    await initialize_recovery_protocol("inj-1", "default", db_path=db_path)
    before = await get_recovery_timeline("inj-1", db_path=db_path)
    assert before.progress_percentage == 0
    assert before.estimated_completion == "2025-03-24T00:00:00+00:00"

    await complete_milestone("inj-1", "Initial Assessment", db_path=db_path)
    after = await get_recovery_timeline("inj-1", db_path=db_path)
    assert after.progress_percentage == 33.33
    assert after.estimated_completion == "2025-03-29T12:00:00+00:00"


async def test_analysis_requires_injury(db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await get_recovery_analysis("ghost", db_path=db_path)
    assert exc.value.code == INJURY_NOT_FOUND

    await _injury(db_path)
    await initialize_recovery_protocol("inj-1", "knee_injury", db_path=db_path)
    analysis = await get_recovery_analysis("inj-1", db_path=db_path)
    assert analysis["injury"]["injury_id"] == "inj-1"
    assert len(analysis["timeline"]["milestones"]) == 6
    assert analysis["metrics"]["injuryId"] == "inj-1"


async def test_metrics_cache_is_invalidated_by_writes(db_path):
    await _injury(db_path)
    await initialize_recovery_protocol("inj-1", "knee_injury", db_path=db_path)
    first = await calculate_adherence_metrics("inj-1", db_path=db_path)
    await complete_milestone("inj-1", "Initial Assessment", db_path=db_path)
    second = await calculate_adherence_metrics("inj-1", db_path=db_path)
    assert first.milestone_completion == 0
    assert second.milestone_completion == 16.67
