from __future__ import annotations

import asyncio

import pytest

import cache
from compliance import batch_check_workout_compliance, check_workout_compliance, evaluate_compliance
from compliance import config as compliance_config
from compliance import service as compliance_service
from errors import INVALID_INPUT, MedicalWorkflowError
from injury import record_injury, record_wellness, set_availability


def test_no_injuries_and_no_exercises_is_compliant(make_status):
    result = evaluate_compliance(make_status(), [], 50)
    assert result.is_compliant is True
    assert result.restrictions == ()
    assert result.substitutions == ()
    assert result.risk_alerts == ()
    assert result.load_recommendations == ()


def test_compliance_tracks_restrictions(make_status, make_injury):
    result = evaluate_compliance(make_status(injuries=[make_injury("wrist", 1)]), ["Plank"], 40)
    assert result.restrictions
    assert result.is_compliant is False
    assert result.medical_notes == ("Active injuries: Strain",)


def test_load_recommendation_takes_lowest_cap(make_status, make_wellness):
    wellness = make_wellness(sleep_hours=6.5, stress_level=8)
    result = evaluate_compliance(make_status(wellness=wellness), [], 100)
    (rec,) = result.load_recommendations
    assert rec["recommendedLoad"] == 75
    assert rec["loadReduction"] == 25
    assert rec["reason"] == "Insufficient sleep; Elevated stress levels"
    assert rec["durationDays"] == 1
    # high intensity alone is a medium alert, not an immediate stop
    assert result.is_compliant is True
    assert result.risk_alerts[0]["riskLevel"] == "medium"


def test_no_recommendation_when_intensity_already_below_caps(make_status, make_wellness):
    result = evaluate_compliance(make_status(wellness=make_wellness(soreness_level=8)), [], 60)
    assert result.load_recommendations == ()


async def test_back_injury_deadlift_scenario(db_path):
    await record_injury("7", body_part="back", injury_type="Disc Strain", severity=4, db_path=db_path)
    result = await check_workout_compliance("7", [{"name": "deadlift"}], 60, db_path=db_path)
    assert result.is_compliant is False
    (sub,) = result.substitutions
    assert sub.original_exercise == "deadlift"
    assert sub.substitute_exercise == "glute bridge"
    (restriction,) = result.restrictions
    assert restriction.restriction_type == "prohibited"
    assert result.risk_alerts[0]["riskFactors"] == ["Active injury"]


async def test_load_management_note(db_path):
    await set_availability("7", "load_management", reason="Heavy schedule", db_path=db_path)
    result = await check_workout_compliance("7", [], 100, db_path=db_path)
    assert "Player under load management: Heavy schedule" in result.medical_notes
    assert result.load_recommendations[0]["recommendedLoad"] == 70


async def test_malformed_player_id_gets_permissive_result(db_path):
    result = await check_workout_compliance("", ["squat"], db_path=db_path)
    assert result.is_compliant is True
    assert result.medical_notes == (compliance_config.NOTE_CHECK_ERROR,)


@pytest.mark.parametrize("intensity", ["high", -5, None])
async def test_invalid_intensity(db_path, intensity):
    with pytest.raises(MedicalWorkflowError) as exc:
        await check_workout_compliance("7", [], intensity, db_path=db_path)
    assert exc.value.code == INVALID_INPUT


async def test_concurrent_checks_do_not_interfere(db_path):
    for pid in range(1, 11, 2):
        await record_injury(str(pid), body_part="knee", injury_type="Sprain", severity=2, db_path=db_path)

    ids = [str(pid) for pid in range(1, 11)]
    results = await asyncio.gather(
        *(check_workout_compliance(pid, ["Goblet Squat"], 50, db_path=db_path) for pid in ids)
    )
    for pid, result in zip(ids, results):
        assert result.player_id == pid
        injured = int(pid) % 2 == 1
        assert result.is_compliant is not injured
        assert len(result.substitutions) == (1 if injured else 0)


async def test_cached_result_is_reused(db_path, monkeypatch):
    first = await check_workout_compliance("7", ["squat"], 50, db_path=db_path)

    async def unreachable(player_id, *, db_path):
        raise AssertionError("cache miss")

    monkeypatch.setattr(compliance_service, "load_medical_status", unreachable)
    second = await check_workout_compliance("7", ["squat"], 50, db_path=db_path)
    assert second == first


def test_cache_key_depends_on_exercises_and_intensity():
    a = compliance_service.compliance_cache_key("7", 50, ["squat"])
    assert a != compliance_service.compliance_cache_key("7", 50, ["deadlift"])
    assert a != compliance_service.compliance_cache_key("7", 60, ["squat"])
    assert a == compliance_service.compliance_cache_key("7", 50.0, [{"name": "squat"}])


def test_cache_key_follows_player_generation():
    before = compliance_service.compliance_cache_key("7", 50, ["squat"])
    other = compliance_service.compliance_cache_key("8", 50, ["squat"])
    cache.bump_player_generation("7")
    assert compliance_service.compliance_cache_key("7", 50, ["squat"]) != before
    assert compliance_service.compliance_cache_key("8", 50, ["squat"]) == other


async def test_recorded_injury_retires_cached_result(db_path):
    before = await check_workout_compliance("7", ["squat"], 60, db_path=db_path)
    assert before.is_compliant is True
    assert before.restrictions == ()

    await record_injury("7", body_part="knee", injury_type="Sprain", severity=5, db_path=db_path)
    after = await check_workout_compliance("7", ["squat"], 60, db_path=db_path)
    assert after.is_compliant is False
    assert after.restrictions


async def test_availability_change_retires_cached_result(db_path):
    before = await check_workout_compliance("7", [], 100, db_path=db_path)
    assert before.load_recommendations == ()

    await set_availability("7", "load_management", reason="Heavy schedule", db_path=db_path)
    after = await check_workout_compliance("7", [], 100, db_path=db_path)
    assert after.load_recommendations[0]["recommendedLoad"] == 70


async def test_batch_reports_per_player_errors(db_path, monkeypatch):
    real = compliance_service.load_medical_status

    async def flaky(player_id, *, db_path):
        if str(player_id) == "2":
            raise RuntimeError("medical store unreachable")
        return await real(player_id, db_path=db_path)

    monkeypatch.setattr(compliance_service, "load_medical_status", flaky)
    results = await batch_check_workout_compliance(["1", "2", "3"], ["squat"], 50, db_path=db_path)
    assert sorted(results) == ["1", "2", "3"]
    assert results["1"].error is None
    assert results["2"].error == "medical store unreachable"
    assert results["2"].is_compliant is True
    assert results["2"].to_dict()["error"] == "medical store unreachable"


async def test_wellness_feeds_compliance(db_path):
    await record_wellness(
        "7",
        sleep_hours=6,
        stress_level=3,
        soreness_level=8,
        energy_level=6,
        hydration_level=6,
        db_path=db_path,
    )
    result = await check_workout_compliance("7", [], 90, db_path=db_path)
    (rec,) = result.load_recommendations
    assert rec["recommendedLoad"] == 65
    assert rec["modifications"] == [
        "Light to moderate intensity only",
        "Active recovery exercises",
        "Extended warm-up",
    ]
