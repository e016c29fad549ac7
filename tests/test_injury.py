from __future__ import annotations

import sqlite3

import pytest

from errors import INJURY_NOT_FOUND, INVALID_INPUT, MedicalWorkflowError
from injury import (
    get_injury,
    list_player_injuries,
    load_medical_status,
    record_injury,
    record_wellness,
    set_availability,
    update_recovery_status,
)
from injury import config as injury_config
from injury import service as injury_service


async def _wellness(db_path, player_id="7", **kw):
    values = dict(sleep_hours=8, stress_level=3, soreness_level=3, energy_level=7, hydration_level=7)
    values.update(kw)
    return await record_wellness(player_id, db_path=db_path, **values)


async def test_record_injury_marks_player_injured(db_path):
    injury = await record_injury(" 07 ", body_part="Knee", injury_type="Sprain", severity=3, db_path=db_path)
    assert injury.player_id == "7"
    assert injury.recovery_status == "active"
    assert injury.injury_date == "2025-03-01"

    status = await load_medical_status("7", db_path=db_path)
    assert [i.injury_id for i in status.active_injuries] == [injury.injury_id]
    assert status.availability.availability_status == "injured"
    assert status.availability.medical_clearance_required is True
    assert status.degraded == []


async def test_recovering_injury_clears_availability(db_path):
    injury = await record_injury("7", body_part="ankle", injury_type="Sprain", severity=2, db_path=db_path)
    updated = await update_recovery_status(injury.injury_id, "recovering", db_path=db_path)
    assert updated.recovery_status == "recovering"

    status = await load_medical_status("7", db_path=db_path)
    assert status.active_injuries == []
    assert status.availability.availability_status == "available"
    assert len(status.injuries) == 1


async def test_update_status_unknown_injury(db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await update_recovery_status("nope", "recovered", db_path=db_path)
    assert exc.value.code == INJURY_NOT_FOUND


async def test_update_status_rejects_unknown_status(db_path):
    injury = await record_injury("7", body_part="ankle", injury_type="Sprain", severity=2, db_path=db_path)
    with pytest.raises(MedicalWorkflowError) as exc:
        await update_recovery_status(injury.injury_id, "healed", db_path=db_path)
    assert exc.value.code == INVALID_INPUT


@pytest.mark.parametrize(
    "kwargs",
    [
        {"severity": 0},
        {"severity": 6},
        {"body_part": " "},
        {"injury_date": "03/01/2025"},
        {"injury_date": "2025-03-01garbage"},
        {"expected_return_date": "2025-04-01 soon"},
    ],
)
async def test_record_injury_validation(db_path, kwargs):
    values = dict(body_part="knee", injury_type="Sprain", severity=2)
    values.update(kwargs)
    with pytest.raises(MedicalWorkflowError) as exc:
        await record_injury("7", db_path=db_path, **values)
    assert exc.value.code == INVALID_INPUT


async def test_get_and_list_injuries(db_path):
    first = await record_injury("7", body_part="knee", injury_type="Sprain", severity=2, db_path=db_path)
    await record_injury("8", body_part="wrist", injury_type="Fracture", severity=4, db_path=db_path)
    assert (await get_injury(first.injury_id, db_path=db_path)).body_part == "knee"
    assert [i.player_id for i in await list_player_injuries("7", db_path=db_path)] == ["7"]
    with pytest.raises(MedicalWorkflowError) as exc:
        await get_injury("missing", db_path=db_path)
    assert exc.value.code == INJURY_NOT_FOUND


async def test_concerning_wellness_flags_load_management(db_path):
    await _wellness(db_path, sleep_hours=4, stress_level=9)
    status = await load_medical_status("7", db_path=db_path)
    assert status.availability.availability_status == "load_management"
    assert status.availability.reason == (
        f"{injury_config.CONCERN_REASON_PREFIX}: "
        f"{injury_config.CONCERN_LABEL_SLEEP}, {injury_config.CONCERN_LABEL_STRESS}"
    )


async def test_concerning_wellness_leaves_injured_player_alone(db_path):
    await record_injury("7", body_part="knee", injury_type="Sprain", severity=2, db_path=db_path)
    await _wellness(db_path, soreness_level=10)
    status = await load_medical_status("7", db_path=db_path)
    assert status.availability.availability_status == "injured"


async def test_latest_wellness_wins(db_path):
    await _wellness(db_path, stress_level=2, entry_date="2025-02-27")
    await _wellness(db_path, stress_level=6, entry_date="2025-02-28")
    status = await load_medical_status("7", db_path=db_path)
    assert status.wellness.stress_level == 6


async def test_wellness_validation(db_path):
    with pytest.raises(MedicalWorkflowError):
        await _wellness(db_path, stress_level=11)
    with pytest.raises(MedicalWorkflowError):
        await _wellness(db_path, sleep_hours=-1)
    with pytest.raises(MedicalWorkflowError):
        await _wellness(db_path, max_heart_rate=20)


async def test_recovery_after_injury_restores_available(db_path):
    await set_availability("7", "load_management", reason="Back-to-back games", db_path=db_path)
    injury = await record_injury("7", body_part="knee", injury_type="Sprain", severity=2, db_path=db_path)
    assert (await load_medical_status("7", db_path=db_path)).availability.availability_status == "injured"

    await update_recovery_status(injury.injury_id, "recovered", db_path=db_path)
    status = await load_medical_status("7", db_path=db_path)
    assert status.availability.availability_status == "available"


async def test_set_availability_rejects_unknown_status(db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await set_availability("7", "on_holiday", db_path=db_path)
    assert exc.value.code == INVALID_INPUT


async def test_failed_read_degrades_to_safe_default(db_path, monkeypatch):
    await _wellness(db_path)

    def broken(repo, player_id):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(injury_service, "_latest_wellness", broken)
    status = await load_medical_status("7", db_path=db_path)
    assert status.wellness is None
    assert status.degraded == [injury_config.DEGRADED_NOTE_WELLNESS]


async def test_load_medical_status_rejects_malformed_id(db_path):
    with pytest.raises(ValueError):
        await load_medical_status("seven", db_path=db_path)
