from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.main import app


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("MEDICAL_DB_PATH", str(tmp_path / "api.sqlite3"))
    with TestClient(app) as c:
        yield c


def _record_knee_injury(client, injury_id="inj-1", severity=3):
    resp = client.post(
        "/api/medical/injuries",
        json={
            "player_id": "7",
            "body_part": "knee",
            "injury_type": "Strain",
            "severity": severity,
            "injury_id": injury_id,
            "injury_date": "2025-02-20",
        },
    )
    assert resp.status_code == 200
    return resp.json()["injury"]


def test_injury_roundtrip(client):
    injury = _record_knee_injury(client)
    assert injury["recovery_status"] == "active"

    resp = client.get("/api/medical/injuries/inj-1")
    assert resp.status_code == 200
    assert resp.json()["body_part"] == "knee"

    listed = client.get("/api/medical/players/7/injuries").json()
    assert [i["injury_id"] for i in listed["injuries"]] == ["inj-1"]


def test_missing_injury_is_404(client):
    resp = client.get("/api/medical/injuries/ghost")
    assert resp.status_code == 404
    body = resp.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "INJURY_NOT_FOUND"


def test_invalid_input_is_400(client):
    resp = client.post(
        "/api/medical/injuries",
        json={"player_id": "7", "body_part": "knee", "injury_type": "Strain", "severity": 9},
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_INPUT"


def test_compliance_and_load(client):
    _record_knee_injury(client)

    check = client.post(
        "/api/medical/compliance/check",
        json={"player_id": "7", "exercises": ["Back Squat", "Bench Press"], "intensity": 90},
    ).json()
    assert check["isCompliant"] is False
    assert check["restrictions"][0]["bodyPart"] == "knee"

    load = client.get("/api/medical/load/7").json()
    assert load["recommendedLoad"] == 55
    assert load["riskLevel"] == "medium"

    batch = client.post(
        "/api/medical/compliance/batch", json={"player_ids": ["7", "8"], "exercises": ["Bench Press"]}
    ).json()
    assert set(batch["results"]) == {"7", "8"}
    assert batch["results"]["8"]["isCompliant"] is True


def test_real_time_risk_without_alert(client):
    resp = client.post(
        "/api/medical/risk/real-time", json={"player_id": "7", "metrics": {"heartRate": 120}}
    )
    assert resp.status_code == 200
    assert resp.json()["alert"] is None


def test_recovery_flow(client):
    _record_knee_injury(client)
    init = client.post("/api/medical/recovery/inj-1/initialize", json={"protocol_type": "knee_injury"}).json()
    assert len(init["milestones"]) == 6

    done = client.post(
        "/api/medical/recovery/inj-1/milestones/complete", json={"milestone_name": "Initial Assessment"}
    ).json()
    assert done["changed"] is True

    timeline = client.get("/api/medical/recovery/inj-1/timeline").json()
    assert timeline["progressPercentage"] == 16.67

    assert client.get("/api/medical/recovery/ghost/analysis").status_code == 404


def test_stale_recovery_version_is_409(client):
    _record_knee_injury(client)
    client.post("/api/medical/recovery/inj-1/initialize", json={"protocol_type": "knee_injury"})
    resp = client.post(
        "/api/medical/recovery/inj-1/adherence",
        json={"activity": "Bands", "type": "exercise", "completed": True, "expected_version": 5},
    )
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "CONCURRENT_MODIFICATION"


def test_return_to_play_flow(client):
    _record_knee_injury(client)
    created = client.post(
        "/api/medical/rtp/protocols", json={"injury_id": "inj-1", "medical_officer_id": "doc-1"}
    ).json()
    pid = created["protocol"]["protocolId"]
    assert created["protocol"]["currentPhase"] == "rest"

    skipped = client.post(
        f"/api/medical/rtp/protocols/{pid}/advance", json={"new_phase": "sport_specific", "officer": "doc-1"}
    )
    assert skipped.status_code == 400
    assert skipped.json()["error"]["code"] == "INVALID_PHASE_TRANSITION"

    advanced = client.post(
        f"/api/medical/rtp/protocols/{pid}/advance", json={"new_phase": "light_activity", "officer": "doc-1"}
    ).json()
    assert advanced["protocol"]["currentPhase"] == "light_activity"

    progress = client.get(f"/api/medical/rtp/protocols/{pid}/progress").json()
    assert progress["nextMilestone"]["name"] == "Advance to sport specific"

    automated = client.post(
        f"/api/medical/rtp/protocols/{pid}/clearance/automated", json={"clearance_level": "game_ready"}
    )
    assert automated.status_code == 400
    assert automated.json()["error"]["code"] == "NO_ASSESSMENT_AVAILABLE"

    assert client.get("/api/medical/rtp/protocols/RTP_missing").status_code == 404
    templates = client.get("/api/medical/rtp/templates").json()["templates"]
    assert templates[0]["id"] == "standard"
