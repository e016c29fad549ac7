from __future__ import annotations

import datetime as _dt

import pytest

import clock
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
from injury import record_injury
from medical_repo import MedicalRepo
from return_to_play import (
    PHASE_ORDER,
    AssessmentInput,
    ClearanceLevel,
    Phase,
    advance_phase,
    assessment_score,
    conduct_clearance_assessment,
    create_protocol,
    evaluate_clearance,
    find_protocol_for_injury,
    get_protocol,
    get_protocol_progress,
    is_valid_progression,
    list_templates,
    make_clearance_decision,
    process_automated_clearance,
    record_rehabilitation_session,
    reinjury_risk,
)
from return_to_play import config as rtp_config
from return_to_play import repo as rtp_repo
from return_to_play.types import ClearanceAssessment, ClearanceOutcome

ASSESSOR = {"id": "doc-1", "name": "Dr. Lee", "credentials": "MD"}


def _assessment(
    *,
    healing="complete",
    pain=1,
    rom=95,
    strength=92,
    psych=85,
    fear=10,
    tests=(("Single-leg hop", "pass", 95),),
):
    return {
        "medicalClearance": {
            "structuralHealing": {"status": healing, "painLevel": pain},
            "functionalStatus": {"rangeOfMotion": rom, "strength": strength},
        },
        "performanceTesting": {
            "fieldTests": [
                {"testName": name, "status": status, "percentageOfBaseline": pct} for name, status, pct in tests
            ]
        },
        "psychologicalReadiness": {"fearOfReinjury": fear, "overallPsychReadiness": psych},
    }


def _session(**kw):
    payload = {
        "sessionType": "rehab",
        "durationMinutes": 45,
        "supervisingStaffId": "pt-1",
        "exercisesCompleted": ["Bands", "Bike", "Balance"],
        "sessionRating": 8,
        "painLevelPre": 4,
        "painLevelPost": 2,
    }
    payload.update(kw)
    return payload


@pytest.fixture
async def protocol(db_path):
    await record_injury("7", body_part="ankle", injury_type="Ankle Sprain", severity=3, injury_id="inj-1", db_path=db_path)
    return await create_protocol("inj-1", "standard", "doc-1", db_path=db_path)


def test_templates_are_listed():
    ids = [t.id for t in list_templates()]
    assert ids[0] == rtp_config.DEFAULT_TEMPLATE_ID
    assert {"ankle-sprain", "knee-ligament", "concussion"} <= set(ids)
    for template in list_templates():
        assert [p.phase for p in template.phases] == list(PHASE_ORDER)


def test_only_the_next_phase_is_a_valid_progression():
    assert is_valid_progression(Phase.REST, Phase.LIGHT_ACTIVITY)
    assert not is_valid_progression(Phase.REST, Phase.SPORT_SPECIFIC)
    assert not is_valid_progression(Phase.LIGHT_ACTIVITY, Phase.REST)
    assert not is_valid_progression(Phase.GAME_CLEARANCE, Phase.GAME_CLEARANCE)


async def test_create_protocol(protocol, db_path):
    assert protocol.protocol_id.startswith("RTP_")
    assert protocol.player_id == "7"
    assert protocol.status == "initiated"
    assert protocol.current_phase is Phase.REST
    assert protocol.clearance_level is ClearanceLevel.NO_CONTACT
    assert protocol.sessions_required == 16
    assert protocol.start_date == clock.now_iso()
    assert protocol.expected_completion_date == "2025-03-29T12:00:00+00:00"
    assert [m.phase_id for m in protocol.milestones] == [p.value for p in PHASE_ORDER]

    again = await create_protocol("inj-1", "concussion", "doc-2", db_path=db_path)
    assert again.protocol_id == protocol.protocol_id
    assert again.template_id == "standard"
    assert (await find_protocol_for_injury("inj-1", db_path=db_path)).protocol_id == protocol.protocol_id


@pytest.mark.parametrize(
    "kwargs, code",
    [
        ({"template_id": "standard", "medical_officer_id": ""}, INVALID_INPUT),
        ({"template_id": "hip-replacement", "medical_officer_id": "doc-1"}, PROTOCOL_TEMPLATE_NOT_FOUND),
    ],
)
async def test_create_protocol_rejects_bad_input(db_path, kwargs, code):
    await record_injury("7", body_part="knee", injury_type="Sprain", severity=2, injury_id="inj-1", db_path=db_path)
    with pytest.raises(MedicalWorkflowError) as exc:
        await create_protocol("inj-1", db_path=db_path, **kwargs)
    assert exc.value.code == code


async def test_create_protocol_for_unknown_injury(db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await create_protocol("ghost", "standard", "doc-1", db_path=db_path)
    assert exc.value.code == INJURY_NOT_FOUND


async def test_unknown_protocol(db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await get_protocol("RTP_missing", db_path=db_path)
    assert exc.value.code == PROTOCOL_NOT_FOUND
    with pytest.raises(MedicalWorkflowError) as exc:
        await advance_phase("RTP_missing", "light_activity", [], "doc-1", db_path=db_path)
    assert exc.value.code == PROTOCOL_NOT_FOUND


async def test_skipping_a_phase_is_rejected(protocol, db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await advance_phase(protocol.protocol_id, "sport_specific", [], "doc-1", db_path=db_path)
    assert exc.value.code == INVALID_PHASE_TRANSITION
    assert exc.value.details["allowed_phase"] == "light_activity"

    stored = await get_protocol(protocol.protocol_id, db_path=db_path)
    assert stored.current_phase is Phase.REST
    assert stored.version == 1


async def test_unknown_phase_is_invalid_input(protocol, db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await advance_phase(protocol.protocol_id, "scrimmage", [], "doc-1", db_path=db_path)
    assert exc.value.code == INVALID_INPUT


async def test_advance_phase(protocol, db_path):
    results = [{"test": "ROM", "result": "pass"}, {"test": "Hop", "result": "partial"}]
    advanced = await advance_phase(
        protocol.protocol_id, "light_activity", results, "doc-1", "Swelling gone", db_path=db_path
    )
    assert advanced.current_phase is Phase.LIGHT_ACTIVITY
    assert advanced.status == "in_progress"
    assert advanced.clearance_level is ClearanceLevel.NO_CONTACT
    assert advanced.completion_percentage == 20.0
    assert advanced.version == 2

    rest = advanced.milestones[0]
    assert rest.completed_date == clock.now_iso()
    assert rest.assessment_score == 75
    assert rest.clearing_officer == "doc-1"
    assert rest.notes == "Swelling gone"
    assert advanced.milestones[1].completed_date is None

    advanced = await advance_phase(protocol.protocol_id, "sport_specific", [], "doc-1", db_path=db_path)
    assert advanced.clearance_level is ClearanceLevel.LIMITED_CONTACT
    assert advanced.milestones[1].assessment_score == 0


async def test_stale_version_is_rejected(protocol, db_path):
    await advance_phase(protocol.protocol_id, "light_activity", [], "doc-1", expected_version=1, db_path=db_path)
    with pytest.raises(MedicalWorkflowError) as exc:
        await advance_phase(protocol.protocol_id, "sport_specific", [], "doc-1", expected_version=1, db_path=db_path)
    assert exc.value.code == CONCURRENT_MODIFICATION


def test_assessment_score():
    assert assessment_score([]) == 0
    assert assessment_score(["pass", "pass"]) == 100
    assert assessment_score([{"result": "pass"}, {"result": "fail"}]) == 50
    assert assessment_score(["partial", "PASS", "fail"]) == 50


async def test_sessions_update_compliance(protocol, db_path):
    first = await record_rehabilitation_session(protocol.protocol_id, _session(), db_path=db_path)
    assert first.adherence_score == 100
    assert first.session_id is not None
    assert first.session_date == clock.now_iso()

    second = await record_rehabilitation_session(
        protocol.protocol_id,
        _session(exercisesCompleted=["Bands"], sessionRating=5, painLevelPost=5),
        db_path=db_path,
    )
    assert second.adherence_score == 70

    stored = await get_protocol(protocol.protocol_id, db_path=db_path)
    assert stored.sessions_completed == 2
    assert stored.compliance_score == 85.0


async def test_negative_duration_is_rejected(protocol, db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await record_rehabilitation_session(protocol.protocol_id, _session(durationMinutes=-5), db_path=db_path)
    assert exc.value.code == INVALID_INPUT


async def test_progress(protocol, db_path):
    await advance_phase(protocol.protocol_id, "light_activity", [], "doc-1", db_path=db_path)
    await record_rehabilitation_session(protocol.protocol_id, _session(), db_path=db_path)
    await record_rehabilitation_session(
        protocol.protocol_id,
        _session(isMilestoneSession=True, milestoneAssessmentResults=[{"result": "pass"}], notes="Hop test"),
        db_path=db_path,
    )

    progress = await get_protocol_progress(protocol.protocol_id, db_path=db_path)
    assert progress.current_phase is Phase.LIGHT_ACTIVITY
    assert progress.phase_progress == 40.0
    assert progress.overall_progress == 20.0
    assert progress.days_since_start == 0
    assert progress.estimated_days_remaining == 28
    assert progress.is_on_track is True
    assert progress.next_milestone.name == "Advance to sport specific"
    assert [a["result"] for a in progress.recent_assessments] == ["pass"]

    clock.set_now(clock.now() + _dt.timedelta(days=14))
    later = await get_protocol_progress(protocol.protocol_id, db_path=db_path)
    assert later.days_since_start == 14
    assert later.is_on_track is False
    assert later.phase_progress == 40.0


async def test_no_next_milestone_at_game_clearance(protocol, db_path):
    for phase in PHASE_ORDER[1:]:
        await advance_phase(protocol.protocol_id, phase, [], "doc-1", db_path=db_path)
    progress = await get_protocol_progress(protocol.protocol_id, db_path=db_path)
    assert progress.current_phase is Phase.GAME_CLEARANCE
    assert progress.next_milestone is None
    assert progress.overall_progress == 100.0
    stored = await get_protocol(protocol.protocol_id, db_path=db_path)
    assert stored.status == "in_progress"
    assert stored.clearance_level is ClearanceLevel.GAME_READY


@pytest.mark.parametrize(
    "overrides, decision, level",
    [
        ({}, "cleared", ClearanceLevel.GAME_READY),
        ({"tests": (("Hop", "fail", 70),)}, "conditional", ClearanceLevel.LIMITED_CONTACT),
        ({"psych": 60}, "conditional", ClearanceLevel.NO_CONTACT),
        ({"healing": "partial", "rom": 80, "pain": 3}, "conditional", ClearanceLevel.NO_CONTACT),
        ({"healing": "partial", "rom": 80, "pain": 4}, "not_cleared", ClearanceLevel.NO_CONTACT),
        ({"rom": 60}, "not_cleared", ClearanceLevel.NO_CONTACT),
    ],
)
def test_clearance_thresholds(overrides, decision, level):
    outcome = evaluate_clearance(AssessmentInput.from_dict(_assessment(**overrides)), now=clock.now())
    assert outcome.decision == decision
    assert outcome.level is level
    assert outcome.follow_up_required is (decision != "cleared")


def test_missing_assessment_fields_are_not_cleared():
    inputs = AssessmentInput.from_dict({})
    assert inputs.structural_healing == "incomplete"
    assert inputs.pain_level == 10
    assert evaluate_clearance(inputs, now=clock.now()).decision == "not_cleared"


def test_reinjury_risk():
    risk, factors = reinjury_risk(AssessmentInput.from_dict(_assessment()))
    assert risk == 6.25
    assert factors == []

    inputs = AssessmentInput.from_dict(
        _assessment(healing="incomplete", rom=60, strength=50, fear=60, tests=(("Hop", "fail", 50), ("Sprint", "marginal", 80)))
    )
    risk, factors = reinjury_risk(inputs)
    assert risk == 80.5
    assert factors == [
        rtp_config.RISK_FACTOR_STRENGTH,
        rtp_config.RISK_FACTOR_ROM,
        rtp_config.RISK_FACTOR_HEALING,
        rtp_config.RISK_FACTOR_FEAR,
        rtp_config.RISK_FACTOR_TESTS,
    ]

    worst = AssessmentInput.from_dict(
        _assessment(healing="incomplete", rom=0, strength=0, fear=100, tests=(("A", "fail", 0),) * 4)
    )
    assert reinjury_risk(worst)[0] == 100.0


async def test_cleared_assessment_completes_protocol(protocol, db_path):
    assessment = await conduct_clearance_assessment(protocol.protocol_id, ASSESSOR, _assessment(), db_path=db_path)
    assert assessment.outcome.decision == "cleared"
    assert assessment.reinjury_risk == 6.25
    assert assessment.player_id == "7"

    stored = await get_protocol(protocol.protocol_id, db_path=db_path)
    assert stored.status == "completed"
    assert stored.clearance_level is ClearanceLevel.GAME_READY
    assert stored.actual_completion_date == clock.now_iso()
    assert stored.completion_percentage == 100.0

    with pytest.raises(MedicalWorkflowError) as exc:
        await record_rehabilitation_session(protocol.protocol_id, _session(), db_path=db_path)
    assert exc.value.code == PROTOCOL_CLOSED
    with pytest.raises(MedicalWorkflowError) as exc:
        await advance_phase(protocol.protocol_id, "light_activity", [], "doc-1", db_path=db_path)
    assert exc.value.code == PROTOCOL_CLOSED


async def test_conditional_assessment_sets_clearance(protocol, db_path):
    data = _assessment(tests=(("Hop", "fail", 70),))
    assessment = await conduct_clearance_assessment(protocol.protocol_id, ASSESSOR, data, db_path=db_path)
    assert assessment.outcome.level is ClearanceLevel.LIMITED_CONTACT
    assert assessment.outcome.next_assessment_date == "2025-03-08T12:00:00+00:00"

    stored = await get_protocol(protocol.protocol_id, db_path=db_path)
    assert stored.status == "initiated"
    assert stored.clearance_level is ClearanceLevel.LIMITED_CONTACT
    assert stored.completion_percentage == 83.0


async def test_automated_clearance_needs_an_assessment(protocol, db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await process_automated_clearance(protocol.protocol_id, "no_contact", db_path=db_path)
    assert exc.value.code == NO_ASSESSMENT_AVAILABLE


async def test_automated_clearance_cannot_exceed_assessment(protocol, db_path):
    await conduct_clearance_assessment(protocol.protocol_id, ASSESSOR, _assessment(tests=(("Hop", "fail", 70),)), db_path=db_path)

    with pytest.raises(MedicalWorkflowError) as exc:
        await process_automated_clearance(protocol.protocol_id, "full_contact", db_path=db_path)
    assert exc.value.code == CLEARANCE_NOT_SUPPORTED

    decision = await process_automated_clearance(
        protocol.protocol_id, "limited_contact", ["Brace during practice"], db_path=db_path
    )
    assert decision.clearance_level is ClearanceLevel.LIMITED_CONTACT
    assert decision.required_approvals == ()
    assert decision.activity_restrictions == rtp_config.RESTRICTED_ACTIVITY
    assert decision.conditions == ("Brace during practice",)
    assert decision.return_to_play_date is None
    assert decision.to_dict()["conditions"]["emergencyProtocol"] == rtp_config.EMERGENCY_PROTOCOL


async def test_automated_game_ready_completes_protocol(protocol, db_path):
    inputs = AssessmentInput.from_dict(_assessment())
    stored_assessment = ClearanceAssessment(
        assessment_id="ASMT_1",
        protocol_id=protocol.protocol_id,
        player_id="7",
        injury_id="inj-1",
        assessment_date=clock.now_iso(),
        assessor=ASSESSOR,
        inputs=inputs,
        reinjury_risk=6.25,
        risk_factors=(),
        outcome=ClearanceOutcome(decision="cleared", level=ClearanceLevel.GAME_READY, rationale="ok"),
    )
    with MedicalRepo(db_path) as repo:
        with repo.transaction() as cur:
            rtp_repo.insert_assessment(cur, stored_assessment, now=clock.now_iso())

    decision = await process_automated_clearance(protocol.protocol_id, "game_ready", db_path=db_path)
    assert decision.required_approvals == ("team_physician", "coach")
    assert decision.activity_restrictions == ()
    assert decision.return_to_play_date == clock.now_iso()
    assert decision.final_assessment.assessment_id == "ASMT_1"

    stored = await get_protocol(protocol.protocol_id, db_path=db_path)
    assert stored.status == "completed"


async def test_cleared_decision_requires_game_ready(protocol, db_path):
    with pytest.raises(MedicalWorkflowError) as exc:
        await make_clearance_decision(
            protocol.protocol_id, "doc-1", "cleared", "limited_contact", "Looks good", db_path=db_path
        )
    assert exc.value.code == INVALID_INPUT
    with pytest.raises(MedicalWorkflowError) as exc:
        await make_clearance_decision(protocol.protocol_id, "doc-1", "maybe", "no_contact", "", db_path=db_path)
    assert exc.value.code == INVALID_INPUT


async def test_clearance_decisions(protocol, db_path):
    conditional = await make_clearance_decision(
        protocol.protocol_id,
        "doc-1",
        "conditional",
        "limited_contact",
        "Needs more strength",
        restrictions=["No scrimmage"],
        db_path=db_path,
    )
    assert conditional.next_review_date == "2025-03-08T12:00:00+00:00"
    assert conditional.restrictions == ("No scrimmage",)
    assert (await get_protocol(protocol.protocol_id, db_path=db_path)).status == "initiated"

    cleared = await make_clearance_decision(
        protocol.protocol_id, "doc-1", "cleared", "game_ready", "All criteria met", db_path=db_path
    )
    assert cleared.next_review_date is None
    assert cleared.to_dict()["clearanceLevel"] == "game_ready"
    stored = await get_protocol(protocol.protocol_id, db_path=db_path)
    assert stored.status == "completed"
    assert stored.clearance_level is ClearanceLevel.GAME_READY
