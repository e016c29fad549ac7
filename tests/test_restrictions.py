from __future__ import annotations

import pytest

from restrictions import derive_restrictions, substitutions_for
from restrictions.config import GENERIC_SUBSTITUTE


@pytest.mark.parametrize("severity", [1, 2, 3, 4, 5])
def test_back_restriction_follows_spinal_rule(make_injury, severity):
    (r,) = derive_restrictions([make_injury("back", severity)])
    assert r.movement_pattern == "spinal loading"
    assert r.body_part == "spine"
    assert r.intensity_limit == max(100 - 25 * severity, 10)
    assert (r.restriction_type == "prohibited") == (severity >= 3)


@pytest.mark.parametrize(
    "body_part,severity,limit,rtype",
    [
        ("knee", 2, 60, "limited"),
        ("knee", 4, 20, "prohibited"),
        ("knee", 5, 20, "prohibited"),
        ("shoulder", 3, 55, "modified"),
        ("shoulder", 4, 40, "prohibited"),
        ("ankle", 3, 40, "limited"),
        ("ankle", 4, 25, "prohibited"),
        ("wrist", 5, 40, "modified"),
    ],
)
def test_restriction_table_rows(make_injury, body_part, severity, limit, rtype):
    (r,) = derive_restrictions([make_injury(body_part, severity)])
    assert r.intensity_limit == limit
    assert r.restriction_type == rtype
    assert r.reason == f"Active Strain - severity {severity}"


def test_body_part_synonyms_are_folded(make_injury):
    (r,) = derive_restrictions([make_injury("ACL", 2)])
    assert r.body_part == "knee"
    (r,) = derive_restrictions([make_injury("Rotator Cuff", 2)])
    assert r.body_part == "shoulder"


def test_unknown_body_part_and_inactive_injuries_are_ignored(make_injury):
    injuries = [
        make_injury("elbow", 3),
        make_injury("knee", 3, status="recovering"),
        make_injury("spine", 2, status="recovered"),
    ]
    assert derive_restrictions(injuries) == []


def test_restrictions_keep_input_order(make_injury):
    rs = derive_restrictions([make_injury("wrist", 1), make_injury("knee", 1)])
    assert [r.body_part for r in rs] == ["wrist", "knee"]


def test_deadlift_under_back_injury_becomes_glute_bridge(make_injury):
    restrictions = derive_restrictions([make_injury("back", 4)])
    (sub,) = substitutions_for(["deadlift"], restrictions)
    assert sub.original_exercise == "deadlift"
    assert sub.substitute_exercise == "glute bridge"
    assert sub.regression_level == 1
    assert sub.reason == "Active Strain - severity 4"


def test_table_substitution_regression_level_from_limit(make_injury):
    restrictions = derive_restrictions([make_injury("knee", 2)])
    (sub,) = substitutions_for([{"name": "Back Squat", "sets": 3}], restrictions)
    assert sub.original_exercise == "Back Squat"
    assert sub.substitute_exercise == "seated leg press"
    assert sub.regression_level == 3


def test_affected_exercise_without_table_entry_gets_generic_substitute(make_injury):
    restrictions = derive_restrictions([make_injury("knee", 2)])
    (sub,) = substitutions_for(["Box Jump"], restrictions)
    assert sub.substitute_exercise == GENERIC_SUBSTITUTE
    assert sub.regression_level == 3
    assert sub.modifications == ("limited intensity", "Avoid knee flexion/extension", "Protect knee")


def test_unaffected_exercises_have_no_substitution(make_injury):
    restrictions = derive_restrictions([make_injury("knee", 2)])
    assert substitutions_for(["Bicep Curl", "Bench Press"], restrictions) == []


def test_body_part_name_in_exercise_marks_it_affected(make_injury):
    restrictions = derive_restrictions([make_injury("wrist", 2)])
    (sub,) = substitutions_for(["Wrist Roller"], restrictions)
    assert sub.original_exercise == "Wrist Roller"


def test_no_restrictions_means_no_substitutions():
    assert substitutions_for(["deadlift", "squat"], []) == []
