from __future__ import annotations

from schemas.admin_config import AdminConfig, LevelDistribution
from services.admin_config import (
    build_homerooms,
    build_room_student_targets,
    compute_room_allocation,
    default_admin_config,
    distribute_grade_students,
    validate_admin_config,
)
from planner.catalog import Subject


def _config(**changes) -> AdminConfig:
    return default_admin_config().model_copy(update=changes)


def test_default_config_is_valid():
    result = validate_admin_config(default_admin_config())

    assert result.ok
    assert result.warnings == []
    assert result.allocation.rooms_by_grade == {10: 2, 11: 2, 12: 1}


def test_too_few_rooms_is_infeasible():
    result = validate_admin_config(_config(room_count=2))

    assert not result.ok
    assert result.allocation is None
    assert any("At least 5 rooms" in e for e in result.errors)


def test_distribution_errors():
    config = default_admin_config()
    config.subject_distributions[Subject.ESL][10] = LevelDistribution(L1=50, L2=40, L3=5, done=5)
    config.subject_distributions[Subject.KAMMI][11] = LevelDistribution(L1=50, L2=40)
    del config.subject_distributions[Subject.LAFTHI][12]

    errors = validate_admin_config(config).errors

    assert "ESL Grade 10 Done must stay 0%." in errors
    assert "KAMMI Grade 11 distribution must add up to 100%." in errors
    assert "LAFTHI Grade 12 distribution is missing." in errors


def test_level_distribution_clamps_percentages():
    dist = LevelDistribution(L1=150, L2=-3, L3="abc", done=12.6)
    assert (dist.L1, dist.L2, dist.L3, dist.done) == (100, 0, 0, 13)


def test_no_students_is_an_error():
    result = validate_admin_config(_config(grade_totals={10: 0, 11: 0, 12: 0}))
    assert "At least one grade must have students." in result.errors


def test_allocation_hands_spare_rooms_to_most_crowded_grade():
    allocation = compute_room_allocation(_config(room_count=6))
    # Grade 12 already sits at 18 per room; grades 10 and 11 at 22.
    assert allocation.rooms_by_grade == {10: 3, 11: 2, 12: 1}


def test_seven_room_campus():
    config = _config(room_count=7, grade_totals={10: 58, 11: 51, 12: 45})

    result = validate_admin_config(config)
    rooms = build_homerooms(config)
    targets = build_room_student_targets(config, rooms)

    assert result.ok
    assert len(result.warnings) == 2
    assert len(rooms) == 7
    assert [r.grade for r in rooms] == [10, 10, 10, 11, 11, 12, 12]
    assert sum(targets.values()) == 154
    assert max(targets.values()) <= 28
    assert all(22 <= r.capacity <= 28 for r in rooms)
    assert rooms[0].name == "Room 101"


def test_invalid_config_falls_back_to_defaults():
    rooms = build_homerooms(_config(room_count=2))
    assert len(rooms) == 5


def test_distribute_grade_students():
    assert distribute_grade_students(45, 2) == [23, 22]
    assert distribute_grade_students(10, 0) == []
