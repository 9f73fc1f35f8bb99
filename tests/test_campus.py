from __future__ import annotations

import pytest

from planner.campus import apply_campus_plan
from planner.catalog import AlternateTrack, Day, Subject
from planner.routing import default_routing_policies
from services.admin_config import default_admin_config
from services.dataset import build_dataset

SELECTED = {Subject.KAMMI: "sg-kammi-1", Subject.LAFTHI: "sg-lafthi-2", Subject.ESL: "sg-esl-4"}


@pytest.fixture(scope="module")
def dataset():
    return build_dataset(default_admin_config(), seed=42)


def _apply(data):
    return apply_campus_plan(
        rooms=data.rooms,
        students=data.students,
        courses=data.courses,
        stream_groups=data.stream_groups,
        selected_streams=SELECTED,
        policies=default_routing_policies(data.students),
        grade_course_selections=data.grade_course_selections,
        ideal_capacity=22,
    )


def test_campus_plan_seeds_grid(dataset):
    plan = _apply(dataset)
    senior_room = next(r for r in dataset.rooms if r.grade == 12)

    assert set(plan.previews) == set(SELECTED)
    assert plan.previews[Subject.KAMMI].host_by_room[senior_room.id] == AlternateTrack.AUTO_TAHSILI
    # Tahsili Physics (Sun/Tue slot 1) coincides with the slot-1 Kammi bundle.
    assert plan.grid.get(senior_room.id, Day.SUN, 1) == "c31"
    assert "c31" in plan.whitelist

    kammi_ids = {c.id for c in dataset.courses if c.subject == Subject.KAMMI}
    for (room_id, _day, _slot), course_id in plan.grid.cells():
        if room_id == senior_room.id:
            assert course_id not in kammi_ids
        assert course_id in plan.whitelist


def test_grade_wide_overwrites_are_reported(dataset):
    plan = _apply(dataset)
    junior_room = next(r for r in dataset.rooms if r.grade == 10)

    # Future Skills (Wed slot 7) is overwritten by Tahsili Math, which runs slot 7 daily.
    assert any(
        c.room_id == junior_room.id and c.day == "Wed" and c.slot == 7 and (c.previous_course_id, c.next_course_id) == ("c25", "c28")
        for c in plan.conflicts
    )
    assert plan.grid.get(junior_room.id, Day.WED, 7) == "c28"


def test_campus_plan_resolutions_are_deterministic_and_leave_home(dataset):
    first = _apply(dataset)
    second = _apply(dataset)

    assert first.grid == second.grid
    assert first.resolutions == second.resolutions
    homes = {s.id: s.homeroom for s in dataset.students}
    for student_id, by_block in first.resolutions.items():
        for room_id in by_block.values():
            assert room_id != homes[student_id]


def test_unselected_subject_is_left_out(dataset):
    plan = apply_campus_plan(
        rooms=dataset.rooms,
        students=dataset.students,
        courses=dataset.courses,
        stream_groups=dataset.stream_groups,
        selected_streams={Subject.ESL: "sg-esl-6"},
        policies=default_routing_policies(dataset.students),
        grade_course_selections={},
    )

    assert set(plan.previews) == {Subject.ESL}
    assert plan.conflicts == []
    assert {course_id for _, course_id in plan.grid.cells()} <= {"c16", "c17", "c18"}
