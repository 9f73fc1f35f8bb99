from __future__ import annotations

from planner.catalog import LEVELED_SUBJECTS, Subject
from planner.grid import build_stream_groups
from services.admin_config import default_admin_config
from services.dataset import DatasetGenerator, build_dataset


def test_same_seed_same_dataset():
    first = build_dataset(default_admin_config(), seed=7)
    second = build_dataset(default_admin_config(), seed=7)

    assert first == second


def test_different_seed_changes_students():
    assert build_dataset(default_admin_config(), seed=1).students != build_dataset(default_admin_config(), seed=2).students


def test_default_campus_shape():
    data = build_dataset(default_admin_config(), seed=42)

    assert len(data.rooms) == 5
    assert len(data.students) == 106
    assert len(data.courses) == 33
    assert [g.id for g in data.stream_groups] == [
        "sg-kammi-1",
        "sg-kammi-3",
        "sg-lafthi-2",
        "sg-lafthi-5",
        "sg-esl-4",
        "sg-esl-6",
    ]
    assert data.grade_course_selections[10] == {Subject.MINISTRY: "c19", Subject.FUTURE: "c25", Subject.T_MATH: "c28"}
    assert len(data.grade_course_selections[12]) == 6


def test_students_are_fully_specified():
    data = build_dataset(default_admin_config(), seed=3)
    room_ids = {r.id for r in data.rooms}

    for s in data.students:
        assert s.homeroom in room_ids
        assert set(s.needs) == set(LEVELED_SUBJECTS)
        # Both Qudrat subjects come from a single roll.
        assert s.is_done(Subject.KAMMI) == s.is_done(Subject.LAFTHI)
        if s.grade == 10:
            assert not any(s.done.values())


def test_course_catalog_is_independent_of_student_draws():
    gen = DatasetGenerator(seed=5)
    courses = gen.courses()

    assert courses == DatasetGenerator(seed=99).courses()
    assert courses[0].teacher_name == courses[20].teacher_name
    assert len(build_stream_groups(courses)) == 6
