from __future__ import annotations

from factories import done_with_qudrat, make_course, make_student
from planner.catalog import Level, Subject
from planner.rules import course_matches_student


def test_senior_done_with_qudrat_matches_grade_12_tahsili():
    physics = make_course("tp", Subject.T_PHYSICS, grade=12)
    student = make_student("h", 1, grade=12, kammi=Level.L1, done=done_with_qudrat())

    assert course_matches_student(physics, student)


def test_senior_not_done_with_qudrat_does_not_match_tahsili():
    physics = make_course("tp", Subject.T_PHYSICS, grade=12)
    student = make_student("g", 1, grade=12, kammi=Level.L1)

    assert not course_matches_student(physics, student)


def test_senior_done_with_one_qudrat_subject_is_still_gated():
    physics = make_course("tp", Subject.T_PHYSICS, grade=12)
    student = make_student("g", 1, grade=12, done={Subject.KAMMI: True})

    assert not course_matches_student(physics, student)


def test_tahsili_is_grade_bound_below_grade_12():
    physics = make_course("tp", Subject.T_PHYSICS, grade=11)

    assert course_matches_student(physics, make_student("a", 0, grade=11))
    assert not course_matches_student(physics, make_student("b", 0, grade=10))


def test_leveled_course_matches_needed_level_only():
    esl_l2 = make_course("e2", Subject.ESL, Level.L2)

    assert course_matches_student(esl_l2, make_student("a", 0, esl=Level.L2))
    assert not course_matches_student(esl_l2, make_student("b", 0, esl=Level.L1))
    assert not course_matches_student(esl_l2, make_student("c", 0, done={Subject.ESL: True}))


def test_qudrat_course_does_not_match_student_done_with_qudrat():
    kammi = make_course("k1", Subject.KAMMI, Level.L1)
    student = make_student("h", 1, grade=12, kammi=Level.L1, done=done_with_qudrat())

    assert not course_matches_student(kammi, student)
