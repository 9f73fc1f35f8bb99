from __future__ import annotations

from planner.catalog import ALTERNATE_TRACK_GRADE, SUBJECTS
from planner.domain import Course, Student


def course_matches_student(course: Course, student: Student) -> bool:
    """True when *course* is exactly what *student* should attend in its slot."""
    subject = SUBJECTS[course.subject]

    if subject.tahsili:
        if course.grade != student.grade:
            return False
        # Grade-12 Tahsili is only open to students done with Qudrat.
        if student.grade == ALTERNATE_TRACK_GRADE and not student.done_q:
            return False
        return True

    if subject.grade_bound:
        return course.grade == student.grade

    if subject.leveled:
        if student.is_done(course.subject):
            return False
        if subject.qudrat and student.done_q:
            return False
        return student.needs.get(course.subject) == course.level

    return True
