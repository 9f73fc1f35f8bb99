from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from planner.catalog import AlternateTrack, Day, Level, Subject, SUBJECTS


RoomHost = Union[Level, AlternateTrack]

# student id -> block key -> destination room id
MoveResolutions = dict[str, dict[str, int]]


@dataclass(frozen=True)
class Room:
    id: int
    name: str
    grade: int
    capacity: int


@dataclass(frozen=True)
class Student:
    id: str
    name: str
    homeroom: int
    grade: int
    needs: dict[Subject, Level]
    done: dict[Subject, bool] = field(default_factory=dict)
    strength: float = 0.5

    def is_done(self, subject: Subject) -> bool:
        return bool(self.done.get(subject, False))

    def need(self, subject: Subject) -> Level:
        return self.needs[subject]

    @property
    def done_q(self) -> bool:
        """Done with both Qudrat subjects."""
        return self.is_done(Subject.KAMMI) and self.is_done(Subject.LAFTHI)


@dataclass(frozen=True)
class Meeting:
    day: Day
    slot: int


@dataclass(frozen=True)
class Course:
    id: str
    subject: Subject
    level: Level | None
    grade: int | None
    meetings: tuple[Meeting, ...]
    segment: str | None = None
    teacher_name: str = ""

    @property
    def pattern(self) -> str:
        days: list[str] = []
        for m in self.meetings:
            if m.day.value not in days:
                days.append(m.day.value)
        return "/".join(days)

    @property
    def block_key(self) -> str:
        return block_key_for_course(self)

    def meets_at(self, day: Day, slot: int) -> bool:
        return any(m.day == day and m.slot == slot for m in self.meetings)


@dataclass(frozen=True)
class StreamGroup:
    """One bundle of L1/L2/L3 courses of a leveled subject sharing a slot."""

    id: str
    subject: Subject
    slot: int
    pattern: str
    courses: tuple[Course, ...]

    def course_for(self, level: Level) -> Course | None:
        for c in self.courses:
            if c.level == level:
                return c
        return None


def block_key_for_course(course: Course | None) -> str:
    if course is None:
        return ""
    slot = course.meetings[0].slot if course.meetings else "?"
    return f"{course.subject.value}|slot{slot}|{course.pattern}"


def course_label(course: Course | None) -> str:
    if course is None:
        return ""
    label = SUBJECTS[course.subject].name
    if course.level is not None:
        label += f" {course.level.value}"
    if course.grade is not None:
        label += f" G{course.grade}"
    return label


def index_courses(courses: list[Course] | tuple[Course, ...]) -> dict[str, Course]:
    return {c.id: c for c in courses}

