from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from planner.catalog import LEVELED_SUBJECTS, Day, Level, Subject
from planner.domain import Course, Meeting, Room, StreamGroup, Student


class RoomSchema(BaseModel):
    id: int
    name: str
    grade: int
    capacity: int = Field(ge=0)

    def to_domain(self) -> Room:
        return Room(id=self.id, name=self.name, grade=self.grade, capacity=self.capacity)

    @classmethod
    def from_domain(cls, room: Room) -> "RoomSchema":
        return cls(id=room.id, name=room.name, grade=room.grade, capacity=room.capacity)


class StudentSchema(BaseModel):
    id: str = Field(min_length=1)
    name: str = ""
    homeroom: int
    grade: int
    needs: dict[Subject, Level]
    done: dict[Subject, bool] = Field(default_factory=dict)
    strength: float = 0.5
    # Derived; ignored on input.
    done_q: bool = False

    @model_validator(mode="after")
    def _check_needs(self) -> "StudentSchema":
        missing = [s.value for s in LEVELED_SUBJECTS if s not in self.needs and not self.done.get(s, False)]
        if missing:
            raise ValueError(f"missing level for: {', '.join(missing)}")
        return self

    def to_domain(self) -> Student:
        return Student(
            id=self.id,
            name=self.name,
            homeroom=self.homeroom,
            grade=self.grade,
            needs=dict(self.needs),
            done=dict(self.done),
            strength=self.strength,
        )

    @classmethod
    def from_domain(cls, student: Student) -> "StudentSchema":
        return cls(
            id=student.id,
            name=student.name,
            homeroom=student.homeroom,
            grade=student.grade,
            needs=dict(student.needs),
            done=dict(student.done),
            strength=student.strength,
            done_q=student.done_q,
        )


class MeetingSchema(BaseModel):
    day: Day
    slot: int = Field(ge=1)


class CourseSchema(BaseModel):
    id: str = Field(min_length=1)
    subject: Subject
    level: Level | None = None
    grade: int | None = None
    segment: str | None = None
    teacher_name: str = ""
    meetings: list[MeetingSchema] = Field(default_factory=list)
    # Derived; ignored on input.
    pattern: str = ""
    block_key: str = ""

    def to_domain(self) -> Course:
        return Course(
            id=self.id,
            subject=self.subject,
            level=self.level,
            grade=self.grade,
            meetings=tuple(Meeting(day=m.day, slot=m.slot) for m in self.meetings),
            segment=self.segment,
            teacher_name=self.teacher_name,
        )

    @classmethod
    def from_domain(cls, course: Course) -> "CourseSchema":
        return cls(
            id=course.id,
            subject=course.subject,
            level=course.level,
            grade=course.grade,
            segment=course.segment,
            teacher_name=course.teacher_name,
            meetings=[MeetingSchema(day=m.day, slot=m.slot) for m in course.meetings],
            pattern=course.pattern,
            block_key=course.block_key,
        )


class StreamGroupOut(BaseModel):
    id: str
    subject: Subject
    slot: int
    pattern: str
    course_ids: list[str]

    @classmethod
    def from_domain(cls, group: StreamGroup) -> "StreamGroupOut":
        return cls(
            id=group.id,
            subject=group.subject,
            slot=group.slot,
            pattern=group.pattern,
            course_ids=[c.id for c in group.courses],
        )


class CampusData(BaseModel):
    """Rooms, students and the course catalog a planner request works on."""

    rooms: list[RoomSchema] = Field(min_length=1)
    students: list[StudentSchema] = Field(default_factory=list)
    courses: list[CourseSchema] = Field(default_factory=list)

    def domain_rooms(self) -> list[Room]:
        return [r.to_domain() for r in self.rooms]

    def domain_students(self) -> list[Student]:
        return [s.to_domain() for s in self.students]

    def domain_courses(self) -> list[Course]:
        return [c.to_domain() for c in self.courses]


class DatasetOut(CampusData):
    seed: int
    stream_groups: list[StreamGroupOut] = Field(default_factory=list)
    grade_course_selections: dict[int, dict[Subject, str]] = Field(default_factory=dict)
