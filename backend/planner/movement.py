from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from planner.catalog import ALTERNATE_TRACK_GRADE, Day, SUBJECTS
from planner.domain import Course, MoveResolutions, Room, Student, index_courses
from planner.grid import Grid, course_at
from planner.rules import course_matches_student


logger = logging.getLogger(__name__)


class ForcedStayReason(str, Enum):
    COMPLETED = "COMPLETED"
    NO_SUPPLY = "NO_SUPPLY"


@dataclass(frozen=True)
class MoveOption:
    room_id: int
    course_id: str


@dataclass(frozen=True)
class MustMove:
    student: Student
    needed_label: str
    options: tuple[MoveOption, ...]
    resolved: int | None = None


@dataclass(frozen=True)
class ForcedStay:
    student: Student
    reason: ForcedStayReason
    reason_text: str


@dataclass(frozen=True)
class MovementResult:
    course_id: str | None = None
    block_key: str = ""
    aligned: list[Student] = field(default_factory=list)
    must_move_out: list[MustMove] = field(default_factory=list)
    forced_stay: list[ForcedStay] = field(default_factory=list)
    move_ins: list[Student] = field(default_factory=list)
    effective_here: int = 0


@dataclass(frozen=True)
class MovementContext:
    """Everything a movement computation reads. Never mutated."""

    grid: Grid
    courses_by_id: Mapping[str, Course]
    students: tuple[Student, ...]
    rooms: tuple[Room, ...]
    resolutions: MoveResolutions
    whitelist: frozenset[str]

    @classmethod
    def build(
        cls,
        grid: Grid,
        courses: list[Course],
        students: list[Student],
        rooms: list[Room],
        resolutions: MoveResolutions | None,
        whitelist: frozenset[str] | set[str] | None,
    ) -> "MovementContext":
        return cls(
            grid=grid,
            courses_by_id=index_courses(courses),
            students=tuple(students),
            rooms=tuple(sorted(rooms, key=lambda r: r.id)),
            resolutions=resolutions if resolutions is not None else {},
            whitelist=frozenset(whitelist or ()),
        )

    def course_at(self, room_id: int, day: Day, slot: int) -> Course | None:
        return course_at(self.grid, self.courses_by_id, room_id, day, slot)

    def resolution(self, student_id: str, block_key: str) -> int | None:
        return self.resolutions.get(student_id, {}).get(block_key)


def current_room(ctx: MovementContext, student: Student, day: Day, slot: int) -> int:
    """Room a student sits in at a cell: their resolution for the block their homeroom runs, else home."""
    home_course = ctx.course_at(student.homeroom, day, slot)
    if home_course is None:
        return student.homeroom
    dest = ctx.resolution(student.id, home_course.block_key)
    return student.homeroom if dest is None else dest


def cell_occupancy(ctx: MovementContext, room_id: int, day: Day, slot: int) -> int:
    """Home count minus resolved-out plus resolved-in for one cell."""
    return sum(1 for s in ctx.students if current_room(ctx, s, day, slot) == room_id)


def move_options(ctx: MovementContext, student: Student, room_id: int, day: Day, slot: int) -> list[MoveOption]:
    options: list[MoveOption] = []
    for room in ctx.rooms:
        if room.id == room_id:
            continue
        other = ctx.course_at(room.id, day, slot)
        if other is None or other.id not in ctx.whitelist:
            continue
        if course_matches_student(other, student):
            options.append(MoveOption(room_id=room.id, course_id=other.id))
    return options


def _option_subjects(ctx: MovementContext, options: list[MoveOption], *, qudrat: bool = False, tahsili: bool = False) -> list[MoveOption]:
    kept: list[MoveOption] = []
    for o in options:
        subject = SUBJECTS[ctx.courses_by_id[o.course_id].subject]
        if (qudrat and subject.qudrat) or (tahsili and subject.tahsili):
            kept.append(o)
    return kept


def _need_label(course: Course, student: Student) -> str:
    subject = SUBJECTS[course.subject]
    if subject.leveled:
        return f"{subject.name} {student.need(course.subject).value}"
    return f"{subject.name} Grade {student.grade}"


def compute_movement(ctx: MovementContext, room_id: int, day: Day, slot: int) -> MovementResult:
    course = ctx.course_at(room_id, day, slot)
    if course is None:
        return MovementResult()

    block_key = course.block_key
    subject = SUBJECTS[course.subject]

    aligned: list[Student] = []
    must_move: list[MustMove] = []
    forced: list[ForcedStay] = []

    def _route(student: Student, options: list[MoveOption], label: str, reason: ForcedStayReason, text: str) -> None:
        if options:
            must_move.append(MustMove(student, label, tuple(options), ctx.resolution(student.id, block_key)))
        else:
            forced.append(ForcedStay(student, reason, text))

    for s in ctx.students:
        if s.homeroom != room_id or current_room(ctx, s, day, slot) != room_id:
            continue

        options = move_options(ctx, s, room_id, day, slot)
        gated = subject.tahsili and s.grade == ALTERNATE_TRACK_GRADE and not s.done_q

        if gated:
            qudrat_options = _option_subjects(ctx, options, qudrat=True)
            if not qudrat_options:
                # Nothing Qudrat runs anywhere now, so the Tahsili room is where they belong.
                aligned.append(s)
            else:
                must_move.append(MustMove(s, "Qudrat (not done)", tuple(qudrat_options), ctx.resolution(s.id, block_key)))
            continue

        if course_matches_student(course, s):
            aligned.append(s)
            continue

        if subject.leveled and (s.is_done(course.subject) or (subject.qudrat and s.done_q)):
            if subject.qudrat:
                nxt = _option_subjects(ctx, options, tahsili=True)
                label = f"Tahsili Grade {s.grade}"
            else:
                nxt = [o for o in options if ctx.courses_by_id[o.course_id].subject != course.subject]
                label = "Next course"
            _route(
                s,
                nxt,
                label,
                ForcedStayReason.COMPLETED,
                f"Done with {subject.name}; self-study (no alternate course this slot)",
            )
            continue

        label = _need_label(course, s)
        _route(
            s,
            options,
            label,
            ForcedStayReason.NO_SUPPLY,
            f"No matching course running anywhere on campus for this slot ({label})",
        )

    move_ins = [s for s in ctx.students if s.homeroom != room_id and current_room(ctx, s, day, slot) == room_id]
    effective_here = cell_occupancy(ctx, room_id, day, slot)

    logger.debug(
        "Movement room=%s %s/%s %s: aligned=%d out=%d forced=%d in=%d",
        room_id,
        day.value,
        slot,
        block_key,
        len(aligned),
        len(must_move),
        len(forced),
        len(move_ins),
    )
    return MovementResult(
        course_id=course.id,
        block_key=block_key,
        aligned=aligned,
        must_move_out=must_move,
        forced_stay=forced,
        move_ins=move_ins,
        effective_here=effective_here,
    )
