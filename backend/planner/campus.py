from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

from planner.catalog import ALTERNATE_TRACK_GRADE, IDEAL_ROOM_CAPACITY, LEVELED_SUBJECTS, Level, Subject, SUBJECTS
from planner.domain import Course, MoveResolutions, Room, StreamGroup, Student, index_courses
from planner.grid import Grid, build_campus_whitelist
from planner.placement import RoomMapPreview, build_room_map_preview
from planner.reconcile import auto_resolve_moves
from planner.routing import RoutingPolicy, default_routing_policy, level_open_from_routing


logger = logging.getLogger(__name__)

_SUBJECT_ORDER = list(Subject)


@dataclass(frozen=True)
class GridConflict:
    """A grade-wide course overwrote a cell already seeded for another course."""

    room_id: int
    day: str
    slot: int
    previous_course_id: str
    next_course_id: str


@dataclass(frozen=True)
class CampusPlan:
    grid: Grid
    whitelist: frozenset[str]
    previews: dict[Subject, RoomMapPreview]
    conflicts: list[GridConflict]
    resolutions: MoveResolutions


def auto_assign_tahsili(grid: Grid, courses: list[Course], group: StreamGroup, rooms: list[Room]) -> set[str]:
    """Seed grade-12 rooms with the grade-12 Tahsili meetings that coincide with a Qudrat bundle."""
    qudrat_cells = {(m.day, m.slot) for c in group.courses for m in c.meetings}
    tahsili = [c for c in courses if c.grade == ALTERNATE_TRACK_GRADE and SUBJECTS[c.subject].tahsili]

    placed: set[str] = set()
    for room in sorted(rooms, key=lambda r: r.id):
        if room.grade != ALTERNATE_TRACK_GRADE:
            continue
        for course in tahsili:
            for m in course.meetings:
                if (m.day, m.slot) in qudrat_cells:
                    grid.set(room.id, m.day, m.slot, course.id)
                    placed.add(course.id)
    return placed


def apply_campus_plan(
    *,
    rooms: list[Room],
    students: list[Student],
    courses: list[Course],
    stream_groups: list[StreamGroup],
    selected_streams: Mapping[Subject, str | None],
    policies: Mapping[Subject, RoutingPolicy],
    grade_course_selections: Mapping[int, Mapping[Subject, str | None]],
    host_overrides: Mapping[Subject, Mapping[int, object]] | None = None,
    ideal_capacity: int = IDEAL_ROOM_CAPACITY,
) -> CampusPlan:
    """Rebuild the weekly grid from scratch and auto-resolve the resulting moves."""
    policies = {s: policies.get(s) or default_routing_policy() for s in LEVELED_SUBJECTS}
    groups_by_id = {g.id: g for g in stream_groups}
    courses_by_id = index_courses(courses)
    ordered_rooms = sorted(rooms, key=lambda r: r.id)

    whitelist = set(
        build_campus_whitelist(selected_streams, grade_course_selections, level_open_from_routing(policies), stream_groups)
    )
    grid = Grid()
    previews: dict[Subject, RoomMapPreview] = {}

    for subject in LEVELED_SUBJECTS:
        group = groups_by_id.get(selected_streams.get(subject) or "")
        if group is None or group.subject != subject:
            continue

        preview = build_room_map_preview(
            subject,
            policies[subject],
            students,
            rooms,
            ideal_capacity=ideal_capacity,
            host_overrides=dict((host_overrides or {}).get(subject) or {}),
        )
        previews[subject] = preview

        for room in ordered_rooms:
            host = preview.host_by_room[room.id]
            if not isinstance(host, Level) or host not in preview.levels_running:
                continue
            course = group.course_for(host)
            if course is None or course.id not in whitelist:
                continue
            grid.place_course(room.id, course)

        if SUBJECTS[subject].qudrat:
            whitelist |= auto_assign_tahsili(grid, courses, group, rooms)

    conflicts: list[GridConflict] = []
    for grade in sorted(grade_course_selections):
        selection = grade_course_selections[grade] or {}
        grade_rooms = [r for r in ordered_rooms if r.grade == grade]
        for subject in sorted(selection, key=_SUBJECT_ORDER.index):
            course = courses_by_id.get(selection[subject] or "")
            if course is None or course.id not in whitelist:
                continue
            for room in grade_rooms:
                for m in course.meetings:
                    existing = grid.get(room.id, m.day, m.slot)
                    if existing and existing != course.id:
                        conflicts.append(GridConflict(room.id, m.day.value, m.slot, existing, course.id))
                    grid.set(room.id, m.day, m.slot, course.id)

    active = frozenset(whitelist)
    resolutions = auto_resolve_moves(grid, courses, students, rooms, active)
    logger.info(
        "Campus plan applied: %d cells, %d conflict(s), %d student(s) with resolved moves",
        len(grid),
        len(conflicts),
        len(resolutions),
    )
    return CampusPlan(grid=grid, whitelist=active, previews=previews, conflicts=conflicts, resolutions=resolutions)
