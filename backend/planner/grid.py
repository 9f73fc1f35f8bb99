from __future__ import annotations

from collections import defaultdict
from typing import Iterator, Mapping

from planner.catalog import DAYS, LEVELS, SLOTS, Day, Level, Subject, SUBJECTS
from planner.domain import Course, Room, StreamGroup


CellKey = tuple[int, Day, int]


class Grid:
    """Weekly assignments: (room id, day, slot) -> course id.

    A missing key is an empty cell. Builders fill a fresh grid; edits made
    after that go through `assign_course_to_room` / `clear_course_meetings`,
    which return new grids so earlier references stay valid.
    """

    __slots__ = ("_cells",)

    def __init__(self, cells: Mapping[CellKey, str] | None = None):
        self._cells: dict[CellKey, str] = dict(cells or {})

    def get(self, room_id: int, day: Day, slot: int) -> str | None:
        return self._cells.get((room_id, day, slot))

    def set(self, room_id: int, day: Day, slot: int, course_id: str) -> None:
        self._cells[(room_id, day, slot)] = course_id

    def clear(self, room_id: int, day: Day, slot: int) -> None:
        self._cells.pop((room_id, day, slot), None)

    def place_course(self, room_id: int, course: Course) -> None:
        for m in course.meetings:
            self.set(room_id, m.day, m.slot, course.id)

    def copy(self) -> "Grid":
        return Grid(self._cells)

    def cells(self) -> Iterator[tuple[CellKey, str]]:
        return iter(self._cells.items())

    def __len__(self) -> int:
        return len(self._cells)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Grid) and self._cells == other._cells

    def __repr__(self) -> str:
        return f"Grid({len(self._cells)} cells)"

    @classmethod
    def from_nested(cls, nested: Mapping[int, Mapping[object, Mapping[int, str | None]]] | None) -> "Grid":
        grid = cls()
        for room_id, days in (nested or {}).items():
            for day_raw, slots in (days or {}).items():
                day = day_raw if isinstance(day_raw, Day) else Day(str(day_raw))
                for slot, course_id in (slots or {}).items():
                    if course_id:
                        grid.set(int(room_id), day, int(slot), str(course_id))
        return grid

    def to_nested(self) -> dict[int, dict[str, dict[int, str]]]:
        nested: dict[int, dict[str, dict[int, str]]] = {}
        for (room_id, day, slot), course_id in sorted(
            self._cells.items(), key=lambda kv: (kv[0][0], DAYS.index(kv[0][1]), kv[0][2])
        ):
            nested.setdefault(room_id, {}).setdefault(day.value, {})[slot] = course_id
        return nested


def course_at(grid: Grid, courses_by_id: Mapping[str, Course], room_id: int, day: Day, slot: int) -> Course | None:
    """Course running in a cell; ids missing from the catalog read as an empty cell."""
    course_id = grid.get(room_id, day, slot)
    if not course_id:
        return None
    return courses_by_id.get(course_id)


def assign_course_to_room(grid: Grid, room_id: int, course: Course) -> Grid:
    nxt = grid.copy()
    nxt.place_course(room_id, course)
    return nxt


def clear_course_meetings(grid: Grid, room_id: int, course: Course) -> Grid:
    nxt = grid.copy()
    for m in course.meetings:
        if nxt.get(room_id, m.day, m.slot) == course.id:
            nxt.clear(room_id, m.day, m.slot)
    return nxt


def build_stream_groups(courses: list[Course]) -> list[StreamGroup]:
    """Bundle leveled courses by subject and first slot.

    Only bundles holding exactly one course for each of L1, L2 and L3 are
    returned; partial bundles cannot host a full routing plan.
    """
    groups: list[StreamGroup] = []
    for subject in (s for s, d in SUBJECTS.items() if d.leveled):
        by_slot: dict[int, list[Course]] = defaultdict(list)
        for c in courses:
            if c.subject != subject or not c.meetings:
                continue
            by_slot[c.meetings[0].slot].append(c)

        for slot in sorted(by_slot):
            bundle = by_slot[slot]
            levels = sorted((c.level for c in bundle if c.level is not None), key=LEVELS.index)
            if len(bundle) != len(LEVELS) or tuple(levels) != LEVELS:
                continue
            ordered = tuple(sorted(bundle, key=lambda c: LEVELS.index(c.level)))  # type: ignore[arg-type]
            groups.append(
                StreamGroup(
                    id=f"sg-{subject.value}-{slot}",
                    subject=subject,
                    slot=slot,
                    pattern=ordered[0].pattern,
                    courses=ordered,
                )
            )
    return groups


def build_campus_whitelist(
    selected_streams: Mapping[Subject, str | None],
    grade_course_selections: Mapping[int, Mapping[Subject, str | None]],
    level_open: Mapping[Subject, Mapping[Level, bool]],
    stream_groups: list[StreamGroup],
) -> frozenset[str]:
    by_id = {g.id: g for g in stream_groups}
    active: set[str] = set()

    for subject, group_id in selected_streams.items():
        group = by_id.get(group_id or "")
        if group is None:
            continue
        for c in group.courses:
            if c.level is not None and level_open.get(subject, {}).get(c.level) is False:
                continue
            active.add(c.id)

    for selection in grade_course_selections.values():
        for course_id in (selection or {}).values():
            if course_id:
                active.add(course_id)

    return frozenset(active)


def available_courses(
    courses: list[Course],
    whitelist: frozenset[str] | None,
    grid: Grid,
    rooms: list[Room],
    room_id: int,
    day: Day,
    slot: int,
    subject_filter: Subject | None = None,
) -> list[Course]:
    """Courses that could be placed in a cell by a manual edit."""
    if not whitelist:
        return []
    room_grade = next((r.grade for r in rooms if r.id == room_id), None)
    current = grid.get(room_id, day, slot)

    out: list[Course] = []
    for c in courses:
        if c.id not in whitelist or not c.meets_at(day, slot):
            continue
        if subject_filter is not None and c.subject != subject_filter:
            continue
        if SUBJECTS[c.subject].grade_bound and c.grade != room_grade:
            continue
        if current == c.id:
            continue
        out.append(c)
    return out


def all_cells(rooms: list[Room]) -> Iterator[tuple[Room, Day, int]]:
    """Every room x day x slot, rooms by id, days in week order, slots by id."""
    for room in sorted(rooms, key=lambda r: r.id):
        for day in DAYS:
            for slot in SLOTS:
                yield room, day, slot.id
