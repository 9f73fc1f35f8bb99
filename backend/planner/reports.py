from __future__ import annotations

from dataclasses import dataclass

from planner.catalog import ALTERNATE_TRACK_GRADE, LEVELED_SUBJECTS, Level, Subject
from planner.domain import Room, Student
from planner.grid import Grid, all_cells
from planner.routing import empty_counts


@dataclass(frozen=True)
class ScheduleStats:
    total: int
    filled: int
    unresolved: int

    @property
    def done(self) -> bool:
        return self.filled == self.total and self.unresolved == 0


@dataclass(frozen=True)
class DemandSnapshot:
    totals: dict[Subject, dict[Level, int]]
    done_q: int
    still_q: int


@dataclass(frozen=True)
class RoomProfile:
    room_id: int
    grade: int
    level_counts: dict[Subject, dict[Level, int]]
    q_done: int
    q_not_done: int
    students: list[Student]

    @property
    def total(self) -> int:
        return len(self.students)


def schedule_stats(grid: Grid, rooms: list[Room], unresolved_count: int) -> ScheduleStats:
    total = filled = 0
    for room, day, slot in all_cells(rooms):
        total += 1
        if grid.get(room.id, day, slot):
            filled += 1
    return ScheduleStats(total=total, filled=filled, unresolved=unresolved_count)


def _level_counts(students: list[Student]) -> dict[Subject, dict[Level, int]]:
    counts = {subject: empty_counts() for subject in LEVELED_SUBJECTS}
    for s in students:
        for subject in LEVELED_SUBJECTS:
            if not s.is_done(subject):
                counts[subject][s.need(subject)] += 1
    return counts


def demand_snapshot(students: list[Student]) -> DemandSnapshot:
    done_q = sum(1 for s in students if s.done_q)
    return DemandSnapshot(totals=_level_counts(students), done_q=done_q, still_q=len(students) - done_q)


def room_profile(students: list[Student], rooms: list[Room], room_id: int) -> RoomProfile | None:
    room = next((r for r in rooms if r.id == room_id), None)
    if room is None:
        return None
    members = [s for s in students if s.homeroom == room_id]
    return RoomProfile(
        room_id=room_id,
        grade=room.grade,
        level_counts=_level_counts(members),
        q_done=sum(1 for s in members if s.done_q),
        q_not_done=sum(1 for s in members if not s.done_q and s.grade == ALTERNATE_TRACK_GRADE),
        students=members,
    )
