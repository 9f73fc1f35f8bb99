from __future__ import annotations

from dataclasses import dataclass

from planner.catalog import ALTERNATE_TRACK_GRADE, IDEAL_ROOM_CAPACITY, Level, Subject, SUBJECTS
from planner.domain import Room, RoomHost, Student
from planner.hosts import HostAssignment, assign_room_hosts
from planner.routing import DemandRemap, RoutingPolicy, remap_demand


@dataclass(frozen=True)
class Placement:
    room_by_student: dict[str, int]
    occupancy: dict[int, int]
    forced_stays: int


@dataclass(frozen=True)
class RoomMapRow:
    room_id: int
    room_name: str
    grade: int
    host: RoomHost
    fixed: bool
    stay: int
    in_count: int
    out_count: int
    effective_count: int
    capacity: int


@dataclass(frozen=True)
class WorstRoom:
    room_id: int
    effective: int
    capacity: int


@dataclass(frozen=True)
class RoomMapSummary:
    stay: int
    move: int
    forced_stays: int
    worst_room: WorstRoom | None


@dataclass(frozen=True)
class RoomMapPreview:
    subject: Subject
    hosts: HostAssignment
    rows: list[RoomMapRow]
    summary: RoomMapSummary
    level_demand: dict[Level, int]
    levels_running: list[Level]
    remap: DemandRemap

    @property
    def host_by_room(self) -> dict[int, RoomHost]:
        return self.hosts.host_by_room


def exempt_from_subject(subject: Subject, student: Student) -> bool:
    """Grade-12 students done with Qudrat sit the Tahsili track in their own room."""
    return SUBJECTS[subject].qudrat and student.grade == ALTERNATE_TRACK_GRADE and student.done_q


def simulate_placement(
    subject: Subject,
    hosts: HostAssignment,
    remap: DemandRemap,
    students: list[Student],
    rooms: list[Room],
) -> Placement:
    capacity = {r.id: r.capacity for r in rooms}
    occupancy = {r.id: 0 for r in rooms}
    ordered_rooms = sorted(rooms, key=lambda r: r.id)
    room_by_student: dict[str, int] = {}
    forced_stays = 0

    def _place(student: Student, room_id: int) -> None:
        room_by_student[student.id] = room_id
        occupancy[room_id] = occupancy.get(room_id, 0) + 1

    for s in sorted(students, key=lambda st: st.id):
        if s.is_done(subject) or exempt_from_subject(subject, s):
            _place(s, s.homeroom)
            continue

        target = remap.level_for(s)
        if target not in hosts.levels_running:
            _place(s, s.homeroom)
            forced_stays += 1
            continue

        if hosts.host_by_room.get(s.homeroom) == target:
            _place(s, s.homeroom)
            continue

        candidates = [r for r in ordered_rooms if hosts.host_by_room.get(r.id) == target]
        if not candidates:
            _place(s, s.homeroom)
            forced_stays += 1
            continue

        chosen = min(candidates, key=lambda r: (-(capacity[r.id] - occupancy[r.id]), r.id))
        _place(s, chosen.id)

    return Placement(room_by_student=room_by_student, occupancy=occupancy, forced_stays=forced_stays)


def build_room_map_preview(
    subject: Subject,
    policy: RoutingPolicy,
    students: list[Student],
    rooms: list[Room],
    *,
    ideal_capacity: int = IDEAL_ROOM_CAPACITY,
    host_overrides: dict[int, object] | None = None,
) -> RoomMapPreview:
    remap = remap_demand(students, subject, policy)
    hosts = assign_room_hosts(subject, remap, students, rooms, ideal_capacity=ideal_capacity, overrides=host_overrides)
    placement = simulate_placement(subject, hosts, remap, students, rooms)

    rows: list[RoomMapRow] = []
    for room in sorted(rooms, key=lambda r: r.id):
        stay = in_count = out_count = 0
        for s in students:
            target = placement.room_by_student.get(s.id)
            if s.homeroom == room.id and target == room.id:
                stay += 1
            elif s.homeroom != room.id and target == room.id:
                in_count += 1
            elif s.homeroom == room.id and target != room.id:
                out_count += 1
        rows.append(
            RoomMapRow(
                room_id=room.id,
                room_name=room.name,
                grade=room.grade,
                host=hosts.host_by_room[room.id],
                fixed=room.id in hosts.fixed_rooms,
                stay=stay,
                in_count=in_count,
                out_count=out_count,
                effective_count=placement.occupancy.get(room.id, 0),
                capacity=room.capacity,
            )
        )

    worst: WorstRoom | None = None
    for row in rows:
        if worst is None or row.effective_count > worst.effective:
            worst = WorstRoom(room_id=row.room_id, effective=row.effective_count, capacity=row.capacity)

    summary = RoomMapSummary(
        stay=sum(r.stay for r in rows),
        move=sum(r.out_count for r in rows),
        forced_stays=placement.forced_stays,
        worst_room=worst,
    )
    return RoomMapPreview(
        subject=subject,
        hosts=hosts,
        rows=rows,
        summary=summary,
        level_demand=dict(remap.effective),
        levels_running=list(remap.levels_running),
        remap=remap,
    )


def room_map_issues(preview: RoomMapPreview) -> list[str]:
    issues: list[str] = []
    host_rows = [r for r in preview.rows if not r.fixed]
    for lv in preview.levels_running:
        if preview.level_demand.get(lv, 0) > 0 and not any(r.host == lv for r in host_rows):
            issues.append(f"Missing room allocation for {lv.value}.")
    return issues
