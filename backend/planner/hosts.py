from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from planner.catalog import ALTERNATE_TRACK_GRADE, IDEAL_ROOM_CAPACITY, LEVELS, AlternateTrack, Level, Subject, SUBJECTS, parse_level
from planner.domain import Room, RoomHost, Student
from planner.routing import DemandRemap, empty_counts


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HostAssignment:
    subject: Subject
    host_by_room: dict[int, RoomHost]
    rooms_needed: dict[Level, int]
    levels_running: list[Level]
    fixed_rooms: frozenset[int]

    def rooms_hosting(self, level: Level) -> list[int]:
        return sorted(rid for rid, host in self.host_by_room.items() if host == level)

    def host_counts(self) -> dict[Level, int]:
        counts = empty_counts()
        for host in self.host_by_room.values():
            if isinstance(host, Level):
                counts[host] += 1
        return counts


def reserved_for_alternate_track(subject: Subject, room: Room) -> bool:
    """Grade-12 rooms never host Qudrat; they run the Tahsili track instead."""
    return SUBJECTS[subject].qudrat and room.grade == ALTERNATE_TRACK_GRADE


def rooms_needed_for(remap: DemandRemap, available: int, ideal_capacity: int = IDEAL_ROOM_CAPACITY) -> dict[Level, int]:
    needed = empty_counts()
    for lv in remap.levels_running:
        demand = remap.effective[lv]
        if demand > 0:
            needed[lv] = max(1, math.ceil(demand / ideal_capacity))

    # Shrink the level that suffers least from losing a room until the plan fits.
    while sum(needed.values()) > available:
        reducible = [lv for lv in remap.levels_running if needed[lv] > 1]
        if not reducible:
            break

        def _penalty(lv: Level) -> tuple[int, int, int]:
            overflow = max(0, remap.effective[lv] - (needed[lv] - 1) * ideal_capacity)
            return (overflow, remap.effective[lv], LEVELS.index(lv))

        victim = min(reducible, key=_penalty)
        needed[victim] -= 1
        logger.debug(
            "Room shortage for %s: %s reduced to %s room(s) (%s rooms available)",
            remap.subject.value,
            victim.value,
            needed[victim],
            available,
        )
    return needed


def home_level_counts(subject: Subject, remap: DemandRemap, students: list[Student], rooms: list[Room]) -> dict[int, dict[Level, int]]:
    """Per-room headcount of students by effective level (done students excluded)."""
    counts: dict[int, dict[Level, int]] = {r.id: empty_counts() for r in rooms}
    for s in students:
        room_counts = counts.get(s.homeroom)
        if room_counts is None or s.is_done(subject):
            continue
        room_counts[remap.level_for(s)] += 1
    return counts


def _pick_best_room(candidates: list[Room], assigned: set[int], counts: dict[int, dict[Level, int]], level: Level) -> Room | None:
    best: Room | None = None
    best_count = -1
    for room in candidates:
        if room.id in assigned:
            continue
        count = counts.get(room.id, {}).get(level, 0)
        if count > best_count:
            best = room
            best_count = count
    return best


def assign_room_hosts(
    subject: Subject,
    remap: DemandRemap,
    students: list[Student],
    rooms: list[Room],
    *,
    ideal_capacity: int = IDEAL_ROOM_CAPACITY,
    overrides: dict[int, object] | None = None,
) -> HostAssignment:
    ordered = sorted(rooms, key=lambda r: r.id)
    fixed = frozenset(r.id for r in ordered if reserved_for_alternate_track(subject, r))
    candidates = [r for r in ordered if r.id not in fixed]

    counts = home_level_counts(subject, remap, students, candidates)
    needed = rooms_needed_for(remap, len(candidates), ideal_capacity)

    host_by_room: dict[int, RoomHost] = {}
    assigned: set[int] = set()

    level_order = sorted(remap.levels_running, key=lambda lv: -remap.effective[lv])
    for lv in level_order:
        for _ in range(needed[lv]):
            best = _pick_best_room(candidates, assigned, counts, lv)
            if best is None:
                break
            host_by_room[best.id] = lv
            assigned.add(best.id)

    fallback = level_order[0] if level_order else Level.L2
    for room in candidates:
        if room.id not in host_by_room:
            host_by_room[room.id] = fallback

    for rid in fixed:
        host_by_room[rid] = AlternateTrack.AUTO_TAHSILI

    for rid, raw in (overrides or {}).items():
        level = parse_level(raw)
        if rid not in host_by_room or rid in fixed or level is None or level not in remap.levels_running:
            logger.debug("Ignoring host override room=%s host=%r for %s", rid, raw, subject.value)
            continue
        host_by_room[rid] = level

    return HostAssignment(
        subject=subject,
        host_by_room=host_by_room,
        rooms_needed=needed,
        levels_running=list(remap.levels_running),
        fixed_rooms=fixed,
    )
