from __future__ import annotations

import copy
import logging
from dataclasses import dataclass

from planner.catalog import Day
from planner.domain import Course, MoveResolutions, Room, Student
from planner.grid import Grid, all_cells
from planner.movement import MovementContext, MoveOption, cell_occupancy, compute_movement


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnresolvedMove:
    student: Student
    block_key: str
    day: Day
    slot: int
    from_room: int
    needed_label: str
    options: tuple[MoveOption, ...]

    @property
    def key(self) -> tuple[str, str]:
        return (self.student.id, self.block_key)


def collect_unresolved(ctx: MovementContext) -> list[UnresolvedMove]:
    """Unresolved must-move entries, one per (student, block key).

    Every meeting of a block carries the same movement, so the first cell
    swept (rooms by id, days in week order, slots by id) wins.
    """
    by_key: dict[tuple[str, str], UnresolvedMove] = {}
    for room, day, slot in all_cells(list(ctx.rooms)):
        if ctx.grid.get(room.id, day, slot) is None:
            continue
        movement = compute_movement(ctx, room.id, day, slot)
        if not movement.block_key:
            continue
        for move in movement.must_move_out:
            if move.resolved is not None:
                continue
            key = (move.student.id, movement.block_key)
            if key in by_key:
                continue
            by_key[key] = UnresolvedMove(
                student=move.student,
                block_key=movement.block_key,
                day=day,
                slot=slot,
                from_room=room.id,
                needed_label=move.needed_label,
                options=move.options,
            )
    return list(by_key.values())


def unresolved_moves(
    grid: Grid,
    courses: list[Course],
    students: list[Student],
    rooms: list[Room],
    resolutions: MoveResolutions | None,
    whitelist: frozenset[str] | set[str] | None,
) -> list[UnresolvedMove]:
    return collect_unresolved(MovementContext.build(grid, courses, students, rooms, resolutions, whitelist))


def _block_meetings(ctx: MovementContext, move: UnresolvedMove) -> list[tuple[Day, int]]:
    """Cells where the source room runs the course the student is leaving."""
    course = ctx.course_at(move.from_room, move.day, move.slot)
    if course is None:
        return [(move.day, move.slot)]
    cells = [(m.day, m.slot) for m in course.meetings if ctx.grid.get(move.from_room, m.day, m.slot) == course.id]
    return cells or [(move.day, move.slot)]


def auto_resolve_moves(
    grid: Grid,
    courses: list[Course],
    students: list[Student],
    rooms: list[Room],
    whitelist: frozenset[str] | set[str] | None,
    resolutions: MoveResolutions | None = None,
) -> MoveResolutions:
    """Greedily give every unresolved must-move student a destination.

    Existing entries are kept as they are. Each pick maximises the remaining
    capacity of the destination over every meeting of the block (ties: lower
    occupancy, then lower room id); a student whose every option is full
    stays unresolved. Single pass, no backtracking.
    """
    working: MoveResolutions = copy.deepcopy(resolutions or {})
    ctx = MovementContext.build(grid, courses, students, rooms, working, whitelist)
    capacity = {r.id: r.capacity for r in ctx.rooms}

    pending = sorted(collect_unresolved(ctx), key=lambda m: (m.block_key, m.from_room, m.student.id))
    placed = 0
    for move in pending:
        if working.get(move.student.id, {}).get(move.block_key) is not None:
            continue

        meetings = _block_meetings(ctx, move)
        best: tuple[tuple[int, int, int], int] | None = None
        for option in move.options:
            if option.room_id not in capacity:
                continue
            # The resolution holds for every meeting of the block, so the tightest one decides.
            occupancy = max(cell_occupancy(ctx, option.room_id, day, slot) for day, slot in meetings)
            remaining = capacity[option.room_id] - occupancy
            if remaining <= 0:
                continue
            rank = (-remaining, occupancy, option.room_id)
            if best is None or rank < best[0]:
                best = (rank, option.room_id)

        if best is None:
            logger.debug("No room with capacity for %s in %s", move.student.id, move.block_key)
            continue

        working.setdefault(move.student.id, {})[move.block_key] = best[1]
        placed += 1

    logger.info("Auto-resolve placed %d of %d pending move(s)", placed, len(pending))
    return working
