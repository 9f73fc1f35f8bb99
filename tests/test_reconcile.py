from __future__ import annotations

import copy

from factories import ESL_BLOCK, make_course, make_room, make_student
from planner.catalog import Day, Level, Subject
from planner.grid import Grid, all_cells
from planner.movement import MovementContext, cell_occupancy
from planner.reconcile import auto_resolve_moves, unresolved_moves
from planner.reports import schedule_stats


def _resolve(campus, resolutions=None, students=None):
    return auto_resolve_moves(
        campus.grid,
        campus.courses,
        students if students is not None else campus.students,
        campus.rooms,
        campus.whitelist,
        resolutions,
    )


def _unresolved(campus, resolutions):
    return unresolved_moves(campus.grid, campus.courses, campus.students, campus.rooms, resolutions, campus.whitelist)


def test_unresolved_is_deduplicated_per_block(esl_campus):
    moves = _unresolved(esl_campus, {})

    assert len(moves) == 1
    (move,) = moves
    assert move.key == ("b", ESL_BLOCK)
    # Sunday is swept before Tuesday.
    assert (move.day, move.slot, move.from_room) == (Day.SUN, 4, 0)
    assert move.needed_label == "ESL (IELTS) L2"


def test_auto_resolve_places_and_clears_unresolved(esl_campus):
    given: dict = {}

    resolutions = _resolve(esl_campus, given)

    assert resolutions == {"b": {ESL_BLOCK: 1}}
    assert given == {}
    assert _unresolved(esl_campus, resolutions) == []


def test_auto_resolve_is_deterministic(esl_campus):
    first = _resolve(esl_campus)
    second = _resolve(esl_campus, students=list(reversed(esl_campus.students)))
    assert first == second


def test_full_destination_leaves_move_unresolved(esl_campus):
    esl_campus.rooms[1] = make_room(1, capacity=1)

    resolutions = _resolve(esl_campus)

    assert resolutions == {}
    assert [m.student.id for m in _unresolved(esl_campus, resolutions)] == ["b"]


def test_existing_resolutions_are_never_overwritten(esl_campus):
    given = {"b": {ESL_BLOCK: 2}, "zz": {"other": 0}}
    snapshot = copy.deepcopy(given)

    resolutions = _resolve(esl_campus, given)

    assert resolutions == snapshot
    assert resolutions is not given
    assert given == snapshot


def _crowded_campus():
    courses = [make_course("e1", Subject.ESL, Level.L1), make_course("e2", Subject.ESL, Level.L2)]
    grid = Grid()
    grid.place_course(0, courses[0])
    grid.place_course(1, courses[1])
    students = [make_student(f"b{i}", 0, esl=Level.L2) for i in (3, 1, 2)] + [make_student("e", 1, esl=Level.L2)]
    rooms = [make_room(0, capacity=5), make_room(1, capacity=3)]
    return grid, courses, students, rooms


def test_auto_resolve_respects_capacity():
    grid, courses, students, rooms = _crowded_campus()
    whitelist = frozenset({"e1", "e2"})

    resolutions = auto_resolve_moves(grid, courses, students, rooms, whitelist)

    assert resolutions == {"b1": {ESL_BLOCK: 1}, "b2": {ESL_BLOCK: 1}}
    ctx = MovementContext.build(grid, courses, students, rooms, resolutions, whitelist)
    capacity = {r.id: r.capacity for r in rooms}
    for room, day, slot in all_cells(rooms):
        assert cell_occupancy(ctx, room.id, day, slot) <= capacity[room.id]
    remaining = unresolved_moves(grid, courses, students, rooms, resolutions, whitelist)
    assert [m.student.id for m in remaining] == ["b3"]


def test_auto_resolve_checks_every_meeting_of_the_block():
    courses = [
        make_course("e1", Subject.ESL, Level.L1),
        make_course("e2", Subject.ESL, Level.L2),
        make_course("e2t", Subject.ESL, Level.L2, days=(Day.TUE,)),
    ]
    grid = Grid()
    grid.place_course(0, courses[0])
    grid.place_course(1, courses[1])
    grid.place_course(2, courses[2])
    students = [
        make_student("a", 0, esl=Level.L1),
        make_student("b", 0, esl=Level.L2),
        make_student("e", 1, esl=Level.L2),
        make_student("f", 2, esl=Level.L2),
    ]
    rooms = [make_room(0, capacity=4), make_room(1, capacity=2), make_room(2, capacity=3)]
    whitelist = frozenset({"e1", "e2", "e2t"})
    # Room 1 has a free seat on Sunday but is already full on Tuesday.
    given = {"f": {courses[2].block_key: 1}}

    resolutions = auto_resolve_moves(grid, courses, students, rooms, whitelist, given)

    assert resolutions == given
    ctx = MovementContext.build(grid, courses, students, rooms, resolutions, whitelist)
    capacity = {r.id: r.capacity for r in rooms}
    for room, day, slot in all_cells(rooms):
        assert cell_occupancy(ctx, room.id, day, slot) <= capacity[room.id]
    remaining = unresolved_moves(grid, courses, students, rooms, resolutions, whitelist)
    assert [m.student.id for m in remaining] == ["b"]


def test_auto_resolve_prefers_most_remaining_capacity_then_lowest_id():
    courses = [
        make_course("e1", Subject.ESL, Level.L1),
        make_course("e2", Subject.ESL, Level.L2),
        make_course("e2b", Subject.ESL, Level.L2, days=(Day.SUN, Day.TUE)),
    ]
    grid = Grid()
    grid.place_course(0, courses[0])
    grid.place_course(1, courses[1])
    grid.place_course(2, courses[2])
    students = [make_student("b", 0, esl=Level.L2)]
    whitelist = frozenset({"e1", "e2", "e2b"})

    tied = [make_room(0), make_room(1, capacity=4), make_room(2, capacity=4)]
    assert auto_resolve_moves(grid, courses, students, tied, whitelist) == {"b": {ESL_BLOCK: 1}}

    roomier = [make_room(0), make_room(1, capacity=4), make_room(2, capacity=5)]
    assert auto_resolve_moves(grid, courses, students, roomier, whitelist) == {"b": {ESL_BLOCK: 2}}


def test_schedule_stats(esl_campus):
    stats = schedule_stats(esl_campus.grid, esl_campus.rooms, 1)

    assert stats.total == 3 * 5 * 7
    assert stats.filled == 4
    assert stats.unresolved == 1
    assert not stats.done
    assert schedule_stats(Grid(), [], 0).done
