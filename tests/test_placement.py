from __future__ import annotations

from factories import done_with_qudrat, make_room, make_student
from planner.catalog import AlternateTrack, Level, Subject
from planner.hosts import assign_room_hosts
from planner.placement import build_room_map_preview, exempt_from_subject, room_map_issues, simulate_placement
from planner.routing import RoutingPolicy, SingleForceMove, remap_demand


def _two_rooms():
    rooms = [make_room(0, capacity=3), make_room(1, capacity=3)]
    students = [
        make_student("a", 0, esl=Level.L1),
        make_student("b", 0, esl=Level.L1),
        make_student("c", 0, esl=Level.L2),
        make_student("d", 1, esl=Level.L2),
        make_student("e", 1, esl=Level.L2),
        make_student("f", 1, esl=Level.L1),
    ]
    return rooms, students


def test_room_map_preview_counts():
    rooms, students = _two_rooms()

    preview = build_room_map_preview(Subject.ESL, RoutingPolicy(), students, rooms)

    assert preview.host_by_room == {0: Level.L1, 1: Level.L2}
    row0, row1 = preview.rows
    assert (row0.stay, row0.in_count, row0.out_count, row0.effective_count) == (2, 1, 1, 3)
    assert (row1.stay, row1.in_count, row1.out_count, row1.effective_count) == (2, 1, 1, 3)
    assert preview.summary.stay == 4
    assert preview.summary.move == 2
    assert preview.summary.forced_stays == 0
    assert preview.summary.worst_room.room_id == 0
    assert room_map_issues(preview) == []


def test_every_student_has_exactly_one_outcome():
    rooms, students = _two_rooms()
    remap = remap_demand(students, Subject.ESL, RoutingPolicy())
    hosts = assign_room_hosts(Subject.ESL, remap, students, rooms)

    placement = simulate_placement(Subject.ESL, hosts, remap, students, rooms)

    assert set(placement.room_by_student) == {s.id for s in students}
    assert sum(placement.occupancy.values()) == len(students)


def test_packs_into_room_with_most_remaining_capacity():
    rooms = [make_room(0, capacity=5), make_room(1, capacity=5), make_room(2, capacity=5)]
    students = [make_student("h1", 0, esl=Level.L1), make_student("h2", 1, esl=Level.L1)] + [
        make_student(f"m{i}", 2, esl=Level.L1) for i in range(3)
    ]
    remap = remap_demand(students, Subject.ESL, RoutingPolicy())
    hosts = assign_room_hosts(Subject.ESL, remap, students, rooms, overrides={2: Level.L2})
    # L1 anchors to room 2 and the spare rooms fall back to L1; the override then moves room 2 to L2.
    assert hosts.host_by_room == {0: Level.L1, 1: Level.L1, 2: Level.L2}

    placement = simulate_placement(Subject.ESL, hosts, remap, students, rooms)

    assert placement.room_by_student == {"h1": 0, "h2": 1, "m0": 0, "m1": 1, "m2": 0}


def test_packing_ignores_input_order():
    rooms = [make_room(0, capacity=5), make_room(1, capacity=4), make_room(2, capacity=5)]
    students = [make_student("h1", 0, esl=Level.L1), make_student("h2", 1, esl=Level.L1)] + [
        make_student(f"m{i}", 2, esl=Level.L1) for i in range(3)
    ]
    remap = remap_demand(students, Subject.ESL, RoutingPolicy())
    hosts = assign_room_hosts(Subject.ESL, remap, students, rooms, overrides={2: Level.L2})

    forward = simulate_placement(Subject.ESL, hosts, remap, students, rooms)
    backward = simulate_placement(Subject.ESL, hosts, remap, list(reversed(students)), rooms)

    assert forward.room_by_student == {"h1": 0, "h2": 1, "m0": 0, "m1": 0, "m2": 1}
    assert backward.room_by_student == forward.room_by_student
    assert backward.occupancy == forward.occupancy


def test_orphaned_level_is_a_forced_stay():
    rooms, students = _two_rooms()
    students.append(make_student("g", 1, esl=Level.L3))
    policy = RoutingPolicy(run={Level.L1: True, Level.L2: True, Level.L3: False}, l3=SingleForceMove(Level.L2, 0))

    preview = build_room_map_preview(Subject.ESL, policy, students, rooms)

    assert preview.summary.forced_stays == 1
    assert preview.rows[1].effective_count == 4


def test_done_students_and_exempt_seniors_stay_home():
    rooms = [make_room(0, grade=10), make_room(1, grade=12)]
    senior_done = make_student("z", 1, grade=12, kammi=Level.L1, done=done_with_qudrat())
    senior = make_student("y", 1, grade=12, kammi=Level.L1)
    junior = make_student("x", 0, kammi=Level.L1)
    students = [junior, senior, senior_done]

    assert exempt_from_subject(Subject.KAMMI, senior_done)
    assert not exempt_from_subject(Subject.KAMMI, senior)
    assert not exempt_from_subject(Subject.ESL, senior_done)

    preview = build_room_map_preview(Subject.KAMMI, RoutingPolicy(), students, rooms)

    assert preview.host_by_room == {0: Level.L1, 1: AlternateTrack.AUTO_TAHSILI}
    fixed_row = preview.rows[1]
    assert fixed_row.fixed
    assert (fixed_row.stay, fixed_row.out_count) == (1, 1)
    assert preview.rows[0].effective_count == 2


def test_issue_when_running_level_has_no_room():
    rooms = [make_room(0)]
    students = [make_student("a", 0, esl=Level.L1), make_student("b", 0, esl=Level.L2)]

    preview = build_room_map_preview(Subject.ESL, RoutingPolicy(), students, rooms)

    assert preview.host_by_room == {0: Level.L1}
    assert room_map_issues(preview) == ["Missing room allocation for L2."]
    assert preview.summary.forced_stays == 1
