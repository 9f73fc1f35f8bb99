from __future__ import annotations

from dataclasses import dataclass

import pytest

from factories import make_course, make_room, make_student
from planner.catalog import Level, Subject
from planner.domain import Course, Room, Student
from planner.grid import Grid


@dataclass
class Campus:
    grid: Grid
    courses: list[Course]
    students: list[Student]
    rooms: list[Room]
    whitelist: frozenset[str]


@pytest.fixture
def esl_campus() -> Campus:
    """Three grade-10 rooms; ESL L1 runs in room 0 and L2 in room 1 (Sun/Tue, slot 4)."""
    courses = [
        make_course("e1", Subject.ESL, Level.L1),
        make_course("e2", Subject.ESL, Level.L2),
        make_course("e3", Subject.ESL, Level.L3),
    ]
    grid = Grid()
    grid.place_course(0, courses[0])
    grid.place_course(1, courses[1])
    students = [
        make_student("a", 0, esl=Level.L1),
        make_student("b", 0, esl=Level.L2),
        make_student("c", 0, esl=Level.L3),
        make_student("d", 0, done={Subject.ESL: True}),
        make_student("e", 1, esl=Level.L2),
    ]
    rooms = [make_room(0, capacity=4), make_room(1, capacity=3), make_room(2, capacity=3)]
    return Campus(grid=grid, courses=courses, students=students, rooms=rooms, whitelist=frozenset({"e1", "e2"}))

