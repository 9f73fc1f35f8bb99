from __future__ import annotations

import random
from dataclasses import dataclass

from planner.catalog import DAYS, GRADE_SUBJECTS, GRADES, IDEAL_ROOM_CAPACITY, LEVELED_SUBJECTS, LEVELS, MAX_ROOM_CAPACITY, QUDRAT_SUBJECTS, Day, Level, Subject
from planner.domain import Course, Meeting, Room, StreamGroup, Student
from planner.grid import build_stream_groups
from schemas.admin_config import AdminConfig, LevelDistribution
from services.admin_config import build_homerooms, build_room_student_targets


TEACHERS = (
    "Abdullah Al-Qahtani",
    "Fahad Al-Dosari",
    "Omar Al-Shehri",
    "Khalid Al-Ghamdi",
    "Saud Al-Harbi",
    "Turki Al-Otaibi",
    "Nasser Al-Zahrani",
    "Majed Al-Malki",
    "Yazeed Al-Anazi",
    "Sultan Al-Rashid",
    "Badr Al-Shammari",
    "Hamdan Al-Sabah",
    "Rayan Al-Farhan",
    "Talal Al-Hazmi",
    "Ziyad Al-Amri",
    "Hamad Al-Mutairi",
    "Saleh Al-Jasser",
    "Mishaal Al-Salem",
    "Yahya Al-Harthi",
    "Ali Al-Fayez",
)

FIRST_NAMES = (
    "Abdullah", "Faisal", "Omar", "Khalid", "Tariq", "Zaid", "Hamad", "Nasser", "Sultan", "Badr",
    "Saud", "Majed", "Yazeed", "Turki", "Rayan", "Talal", "Ziyad", "Ali", "Saleh", "Mishaal",
)
LAST_NAMES = ("Al-Qahtani", "Al-Dosari", "Al-Shehri", "Al-Ghamdi", "Al-Harbi", "Al-Otaibi", "Al-Zahrani", "Al-Malki")


@dataclass(frozen=True)
class Dataset:
    rooms: list[Room]
    students: list[Student]
    courses: list[Course]
    stream_groups: list[StreamGroup]
    grade_course_selections: dict[int, dict[Subject, str]]


def _meetings(days: tuple[Day, ...] | list[Day], slot: int) -> tuple[Meeting, ...]:
    return tuple(Meeting(day=d, slot=slot) for d in days)


class DatasetGenerator:
    """Synthetic campus data.

    All randomness comes from the generator's own `random.Random`, and the
    teacher-name cursor lives on the instance, so two generators with the
    same seed produce the same dataset.
    """

    def __init__(self, seed: int = 42):
        self.seed = seed
        self._rng = random.Random(seed)
        self._teacher_cursor = 0
        self._course_seq = 0

    def _next_teacher(self) -> str:
        name = TEACHERS[self._teacher_cursor % len(TEACHERS)]
        self._teacher_cursor += 1
        return name

    def _pick_level(self, dist: LevelDistribution) -> Level:
        weights = [dist.L1, dist.L2, dist.L3]
        if sum(weights) <= 0:
            return Level.L2
        return self._rng.choices(LEVELS, weights=weights)[0]

    def students(
        self,
        rooms: list[Room],
        config: AdminConfig,
        *,
        ideal_capacity: int = IDEAL_ROOM_CAPACITY,
        max_capacity: int = MAX_ROOM_CAPACITY,
    ) -> list[Student]:
        targets = build_room_student_targets(config, rooms, ideal_capacity=ideal_capacity, max_capacity=max_capacity)
        students: list[Student] = []
        for room in sorted(rooms, key=lambda r: r.id):
            for i in range(targets.get(room.id, 0)):
                grade = room.grade
                # One roll for both Qudrat subjects so "done" comes in pairs.
                qudrat_roll = self._rng.random() * 100
                needs: dict[Subject, Level] = {}
                done: dict[Subject, bool] = {}
                for subject in LEVELED_SUBJECTS:
                    dist = config.subject_distributions.get(subject, {}).get(grade) or LevelDistribution(L2=100)
                    roll = qudrat_roll if subject in QUDRAT_SUBJECTS else self._rng.random() * 100
                    done[subject] = roll < dist.done
                    needs[subject] = self._pick_level(dist)
                students.append(
                    Student(
                        id=f"s{len(students) + 1}",
                        name=f"{FIRST_NAMES[(room.id * 13 + i) % len(FIRST_NAMES)]} {LAST_NAMES[(room.id * 7 + i) % len(LAST_NAMES)]}",
                        homeroom=room.id,
                        grade=grade,
                        needs=needs,
                        done=done,
                        strength=self._rng.random(),
                    )
                )
        return students

    def _course(self, subject: Subject, level: Level | None, grade: int | None, meetings: tuple[Meeting, ...], segment: str | None = None) -> Course:
        self._course_seq += 1
        return Course(
            id=f"c{self._course_seq}",
            subject=subject,
            level=level,
            grade=grade,
            meetings=meetings,
            segment=segment,
            teacher_name=self._next_teacher(),
        )

    def courses(self) -> list[Course]:
        """The fixed weekly catalog: two bundles per leveled subject plus grade-wide courses."""
        self._teacher_cursor = 0
        self._course_seq = 0
        sun, mon, tue, wed, thu = DAYS
        out: list[Course] = []

        leveled = (
            (Subject.KAMMI, (sun, mon, tue, thu), 1, "Ufuq"),
            (Subject.KAMMI, (sun, mon, wed, thu), 3, "Tracks"),
            (Subject.LAFTHI, (sun, tue, wed, thu), 2, "Ufuq"),
            (Subject.LAFTHI, (sun, tue, wed, thu), 5, "Tracks"),
            (Subject.ESL, (sun, tue, thu), 4, None),
            (Subject.ESL, (sun, tue, thu), 6, None),
        )
        for subject, days, slot, segment in leveled:
            for lv in LEVELS:
                out.append(self._course(subject, lv, None, _meetings(days, slot), segment))

        for slot in (4, 6):
            for g in GRADES:
                out.append(self._course(Subject.MINISTRY, None, g, _meetings((mon, wed), slot)))
        for g in GRADES:
            out.append(self._course(Subject.FUTURE, None, g, _meetings((wed,), 7)))
        for g in GRADES:
            out.append(self._course(Subject.T_MATH, None, g, _meetings(DAYS, 7)))

        out.append(self._course(Subject.T_PHYSICS, None, 12, _meetings((sun, tue), 1)))
        out.append(self._course(Subject.T_CHEM, None, 12, _meetings((mon, thu), 2)))
        out.append(self._course(Subject.T_BIO, None, 12, _meetings((wed, thu), 3)))
        return out


def default_grade_selections(courses: list[Course]) -> dict[int, dict[Subject, str]]:
    """First catalog course per grade-wide subject, for every grade."""
    selections: dict[int, dict[Subject, str]] = {}
    for grade, subjects in GRADE_SUBJECTS.items():
        picked: dict[Subject, str] = {}
        for subject in subjects:
            course = next((c for c in courses if c.subject == subject and c.grade == grade), None)
            if course is not None:
                picked[subject] = course.id
        selections[grade] = picked
    return selections


def build_dataset(
    config: AdminConfig,
    *,
    seed: int = 42,
    ideal_capacity: int = IDEAL_ROOM_CAPACITY,
    max_capacity: int = MAX_ROOM_CAPACITY,
) -> Dataset:
    gen = DatasetGenerator(seed)
    rooms = build_homerooms(config, ideal_capacity=ideal_capacity, max_capacity=max_capacity)
    students = gen.students(rooms, config, ideal_capacity=ideal_capacity, max_capacity=max_capacity)
    courses = gen.courses()
    return Dataset(
        rooms=rooms,
        students=students,
        courses=courses,
        stream_groups=build_stream_groups(courses),
        grade_course_selections=default_grade_selections(courses),
    )
