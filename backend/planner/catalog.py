from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


IDEAL_ROOM_CAPACITY = 22
MAX_ROOM_CAPACITY = 28


class Level(str, Enum):
    L1 = "L1"
    L2 = "L2"
    L3 = "L3"


LEVELS: tuple[Level, ...] = (Level.L1, Level.L2, Level.L3)
MIDDLE_LEVEL = Level.L2


class AlternateTrack(str, Enum):
    AUTO_TAHSILI = "AUTO_TAHSILI"


class Subject(str, Enum):
    KAMMI = "kammi"
    LAFTHI = "lafthi"
    ESL = "esl"
    MINISTRY = "ministry"
    FUTURE = "future"
    T_MATH = "t_math"
    T_CHEM = "t_chem"
    T_BIO = "t_bio"
    T_PHYSICS = "t_physics"


class Day(str, Enum):
    SUN = "Sun"
    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"


DAYS: tuple[Day, ...] = (Day.SUN, Day.MON, Day.TUE, Day.WED, Day.THU)


@dataclass(frozen=True)
class Slot:
    id: int
    start: str
    end: str


SLOTS: tuple[Slot, ...] = (
    Slot(1, "07:47", "08:32"),
    Slot(2, "08:35", "09:20"),
    Slot(3, "09:23", "10:08"),
    Slot(4, "10:18", "11:03"),
    Slot(5, "11:06", "11:51"),
    Slot(6, "11:54", "12:39"),
    Slot(7, "12:42", "13:27"),
)

GRADES: tuple[int, ...] = (10, 11, 12)

# Grade whose rooms host the alternate (Tahsili) track while Qudrat runs.
ALTERNATE_TRACK_GRADE = 12


@dataclass(frozen=True)
class SubjectDef:
    name: str
    leveled: bool = False
    # Qudrat subjects are the paired prerequisite; Tahsili is the track that
    # replaces them once a student is done with both.
    qudrat: bool = False
    tahsili: bool = False
    # Grade-wide subjects only run in rooms of the course's grade.
    grade_bound: bool = False


SUBJECTS: dict[Subject, SubjectDef] = {
    Subject.KAMMI: SubjectDef("Qudrat Kammi", leveled=True, qudrat=True),
    Subject.LAFTHI: SubjectDef("Qudrat Lafthi", leveled=True, qudrat=True),
    Subject.ESL: SubjectDef("ESL (IELTS)", leveled=True),
    Subject.MINISTRY: SubjectDef("Ministry English", grade_bound=True),
    Subject.FUTURE: SubjectDef("Future Skills", grade_bound=True),
    Subject.T_MATH: SubjectDef("Tahsili Math", tahsili=True, grade_bound=True),
    Subject.T_CHEM: SubjectDef("Tahsili Chem", tahsili=True, grade_bound=True),
    Subject.T_BIO: SubjectDef("Tahsili Bio", tahsili=True, grade_bound=True),
    Subject.T_PHYSICS: SubjectDef("Tahsili Physics", tahsili=True, grade_bound=True),
}

LEVELED_SUBJECTS: tuple[Subject, ...] = tuple(s for s, d in SUBJECTS.items() if d.leveled)
QUDRAT_SUBJECTS: tuple[Subject, ...] = tuple(s for s, d in SUBJECTS.items() if d.qudrat)

# Grade-wide offerings a campus plan must pick one course for, per grade.
GRADE_SUBJECTS: dict[int, tuple[Subject, ...]] = {
    10: (Subject.MINISTRY, Subject.FUTURE, Subject.T_MATH),
    11: (Subject.MINISTRY, Subject.FUTURE, Subject.T_MATH),
    12: (Subject.MINISTRY, Subject.FUTURE, Subject.T_MATH, Subject.T_CHEM, Subject.T_BIO, Subject.T_PHYSICS),
}


def parse_level(value: object) -> Level | None:
    """Return the `Level` for *value*, or None when it is not a level."""
    if isinstance(value, Level):
        return value
    try:
        return Level(str(value))
    except ValueError:
        return None
