from __future__ import annotations

import logging
import math

from planner.catalog import GRADES, IDEAL_ROOM_CAPACITY, LEVELED_SUBJECTS, MAX_ROOM_CAPACITY, Subject
from planner.domain import Room
from schemas.admin_config import AdminConfig, AdminConfigValidation, LevelDistribution, RoomAllocation


logger = logging.getLogger(__name__)


_DEFAULT_DISTRIBUTIONS: dict[Subject, dict[int, tuple[int, int, int, int]]] = {
    Subject.KAMMI: {10: (50, 40, 10, 0), 11: (25, 45, 30, 0), 12: (4, 12, 19, 65)},
    Subject.LAFTHI: {10: (50, 45, 5, 0), 11: (20, 50, 30, 0), 12: (2, 14, 19, 65)},
    Subject.ESL: {10: (55, 40, 5, 0), 11: (30, 50, 20, 0), 12: (15, 45, 40, 0)},
}


def default_admin_config() -> AdminConfig:
    return AdminConfig(
        room_count=5,
        grade_totals={10: 44, 11: 44, 12: 18},
        subject_distributions={
            subject: {
                grade: LevelDistribution(L1=l1, L2=l2, L3=l3, done=done)
                for grade, (l1, l2, l3, done) in by_grade.items()
            }
            for subject, by_grade in _DEFAULT_DISTRIBUTIONS.items()
        },
    )


def _grade_total(config: AdminConfig, grade: int) -> int:
    return int(config.grade_totals.get(grade, 0))


def distribute_grade_students(total_students: int, rooms: int) -> list[int]:
    if rooms <= 0:
        return []
    base, extra = divmod(total_students, rooms)
    return [base + (1 if i < extra else 0) for i in range(rooms)]


def compute_room_allocation(config: AdminConfig, *, max_capacity: int = MAX_ROOM_CAPACITY) -> RoomAllocation | None:
    """Split `room_count` across grades, or None when the grades cannot fit."""
    active = [g for g in GRADES if _grade_total(config, g) > 0]
    if not active:
        return None

    rooms_by_grade = {g: 0 for g in GRADES}
    for g in active:
        rooms_by_grade[g] = math.ceil(_grade_total(config, g) / max_capacity)

    remaining = config.room_count - sum(rooms_by_grade.values())
    if remaining < 0:
        return None

    while remaining > 0:
        pick = max(active, key=lambda g: _grade_total(config, g) / rooms_by_grade[g])
        rooms_by_grade[pick] += 1
        remaining -= 1

    avg_by_grade = {g: 0.0 for g in GRADES}
    max_by_grade = {g: 0 for g in GRADES}
    for g in GRADES:
        rooms = rooms_by_grade[g]
        if rooms <= 0:
            continue
        avg_by_grade[g] = round(_grade_total(config, g) / rooms, 1)
        max_by_grade[g] = math.ceil(_grade_total(config, g) / rooms)

    return RoomAllocation(rooms_by_grade=rooms_by_grade, avg_by_grade=avg_by_grade, max_by_grade=max_by_grade)


def validate_admin_config(
    config: AdminConfig,
    *,
    ideal_capacity: int = IDEAL_ROOM_CAPACITY,
    max_capacity: int = MAX_ROOM_CAPACITY,
) -> AdminConfigValidation:
    errors: list[str] = []
    warnings: list[str] = []

    if config.room_count < 1:
        errors.append("Room count must be a positive integer.")

    for g in GRADES:
        if _grade_total(config, g) < 0:
            errors.append(f"Grade {g} total students must be a whole number >= 0.")

    if sum(_grade_total(config, g) for g in GRADES) <= 0:
        errors.append("At least one grade must have students.")

    for subject in LEVELED_SUBJECTS:
        by_grade = config.subject_distributions.get(subject, {})
        for g in GRADES:
            dist = by_grade.get(g)
            if dist is None:
                errors.append(f"{subject.value.upper()} Grade {g} distribution is missing.")
                continue
            if dist.total() != 100:
                errors.append(f"{subject.value.upper()} Grade {g} distribution must add up to 100%.")
            if g == GRADES[0] and dist.done != 0:
                errors.append(f"{subject.value.upper()} Grade {g} Done must stay 0%.")

    allocation = compute_room_allocation(config, max_capacity=max_capacity)
    if allocation is None:
        needed = sum(math.ceil(max(0, _grade_total(config, g)) / max_capacity) for g in GRADES)
        errors.append(
            f"Room count is infeasible. At least {needed} rooms are required to keep all grades "
            f"separate and <= {max_capacity} students per room."
        )
        return AdminConfigValidation(errors=errors, warnings=warnings, allocation=None)

    for g in GRADES:
        peak = allocation.max_by_grade[g]
        if peak > max_capacity:
            errors.append(f"Grade {g} exceeds hard capacity ({peak}/{max_capacity}).")
        elif peak > ideal_capacity:
            warnings.append(f"Grade {g} is above ideal capacity ({peak}/{ideal_capacity}).")

    return AdminConfigValidation(errors=errors, warnings=warnings, allocation=allocation)


def _usable_config(config: AdminConfig, ideal_capacity: int, max_capacity: int) -> AdminConfig:
    validation = validate_admin_config(config, ideal_capacity=ideal_capacity, max_capacity=max_capacity)
    if validation.ok:
        return config
    logger.warning("Admin config rejected, falling back to defaults: %s", "; ".join(validation.errors))
    return default_admin_config()


def build_homerooms(
    config: AdminConfig,
    *,
    ideal_capacity: int = IDEAL_ROOM_CAPACITY,
    max_capacity: int = MAX_ROOM_CAPACITY,
) -> list[Room]:
    source = _usable_config(config, ideal_capacity, max_capacity)
    allocation = compute_room_allocation(source, max_capacity=max_capacity)
    if allocation is None:
        return []

    rooms: list[Room] = []
    for g in GRADES:
        for count in distribute_grade_students(_grade_total(source, g), allocation.rooms_by_grade[g]):
            room_id = len(rooms)
            rooms.append(
                Room(
                    id=room_id,
                    name=f"Room {101 + room_id}",
                    grade=g,
                    capacity=min(max_capacity, max(ideal_capacity, count)),
                )
            )
    return rooms


def build_room_student_targets(
    config: AdminConfig,
    rooms: list[Room],
    *,
    ideal_capacity: int = IDEAL_ROOM_CAPACITY,
    max_capacity: int = MAX_ROOM_CAPACITY,
) -> dict[int, int]:
    """How many students each room starts with."""
    source = _usable_config(config, ideal_capacity, max_capacity)
    targets: dict[int, int] = {}
    for g in GRADES:
        grade_rooms = [r for r in sorted(rooms, key=lambda r: r.id) if r.grade == g]
        counts = distribute_grade_students(_grade_total(source, g), len(grade_rooms))
        for room, count in zip(grade_rooms, counts):
            targets[room.id] = count
    return targets
