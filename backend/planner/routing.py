from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from planner.catalog import LEVELED_SUBJECTS, LEVELS, MIDDLE_LEVEL, Level, Subject
from planner.domain import Student


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SingleForceMove:
    """Force-move rule for a non-middle level: first `count` students go to `target`."""

    target: Level
    count: float = 0


@dataclass(frozen=True)
class SplitForceMove:
    """Force-move rule for the middle level: split between the levels below and above."""

    to_l1: float = 0
    to_l3: float = 0


@dataclass(frozen=True)
class RoutingPolicy:
    run: dict[Level, bool] = field(default_factory=lambda: {lv: True for lv in LEVELS})
    l1: SingleForceMove = SingleForceMove(Level.L2)
    l2: SplitForceMove = SplitForceMove()
    l3: SingleForceMove = SingleForceMove(Level.L2)

    def is_running(self, level: Level) -> bool:
        return bool(self.run.get(level, False))

    @property
    def levels_running(self) -> list[Level]:
        return [lv for lv in LEVELS if self.is_running(lv)]

    def single_rule(self, level: Level) -> SingleForceMove:
        if level == Level.L1:
            return self.l1
        if level == Level.L3:
            return self.l3
        raise ValueError(f"{level.value} uses a split force-move rule")


@dataclass(frozen=True)
class DemandRemap:
    subject: Subject
    base: dict[Level, int]
    effective: dict[Level, int]
    moved: int
    levels_running: list[Level]
    level_by_student: dict[str, Level]
    # Students left on a level that does not run (per level).
    orphaned: dict[Level, int]

    @property
    def orphaned_total(self) -> int:
        return sum(self.orphaned.values())

    def level_for(self, student: Student) -> Level:
        return self.level_by_student.get(student.id, student.need(self.subject))


class RoutingPolicyError(ValueError):
    def __init__(self, issues: list[str]):
        super().__init__("; ".join(issues) or "Invalid routing policy")
        self.issues = issues


def empty_counts() -> dict[Level, int]:
    return {lv: 0 for lv in LEVELS}


def clamp_count(value: object, upper: int) -> int:
    """Clamp a configured count into [0, upper]; garbage and non-finite values become 0."""
    try:
        n = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(n):
        return 0
    return max(0, min(int(upper), int(round(n))))


def normalize_single_target(source: Level, target: Level | None) -> Level:
    if target is not None and target != source:
        return target
    if source in (Level.L1, Level.L3):
        return Level.L2
    return Level.L1


def default_routing_policy() -> RoutingPolicy:
    return RoutingPolicy()


def _nearest_running(level: Level, running: dict[Level, bool]) -> Level:
    candidates = [lv for lv in LEVELS if running[lv] and lv != level]
    idx = LEVELS.index(level)
    return min(candidates, key=lambda lv: (abs(LEVELS.index(lv) - idx), LEVELS.index(lv)))


def default_routing_policies(students: list[Student], min_students: int = 10) -> dict[Subject, RoutingPolicy]:
    """Initial policies: a level runs only when more than `min_students` still need it.

    Students on a level that does not run are force-moved, all of them, to
    the nearest running level. When no level clears the threshold the
    largest one runs anyway; a subject nobody needs runs every level.
    """
    policies: dict[Subject, RoutingPolicy] = {}
    for subject in LEVELED_SUBJECTS:
        counts = empty_counts()
        for s in students:
            if not s.is_done(subject):
                counts[s.need(subject)] += 1
        if not sum(counts.values()):
            policies[subject] = RoutingPolicy()
            continue

        running = {lv: counts[lv] > min_students for lv in LEVELS}
        if not any(running.values()):
            running[max(LEVELS, key=lambda lv: (counts[lv], -LEVELS.index(lv)))] = True

        l1 = SingleForceMove(Level.L2)
        l3 = SingleForceMove(Level.L2)
        l2 = SplitForceMove()
        if not running[Level.L1]:
            l1 = SingleForceMove(_nearest_running(Level.L1, running), counts[Level.L1])
        if not running[Level.L3]:
            l3 = SingleForceMove(_nearest_running(Level.L3, running), counts[Level.L3])
        if not running[MIDDLE_LEVEL]:
            if _nearest_running(MIDDLE_LEVEL, running) == Level.L1:
                l2 = SplitForceMove(to_l1=counts[MIDDLE_LEVEL])
            else:
                l2 = SplitForceMove(to_l3=counts[MIDDLE_LEVEL])
        policies[subject] = RoutingPolicy(run=running, l1=l1, l2=l2, l3=l3)
    return policies


def remap_demand(students: list[Student], subject: Subject, policy: RoutingPolicy) -> DemandRemap:
    grouped: dict[Level, list[Student]] = {lv: [] for lv in LEVELS}
    for s in students:
        if s.is_done(subject):
            continue
        grouped[s.need(subject)].append(s)
    for lv in LEVELS:
        grouped[lv].sort(key=lambda s: s.id)

    base = {lv: len(grouped[lv]) for lv in LEVELS}
    effective = empty_counts()
    level_by_student: dict[str, Level] = {}

    def _route(partition: list[Student], splits: list[tuple[Level, int]], rest: Level) -> None:
        i = 0
        for target, n in splits:
            for s in partition[i : i + n]:
                level_by_student[s.id] = target
                effective[target] += 1
            i += n
        for s in partition[i:]:
            level_by_student[s.id] = rest
            effective[rest] += 1

    for lv in LEVELS:
        source = grouped[lv]
        if policy.is_running(lv):
            _route(source, [], lv)
        elif lv == MIDDLE_LEVEL:
            to_l1 = clamp_count(policy.l2.to_l1, len(source))
            to_l3 = clamp_count(policy.l2.to_l3, len(source) - to_l1)
            _route(source, [(Level.L1, to_l1), (Level.L3, to_l3)], lv)
        else:
            rule = policy.single_rule(lv)
            target = normalize_single_target(lv, rule.target)
            _route(source, [(target, clamp_count(rule.count, len(source)))], lv)

    raw = {s.id: lv for lv in LEVELS for s in grouped[lv]}
    moved = sum(1 for sid, lv in level_by_student.items() if lv != raw[sid])
    levels_running = policy.levels_running
    orphaned = {lv: (0 if lv in levels_running else effective[lv]) for lv in LEVELS}

    if sum(orphaned.values()):
        logger.debug("Routing %s leaves students on non-running levels: %s", subject.value, orphaned)

    return DemandRemap(
        subject=subject,
        base=base,
        effective=effective,
        moved=moved,
        levels_running=levels_running,
        level_by_student=level_by_student,
        orphaned=orphaned,
    )


def demand_by_subject(students: list[Student], policies: dict[Subject, RoutingPolicy]) -> dict[Subject, DemandRemap]:
    return {
        subject: remap_demand(students, subject, policies.get(subject) or default_routing_policy())
        for subject in LEVELED_SUBJECTS
    }


def routing_issues(remap: DemandRemap) -> list[str]:
    issues: list[str] = []
    if not remap.levels_running:
        issues.append(f"{remap.subject.value}: no level is running.")
    for lv in LEVELS:
        n = remap.orphaned[lv]
        if n:
            issues.append(
                f"{remap.subject.value}: {n} student(s) left on {lv.value}, which is not running; "
                "raise the force-move counts or run the level."
            )
    return issues


def ensure_routable(remap: DemandRemap) -> DemandRemap:
    issues = routing_issues(remap)
    if issues:
        raise RoutingPolicyError(issues)
    return remap


def level_open_from_routing(policies: dict[Subject, RoutingPolicy]) -> dict[Subject, dict[Level, bool]]:
    return {
        subject: {lv: (policies[subject].is_running(lv) if subject in policies else False) for lv in LEVELS}
        for subject in LEVELED_SUBJECTS
    }
