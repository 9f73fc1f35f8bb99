from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from planner.catalog import LEVELED_SUBJECTS, Day, Level, Subject
from planner.domain import Course, course_label
from planner.movement import ForcedStayReason, MovementResult, MoveOption
from planner.placement import RoomMapPreview
from planner.reconcile import UnresolvedMove
from planner.routing import DemandRemap, RoutingPolicy, SingleForceMove, SplitForceMove, routing_issues
from schemas.dataset import CampusData, StudentSchema


class SingleForceMoveSchema(BaseModel):
    target: Level = Level.L2
    count: float = 0


class SplitForceMoveSchema(BaseModel):
    to_l1: float = 0
    to_l3: float = 0


class RoutingPolicySchema(BaseModel):
    run: dict[Level, bool] = Field(default_factory=lambda: {Level.L1: True, Level.L2: True, Level.L3: True})
    l1: SingleForceMoveSchema = Field(default_factory=SingleForceMoveSchema)
    l2: SplitForceMoveSchema = Field(default_factory=SplitForceMoveSchema)
    l3: SingleForceMoveSchema = Field(default_factory=SingleForceMoveSchema)

    def to_domain(self) -> RoutingPolicy:
        return RoutingPolicy(
            run=dict(self.run),
            l1=SingleForceMove(target=self.l1.target, count=self.l1.count),
            l2=SplitForceMove(to_l1=self.l2.to_l1, to_l3=self.l2.to_l3),
            l3=SingleForceMove(target=self.l3.target, count=self.l3.count),
        )

    @classmethod
    def from_domain(cls, policy: RoutingPolicy) -> "RoutingPolicySchema":
        return cls(
            run=dict(policy.run),
            l1=SingleForceMoveSchema(target=policy.l1.target, count=policy.l1.count),
            l2=SplitForceMoveSchema(to_l1=policy.l2.to_l1, to_l3=policy.l2.to_l3),
            l3=SingleForceMoveSchema(target=policy.l3.target, count=policy.l3.count),
        )


# --- demand -----------------------------------------------------------------


class DemandRequest(BaseModel):
    students: list[StudentSchema] = Field(default_factory=list)
    # Missing subjects get the default policy derived from current demand.
    policies: dict[Subject, RoutingPolicySchema] = Field(default_factory=dict)


class SubjectDemandOut(BaseModel):
    base: dict[Level, int]
    effective: dict[Level, int]
    moved: int
    levels_running: list[Level]
    orphaned: dict[Level, int]
    issues: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, remap: DemandRemap) -> "SubjectDemandOut":
        return cls(
            base=dict(remap.base),
            effective=dict(remap.effective),
            moved=remap.moved,
            levels_running=list(remap.levels_running),
            orphaned=dict(remap.orphaned),
            issues=routing_issues(remap),
        )


class DemandResponse(BaseModel):
    subjects: dict[Subject, SubjectDemandOut]
    policies: dict[Subject, RoutingPolicySchema]
    totals: dict[Subject, dict[Level, int]]
    done_q: int
    still_q: int


# --- room map ---------------------------------------------------------------


class RoomMapRequest(CampusData):
    subject: Subject
    policy: RoutingPolicySchema = Field(default_factory=RoutingPolicySchema)
    host_overrides: dict[int, str] = Field(default_factory=dict)

    @field_validator("subject")
    @classmethod
    def _check_subject(cls, v: Subject) -> Subject:
        if v not in LEVELED_SUBJECTS:
            raise ValueError(f"{v.value} is not a leveled subject")
        return v


class RoomMapRowOut(BaseModel):
    room_id: int
    room_name: str
    grade: int
    host: str
    fixed: bool
    stay: int
    in_count: int
    out_count: int
    effective_count: int
    capacity: int


class RoomMapSummaryOut(BaseModel):
    stay: int
    move: int
    forced_stays: int
    worst_room: dict[str, int] | None = None


class RoomMapOut(BaseModel):
    subject: Subject
    host_by_room: dict[int, str]
    rooms_needed: dict[Level, int]
    rows: list[RoomMapRowOut]
    summary: RoomMapSummaryOut
    level_demand: dict[Level, int]
    levels_running: list[Level]
    issues: list[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, preview: RoomMapPreview, issues: list[str] | None = None) -> "RoomMapOut":
        worst = preview.summary.worst_room
        return cls(
            subject=preview.subject,
            host_by_room={rid: host.value for rid, host in preview.host_by_room.items()},
            rooms_needed=dict(preview.hosts.rooms_needed),
            rows=[
                RoomMapRowOut(
                    room_id=r.room_id,
                    room_name=r.room_name,
                    grade=r.grade,
                    host=r.host.value,
                    fixed=r.fixed,
                    stay=r.stay,
                    in_count=r.in_count,
                    out_count=r.out_count,
                    effective_count=r.effective_count,
                    capacity=r.capacity,
                )
                for r in preview.rows
            ],
            summary=RoomMapSummaryOut(
                stay=preview.summary.stay,
                move=preview.summary.move,
                forced_stays=preview.summary.forced_stays,
                worst_room=(
                    {"room_id": worst.room_id, "effective": worst.effective, "capacity": worst.capacity}
                    if worst is not None
                    else None
                ),
            ),
            level_demand=dict(preview.level_demand),
            levels_running=list(preview.levels_running),
            issues=list(issues or []),
        )


# --- campus plan ------------------------------------------------------------


GridIn = dict[int, dict[Day, dict[int, str | None]]]
GridOut = dict[int, dict[str, dict[int, str]]]


class CampusPlanRequest(CampusData):
    selected_streams: dict[Subject, str | None] = Field(default_factory=dict)
    policies: dict[Subject, RoutingPolicySchema] = Field(default_factory=dict)
    grade_course_selections: dict[int, dict[Subject, str | None]] = Field(default_factory=dict)
    host_overrides: dict[Subject, dict[int, str]] = Field(default_factory=dict)


class GridConflictOut(BaseModel):
    room_id: int
    day: Day
    slot: int
    previous_course_id: str
    next_course_id: str


class CampusPlanOut(BaseModel):
    grid: GridOut
    whitelist: list[str]
    room_maps: dict[Subject, RoomMapOut]
    conflicts: list[GridConflictOut]
    resolutions: dict[str, dict[str, int]]


# --- reconciliation -----------------------------------------------------------


class ReconcileRequest(CampusData):
    grid: GridIn = Field(default_factory=dict)
    resolutions: dict[str, dict[str, int]] = Field(default_factory=dict)
    whitelist: list[str] = Field(default_factory=list)


class CellRequest(ReconcileRequest):
    room_id: int
    day: Day
    slot: int = Field(ge=1)


class AvailableCoursesRequest(CellRequest):
    subject: Subject | None = None


class MoveOptionOut(BaseModel):
    room_id: int
    course_id: str

    @classmethod
    def from_domain(cls, option: MoveOption) -> "MoveOptionOut":
        return cls(room_id=option.room_id, course_id=option.course_id)


class MustMoveOut(BaseModel):
    student_id: str
    needed_label: str
    options: list[MoveOptionOut]
    resolved: int | None = None


class ForcedStayOut(BaseModel):
    student_id: str
    reason: ForcedStayReason
    reason_text: str


class MovementOut(BaseModel):
    course_id: str | None = None
    course_label: str = ""
    block_key: str = ""
    aligned: list[str] = Field(default_factory=list)
    must_move_out: list[MustMoveOut] = Field(default_factory=list)
    forced_stay: list[ForcedStayOut] = Field(default_factory=list)
    move_ins: list[str] = Field(default_factory=list)
    effective_here: int = 0

    @classmethod
    def from_domain(cls, result: MovementResult, course: Course | None = None) -> "MovementOut":
        return cls(
            course_id=result.course_id,
            course_label=course_label(course),
            block_key=result.block_key,
            aligned=[s.id for s in result.aligned],
            must_move_out=[
                MustMoveOut(
                    student_id=m.student.id,
                    needed_label=m.needed_label,
                    options=[MoveOptionOut.from_domain(o) for o in m.options],
                    resolved=m.resolved,
                )
                for m in result.must_move_out
            ],
            forced_stay=[
                ForcedStayOut(student_id=f.student.id, reason=f.reason, reason_text=f.reason_text)
                for f in result.forced_stay
            ],
            move_ins=[s.id for s in result.move_ins],
            effective_here=result.effective_here,
        )


class UnresolvedMoveOut(BaseModel):
    student_id: str
    block_key: str
    day: Day
    slot: int
    from_room: int
    needed_label: str
    options: list[MoveOptionOut]

    @classmethod
    def from_domain(cls, move: UnresolvedMove) -> "UnresolvedMoveOut":
        return cls(
            student_id=move.student.id,
            block_key=move.block_key,
            day=move.day,
            slot=move.slot,
            from_room=move.from_room,
            needed_label=move.needed_label,
            options=[MoveOptionOut.from_domain(o) for o in move.options],
        )


class UnresolvedResponse(BaseModel):
    count: int
    moves: list[UnresolvedMoveOut]


class AutoResolveResponse(BaseModel):
    resolutions: dict[str, dict[str, int]]
    placed: int
    unresolved: int


class ScheduleStatsOut(BaseModel):
    total: int
    filled: int
    unresolved: int
    done: bool


# --- manual edits and room profile ------------------------------------------


class CourseEditRequest(CampusData):
    grid: GridIn = Field(default_factory=dict)
    room_id: int
    course_id: str = Field(min_length=1)


class GridEditOut(BaseModel):
    grid: GridOut
    cells: int


class RoomProfileRequest(CampusData):
    room_id: int


class RoomProfileOut(BaseModel):
    room_id: int
    grade: int
    total: int
    level_counts: dict[Subject, dict[Level, int]]
    q_done: int
    q_not_done: int
    student_ids: list[str]
