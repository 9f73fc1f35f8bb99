from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from core.config import settings
from planner.campus import apply_campus_plan
from planner.catalog import LEVELED_SUBJECTS, Subject
from planner.domain import Course, Student, index_courses
from planner.grid import Grid, assign_course_to_room, available_courses, build_stream_groups, clear_course_meetings
from planner.movement import MovementContext, compute_movement
from planner.placement import build_room_map_preview, room_map_issues
from planner.reconcile import auto_resolve_moves, collect_unresolved
from planner.reports import demand_snapshot, room_profile, schedule_stats
from planner.routing import RoutingPolicy, default_routing_policies, demand_by_subject, ensure_routable, remap_demand
from schemas.dataset import CourseSchema
from schemas.planner import (
    AutoResolveResponse,
    AvailableCoursesRequest,
    CampusPlanOut,
    CampusPlanRequest,
    CellRequest,
    CourseEditRequest,
    DemandRequest,
    DemandResponse,
    GridConflictOut,
    GridEditOut,
    MovementOut,
    ReconcileRequest,
    RoomMapOut,
    RoomMapRequest,
    RoomProfileOut,
    RoomProfileRequest,
    RoutingPolicySchema,
    ScheduleStatsOut,
    SubjectDemandOut,
    UnresolvedMoveOut,
    UnresolvedResponse,
)


logger = logging.getLogger(__name__)


router = APIRouter()


def _policies(students: list[Student], supplied: dict[Subject, RoutingPolicySchema]) -> dict[Subject, RoutingPolicy]:
    policies = default_routing_policies(students, settings.run_level_min_students)
    for subject, policy in supplied.items():
        if subject in LEVELED_SUBJECTS:
            policies[subject] = policy.to_domain()
    return policies


def _context(payload: ReconcileRequest) -> MovementContext:
    return MovementContext.build(
        Grid.from_nested(payload.grid),
        payload.domain_courses(),
        payload.domain_students(),
        payload.domain_rooms(),
        payload.resolutions,
        frozenset(payload.whitelist),
    )


def _ensure_room(payload: CellRequest | CourseEditRequest | RoomProfileRequest) -> None:
    if not any(r.id == payload.room_id for r in payload.rooms):
        raise HTTPException(status_code=404, detail="ROOM_NOT_FOUND")


@router.post("/demand", response_model=DemandResponse)
def post_demand(payload: DemandRequest) -> DemandResponse:
    students = [s.to_domain() for s in payload.students]
    policies = _policies(students, payload.policies)
    remaps = demand_by_subject(students, policies)
    snapshot = demand_snapshot(students)
    return DemandResponse(
        subjects={subject: SubjectDemandOut.from_domain(remap) for subject, remap in remaps.items()},
        policies={subject: RoutingPolicySchema.from_domain(p) for subject, p in policies.items()},
        totals=snapshot.totals,
        done_q=snapshot.done_q,
        still_q=snapshot.still_q,
    )


@router.post("/room-map", response_model=RoomMapOut)
def post_room_map(payload: RoomMapRequest) -> RoomMapOut:
    students = payload.domain_students()
    policy = payload.policy.to_domain()
    ensure_routable(remap_demand(students, payload.subject, policy))

    preview = build_room_map_preview(
        payload.subject,
        policy,
        students,
        payload.domain_rooms(),
        ideal_capacity=settings.ideal_room_capacity,
        host_overrides=dict(payload.host_overrides),
    )
    return RoomMapOut.from_domain(preview, room_map_issues(preview))


@router.post("/apply", response_model=CampusPlanOut)
def post_apply(payload: CampusPlanRequest) -> CampusPlanOut:
    students = payload.domain_students()
    courses = payload.domain_courses()
    groups = build_stream_groups(courses)
    groups_by_id = {g.id: g for g in groups}
    policies = _policies(students, payload.policies)

    for subject, group_id in payload.selected_streams.items():
        if not group_id:
            continue
        group = groups_by_id.get(group_id)
        if group is None:
            raise HTTPException(status_code=400, detail="UNKNOWN_STREAM_GROUP")
        if group.subject != subject:
            raise HTTPException(status_code=400, detail="STREAM_GROUP_SUBJECT_MISMATCH")
        ensure_routable(remap_demand(students, subject, policies[subject]))

    logger.info("Applying campus plan: streams=%s", {s.value: g for s, g in payload.selected_streams.items()})
    plan = apply_campus_plan(
        rooms=payload.domain_rooms(),
        students=students,
        courses=courses,
        stream_groups=groups,
        selected_streams=payload.selected_streams,
        policies=policies,
        grade_course_selections=payload.grade_course_selections,
        host_overrides=payload.host_overrides,
        ideal_capacity=settings.ideal_room_capacity,
    )
    return CampusPlanOut(
        grid=plan.grid.to_nested(),
        whitelist=sorted(plan.whitelist),
        room_maps={
            subject: RoomMapOut.from_domain(preview, room_map_issues(preview))
            for subject, preview in plan.previews.items()
        },
        conflicts=[
            GridConflictOut(
                room_id=c.room_id,
                day=c.day,
                slot=c.slot,
                previous_course_id=c.previous_course_id,
                next_course_id=c.next_course_id,
            )
            for c in plan.conflicts
        ],
        resolutions=plan.resolutions,
    )


@router.post("/movement", response_model=MovementOut)
def post_movement(payload: CellRequest) -> MovementOut:
    _ensure_room(payload)
    ctx = _context(payload)
    result = compute_movement(ctx, payload.room_id, payload.day, payload.slot)
    return MovementOut.from_domain(result, ctx.course_at(payload.room_id, payload.day, payload.slot))


@router.post("/unresolved", response_model=UnresolvedResponse)
def post_unresolved(payload: ReconcileRequest) -> UnresolvedResponse:
    moves = collect_unresolved(_context(payload))
    return UnresolvedResponse(count=len(moves), moves=[UnresolvedMoveOut.from_domain(m) for m in moves])


@router.post("/auto-resolve", response_model=AutoResolveResponse)
def post_auto_resolve(payload: ReconcileRequest) -> AutoResolveResponse:
    grid = Grid.from_nested(payload.grid)
    courses = payload.domain_courses()
    students = payload.domain_students()
    rooms = payload.domain_rooms()
    whitelist = frozenset(payload.whitelist)

    resolutions = auto_resolve_moves(grid, courses, students, rooms, whitelist, payload.resolutions)
    remaining = collect_unresolved(MovementContext.build(grid, courses, students, rooms, resolutions, whitelist))
    before = sum(len(v) for v in payload.resolutions.values())
    after = sum(len(v) for v in resolutions.values())
    return AutoResolveResponse(resolutions=resolutions, placed=after - before, unresolved=len(remaining))


@router.post("/available-courses", response_model=list[CourseSchema])
def post_available_courses(payload: AvailableCoursesRequest) -> list[CourseSchema]:
    _ensure_room(payload)
    found = available_courses(
        payload.domain_courses(),
        frozenset(payload.whitelist),
        Grid.from_nested(payload.grid),
        payload.domain_rooms(),
        payload.room_id,
        payload.day,
        payload.slot,
        payload.subject,
    )
    return [CourseSchema.from_domain(c) for c in found]


@router.post("/stats", response_model=ScheduleStatsOut)
def post_stats(payload: ReconcileRequest) -> ScheduleStatsOut:
    ctx = _context(payload)
    stats = schedule_stats(ctx.grid, list(ctx.rooms), len(collect_unresolved(ctx)))
    return ScheduleStatsOut(total=stats.total, filled=stats.filled, unresolved=stats.unresolved, done=stats.done)


def _edit_target(payload: CourseEditRequest) -> Course:
    _ensure_room(payload)
    course = index_courses(payload.domain_courses()).get(payload.course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="COURSE_NOT_FOUND")
    return course


@router.post("/assign-course", response_model=GridEditOut)
def post_assign_course(payload: CourseEditRequest) -> GridEditOut:
    course = _edit_target(payload)
    grid = assign_course_to_room(Grid.from_nested(payload.grid), payload.room_id, course)
    return GridEditOut(grid=grid.to_nested(), cells=len(grid))


@router.post("/clear-course", response_model=GridEditOut)
def post_clear_course(payload: CourseEditRequest) -> GridEditOut:
    course = _edit_target(payload)
    grid = clear_course_meetings(Grid.from_nested(payload.grid), payload.room_id, course)
    return GridEditOut(grid=grid.to_nested(), cells=len(grid))


@router.post("/room-profile", response_model=RoomProfileOut)
def post_room_profile(payload: RoomProfileRequest) -> RoomProfileOut:
    profile = room_profile(payload.domain_students(), payload.domain_rooms(), payload.room_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="ROOM_NOT_FOUND")
    return RoomProfileOut(
        room_id=profile.room_id,
        grade=profile.grade,
        total=profile.total,
        level_counts=profile.level_counts,
        q_done=profile.q_done,
        q_not_done=profile.q_not_done,
        student_ids=[s.id for s in profile.students],
    )
