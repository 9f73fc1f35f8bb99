from __future__ import annotations

import logging

from fastapi import APIRouter, Query

from core.config import settings
from schemas.dataset import CourseSchema, DatasetOut, RoomSchema, StreamGroupOut, StudentSchema
from services.admin_config import default_admin_config
from services.dataset import build_dataset


logger = logging.getLogger(__name__)


router = APIRouter()


@router.get("/", response_model=DatasetOut)
def get_dataset(seed: int | None = Query(default=None)) -> DatasetOut:
    used_seed = settings.dataset_seed if seed is None else seed
    data = build_dataset(
        default_admin_config(),
        seed=used_seed,
        ideal_capacity=settings.ideal_room_capacity,
        max_capacity=settings.max_room_capacity,
    )
    logger.info(
        "Built dataset seed=%s rooms=%d students=%d courses=%d",
        used_seed,
        len(data.rooms),
        len(data.students),
        len(data.courses),
    )
    return DatasetOut(
        seed=used_seed,
        rooms=[RoomSchema.from_domain(r) for r in data.rooms],
        students=[StudentSchema.from_domain(s) for s in data.students],
        courses=[CourseSchema.from_domain(c) for c in data.courses],
        stream_groups=[StreamGroupOut.from_domain(g) for g in data.stream_groups],
        grade_course_selections=data.grade_course_selections,
    )
