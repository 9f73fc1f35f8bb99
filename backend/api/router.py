from __future__ import annotations

from fastapi import APIRouter

from api.routes import admin_config, dataset, planner


api_router = APIRouter()
api_router.include_router(dataset.router, prefix="/dataset", tags=["dataset"])
api_router.include_router(admin_config.router, prefix="/admin-config", tags=["admin-config"])
api_router.include_router(planner.router, prefix="/planner", tags=["planner"])
