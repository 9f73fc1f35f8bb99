from __future__ import annotations

from fastapi import APIRouter

from core.config import settings
from schemas.admin_config import AdminConfig, AdminConfigValidation
from services.admin_config import default_admin_config, validate_admin_config


router = APIRouter()


@router.get("/default", response_model=AdminConfig)
def get_default_config() -> AdminConfig:
    return default_admin_config()


@router.post("/validate", response_model=AdminConfigValidation)
def validate_config(payload: AdminConfig) -> AdminConfigValidation:
    return validate_admin_config(
        payload,
        ideal_capacity=settings.ideal_room_capacity,
        max_capacity=settings.max_room_capacity,
    )
