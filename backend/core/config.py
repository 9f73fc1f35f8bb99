from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic.aliases import AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict

from planner.catalog import IDEAL_ROOM_CAPACITY, MAX_ROOM_CAPACITY


BACKEND_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=BACKEND_DIR / ".env", env_file_encoding="utf-8", extra="ignore")

    # Runtime
    environment: str = Field(default="development", validation_alias=AliasChoices("environment", "ENVIRONMENT"))
    frontend_origin: str = Field(
        default="http://localhost:5173",
        validation_alias=AliasChoices("frontend_origin", "FRONTEND_ORIGIN"),
    )

    # Room sizing
    ideal_room_capacity: int = Field(
        default=IDEAL_ROOM_CAPACITY,
        ge=1,
        validation_alias=AliasChoices("ideal_room_capacity", "IDEAL_ROOM_CAPACITY"),
    )
    max_room_capacity: int = Field(
        default=MAX_ROOM_CAPACITY,
        ge=1,
        validation_alias=AliasChoices("max_room_capacity", "MAX_ROOM_CAPACITY"),
    )

    # Dataset / initial routing
    dataset_seed: int = Field(default=42, validation_alias=AliasChoices("dataset_seed", "DATASET_SEED"))
    # A level runs by default only when more than this many students need it.
    run_level_min_students: int = Field(
        default=10,
        ge=0,
        validation_alias=AliasChoices("run_level_min_students", "RUN_LEVEL_MIN_STUDENTS"),
    )

    @field_validator("frontend_origin")
    @classmethod
    def _normalize_frontend_origin(cls, v: str) -> str:
        # Starlette CORS expects the Origin to match exactly (no trailing slash).
        return v.strip().rstrip("/")

    @field_validator("environment")
    @classmethod
    def _normalize_environment(cls, v: str) -> str:
        return (v or "development").strip().lower()

    @model_validator(mode="after")
    def _check_capacities(self) -> "Settings":
        if self.max_room_capacity < self.ideal_room_capacity:
            raise ValueError("MAX_ROOM_CAPACITY must be >= IDEAL_ROOM_CAPACITY")
        return self


settings = Settings()
