from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from planner.catalog import Subject


class LevelDistribution(BaseModel):
    """Percentages of a grade needing each level, or already done with the subject."""

    L1: int = 0
    L2: int = 0
    L3: int = 0
    done: int = 0

    @field_validator("L1", "L2", "L3", "done", mode="before")
    @classmethod
    def _clamp_percent(cls, v: object) -> int:
        try:
            n = round(float(v))  # type: ignore[arg-type]
        except (TypeError, ValueError, OverflowError):
            return 0
        return max(0, min(100, n))

    def total(self) -> int:
        return self.L1 + self.L2 + self.L3 + self.done


class AdminConfig(BaseModel):
    room_count: int
    grade_totals: dict[int, int]
    subject_distributions: dict[Subject, dict[int, LevelDistribution]]


class RoomAllocation(BaseModel):
    rooms_by_grade: dict[int, int]
    avg_by_grade: dict[int, float]
    max_by_grade: dict[int, int]


class AdminConfigValidation(BaseModel):
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    allocation: RoomAllocation | None = None

    @property
    def ok(self) -> bool:
        return not self.errors
