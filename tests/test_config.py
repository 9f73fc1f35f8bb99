from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_settings_normalise_values():
    settings = Settings(environment=" Production ", frontend_origin="http://example.test/")

    assert settings.environment == "production"
    assert settings.frontend_origin == "http://example.test"
    assert settings.ideal_room_capacity == 22
    assert settings.max_room_capacity == 28


def test_settings_read_upper_case_env(monkeypatch):
    monkeypatch.setenv("IDEAL_ROOM_CAPACITY", "20")
    monkeypatch.setenv("RUN_LEVEL_MIN_STUDENTS", "4")

    settings = Settings()

    assert settings.ideal_room_capacity == 20
    assert settings.run_level_min_students == 4


def test_max_capacity_must_cover_ideal():
    with pytest.raises(ValidationError):
        Settings(ideal_room_capacity=30, max_room_capacity=28)
