from __future__ import annotations

import logging

import pytest

from core.logging import setup_logging


@pytest.fixture
def bare_root(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    for name in ("uvicorn", "uvicorn.access", "planner.movement"):
        logger = logging.getLogger(name)
        monkeypatch.setattr(logger, "level", logger.level)
    return root


def test_development_logging_quiets_per_cell_logs(bare_root):
    setup_logging(environment="development")

    assert bare_root.level == logging.DEBUG
    assert len(bare_root.handlers) == 1
    assert logging.getLogger("uvicorn").level == logging.DEBUG
    assert logging.getLogger("uvicorn.access").level == logging.INFO
    assert logging.getLogger("planner.movement").level == logging.INFO


def test_setup_logging_is_idempotent(bare_root):
    setup_logging(environment="development")
    setup_logging(environment="development")

    assert len(bare_root.handlers) == 1
