"""
Shared pytest fixtures for the Table QA Harness tests.

This module provides:
- Output directory isolation (settings redirected into tmp_path)
- Execution record factories
- Fake Playwright page and controller objects
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from table_qa.config import settings
from table_qa.models import TestExecutionRecord


BASE_TIME = "2024-01-19T10:00:00.000Z"


def _make_record(
    test_id: str = "TC1",
    run_id: str | None = "RUN-1",
    status: str = "passed",
    duration: int = 100,
    timestamp: str = BASE_TIME,
    browser: str = "chromium",
    execution_mode: str = "parallel",
    **extra: Any,
) -> TestExecutionRecord:
    """Create a TestExecutionRecord for testing."""
    return TestExecutionRecord(
        test_id=test_id,
        run_id=run_id,
        test_name=extra.pop("test_name", f"{test_id} name"),
        status=status,
        duration=duration,
        timestamp=timestamp,
        browser=browser,
        execution_mode=execution_mode,
        **extra,
    )


@pytest.fixture
def make_record() -> Callable[..., TestExecutionRecord]:
    """Factory for execution records."""
    return _make_record


@pytest.fixture
def output_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect every configured path into a temporary directory."""
    out = tmp_path / "output"
    out.mkdir()
    monkeypatch.setattr(settings, "BASE_DIR", tmp_path)
    monkeypatch.setattr(settings, "OUTPUT_DIR", out)
    monkeypatch.setattr(settings, "HISTORY_FILE", out / "execution-history.json")
    monkeypatch.setattr(settings, "REPORT_FILE", out / "dashboard.html")
    monkeypatch.setattr(settings, "SCREENSHOTS_DIR", out / "screenshots")
    return out


@pytest.fixture
def write_history(output_dir: Path) -> Callable[[List[Any]], Path]:
    """Write raw entries to the configured history file."""

    def _write(entries: List[Any]) -> Path:
        payload: List[Dict[str, Any]] = [
            e.to_dict() if isinstance(e, TestExecutionRecord) else e for e in entries
        ]
        settings.HISTORY_FILE.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return settings.HISTORY_FILE

    return _write


@pytest.fixture
def scenario_a() -> List[TestExecutionRecord]:
    """Three records of one run, one second apart."""
    return [
        _make_record("TC1", status="passed", duration=100, timestamp="2024-01-19T10:00:00.000Z"),
        _make_record("TC2", status="passed", duration=150, timestamp="2024-01-19T10:00:01.000Z"),
        _make_record("TC3", status="failed", duration=200, timestamp="2024-01-19T10:00:02.000Z"),
    ]


@pytest.fixture
def fake_controller() -> MagicMock:
    """Controller double whose screenshots write a small file."""
    controller = MagicMock()
    controller.page = MagicMock()
    controller.project_name = "firefox"

    async def _screenshot(path: str, full_page: bool = False) -> str:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        Path(path).write_bytes(b"\x89PNG")
        return path

    controller.screenshot = AsyncMock(side_effect=_screenshot)
    return controller
