# tests/test_config.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from pomotodo.cli.bootstrap import create_initial_state, shutdown_state
from pomotodo.config import DEFAULT_DB_NAME, Settings

from .fakes import RecordingView


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for suffix in (
        "APP_NAME",
        "LOG_LEVEL",
        "DATA_DIR",
        "DB_NAME",
        "DB_VERSION",
        "DB_DISPLAY_NAME",
        "DB_SIZE_BYTES",
        "POMODORO_MINUTES",
        "TICK_SECONDS",
    ):
        monkeypatch.delenv(f"POMO_{suffix}", raising=False)


def test_defaults() -> None:
    s = Settings.from_env()
    assert s.db_name == DEFAULT_DB_NAME
    assert s.db_version == "1.0"
    assert s.db_size_bytes == 2 * 1024 * 1024
    assert s.pomodoro_minutes == 45
    assert s.pomodoro_ms == 2_700_000
    assert s.tick_seconds == 1.0


def test_overrides_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("POMO_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("POMO_DB_NAME", "Work")
    monkeypatch.setenv("POMO_POMODORO_MINUTES", "25")
    monkeypatch.setenv("POMO_TICK_SECONDS", "0.05")

    s = Settings.from_env()

    assert s.data_dir == tmp_path
    assert s.db_name == "Work"
    assert s.pomodoro_ms == 25 * 60 * 1000
    assert s.tick_seconds == 0.05


def test_bad_values_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("POMO_DB_SIZE_BYTES", "lots")
    monkeypatch.setenv("POMO_POMODORO_MINUTES", "0")
    monkeypatch.setenv("POMO_TICK_SECONDS", "-1")
    monkeypatch.setenv("POMO_DB_NAME", "   ")

    s = Settings.from_env()

    assert s.db_size_bytes == 2 * 1024 * 1024
    assert s.pomodoro_minutes == 1
    assert s.tick_seconds == 0.01
    assert s.db_name == DEFAULT_DB_NAME


@pytest.mark.asyncio
async def test_bootstrap_uses_configured_pomodoro_length(settings: SimpleNamespace, view: RecordingView) -> None:
    settings.pomodoro_ms = 25 * 60 * 1000
    state = await create_initial_state(view=view, settings=settings)
    try:
        assert state.timer.duration_ms == 25 * 60 * 1000
        assert state.timer.snapshot().remaining == "25:00"
    finally:
        await shutdown_state(state)
