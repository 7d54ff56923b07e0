# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio

from pomotodo.cli.bootstrap import create_initial_state, shutdown_state
from pomotodo.core.state import AppState
from pomotodo.storage.gateway import StorageGateway
from pomotodo.tasks.task_repository import TaskRepository

from .fakes import RecordingView


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Settings stand-in for bootstrap: a SimpleNamespace with the same fields,
    so tests never read POMO_* variables or a local .env.
    """
    return SimpleNamespace(
        app_name="pomotodo",
        log_level="INFO",
        data_dir=tmp_path / "data",
        db_name="Pomodoro1",
        db_version="1.0",
        db_display_name="Pomodoro BBM",
        db_size_bytes=2 * 1024 * 1024,
        pomodoro_minutes=45,
        pomodoro_ms=45 * 60 * 1000,
        tick_seconds=1.0,
    )


@pytest.fixture()
def view() -> RecordingView:
    return RecordingView()


@pytest_asyncio.fixture()
async def gateway(settings: SimpleNamespace):
    gw = StorageGateway(settings.data_dir)
    await gw.open(
        settings.db_name,
        settings.db_version,
        settings.db_display_name,
        settings.db_size_bytes,
    )
    yield gw
    await gw.close()


@pytest_asyncio.fixture()
async def repo(gateway: StorageGateway, view: RecordingView) -> TaskRepository:
    """
    Repository on a real SQLite file: its SQL is part of what we want to test.
    """
    repository = TaskRepository(gateway, view)
    await repository.init()
    return repository


@pytest_asyncio.fixture()
async def state(settings: SimpleNamespace, view: RecordingView):
    """AppState wired exactly like the CLI does, with a recording view."""
    app_state: AppState = await create_initial_state(view=view, settings=settings)
    yield app_state
    await shutdown_state(app_state)
