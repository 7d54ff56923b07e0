# src/pomotodo/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- opens the database and wires gateway, repository, timer and view into AppState,
- tears everything down again in reverse order.
"""

from __future__ import annotations

import functools
import logging

from ..config import get_settings
from ..core.ports import TaskView
from ..core.state import AppState
from ..storage.gateway import StorageGateway
from ..tasks import task_api
from ..tasks.task_repository import TaskRepository
from ..timer.scheduler import AsyncioIntervalScheduler
from ..timer.timer_engine import TimerEngine

logger = logging.getLogger(__name__)


async def create_initial_state(*, view: TaskView, settings=None) -> AppState:
    """
    Create AppState from the provided settings. Must run on the app's event loop.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)

    gateway = StorageGateway(settings.data_dir)
    await gateway.open(
        settings.db_name,
        settings.db_version,
        settings.db_display_name,
        settings.db_size_bytes,
    )

    repository = TaskRepository(gateway, view)
    try:
        await repository.init()
    except BaseException:
        await gateway.close()
        raise

    timer = TimerEngine(
        repository,
        AsyncioIntervalScheduler(),
        view,
        duration_ms=settings.pomodoro_ms,
        interval_seconds=settings.tick_seconds,
    )

    state = AppState(
        settings=settings,
        gateway=gateway,
        repository=repository,
        timer=timer,
        view=view,
    )
    timer.on_completed = functools.partial(task_api.pomodoro_completed, state)
    return state


async def shutdown_state(state: AppState) -> None:
    """Stop the timer (nothing is committed) and close the database."""
    if state.timer.is_running:
        logger.info("Shutting down with a running pomodoro; it will not be counted.")
    state.timer.shutdown()
    await state.gateway.close()
