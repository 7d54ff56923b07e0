# src/pomotodo/tasks/task_api.py

"""
UI-event glue.

Each helper is what one button/command does: call the repository or the timer,
update the tracked task, push the result to the view. Errors are shown to the
user through view.show_error and the acting control keeps its previous state.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..core.errors import PomotodoError
from ..core.state import AppState
from ..timer.timer_engine import TimerSnapshot
from .task_models import Task

logger = logging.getLogger(__name__)

NO_TRACKED_TASK = "Select a task first: /track <id>"


def _report(state: AppState, action: str, err: PomotodoError) -> None:
    logger.info("%s failed: %s", action, err)
    state.view.show_error(str(err))


async def add_task(state: AppState, name: str) -> int | None:
    try:
        return await state.repository.create_task(name)
    except PomotodoError as e:
        _report(state, "add_task", e)
        return None


async def track_task(state: AppState, task_id: int) -> Task | None:
    try:
        task = await state.repository.get_task(task_id)
    except PomotodoError as e:
        _report(state, "track_task", e)
        return None

    state.tracked = task
    state.view.render_detail(task)
    return task


async def add_interruption(state: AppState) -> int | None:
    task = state.tracked
    if task is None:
        state.view.show_error(NO_TRACKED_TASK)
        return None

    try:
        count = await state.repository.increment_interruption(task.id)
    except PomotodoError as e:
        _report(state, "add_interruption", e)
        return None

    state.tracked = replace(task, interruption_count=count)
    state.view.render_detail(state.tracked)
    return count


async def delete_task(state: AppState, task_id: int) -> bool:
    try:
        await state.repository.delete_task(task_id)
    except PomotodoError as e:
        _report(state, "delete_task", e)
        return False

    if state.tracked is not None and state.tracked.id == int(task_id):
        state.tracked = None
    return True


def start_pomodoro(state: AppState) -> TimerSnapshot | None:
    task = state.tracked
    if task is None:
        state.view.show_error(NO_TRACKED_TASK)
        return None
    return state.timer.start(task.id, task.pomodoro_count)


def stop_pomodoro(state: AppState) -> bool:
    return state.timer.stop()


def toggle_pomodoro(state: AppState) -> TimerSnapshot | None:
    """Start/stop button: decided by the timer's own state, never by a label."""
    if state.timer.is_running:
        state.timer.stop()
        return state.timer.snapshot()
    return start_pomodoro(state)


async def reload_tracked(state: AppState) -> Task | None:
    """Re-read the tracked task so the detail view shows stored counters."""
    if state.tracked is None:
        return None
    return await track_task(state, state.tracked.id)


async def pomodoro_completed(state: AppState, task_id: int, count: int) -> None:
    """Timer completion hook: keep the tracked task in step with the stored count."""
    tracked = state.tracked
    if tracked is None or tracked.id != task_id:
        return
    if await reload_tracked(state) is None:
        # Could not re-read it; the committed count is still known.
        state.tracked = replace(tracked, pomodoro_count=count)
        state.view.render_detail(state.tracked)
