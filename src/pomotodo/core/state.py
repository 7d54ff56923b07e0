# src/pomotodo/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..core.ports import TaskView
from ..storage.gateway import StorageGateway
from ..tasks.task_models import Task
from ..tasks.task_repository import TaskRepository
from ..timer.timer_engine import TimerEngine


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    gateway: StorageGateway
    repository: TaskRepository
    timer: TimerEngine
    view: TaskView

    # Task shown in the detail view (the one /start and /interrupt act on).
    tracked: Task | None = None
