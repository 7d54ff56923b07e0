# src/pomotodo/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The repository and the timer depend on Protocols instead of concrete views and
schedulers. This keeps the console connector swappable and makes testing easier.
"""

from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Protocol

TickCallback = Callable[[], Awaitable[None]]


class TaskView(Protocol):
    """
    View-side port: how the core pushes state outward.

    show_error is a blocking notification in interactive views: the user has to
    see it, it is never dropped silently.
    """

    def render(self, tasks: Sequence[Any]) -> None: ...
    def render_detail(self, task: Any) -> None: ...
    def render_progress(self, percent: float, remaining: str) -> None: ...
    def show_notice(self, text: str) -> None: ...
    def show_error(self, text: str) -> None: ...


class IntervalHandle(Protocol):
    @property
    def cancelled(self) -> bool: ...

    def cancel(self) -> None: ...


class IntervalScheduler(Protocol):
    """Repeating timer facility. At most one schedule is active at a time."""

    def schedule(self, interval_seconds: float, callback: TickCallback) -> IntervalHandle: ...


class PomodoroCounter(Protocol):
    """The part of the task repository the timer commits completions to."""

    def increment_pomodoro(self, task_id: int) -> Awaitable[int]: ...
