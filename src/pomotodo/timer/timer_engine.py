# src/pomotodo/timer/timer_engine.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

from ..core.errors import PomotodoError
from ..core.ports import IntervalHandle, IntervalScheduler, PomodoroCounter, TaskView

logger = logging.getLogger(__name__)

TICK_MS = 1000
DEFAULT_POMODORO_MINUTES = 45

CompletionHook = Callable[[int, int], Awaitable[None]]


class TimerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"


@dataclass(slots=True, frozen=True)
class TimerSnapshot:
    state: TimerState
    task_id: int | None
    elapsed_ms: int
    duration_ms: int

    @property
    def percent(self) -> float:
        return self.elapsed_ms * 100.0 / self.duration_ms

    @property
    def remaining(self) -> str:
        return format_remaining(self.elapsed_ms, self.duration_ms)


def format_remaining(elapsed_ms: int, duration_ms: int) -> str:
    """Countdown as MM:SS, from the full duration down to 00:00."""
    remaining_s = max(0, int(duration_ms) - int(elapsed_ms)) // 1000
    minutes, seconds = divmod(remaining_s, 60)
    return f"{minutes:02d}:{seconds:02d}"


class TimerEngine:
    """
    Single-session pomodoro countdown.

    IDLE -> RUNNING -> COMPLETED | STOPPED, STOPPED -> IDLE, COMPLETED -> IDLE.

    Decisions are made on the engine's own state only. On completion the engine
    commits +1 pomodoro through the counter port; a failed commit is reported
    to the view and kept in last_error, never retried.
    """

    def __init__(
        self,
        counter: PomodoroCounter,
        scheduler: IntervalScheduler,
        view: TaskView | None = None,
        *,
        duration_ms: int = DEFAULT_POMODORO_MINUTES * 60 * 1000,
        tick_ms: int = TICK_MS,
        interval_seconds: float | None = None,
        on_completed: CompletionHook | None = None,
    ) -> None:
        if duration_ms <= 0 or tick_ms <= 0:
            raise ValueError("duration_ms and tick_ms must be positive")

        self._counter = counter
        self._scheduler = scheduler
        self.view = view
        self.duration_ms = int(duration_ms)
        self.tick_ms = int(tick_ms)
        # Wall-clock spacing of ticks; defaults to real time (one tick per tick_ms).
        self.interval_seconds = interval_seconds if interval_seconds is not None else self.tick_ms / 1000.0

        self.state = TimerState.IDLE
        self.task_id: int | None = None
        self.elapsed_ms = 0
        self.last_error: PomotodoError | None = None
        self.last_count: int | None = None

        self._prior_count: int | None = None
        self._handle: IntervalHandle | None = None
        # Awaited with (task_id, new_count) once a completion is stored.
        self.on_completed = on_completed

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    def snapshot(self) -> TimerSnapshot:
        return TimerSnapshot(
            state=self.state,
            task_id=self.task_id,
            elapsed_ms=self.elapsed_ms,
            duration_ms=self.duration_ms,
        )

    def start(self, task_id: int, prior_pomodoro_count: int | None = None) -> TimerSnapshot:
        if self.state is TimerState.RUNNING:
            logger.info("Timer already running for task %s; stopping it first", self.task_id)
            self.stop()

        self.task_id = int(task_id)
        self._prior_count = prior_pomodoro_count
        self.elapsed_ms = 0
        self.last_error = None
        self.last_count = None
        self.state = TimerState.RUNNING
        self._handle = self._scheduler.schedule(self.interval_seconds, self.tick)

        logger.info("Pomodoro started task=%s duration_ms=%s", self.task_id, self.duration_ms)
        self._emit_progress()
        return self.snapshot()

    def stop(self) -> bool:
        """Abandon the running session. Returns False when nothing was running."""
        if self.state is not TimerState.RUNNING:
            return False

        self._cancel_schedule()
        self.state = TimerState.STOPPED
        logger.info("Pomodoro stopped task=%s elapsed_ms=%s", self.task_id, self.elapsed_ms)

        self.state = TimerState.IDLE
        self.elapsed_ms = 0
        if self.view is not None:
            self.view.show_notice("Pomodoro stopped")
        return True

    def reset(self) -> None:
        if self.state is TimerState.RUNNING:
            return
        self.state = TimerState.IDLE
        self.elapsed_ms = 0

    def shutdown(self) -> None:
        self._cancel_schedule()
        self.state = TimerState.IDLE
        self.elapsed_ms = 0

    async def tick(self) -> None:
        if self.state is not TimerState.RUNNING:
            return

        self.elapsed_ms = min(self.duration_ms, self.elapsed_ms + self.tick_ms)
        if self.elapsed_ms < self.duration_ms:
            self._emit_progress()
            return

        self.state = TimerState.COMPLETED
        self._cancel_schedule()
        await self._commit()

    async def _commit(self) -> None:
        task_id = self.task_id
        if task_id is None:
            return

        try:
            new_count = await self._counter.increment_pomodoro(task_id)
        except PomotodoError as e:
            self.last_error = e
            logger.exception("Failed to save pomodoro for task %s", task_id)
            if self.view is not None:
                self.view.show_error(f"Pomodoro finished but was not saved: {e}")
            return

        self.last_count = new_count
        if self._prior_count is not None and new_count != self._prior_count + 1:
            logger.warning(
                "Task %s pomodoros changed elsewhere (expected %s, got %s)",
                task_id,
                self._prior_count + 1,
                new_count,
            )
        logger.info("Pomodoro finished task=%s pomodoros=%s", task_id, new_count)
        if self.view is not None:
            self.view.show_notice("Pomodoro finished")
        if self.on_completed is not None:
            await self.on_completed(task_id, new_count)

    def _emit_progress(self) -> None:
        if self.view is not None:
            snap = self.snapshot()
            self.view.render_progress(snap.percent, snap.remaining)

    def _cancel_schedule(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
