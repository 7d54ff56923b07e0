# tests/test_timer_engine.py

from __future__ import annotations

import asyncio

import pytest

from pomotodo.core.errors import TaskNotFoundError
from pomotodo.tasks.task_repository import TaskRepository
from pomotodo.timer.scheduler import AsyncioIntervalScheduler
from pomotodo.timer.timer_engine import TimerEngine, TimerState, format_remaining

from .fakes import FakeCounter, ManualScheduler, RecordingView

FULL = 45 * 60 * 1000


def _engine(
    counter: FakeCounter | None = None,
    view: RecordingView | None = None,
    **kwargs,
) -> tuple[TimerEngine, ManualScheduler, FakeCounter, RecordingView]:
    counter = counter or FakeCounter()
    view = view or RecordingView()
    scheduler = ManualScheduler()
    return TimerEngine(counter, scheduler, view, **kwargs), scheduler, counter, view


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


def test_format_remaining_counts_down_in_whole_seconds() -> None:
    assert format_remaining(0, FULL) == "45:00"
    assert format_remaining(59_000, FULL) == "44:01"
    assert format_remaining(60_000, FULL) == "44:00"
    assert format_remaining(FULL - 1000, FULL) == "00:01"
    assert format_remaining(FULL, FULL) == "00:00"
    assert format_remaining(FULL + 5000, FULL) == "00:00"


def test_start_emits_full_time_and_is_running() -> None:
    engine, scheduler, _counter, view = _engine()

    snap = engine.start(7)

    assert engine.is_running
    assert snap.task_id == 7
    assert view.progress == [(0.0, "45:00")]
    assert len(scheduler.active) == 1


@pytest.mark.asyncio
async def test_full_session_commits_exactly_once() -> None:
    engine, scheduler, counter, view = _engine()
    engine.start(3, prior_pomodoro_count=0)

    await scheduler.advance(2699)
    assert engine.state is TimerState.RUNNING
    assert view.progress[-1][1] == "00:01"
    assert counter.calls == []

    await scheduler.advance(1)
    assert engine.state is TimerState.COMPLETED
    assert engine.elapsed_ms == FULL
    assert counter.calls == [3]
    assert engine.last_count == 1
    assert view.notices == ["Pomodoro finished"]
    assert scheduler.active == []

    # Late ticks after completion change nothing.
    await engine.tick()
    await engine.tick()
    assert counter.calls == [3]


@pytest.mark.asyncio
async def test_halfway_is_fifty_percent() -> None:
    engine, scheduler, _counter, _view = _engine()
    engine.start(1)

    await scheduler.advance(1350)

    snap = engine.snapshot()
    assert snap.percent == pytest.approx(50.0)
    assert snap.remaining == "22:30"


@pytest.mark.asyncio
async def test_stop_never_commits() -> None:
    engine, scheduler, counter, view = _engine()
    engine.start(5)
    await scheduler.advance(100)

    assert engine.stop() is True

    assert engine.state is TimerState.IDLE
    assert engine.elapsed_ms == 0
    assert scheduler.active == []
    assert view.notices == ["Pomodoro stopped"]

    await engine.tick()
    assert counter.calls == []
    assert engine.stop() is False


@pytest.mark.asyncio
async def test_second_start_keeps_a_single_tick_stream() -> None:
    engine, scheduler, _counter, _view = _engine()
    engine.start(1)
    await scheduler.advance(5)

    engine.start(2)
    await scheduler.advance(10)

    assert len(scheduler.active) == 1
    assert engine.task_id == 2
    assert engine.elapsed_ms == 10_000


@pytest.mark.asyncio
async def test_failed_commit_is_reported_and_not_retried() -> None:
    counter = FakeCounter(fail_with=TaskNotFoundError(9))
    engine, scheduler, counter, view = _engine(counter=counter, duration_ms=3000)
    engine.start(9)

    await scheduler.advance(3)

    assert engine.state is TimerState.COMPLETED
    assert isinstance(engine.last_error, TaskNotFoundError)
    assert len(view.errors) == 1
    assert view.errors[0].startswith("Pomodoro finished but was not saved")
    assert view.notices == []

    await scheduler.advance(5)
    assert counter.calls == [9]


@pytest.mark.asyncio
async def test_restart_after_completion() -> None:
    engine, scheduler, counter, _view = _engine(duration_ms=2000)
    engine.start(4)
    await scheduler.advance(2)
    assert engine.state is TimerState.COMPLETED

    engine.start(4)
    assert engine.state is TimerState.RUNNING
    assert engine.elapsed_ms == 0
    await scheduler.advance(2)

    assert counter.calls == [4, 4]
    assert engine.last_count == 2


def test_reset_does_not_touch_a_running_session() -> None:
    engine, _scheduler, _counter, _view = _engine()
    engine.start(1)
    engine.reset()
    assert engine.is_running


def test_rejects_non_positive_duration() -> None:
    with pytest.raises(ValueError):
        TimerEngine(FakeCounter(), ManualScheduler(), duration_ms=0)


@pytest.mark.asyncio
async def test_completion_increments_stored_counter(repo: TaskRepository, view: RecordingView) -> None:
    task_id = await repo.create_task("Deep work")
    scheduler = ManualScheduler()
    engine = TimerEngine(repo, scheduler, view, duration_ms=3000)

    engine.start(task_id, prior_pomodoro_count=0)
    await scheduler.advance(3)

    assert engine.last_count == 1
    assert (await repo.get_task(task_id)).pomodoro_count == 1


@pytest.mark.asyncio
async def test_real_scheduler_drives_a_short_session() -> None:
    view = RecordingView()
    counter = FakeCounter()
    scheduler = AsyncioIntervalScheduler()
    engine = TimerEngine(counter, scheduler, view, duration_ms=3000, interval_seconds=0.01)

    engine.start(11)
    await _wait_for(lambda: engine.state is TimerState.COMPLETED)

    assert counter.calls == [11]
    assert scheduler.active is None
    assert [r for _p, r in view.progress] == ["00:03", "00:02", "00:01"]


@pytest.mark.asyncio
async def test_real_scheduler_replaces_previous_schedule() -> None:
    scheduler = AsyncioIntervalScheduler()
    ticks: list[str] = []

    async def first() -> None:
        ticks.append("first")

    async def second() -> None:
        ticks.append("second")

    old = scheduler.schedule(0.01, first)
    new = scheduler.schedule(0.01, second)
    try:
        assert old.cancelled
        assert scheduler.active is new
        await _wait_for(lambda: len(ticks) >= 3)
        assert set(ticks) == {"second"}
    finally:
        scheduler.cancel_all()


@pytest.mark.asyncio
async def test_completion_hook_gets_new_count_only_on_success() -> None:
    seen: list[tuple[int, int]] = []

    async def hook(task_id: int, count: int) -> None:
        seen.append((task_id, count))

    engine, scheduler, _counter, _view = _engine(duration_ms=1000, on_completed=hook)
    engine.start(6)
    await scheduler.advance(1)
    assert seen == [(6, 1)]

    failing, failing_scheduler, _c, _v = _engine(
        counter=FakeCounter(fail_with=TaskNotFoundError(6)), duration_ms=1000, on_completed=hook
    )
    failing.start(6)
    await failing_scheduler.advance(1)
    assert seen == [(6, 1)]
