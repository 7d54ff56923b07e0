# src/pomotodo/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Sequence
from datetime import datetime
from typing import TextIO

from ..cli.commands import registry as command_registry
from ..cli.runner import LoopRunner
from ..core.state import AppState
from ..tasks.task_models import Task
from ..timer.progress import pie_shape

logger = logging.getLogger(__name__)

EMPTY_LIST_TEXT = "No tasks yet. Type a task name (or /add <name>) to enter one."


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def format_task_line(task: Task) -> str:
    return (
        f"[{task.id}] {task.name}  "
        f"Pomodoros: {task.pomodoro_count}  Interruptions: {task.interruption_count}"
    )


class ConsoleView:
    """
    TaskView for a terminal.

    Called from the event-loop thread while the REPL waits in input(), so every
    write goes through one lock.
    """

    def __init__(self, out: TextIO | None = None) -> None:
        self._out = out if out is not None else sys.stdout
        self._lock = threading.Lock()

    def _print(self, text: str) -> None:
        with self._lock:
            print(f"[{_ts_local()}] {text}", file=self._out, flush=True)

    def render(self, tasks: Sequence[Task]) -> None:
        if not tasks:
            self._print(EMPTY_LIST_TEXT)
            return
        lines = ["Tasks:"] + [f"  {format_task_line(t)}" for t in tasks]
        self._print("\n".join(lines))

    def render_detail(self, task: Task) -> None:
        self._print(f"Tracking {format_task_line(task)}")

    def render_progress(self, percent: float, remaining: str) -> None:
        # One line per minute keeps the prompt readable.
        if percent > 0 and not remaining.endswith(":00"):
            return
        pie = pie_shape(percent)
        self._print(f"{pie.glyph} {remaining} left ({pie.percent:.0f}%)")

    def show_notice(self, text: str) -> None:
        self._print(f"[POMODORO] {text}")

    def show_error(self, text: str) -> None:
        # Terminal bell: the closest thing to a blocking alert on a console.
        self._print(f"\a[ERROR] {text}")


def run_console_loop(
    state: AppState,
    runner: LoopRunner,
    stop_event: threading.Event | None = None,
) -> None:
    """
    Blocking REPL.

    Lines starting with "/" are commands; any other text adds a task. The work
    itself runs on the event loop thread via runner.submit.
    """
    logger.info("Console connector started.")
    print(f"[{_ts_local()}] [CONSOLE] Type a task name to add it. Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while stop_event is None or not stop_event.is_set():
        try:
            user_input = input("> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        line = user_input if user_input.startswith("/") else f"/add {user_input}"

        try:
            response = runner.submit(command_registry.handle(state, line, emit=emit))
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response:
            print(f"[{_ts_local()}] {response}")

    logger.info("Console connector finished.")
