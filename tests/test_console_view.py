# tests/test_console_view.py

from __future__ import annotations

import io

from pomotodo.connectors.console_connector import EMPTY_LIST_TEXT, ConsoleView, format_task_line
from pomotodo.tasks.task_models import Task


def test_format_task_line() -> None:
    task = Task(id=3, name="Plan sprint", pomodoro_count=2, interruption_count=1)
    assert format_task_line(task) == "[3] Plan sprint  Pomodoros: 2  Interruptions: 1"


def test_empty_list_shows_hint() -> None:
    out = io.StringIO()
    ConsoleView(out).render([])
    assert EMPTY_LIST_TEXT in out.getvalue()


def test_progress_prints_once_per_minute() -> None:
    out = io.StringIO()
    view = ConsoleView(out)

    view.render_progress(0.0, "45:00")
    view.render_progress(0.1, "44:59")
    view.render_progress(2.2, "44:00")

    lines = out.getvalue().splitlines()
    assert len(lines) == 2
    assert lines[0].endswith("○ 45:00 left (0%)")
    assert "44:00 left" in lines[1]


def test_error_rings_the_bell() -> None:
    out = io.StringIO()
    ConsoleView(out).show_error("boom")
    assert "\a[ERROR] boom" in out.getvalue()
