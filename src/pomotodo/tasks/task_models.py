# src/pomotodo/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, frozen=True)
class Task:
    id: int
    name: str
    pomodoro_count: int = 0
    interruption_count: int = 0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Task:
        return cls(
            id=int(row["id"]),
            name=str(row["name"] or ""),
            pomodoro_count=int(row["pomodoros"] or 0),
            interruption_count=int(row["interruptions"] or 0),
        )
