# src/pomotodo/tasks/task_repository.py

from __future__ import annotations

import logging

from ..core.errors import StorageError, TaskNotFoundError, ValidationError
from ..core.ports import TaskView
from ..storage.gateway import ResultSet, StorageGateway, Transaction
from .task_models import Task

logger = logging.getLogger(__name__)

_SELECT_ALL = "SELECT id, name, pomodoros, interruptions FROM Messages"
_SELECT_ONE = "SELECT id, name, pomodoros, interruptions FROM Messages WHERE id = ?"

# Counter columns are fixed names, never user input.
_COUNTERS = ("pomodoros", "interruptions")


class TaskRepository:
    """
    CRUD over the single task table.

    Callers never see SQL. Every write that changes the list (create, delete)
    refreshes the attached view only after its own transaction has committed,
    so the view always reads its own writes.
    """

    def __init__(self, gateway: StorageGateway, view: TaskView | None = None) -> None:
        self._gateway = gateway
        self.view = view

    async def init(self) -> None:
        """Ensure the schema, then show the current list."""
        created = await self._gateway.ensure_schema(on_created=self.refresh)
        if not created:
            await self.refresh()
        try:
            total = await self.count_tasks()
        except StorageError:
            total = -1
        logger.info("TaskRepository ready db=%s total=%s", self._gateway.name, total)

    # ---- reads ----

    async def list_tasks(self) -> list[Task]:
        tasks: list[Task] = []

        def collect(_tx: Transaction, rs: ResultSet) -> None:
            tasks.extend(Task.from_row(r) for r in rs.rows)

        await self._gateway.read_transaction(lambda tx: tx.execute(_SELECT_ALL, (), collect))
        logger.debug("list_tasks -> %d row(s)", len(tasks))
        return tasks

    async def get_task(self, task_id: int) -> Task:
        found: list[Task] = []

        def collect(_tx: Transaction, rs: ResultSet) -> None:
            found.extend(Task.from_row(r) for r in rs.rows)

        await self._gateway.read_transaction(
            lambda tx: tx.execute(_SELECT_ONE, (int(task_id),), collect)
        )
        if not found:
            raise TaskNotFoundError(int(task_id))
        return found[0]

    async def count_tasks(self) -> int:
        count = 0

        def collect(_tx: Transaction, rs: ResultSet) -> None:
            nonlocal count
            count = int(rs.rows[0]["n"])

        await self._gateway.read_transaction(
            lambda tx: tx.execute("SELECT COUNT(*) AS n FROM Messages", (), collect)
        )
        return count

    async def refresh(self) -> list[Task]:
        tasks = await self.list_tasks()
        if self.view is not None:
            self.view.render(tasks)
        return tasks

    # ---- writes ----

    async def create_task(self, name: str) -> int:
        clean = (name or "").strip()
        if not clean:
            raise ValidationError("name", "Enter a task name")

        inserted: list[int] = []

        def on_insert(_tx: Transaction, rs: ResultSet) -> None:
            if rs.insert_id is None:
                raise RuntimeError("SQLite did not return lastrowid for task insert")
            inserted.append(int(rs.insert_id))

        await self._gateway.run_transaction(
            lambda tx: tx.execute(
                "INSERT INTO Messages (name, pomodoros, interruptions) VALUES (?, ?, ?)",
                (clean, 0, 0),
                on_insert,
            )
        )
        task_id = inserted[0]
        logger.info("Task added id=%s name=%r", task_id, clean)

        await self.refresh()
        return task_id

    async def increment_pomodoro(self, task_id: int) -> int:
        return await self._increment("pomodoros", task_id)

    async def increment_interruption(self, task_id: int) -> int:
        return await self._increment("interruptions", task_id)

    async def delete_task(self, task_id: int) -> None:
        affected = 0

        def on_delete(_tx: Transaction, rs: ResultSet) -> None:
            nonlocal affected
            affected = rs.rows_affected

        await self._gateway.run_transaction(
            lambda tx: tx.execute("DELETE FROM Messages WHERE id = ?", (int(task_id),), on_delete)
        )
        if affected:
            logger.info("Task deleted id=%s", task_id)
        else:
            logger.debug("delete_task: no row with id=%s", task_id)

        await self.refresh()

    async def _increment(self, column: str, task_id: int) -> int:
        """
        Atomic counter increment.

        The UPDATE adds 1 in SQL and the new value is read back inside the same
        transaction, so concurrent increments can never overwrite each other.
        """
        if column not in _COUNTERS:
            raise ValueError(f"Unknown counter column: {column}")

        tid = int(task_id)
        new_value: list[int] = []

        def read_back(_tx: Transaction, rs: ResultSet) -> None:
            new_value.append(int(rs.rows[0][column]))

        def on_update(tx: Transaction, rs: ResultSet) -> None:
            if rs.rows_affected == 0:
                # Raising here rolls the transaction back.
                raise TaskNotFoundError(tid)
            tx.execute(_SELECT_ONE, (tid,), read_back)

        await self._gateway.run_transaction(
            lambda tx: tx.execute(
                f"UPDATE Messages SET {column} = {column} + 1 WHERE id = ?",
                (tid,),
                on_update,
            )
        )
        logger.info("Task %s %s -> %s", tid, column, new_value[0])
        return new_value[0]
