# src/pomotodo/storage/gateway.py

from __future__ import annotations

"""
Storage gateway.

Owns the single SQLite connection of the app and exposes a transaction-callback
API on top of it:

- run_transaction(work) calls work(tx) with a Transaction,
- tx.execute(sql, params, on_result, on_error) queues a statement,
- statements run in submission order; callbacks may queue more statements,
- the awaitable resolves only after every queued statement has resolved.

Thread-safety:
- the connection lives on one dedicated worker thread (max_workers=1),
  so every operation on it is serialized no matter which thread awaits it.
"""

import asyncio
import contextlib
import functools
import logging
import sqlite3
from collections import deque
from collections.abc import Awaitable, Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from ..core.errors import StorageError, StorageErrorCode, TransactionError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TASK_TABLE = "Messages"

CREATE_TASK_TABLE = (
    "CREATE TABLE IF NOT EXISTS Messages "
    "(id INTEGER PRIMARY KEY, name TEXT, pomodoros INTEGER, interruptions INTEGER)"
)

_INFO_TABLE = "_db_info"

_CONTROL_VERBS = frozenset({"BEGIN", "COMMIT", "ROLLBACK", "END", "SAVEPOINT", "RELEASE"})
_WRITE_VERBS = frozenset({"INSERT", "UPDATE", "DELETE", "REPLACE", "CREATE", "DROP", "ALTER"})
_DML_VERBS = frozenset({"INSERT", "UPDATE", "DELETE", "REPLACE"})


@dataclass(slots=True, frozen=True)
class ResultSet:
    insert_id: int | None
    rows_affected: int
    rows: list[dict[str, Any]] = field(default_factory=list)


StatementCallback = Callable[["Transaction", ResultSet], None]
StatementErrorCallback = Callable[["Transaction", StorageError], Any]
TransactionWork = Callable[["Transaction"], None]
TransactionErrorCallback = Callable[[TransactionError], None]


@dataclass(slots=True)
class _Statement:
    sql: str
    params: tuple[Any, ...]
    on_result: StatementCallback | None
    on_error: StatementErrorCallback | None


def _leading_verb(sql: str) -> str:
    parts = sql.split(None, 1)
    return parts[0].upper() if parts else ""


def count_placeholders(sql: str) -> int:
    """
    Number of positional parameters the statement binds.

    Quoted text and comments are skipped. "?NNN" sets the index explicitly and a
    bare "?" takes the largest index so far plus one, as SQLite numbers them.
    """
    count = 0
    i, n = 0, len(sql)
    while i < n:
        ch = sql[i]
        if ch in "'\"`[":
            end = sql.find("]" if ch == "[" else ch, i + 1)
            i = n if end < 0 else end + 1
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end < 0 else end + 1
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end < 0 else end + 2
        elif ch == "?":
            j = i + 1
            while j < n and sql[j].isdigit():
                j += 1
            count = max(count, int(sql[i + 1 : j])) if j > i + 1 else count + 1
            i = j
        else:
            i += 1
    return count


class Transaction:
    """
    Statement executor scoped to one run_transaction() call.

    Statement error contract:
    - if on_error returns exactly False, the failed statement's effects are undone
      and the transaction continues with the next statement;
    - any other outcome (no handler, a truthy/None return, an exception)
      rolls back the whole transaction.
    """

    def __init__(self, *, read_only: bool = False) -> None:
        self.read_only = read_only
        self._queue: deque[_Statement] = deque()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def execute(
        self,
        sql: str,
        params: Iterable[Any] = (),
        on_result: StatementCallback | None = None,
        on_error: StatementErrorCallback | None = None,
    ) -> None:
        if not self._active:
            raise ValueError("Transaction is no longer active")

        args = tuple(params)
        expected = count_placeholders(sql)
        if expected != len(args):
            raise ValueError(
                f"Statement expects {expected} parameter(s), got {len(args)}: {sql!r}"
            )

        self._queue.append(_Statement(sql, args, on_result, on_error))

    def _next(self) -> _Statement | None:
        return self._queue.popleft() if self._queue else None

    def _finish(self) -> None:
        self._active = False
        self._queue.clear()


class StorageGateway:
    """
    Owner of the on-device database.

    Lifecycle: open() -> ensure_schema() -> run_transaction()... -> close().
    A base_dir of None keeps the database in memory (tests, demos).
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        self._base_dir = Path(base_dir) if base_dir is not None else None
        self._executor: ThreadPoolExecutor | None = None
        self._conn: sqlite3.Connection | None = None

        self.name: str | None = None
        self.version: str = ""
        self.display_name: str = ""
        self.size_bytes: int = 0

    # ---- lifecycle ----

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def path(self) -> Path | None:
        if self._base_dir is None or self.name is None:
            return None
        return self._base_dir / f"{self.name}.sqlite3"

    async def open(
        self,
        name: str,
        version: str,
        display_name: str,
        size_bytes: int,
    ) -> StorageGateway:
        """
        Open (or create) the named database.

        Idempotent: opening the same name again returns the already open gateway.
        An existing database recorded with another version fails with VERSION,
        unless the expected version is "" (accept any).
        """
        if self._conn is not None:
            if name == self.name:
                return self
            raise ValueError(f"Gateway is already open on {self.name!r}")

        if not name or not name.strip():
            raise ValueError("Database name is required")

        self.name = name.strip()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pomotodo-db")

        try:
            stored = await self._call(self._open_sync, version, display_name, int(size_bytes))
        except StorageError:
            self.name = None
            raise
        except sqlite3.Error as e:
            self.name = None
            raise StorageError.from_sqlite(e) from e

        self.version = stored
        self.display_name = display_name
        self.size_bytes = int(size_bytes)
        logger.info(
            "Database open name=%s version=%s path=%s quota=%s",
            self.name,
            self.version,
            self.path or ":memory:",
            self.size_bytes,
        )
        return self

    async def close(self) -> None:
        if self._executor is None:
            return
        with contextlib.suppress(Exception):
            await self._call(self._close_sync)
        self._executor.shutdown(wait=True)
        self._executor = None
        logger.info("Database closed name=%s", self.name)

    # ---- schema ----

    async def ensure_schema(
        self,
        on_created: Callable[[], Awaitable[Any]] | None = None,
    ) -> bool:
        """
        Create the task table if it is missing.

        Returns True when the table was created by this call; in that case
        on_created is awaited once the creating transaction has committed.
        """
        existed = False

        def check(_tx: Transaction, rs: ResultSet) -> None:
            nonlocal existed
            existed = bool(rs.rows)

        def work(tx: Transaction) -> None:
            tx.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?",
                (TASK_TABLE,),
                check,
            )
            tx.execute(CREATE_TASK_TABLE)

        await self.run_transaction(work)

        if existed:
            return False

        logger.info("Created table %s", TASK_TABLE)
        if on_created is not None:
            await on_created()
        return True

    # ---- transactions ----

    async def run_transaction(
        self,
        work: TransactionWork,
        on_error: TransactionErrorCallback | None = None,
        *,
        read_only: bool = False,
    ) -> None:
        """
        Run work(tx) atomically.

        Storage failures roll back everything, are passed to on_error (if any)
        and then raised as TransactionError. Other exceptions raised by work or
        by a statement callback also roll back and propagate unchanged.
        """
        try:
            await self._call(self._transaction_sync, work, read_only)
        except (StorageError, sqlite3.Error) as e:
            err = (
                TransactionError.wrap(e)
                if isinstance(e, StorageError)
                else TransactionError.from_sqlite(e)
            )
            logger.warning("Transaction rolled back: %s", err)
            if on_error is not None:
                on_error(err)
            raise err from e

    async def read_transaction(
        self,
        work: TransactionWork,
        on_error: TransactionErrorCallback | None = None,
    ) -> None:
        await self.run_transaction(work, on_error, read_only=True)

    async def change_version(
        self,
        old_version: str,
        new_version: str,
        work: TransactionWork | None = None,
        on_error: TransactionErrorCallback | None = None,
    ) -> None:
        """Atomically check the recorded version, run work and record new_version."""

        def check(tx: Transaction, rs: ResultSet) -> None:
            current = str(rs.rows[0]["value"]) if rs.rows else ""
            if current != old_version:
                raise StorageError(
                    StorageErrorCode.VERSION,
                    f"current version {current!r} does not match {old_version!r}",
                )
            if work is not None:
                work(tx)
            tx.execute(
                f"UPDATE {_INFO_TABLE} SET value = ? WHERE key = 'version'",
                (new_version,),
            )

        def versioned(tx: Transaction) -> None:
            tx.execute(f"SELECT value FROM {_INFO_TABLE} WHERE key = 'version'", (), check)

        await self.run_transaction(versioned, on_error)
        self.version = new_version
        logger.info("Database version changed %s -> %s", old_version, new_version)

    # ---- worker-thread side ----

    async def _call(self, fn: Callable[..., T], *args: Any) -> T:
        if self._executor is None:
            raise StorageError(StorageErrorCode.DATABASE, "database is not open")
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args))

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError(StorageErrorCode.DATABASE, "database is not open")
        return self._conn

    def _open_sync(self, version: str, display_name: str, size_bytes: int) -> str:
        path = self.path
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(path) if path is not None else ":memory:", timeout=5.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        try:
            if size_bytes > 0:
                (page_size,) = conn.execute("PRAGMA page_size").fetchone()
                conn.execute(f"PRAGMA max_page_count = {max(1, size_bytes // int(page_size))}")

            conn.execute(
                f"CREATE TABLE IF NOT EXISTS {_INFO_TABLE} (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )
            row = conn.execute(f"SELECT value FROM {_INFO_TABLE} WHERE key = 'version'").fetchone()
            if row is None:
                conn.executemany(
                    f"INSERT INTO {_INFO_TABLE} (key, value) VALUES (?, ?)",
                    [("version", version), ("display_name", display_name)],
                )
                stored = version
            else:
                stored = str(row["value"])
                if version and stored != version:
                    raise StorageError(
                        StorageErrorCode.VERSION,
                        f"expected version {version!r}, database is at {stored!r}",
                    )
        except BaseException:
            conn.close()
            raise

        self._conn = conn
        return stored

    def _close_sync(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _transaction_sync(self, work: TransactionWork, read_only: bool) -> None:
        conn = self._require_conn()
        tx = Transaction(read_only=read_only)

        if read_only:
            # SQLite itself refuses writes, whatever shape the statement has.
            conn.execute("PRAGMA query_only = ON")
        conn.execute("BEGIN")
        try:
            work(tx)
            while (stmt := tx._next()) is not None:
                self._run_statement(conn, tx, stmt)
            conn.execute("COMMIT")
        except BaseException:
            if conn.in_transaction:
                with contextlib.suppress(sqlite3.Error):
                    conn.execute("ROLLBACK")
            raise
        finally:
            tx._finish()
            if read_only:
                conn.execute("PRAGMA query_only = OFF")

    def _run_statement(self, conn: sqlite3.Connection, tx: Transaction, stmt: _Statement) -> None:
        verb = _leading_verb(stmt.sql)

        if verb in _CONTROL_VERBS:
            err = StorageError(StorageErrorCode.SYNTAX, f"{verb} is not allowed inside a transaction")
            self._statement_failed(tx, stmt, err)
            return

        if tx.read_only and verb in _WRITE_VERBS:
            err = StorageError(StorageErrorCode.SYNTAX, f"{verb} is not allowed in a read-only transaction")
            self._statement_failed(tx, stmt, err)
            return

        conn.execute("SAVEPOINT stmt")
        try:
            cur = conn.execute(stmt.sql, stmt.params)
            rows = [dict(r) for r in cur.fetchall()]
        except sqlite3.Error as e:
            err = StorageError.from_sqlite(e)
            try:
                conn.execute("ROLLBACK TO stmt")
                conn.execute("RELEASE stmt")
            except sqlite3.Error:
                # The store already aborted the whole transaction; nothing to resume.
                raise err from e
            self._statement_failed(tx, stmt, err)
            return

        conn.execute("RELEASE stmt")
        result = ResultSet(
            insert_id=cur.lastrowid if verb in ("INSERT", "REPLACE") else None,
            rows_affected=max(cur.rowcount, 0) if verb in _DML_VERBS else 0,
            rows=rows,
        )
        logger.debug("%s ok rows=%d affected=%d", verb, len(rows), result.rows_affected)
        if stmt.on_result is not None:
            stmt.on_result(tx, result)

    @staticmethod
    def _statement_failed(tx: Transaction, stmt: _Statement, err: StorageError) -> None:
        if stmt.on_error is not None and stmt.on_error(tx, err) is False:
            logger.debug("Statement error swallowed by handler: %s", err)
            return
        raise err
