# src/pomotodo/core/errors.py

"""
Error taxonomy shared by storage, repository and timer.

Storage failures are modelled as a closed enum of codes at the gateway boundary,
so callers never inspect sqlite3 exception text themselves.
"""

from __future__ import annotations

import sqlite3
from enum import StrEnum


class StorageErrorCode(StrEnum):
    DATABASE = "database"
    VERSION = "version"
    TOO_LARGE = "too_large"
    QUOTA = "quota"
    SYNTAX = "syntax"
    CONSTRAINT = "constraint"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS: dict[StorageErrorCode, str] = {
    StorageErrorCode.DATABASE: "DATABASE",
    StorageErrorCode.VERSION: "DATABASE VERSION",
    StorageErrorCode.TOO_LARGE: "RESULT TOO LARGE",
    StorageErrorCode.QUOTA: "QUOTA EXCEEDED",
    StorageErrorCode.SYNTAX: "SYNTAX",
    StorageErrorCode.CONSTRAINT: "CONSTRAINT",
    StorageErrorCode.TIMEOUT: "TIMEOUT",
    StorageErrorCode.UNKNOWN: "UNKNOWN",
}


class PomotodoError(Exception):
    """Base class for errors that are shown to the user."""


class ValidationError(PomotodoError):
    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"{field} is required")


class TaskNotFoundError(PomotodoError):
    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class StorageError(PomotodoError):
    """A statement-level failure reported by the store."""

    kind = "SQLStatementError"

    def __init__(self, code: StorageErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"{self.kind} [{code.label}] {message}")

    @classmethod
    def from_sqlite(cls, exc: BaseException) -> StorageError:
        return cls(classify_sqlite_error(exc), str(exc) or exc.__class__.__name__)


class TransactionError(StorageError):
    """The whole transaction was rolled back."""

    kind = "SQLTransactionError"

    @classmethod
    def wrap(cls, err: StorageError) -> TransactionError:
        if isinstance(err, TransactionError):
            return err
        return cls(err.code, err.message)


# Primary SQLite result codes; extended codes (SQLITE_CONSTRAINT_UNIQUE, ...)
# are matched by their primary prefix.
_RESULT_CODES: dict[str, StorageErrorCode] = {
    "SQLITE_FULL": StorageErrorCode.QUOTA,
    "SQLITE_BUSY": StorageErrorCode.TIMEOUT,
    "SQLITE_LOCKED": StorageErrorCode.TIMEOUT,
    "SQLITE_TOOBIG": StorageErrorCode.TOO_LARGE,
    "SQLITE_CONSTRAINT": StorageErrorCode.CONSTRAINT,
    "SQLITE_ERROR": StorageErrorCode.SYNTAX,
    "SQLITE_RANGE": StorageErrorCode.SYNTAX,
    "SQLITE_READONLY": StorageErrorCode.SYNTAX,
}


def _primary_result_code(name: str) -> str:
    # "SQLITE_CONSTRAINT_PRIMARYKEY" -> "SQLITE_CONSTRAINT"
    parts = name.split("_")
    return "_".join(parts[:2])


def classify_sqlite_error(exc: BaseException) -> StorageErrorCode:
    """
    Map a sqlite3 exception onto the closed set of storage error codes.

    The SQLite result code (sqlite_errorname, set by the driver on errors raised
    by the library) decides. Errors raised by the driver itself carry no result
    code: those fall back to the exception class, and only then to well-known
    message prefixes.
    """
    if isinstance(exc, StorageError):
        return exc.code
    if not isinstance(exc, sqlite3.Error):
        return StorageErrorCode.UNKNOWN

    errorname = getattr(exc, "sqlite_errorname", None)
    if errorname:
        code = _RESULT_CODES.get(_primary_result_code(str(errorname)))
        return code if code is not None else StorageErrorCode.DATABASE

    if isinstance(exc, sqlite3.IntegrityError):
        return StorageErrorCode.CONSTRAINT
    if isinstance(exc, sqlite3.ProgrammingError):
        return StorageErrorCode.SYNTAX
    if isinstance(exc, sqlite3.DataError):
        return StorageErrorCode.TOO_LARGE

    text = str(exc).lower()
    if text.startswith(("near ", "no such ", "incorrect number of bindings")) or "syntax error" in text:
        return StorageErrorCode.SYNTAX
    if text.startswith(("database is locked", "database table is locked", "database is busy")):
        return StorageErrorCode.TIMEOUT
    if text.startswith("database or disk is full"):
        return StorageErrorCode.QUOTA
    if text.startswith("string or blob too big"):
        return StorageErrorCode.TOO_LARGE
    if text.startswith("attempt to write a readonly database"):
        return StorageErrorCode.SYNTAX
    if isinstance(exc, sqlite3.DatabaseError):
        return StorageErrorCode.DATABASE
    return StorageErrorCode.UNKNOWN
