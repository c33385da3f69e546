"""Error taxonomy of the storage layer.

Every public ``Store`` operation either returns its success value or raises
exactly one :class:`StoreError`. The command layer turns the raised error into
a tagged value with :meth:`StoreError.to_payload`.

:class:`ConsistencyError` is not a ``StoreError`` and has no payload form: it
is raised when an id-scoped write touched more than one row.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Dict, Optional


class ErrorKind(StrEnum):
    STORAGE_ENGINE = "storage_engine"
    TAG_NOT_FOUND = "tag_not_found"
    TASK_NOT_FOUND = "task_not_found"
    ALREADY_IN_STATUS = "already_in_status"


class StoreError(Exception):
    """Base class for errors a store operation reports to its caller."""

    kind: ErrorKind

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, **self.details}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StoreError):
            return NotImplemented
        return type(self) is type(other) and self.details == other.details

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(self.details.items()))))


class StorageEngineError(StoreError):
    """Failure reported by SQLite or SQLAlchemy (I/O, corruption, constraints)."""

    kind = ErrorKind.STORAGE_ENGINE

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Storage engine error: {cause}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StorageEngineError):
            return NotImplemented
        return self.cause is other.cause

    def __hash__(self) -> int:
        return hash((type(self), id(self.cause)))


class TagNotFoundError(StoreError):
    kind = ErrorKind.TAG_NOT_FOUND

    def __init__(self, tag_id: int) -> None:
        self.id = tag_id
        super().__init__(f"Tag {tag_id} does not exist", {"id": tag_id})


class TaskNotFoundError(StoreError):
    kind = ErrorKind.TASK_NOT_FOUND

    def __init__(self, task_id: int) -> None:
        self.id = task_id
        super().__init__(f"Task {task_id} does not exist", {"id": task_id})


class AlreadyInStatusError(StoreError):
    """Finish/unfinish requested for a task already in that status."""

    kind = ErrorKind.ALREADY_IN_STATUS

    def __init__(self, task_id: int, actual: bool) -> None:
        self.id = task_id
        self.actual = actual
        state = "done" if actual else "not done"
        super().__init__(
            f"Task {task_id} is already {state}",
            {"id": task_id, "actual": actual},
        )


class ConsistencyError(RuntimeError):
    """An id-scoped mutation affected more than one row."""


def is_transient(error: StoreError) -> bool:
    """Domain errors never go away on retry; engine errors might."""

    return isinstance(error, StorageEngineError)


__all__ = [
    "AlreadyInStatusError",
    "ConsistencyError",
    "ErrorKind",
    "StorageEngineError",
    "StoreError",
    "TagNotFoundError",
    "TaskNotFoundError",
    "is_transient",
]
