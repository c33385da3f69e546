"""SQLite store for tags and tasks."""
from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from functools import wraps
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Type, Union

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from core.errors import (
    AlreadyInStatusError,
    ConsistencyError,
    StorageEngineError,
    StoreError,
    TagNotFoundError,
    TaskNotFoundError,
)
from core.filters import Predicate
from core.log import get_logger
from core.settings import BACKUP, DB_PATH, STORAGE, BackupSettings, StorageSettings
from models.tag import EditableTagData, GeneratedTagData, Tag, TagRow, TaskTag
from models.task import (
    EditableTaskData,
    FinishedTaskData,
    GeneratedTaskData,
    ModifiedTaskData,
    Task,
    TaskRow,
)
from storage.backup import ensure_daily_backup
from storage.db import MEMORY, create_store_engine, init_schema
from utils.datetime_utils import from_epoch, to_epoch, utc_now


logger = get_logger("store")

TaskPredicate = Callable[[Task], bool]

# SQLite INTEGER is a signed 64-bit value.
SQLITE_MIN_INT = -(2**63)
SQLITE_MAX_INT = 2**63 - 1


def _storable_id(entity_id: int) -> bool:
    return SQLITE_MIN_INT <= entity_id <= SQLITE_MAX_INT


def _store_operation(method):
    """Log domain failures and surface engine failures as StorageEngineError."""

    @wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except StoreError as exc:
            logger.warning("%s rejected: %s", method.__name__, exc.message)
            raise
        except (SQLAlchemyError, OverflowError) as exc:
            logger.error("%s failed in the storage engine: %s", method.__name__, exc)
            raise StorageEngineError(exc) from exc

    return wrapper


def _expect_single_row(
    rows: int,
    what: str,
    entity_id: int,
    not_found: Type[StoreError],
) -> None:
    if rows == 0:
        raise not_found(entity_id)
    if rows != 1:
        logger.error("%s %s changed %s rows", what, entity_id, rows)
        raise ConsistencyError(f"{what} {entity_id} changed {rows} rows")


class Store:
    """Tags, tasks and their associations in one SQLite file.

    Every mutation runs in a single transaction: it either commits fully or
    leaves the file untouched. The store owns one connection and is not
    thread-safe; wrap it in :class:`SynchronizedStore` to share it.
    """

    def __init__(self, engine: Engine, path: Union[str, Path]) -> None:
        self._engine = engine
        self.path = path

    def close(self) -> None:
        self._engine.dispose()

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ---- low-level helpers ----

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        with Session(self._engine) as session:
            with session.begin():
                yield session

    @staticmethod
    def _rowcount(session: Session, statement) -> int:
        return session.exec(statement).rowcount

    @staticmethod
    def _require_tag(session: Session, tag_id: int) -> None:
        if not _storable_id(tag_id) or session.get(TagRow, tag_id) is None:
            raise TagNotFoundError(tag_id)

    @staticmethod
    def _require_task(session: Session, task_id: int) -> TaskRow:
        row = session.get(TaskRow, task_id) if _storable_id(task_id) else None
        if row is None:
            raise TaskNotFoundError(task_id)
        return row

    @staticmethod
    def _task_query():
        # One outer join resolves every task's tag in the same query.
        return (
            select(TaskRow, TaskTag.tag_id)
            .join(TaskTag, TaskTag.task_id == TaskRow.id, isouter=True)
            .order_by(TaskRow.id)
        )

    @staticmethod
    def _to_tasks(rows: Iterable[Tuple[TaskRow, Optional[int]]]) -> List[Task]:
        tasks: List[Task] = []
        seen = set()
        for row, tag_id in rows:
            if row.id in seen:
                logger.error("Task %s is linked to more than one tag", row.id)
                raise ConsistencyError(f"Task {row.id} is linked to more than one tag")
            seen.add(row.id)
            tasks.append(row.to_task(tag_id))
        return tasks

    # ---- tags ----

    @_store_operation
    def list_tags(self) -> List[Tag]:
        with self._transaction() as session:
            rows = session.exec(select(TagRow).order_by(TagRow.id)).all()
            return [row.to_tag() for row in rows]

    @_store_operation
    def create_tag(self, data: EditableTagData) -> GeneratedTagData:
        now = utc_now()
        with self._transaction() as session:
            row = TagRow(
                name=data.name,
                color=data.color.to_int(),
                active=data.active,
                create_time=to_epoch(now),
            )
            session.add(row)
            session.flush()
            tag_id = row.id
        logger.debug("Tag created id=%s", tag_id)
        return GeneratedTagData(id=tag_id, create_time=now)

    @_store_operation
    def get_tag(self, tag_id: int) -> Optional[Tag]:
        if not _storable_id(tag_id):
            return None
        with self._transaction() as session:
            row = session.get(TagRow, tag_id)
            return row.to_tag() if row else None

    @_store_operation
    def update_tag(self, tag_id: int, data: EditableTagData) -> None:
        if not _storable_id(tag_id):
            raise TagNotFoundError(tag_id)
        with self._transaction() as session:
            rows = self._rowcount(
                session,
                update(TagRow)
                .where(TagRow.id == tag_id)
                .values(name=data.name, color=data.color.to_int(), active=data.active),
            )
            _expect_single_row(rows, "Update tag", tag_id, TagNotFoundError)
        logger.debug("Tag updated id=%s", tag_id)

    @_store_operation
    def delete_tag(self, tag_id: int) -> None:
        """Delete a tag and detach it from every task that carried it."""

        if not _storable_id(tag_id):
            raise TagNotFoundError(tag_id)
        with self._transaction() as session:
            detached = self._rowcount(session, delete(TaskTag).where(TaskTag.tag_id == tag_id))
            rows = self._rowcount(session, delete(TagRow).where(TagRow.id == tag_id))
            _expect_single_row(rows, "Delete tag", tag_id, TagNotFoundError)
        logger.debug("Tag deleted id=%s detached_tasks=%s", tag_id, detached)

    # ---- tasks ----

    def _load_tasks(self) -> List[Task]:
        with self._transaction() as session:
            return self._to_tasks(session.exec(self._task_query()).all())

    @_store_operation
    def list_tasks(self) -> List[Task]:
        return self._load_tasks()

    @_store_operation
    def create_task(self, data: EditableTaskData) -> GeneratedTaskData:
        now = utc_now()
        with self._transaction() as session:
            if data.tag is not None:
                self._require_tag(session, data.tag)
            row = TaskRow.create(data, now)
            session.add(row)
            session.flush()
            task_id = row.id
            if data.tag is not None:
                session.add(TaskTag(task_id=task_id, tag_id=data.tag))
        logger.debug("Task created id=%s tag=%s", task_id, data.tag)
        return GeneratedTaskData(id=task_id, create_time=now, last_edit_time=now, done_time=None)

    @_store_operation
    def get_task(self, task_id: int) -> Optional[Task]:
        if not _storable_id(task_id):
            return None
        with self._transaction() as session:
            rows = session.exec(self._task_query().where(TaskRow.id == task_id)).all()
            tasks = self._to_tasks(rows)
            return tasks[0] if tasks else None

    @_store_operation
    def update_task(self, task_id: int, data: EditableTaskData) -> ModifiedTaskData:
        """Replace every editable field and recompute the tag link from scratch."""

        with self._transaction() as session:
            current = self._require_task(session, task_id)
            if data.tag is not None:
                self._require_tag(session, data.tag)
            edit_time = max(to_epoch(utc_now()), current.create_time)
            rows = self._rowcount(
                session,
                update(TaskRow)
                .where(TaskRow.id == task_id)
                .values(last_edit_time=edit_time, **TaskRow.editable_columns(data)),
            )
            _expect_single_row(rows, "Update task", task_id, TaskNotFoundError)
            self._rowcount(session, delete(TaskTag).where(TaskTag.task_id == task_id))
            if data.tag is not None:
                session.add(TaskTag(task_id=task_id, tag_id=data.tag))
        logger.debug("Task updated id=%s tag=%s", task_id, data.tag)
        return ModifiedTaskData(last_edit_time=from_epoch(edit_time))

    @_store_operation
    def delete_task(self, task_id: int) -> None:
        if not _storable_id(task_id):
            raise TaskNotFoundError(task_id)
        with self._transaction() as session:
            self._rowcount(session, delete(TaskTag).where(TaskTag.task_id == task_id))
            rows = self._rowcount(session, delete(TaskRow).where(TaskRow.id == task_id))
            _expect_single_row(rows, "Delete task", task_id, TaskNotFoundError)
        logger.debug("Task deleted id=%s", task_id)

    @_store_operation
    def finish_task(self, task_id: int) -> FinishedTaskData:
        return self._set_done(task_id, done=True)

    @_store_operation
    def unfinish_task(self, task_id: int) -> FinishedTaskData:
        return self._set_done(task_id, done=False)

    def _set_done(self, task_id: int, *, done: bool) -> FinishedTaskData:
        now = utc_now() if done else None
        with self._transaction() as session:
            current = self._require_task(session, task_id)
            actual = current.done_time is not None
            if actual == done:
                raise AlreadyInStatusError(task_id, actual)
            rows = self._rowcount(
                session,
                update(TaskRow).where(TaskRow.id == task_id).values(done_time=to_epoch(now)),
            )
            _expect_single_row(rows, "Set done time of task", task_id, TaskNotFoundError)
        logger.debug("Task %s id=%s", "finished" if done else "reopened", task_id)
        return FinishedTaskData(done_time=now)

    @_store_operation
    def filter_tasks(self, predicate: Union[TaskPredicate, Predicate]) -> List[Task]:
        """Tasks passing ``predicate``, in insertion order.

        ``predicate`` is a callable or anything with a ``passes(task)`` method,
        such as :class:`core.task_filter.TaskFilterOptions`.
        """

        check = getattr(predicate, "passes", predicate)
        return [task for task in self._load_tasks() if check(task)]


class SynchronizedStore:
    """Holds one lock around every public operation of a :class:`Store`."""

    OPERATIONS = frozenset(
        {
            "list_tags",
            "create_tag",
            "get_tag",
            "update_tag",
            "delete_tag",
            "list_tasks",
            "create_task",
            "get_task",
            "update_task",
            "delete_task",
            "finish_task",
            "unfinish_task",
            "filter_tasks",
            "close",
        }
    )

    def __init__(self, store: Store) -> None:
        self._store = store
        self._lock = threading.Lock()

    @property
    def path(self) -> Union[str, Path]:
        return self._store.path

    def __getattr__(self, name: str):
        attr = getattr(self._store, name)
        if name not in self.OPERATIONS:
            return attr

        @wraps(attr)
        def locked(*args, **kwargs):
            with self._lock:
                return attr(*args, **kwargs)

        return locked

    def __enter__(self) -> "SynchronizedStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def open_store(
    path: Union[str, Path, None] = None,
    *,
    settings: StorageSettings = STORAGE,
    backup: BackupSettings = BACKUP,
) -> Store:
    """Open (creating if needed) the store at ``path``, defaulting to ``DB_PATH``.

    An existing file is reused as-is; opening the same file again changes nothing.
    """

    target: Union[str, Path] = DB_PATH if path is None else path
    engine: Optional[Engine] = None
    try:
        if str(target) != MEMORY:
            target = Path(target)
            target.parent.mkdir(parents=True, exist_ok=True)
            try:
                ensure_daily_backup(target, backup)
            except OSError as exc:
                logger.warning("Backup of %s failed: %s", target, exc)
        engine = create_store_engine(target, settings)
        created = init_schema(engine)
    except (SQLAlchemyError, sqlite3.Error, OSError) as exc:
        logger.error("Could not open store db=%s: %s", target, exc)
        if engine is not None:
            engine.dispose()
        raise StorageEngineError(exc) from exc

    logger.info("Store ready db=%s created_schema=%s", target, created)
    return Store(engine, target)


__all__ = ["Store", "SynchronizedStore", "TaskPredicate", "open_store"]
