# taskkeeper/storage/db.py
from __future__ import annotations

from pathlib import Path
from typing import Union

from sqlalchemy import event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from core.settings import STORAGE, StorageSettings
from models.tag import TagRow, TaskTag
from models.task import TaskRow


MEMORY = ":memory:"

STORE_TABLES = [TagRow.__table__, TaskRow.__table__, TaskTag.__table__]


def _configure_sqlite(engine: Engine, journal_mode: str) -> None:
    # pysqlite defers BEGIN until the first write; take control of it so the
    # reads inside a unit of work (tag existence checks) share its transaction.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute(f"PRAGMA journal_mode={journal_mode}")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_store_engine(path: Union[str, Path], settings: StorageSettings = STORAGE) -> Engine:
    """Engine holding exactly one SQLite connection to ``path``."""

    url = "sqlite://" if str(path) == MEMORY else f"sqlite:///{Path(path).as_posix()}"
    engine = create_engine(
        url,
        echo=settings.echo_sql,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _configure_sqlite(engine, settings.journal_mode)
    return engine


def init_schema(engine: Engine) -> bool:
    """Create any missing store table. Returns True if something was created."""

    existing = set(inspect(engine).get_table_names())
    SQLModel.metadata.create_all(engine, tables=STORE_TABLES)
    return any(table.name not in existing for table in STORE_TABLES)


__all__ = ["MEMORY", "STORE_TABLES", "create_store_engine", "init_schema"]
