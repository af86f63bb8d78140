"""Database engine setup for SQLite with WAL mode.

SQLite is the system of record: WAL mode so the change feed can read
while stores write, foreign keys on so deleting a list cascades to its
cards. The DB is stored at ``{board_root}/.focusboard/board.db``.

SQLAlchemy Core (not ORM) is used: stores issue small row-level writes
and hand back frozen domain records, so there is nothing for an identity
map to track.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from focusboard.infrastructure.database.schema import metadata


def create_db_engine(db_path: Path, *, busy_timeout: float = 15.0) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled.

    *busy_timeout* (seconds) lets concurrent writer threads wait on the
    database lock instead of failing immediately.
    """
    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"timeout": busy_timeout, "check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def init_database(db_path: Path, *, busy_timeout: float = 15.0) -> Engine:
    """Initialize the focusboard database at *db_path*.

    Creates the parent directory and all tables from :data:`schema.metadata`.
    Idempotent — safe to call on an existing board.

    Returns the engine ready for use.
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path, busy_timeout=busy_timeout)
    metadata.create_all(engine)
    return engine
