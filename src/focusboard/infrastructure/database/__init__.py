"""SQLite database engine and schema via SQLAlchemy Core."""

from focusboard.infrastructure.database.engine import create_db_engine, init_database
from focusboard.infrastructure.database.schema import (
    change_log,
    containers,
    event_wal,
    groupings,
    items,
    metadata,
)

__all__ = [
    "change_log",
    "containers",
    "create_db_engine",
    "event_wal",
    "groupings",
    "init_database",
    "items",
    "metadata",
]
