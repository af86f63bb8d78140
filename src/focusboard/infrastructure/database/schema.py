"""SQLAlchemy Core table definitions for the focusboard database.

Positions are *not* unique per container: a batch renumbers
rows one at a time, so intermediate states hold duplicates. Density is
the reconciler's job and is audited by the check service.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()

groupings = Table(
    "groupings",
    metadata,
    Column("id", Text, primary_key=True),
    Column("title", Text, nullable=False),
    Column("description", Text),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

containers = Table(
    "containers",
    metadata,
    Column("id", Text, primary_key=True),
    Column(
        "grouping_id",
        Text,
        ForeignKey("groupings.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("title", Text, nullable=False),
    Column("position", Integer, nullable=False, default=0, server_default="0"),
    Column("is_focused", Integer, nullable=False, default=0, server_default="0"),
    Column("is_catch_all", Integer, nullable=False, default=0, server_default="0"),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

items = Table(
    "items",
    metadata,
    Column("id", Text, primary_key=True),
    Column(
        "container_id",
        Text,
        ForeignKey("containers.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("title", Text, nullable=False),
    Column("description", Text),
    Column("position", Integer, nullable=False, default=0, server_default="0"),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

# Row-level change notifications, appended in the same transaction as the write.
change_log = Table(
    "change_log",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("entity_type", Text, nullable=False),
    Column("change_kind", Text, nullable=False),
    Column("entity_id", Text, nullable=False),
    Column("grouping_id", Text, nullable=False),
    Column("container_id", Text),
    Column("created", Text, nullable=False),
)

event_wal = Table(
    "event_wal",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("hook_name", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)

# ---------------------------------------------------------------------------
# Indexes
# ---------------------------------------------------------------------------

Index("ix_containers_grouping", containers.c.grouping_id, containers.c.position)
Index("ix_items_container", items.c.container_id, items.c.position)
Index("ix_change_log_grouping", change_log.c.grouping_id, change_log.c.id)

# At most one focused and one catch-all container per grouping.
Index(
    "uq_containers_focused",
    containers.c.grouping_id,
    unique=True,
    sqlite_where=containers.c.is_focused == 1,
)
Index(
    "uq_containers_catch_all",
    containers.c.grouping_id,
    unique=True,
    sqlite_where=containers.c.is_catch_all == 1,
)
