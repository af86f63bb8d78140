"""SqlItemStore — row-level CRUD for cards."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from focusboard.domain.errors import StoreError
from focusboard.domain.models import ChangeKind, EntityType, Item, utc_now
from focusboard.infrastructure.change_feed import record_change
from focusboard.infrastructure.database.schema import containers, items
from focusboard.infrastructure.repositories.base import SqlStore, pick_fields

if TYPE_CHECKING:
    from sqlalchemy import Connection, Row

_WRITABLE = frozenset({"container_id", "position", "title", "description"})


def row_to_item(row: Row[Any]) -> Item:
    """Convert an ``items`` row into an Item record."""
    return Item(
        id=row.id,
        container_id=row.container_id,
        title=row.title,
        description=row.description,
        position=row.position,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _grouping_of(conn: Connection, container_id: str) -> str:
    grouping_id = conn.execute(
        select(containers.c.grouping_id).where(containers.c.id == container_id)
    ).scalar()
    if grouping_id is None:
        msg = f"No list found with ID: {container_id}"
        raise StoreError(msg)
    return str(grouping_id)


class SqlItemStore(SqlStore):
    """Cards table access. Every write logs a change notification."""

    async def insert(self, item: Item) -> Item:
        return await self._run(self._insert, item)

    async def update(self, item_id: str, fields: dict[str, Any]) -> None:
        await self._run(self._update, item_id, fields)

    async def delete(self, item_id: str) -> None:
        await self._run(self._delete, item_id)

    async def get(self, item_id: str) -> Item | None:
        return await self._run(self._get, item_id)

    async def list_by_container(self, container_id: str) -> list[Item]:
        """Cards of a list ordered by position (ties by creation time, then ID)."""
        return await self._run(self._list_by_container, container_id)

    async def list_by_grouping(self, grouping_id: str) -> list[Item]:
        """Every card in a focus zone, ordered by list then position."""
        return await self._run(self._list_by_grouping, grouping_id)

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------

    def _insert(self, item: Item) -> Item:
        with self._engine.begin() as conn:
            grouping_id = _grouping_of(conn, item.container_id)
            conn.execute(insert(items).values(**item.model_dump()))
            record_change(
                conn,
                EntityType.ITEM,
                ChangeKind.INSERT,
                item.id,
                grouping_id,
                item.container_id,
            )
        return item

    def _update(self, item_id: str, fields: dict[str, Any]) -> None:
        values = pick_fields(fields, _WRITABLE, "card")
        with self._engine.begin() as conn:
            current = conn.execute(
                select(items.c.container_id).where(items.c.id == item_id)
            ).scalar()
            if current is None:
                msg = f"No card found with ID: {item_id}"
                raise StoreError(msg)

            affected = [str(current)]
            new_container = values.get("container_id")
            if new_container is not None and new_container != current:
                affected.append(str(new_container))
            groupings = {cid: _grouping_of(conn, cid) for cid in affected}

            conn.execute(
                update(items).where(items.c.id == item_id).values(**values, updated_at=utc_now())
            )
            for cid in affected:
                record_change(conn, EntityType.ITEM, ChangeKind.UPDATE, item_id, groupings[cid], cid)

    def _delete(self, item_id: str) -> None:
        with self._engine.begin() as conn:
            current = conn.execute(
                select(items.c.container_id).where(items.c.id == item_id)
            ).scalar()
            if current is None:
                msg = f"No card found with ID: {item_id}"
                raise StoreError(msg)
            grouping_id = _grouping_of(conn, str(current))
            conn.execute(delete(items).where(items.c.id == item_id))
            record_change(conn, EntityType.ITEM, ChangeKind.DELETE, item_id, grouping_id, current)

    def _get(self, item_id: str) -> Item | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(items).where(items.c.id == item_id)).first()
        return row_to_item(row) if row is not None else None

    def _list_by_container(self, container_id: str) -> list[Item]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(items)
                .where(items.c.container_id == container_id)
                .order_by(items.c.position, items.c.created_at, items.c.id)
            ).fetchall()
        return [row_to_item(row) for row in rows]

    def _list_by_grouping(self, grouping_id: str) -> list[Item]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(items)
                .join(containers, containers.c.id == items.c.container_id)
                .where(containers.c.grouping_id == grouping_id)
                .order_by(items.c.container_id, items.c.position, items.c.created_at, items.c.id)
            ).fetchall()
        return [row_to_item(row) for row in rows]
