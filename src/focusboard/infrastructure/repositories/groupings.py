"""SqlGroupingStore — focus zones."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select

from focusboard.domain.errors import StoreError
from focusboard.domain.models import ChangeKind, EntityType, Grouping
from focusboard.infrastructure.change_feed import record_change
from focusboard.infrastructure.database.schema import groupings
from focusboard.infrastructure.repositories.base import SqlStore

if TYPE_CHECKING:
    from sqlalchemy import Row


def row_to_grouping(row: Row[Any]) -> Grouping:
    return Grouping(
        id=row.id,
        title=row.title,
        description=row.description,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlGroupingStore(SqlStore):
    """Focus zones table access."""

    async def insert(self, grouping: Grouping) -> Grouping:
        return await self._run(self._insert, grouping)

    async def get(self, grouping_id: str) -> Grouping | None:
        return await self._run(self._get, grouping_id)

    async def list_all(self) -> list[Grouping]:
        return await self._run(self._list_all)

    async def delete(self, grouping_id: str) -> None:
        """Delete a focus zone with all of its lists and cards."""
        await self._run(self._delete, grouping_id)

    def _insert(self, grouping: Grouping) -> Grouping:
        with self._engine.begin() as conn:
            conn.execute(insert(groupings).values(**grouping.model_dump()))
            record_change(conn, EntityType.GROUPING, ChangeKind.INSERT, grouping.id, grouping.id)
        return grouping

    def _get(self, grouping_id: str) -> Grouping | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(groupings).where(groupings.c.id == grouping_id)).first()
        return row_to_grouping(row) if row is not None else None

    def _list_all(self) -> list[Grouping]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(groupings).order_by(groupings.c.created_at, groupings.c.id)
            ).fetchall()
        return [row_to_grouping(row) for row in rows]

    def _delete(self, grouping_id: str) -> None:
        with self._engine.begin() as conn:
            result = conn.execute(delete(groupings).where(groupings.c.id == grouping_id))
            if result.rowcount == 0:
                msg = f"No focus zone found with ID: {grouping_id}"
                raise StoreError(msg)
            record_change(conn, EntityType.GROUPING, ChangeKind.DELETE, grouping_id, grouping_id)
