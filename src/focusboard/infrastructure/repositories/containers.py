"""SqlContainerStore — row-level CRUD for lists, plus atomic focus toggling."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from focusboard.domain.errors import StoreError
from focusboard.domain.models import ChangeKind, Container, EntityType, utc_now
from focusboard.infrastructure.change_feed import record_change
from focusboard.infrastructure.database.schema import containers, groupings
from focusboard.infrastructure.repositories.base import SqlStore, pick_fields

if TYPE_CHECKING:
    from sqlalchemy import Connection, Row

_WRITABLE = frozenset({"title", "position"})


def row_to_container(row: Row[Any]) -> Container:
    """Convert a ``containers`` row into a Container record."""
    return Container(
        id=row.id,
        grouping_id=row.grouping_id,
        title=row.title,
        position=row.position,
        is_focused=bool(row.is_focused),
        is_catch_all=bool(row.is_catch_all),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlContainerStore(SqlStore):
    """Lists table access. Every write logs a change notification."""

    async def insert(self, container: Container) -> Container:
        return await self._run(self._insert, container)

    async def update(self, container_id: str, fields: dict[str, Any]) -> None:
        await self._run(self._update, container_id, fields)

    async def delete(self, container_id: str) -> None:
        """Delete a list. Its cards go with it (foreign-key cascade)."""
        await self._run(self._delete, container_id)

    async def delete_and_close_gap(self, container_id: str, ranks: dict[str, int]) -> None:
        """Delete a list and write its siblings' new *ranks* in one transaction.

        Either the list is gone and every rank is written, or nothing changed.
        """
        await self._run(self._delete_and_close_gap, container_id, ranks)

    async def get(self, container_id: str) -> Container | None:
        return await self._run(self._get, container_id)

    async def list_by_grouping(self, grouping_id: str) -> list[Container]:
        """Lists of a focus zone ordered by rank (ties by creation time, then ID)."""
        return await self._run(self._list_by_grouping, grouping_id)

    async def toggle_emphasis(self, container_id: str) -> Container:
        """Flip the focus flag; focusing one list unfocuses its siblings.

        Runs in a single transaction so a zone never has two focused lists.
        """
        return await self._run(self._toggle_emphasis, container_id)

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------

    def _insert(self, container: Container) -> Container:
        with self._engine.begin() as conn:
            zone = conn.execute(
                select(groupings.c.id).where(groupings.c.id == container.grouping_id)
            ).first()
            if zone is None:
                msg = f"No focus zone found with ID: {container.grouping_id}"
                raise StoreError(msg)
            values = container.model_dump()
            values["is_focused"] = int(container.is_focused)
            values["is_catch_all"] = int(container.is_catch_all)
            conn.execute(insert(containers).values(**values))
            record_change(
                conn,
                EntityType.CONTAINER,
                ChangeKind.INSERT,
                container.id,
                container.grouping_id,
                container.id,
            )
        return container

    def _update(self, container_id: str, fields: dict[str, Any]) -> None:
        values = pick_fields(fields, _WRITABLE, "list")
        with self._engine.begin() as conn:
            grouping_id = self._grouping_of(conn, container_id)
            conn.execute(
                update(containers)
                .where(containers.c.id == container_id)
                .values(**values, updated_at=utc_now())
            )
            record_change(
                conn,
                EntityType.CONTAINER,
                ChangeKind.UPDATE,
                container_id,
                grouping_id,
                container_id,
            )

    def _delete(self, container_id: str) -> None:
        with self._engine.begin() as conn:
            grouping_id = self._grouping_of(conn, container_id)
            conn.execute(delete(containers).where(containers.c.id == container_id))
            record_change(
                conn,
                EntityType.CONTAINER,
                ChangeKind.DELETE,
                container_id,
                grouping_id,
                container_id,
            )

    def _delete_and_close_gap(self, container_id: str, ranks: dict[str, int]) -> None:
        now = utc_now()
        with self._engine.begin() as conn:
            grouping_id = self._grouping_of(conn, container_id)
            conn.execute(delete(containers).where(containers.c.id == container_id))
            record_change(
                conn,
                EntityType.CONTAINER,
                ChangeKind.DELETE,
                container_id,
                grouping_id,
                container_id,
            )
            for cid, position in ranks.items():
                if self._grouping_of(conn, cid) != grouping_id:
                    msg = f"List {cid} is not in focus zone {grouping_id}"
                    raise StoreError(msg)
                conn.execute(
                    update(containers)
                    .where(containers.c.id == cid)
                    .values(position=position, updated_at=now)
                )
                record_change(
                    conn, EntityType.CONTAINER, ChangeKind.UPDATE, cid, grouping_id, cid
                )

    def _get(self, container_id: str) -> Container | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(containers).where(containers.c.id == container_id)).first()
        return row_to_container(row) if row is not None else None

    def _list_by_grouping(self, grouping_id: str) -> list[Container]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(containers)
                .where(containers.c.grouping_id == grouping_id)
                .order_by(containers.c.position, containers.c.created_at, containers.c.id)
            ).fetchall()
        return [row_to_container(row) for row in rows]

    def _toggle_emphasis(self, container_id: str) -> Container:
        now = utc_now()
        with self._engine.begin() as conn:
            row = conn.execute(select(containers).where(containers.c.id == container_id)).first()
            if row is None:
                msg = f"No list found with ID: {container_id}"
                raise StoreError(msg)

            changed: list[str] = [container_id]
            if not row.is_focused:
                focused = conn.execute(
                    select(containers.c.id).where(
                        containers.c.grouping_id == row.grouping_id,
                        containers.c.is_focused == 1,
                    )
                ).fetchall()
                changed.extend(str(r.id) for r in focused)
                conn.execute(
                    update(containers)
                    .where(containers.c.grouping_id == row.grouping_id)
                    .where(containers.c.is_focused == 1)
                    .values(is_focused=0, updated_at=now)
                )
            conn.execute(
                update(containers)
                .where(containers.c.id == container_id)
                .values(is_focused=0 if row.is_focused else 1, updated_at=now)
            )
            for cid in changed:
                record_change(
                    conn, EntityType.CONTAINER, ChangeKind.UPDATE, cid, row.grouping_id, cid
                )
            updated = conn.execute(
                select(containers).where(containers.c.id == container_id)
            ).one()
        return row_to_container(updated)

    @staticmethod
    def _grouping_of(conn: Connection, container_id: str) -> str:
        grouping_id = conn.execute(
            select(containers.c.grouping_id).where(containers.c.id == container_id)
        ).scalar()
        if grouping_id is None:
            msg = f"No list found with ID: {container_id}"
            raise StoreError(msg)
        return str(grouping_id)
