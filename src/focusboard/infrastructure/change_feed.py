"""Polling change feed over the ``change_log`` table.

Every store write appends one ``change_log`` row per affected container
inside the write's own transaction, so a notification exists if and only
if the write committed. :class:`SqlChangeFeed` tails that table and hands
each new row to the subscribers of its focus zone.

Delivery is at-least-once from the cursor onward. Handlers are expected
to treat every event as "refetch this container", which makes repeats
harmless.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from sqlalchemy import func, insert, select

from focusboard.domain.models import ChangeEvent, ChangeKind, EntityType, utc_now
from focusboard.infrastructure.database.schema import change_log

if TYPE_CHECKING:
    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[ChangeEvent], Awaitable[None]]


def record_change(
    conn: Connection,
    entity_type: EntityType,
    change_kind: ChangeKind,
    entity_id: str,
    grouping_id: str,
    container_id: str | None = None,
) -> None:
    """Append a change notification within the caller's transaction."""
    conn.execute(
        insert(change_log).values(
            entity_type=str(entity_type),
            change_kind=str(change_kind),
            entity_id=entity_id,
            grouping_id=grouping_id,
            container_id=container_id,
            created=utc_now(),
        )
    )


class Subscription:
    """Handle returned by :meth:`SqlChangeFeed.subscribe`."""

    def __init__(self, feed: SqlChangeFeed, grouping_id: str, handler: ChangeHandler) -> None:
        self._feed = feed
        self.grouping_id = grouping_id
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        """Stop receiving events. Idempotent."""
        if self.active:
            self.active = False
            self._feed._remove(self)


class SqlChangeFeed:
    """Tail ``change_log`` and fan events out to per-zone subscribers.

    Parameters:
        engine: SQLAlchemy engine with the ``change_log`` table.
        batch_size: Maximum rows read per poll.
        from_start: Replay the whole log instead of starting at its tail.
    """

    def __init__(self, engine: Engine, *, batch_size: int = 200, from_start: bool = False) -> None:
        self._engine = engine
        self._batch_size = batch_size
        self._subscriptions: list[Subscription] = []
        self._cursor = 0 if from_start else self.latest_seq()

    @property
    def cursor(self) -> int:
        """Sequence number of the last row delivered."""
        return self._cursor

    def latest_seq(self) -> int:
        """Highest sequence number currently in the log (0 when empty)."""
        with self._engine.connect() as conn:
            return int(conn.execute(select(func.max(change_log.c.id))).scalar() or 0)

    def subscribe(self, grouping_id: str, handler: ChangeHandler) -> Subscription:
        """Register *handler* for changes within *grouping_id*."""
        sub = Subscription(self, grouping_id, handler)
        self._subscriptions.append(sub)
        logger.debug("Subscribed to change feed for %s", grouping_id)
        return sub

    async def poll(self) -> int:
        """Deliver every row past the cursor. Returns the number of events read.

        A failing handler is logged and skipped; it never stalls the feed.
        """
        events = await asyncio.to_thread(self._fetch, self._cursor)
        for event in events:
            self._cursor = event.seq
            for sub in list(self._subscriptions):
                if not sub.active or sub.grouping_id != event.grouping_id:
                    continue
                try:
                    await sub.handler(event)
                except Exception:
                    logger.warning(
                        "Change handler failed for event %s", event.seq, exc_info=True
                    )
        return len(events)

    async def run(self, stop: asyncio.Event, *, interval: float = 1.0) -> None:
        """Poll every *interval* seconds until *stop* is set."""
        while not stop.is_set():
            await self.poll()
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except TimeoutError:
                continue

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _fetch(self, after: int) -> list[ChangeEvent]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(change_log)
                .where(change_log.c.id > after)
                .order_by(change_log.c.id)
                .limit(self._batch_size)
            ).fetchall()
        return [
            ChangeEvent(
                seq=row.id,
                entity_type=EntityType(row.entity_type),
                change_kind=ChangeKind(row.change_kind),
                entity_id=row.entity_id,
                grouping_id=row.grouping_id,
                container_id=row.container_id,
            )
            for row in rows
        ]

    def _remove(self, sub: Subscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)
