"""FeedSync — keeps the board index in step with the change feed.

Each change notification is treated as "refetch this": an item event
reloads the affected list, a list or zone event reloads the zone's lists.
The refetch overwrites the index (last writer wins). When it disagrees
with a batch the reconciler still has in flight, a :class:`StaleRead` is
logged; the index converges once that batch's own notifications arrive.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import asdict
from typing import TYPE_CHECKING

import structlog

from focusboard.domain.errors import StaleRead
from focusboard.domain.models import EntityType
from focusboard.services.result import ServiceResult

if TYPE_CHECKING:
    from focusboard.domain.models import ChangeEvent, Item
    from focusboard.infrastructure.board import Board
    from focusboard.infrastructure.change_feed import SqlChangeFeed, Subscription

log = structlog.get_logger(__name__)

# Most recent refetches and stale reads kept between two catch-ups.
HISTORY_LIMIT = 1000


class FeedSync:
    """Apply change-feed events for one or more focus zones to the board index."""

    def __init__(self, board: Board, feed: SqlChangeFeed | None = None) -> None:
        self._board = board
        self._feed = feed if feed is not None else board.feed
        self._subscriptions: dict[str, Subscription] = {}
        self.refetched: deque[str] = deque(maxlen=HISTORY_LIMIT)
        self.stale_reads: deque[StaleRead] = deque(maxlen=HISTORY_LIMIT)

    def attach(self, zone_id: str) -> Subscription:
        """Subscribe to *zone_id*. Attaching twice returns the same subscription."""
        sub = self._subscriptions.get(zone_id)
        if sub is None or not sub.active:
            sub = self._feed.subscribe(zone_id, self._on_event)
            self._subscriptions[zone_id] = sub
        return sub

    def detach(self, zone_id: str) -> None:
        sub = self._subscriptions.pop(zone_id, None)
        if sub is not None:
            sub.unsubscribe()

    async def run(self, stop: asyncio.Event) -> None:
        """Poll the feed until *stop* is set."""
        await self._feed.run(stop, interval=self._board.settings.feed.poll_interval)

    async def catch_up(self) -> ServiceResult:
        """Poll until the feed is drained and summarize what was applied.

        The summary covers everything since the previous catch-up; the
        refetch and stale-read history is cleared afterwards.
        """
        events = 0
        while read := await self._feed.poll():
            events += read
        result = ServiceResult(
            ok=True,
            op="watch",
            data={
                "zone_ids": sorted(self._subscriptions),
                "events": events,
                "cursor": self._feed.cursor,
                "refetched": list(self.refetched),
                "stale_reads": [asdict(s) for s in self.stale_reads],
            },
        )
        self.refetched.clear()
        self.stale_reads.clear()
        return result

    async def handle(self, event: ChangeEvent) -> list[StaleRead]:
        """Refetch whatever *event* points at and replace it in the index."""
        index = self._board.index
        if event.entity_type == EntityType.ITEM and event.container_id is not None:
            cards = await self._board.items.list_by_container(event.container_id)
            stale = self._detect(event.container_id, cards)
            index.replace_container(event.container_id, cards)
            self.refetched.append(event.container_id)
        else:
            lists = await self._board.containers.list_by_grouping(event.grouping_id)
            stale = []
            index.replace_grouping(event.grouping_id, lists)
            self.refetched.append(event.grouping_id)

        for record in stale:
            log.info(
                "feed.stale_read",
                seq=event.seq,
                item_id=record.item_id,
                container_id=record.container_id,
                expected=record.expected,
                observed=record.observed,
            )
        self.stale_reads.extend(stale)
        return stale

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _on_event(self, event: ChangeEvent) -> None:
        await self.handle(event)

    def _detect(self, container_id: str, fetched: list[Item]) -> list[StaleRead]:
        """Compare a refetched list against in-flight optimistic state."""
        in_flight = self._board.reconciler.in_flight()
        if not in_flight:
            return []

        index = self._board.index
        by_id = {card.id: card for card in fetched}
        stale: list[StaleRead] = []
        for item_id in in_flight:
            expected = index.get(item_id)
            observed = by_id.get(item_id)
            if expected is None:
                # Pending delete still present in the store.
                if observed is not None:
                    stale.append(StaleRead(item_id, container_id, {}, _shape(observed)))
                continue
            if expected.container_id == container_id:
                if observed is None or _shape(observed) != _shape(expected):
                    stale.append(
                        StaleRead(
                            item_id,
                            container_id,
                            _shape(expected),
                            _shape(observed) if observed is not None else None,
                        )
                    )
            elif observed is not None:
                stale.append(StaleRead(item_id, container_id, _shape(expected), _shape(observed)))
        return stale


def _shape(card: Item) -> dict[str, object]:
    return {"container_id": card.container_id, "position": card.position}
