"""ContainerIndex — the in-memory read model of the board.

Maps each container to its ordered items and each focus zone to its
ordered containers. The move reconciler patches it optimistically; the
change feed overwrites it with whatever the store last reported (last
writer wins). The index never talks to a store itself.

Ordering is ``(position, observed)`` where *observed* is the order in
which the index first saw a record. Duplicate positions — possible while
notifications race — therefore still sort deterministically.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from focusboard.domain.models import Container, Item


@dataclass(frozen=True)
class IndexSnapshot:
    """Pre-batch state of a set of items. ``None`` marks an item that did not exist."""

    items: dict[str, Item | None] = field(default_factory=dict)

    @property
    def item_ids(self) -> list[str]:
        return list(self.items)


class ContainerIndex:
    """Queryable, ordered view of containers and their items."""

    def __init__(self) -> None:
        self._items: dict[str, Item] = {}
        self._containers: dict[str, Container] = {}
        self._observed: dict[str, int] = {}
        self._counter = itertools.count()

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    def get(self, item_id: str) -> Item | None:
        """Return the indexed item, or None."""
        return self._items.get(item_id)

    def upsert(self, item: Item) -> None:
        """Insert or overwrite a single item."""
        self._observe(item.id)
        self._items[item.id] = item

    def items_of(self, container_id: str) -> list[Item]:
        """Items of *container_id*, sorted by position then first-observed order."""
        members = [item for item in self._items.values() if item.container_id == container_id]
        return sorted(members, key=lambda item: (item.position, self._observed[item.id]))

    def apply_delta(self, delta: Mapping[str, Mapping[str, Any] | None]) -> None:
        """Merge partial updates into indexed items.

        ``{item_id: {field: value}}`` updates fields; ``{item_id: None}``
        drops the item. Every ID is checked before anything is changed.

        Raises:
            KeyError: If a non-removal entry names an item the index does not hold.
        """
        unknown = [
            item_id
            for item_id, fields in delta.items()
            if fields is not None and item_id not in self._items
        ]
        if unknown:
            msg = f"Unknown item(s) in delta: {', '.join(sorted(unknown))}"
            raise KeyError(msg)

        for item_id, fields in delta.items():
            if fields is None:
                self._items.pop(item_id, None)
                self._forget(item_id)
                continue
            self._items[item_id] = self._items[item_id].model_copy(update=dict(fields))

    def replace_container(self, container_id: str, items: Iterable[Item]) -> None:
        """Replace everything the index holds for *container_id* with *items*.

        Items that stay keep their observed order.
        """
        incoming = list(items)
        staying = {item.id for item in incoming}
        for item_id in [i.id for i in self._items.values() if i.container_id == container_id]:
            del self._items[item_id]
            if item_id not in staying:
                self._forget(item_id)
        for item in incoming:
            self.upsert(item)

    def snapshot(self, item_ids: Iterable[str]) -> IndexSnapshot:
        """Capture the current state of *item_ids* for a later :meth:`restore`."""
        return IndexSnapshot(items={item_id: self._items.get(item_id) for item_id in item_ids})

    def restore(self, snapshot: IndexSnapshot, *, only: Iterable[str] | None = None) -> None:
        """Put items back to their snapshotted state.

        When *only* is given, restore just that subset of the snapshot.
        """
        wanted = set(snapshot.items) if only is None else set(only) & set(snapshot.items)
        for item_id in wanted:
            item = snapshot.items[item_id]
            if item is None:
                self._items.pop(item_id, None)
                self._forget(item_id)
            else:
                self.upsert(item)

    def item_count(self, container_id: str) -> int:
        return sum(1 for item in self._items.values() if item.container_id == container_id)

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------

    def get_container(self, container_id: str) -> Container | None:
        return self._containers.get(container_id)

    def add_container(self, container: Container) -> None:
        """Insert or overwrite a container record."""
        self._observe(container.id)
        self._containers[container.id] = container

    def containers_of(self, grouping_id: str) -> list[Container]:
        """Containers of *grouping_id* sorted by rank then first-observed order."""
        members = [c for c in self._containers.values() if c.grouping_id == grouping_id]
        return sorted(members, key=lambda c: (c.position, self._observed[c.id]))

    def container_ids(self) -> list[str]:
        return list(self._containers)

    def remove_container(self, container_id: str) -> None:
        """Drop a container and every item it owns."""
        self._containers.pop(container_id, None)
        self._forget(container_id)
        self.replace_container(container_id, [])

    def apply_container_delta(self, delta: Mapping[str, Mapping[str, Any]]) -> None:
        """Merge partial updates into indexed containers.

        Raises:
            KeyError: If *delta* names a container the index does not hold.
        """
        unknown = [cid for cid in delta if cid not in self._containers]
        if unknown:
            msg = f"Unknown container(s) in delta: {', '.join(sorted(unknown))}"
            raise KeyError(msg)
        for cid, fields in delta.items():
            self._containers[cid] = self._containers[cid].model_copy(update=dict(fields))

    def replace_grouping(self, grouping_id: str, containers: Iterable[Container]) -> None:
        """Replace the containers of *grouping_id*.

        Containers that disappear take their items with them.
        """
        incoming = {c.id: c for c in containers}
        for container in self.containers_of(grouping_id):
            if container.id not in incoming:
                self.remove_container(container.id)
        for container in incoming.values():
            self.add_container(container)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _observe(self, record_id: str) -> None:
        if record_id not in self._observed:
            self._observed[record_id] = next(self._counter)

    def _forget(self, record_id: str) -> None:
        if record_id not in self._items and record_id not in self._containers:
            self._observed.pop(record_id, None)
