"""MoveReconciler — turns a card move, insert or removal into one write batch.

Pipeline: VALIDATE → SEQUENCE → OPTIMISTIC → WRITE → (COMPENSATE → ROLLBACK)

1. Preconditions are checked against the ContainerIndex. Violations raise
   :class:`InvalidMoveError` before anything changes.
2. The sequencer computes the new position of every displaced sibling.
3. The index is patched synchronously, before the first ``await``.
4. All row writes of the batch are issued concurrently.
5. If any write is rejected, writes that did land are reverted in the
   store, the index is restored from the pre-batch snapshot, and
   :class:`PersistenceWriteError` is raised.

Every batch carries a sequence number, and the reconciler remembers the
newest batch that touched each card. Compensation and rollback only
apply to cards whose newest batch is still the failed one; a card that a
later move has already claimed keeps the later move's state.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

import structlog

from focusboard.domain.errors import InvalidMoveError, PersistenceWriteError
from focusboard.domain.sequencer import (
    append_position,
    clamp_index,
    index_of,
    insert_at,
    remove_at,
    reorder_within_container,
)

if TYPE_CHECKING:
    from focusboard.domain.index import ContainerIndex, IndexSnapshot
    from focusboard.domain.models import Item
    from focusboard.services.contracts import ItemStore

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BatchOutcome:
    """Result of a persisted (or no-op) batch.

    Attributes:
        seq: Batch sequence number; 0 for a no-op that issued no writes.
        op: ``"move"``, ``"insert"`` or ``"remove"``.
        item_id: The card the batch was about.
        updates: Fields written per card (``None`` for a deleted card).
    """

    seq: int
    op: str
    item_id: str
    updates: dict[str, dict[str, Any] | None] = field(default_factory=dict)

    @property
    def renumbered(self) -> list[str]:
        """Sibling cards whose position changed as a side effect."""
        return [iid for iid in self.updates if iid != self.item_id]

    @property
    def noop(self) -> bool:
        return not self.updates


@dataclass(frozen=True)
class _Write:
    item_id: str
    action: Literal["insert", "update", "delete"]
    fields: dict[str, Any] = field(default_factory=dict)
    item: Item | None = None


class MoveReconciler:
    """Apply ordering changes to the index and the item store as atomic batches."""

    def __init__(self, index: ContainerIndex, store: ItemStore) -> None:
        self._index = index
        self._store = store
        self._seq = itertools.count(1)
        self._latest: dict[str, int] = {}

    @property
    def index(self) -> ContainerIndex:
        return self._index

    def in_flight(self) -> dict[str, int]:
        """Cards with unresolved batches, mapped to their newest batch number."""
        return dict(self._latest)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def move(
        self,
        item_id: str,
        from_container_id: str,
        to_container_id: str,
        target_index: int,
    ) -> BatchOutcome:
        """Move a card to *target_index* of *to_container_id*.

        Raises:
            InvalidMoveError: Unknown card or list, card not in the source
                list, or a negative index. No writes are issued.
            PersistenceWriteError: The store rejected part of the batch.
        """
        item = self._index.get(item_id)
        if item is None:
            msg = f"No card found with ID: {item_id}"
            raise InvalidMoveError(msg)
        if item.container_id != from_container_id:
            msg = f"Card {item_id} is in list {item.container_id}, not {from_container_id}"
            raise InvalidMoveError(msg)
        if self._index.get_container(to_container_id) is None:
            msg = f"No list found with ID: {to_container_id}"
            raise InvalidMoveError(msg)

        updates: dict[str, dict[str, Any]] = {}
        if from_container_id == to_container_id:
            siblings = self._index.items_of(from_container_id)
            old_index = index_of(siblings, item_id)
            mapping = reorder_within_container(siblings, old_index, target_index, item_id=item_id)
            updates = {iid: {"position": pos} for iid, pos in mapping.items()}
        else:
            source = [s for s in self._index.items_of(from_container_id) if s.id != item_id]
            dest = self._index.items_of(to_container_id)
            target = clamp_index(target_index, len(dest))
            for iid, pos in remove_at(source, item.position).items():
                updates[iid] = {"position": pos}
            for iid, pos in insert_at(dest, target, item_id=item_id).items():
                updates[iid] = {"position": pos}
            updates[item_id] = {"container_id": to_container_id, "position": target}

        if not updates:
            return BatchOutcome(seq=0, op="move", item_id=item_id)

        writes = [_Write(iid, "update", fields) for iid, fields in updates.items()]
        return await self._commit("move", item_id, writes)

    async def insert(self, item: Item, target_index: int | None = None) -> BatchOutcome:
        """Add a new card, appended or at a clamped *target_index*.

        The card's own ``position`` is ignored and recomputed.
        """
        if self._index.get_container(item.container_id) is None:
            msg = f"No list found with ID: {item.container_id}"
            raise InvalidMoveError(msg)
        if self._index.get(item.id) is not None:
            msg = f"Card already exists: {item.id}"
            raise InvalidMoveError(msg)

        siblings = self._index.items_of(item.container_id)
        if target_index is None:
            position = append_position(len(siblings))
            mapping: dict[str, int] = {}
        else:
            position = clamp_index(target_index, len(siblings))
            mapping = insert_at(siblings, position)

        new_item = item.model_copy(update={"position": position})
        writes = [_Write(new_item.id, "insert", item=new_item)]
        writes.extend(_Write(iid, "update", {"position": pos}) for iid, pos in mapping.items())
        return await self._commit("insert", new_item.id, writes)

    async def remove(self, item_id: str) -> BatchOutcome:
        """Delete a card and close the gap it leaves."""
        item = self._index.get(item_id)
        if item is None:
            msg = f"No card found with ID: {item_id}"
            raise InvalidMoveError(msg)

        siblings = [s for s in self._index.items_of(item.container_id) if s.id != item_id]
        writes = [_Write(item_id, "delete")]
        writes.extend(
            _Write(iid, "update", {"position": pos})
            for iid, pos in remove_at(siblings, item.position).items()
        )
        return await self._commit("remove", item_id, writes)

    # ------------------------------------------------------------------
    # Batch protocol
    # ------------------------------------------------------------------

    async def _commit(self, op: str, item_id: str, writes: list[_Write]) -> BatchOutcome:
        seq = next(self._seq)
        touched = [w.item_id for w in writes]
        snapshot = self._index.snapshot(touched)
        for iid in touched:
            self._latest[iid] = seq
        self._apply_optimistic(writes)
        log.debug("batch.start", op=op, seq=seq, item_id=item_id, writes=len(writes))

        try:
            results = await asyncio.gather(
                *(self._issue(w) for w in writes), return_exceptions=True
            )
            errors = {
                w.item_id: r for w, r in zip(writes, results, strict=True) if isinstance(r, BaseException)
            }
            if errors:
                landed = [w for w in writes if w.item_id not in errors]
                await self._fail(op, seq, item_id, errors, landed, snapshot)

            log.debug("batch.persisted", op=op, seq=seq, item_id=item_id)
            return BatchOutcome(
                seq=seq,
                op=op,
                item_id=item_id,
                updates={w.item_id: (None if w.action == "delete" else self._written(w)) for w in writes},
            )
        finally:
            for iid in touched:
                if self._latest.get(iid) == seq:
                    del self._latest[iid]

    async def _fail(
        self,
        op: str,
        seq: int,
        item_id: str,
        errors: dict[str, BaseException],
        landed: list[_Write],
        snapshot: IndexSnapshot,
    ) -> None:
        """Revert landed writes, roll back the index, and raise."""
        to_revert = [w for w in landed if self._latest.get(w.item_id) == seq]
        outcomes = await asyncio.gather(
            *(self._compensate(w, snapshot.items.get(w.item_id)) for w in to_revert),
            return_exceptions=True,
        )
        for w, outcome in zip(to_revert, outcomes, strict=True):
            if isinstance(outcome, BaseException):
                log.error(
                    "batch.compensation_failed",
                    op=op,
                    seq=seq,
                    item_id=w.item_id,
                    error=str(outcome),
                )

        # Decide after the last await: no newer batch can slip in before restore().
        restored = [iid for iid in snapshot.item_ids if self._latest.get(iid) == seq]
        skipped = [iid for iid in snapshot.item_ids if iid not in restored]
        self._index.restore(snapshot, only=restored)

        log.warning(
            "batch.rolled_back",
            op=op,
            seq=seq,
            item_id=item_id,
            failed=sorted(errors),
            restored=len(restored),
            skipped=skipped,
        )
        first = next(iter(errors.values()))
        msg = f"{op.capitalize()} of card {item_id} not saved, please retry ({first})"
        raise PersistenceWriteError(
            msg,
            batch_seq=seq,
            failed_ids=sorted(errors),
            restored_ids=restored,
            skipped_ids=skipped,
        ) from first

    def _apply_optimistic(self, writes: list[_Write]) -> None:
        delta: dict[str, dict[str, Any] | None] = {}
        for w in writes:
            if w.action == "insert":
                assert w.item is not None
                self._index.upsert(w.item)
            elif w.action == "delete":
                delta[w.item_id] = None
            else:
                delta[w.item_id] = w.fields
        self._index.apply_delta(delta)

    async def _issue(self, w: _Write) -> None:
        if w.action == "insert":
            assert w.item is not None
            await self._store.insert(w.item)
        elif w.action == "delete":
            await self._store.delete(w.item_id)
        else:
            await self._store.update(w.item_id, w.fields)

    async def _compensate(self, w: _Write, before: Item | None) -> None:
        if w.action == "insert":
            await self._store.delete(w.item_id)
        elif w.action == "delete":
            if before is not None:
                await self._store.insert(before)
        elif before is not None:
            await self._store.update(w.item_id, {k: getattr(before, k) for k in w.fields})

    @staticmethod
    def _written(w: _Write) -> dict[str, Any]:
        if w.item is not None:
            return {"container_id": w.item.container_id, "position": w.item.position}
        return dict(w.fields)
