"""BoardService — focus zones, lists, and cards.

Card ordering always goes through the :class:`MoveReconciler`; list
ranking uses the same sequencer rules directly. Every public method
loads the affected focus zone into the board index on first touch.

Pipeline: VALIDATE → SEQUENCE → PERSIST → INDEX → NOTIFY → RESPOND
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from focusboard.domain.errors import (
    InvalidMoveError,
    PersistenceWriteError,
    StoreError,
)
from focusboard.domain.models import Container, Grouping, Item
from focusboard.domain.sequencer import (
    append_position,
    index_of,
    remove_at,
    reorder_within_container,
)
from focusboard.services.base import BaseService
from focusboard.services.contracts import MoveCardData, ZoneBoardData, dump_validated
from focusboard.services.result import (
    INVALID_MOVE,
    NOT_FOUND,
    PROTECTED,
    STORE_ERROR,
    VALIDATION_FAILED,
    WRITE_FAILED,
    ServiceError,
    ServiceResult,
)

if TYPE_CHECKING:
    from focusboard.domain.errors import BoardError


class BoardService(BaseService):
    """Creates, orders, and removes zones, lists, and cards."""

    # ------------------------------------------------------------------
    # Focus zones
    # ------------------------------------------------------------------

    async def create_zone(self, title: str, description: str | None = None) -> ServiceResult:
        """Create a focus zone together with its catch-all list at rank 0."""
        op = "create_zone"
        zone = Grouping(title=title, description=description)
        catch_all = Container(
            grouping_id=zone.id,
            title=self._board.settings.board.catch_all_title,
            position=0,
            is_catch_all=True,
        )
        try:
            await self._board.groupings.insert(zone)
            try:
                await self._board.containers.insert(catch_all)
            except StoreError:
                await self._board.groupings.delete(zone.id)
                raise
        except StoreError as exc:
            return _error(op, exc)

        self._board.index.add_container(catch_all)
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": zone.id, "title": zone.title, "catch_all_id": catch_all.id},
        )

    async def list_zones(self) -> ServiceResult:
        op = "list_zones"
        try:
            zones = await self._board.groupings.list_all()
        except StoreError as exc:
            return _error(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "count": len(zones),
                "items": [
                    {
                        "id": z.id,
                        "title": z.title,
                        "description": z.description,
                        "created_at": z.created_at,
                    }
                    for z in zones
                ],
            },
        )

    async def load_zone(self, zone_id: str) -> ServiceResult:
        """(Re)populate the index with a zone's lists and cards from the store."""
        op = "load_zone"
        try:
            zone = await self._board.groupings.get(zone_id)
            if zone is None:
                return _not_found(op, "focus zone", zone_id)
            await self._load(zone_id)
        except StoreError as exc:
            return _error(op, exc)

        index = self._board.index
        lists = index.containers_of(zone_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": zone_id,
                "lists": len(lists),
                "cards": sum(index.item_count(c.id) for c in lists),
            },
        )

    async def show_zone(self, zone_id: str) -> ServiceResult:
        """Return a zone's lists in rank order, each with its ordered cards."""
        op = "show_zone"
        try:
            zone = await self._board.groupings.get(zone_id)
            if zone is None:
                return _not_found(op, "focus zone", zone_id)
            await self._load(zone_id)
        except StoreError as exc:
            return _error(op, exc)

        index = self._board.index
        data = {
            "id": zone.id,
            "title": zone.title,
            "description": zone.description,
            "lists": [
                {
                    "id": c.id,
                    "title": c.title,
                    "position": c.position,
                    "is_focused": c.is_focused,
                    "is_catch_all": c.is_catch_all,
                    "cards": [
                        {
                            "id": i.id,
                            "title": i.title,
                            "position": i.position,
                            "description": i.description,
                        }
                        for i in index.items_of(c.id)
                    ],
                }
                for c in index.containers_of(zone_id)
            ],
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(ZoneBoardData, data))

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    async def create_list(self, zone_id: str, title: str) -> ServiceResult:
        """Append a new list to the end of a zone."""
        op = "create_list"
        warnings: list[str] = []
        try:
            zone = await self._board.groupings.get(zone_id)
            if zone is None:
                return _not_found(op, "focus zone", zone_id)
            await self._ensure_zone(zone_id)
            position = append_position(len(self._board.index.containers_of(zone_id)))
            container = await self._board.containers.insert(
                Container(grouping_id=zone_id, title=title, position=position)
            )
        except StoreError as exc:
            return _error(op, exc)

        self._board.index.add_container(container)
        self._dispatch_event(
            "post_list_create",
            {"list_id": container.id, "zone_id": zone_id, "position": position, "title": title},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": container.id, "zone_id": zone_id, "title": title, "position": position},
            warnings=warnings,
        )

    async def delete_list(self, list_id: str) -> ServiceResult:
        """Delete a list with its cards and close the rank gap it leaves.

        The catch-all list cannot be deleted.
        """
        op = "delete_list"
        warnings: list[str] = []
        try:
            container = await self._ensure_list(list_id)
        except StoreError as exc:
            return _error(op, exc)
        if container is None:
            return _not_found(op, "list", list_id)
        if container.is_catch_all:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code=PROTECTED,
                    message=f"List {list_id} is the catch-all list and cannot be deleted",
                ),
            )

        index = self._board.index
        zone_id = container.grouping_id
        cards_removed = index.item_count(list_id)
        siblings = [c for c in index.containers_of(zone_id) if c.id != list_id]
        mapping = remove_at(siblings, container.position)

        try:
            await self._board.containers.delete_and_close_gap(list_id, mapping)
        except StoreError as exc:
            return _error(op, exc)
        index.remove_container(list_id)
        index.apply_container_delta({cid: {"position": pos} for cid, pos in mapping.items()})

        self._dispatch_event(
            "post_list_delete",
            {"list_id": list_id, "zone_id": zone_id, "cards_removed": cards_removed},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": list_id,
                "zone_id": zone_id,
                "cards_removed": cards_removed,
                "renumbered": sorted(mapping),
            },
            warnings=warnings,
        )

    async def move_list(self, list_id: str, target_index: int) -> ServiceResult:
        """Move a list to *target_index* among its zone's lists."""
        op = "move_list"
        try:
            container = await self._ensure_list(list_id)
        except StoreError as exc:
            return _error(op, exc)
        if container is None:
            return _not_found(op, "list", list_id)

        siblings = self._board.index.containers_of(container.grouping_id)
        try:
            old_index = index_of(siblings, list_id)
            mapping = reorder_within_container(siblings, old_index, target_index, item_id=list_id)
            await self._write_ranks(mapping)
        except (InvalidMoveError, PersistenceWriteError) as exc:
            return _error(op, exc)

        moved = self._board.index.get_container(list_id)
        assert moved is not None
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": list_id,
                "zone_id": container.grouping_id,
                "position": moved.position,
                "renumbered": sorted(cid for cid in mapping if cid != list_id),
            },
        )

    async def toggle_focus(self, list_id: str) -> ServiceResult:
        """Focus a list (unfocusing its siblings), or unfocus it if already focused."""
        op = "toggle_focus"
        warnings: list[str] = []
        try:
            container = await self._ensure_list(list_id)
            if container is None:
                return _not_found(op, "list", list_id)
            updated = await self._board.containers.toggle_emphasis(list_id)
        except StoreError as exc:
            return _error(op, exc)

        zone_id = updated.grouping_id
        index = self._board.index
        index.apply_container_delta(
            {
                c.id: {"is_focused": c.id == list_id and updated.is_focused}
                for c in index.containers_of(zone_id)
            }
        )
        self._dispatch_event(
            "post_focus_toggle",
            {"list_id": list_id, "zone_id": zone_id, "is_focused": updated.is_focused},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": list_id, "zone_id": zone_id, "is_focused": updated.is_focused},
            warnings=warnings,
        )

    async def rename_list(self, list_id: str, title: str) -> ServiceResult:
        """Change a list's title. Its rank and cards are untouched."""
        op = "rename_list"
        title = title.strip()
        if not title:
            return _invalid(op, "List title must not be empty")
        try:
            container = await self._ensure_list(list_id)
            if container is None:
                return _not_found(op, "list", list_id)
            if title != container.title:
                await self._board.containers.update(list_id, {"title": title})
        except StoreError as exc:
            return _error(op, exc)

        self._board.index.apply_container_delta({list_id: {"title": title}})
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": list_id, "zone_id": container.grouping_id, "title": title},
        )

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    async def create_card(
        self,
        list_id: str,
        title: str,
        description: str | None = None,
        index: int | None = None,
    ) -> ServiceResult:
        """Add a card to a list, appended or at a clamped *index*."""
        op = "create_card"
        warnings: list[str] = []
        try:
            container = await self._ensure_list(list_id)
        except StoreError as exc:
            return _error(op, exc)
        if container is None:
            return _not_found(op, "list", list_id)

        card = Item(container_id=list_id, title=title, description=description)
        try:
            outcome = await self._board.reconciler.insert(card, index)
        except (InvalidMoveError, PersistenceWriteError) as exc:
            return _error(op, exc)

        created = self._board.index.get(card.id)
        position = created.position if created is not None else 0
        self._dispatch_event(
            "post_card_create",
            {"card_id": card.id, "list_id": list_id, "position": position, "title": title},
            warnings,
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": card.id,
                "list_id": list_id,
                "title": title,
                "position": position,
                "renumbered": outcome.renumbered,
            },
            warnings=warnings,
            meta={"batch": outcome.seq},
        )

    async def move_card(self, card_id: str, to_list_id: str, index: int) -> ServiceResult:
        """Move a card to *index* of *to_list_id* (same list or another list of its zone)."""
        op = "move_card"
        warnings: list[str] = []
        try:
            card = await self._ensure_card(card_id)
            if card is None:
                return _not_found(op, "card", card_id)
            target = await self._ensure_list(to_list_id)
            if target is None:
                return _not_found(op, "list", to_list_id)
        except StoreError as exc:
            return _error(op, exc)

        source = self._board.index.get_container(card.container_id)
        if source is not None and source.grouping_id != target.grouping_id:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code=INVALID_MOVE,
                    message="Cards can only move between lists of the same focus zone",
                ),
            )

        from_list_id = card.container_id
        try:
            outcome = await self._board.reconciler.move(card_id, from_list_id, to_list_id, index)
        except InvalidMoveError as exc:
            return _error(op, exc)
        except PersistenceWriteError as exc:
            self._dispatch_event(
                "post_move_failed",
                {"card_id": card_id, "error": str(exc), "restored": exc.restored_ids},
                warnings,
            )
            return _error(op, exc)

        moved = self._board.index.get(card_id)
        position = moved.position if moved is not None else index
        data = dump_validated(
            MoveCardData,
            {
                "id": card_id,
                "from_list_id": from_list_id,
                "to_list_id": to_list_id,
                "position": position,
                "renumbered": outcome.renumbered,
                "batch": outcome.seq,
            },
        )
        if not outcome.noop:
            self._dispatch_event(
                "post_card_move",
                {
                    "card_id": card_id,
                    "from_list_id": from_list_id,
                    "to_list_id": to_list_id,
                    "position": position,
                    "renumbered": outcome.renumbered,
                },
                warnings,
            )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    async def delete_card(self, card_id: str) -> ServiceResult:
        """Delete a card and close the position gap it leaves."""
        op = "delete_card"
        warnings: list[str] = []
        try:
            card = await self._ensure_card(card_id)
        except StoreError as exc:
            return _error(op, exc)
        if card is None:
            return _not_found(op, "card", card_id)

        try:
            outcome = await self._board.reconciler.remove(card_id)
        except (InvalidMoveError, PersistenceWriteError) as exc:
            return _error(op, exc)

        self._dispatch_event(
            "post_card_delete", {"card_id": card_id, "list_id": card.container_id}, warnings
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={"id": card_id, "list_id": card.container_id, "renumbered": outcome.renumbered},
            warnings=warnings,
        )

    async def update_card(
        self,
        card_id: str,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> ServiceResult:
        """Edit a card's title and/or description.

        An empty *description* clears it. The card keeps its list and position.
        """
        op = "update_card"
        changes: dict[str, Any] = {}
        if title is not None:
            if not title.strip():
                return _invalid(op, "Card title must not be empty")
            changes["title"] = title.strip()
        if description is not None:
            changes["description"] = description or None
        if not changes:
            return _invalid(op, "Nothing to update: pass a title or a description")

        try:
            card = await self._ensure_card(card_id)
            if card is None:
                return _not_found(op, "card", card_id)
            await self._board.items.update(card_id, changes)
        except StoreError as exc:
            return _error(op, exc)

        self._board.index.apply_delta({card_id: changes})
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": card_id,
                "list_id": card.container_id,
                "fields": sorted(changes),
                **changes,
            },
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _load(self, zone_id: str) -> None:
        """Replace the index contents for *zone_id* with what the store holds."""
        lists = await self._board.containers.list_by_grouping(zone_id)
        cards = await self._board.items.list_by_grouping(zone_id)
        index = self._board.index
        index.replace_grouping(zone_id, lists)
        for container in lists:
            index.replace_container(
                container.id, [c for c in cards if c.container_id == container.id]
            )

    async def _ensure_zone(self, zone_id: str) -> None:
        if not self._board.index.containers_of(zone_id):
            await self._load(zone_id)

    async def _ensure_list(self, list_id: str) -> Container | None:
        container = self._board.index.get_container(list_id)
        if container is not None:
            return container
        container = await self._board.containers.get(list_id)
        if container is None:
            return None
        await self._load(container.grouping_id)
        return self._board.index.get_container(list_id)

    async def _ensure_card(self, card_id: str) -> Item | None:
        card = self._board.index.get(card_id)
        if card is not None:
            return card
        card = await self._board.items.get(card_id)
        if card is None:
            return None
        await self._ensure_list(card.container_id)
        return self._board.index.get(card_id)

    async def _write_ranks(self, mapping: dict[str, int]) -> None:
        """Persist list ranks as one batch, reverting landed writes on failure."""
        if not mapping:
            return
        index = self._board.index
        before = {cid: index.get_container(cid) for cid in mapping}
        results = await asyncio.gather(
            *(self._board.containers.update(cid, {"position": pos}) for cid, pos in mapping.items()),
            return_exceptions=True,
        )
        failed = [cid for cid, r in zip(mapping, results, strict=True) if isinstance(r, BaseException)]
        if failed:
            await asyncio.gather(
                *(
                    self._board.containers.update(cid, {"position": old.position})
                    for cid, old in before.items()
                    if cid not in failed and old is not None
                ),
                return_exceptions=True,
            )
            msg = f"List order not saved, please retry ({len(failed)} write(s) rejected)"
            raise PersistenceWriteError(
                msg, batch_seq=0, failed_ids=failed, restored_ids=[], skipped_ids=[]
            )
        index.apply_container_delta({cid: {"position": pos} for cid, pos in mapping.items()})


def _not_found(op: str, kind: str, entity_id: str) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=NOT_FOUND, message=f"No {kind} found with ID: {entity_id}"),
    )


def _error(op: str, exc: BoardError) -> ServiceResult:
    """Translate a domain error into a failed ServiceResult."""
    detail: dict[str, Any] = {}
    if isinstance(exc, PersistenceWriteError):
        code = WRITE_FAILED
        detail = {
            "batch": exc.batch_seq,
            "failed_ids": exc.failed_ids,
            "restored_ids": exc.restored_ids,
            "skipped_ids": exc.skipped_ids,
        }
    elif isinstance(exc, InvalidMoveError):
        code = INVALID_MOVE
    else:
        code = STORE_ERROR
    return ServiceResult.failure(op, code, str(exc), detail=detail)


def _invalid(op: str, message: str) -> ServiceResult:
    return ServiceResult.failure(op, VALIDATION_FAILED, message)
