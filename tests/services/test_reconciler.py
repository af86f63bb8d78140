"""Tests for MoveReconciler — optimistic batches, compensation, and rollback."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import pytest

from focusboard.domain.errors import InvalidMoveError, PersistenceWriteError, StoreError
from focusboard.domain.index import ContainerIndex
from focusboard.domain.models import Container, Item
from focusboard.services.reconciler import MoveReconciler

if TYPE_CHECKING:
    from tests.conftest import FakeItemStore


def _build(store: Any, layout: dict[str, list[str]]) -> MoveReconciler:
    """Seed *store* and a fresh index with ``{list_id: [card_id, ...]}``."""
    index = ContainerIndex()
    for rank, (list_id, card_ids) in enumerate(layout.items()):
        index.add_container(Container(id=list_id, grouping_id="Z", title=list_id, position=rank))
        cards = [
            Item(id=cid, container_id=list_id, title=cid, position=pos)
            for pos, cid in enumerate(card_ids)
        ]
        index.replace_container(list_id, cards)
        store.seed(*cards)
    return MoveReconciler(index, store)


def _order(rec: MoveReconciler, list_id: str) -> list[tuple[str, int]]:
    return [(i.id, i.position) for i in rec.index.items_of(list_id)]


def _stored(store: Any, list_id: str) -> list[tuple[str, int]]:
    rows = sorted(
        (i for i in store.rows.values() if i.container_id == list_id), key=lambda i: i.position
    )
    return [(i.id, i.position) for i in rows]


# ---------------------------------------------------------------------------
# Moves
# ---------------------------------------------------------------------------


class TestMove:
    def test_reorder_within_list(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a", "b", "c"]})
        outcome = asyncio.run(rec.move("b", "A", "A", 0))
        assert _order(rec, "A") == [("b", 0), ("a", 1), ("c", 2)]
        assert _stored(fake_store, "A") == [("b", 0), ("a", 1), ("c", 2)]
        assert outcome.seq == 1
        assert outcome.renumbered == ["a"]

    def test_reorder_picks_card_by_id_among_duplicate_positions(
        self, fake_store: FakeItemStore
    ) -> None:
        rec = _build(fake_store, {"A": ["a", "b", "c"]})
        rec.index.apply_delta({"c": {"position": 1}})
        fake_store.rows["c"] = fake_store.rows["c"].model_copy(update={"position": 1})
        assert _order(rec, "A") == [("a", 0), ("b", 1), ("c", 1)]

        outcome = asyncio.run(rec.move("c", "A", "A", 0))
        assert outcome.updates["c"] == {"position": 0}
        assert _order(rec, "A") == [("c", 0), ("a", 1), ("b", 2)]
        assert _stored(fake_store, "A") == [("c", 0), ("a", 1), ("b", 2)]

    def test_move_across_lists(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a", "b"], "B": ["c"]})
        outcome = asyncio.run(rec.move("a", "A", "B", 0))
        assert _order(rec, "A") == [("b", 0)]
        assert _order(rec, "B") == [("a", 0), ("c", 1)]
        assert _stored(fake_store, "A") == [("b", 0)]
        assert _stored(fake_store, "B") == [("a", 0), ("c", 1)]
        assert outcome.updates["a"] == {"container_id": "B", "position": 0}
        assert sorted(outcome.renumbered) == ["b", "c"]

    def test_move_into_empty_list_past_end(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a", "b"], "B": []})
        asyncio.run(rec.move("b", "A", "B", 9))
        assert _order(rec, "A") == [("a", 0)]
        assert _order(rec, "B") == [("b", 0)]

    def test_same_position_is_noop(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a", "b"]})
        outcome = asyncio.run(rec.move("a", "A", "A", 0))
        assert outcome.noop
        assert outcome.seq == 0
        assert fake_store.calls == []

    def test_card_count_conserved(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a", "b", "c"], "B": ["d", "e"]})
        asyncio.run(rec.move("c", "A", "B", 1))
        asyncio.run(rec.move("d", "B", "A", 0))
        asyncio.run(rec.move("e", "B", "B", 0))
        total = rec.index.item_count("A") + rec.index.item_count("B")
        assert total == 5
        for list_id in ("A", "B"):
            positions = [pos for _, pos in _order(rec, list_id)]
            assert positions == list(range(len(positions)))


class TestInvalidMove:
    @pytest.mark.parametrize(
        ("args", "match"),
        [
            (("ghost", "A", "B", 0), "No card found"),
            (("a", "B", "B", 0), "not B"),
            (("a", "A", "nowhere", 0), "No list found"),
            (("a", "A", "B", -1), "non-negative"),
        ],
    )
    def test_rejected_without_writes(
        self, fake_store: FakeItemStore, args: tuple[Any, ...], match: str
    ) -> None:
        rec = _build(fake_store, {"A": ["a", "b"], "B": ["c"]})
        with pytest.raises(InvalidMoveError, match=match):
            asyncio.run(rec.move(*args))
        assert fake_store.calls == []
        assert _order(rec, "A") == [("a", 0), ("b", 1)]
        assert _order(rec, "B") == [("c", 0)]
        assert rec.in_flight() == {}


# ---------------------------------------------------------------------------
# Insert / remove
# ---------------------------------------------------------------------------


class TestInsert:
    def test_append_by_default(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a", "b"]})
        outcome = asyncio.run(rec.insert(Item(id="d", container_id="A", title="d")))
        assert _order(rec, "A") == [("a", 0), ("b", 1), ("d", 2)]
        assert outcome.renumbered == []

    def test_out_of_range_index_clamps(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a"]})
        asyncio.run(rec.insert(Item(id="d", container_id="A", title="d"), 5))
        assert _order(rec, "A") == [("a", 0), ("d", 1)]
        assert _stored(fake_store, "A") == [("a", 0), ("d", 1)]

    def test_insert_at_front_shifts_siblings(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a", "b"]})
        outcome = asyncio.run(rec.insert(Item(id="d", container_id="A", title="d"), 0))
        assert _order(rec, "A") == [("d", 0), ("a", 1), ("b", 2)]
        assert sorted(outcome.renumbered) == ["a", "b"]

    def test_unknown_list(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": []})
        with pytest.raises(InvalidMoveError, match="No list found"):
            asyncio.run(rec.insert(Item(id="d", container_id="X", title="d")))

    def test_duplicate_card(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a"]})
        with pytest.raises(InvalidMoveError, match="already exists"):
            asyncio.run(rec.insert(Item(id="a", container_id="A", title="a")))

    def test_failed_insert_leaves_no_card(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a"]})
        fake_store.fail_on = {"d"}
        with pytest.raises(PersistenceWriteError):
            asyncio.run(rec.insert(Item(id="d", container_id="A", title="d"), 0))
        assert _order(rec, "A") == [("a", 0)]
        assert _stored(fake_store, "A") == [("a", 0)]


class TestRemove:
    def test_closes_gap(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a", "b", "c"]})
        outcome = asyncio.run(rec.remove("b"))
        assert _order(rec, "A") == [("a", 0), ("c", 1)]
        assert _stored(fake_store, "A") == [("a", 0), ("c", 1)]
        assert outcome.updates["b"] is None
        assert outcome.renumbered == ["c"]

    def test_unknown_card(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a"]})
        with pytest.raises(InvalidMoveError):
            asyncio.run(rec.remove("ghost"))

    def test_failed_sibling_write_reinserts_card(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a", "b", "c"]})
        fake_store.fail_on = {"c"}
        with pytest.raises(PersistenceWriteError):
            asyncio.run(rec.remove("a"))
        assert _order(rec, "A") == [("a", 0), ("b", 1), ("c", 2)]
        assert _stored(fake_store, "A") == [("a", 0), ("b", 1), ("c", 2)]


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------


class TestRollback:
    def test_failed_move_restores_snapshot(self, fake_store: FakeItemStore) -> None:
        rec = _build(fake_store, {"A": ["a", "b"], "B": ["c"]})
        fake_store.fail_on = {"a"}
        with pytest.raises(PersistenceWriteError) as excinfo:
            asyncio.run(rec.move("a", "A", "B", 0))

        err = excinfo.value
        assert err.failed_ids == ["a"]
        assert sorted(err.restored_ids) == ["a", "b", "c"]
        assert err.skipped_ids == []
        assert isinstance(err.__cause__, StoreError)
        assert "please retry" in str(err)

        assert _order(rec, "A") == [("a", 0), ("b", 1)]
        assert _order(rec, "B") == [("c", 0)]
        # Sibling writes that landed are reverted in the store.
        assert _stored(fake_store, "A") == [("a", 0), ("b", 1)]
        assert _stored(fake_store, "B") == [("c", 0)]
        assert rec.in_flight() == {}

    def test_compensation_failure_still_rolls_back_index(
        self, fake_store: FakeItemStore, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        rec = _build(fake_store, {"A": ["a", "b", "c"]})
        fake_store.fail_on = {"a"}
        calls = {"n": 0}
        original = fake_store.update

        async def flaky_update(item_id: str, fields: dict[str, Any]) -> None:
            calls["n"] += 1
            # First round lands for siblings; every compensation write fails.
            if calls["n"] > 3:
                raise StoreError("store went away")
            await original(item_id, fields)

        monkeypatch.setattr(fake_store, "update", flaky_update)
        with pytest.raises(PersistenceWriteError):
            asyncio.run(rec.move("a", "A", "A", 2))
        assert _order(rec, "A") == [("a", 0), ("b", 1), ("c", 2)]

    def test_newer_batch_wins_over_stale_rollback(self, fake_store: FakeItemStore) -> None:
        """A failed batch does not undo cards a later batch has already moved."""
        rec = _build(fake_store, {"A": ["a", "b"], "B": ["c"]})
        fake_store.fail_on = {"b"}

        async def scenario() -> PersistenceWriteError:
            gate = asyncio.Event()
            fake_store.gate = gate
            first = asyncio.create_task(rec.move("a", "A", "B", 0))
            for _ in range(5):
                await asyncio.sleep(0)
            assert rec.in_flight() == {"a": 1, "b": 1, "c": 1}

            fake_store.gate = None
            second = await rec.move("a", "B", "B", 1)
            assert second.seq == 2
            assert rec.in_flight() == {"b": 1}

            gate.set()
            with pytest.raises(PersistenceWriteError) as excinfo:
                await first
            return excinfo.value

        err = asyncio.run(scenario())
        assert err.restored_ids == ["b"]
        assert sorted(err.skipped_ids) == ["a", "c"]
        assert _order(rec, "A") == [("b", 1)]
        assert _order(rec, "B") == [("c", 0), ("a", 1)]
        assert rec.in_flight() == {}

    def test_optimistic_state_visible_before_writes_land(
        self, fake_store: FakeItemStore
    ) -> None:
        rec = _build(fake_store, {"A": ["a", "b", "c"]})

        async def scenario() -> list[tuple[str, int]]:
            gate = asyncio.Event()
            fake_store.gate = gate
            task = asyncio.create_task(rec.move("c", "A", "A", 0))
            await asyncio.sleep(0)
            seen = _order(rec, "A")
            gate.set()
            await task
            return seen

        assert asyncio.run(scenario()) == [("c", 0), ("a", 1), ("b", 2)]
        assert _stored(fake_store, "A") == [("c", 0), ("a", 1), ("b", 2)]
