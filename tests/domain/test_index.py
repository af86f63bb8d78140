"""Tests for ContainerIndex — the in-memory read model."""

from __future__ import annotations

import pytest

from focusboard.domain.index import ContainerIndex
from focusboard.domain.models import Container, Item


def _item(item_id: str, container_id: str, position: int) -> Item:
    return Item(id=item_id, container_id=container_id, title=item_id.upper(), position=position)


@pytest.fixture
def index() -> ContainerIndex:
    idx = ContainerIndex()
    idx.add_container(Container(id="A", grouping_id="Z", title="A", position=0))
    idx.add_container(Container(id="B", grouping_id="Z", title="B", position=1))
    idx.replace_container("A", [_item("a", "A", 0), _item("b", "A", 1)])
    idx.replace_container("B", [_item("c", "B", 0)])
    return idx


class TestItems:
    def test_items_of_sorted_by_position(self, index: ContainerIndex) -> None:
        index.upsert(_item("x", "A", 0))
        index.apply_delta({"a": {"position": 2}})
        assert [i.id for i in index.items_of("A")] == ["x", "b", "a"]

    def test_duplicate_positions_use_observed_order(self, index: ContainerIndex) -> None:
        index.upsert(_item("d", "A", 1))
        assert [i.id for i in index.items_of("A")] == ["a", "b", "d"]

    def test_apply_delta_moves_between_containers(self, index: ContainerIndex) -> None:
        index.apply_delta({"a": {"container_id": "B", "position": 0}, "c": {"position": 1}})
        assert [i.id for i in index.items_of("A")] == ["b"]
        assert [i.id for i in index.items_of("B")] == ["a", "c"]

    def test_apply_delta_none_removes(self, index: ContainerIndex) -> None:
        index.apply_delta({"b": None})
        assert index.get("b") is None
        assert index.item_count("A") == 1

    def test_apply_delta_unknown_is_atomic(self, index: ContainerIndex) -> None:
        with pytest.raises(KeyError, match="ghost"):
            index.apply_delta({"a": {"position": 5}, "ghost": {"position": 0}})
        assert index.get("a").position == 0  # type: ignore[union-attr]

    def test_replace_container(self, index: ContainerIndex) -> None:
        index.replace_container("A", [_item("z", "A", 0)])
        assert [i.id for i in index.items_of("A")] == ["z"]
        assert index.get("a") is None

    def test_snapshot_and_restore(self, index: ContainerIndex) -> None:
        snap = index.snapshot(["a", "c", "new"])
        index.apply_delta({"a": {"container_id": "B", "position": 0}, "c": {"position": 1}})
        index.upsert(_item("new", "B", 2))
        index.restore(snap)
        assert [i.id for i in index.items_of("A")] == ["a", "b"]
        assert [i.id for i in index.items_of("B")] == ["c"]
        assert index.get("new") is None

    def test_restore_only_subset(self, index: ContainerIndex) -> None:
        snap = index.snapshot(["a", "b"])
        index.apply_delta({"a": {"position": 1}, "b": {"position": 0}})
        index.restore(snap, only=["b"])
        assert index.get("a").position == 1  # type: ignore[union-attr]
        assert index.get("b").position == 1  # type: ignore[union-attr]


class TestObservedOrder:
    def test_refetch_keeps_tie_order(self, index: ContainerIndex) -> None:
        index.upsert(_item("d", "A", 1))
        index.replace_container("A", [_item("d", "A", 1), _item("a", "A", 0), _item("b", "A", 1)])
        assert [i.id for i in index.items_of("A")] == ["a", "b", "d"]

    def test_removed_records_are_forgotten(self, index: ContainerIndex) -> None:
        index.apply_delta({"b": None})
        index.replace_container("B", [])
        index.remove_container("A")
        assert set(index._observed) == {"B"}

    def test_churn_does_not_grow(self, index: ContainerIndex) -> None:
        for n in range(50):
            index.replace_container("B", [_item(f"tmp{n}", "B", 0)])
        assert len(index._observed) == len(index.container_ids()) + 3


class TestContainers:
    def test_containers_of_sorted_by_rank(self, index: ContainerIndex) -> None:
        index.apply_container_delta({"A": {"position": 1}, "B": {"position": 0}})
        assert [c.id for c in index.containers_of("Z")] == ["B", "A"]

    def test_remove_container_drops_items(self, index: ContainerIndex) -> None:
        index.remove_container("A")
        assert index.get_container("A") is None
        assert index.get("a") is None
        assert index.get("c") is not None

    def test_replace_grouping_drops_missing(self, index: ContainerIndex) -> None:
        index.replace_grouping("Z", [Container(id="B", grouping_id="Z", title="B", position=0)])
        assert index.container_ids() == ["B"]
        assert index.get("a") is None

    def test_apply_container_delta_unknown(self, index: ContainerIndex) -> None:
        with pytest.raises(KeyError):
            index.apply_container_delta({"nope": {"position": 0}})
