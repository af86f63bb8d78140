"""Tests for CheckService — ordering audit and repair."""

from __future__ import annotations

import asyncio

import pytest
from sqlalchemy import func, select, update

from focusboard.domain.models import Container, Grouping
from focusboard.infrastructure.board import Board
from focusboard.infrastructure.database.schema import change_log, items
from focusboard.services.board import BoardService
from focusboard.services.check import CheckService


@pytest.fixture
def zone(board: Board) -> dict[str, object]:
    svc = BoardService(board)
    created = asyncio.run(svc.create_zone("Work"))
    doing = asyncio.run(svc.create_list(created.data["id"], "Doing"))
    cards = [
        asyncio.run(svc.create_card(doing.data["id"], title)).data["id"]
        for title in ("a", "b", "c")
    ]
    return {"id": created.data["id"], "doing": doing.data["id"], "cards": cards}


def _drift(board: Board, card_id: str, position: int) -> None:
    with board.engine.begin() as conn:
        conn.execute(update(items).where(items.c.id == card_id).values(position=position))


class TestCheckClean:
    def test_empty_board(self, board: Board) -> None:
        result = CheckService(board).check()
        assert result.ok
        assert result.data == {"count": 0, "issues": [], "fixed": []}

    def test_fresh_zone(self, board: Board, zone: dict[str, object]) -> None:
        result = CheckService(board).check(str(zone["id"]))
        assert result.data["count"] == 0


class TestCheckFindings:
    def test_card_gap_detected(self, board: Board, zone: dict[str, object]) -> None:
        cards = zone["cards"]
        assert isinstance(cards, list)
        _drift(board, cards[2], 7)
        result = CheckService(board).check()
        (issue,) = result.data["issues"]
        assert issue["category"] == "card_order"
        assert issue["severity"] == "error"
        assert issue["entity_id"] == zone["doing"]
        assert issue["fix_action"] == "renumber"

    def test_duplicate_position_detected(self, board: Board, zone: dict[str, object]) -> None:
        cards = zone["cards"]
        assert isinstance(cards, list)
        _drift(board, cards[1], 0)
        result = CheckService(board).check()
        assert [i["category"] for i in result.data["issues"]] == ["card_order"]

    def test_missing_catch_all_warns(self, board: Board) -> None:
        zone = Grouping(title="Bare")
        asyncio.run(board.groupings.insert(zone))
        asyncio.run(board.containers.insert(Container(grouping_id=zone.id, title="Only")))
        result = CheckService(board).check(zone.id)
        (issue,) = result.data["issues"]
        assert issue["category"] == "catch_all"
        assert issue["severity"] == "warning"

    def test_bad_id_format_warns(self, board: Board, zone: dict[str, object]) -> None:
        asyncio.run(
            board.containers.insert(
                Container(id="legacy-list", grouping_id=str(zone["id"]), title="Old", position=2)
            )
        )
        result = CheckService(board).check()
        ids = [i for i in result.data["issues"] if i["category"] == "id_format"]
        assert [i["entity_id"] for i in ids] == ["legacy-list"]

    def test_scoped_to_zone(self, board: Board, zone: dict[str, object]) -> None:
        cards = zone["cards"]
        assert isinstance(cards, list)
        _drift(board, cards[0], 9)
        other = asyncio.run(BoardService(board).create_zone("Other"))
        result = CheckService(board).check(other.data["id"])
        assert result.data["count"] == 0


class TestCheckFix:
    def test_fix_renumbers_densely(self, board: Board, zone: dict[str, object]) -> None:
        cards = zone["cards"]
        assert isinstance(cards, list)
        _drift(board, cards[0], 4)
        _drift(board, cards[2], 2)
        result = CheckService(board).check(fix=True)
        assert result.data["fixed"]

        with board.engine.connect() as conn:
            rows = conn.execute(
                select(items.c.id, items.c.position)
                .where(items.c.container_id == zone["doing"])
                .order_by(items.c.position)
            ).fetchall()
        # Stored order is kept: b(1), c(2), a(4) becomes b(0), c(1), a(2).
        assert [(r.id, r.position) for r in rows] == [
            (cards[1], 0),
            (cards[2], 1),
            (cards[0], 2),
        ]
        assert CheckService(board).check().data["count"] == 0

    def test_fix_logs_change_feed(self, board: Board, zone: dict[str, object]) -> None:
        cards = zone["cards"]
        assert isinstance(cards, list)
        _drift(board, cards[2], 5)
        with board.engine.connect() as conn:
            before = conn.execute(select(func.count()).select_from(change_log)).scalar()
        CheckService(board).check(fix=True)
        with board.engine.connect() as conn:
            after = conn.execute(select(func.count()).select_from(change_log)).scalar()
        assert after == before + 1

    def test_no_fix_is_read_only(self, board: Board, zone: dict[str, object]) -> None:
        cards = zone["cards"]
        assert isinstance(cards, list)
        _drift(board, cards[2], 5)
        CheckService(board).check()
        assert CheckService(board).check().data["count"] == 1
