"""Shared pytest fixtures and test helpers for focusboard tests."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from focusboard.config.settings import BoardSettings
from focusboard.domain.errors import StoreError
from focusboard.domain.models import Item
from focusboard.infrastructure.board import Board
from focusboard.infrastructure.database.engine import init_database


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "test.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def board_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary board directory with no config file in reach."""
    monkeypatch.delenv("FOCUSBOARD_CONFIG", raising=False)
    return tmp_path


@pytest.fixture
def board(board_root: Path) -> Iterator[Board]:
    """Fully initialized board on a temp directory, no event bus."""
    settings = BoardSettings.from_cli(board_root=board_root)
    b = Board(settings)
    try:
        yield b
    finally:
        b.close()


@pytest.fixture
def _isolated_board(board_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp board root so the CLI creates an isolated board.

    Use via ``@pytest.mark.usefixtures("_isolated_board")`` on command test
    classes.
    """
    monkeypatch.chdir(board_root)


# ---------------------------------------------------------------------------
# In-memory item store with failure injection
# ---------------------------------------------------------------------------


class FakeItemStore:
    """ItemStore double.

    ``fail_on`` rejects every write for the listed card IDs. While ``gate``
    is set, writes wait on it before landing, which lets a test start a
    second batch while the first one is still in flight.
    """

    def __init__(self) -> None:
        self.rows: dict[str, Item] = {}
        self.fail_on: set[str] = set()
        self.gate: asyncio.Event | None = None
        self.calls: list[tuple[str, str]] = []

    def seed(self, *items: Item) -> None:
        for item in items:
            self.rows[item.id] = item

    async def _write(self, op: str, item_id: str) -> None:
        self.calls.append((op, item_id))
        gate = self.gate
        if gate is not None:
            await gate.wait()
        else:
            await asyncio.sleep(0)
        if item_id in self.fail_on:
            msg = f"rejected {op} for {item_id}"
            raise StoreError(msg)

    async def insert(self, item: Item) -> Item:
        await self._write("insert", item.id)
        self.rows[item.id] = item
        return item

    async def update(self, item_id: str, fields: dict[str, Any]) -> None:
        await self._write("update", item_id)
        if item_id not in self.rows:
            msg = f"No card found with ID: {item_id}"
            raise StoreError(msg)
        self.rows[item_id] = self.rows[item_id].model_copy(update=fields)

    async def delete(self, item_id: str) -> None:
        await self._write("delete", item_id)
        self.rows.pop(item_id, None)

    async def get(self, item_id: str) -> Item | None:
        return self.rows.get(item_id)

    async def list_by_container(self, container_id: str) -> list[Item]:
        members = [i for i in self.rows.values() if i.container_id == container_id]
        return sorted(members, key=lambda i: (i.position, i.id))

    async def list_by_grouping(self, grouping_id: str) -> list[Item]:
        return sorted(self.rows.values(), key=lambda i: (i.container_id, i.position))


@pytest.fixture
def fake_store() -> FakeItemStore:
    return FakeItemStore()
