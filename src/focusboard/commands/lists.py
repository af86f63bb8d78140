"""Command group: lists within a focus zone (add, remove, move, focus, rename)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from focusboard.commands._base import LIST_ID, ZONE_ID, FocusGroup
from focusboard.services.board import BoardService

if TYPE_CHECKING:
    from focusboard.commands._context import AppContext

_LIST_EXAMPLES = """\
  focusboard list add zone_1a2b3c4d "In Progress"
  focusboard list move list_5e6f7a8b 0
  focusboard list focus list_5e6f7a8b
  focusboard list rename list_5e6f7a8b "Waiting"
  focusboard list remove list_5e6f7a8b"""


@click.group("list", cls=FocusGroup, examples=_LIST_EXAMPLES)
@click.pass_obj
def list_group(app: AppContext) -> None:
    """Add, reorder, rename, focus, and remove lists."""


@list_group.command(examples='  focusboard list add zone_1a2b3c4d "In Progress"')
@click.argument("zone_id", type=ZONE_ID)
@click.argument("title")
@click.pass_obj
def add(app: AppContext, zone_id: str, title: str) -> None:
    """Append a list to a focus zone."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.create_list(zone_id, title)))


@list_group.command(examples="  focusboard list remove list_5e6f7a8b")
@click.argument("list_id", type=LIST_ID)
@click.pass_obj
def remove(app: AppContext, list_id: str) -> None:
    """Delete a list and all of its cards."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.delete_list(list_id)))


@list_group.command(
    examples="""\
  focusboard list move list_5e6f7a8b 0
  focusboard list move list_5e6f7a8b 99   # move to the end"""
)
@click.argument("list_id", type=LIST_ID)
@click.argument("index", type=int)
@click.pass_obj
def move(app: AppContext, list_id: str, index: int) -> None:
    """Move a list to INDEX among its zone's lists."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.move_list(list_id, index)))


@list_group.command(examples="  focusboard list focus list_5e6f7a8b")
@click.argument("list_id", type=LIST_ID)
@click.pass_obj
def focus(app: AppContext, list_id: str) -> None:
    """Toggle focus on a list (at most one focused list per zone)."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.toggle_focus(list_id)))


@list_group.command(examples='  focusboard list rename list_5e6f7a8b "Waiting"')
@click.argument("list_id", type=LIST_ID)
@click.argument("title")
@click.pass_obj
def rename(app: AppContext, list_id: str, title: str) -> None:
    """Rename a list."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.rename_list(list_id, title)))
