"""Command group: cards (add, move, edit, remove)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from focusboard.commands._base import CARD_ID, LIST_ID, FocusGroup
from focusboard.services.board import BoardService

if TYPE_CHECKING:
    from focusboard.commands._context import AppContext

_CARD_EXAMPLES = """\
  focusboard card add list_5e6f7a8b "Write report"
  focusboard card add list_5e6f7a8b "Call Sam" --index 0
  focusboard card move card_9c0d1e2f list_5e6f7a8b 2
  focusboard card edit card_9c0d1e2f --title "Write quarterly report"
  focusboard card remove card_9c0d1e2f"""


@click.group(cls=FocusGroup, examples=_CARD_EXAMPLES)
@click.pass_obj
def card(app: AppContext) -> None:
    """Add, move, edit, and remove cards."""


@card.command(
    examples="""\
  focusboard card add list_5e6f7a8b "Write report"
  focusboard card add list_5e6f7a8b "Call Sam" --index 0 --description "About the offsite\""""
)
@click.argument("list_id", type=LIST_ID)
@click.argument("title")
@click.option("--description", default=None, help="Optional card description.")
@click.option(
    "--index",
    "index",
    type=int,
    default=None,
    help="Insert at this position instead of appending (clamped to the list length).",
)
@click.pass_obj
def add(
    app: AppContext,
    list_id: str,
    title: str,
    description: str | None,
    index: int | None,
) -> None:
    """Add a card to a list."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.create_card(list_id, title, description=description, index=index)))


@card.command(
    examples="""\
  focusboard card move card_9c0d1e2f list_5e6f7a8b 0   # reorder or move across lists
  focusboard card move card_9c0d1e2f list_5e6f7a8b 99  # append"""
)
@click.argument("card_id", type=CARD_ID)
@click.argument("to_list_id", type=LIST_ID)
@click.argument("index", type=int)
@click.pass_obj
def move(app: AppContext, card_id: str, to_list_id: str, index: int) -> None:
    """Move a card to INDEX of TO_LIST_ID."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.move_card(card_id, to_list_id, index)))


@card.command(examples="  focusboard card remove card_9c0d1e2f")
@click.argument("card_id", type=CARD_ID)
@click.pass_obj
def remove(app: AppContext, card_id: str) -> None:
    """Delete a card."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.delete_card(card_id)))


@card.command(
    examples="""\
  focusboard card edit card_9c0d1e2f --title "Write quarterly report"
  focusboard card edit card_9c0d1e2f --description ""   # clear the description"""
)
@click.argument("card_id", type=CARD_ID)
@click.option("--title", default=None, help="New card title.")
@click.option("--description", default=None, help="New description (empty string clears it).")
@click.pass_obj
def edit(app: AppContext, card_id: str, title: str | None, description: str | None) -> None:
    """Edit a card's title or description."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.update_card(card_id, title=title, description=description)))
