"""Command group: focus zones (create, list, show)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from focusboard.commands._base import ZONE_ID, FocusGroup
from focusboard.services.board import BoardService

if TYPE_CHECKING:
    from focusboard.commands._context import AppContext

_ZONE_EXAMPLES = """\
  focusboard zone create "Deep Work"
  focusboard zone list
  focusboard zone show zone_1a2b3c4d"""


@click.group(cls=FocusGroup, examples=_ZONE_EXAMPLES)
@click.pass_obj
def zone(app: AppContext) -> None:
    """Create and inspect focus zones."""


@zone.command(
    examples="""\
  focusboard zone create "Deep Work"
  focusboard zone create "Errands" --description "Things to do in town\""""
)
@click.argument("title")
@click.option("--description", default=None, help="Optional zone description.")
@click.pass_obj
def create(app: AppContext, title: str, description: str | None) -> None:
    """Create a focus zone (with its catch-all list)."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.create_zone(title, description)))


@zone.command(
    "list",
    examples="""\
  focusboard zone list
  focusboard --json zone list""",
)
@click.pass_obj
def list_zones(app: AppContext) -> None:
    """List all focus zones."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.list_zones()))


@zone.command(
    examples="""\
  focusboard zone show zone_1a2b3c4d
  focusboard -v zone show zone_1a2b3c4d"""
)
@click.argument("zone_id", type=ZONE_ID)
@click.pass_obj
def show(app: AppContext, zone_id: str) -> None:
    """Show a zone's lists and cards in board order."""
    svc = BoardService(app.board)
    app.emit(app.run(svc.show_zone(zone_id)))
