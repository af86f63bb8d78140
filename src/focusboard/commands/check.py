"""Command: board ordering checks and repair."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from focusboard.commands._base import ZONE_ID, FocusCommand

if TYPE_CHECKING:
    from focusboard.commands._context import AppContext


@click.command(
    cls=FocusCommand,
    examples="""\
  focusboard check
  focusboard check --zone zone_1a2b3c4d
  focusboard check --fix""",
)
@click.option(
    "--zone", "zone_id", type=ZONE_ID, default=None, help="Limit the check to one focus zone."
)
@click.option("--fix", is_flag=True, help="Renumber lists and cards with broken ordering.")
@click.pass_obj
def check(app: AppContext, zone_id: str | None, fix: bool) -> None:
    """Check card and list ordering and optionally repair it."""
    from focusboard.services.check import CheckService

    svc = CheckService(app.board)
    app.emit(svc.check(zone_id, fix=fix))
