"""Command: follow the change feed for a focus zone."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import click

from focusboard.commands._base import ZONE_ID, FocusCommand

if TYPE_CHECKING:
    from focusboard.commands._context import AppContext
    from focusboard.domain.models import ChangeEvent
    from focusboard.services.result import ServiceResult


@click.command(
    cls=FocusCommand,
    examples="""\
  focusboard watch zone_1a2b3c4d
  focusboard watch zone_1a2b3c4d --once --from-start""",
)
@click.argument("zone_id", type=ZONE_ID)
@click.option("--once", is_flag=True, help="Apply pending changes once and exit.")
@click.option("--from-start", is_flag=True, help="Replay the whole change log.")
@click.pass_obj
def watch(app: AppContext, zone_id: str, once: bool, from_start: bool) -> None:
    """Poll the change feed and refetch lists as they change."""
    from focusboard.infrastructure.change_feed import SqlChangeFeed
    from focusboard.services.board import BoardService
    from focusboard.services.sync import FeedSync

    board = app.board
    loaded = app.run(BoardService(board).load_zone(zone_id))
    if not loaded.ok:
        app.emit(loaded)
        return

    feed = SqlChangeFeed(
        board.engine, batch_size=board.settings.feed.batch_size, from_start=from_start
    )
    sync = FeedSync(board, feed)
    sync.attach(zone_id)

    async def _echo(event: ChangeEvent) -> None:
        target = event.container_id or event.grouping_id
        click.echo(
            f"{event.seq}: {event.entity_type} {event.change_kind} {event.entity_id} in {target}"
        )

    if not app.settings.json_output and not app.settings.quiet:
        feed.subscribe(zone_id, _echo)

    async def _follow() -> ServiceResult:
        if not once:
            await sync.run(asyncio.Event())
        return await sync.catch_up()

    try:
        result = app.run(_follow())
    except KeyboardInterrupt:
        result = app.run(sync.catch_up())
    app.emit(result)
