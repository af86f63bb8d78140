"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``. Provides lazy Board initialization, a bridge from
Click's synchronous callbacks into the async services, and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any

import click

from focusboard.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from focusboard.config.settings import BoardSettings
    from focusboard.infrastructure.board import Board
    from focusboard.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``. The board is lazily
    initialized on first use so ``--help`` and ``--version`` never
    trigger database access.
    """

    def __init__(self, settings: BoardSettings) -> None:
        self.settings = settings
        self._board: Board | None = None

        from focusboard.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def board(self) -> Board:
        """The board instance (created lazily on first access)."""
        if self._board is None:
            from focusboard.infrastructure.board import Board

            self._board = Board(self.settings)
            self._board.init_event_bus(sync=self.settings.sync)
        return self._board

    def run(self, coro: Coroutine[Any, Any, ServiceResult]) -> ServiceResult:
        """Drive an async service call to completion on a fresh event loop."""
        return asyncio.run(coro)

    def close(self) -> None:
        """Flush plugin hooks and release the database, if opened."""
        if self._board is not None:
            self._board.close()
            self._board = None

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
