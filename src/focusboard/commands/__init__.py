"""Subcommand modules for focusboard.

Provides register_commands() which uses deferred imports to keep
``focusboard --help`` fast as the codebase grows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    3 groups (have subcommands) + 2 standalone commands.
    """
    # --- Groups ---
    from focusboard.commands.card import card
    from focusboard.commands.lists import list_group
    from focusboard.commands.zone import zone

    cli.add_command(zone)
    cli.add_command(list_group)
    cli.add_command(card)

    # --- Standalone commands ---
    from focusboard.commands.check import check
    from focusboard.commands.watch import watch

    cli.add_command(check)
    cli.add_command(watch)
