"""Shared Click building blocks for focusboard commands.

- :class:`FocusCommand` / :class:`FocusGroup` accept an ``examples``
  string and expose it through an eager ``--examples`` flag, so ``--help``
  stays short.
- :class:`EntityId` checks board IDs (``zone_…``, ``list_…``, ``card_…``)
  at parse time. A mistyped ID is a usage error (exit 2) and never opens
  the database.
"""

from __future__ import annotations

from typing import Any

import click

from focusboard.domain.ids import ID_PREFIXES, validate_id


class EntityId(click.ParamType):
    """A board entity ID of one kind (``grouping``, ``container`` or ``item``)."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self.name = f"{ID_PREFIXES[kind]}ID"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> str:
        text = str(value).strip()
        if not validate_id(text, self.kind):
            expected = f"{ID_PREFIXES[self.kind]}<8 hex digits>"
            self.fail(f"{value!r} is not a valid ID (expected {expected})", param, ctx)
        return text


ZONE_ID = EntityId("grouping")
LIST_ID = EntityId("container")
CARD_ID = EntityId("item")


def _examples_option(examples: str) -> click.Option:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    return click.Option(
        ["--examples"],
        is_flag=True,
        expose_value=False,
        is_eager=True,
        callback=show_examples,
        help="Show usage examples.",
    )


class FocusCommand(click.Command):
    """Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(examples))


class FocusGroup(click.Group):
    """Group whose subcommands are :class:`FocusCommand` by default."""

    command_class = FocusCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            self.params.append(_examples_option(examples))
