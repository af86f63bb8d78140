"""Rich Console factory and theme for focusboard output.

Creates Console instances that render to a StringIO buffer, preserving
the ``format_result() -> str`` contract. In non-TTY environments
(tests, pipes) Rich automatically disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

BOARD_THEME = Theme(
    {
        "fb.ok": "bold green",
        "fb.error": "bold red",
        "fb.warning": "bold yellow",
        "fb.op": "bold cyan",
        "fb.key": "dim",
        "fb.id": "bold blue",
        "fb.title": "bold",
        "fb.position": "magenta",
        "fb.focus": "bold yellow",
        "fb.catch_all": "italic cyan",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer.

    Args:
        no_color: Disable ANSI escape codes (used in tests).
        width: Override terminal width (useful for consistent test output).
    """
    return Console(
        file=StringIO(),
        theme=BOARD_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_list(*, is_focused: bool, is_catch_all: bool) -> str:
    """Return the Rich style name for a list header."""
    if is_focused:
        return "fb.focus"
    if is_catch_all:
        return "fb.catch_all"
    return "fb.title"
