"""Allow ``python -m focusboard``."""

from focusboard.cli import cli

cli()
