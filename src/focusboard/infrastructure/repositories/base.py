"""Shared plumbing for the SQLite stores."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError

from focusboard.domain.errors import StoreError

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


class SqlStore:
    """Base for stores: owns the engine and runs blocking work off the event loop."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    async def _run[T](self, fn: Callable[..., T], *args: Any) -> T:
        """Run *fn* in a worker thread, translating database failures to StoreError."""
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as exc:
            msg = f"{fn.__name__.lstrip('_')} failed: {exc}"
            raise StoreError(msg) from exc


def pick_fields(fields: dict[str, Any], allowed: frozenset[str], kind: str) -> dict[str, Any]:
    """Return *fields* if every key is writable, else raise StoreError."""
    rejected = sorted(set(fields) - allowed)
    if rejected:
        msg = f"Cannot update {kind} field(s): {', '.join(rejected)}"
        raise StoreError(msg)
    return dict(fields)
