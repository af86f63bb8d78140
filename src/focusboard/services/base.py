"""BaseService — shared foundation for focusboard services.

Every service receives a :class:`Board` at construction time. The Board
provides the stores, the index, the reconciler, and the event bus.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from focusboard.infrastructure.board import Board

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class BoardService(BaseService):
            async def create_card(self, list_id: str, title: str) -> ServiceResult:
                outcome = await self._board.reconciler.insert(...)
                ...
    """

    def __init__(self, board: Board) -> None:
        self._board = board

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a lifecycle event. No-op if event bus not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._board.event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
