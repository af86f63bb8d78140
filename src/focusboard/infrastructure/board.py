"""Board — the single dependency injected into every service.

Owns the database engine, the three SQL stores, the change feed, and the
in-memory :class:`ContainerIndex`. The move reconciler and the event bus
are created lazily on first use.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from focusboard.domain.index import ContainerIndex
from focusboard.infrastructure.change_feed import SqlChangeFeed
from focusboard.infrastructure.database.engine import init_database
from focusboard.infrastructure.repositories import (
    SqlContainerStore,
    SqlGroupingStore,
    SqlItemStore,
)

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.engine import Engine

    from focusboard.config.settings import BoardSettings
    from focusboard.services.reconciler import MoveReconciler

logger = logging.getLogger(__name__)


class Board:
    """Wiring for one board database.

    Parameters:
        settings: Resolved settings; ``db_path`` decides the database file.
    """

    def __init__(self, settings: BoardSettings) -> None:
        self._settings = settings
        self._engine = init_database(
            settings.db_path, busy_timeout=settings.database.busy_timeout
        )
        self.groupings = SqlGroupingStore(self._engine)
        self.containers = SqlContainerStore(self._engine)
        self.items = SqlItemStore(self._engine)
        self.index = ContainerIndex()
        self._feed: SqlChangeFeed | None = None
        self._reconciler: MoveReconciler | None = None
        self._event_bus: Any | None = None

    @property
    def root(self) -> Path:
        """Board root directory."""
        return self._settings.board_root

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def settings(self) -> BoardSettings:
        return self._settings

    @property
    def feed(self) -> SqlChangeFeed:
        """Change feed positioned at the current tail of the log."""
        if self._feed is None:
            self._feed = SqlChangeFeed(self._engine, batch_size=self._settings.feed.batch_size)
        return self._feed

    @property
    def reconciler(self) -> MoveReconciler:
        """Move reconciler bound to this board's index and card store."""
        if self._reconciler is None:
            from focusboard.services.reconciler import MoveReconciler

            self._reconciler = MoveReconciler(self.index, self.items)
        return self._reconciler

    @property
    def event_bus(self) -> Any | None:
        """Plugin event bus, or None until :meth:`init_event_bus` runs."""
        return self._event_bus

    def init_event_bus(self, *, sync: bool = False, plugins: tuple[object, ...] = ()) -> None:
        """Initialize the plugin event bus.

        Discovers entry-point plugins, registers any *plugins* passed in,
        and wires up the EventBus. Called by AppContext when the board is
        first accessed.
        """
        from focusboard.plugins.event_bus import EventBus
        from focusboard.plugins.manager import PluginManager

        pm = PluginManager()
        pm.discover_and_load()
        for plugin in plugins:
            pm.register_plugin(plugin)

        self._event_bus = EventBus(
            self._engine,
            pm,
            sync=sync,
            max_retries=self._settings.events.max_retries,
            max_workers=self._settings.events.max_workers,
        )

    def close(self) -> None:
        """Retry failed hooks, wait for in-flight ones, and release the database.

        Each close gives every failed hook one more attempt; a hook that keeps
        failing is dead-lettered once it reaches ``events.max_retries``.
        """
        if self._event_bus is not None:
            retried = self._event_bus.drain()
            if retried:
                logger.debug("Retried %d pending hook event(s)", len(retried))
            self._event_bus.shutdown()
        self._engine.dispose()
        logger.debug("Closed board at %s", self.root)
