"""WAL-backed lifecycle event dispatch via pluggy.

Each event is written to ``event_wal`` before its hook runs, so a card
move that was persisted always leaves a trace even if a plugin crashes
or the process exits mid-dispatch. ``drain()`` retries what is left.

Hooks run on a small thread pool by default, or inline with ``sync=True``.
Plugins never see the board index and never run on the event loop.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update

from focusboard.domain.models import utc_now
from focusboard.infrastructure.database.schema import event_wal

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from focusboard.plugins.manager import PluginManager

logger = logging.getLogger(__name__)

PENDING = "pending"
COMPLETED = "completed"
FAILED = "failed"
DEAD_LETTER = "dead_letter"


class EventBus:
    """Dispatch board lifecycle hooks with a write-ahead log.

    Parameters:
        engine: SQLAlchemy engine with the ``event_wal`` table.
        plugin_manager: Loaded PluginManager for hook dispatch.
        sync: Run hooks inline (tests, ``--sync``).
        max_retries: Attempts before an event is marked ``dead_letter``.
        max_workers: Thread pool size for async dispatch.
    """

    def __init__(
        self,
        engine: Engine,
        plugin_manager: PluginManager,
        *,
        sync: bool = False,
        max_retries: int = 3,
        max_workers: int = 2,
    ) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._sync = sync
        self._max_retries = max_retries
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=max_workers)
        )
        self._futures: list[Future[None]] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> int:
        """Log *hook_name* to the WAL, then run it. Returns the WAL row id."""
        event_id = self._write_wal(hook_name, payload)

        if self._executor is None:
            self._execute_hook(event_id, hook_name, payload)
        else:
            future = self._executor.submit(self._execute_hook, event_id, hook_name, payload)
            self._futures.append(future)

        return event_id

    def drain(self) -> list[dict[str, Any]]:
        """Retry pending and failed events synchronously.

        Returns ``{id, hook_name, status}`` for each retried event.
        """
        self._wait_futures()

        with self._engine.connect() as conn:
            rows = conn.execute(
                select(event_wal.c.id, event_wal.c.hook_name, event_wal.c.payload)
                .where(event_wal.c.status.in_([PENDING, FAILED]))
                .order_by(event_wal.c.id)
            ).fetchall()

        results: list[dict[str, Any]] = []
        for row in rows:
            self._execute_hook(row.id, row.hook_name, json.loads(row.payload))
            results.append(
                {"id": row.id, "hook_name": row.hook_name, "status": self.status_of(row.id)}
            )
        return results

    def status_of(self, event_id: int) -> str:
        """Current WAL status of *event_id*."""
        with self._engine.connect() as conn:
            return str(
                conn.execute(select(event_wal.c.status).where(event_wal.c.id == event_id)).scalar_one()
            )

    def shutdown(self) -> None:
        """Wait for in-flight hooks and stop the thread pool."""
        self._wait_futures()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _write_wal(self, hook_name: str, payload: dict[str, Any]) -> int:
        with self._engine.begin() as conn:
            result = conn.execute(
                insert(event_wal).values(
                    hook_name=hook_name,
                    payload=json.dumps(payload),
                    status=PENDING,
                    retries=0,
                    created=utc_now(),
                )
            )
            assert result.lastrowid is not None
            return result.lastrowid

    def _execute_hook(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> None:
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            self._mark_completed(event_id)
            return

        try:
            hook_fn(**payload)
        except Exception as exc:
            logger.warning("Hook %s failed: %s", hook_name, exc)
            self._mark_failed(event_id, str(exc))
        else:
            self._mark_completed(event_id)

    def _mark_completed(self, event_id: int) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == event_id)
                .values(status=COMPLETED, completed=utc_now())
            )

    def _mark_failed(self, event_id: int, error: str) -> None:
        """Count the failure; dead-letter the event once retries run out."""
        with self._engine.begin() as conn:
            retries = conn.execute(
                select(event_wal.c.retries).where(event_wal.c.id == event_id)
            ).scalar_one()
            retries += 1
            status = DEAD_LETTER if retries >= self._max_retries else FAILED
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == event_id)
                .values(
                    status=status,
                    error=error,
                    retries=retries,
                    completed=utc_now() if status == DEAD_LETTER else None,
                )
            )

    def _wait_futures(self) -> None:
        for future in self._futures:
            try:
                future.result(timeout=30)
            except Exception:
                logger.debug("Hook future raised after dispatch", exc_info=True)
        self._futures.clear()
