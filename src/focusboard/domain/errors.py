"""Error taxonomy for the ordering engine.

- :class:`InvalidMoveError` — local precondition violation, no writes issued.
- :class:`PersistenceWriteError` — the store rejected part of a batch; the
  index has been rolled back for every item no newer batch has touched.
- :class:`StoreError` — a store could not complete a read or write.
- :class:`StaleRead` — not an exception. A diagnostic record for a
  change-feed refetch that disagreed with an in-flight optimistic update.
"""

from __future__ import annotations

from dataclasses import dataclass, field


class BoardError(Exception):
    """Base class for all focusboard errors."""


class InvalidMoveError(BoardError):
    """A move, insert or removal was requested against state that does not allow it."""


class StoreError(BoardError):
    """A store read or write failed."""


class PersistenceWriteError(BoardError):
    """One or more writes in a batch were rejected by the store.

    Attributes:
        batch_seq: Sequence number of the failed batch.
        failed_ids: Item IDs whose writes raised.
        restored_ids: Item IDs rolled back to their pre-batch state.
        skipped_ids: Item IDs left alone because a newer batch touched them.
    """

    def __init__(
        self,
        message: str,
        *,
        batch_seq: int,
        failed_ids: list[str],
        restored_ids: list[str],
        skipped_ids: list[str],
    ) -> None:
        super().__init__(message)
        self.batch_seq = batch_seq
        self.failed_ids = failed_ids
        self.restored_ids = restored_ids
        self.skipped_ids = skipped_ids


@dataclass(frozen=True)
class StaleRead:
    """A refetched record that disagrees with an in-flight optimistic update."""

    item_id: str
    container_id: str
    expected: dict[str, object] = field(default_factory=dict)
    observed: dict[str, object] | None = None
