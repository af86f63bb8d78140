"""SQLite-backed stores for focus zones, lists, and cards.

Each store exposes an async interface; the blocking SQLAlchemy work runs
in a worker thread so concurrent writes from one batch overlap.
"""

from focusboard.infrastructure.repositories.containers import SqlContainerStore
from focusboard.infrastructure.repositories.groupings import SqlGroupingStore
from focusboard.infrastructure.repositories.items import SqlItemStore

__all__ = ["SqlContainerStore", "SqlGroupingStore", "SqlItemStore"]
