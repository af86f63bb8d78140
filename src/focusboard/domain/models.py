"""Board records — groupings (focus zones), containers (lists), items (cards).

Records are frozen: every change produces a copy through
``model_copy(update=...)``. Titles and descriptions are opaque payload;
the ordering logic only ever reads ``id``, ``position`` and the owning
container/grouping IDs.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, Field

from focusboard.domain.ids import generate_id


def utc_now() -> str:
    """Current UTC time as ISO 8601."""
    return datetime.now(UTC).isoformat()


class EntityType(StrEnum):
    """Entity kinds reported by the change feed."""

    GROUPING = "grouping"
    CONTAINER = "container"
    ITEM = "item"


class ChangeKind(StrEnum):
    """Row-level change kinds reported by the change feed."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class Positioned(Protocol):
    """Anything the sequencer can order: an ID plus a 0-based position."""

    @property
    def id(self) -> str: ...

    @property
    def position(self) -> int: ...


class Grouping(BaseModel):
    """A focus zone — owns zero or more containers."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: generate_id("grouping"))
    title: str
    description: str | None = None
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)


class Container(BaseModel):
    """A list within a focus zone, ranked among its siblings by ``position``."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: generate_id("container"))
    grouping_id: str
    title: str
    position: int = Field(default=0, ge=0)
    is_focused: bool = False
    is_catch_all: bool = False
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)


class Item(BaseModel):
    """A card, owned by exactly one container."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=lambda: generate_id("item"))
    container_id: str
    title: str
    description: str | None = None
    position: int = Field(default=0, ge=0)
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)


# Fields the ordering engine is allowed to change on an item.
ITEM_ORDERING_FIELDS = frozenset({"container_id", "position"})


class ChangeEvent(BaseModel):
    """One change-feed notification: *what* changed and *which container* to refetch.

    ``container_id`` is None for grouping-level changes.
    """

    model_config = {"frozen": True}

    seq: int
    entity_type: EntityType
    change_kind: ChangeKind
    entity_id: str
    grouping_id: str
    container_id: str | None = None
