"""Store protocols and typed payload contracts for the service boundary.

The protocols describe what the services need from persistence; the SQL
stores satisfy them structurally, and tests can substitute fakes. The
payload models validate result shapes before they leave the service
layer so key regressions fail fast in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from focusboard.domain.models import Container, Item
    from focusboard.infrastructure.change_feed import ChangeHandler, Subscription


# ---------------------------------------------------------------------------
# Persistence seams
# ---------------------------------------------------------------------------


class ItemStore(Protocol):
    """Row-level card persistence. Each call may fail independently."""

    async def insert(self, item: Item) -> Item: ...

    async def update(self, item_id: str, fields: dict[str, Any]) -> None: ...

    async def delete(self, item_id: str) -> None: ...

    async def get(self, item_id: str) -> Item | None: ...

    async def list_by_container(self, container_id: str) -> list[Item]: ...

    async def list_by_grouping(self, grouping_id: str) -> list[Item]: ...


class ContainerStore(Protocol):
    """Row-level list persistence."""

    async def insert(self, container: Container) -> Container: ...

    async def update(self, container_id: str, fields: dict[str, Any]) -> None: ...

    async def delete(self, container_id: str) -> None: ...

    async def delete_and_close_gap(self, container_id: str, ranks: dict[str, int]) -> None: ...

    async def get(self, container_id: str) -> Container | None: ...

    async def list_by_grouping(self, grouping_id: str) -> list[Container]: ...

    async def toggle_emphasis(self, container_id: str) -> Container: ...


class ChangeFeed(Protocol):
    """Source of per-zone change notifications."""

    def subscribe(self, grouping_id: str, handler: ChangeHandler) -> Subscription: ...

    async def poll(self) -> int: ...


# ---------------------------------------------------------------------------
# Payload contracts
# ---------------------------------------------------------------------------


def dump_validated[T: BaseModel](model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class CardRow(BaseModel):
    """One card as shown on the board."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    position: int
    description: str | None = None


class ListRow(BaseModel):
    """One list with its ordered cards."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str
    position: int
    is_focused: bool
    is_catch_all: bool
    cards: list[CardRow]


class ZoneBoardData(BaseModel):
    """Payload contract for ``BoardService.show_zone``."""

    id: str
    title: str
    description: str | None = None
    lists: list[ListRow]


class MoveCardData(BaseModel):
    """Payload contract for ``BoardService.move_card``."""

    id: str
    from_list_id: str
    to_list_id: str
    position: int
    renumbered: list[str]
    batch: int


class CheckIssue(BaseModel):
    """One ordering finding returned by ``CheckService.check``."""

    model_config = ConfigDict(extra="allow")

    category: str
    severity: Literal["warning", "error"]
    entity_id: str | None = None
    message: str
    fix_action: str | None = None


class CheckResultData(BaseModel):
    """Payload contract for ``CheckService.check``."""

    count: int
    issues: list[CheckIssue]
    fixed: list[str]
