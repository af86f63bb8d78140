"""CheckService — audit and repair of board ordering.

Single command following the linter pattern. Categories: card order,
list order, focus and catch-all constraints, ID format. With ``fix=True``
offending lists and zones are renumbered densely in one transaction,
ordered by ``(position, created_at, id)``. Repairs are logged to the
change feed like any other write.
"""

from __future__ import annotations

from itertools import groupby
from typing import TYPE_CHECKING, Any

from sqlalchemy import select, update

from focusboard.domain.ids import ID_PATTERNS
from focusboard.domain.models import ChangeKind, EntityType, utc_now
from focusboard.domain.sequencer import is_dense, renumber
from focusboard.infrastructure.change_feed import record_change
from focusboard.infrastructure.database.schema import containers, items
from focusboard.services.base import BaseService
from focusboard.services.contracts import CheckResultData, dump_validated
from focusboard.services.result import ServiceResult

if TYPE_CHECKING:
    from sqlalchemy import Connection, Row

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"

CAT_CARD_ORDER = "card_order"
CAT_LIST_ORDER = "list_order"
CAT_FOCUS = "focus"
CAT_CATCH_ALL = "catch_all"
CAT_IDS = "id_format"

FIX_RENUMBER = "renumber"


class CheckService(BaseService):
    """Reports (and optionally repairs) ordering invariant violations."""

    def check(self, zone_id: str | None = None, *, fix: bool = False) -> ServiceResult:
        """Scan one zone, or every zone, for ordering problems."""
        issues: list[dict[str, Any]] = []
        fixed: list[str] = []

        with self._board.engine.begin() as conn:
            list_rows = self._list_rows(conn, zone_id)
            card_rows = self._card_rows(conn, [r.id for r in list_rows])

            issues.extend(self._check_list_order(list_rows))
            issues.extend(self._check_card_order(card_rows))
            issues.extend(self._check_zone_flags(list_rows))
            issues.extend(self._check_ids(list_rows, card_rows))

            if fix:
                fixed.extend(self._fix_list_order(conn, list_rows))
                fixed.extend(self._fix_card_order(conn, card_rows, list_rows))

        return ServiceResult(
            ok=True,
            op="check",
            data=dump_validated(
                CheckResultData, {"count": len(issues), "issues": issues, "fixed": fixed}
            ),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def _list_rows(conn: Connection, zone_id: str | None) -> list[Row[Any]]:
        stmt = select(containers).order_by(
            containers.c.grouping_id,
            containers.c.position,
            containers.c.created_at,
            containers.c.id,
        )
        if zone_id is not None:
            stmt = stmt.where(containers.c.grouping_id == zone_id)
        return list(conn.execute(stmt).fetchall())

    @staticmethod
    def _card_rows(conn: Connection, list_ids: list[str]) -> list[Row[Any]]:
        if not list_ids:
            return []
        return list(
            conn.execute(
                select(items)
                .where(items.c.container_id.in_(list_ids))
                .order_by(items.c.container_id, items.c.position, items.c.created_at, items.c.id)
            ).fetchall()
        )

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def _check_list_order(self, list_rows: list[Row[Any]]) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []
        for zone_id, rows in groupby(list_rows, key=lambda r: r.grouping_id):
            positions = [r.position for r in rows]
            if not is_dense(positions):
                issues.append(
                    {
                        "category": CAT_LIST_ORDER,
                        "severity": SEVERITY_ERROR,
                        "entity_id": zone_id,
                        "message": f"List ranks {positions} are not 0..{len(positions) - 1}",
                        "fix_action": FIX_RENUMBER,
                    }
                )
        return issues

    def _check_card_order(self, card_rows: list[Row[Any]]) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []
        for list_id, rows in groupby(card_rows, key=lambda r: r.container_id):
            positions = [r.position for r in rows]
            if not is_dense(positions):
                issues.append(
                    {
                        "category": CAT_CARD_ORDER,
                        "severity": SEVERITY_ERROR,
                        "entity_id": list_id,
                        "message": f"Card positions {positions} are not 0..{len(positions) - 1}",
                        "fix_action": FIX_RENUMBER,
                    }
                )
        return issues

    def _check_zone_flags(self, list_rows: list[Row[Any]]) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []
        for zone_id, group in groupby(list_rows, key=lambda r: r.grouping_id):
            rows = list(group)
            focused = [r.id for r in rows if r.is_focused]
            catch_all = [r.id for r in rows if r.is_catch_all]
            if len(focused) > 1:
                issues.append(
                    {
                        "category": CAT_FOCUS,
                        "severity": SEVERITY_ERROR,
                        "entity_id": zone_id,
                        "message": f"Multiple focused lists: {', '.join(focused)}",
                        "fix_action": None,
                    }
                )
            if len(catch_all) > 1:
                issues.append(
                    {
                        "category": CAT_CATCH_ALL,
                        "severity": SEVERITY_ERROR,
                        "entity_id": zone_id,
                        "message": f"Multiple catch-all lists: {', '.join(catch_all)}",
                        "fix_action": None,
                    }
                )
            elif not catch_all:
                issues.append(
                    {
                        "category": CAT_CATCH_ALL,
                        "severity": SEVERITY_WARNING,
                        "entity_id": zone_id,
                        "message": "Focus zone has no catch-all list",
                        "fix_action": None,
                    }
                )
        return issues

    def _check_ids(
        self, list_rows: list[Row[Any]], card_rows: list[Row[Any]]
    ) -> list[dict[str, Any]]:
        issues: list[dict[str, Any]] = []
        for kind, rows in (("container", list_rows), ("item", card_rows)):
            pattern = ID_PATTERNS[kind]
            for row in rows:
                if not pattern.match(row.id):
                    issues.append(
                        {
                            "category": CAT_IDS,
                            "severity": SEVERITY_WARNING,
                            "entity_id": row.id,
                            "message": f"ID '{row.id}' does not match expected pattern for {kind}",
                            "fix_action": None,
                        }
                    )
        return issues

    # ------------------------------------------------------------------
    # Fixes
    # ------------------------------------------------------------------

    def _fix_list_order(self, conn: Connection, list_rows: list[Row[Any]]) -> list[str]:
        fixes: list[str] = []
        now = utc_now()
        for zone_id, group in groupby(list_rows, key=lambda r: r.grouping_id):
            for list_id, pos in renumber(list(group)).items():
                conn.execute(
                    update(containers)
                    .where(containers.c.id == list_id)
                    .values(position=pos, updated_at=now)
                )
                record_change(
                    conn, EntityType.CONTAINER, ChangeKind.UPDATE, list_id, zone_id, list_id
                )
                fixes.append(f"Moved list {list_id} to rank {pos}")
        return fixes

    def _fix_card_order(
        self, conn: Connection, card_rows: list[Row[Any]], list_rows: list[Row[Any]]
    ) -> list[str]:
        fixes: list[str] = []
        now = utc_now()
        zone_of = {r.id: r.grouping_id for r in list_rows}
        for list_id, group in groupby(card_rows, key=lambda r: r.container_id):
            for card_id, pos in renumber(list(group)).items():
                conn.execute(
                    update(items).where(items.c.id == card_id).values(position=pos, updated_at=now)
                )
                record_change(
                    conn, EntityType.ITEM, ChangeKind.UPDATE, card_id, zone_of[list_id], list_id
                )
                fixes.append(f"Moved card {card_id} to position {pos}")
        return fixes
