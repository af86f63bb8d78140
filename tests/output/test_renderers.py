"""Tests for operation-specific Rich renderers."""

from focusboard.output.renderers import render_quiet, render_result
from focusboard.services.result import ServiceError, ServiceResult

# ── Helpers ───────────────────────────────────────────────────────────


def _ok(op: str, **data: object) -> ServiceResult:
    return ServiceResult(ok=True, op=op, data=dict(data))


def _err(op: str, code: str, message: str, **detail: object) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=dict(detail)),
    )


def _flat(output: str) -> str:
    return " ".join(output.split())


def _board() -> ServiceResult:
    return _ok(
        "show_zone",
        id="zone_00000001",
        title="Work",
        description=None,
        lists=[
            {
                "id": "list_00000001",
                "title": "Don't Forget",
                "position": 0,
                "is_focused": False,
                "is_catch_all": True,
                "cards": [],
            },
            {
                "id": "list_00000002",
                "title": "Doing",
                "position": 1,
                "is_focused": True,
                "is_catch_all": False,
                "cards": [
                    {"id": "card_00000001", "title": "Write [draft]", "position": 0},
                    {"id": "card_00000002", "title": "Review", "position": 1},
                ],
            },
        ],
    )


# ── Error rendering ──────────────────────────────────────────────────


class TestErrorRenderer:
    def test_basic_error(self) -> None:
        output = render_result(_err("move_card", "WRITE_FAILED", "Move not saved"))
        assert "ERROR" in output
        assert "move_card" in output
        assert "[WRITE_FAILED]" in output
        assert "Move not saved" in output

    def test_verbose_shows_detail(self) -> None:
        result = _err("move_card", "WRITE_FAILED", "Bad", failed_ids=["card_00000001"])
        output = render_result(result, verbose=True)
        assert "detail" in output
        assert "failed_ids" in output

    def test_no_error_object(self) -> None:
        output = render_result(ServiceResult(ok=False, op="test"))
        assert "Unknown error" in output


# ── Mutations ────────────────────────────────────────────────────────


class TestMutationRenderer:
    def test_move_card(self) -> None:
        result = _ok(
            "move_card",
            id="card_00000001",
            from_list_id="list_00000001",
            to_list_id="list_00000002",
            position=0,
            renumbered=["card_00000002", "card_00000003"],
            batch=4,
        )
        output = _flat(render_result(result))
        assert output.startswith("OK")
        assert "to_list_id: list_00000002" in output
        assert "renumbered: 2" in output
        assert "card_00000003" not in output

    def test_verbose_lists_renumbered(self) -> None:
        result = _ok("delete_card", id="card_00000001", renumbered=["card_00000003"])
        assert "- card_00000003" in render_result(result, verbose=True)

    def test_create_zone(self) -> None:
        result = _ok("create_zone", id="zone_00000001", title="Work", catch_all_id="list_00000001")
        assert "catch_all_id: list_00000001" in _flat(render_result(result))


# ── Board views ──────────────────────────────────────────────────────


class TestBoardRenderer:
    def test_columns_in_rank_order(self) -> None:
        output = render_result(_board())
        assert output.index("Don't Forget") < output.index("Doing")
        assert output.index("Write") < output.index("Review")

    def test_focused_list_marked(self) -> None:
        assert "* Doing" in render_result(_board())

    def test_titles_are_not_markup(self) -> None:
        assert "Write [draft]" in render_result(_board())

    def test_verbose_shows_positions(self) -> None:
        output = render_result(_board(), verbose=True)
        assert "0. Write [draft] (card_00000001)" in output

    def test_zone_list(self) -> None:
        result = _ok(
            "list_zones",
            count=2,
            items=[
                {"id": "zone_00000001", "title": "Work"},
                {"id": "zone_00000002", "title": "Home"},
            ],
        )
        output = render_result(result)
        assert "zone_00000002" in output
        assert "2 focus zones" in output


class TestCheckRenderer:
    def test_clean(self) -> None:
        output = render_result(_ok("check", count=0, issues=[], fixed=[]))
        assert "No issues found" in output

    def test_grouped_issues(self) -> None:
        result = _ok(
            "check",
            count=2,
            issues=[
                {
                    "category": "card_order",
                    "severity": "error",
                    "entity_id": "list_00000002",
                    "message": "Card positions [0, 2] are not 0..1",
                    "fix_action": "renumber",
                },
                {
                    "category": "catch_all",
                    "severity": "warning",
                    "entity_id": "zone_00000001",
                    "message": "Focus zone has no catch-all list",
                    "fix_action": None,
                },
            ],
            fixed=["Moved card card_00000003 to position 1"],
        )
        output = render_result(result, verbose=True)
        assert "card_order" in output
        assert "[list_00000002]" in output
        assert "1 errors, 1 warnings" in output
        assert "1 fixes applied" in output
        assert "fix: renumber" in output


class TestWatchRenderer:
    def test_summary(self) -> None:
        result = _ok(
            "watch",
            zone_ids=["zone_00000001"],
            events=3,
            cursor=12,
            refetched=["list_00000002"] * 3,
            stale_reads=[{"item_id": "card_00000001", "container_id": "list_00000002"}],
        )
        output = _flat(render_result(result))
        assert "events: 3" in output
        assert "refetched: 3" in output
        assert "stale card_00000001" in output


class TestGenericRenderer:
    def test_unknown_op(self) -> None:
        output = _flat(render_result(_ok("load_zone", id="zone_00000001", lists=3, cards=7)))
        assert "OK" in output
        assert "cards: 7" in output


# ── Quiet mode ───────────────────────────────────────────────────────


class TestRenderQuiet:
    def test_error(self) -> None:
        assert render_quiet(_err("move_card", "INVALID_MOVE", "nope")) == "ERROR: move_card: nope"

    def test_items_render_ids(self) -> None:
        result = _ok("list_zones", items=[{"id": "zone_00000001"}, {"id": "zone_00000002"}])
        assert render_quiet(result) == "zone_00000001\nzone_00000002"

    def test_id(self) -> None:
        assert render_quiet(_ok("create_card", id="card_00000001")) == "card_00000001"

    def test_fallback(self) -> None:
        assert render_quiet(_ok("check", count=0)) == "OK: check"
