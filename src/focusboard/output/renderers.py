"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from focusboard.output.console import create_console, get_output, style_for_list

if TYPE_CHECKING:
    from rich.console import Console

    from focusboard.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if items and isinstance(items, list):
        return "\n".join(str(item["id"]) for item in items if isinstance(item, dict) and "id" in item)
    if "id" in result.data:
        return str(result.data["id"])
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="fb.ok")
    op = Text(f"  {result.op}", style="fb.op")
    console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="fb.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="fb.id")
    elif key == "title":
        v = Text(str(value), style="fb.title")
    elif key == "position":
        v = Text(str(value), style="fb.position")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v)


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(f"    {k}: {v}")


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="fb.error")
    op = Text(f"  {result.op}", style="fb.op")
    code = Text(f" [{err.code}]" if err else "", style="fb.key")
    console.print(label, op, code, Text(f": {msg}"))

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Mutation renderers ────────────────────────────────────────────────


def _render_mutation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render create/delete/move/focus results."""
    _status_line(console, result)
    mutation_keys = (
        "id",
        "zone_id",
        "list_id",
        "from_list_id",
        "to_list_id",
        "catch_all_id",
        "title",
        "description",
        "position",
        "is_focused",
        "cards_removed",
    )
    for key in mutation_keys:
        if key in result.data:
            _field(console, key, result.data[key])
    renumbered = result.data.get("renumbered")
    if renumbered:
        _field(console, "renumbered", len(renumbered))
        if verbose:
            for rid in renumbered:
                console.print(f"    - {rid}")
    if verbose:
        _render_meta(console, result)


# ── Board renderers ───────────────────────────────────────────────────


def _render_zones(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_zones as a table."""
    items = result.data.get("items", [])
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="fb.id", no_wrap=True)
    table.add_column("Title", style="fb.title")
    if verbose:
        table.add_column("Created", style="dim")
    for zone in items:
        row = [str(zone.get("id", "")), str(zone.get("title", ""))]
        if verbose:
            row.append(str(zone.get("created_at", "")))
        table.add_row(*row)
    console.print(table)
    console.print(f"\n{result.data.get('count', len(items))} focus zones")


def _render_board(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render show_zone as a kanban table: one column per list, in rank order."""
    d = result.data
    lists = d.get("lists", [])
    title = Text(str(d.get("title", "")), style="fb.title")
    console.print(title, Text(str(d.get("id", "")), style="fb.id"))

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    for lst in lists:
        header = str(lst.get("title", ""))
        if lst.get("is_focused"):
            header = f"* {header}"
        style = style_for_list(
            is_focused=bool(lst.get("is_focused")), is_catch_all=bool(lst.get("is_catch_all"))
        )
        table.add_column(Text(header), header_style=style)

    depth = max((len(lst.get("cards", [])) for lst in lists), default=0)
    for row_index in range(depth):
        row: list[Text] = []
        for lst in lists:
            cards = lst.get("cards", [])
            if row_index < len(cards):
                card = cards[row_index]
                cell = str(card.get("title", ""))
                if verbose:
                    cell = f"{card.get('position')}. {cell} ({card.get('id')})"
                row.append(Text(cell))
            else:
                row.append(Text(""))
        table.add_row(*row)
    console.print(table)

    if verbose:
        for lst in lists:
            console.print(f"  {lst.get('position')}: {lst.get('id')}  {lst.get('title')}")


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render check results with issues grouped by category."""
    issues = result.data.get("issues", [])
    fixed = result.data.get("fixed", [])
    count = result.data.get("count", len(issues))

    if count == 0:
        console.print("[fb.ok]OK[/fb.ok]  No issues found.")
        return

    severity_styles = {"error": "fb.error", "warning": "fb.warning"}

    by_category: dict[str, list[dict[str, Any]]] = {}
    for issue in issues:
        cat = str(issue.get("category", "unknown"))
        by_category.setdefault(cat, []).append(issue)

    for cat, cat_issues in by_category.items():
        console.print(f"\n[bold]{cat}[/bold]")
        for issue in cat_issues:
            sev = str(issue.get("severity", "warning"))
            style = severity_styles.get(sev, "")
            prefix = f"[{style}]{sev}[/{style}]" if style else sev
            entity_id = issue.get("entity_id")
            eid = f" \\[{entity_id}]" if entity_id else ""
            console.print(f"  {prefix}{eid}: {issue.get('message', '')}")
            if verbose and issue.get("fix_action"):
                console.print(f"    fix: {issue['fix_action']}")

    errors = sum(1 for i in issues if i.get("severity") == "error")
    console.print(f"\n{errors} errors, {count - errors} warnings")
    if fixed:
        console.print(f"{len(fixed)} fixes applied")
        if verbose:
            for fix in fixed:
                console.print(f"  - {fix}")


def _render_watch(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a change-feed polling summary."""
    _status_line(console, result)
    for key in ("zone_ids", "events", "cursor"):
        if key in result.data:
            _field(console, key, result.data[key])
    refetched = result.data.get("refetched", [])
    _field(console, "refetched", len(refetched))
    for stale in result.data.get("stale_reads", []):
        console.print(f"  [fb.warning]stale[/fb.warning] {stale.get('item_id')}: {stale}")


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Zones
    "create_zone": _render_mutation,
    "list_zones": _render_zones,
    "show_zone": _render_board,
    # Lists
    "create_list": _render_mutation,
    "delete_list": _render_mutation,
    "move_list": _render_mutation,
    "toggle_focus": _render_mutation,
    "rename_list": _render_mutation,
    # Cards
    "create_card": _render_mutation,
    "move_card": _render_mutation,
    "delete_card": _render_mutation,
    "update_card": _render_mutation,
    # Maintenance
    "check": _render_check,
    "watch": _render_watch,
}
