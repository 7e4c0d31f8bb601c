"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from merchctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from merchctl.services.result import ServiceResult


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

    d = result.data
    if d.get("outcome") == "conflict":
        return f"CONFLICT: {d['conflict']['occupant_id']}"
    if "entity" in d:
        return str(d["entity"].get("id", ""))

    ids: list[str] = []
    for scope in d.get("scopes", []):
        ids.extend(str(item["id"]) for item in scope.get("items", []))
    ids.extend(str(item["id"]) for item in d.get("items", []) if "id" in item)
    if ids:
        return "\n".join(ids)

    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    label = Text("OK", style="merch.ok")
    op = Text(f"  {result.op}", style="merch.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="merch.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="merch.id")
    elif key == "label":
        v = Text(str(value), style="merch.label")
    elif key == "order" or key.endswith("_order"):
        v = Text(str(value), style="merch.order")
    else:
        v = Text(str(value))
    console.print(k + v)


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"

    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


def _entity_table(items: list[dict[str, Any]], *, verbose: bool = False) -> Table:
    """Build a Rich Table for placed entities in display order."""
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Order", style="merch.order", justify="right")
    table.add_column("ID", style="merch.id", no_wrap=True)
    table.add_column("Label", style="merch.label")
    if verbose:
        table.add_column("Reference", style="dim")

    for item in items:
        row = [str(item.get("order", "")), str(item.get("id", "")), str(item.get("label", ""))]
        if verbose:
            row.append(str(item.get("reference_id", "")))
        table.add_row(*row)
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _resume_hint(detail: dict[str, Any]) -> str:
    hint = f"merchctl resume {detail.get('kind')} {detail.get('order')} "
    hint += f"--placed-id {detail['placed_id']}"
    if detail.get("variant"):
        flag = "--section" if detail.get("kind") == "menu-item" else "--variant"
        hint += f" {flag} {detail['variant']}"
    return hint


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="merch.error")
    op = Text(f"  {result.op}", style="merch.op")
    code = Text(f"  [{err.code}]" if err else "", style="dim")
    console.print(label, op, code, Text(f"  {msg}"))

    if err and err.detail.get("step") and not err.detail.get("rolled_back"):
        completed = ", ".join(err.detail.get("completed_steps") or []) or "none"
        console.print(f"  failed step: {err.detail['step']} (completed: {completed})")
        if err.detail.get("placed_id"):
            console.print(f"  resume with: {_resume_hint(err.detail)}")

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Placement renderers ───────────────────────────────────────────────


def _render_place(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render placed / conflict / displaced outcomes."""
    d = result.data
    outcome = d.get("outcome")

    if outcome == "conflict":
        conflict = d["conflict"]
        console.print(
            Text("CONFLICT", style="merch.conflict"),
            Text(
                f'  Order {conflict["desired_order"]} is already used by '
                f'"{conflict["occupant_label"]}"'
            ),
        )
        _field(console, "occupant_id", conflict["occupant_id"])
        console.print("  Re-run with --confirm to move it to the next free order.")
        return

    _status_line(console, result)
    entity = d.get("entity", {})
    for key in ("id", "label", "order", "variant"):
        if key in entity:
            _field(console, key, entity[key])
    if "moved_from" in d:
        _field(console, "moved_from", d["moved_from"])
    for moved in d.get("displaced", []):
        console.print(
            f'  displaced [merch.id]{moved["id"]}[/merch.id] "{escape(moved["label"])}": '
            f'{moved["from_order"]} -> {moved["to_order"]}'
        )
    if verbose:
        _render_meta(console, result)


def _render_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render one table per scope."""
    for scope in result.data.get("scopes", []):
        limit = scope.get("max_slots")
        capacity = f"{scope['count']}/{limit}" if limit is not None else str(scope["count"])
        console.print(f"[bold]{scope['scope']}[/bold]  ({capacity})")
        if scope["items"]:
            console.print(_entity_table(scope["items"], verbose=verbose))
        else:
            console.print("  (empty)")
    if verbose:
        _render_meta(console, result)


def _render_get(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render a single entity as a panel."""
    e = result.data["entity"]
    lines = [f"{k}: {e[k]}" for k in ("kind", "variant", "order", "reference_id") if e.get(k)]
    lines.extend(f"{k}: {v}" for k, v in sorted(e.get("payload", {}).items()))
    if verbose:
        lines.extend(f"{k}: {e[k]}" for k in ("created", "modified") if e.get(k))
    title = f"{e.get('id', '?')}: {e.get('label', '')}"
    panel = Panel(Text("\n".join(lines)), title=escape(title), border_style="dim", expand=False)
    console.print(panel)


def _render_conflict(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    conflict = result.data.get("conflict")
    if conflict is None:
        console.print(
            f"[merch.ok]FREE[/merch.ok]  Order {result.data['order']} "
            f"is free in {result.data['scope']}"
        )
        return
    console.print(
        Text("CONFLICT", style="merch.conflict"),
        Text(
            f'  Order {conflict["desired_order"]} is already used by '
            f'"{conflict["occupant_label"]}" ({conflict["occupant_id"]})'
        ),
    )


# ── Slot renderers ────────────────────────────────────────────────────


def _render_assignments(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    d = result.data
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Slot", style="merch.order", justify="right")
    table.add_column("Category", style="merch.id")
    table.add_column("Name", style="merch.label")
    limit = d.get("max_slots") or max((int(k) for k in d["slots"]), default=0)
    for index in range(1, limit + 1):
        key = str(index)
        table.add_row(key, d["slots"].get(key, ""), d.get("labels", {}).get(key, ""))
    console.print(table)


def _render_prune(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    d = result.data
    pruned = d.get("pruned", d)
    removed = pruned.get("removed", [])
    moves = pruned.get("moves", [])
    removed_items = pruned.get("removed_items", [])
    if "id" in d:
        _field(console, "id", d["id"])
    _field(console, "removed", len(removed))
    _field(console, "moved", len(moves))
    if removed_items:
        _field(console, "removed_items", len(removed_items))
    if verbose:
        for item in removed:
            console.print(f"    removed {item['id']} (slot {item['order']})")
        for item in removed_items:
            console.print(f"    removed {item['id']} (menu section {item.get('variant', '')})")
        for move in moves:
            console.print(f"    slot {move['from_index']} -> {move['to_index']} ({move['id']})")


# ── Check renderer ────────────────────────────────────────────────────


def _render_check(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render check results with issues grouped by category."""
    issues = result.data.get("issues", [])
    count = result.data.get("count", len(issues))
    fixes = result.data.get("fixes")

    if count == 0:
        console.print("[merch.ok]OK[/merch.ok]  No issues found.")
        return

    severity_styles = {"error": "merch.error", "warning": "merch.warning"}

    by_category: dict[str, list[dict[str, Any]]] = {}
    for issue in issues:
        by_category.setdefault(str(issue.get("category", "unknown")), []).append(issue)

    for cat, cat_issues in by_category.items():
        console.print(f"\n[bold]{cat}[/bold]")
        for issue in cat_issues:
            sev = str(issue.get("severity", "warning"))
            style = severity_styles.get(sev, "")
            prefix = f"[{style}]{sev}[/{style}]" if style else sev
            scope = escape(f"[{issue.get('scope', '')}]")
            console.print(f"  {prefix} {scope}: {escape(str(issue.get('message', '')))}")
            if verbose and issue.get("fix_action"):
                console.print(f"    fix: {issue['fix_action']}")

    errors = sum(1 for i in issues if i.get("severity") == "error")
    console.print(f"\n{errors} errors, {count - errors} warnings")

    if fixes is not None:
        console.print(f"\n[merch.ok]FIXED[/merch.ok]  {len(fixes)} repairs")
        for fix in fixes:
            console.print(f"  {escape(fix)}")


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


def _render_categories(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="merch.id", no_wrap=True)
    table.add_column("Name", style="merch.label")
    for item in result.data.get("items", []):
        table.add_row(str(item["id"]), str(item["name"]))
    console.print(table)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Placement
    "place": _render_place,
    "resume": _render_place,
    "list": _render_list,
    "get": _render_get,
    "find_conflict": _render_conflict,
    # Slots
    "assignments": _render_assignments,
    "prune": _render_prune,
    "remove_category": _render_prune,
    # Categories
    "list_categories": _render_categories,
    # Check
    "check": _render_check,
}
