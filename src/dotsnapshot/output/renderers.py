"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). Renderers are
dispatched by ``result.op`` in :func:`render_result`; unknown ops fall
through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from dotsnapshot.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from dotsnapshot.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
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
    if result.op == "list_snapshots":
        return "\n".join(item["name"] for item in result.data.get("snapshots", []))
    if result.op == "snapshot":
        return str(result.data.get("snapshot_dir", ""))
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="ds.ok")
    op = Text(f"  {result.op}", style="ds.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="ds.key")
    if key.endswith("_name"):
        v = Text(str(value), style="ds.name")
    elif key.endswith("_dir") or key.endswith("path"):
        v = Text(str(value), style="ds.path")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _mark(success: bool) -> Text:
    return Text("ok", style="ds.ok") if success else Text("failed", style="ds.error")


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="ds.error")
    op = Text(f"  {result.op}", style="ds.op")
    console.print(label, op, Text(": "), msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Snapshot / restore ────────────────────────────────────────────────


def _render_snapshot(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Status, snapshot location, then one row per plugin."""
    _status_line(console, result)
    _field(console, "snapshot_name", result.data.get("snapshot_name", ""))
    _field(console, "snapshot_dir", result.data.get("snapshot_dir", ""))

    plugins = result.data.get("plugins", [])
    if plugins:
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("Plugin", style="ds.name", no_wrap=True)
        table.add_column("Status")
        table.add_column("Output", style="ds.path")
        if verbose:
            table.add_column("Checksum", style="dim")
        for item in plugins:
            status = _mark(item["success"])
            if item.get("reused"):
                status = Text("reused", style="ds.reused")
            detail = item.get("output_path") or item.get("error_message") or ""
            row: list[Any] = [item["plugin_name"], status, str(detail)]
            if verbose:
                row.append(item.get("checksum", "")[:12])
            table.add_row(*row)
        console.print(table)


def _render_restore(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "snapshot_name", result.data.get("snapshot_name", ""))
    if result.data.get("dry_run"):
        _field(console, "mode", "dry run (nothing was changed)")

    results = result.data.get("results", [])
    if not results:
        console.print("  No plugins restored.")
    else:
        table = Table(show_header=True, pad_edge=False, expand=False)
        table.add_column("Plugin", style="ds.name", no_wrap=True)
        table.add_column("Status")
        table.add_column("Files", justify="right")
        table.add_column("Backup / error", style="ds.path")
        for item in results:
            detail = item.get("error_message") or item.get("backup_path") or ""
            table.add_row(
                item["plugin_name"],
                _mark(item["success"]),
                str(item.get("restored_files", 0)),
                str(detail),
            )
        console.print(table)


# ── Listings ──────────────────────────────────────────────────────────


def _render_snapshot_list(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    snapshots = result.data.get("snapshots", [])
    if not snapshots:
        console.print("No snapshots found.")
        return

    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Name", style="ds.name", no_wrap=True)
    table.add_column("Created")
    table.add_column("Size", justify="right")
    table.add_column("Plugins", justify="right")
    if verbose:
        table.add_column("Path", style="ds.path")
    for item in snapshots:
        row = [item["name"], item["created_at"], item["size"], str(item["plugin_count"])]
        if verbose:
            row.append(item["path"])
        table.add_row(*row)
    console.print(table)


def _render_plugin_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    plugins = result.data.get("plugins", [])
    if not plugins:
        console.print("No plugins registered.")
        return

    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Plugin", style="ds.name", no_wrap=True)
    table.add_column("Output", style="ds.path")
    table.add_column("Description")
    for item in plugins:
        table.add_row(item["name"], item["output"], item.get("description", ""))
    console.print(table)


def _render_clean(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    verb = "would delete" if result.data.get("dry_run") else "deleted"
    deleted = result.data.get("deleted", [])
    if not deleted:
        console.print("  Nothing to clean.")
    for name in deleted:
        console.print(Text(f"  {verb}: ", style="ds.key"), Text(name, style="ds.name"))


# ── Hooks ─────────────────────────────────────────────────────────────


def _render_hooks_list(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    hooks = result.data.get("hooks", [])
    if not hooks:
        console.print("No hooks configured.")
        return

    table = Table(show_header=True, pad_edge=False, expand=False)
    table.add_column("Scope", style="ds.name", no_wrap=True)
    table.add_column("Phase", style="ds.op")
    table.add_column("Action")
    for item in hooks:
        table.add_row(item["scope"], item["phase"], item["description"])
    console.print(table)
    _field(console, "scripts_dir", result.data.get("scripts_dir", ""))


def _render_hooks_validate(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    _status_line(console, result)
    _field(console, "checked", result.data.get("checked", 0))
    for item in result.data.get("invalid", []):
        console.print(
            Text("  invalid ", style="ds.error"),
            f"{item['scope']} {item['phase']} {item['description']}: {item['error']}",
        )


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, json.dumps(value, separators=(",", ":")))
        else:
            _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "snapshot": _render_snapshot,
    "restore": _render_restore,
    "list_snapshots": _render_snapshot_list,
    "list_plugins": _render_plugin_list,
    "clean": _render_clean,
    "hooks_list": _render_hooks_list,
    "hooks_validate": _render_hooks_validate,
}
