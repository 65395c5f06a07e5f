"""Command: create a snapshot."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from dotsnapshot.commands._base import DsCommand, split_csv

if TYPE_CHECKING:
    from dotsnapshot.commands._context import AppContext


@click.command(
    cls=DsCommand,
    examples="""\
  dotsnapshot snapshot
  dotsnapshot snapshot --plugins vscode,homebrew
  dotsnapshot snapshot --name before-upgrade --strict
  dotsnapshot --json snapshot -o ~/backups/snapshots""",
)
@click.option("--name", default=None, help="Snapshot name (default: UTC timestamp).")
@click.option(
    "-p",
    "--plugins",
    "plugins_csv",
    default=None,
    help="Comma-separated plugin names or categories (overrides include_plugins).",
)
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Snapshots directory (overrides output_dir).",
)
@click.option("--strict", is_flag=True, help="Fail if any plugin fails.")
@click.pass_obj
def snapshot(
    app: AppContext,
    name: str | None,
    plugins_csv: str | None,
    output_dir: Path | None,
    strict: bool,
) -> None:
    """Capture a snapshot of every selected plugin."""
    ops = app.operations(output_dir)
    app.emit(ops.snapshot(name=name, selectors=split_csv(plugins_csv), strict=strict))
