"""Commands: list snapshots and restore one."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from dotsnapshot.commands._base import DsCommand, split_csv
from dotsnapshot.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from dotsnapshot.commands._context import AppContext

_output_option = click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Snapshots directory (overrides output_dir).",
)


@click.command(
    "list",
    cls=DsCommand,
    examples="""\
  dotsnapshot list
  dotsnapshot list --plugins
  dotsnapshot -q list""",
)
@click.option("--plugins", "show_plugins", is_flag=True, help="List registered plugins instead.")
@_output_option
@click.pass_obj
def list_cmd(app: AppContext, show_plugins: bool, output_dir: Path | None) -> None:
    """List snapshots, newest first."""
    ops = app.operations(output_dir)
    app.emit(ops.list_plugins() if show_plugins else ops.list_snapshots())


@click.command(
    cls=DsCommand,
    examples="""\
  dotsnapshot restore 20240115_103000
  dotsnapshot restore --latest --dry-run
  dotsnapshot restore --latest --plugins vscode --backup
  dotsnapshot restore 20240115_103000 --target-dir /tmp/restore-test""",
)
@click.argument("name", required=False)
@click.option("--latest", is_flag=True, help="Restore the most recent snapshot.")
@click.option(
    "-p",
    "--plugins",
    "plugins_csv",
    default=None,
    help="Comma-separated plugin names or categories to restore.",
)
@click.option("--dry-run", is_flag=True, help="Show what would be restored without changes.")
@click.option("--backup", is_flag=True, help="Back up files that would be overwritten.")
@click.option(
    "--target-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Restore into this directory instead of each plugin's default.",
)
@click.option("--strict", is_flag=True, help="Fail if any plugin restore fails.")
@_output_option
@click.pass_obj
def restore(
    app: AppContext,
    name: str | None,
    latest: bool,
    plugins_csv: str | None,
    dry_run: bool,
    backup: bool,
    target_dir: Path | None,
    strict: bool,
    output_dir: Path | None,
) -> None:
    """Restore a snapshot through each plugin's restore logic."""
    ops = app.operations(output_dir)
    if latest and name is None:
        name = ops.latest_snapshot_name()
    if name is None:
        message = "No snapshots found" if latest else "Pass a snapshot name or --latest"
        app.emit(
            ServiceResult(
                ok=False,
                op="restore",
                error=ServiceError(code="INVALID_ARGUMENTS", message=message),
            )
        )
        return

    app.emit(
        ops.restore(
            name,
            selectors=split_csv(plugins_csv),
            dry_run=dry_run,
            backup=backup,
            target_dir=target_dir,
            strict=strict,
        )
    )
