"""Command: delete snapshots by name or age."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from dotsnapshot.commands._base import DsCommand

if TYPE_CHECKING:
    from dotsnapshot.commands._context import AppContext


@click.command(
    cls=DsCommand,
    examples="""\
  dotsnapshot clean 20240115_103000
  dotsnapshot clean --days 30 --dry-run
  dotsnapshot clean --days 7""",
)
@click.argument("name", required=False)
@click.option("--days", type=click.IntRange(min=0), default=None, help="Delete older snapshots.")
@click.option("--dry-run", is_flag=True, help="Show what would be deleted.")
@click.option(
    "-o",
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Snapshots directory (overrides output_dir).",
)
@click.pass_obj
def clean(
    app: AppContext,
    name: str | None,
    days: int | None,
    dry_run: bool,
    output_dir: Path | None,
) -> None:
    """Delete one snapshot by NAME, or every snapshot older than --days."""
    app.emit(app.operations(output_dir).clean(name=name, days=days, dry_run=dry_run))
