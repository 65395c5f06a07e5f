"""Command group: inspect and validate configured hooks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from dotsnapshot.commands._base import DsGroup

if TYPE_CHECKING:
    from dotsnapshot.commands._context import AppContext


@click.group(
    cls=DsGroup,
    examples="""\
  dotsnapshot hooks list
  dotsnapshot hooks list --plugin vscode_settings
  dotsnapshot hooks validate""",
)
def hooks() -> None:
    """Inspect configured lifecycle hooks."""


@hooks.command(
    "list",
    examples="""\
  dotsnapshot hooks list
  dotsnapshot --json hooks list --plugin homebrew_brewfile""",
)
@click.option("--plugin", default=None, help="Only hooks for this plugin.")
@click.pass_obj
def list_hooks(app: AppContext, plugin: str | None) -> None:
    """List global and plugin hooks by phase."""
    app.emit(app.operations().hooks_list(plugin=plugin))


@hooks.command(
    examples="""\
  dotsnapshot hooks validate
  dotsnapshot hooks validate --plugin vscode_settings""",
)
@click.option("--plugin", default=None, help="Only hooks for this plugin.")
@click.pass_obj
def validate(app: AppContext, plugin: str | None) -> None:
    """Check that every hook could run (scripts exist, paths exist)."""
    app.emit(app.operations().hooks_validate(plugin=plugin))
