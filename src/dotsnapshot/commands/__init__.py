"""Subcommand modules for dotsnapshot.

Provides register_commands() which uses deferred imports to keep
``dotsnapshot --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from dotsnapshot.commands.hooks import hooks

    cli.add_command(hooks)

    # --- Standalone commands ---
    from dotsnapshot.commands.clean import clean
    from dotsnapshot.commands.restore import list_cmd, restore
    from dotsnapshot.commands.snapshot import snapshot

    cli.add_command(snapshot)
    cli.add_command(list_cmd)
    cli.add_command(restore)
    cli.add_command(clean)
