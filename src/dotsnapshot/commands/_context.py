"""AppContext — shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. Plugin discovery is lazy so ``--help`` and
``--version`` never import third-party plugin packages.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from dotsnapshot.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from dotsnapshot.config.models import DotSnapshotConfig
    from dotsnapshot.config.settings import DotSnapshotSettings
    from dotsnapshot.plugins.manager import PluginManager
    from dotsnapshot.services.operations import SnapshotOperations
    from dotsnapshot.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: DotSnapshotSettings) -> None:
        self.settings = settings
        self.config: DotSnapshotConfig = settings.to_config()
        self._plugin_manager: PluginManager | None = None

        from dotsnapshot.config.logging import configure_logging

        configure_logging(
            verbose=settings.is_verbose,
            quiet=settings.quiet,
            log_json=settings.log_json,
        )

    @property
    def plugin_manager(self) -> PluginManager:
        """The plugin registry (entry points loaded on first access)."""
        if self._plugin_manager is None:
            from dotsnapshot.plugins.manager import PluginManager

            self._plugin_manager = PluginManager(self.config)
            self._plugin_manager.discover_and_load()
        return self._plugin_manager

    def operations(self, output_dir: Path | None = None) -> SnapshotOperations:
        from dotsnapshot.services.operations import SnapshotOperations

        return SnapshotOperations(self.plugin_manager, self.config, output_dir)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings go to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.is_verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            # In JSON mode, warnings are already in the serialized payload.
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
