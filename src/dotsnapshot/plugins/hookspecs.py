"""Pluggy hook specifications for dotsnapshot.

One setup-time hook lets installed packages contribute snapshot plugins.
Two lifecycle notifications fire after a snapshot or restore run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from dotsnapshot.config.models import DotSnapshotConfig
    from dotsnapshot.domain.results import PluginResult, RestoreResult
    from dotsnapshot.plugins.base import Plugin

hookspec = pluggy.HookspecMarker("dotsnapshot")
hookimpl = pluggy.HookimplMarker("dotsnapshot")


class DotSnapshotHookSpec:
    """Hook specifications for the dotsnapshot plugin system."""

    @hookspec
    def register_snapshot_plugins(self, config: DotSnapshotConfig) -> list[Plugin] | None:
        """Return snapshot plugin instances to add to the registry.

        Implementations typically pass ``config.get_plugin_config(name)``
        to each plugin they construct.
        """

    @hookspec
    def post_snapshot(
        self,
        snapshot_name: str,
        snapshot_dir: str,
        results: list[PluginResult],
    ) -> None:
        """Called after a snapshot is finalized."""

    @hookspec
    def post_restore(
        self,
        snapshot_name: str,
        results: list[RestoreResult],
        dry_run: bool,
    ) -> None:
        """Called after a restore run completes."""
