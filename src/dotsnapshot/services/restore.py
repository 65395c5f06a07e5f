"""RestoreManager — replays a stored snapshot back through each plugin.

Flow for ``restore_from_snapshot``:
  1. Resolve the snapshot (missing -> SnapshotNotFoundError, no hooks run)
  2. Global pre-restore hooks
  3. Name (and, outside dry runs, create) the backup directory
  4. Collect candidate plugin files present in the snapshot
  5. Per candidate: pre-restore hooks, backup, ``plugin.restore``,
     post-restore hooks with ``{success}`` and ``{backup_path}``
  6. Global post-restore hooks with aggregate counts

INVARIANT: Restores only read the snapshot directory. One plugin's failure
is captured in its RestoreResult and never stops the others.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from dotsnapshot.config.models import DotSnapshotConfig
from dotsnapshot.domain.errors import PluginNotFoundError, SnapshotNotFoundError
from dotsnapshot.domain.hooks import HookContext, HookPhase
from dotsnapshot.domain.results import RestoreResult, SnapshotInfo
from dotsnapshot.infrastructure.filesystem import copy_path
from dotsnapshot.infrastructure.snapshots import SnapshotManager
from dotsnapshot.plugins.base import Plugin
from dotsnapshot.plugins.manager import PluginManager, matches_selection
from dotsnapshot.services._helpers import now_compact, plugin_hooks
from dotsnapshot.services.hooks import HookManager

logger = logging.getLogger(__name__)

RESTORE_BACKUPS_DIRNAME = ".restore-backups"

# Well-known snapshot filenames and the plugin that restores each one.
# Registered plugins' own output paths are added on top of this.
RESTORE_FILE_MAP: dict[str, str] = {
    "Brewfile": "homebrew_brewfile",
    "homebrew_brewfile.txt": "homebrew_brewfile",
    "vscode_settings.json": "vscode_settings",
    "vscode_keybindings.json": "vscode_keybindings",
    "vscode_extensions.txt": "vscode_extensions",
    "cursor_settings.json": "cursor_settings",
    "cursor_keybindings.json": "cursor_keybindings",
    "cursor_extensions.txt": "cursor_extensions",
    "npm_global_packages.txt": "npm_global_packages",
    "npmrc": "npm_config",
    "npm_config.txt": "npm_config",
}


class RestoreManager:
    """Lists snapshots and restores them plugin by plugin.

    Parameters:
        registry: PluginManager holding the restore-capable plugins.
        snapshots_dir: Directory that holds all snapshots.
        config: Hook and plugin configuration (defaults to the registry's).
        hook_manager: Shared hook runner.
    """

    def __init__(
        self,
        registry: PluginManager,
        snapshots_dir: Path,
        config: DotSnapshotConfig | None = None,
        *,
        hook_manager: HookManager | None = None,
    ) -> None:
        self._registry = registry
        self._config = config or registry.config
        self._snapshots = SnapshotManager(snapshots_dir)
        self._hooks = hook_manager or HookManager()

    @property
    def snapshots_dir(self) -> Path:
        return self._snapshots.base_path

    def list_snapshots(self) -> list[SnapshotInfo]:
        """All snapshots, newest first. A missing snapshots dir yields ``[]``."""
        return self._snapshots.list_snapshots()

    def restore_from_snapshot(
        self,
        name: str,
        selected_plugins: Sequence[str] | None = None,
        *,
        dry_run: bool = False,
        backup_existing: bool = False,
        target_dir: Path | None = None,
    ) -> list[RestoreResult]:
        """Restore the snapshot called *name*.

        Raises:
            SnapshotNotFoundError: No snapshot directory called *name*.
        """
        snapshot_dir = self._snapshots.resolve(name)
        if snapshot_dir is None:
            raise SnapshotNotFoundError(name)

        self._check_integrity(snapshot_dir)
        mode = " (dry run)" if dry_run else ""
        logger.info("Restoring snapshot %s%s", name, mode)

        context = HookContext(
            snapshot_name=name,
            snapshot_dir=snapshot_dir,
            hooks_config=self._config.get_hooks_config(),
        )
        self._hooks.execute_hooks(
            self._config.get_global_hooks(HookPhase.PRE_RESTORE),
            HookPhase.PRE_RESTORE,
            context,
        )

        backup_dir: Path | None = None
        if backup_existing:
            backup_dir = self.snapshots_dir / RESTORE_BACKUPS_DIRNAME / now_compact()
            if dry_run:
                logger.info("Would back up existing files to %s", backup_dir)
            else:
                backup_dir.mkdir(parents=True, exist_ok=True)
                logger.info("Backing up existing files to %s", backup_dir)

        candidates = self.find_candidates(snapshot_dir)
        if selected_plugins is not None:
            selectors = list(selected_plugins)
            candidates = {
                plugin_name: path
                for plugin_name, path in candidates.items()
                if matches_selection(plugin_name, selectors)
            }
        if not candidates:
            logger.warning("No restorable plugin files found in snapshot %s", name)

        results = [
            self._restore_plugin(
                plugin_name,
                snapshot_file,
                context,
                dry_run=dry_run,
                backup_dir=backup_dir,
                target_dir=target_dir,
            )
            for plugin_name, snapshot_file in candidates.items()
        ]

        restored = [r for r in results if r.success]
        failed_count = len(results) - len(restored)
        logger.info(
            "Restore of %s finished: %d succeeded, %d failed",
            name,
            len(restored),
            failed_count,
        )

        post_context = (
            context.with_file_count(sum(r.restored_files for r in restored))
            .with_variable("restored_count", str(len(restored)))
            .with_variable("failed_count", str(failed_count))
        )
        self._hooks.execute_hooks(
            self._config.get_global_hooks(HookPhase.POST_RESTORE),
            HookPhase.POST_RESTORE,
            post_context,
        )
        self._registry.dispatch(
            "post_restore",
            snapshot_name=name,
            results=results,
            dry_run=dry_run,
        )
        return results

    def find_candidates(self, snapshot_dir: Path) -> dict[str, Path]:
        """Map plugin name to the snapshot file (or subtree) it restores from."""
        candidates: dict[str, Path] = {}
        for filename, plugin_name in RESTORE_FILE_MAP.items():
            path = snapshot_dir / filename
            if path.exists() and plugin_name not in candidates:
                candidates[plugin_name] = path

        for plugin_name, plugin in self._registry.plugins(selectors=["all"]):
            if plugin.creates_own_output_files():
                path = snapshot_dir / (plugin.get_target_path() or plugin_name)
            else:
                path = snapshot_dir / self._registry.output_path_for(plugin_name)
            if path.exists():
                candidates[plugin_name] = path
        return candidates

    def resolve_target(self, plugin_name: str, plugin: Plugin, target_dir: Path | None) -> Path:
        """Explicit target, then configured, then plugin default, then home."""
        if target_dir is not None:
            return target_dir.expanduser()
        plugin_config = self._config.get_plugin_config(plugin_name)
        if plugin_config is not None and plugin_config.restore_target_dir:
            return Path(plugin_config.restore_target_dir).expanduser()
        own = plugin.get_restore_target_dir()
        if own:
            return Path(own).expanduser()
        return plugin.get_default_restore_target_dir()

    # ------------------------------------------------------------------
    # Per-plugin restore
    # ------------------------------------------------------------------

    def _restore_plugin(
        self,
        plugin_name: str,
        snapshot_file: Path,
        context: HookContext,
        *,
        dry_run: bool,
        backup_dir: Path | None,
        target_dir: Path | None,
    ) -> RestoreResult:
        plugin = self._registry.get_plugin(plugin_name)
        if plugin is None:
            error = PluginNotFoundError(plugin_name)
            logger.warning("%s; skipping %s", error, snapshot_file.name)
            return RestoreResult(plugin_name=plugin_name, success=False, error_message=str(error))

        plugin_context = context.with_plugin(plugin_name)
        self._hooks.execute_hooks(
            plugin_hooks(self._config, plugin_name, plugin, HookPhase.PRE_RESTORE),
            HookPhase.PRE_RESTORE,
            plugin_context,
        )

        target = self.resolve_target(plugin_name, plugin, target_dir)
        backup_path: Path | None = None
        try:
            if backup_dir is not None:
                backup_path = self._backup_existing(
                    target / snapshot_file.name,
                    backup_dir / plugin_name,
                    dry_run=dry_run,
                )
            restored_paths = plugin.restore(snapshot_file, target, dry_run)
        except Exception as exc:
            logger.error("Restore failed for %s: %s", plugin_name, exc)
            result = RestoreResult(
                plugin_name=plugin_name,
                success=False,
                backup_path=backup_path,
                error_message=str(exc),
            )
        else:
            count = max(len(restored_paths), 1) if dry_run else len(restored_paths)
            verb = "Would restore" if dry_run else "Restored"
            logger.info("%s %d file(s) for %s into %s", verb, count, plugin_name, target)
            result = RestoreResult(
                plugin_name=plugin_name,
                success=True,
                restored_files=count,
                backup_path=backup_path,
            )

        self._hooks.execute_hooks(
            plugin_hooks(self._config, plugin_name, plugin, HookPhase.POST_RESTORE),
            HookPhase.POST_RESTORE,
            plugin_context.with_file_count(result.restored_files)
            .with_variable("success", str(result.success).lower())
            .with_variable("backup_path", str(backup_path) if backup_path else ""),
        )
        return result

    @staticmethod
    def _backup_existing(existing: Path, destination_dir: Path, *, dry_run: bool) -> Path | None:
        """Copy *existing* into *destination_dir*. Dry runs only name the copy."""
        if not existing.exists():
            return None
        backup_path = destination_dir / existing.name
        if dry_run:
            return backup_path
        destination_dir.mkdir(parents=True, exist_ok=True)
        copy_path(existing, backup_path)
        logger.info("Backed up %s -> %s", existing, backup_path)
        return backup_path

    def _check_integrity(self, snapshot_dir: Path) -> None:
        """Warn when the stored directory checksum no longer matches."""
        try:
            metadata = self._snapshots.load_metadata(snapshot_dir)
        except (OSError, ValidationError):
            logger.debug("No metadata in %s; skipping integrity check", snapshot_dir)
            return
        if not metadata.directory_checksum:
            return
        if not self._snapshots.verify_snapshot(snapshot_dir):
            logger.warning("Snapshot %s does not match its recorded checksum", snapshot_dir.name)
