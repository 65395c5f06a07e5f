"""SnapshotExecutor — one snapshot run across every selected plugin.

Flow:
  1. Create the snapshot directory
  2. Global pre-snapshot hooks
  3. One task per plugin on a ThreadPoolExecutor (pre-plugin hooks,
     validate, execute, checksum reuse or write, post-plugin hooks)
  4. Barrier: wait for every task
  5. Metadata for successful plugins, then the directory checksum
  6. Global post-snapshot hooks

INVARIANT: A failing plugin yields a failed PluginResult and writes no
output file; it never aborts its siblings. Only infrastructure failures
(directory creation, metadata writes) propagate to the caller.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from pydantic import BaseModel, Field

from dotsnapshot.config.models import DotSnapshotConfig
from dotsnapshot.domain.hooks import HookAction, HookContext, HookPhase, HookResult
from dotsnapshot.domain.results import PluginResult
from dotsnapshot.infrastructure.checksum import calculate_checksum
from dotsnapshot.infrastructure.filesystem import write_atomic
from dotsnapshot.infrastructure.snapshots import SnapshotManager
from dotsnapshot.plugins.base import Plugin
from dotsnapshot.plugins.manager import PluginManager
from dotsnapshot.services._helpers import plugin_hooks
from dotsnapshot.services.hooks import HookManager

logger = logging.getLogger(__name__)

UNKNOWN_PLUGIN = "unknown"


class SnapshotRun(BaseModel):
    """What one ``execute_snapshot`` call produced."""

    model_config = {"frozen": True}

    snapshot_dir: Path
    snapshot_name: str
    results: list[PluginResult] = Field(default_factory=list)
    hook_results: list[HookResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> list[str]:
        return [r.plugin_name for r in self.results if r.success]

    @property
    def failed(self) -> list[str]:
        return [r.plugin_name for r in self.results if not r.success]


class SnapshotExecutor:
    """Runs plugins concurrently into a fresh snapshot directory.

    Parameters:
        registry: PluginManager holding the snapshot plugins.
        base_path: Directory that holds all snapshots.
        config: Hook and plugin configuration (defaults to the registry's).
        hook_manager: Shared hook runner.
        max_workers: ThreadPoolExecutor worker count (None: library default).
    """

    def __init__(
        self,
        registry: PluginManager,
        base_path: Path,
        config: DotSnapshotConfig | None = None,
        *,
        hook_manager: HookManager | None = None,
        max_workers: int | None = None,
    ) -> None:
        self._registry = registry
        self._config = config or registry.config
        self._snapshots = SnapshotManager(base_path)
        self._hooks = hook_manager or HookManager()
        self._max_workers = max_workers

    @property
    def snapshot_manager(self) -> SnapshotManager:
        return self._snapshots

    def execute_snapshot(
        self,
        name: str | None = None,
        *,
        selectors: list[str] | None = None,
    ) -> SnapshotRun:
        """Create one snapshot. *selectors* override ``include_plugins``."""
        snapshot_dir = self._snapshots.create_snapshot_dir(name)
        snapshot_name = snapshot_dir.name
        logger.info("Creating snapshot %s in %s", snapshot_name, snapshot_dir)

        context = HookContext(
            snapshot_name=snapshot_name,
            snapshot_dir=snapshot_dir,
            hooks_config=self._config.get_hooks_config(),
        )
        hook_results = self._hooks.execute_hooks(
            self._config.get_global_hooks(HookPhase.PRE_SNAPSHOT),
            HookPhase.PRE_SNAPSHOT,
            context,
        )

        plugins = self._registry.plugins(selectors)
        if not plugins:
            logger.warning("No plugins selected; the snapshot will be empty")
        results = self._run_plugins(plugins, snapshot_dir, context)

        metadata = self._snapshots.create_metadata()
        for result in results:
            if result.success:
                metadata.checksums[result.plugin_name] = result.checksum
        self._snapshots.save_metadata(snapshot_dir, metadata)
        self._snapshots.finalize_snapshot(snapshot_dir)

        succeeded = sum(1 for r in results if r.success)
        logger.info(
            "Snapshot %s finished: %d/%d plugins succeeded",
            snapshot_name,
            succeeded,
            len(results),
        )

        hook_results += self._hooks.execute_hooks(
            self._config.get_global_hooks(HookPhase.POST_SNAPSHOT),
            HookPhase.POST_SNAPSHOT,
            context.with_file_count(len(results)),
        )
        self._registry.dispatch(
            "post_snapshot",
            snapshot_name=snapshot_name,
            snapshot_dir=str(snapshot_dir),
            results=results,
        )
        return SnapshotRun(
            snapshot_dir=snapshot_dir,
            snapshot_name=snapshot_name,
            results=results,
            hook_results=hook_results,
        )

    # ------------------------------------------------------------------
    # Plugin tasks
    # ------------------------------------------------------------------

    def _run_plugins(
        self,
        plugins: list[tuple[str, Plugin]],
        snapshot_dir: Path,
        context: HookContext,
    ) -> list[PluginResult]:
        """Fan out one task per plugin and wait for all of them."""
        if not plugins:
            return []

        results: list[PluginResult] = []
        with ThreadPoolExecutor(
            max_workers=self._max_workers,
            thread_name_prefix="dotsnapshot-plugin",
        ) as pool:
            futures: dict[Future[PluginResult], str] = {
                pool.submit(self.execute_plugin, name, plugin, snapshot_dir, context): name
                for name, plugin in plugins
            }
            for future, plugin_name in futures.items():
                try:
                    results.append(future.result())
                except Exception as exc:
                    name = plugin_name or UNKNOWN_PLUGIN
                    logger.error("Plugin task for %s failed: %s", name, exc, exc_info=True)
                    results.append(PluginResult.failure(name, f"Task failed: {exc}"))
        return results

    def execute_plugin(
        self,
        plugin_name: str,
        plugin: Plugin,
        snapshot_dir: Path,
        context: HookContext,
    ) -> PluginResult:
        """Run one plugin into *snapshot_dir*. Safe to call from worker threads."""
        logger.info("Executing plugin: %s", plugin_name)
        plugin_context = context.with_plugin(plugin_name)

        self._hooks.execute_hooks(
            self._plugin_hooks(plugin_name, plugin, HookPhase.PRE_PLUGIN),
            HookPhase.PRE_PLUGIN,
            plugin_context,
        )
        post_hooks = self._plugin_hooks(plugin_name, plugin, HookPhase.POST_PLUGIN)

        try:
            plugin.validate()
        except Exception as exc:
            logger.warning("Plugin validation failed for %s: %s", plugin_name, exc)
            return PluginResult.failure(plugin_name, f"Validation failed: {exc}")

        try:
            content = plugin.execute(snapshot_dir)
        except Exception as exc:
            logger.error("Plugin execution failed for %s: %s", plugin_name, exc)
            self._hooks.execute_hooks(
                post_hooks,
                HookPhase.POST_PLUGIN,
                plugin_context.with_variable("error", str(exc)),
            )
            return PluginResult.failure(plugin_name, str(exc))

        checksum = calculate_checksum(content)

        if plugin.creates_own_output_files():
            self._hooks.execute_hooks(
                post_hooks,
                HookPhase.POST_PLUGIN,
                plugin_context.with_file_count(1),
            )
            return PluginResult(
                plugin_name=plugin_name,
                content=content,
                checksum=checksum,
                success=True,
            )

        relative_path = self._registry.output_path_for(plugin_name)
        reusable = self._snapshots.find_reusable_file(
            plugin_name, relative_path, checksum, exclude_dir=snapshot_dir
        )
        if reusable is not None:
            logger.info("Reusing existing file for plugin %s (checksum match)", plugin_name)
            output_path = self._snapshots.copy_forward(reusable, snapshot_dir, relative_path)
            self._hooks.execute_hooks(
                post_hooks,
                HookPhase.POST_PLUGIN,
                plugin_context.with_file_count(1)
                .with_variable("reused", "true")
                .with_variable("output_path", str(output_path)),
            )
            return PluginResult(
                plugin_name=plugin_name,
                content=content,
                checksum=checksum,
                success=True,
                reused=True,
                output_path=output_path,
            )

        output_path = snapshot_dir / relative_path
        output_path.parent.mkdir(parents=True, exist_ok=True)
        write_atomic(output_path, content)
        logger.info("Plugin %s completed successfully", plugin_name)

        self._hooks.execute_hooks(
            post_hooks,
            HookPhase.POST_PLUGIN,
            plugin_context.with_file_count(1).with_variable("output_path", str(output_path)),
        )
        return PluginResult(
            plugin_name=plugin_name,
            content=content,
            checksum=checksum,
            success=True,
            output_path=output_path,
        )

    def _plugin_hooks(self, plugin_name: str, plugin: Plugin, phase: HookPhase) -> list[HookAction]:
        return plugin_hooks(self._config, plugin_name, plugin, phase)
