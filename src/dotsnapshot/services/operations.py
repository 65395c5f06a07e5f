"""CLI-facing operations — wrap the engine services in ServiceResult.

The executor, restore manager, and cleaner return domain records and raise
:class:`DotSnapshotError` for whole-call failures. Each method here runs one
of them and turns the outcome (records, warnings, or the error) into the
:class:`ServiceResult` envelope the CLI emits.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from dotsnapshot.config.models import DotSnapshotConfig
from dotsnapshot.domain.errors import (
    DotSnapshotError,
    InvalidSnapshotNameError,
    PartialFailureError,
    PluginNotFoundError,
    SnapshotNotFoundError,
)
from dotsnapshot.domain.hooks import HookAction, HookContext, HookPhase
from dotsnapshot.domain.results import SnapshotInfo
from dotsnapshot.plugins.manager import PluginManager
from dotsnapshot.services._helpers import hook_failures, plugin_hooks
from dotsnapshot.services.cleaner import SnapshotCleaner
from dotsnapshot.services.executor import SnapshotExecutor
from dotsnapshot.services.hooks import HookManager
from dotsnapshot.services.restore import RestoreManager
from dotsnapshot.services.result import ServiceError, ServiceResult

GLOBAL_SCOPE = "global"


def error_result(op: str, exc: DotSnapshotError) -> ServiceResult:
    """Convert a raised DotSnapshotError into a failed ServiceResult."""
    detail: dict[str, Any] = {}
    if isinstance(exc, PartialFailureError):
        detail = {"failed": exc.failed, "total": exc.total}
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=exc.code, message=str(exc), detail=detail),
    )


def _snapshot_row(info: SnapshotInfo) -> dict[str, Any]:
    return {
        "name": info.name,
        "path": str(info.path),
        "created_at": info.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        "size": info.format_size(),
        "size_bytes": info.size_bytes,
        "plugin_count": info.plugin_count,
    }


class SnapshotOperations:
    """One instance per CLI invocation.

    Parameters:
        registry: Loaded PluginManager.
        config: Effective configuration.
        output_dir: Snapshots directory (``config.get_output_dir()`` by default).
    """

    def __init__(
        self,
        registry: PluginManager,
        config: DotSnapshotConfig,
        output_dir: Path | None = None,
    ) -> None:
        self._registry = registry
        self._config = config
        self._output_dir = output_dir or config.get_output_dir()
        self._hooks = HookManager()

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(
        self,
        *,
        name: str | None = None,
        selectors: Sequence[str] | None = None,
        strict: bool = False,
    ) -> ServiceResult:
        op = "snapshot"
        executor = SnapshotExecutor(
            self._registry,
            self._output_dir,
            self._config,
            hook_manager=self._hooks,
        )
        try:
            run = executor.execute_snapshot(
                name, selectors=list(selectors) if selectors is not None else None
            )
        except FileExistsError:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(code="SNAPSHOT_EXISTS", message=f"Snapshot '{name}' exists"),
            )
        except InvalidSnapshotNameError as exc:
            return error_result(op, exc)

        warnings = [
            f"Plugin {r.plugin_name} failed: {r.error_message}"
            for r in run.results
            if not r.success
        ]
        warnings += hook_failures(run.hook_results, "global")

        if strict and run.failed:
            return error_result(op, PartialFailureError(run.failed, len(run.results)))

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "snapshot_name": run.snapshot_name,
                "snapshot_dir": str(run.snapshot_dir),
                "plugins": [
                    r.model_dump(mode="json", exclude={"content"}) for r in run.results
                ],
                "succeeded": len(run.succeeded),
                "failed": len(run.failed),
            },
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_snapshots(self) -> ServiceResult:
        restore = RestoreManager(self._registry, self._output_dir, self._config)
        snapshots = [_snapshot_row(info) for info in restore.list_snapshots()]
        return ServiceResult(
            ok=True,
            op="list_snapshots",
            data={"snapshots": snapshots, "count": len(snapshots)},
        )

    def latest_snapshot_name(self) -> str | None:
        snapshots = SnapshotCleaner(self._output_dir).list_snapshots()
        return snapshots[0].name if snapshots else None

    def list_plugins(self) -> ServiceResult:
        plugins = [
            {
                "name": plugin_name,
                "description": plugin.description,
                "output": str(self._registry.output_path_for(plugin_name)),
            }
            for plugin_name, plugin in self._registry.plugins(selectors=["all"])
        ]
        return ServiceResult(
            ok=True,
            op="list_plugins",
            data={"plugins": plugins, "count": len(plugins)},
        )

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(
        self,
        name: str,
        *,
        selectors: Sequence[str] | None = None,
        dry_run: bool = False,
        backup: bool = False,
        target_dir: Path | None = None,
        strict: bool = False,
    ) -> ServiceResult:
        op = "restore"
        manager = RestoreManager(
            self._registry,
            self._output_dir,
            self._config,
            hook_manager=self._hooks,
        )
        try:
            results = manager.restore_from_snapshot(
                name,
                selectors,
                dry_run=dry_run,
                backup_existing=backup,
                target_dir=target_dir,
            )
        except DotSnapshotError as exc:
            return error_result(op, exc)

        failed = [r.plugin_name for r in results if not r.success]
        if strict and failed:
            return error_result(op, PartialFailureError(failed, len(results)))

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "snapshot_name": name,
                "dry_run": dry_run,
                "results": [r.model_dump(mode="json") for r in results],
                "restored": len(results) - len(failed),
                "failed": len(failed),
            },
            warnings=[
                f"Restore of {r.plugin_name} failed: {r.error_message}"
                for r in results
                if not r.success
            ],
        )

    # ------------------------------------------------------------------
    # Clean
    # ------------------------------------------------------------------

    def clean(
        self,
        *,
        name: str | None = None,
        days: int | None = None,
        dry_run: bool = False,
    ) -> ServiceResult:
        op = "clean"
        cleaner = SnapshotCleaner(self._output_dir)
        if name is not None:
            if not cleaner.clean_by_name(name, dry_run):
                return error_result(op, SnapshotNotFoundError(name))
            deleted = [name]
        elif days is not None:
            deleted = cleaner.clean_by_retention(days, dry_run)
        else:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="INVALID_ARGUMENTS",
                    message="Pass a snapshot name or --days",
                ),
            )
        return ServiceResult(ok=True, op=op, data={"deleted": deleted, "dry_run": dry_run})

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def hooks_list(self, *, plugin: str | None = None) -> ServiceResult:
        op = "hooks_list"
        try:
            scopes = self._hook_scopes(plugin)
        except PluginNotFoundError as exc:
            return error_result(op, exc)

        hooks = [
            {"scope": scope, "phase": str(phase), "description": action.describe()}
            for scope, phase, action in scopes
        ]
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "hooks": hooks,
                "count": len(hooks),
                "scripts_dir": str(self._config.get_hooks_config().scripts_dir),
            },
        )

    def hooks_validate(self, *, plugin: str | None = None) -> ServiceResult:
        """Run validation (never execution) over every configured hook."""
        op = "hooks_validate"
        try:
            scopes = self._hook_scopes(plugin)
        except PluginNotFoundError as exc:
            return error_result(op, exc)

        context = HookContext(
            snapshot_name="validate",
            snapshot_dir=self._output_dir,
            hooks_config=self._config.get_hooks_config(),
        )
        actions = [action for _scope, _phase, action in scopes]
        errors = self._hooks.validate_hooks(actions, context)

        invalid = [
            {
                "scope": scope,
                "phase": str(phase),
                "description": action.describe(),
                "error": str(error),
            }
            for (scope, phase, action), error in zip(scopes, errors, strict=True)
            if error is not None
        ]
        data = {"checked": len(actions), "invalid": invalid}
        if invalid:
            return ServiceResult(
                ok=False,
                op=op,
                data=data,
                error=ServiceError(
                    code="HOOK_INVALID",
                    message=f"{len(invalid)} of {len(actions)} hooks are invalid",
                    detail={"invalid": invalid},
                ),
            )
        return ServiceResult(ok=True, op=op, data=data)

    def _hook_scopes(self, plugin: str | None) -> list[tuple[str, HookPhase, HookAction]]:
        """Flatten configured hooks into ``(scope, phase, action)`` triples."""
        triples: list[tuple[str, HookPhase, HookAction]] = []
        if plugin is None:
            for phase in HookPhase:
                for action in self._config.get_global_hooks(phase):
                    triples.append((GLOBAL_SCOPE, phase, action))
            plugin_names = list(self._config.plugins)
        else:
            if plugin not in self._config.plugins and self._registry.get_plugin(plugin) is None:
                raise PluginNotFoundError(plugin)
            plugin_names = [plugin]

        for plugin_name in plugin_names:
            registered = self._registry.get_plugin(plugin_name)
            for phase in HookPhase:
                if registered is None:
                    actions = self._config.get_plugin_hooks(plugin_name, phase)
                else:
                    actions = plugin_hooks(self._config, plugin_name, registered, phase)
                for action in actions:
                    triples.append((plugin_name, phase, action))
        return triples
