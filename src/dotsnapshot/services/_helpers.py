"""Shared service-layer helper functions."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime

from dotsnapshot.config.models import DotSnapshotConfig
from dotsnapshot.domain.hooks import HookAction, HookPhase, HookResult
from dotsnapshot.plugins.base import Plugin


def now_compact() -> str:
    """Current UTC time as ``YYYYMMDD_HHMMSS`` (restore backup directory names)."""
    return datetime.now(UTC).strftime("%Y%m%d_%H%M%S")


def hook_failures(results: Iterable[HookResult], phase: str) -> list[str]:
    """One warning line per failed hook in *results*.

    Examples:
        >>> hook_failures([HookResult(success=False, error="boom",
        ...                           action_description="log: \\"x\\"")], "pre-snapshot")
        ['pre-snapshot hook failed: log: "x": boom']
    """
    return [
        f"{phase} hook failed: {r.action_description}: {r.error or 'unknown error'}"
        for r in results
        if not r.success
    ]


def plugin_hooks(
    config: DotSnapshotConfig,
    plugin_name: str,
    plugin: Plugin,
    phase: HookPhase,
) -> list[HookAction]:
    """Config-declared hooks for *plugin_name*, then plugin-declared ones not already listed."""
    hooks = config.get_plugin_hooks(plugin_name, phase)
    hooks.extend(hook for hook in plugin.get_hooks(phase) if hook not in hooks)
    return hooks
