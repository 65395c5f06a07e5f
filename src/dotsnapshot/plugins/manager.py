"""Plugin discovery, selection, and lifecycle hook dispatch.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
Each hook provider returns ready-made :class:`Plugin` instances from
``register_snapshot_plugins``; the manager keeps them in registration order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pluggy

from dotsnapshot.config.models import DotSnapshotConfig
from dotsnapshot.plugins.base import Plugin
from dotsnapshot.plugins.hookspecs import DotSnapshotHookSpec

PROJECT_NAME = "dotsnapshot"
ENTRY_POINT_GROUP = "dotsnapshot.plugins"
ALL_PLUGINS = "all"

logger = logging.getLogger(__name__)


def default_output_file(plugin_name: str) -> str:
    """``<plugin_name>.txt``."""
    return f"{plugin_name}.txt"


def plugin_category(plugin_name: str) -> str:
    """Leading ``_``-separated segment (``vscode_settings`` -> ``vscode``)."""
    return plugin_name.split("_", 1)[0]


def matches_selection(plugin_name: str, selectors: Iterable[str]) -> bool:
    """Whether *plugin_name* is picked by any of *selectors* (name, category or ``all``)."""
    category = plugin_category(plugin_name)
    return any(sel in (ALL_PLUGINS, plugin_name, category) for sel in selectors)


class PluginManager:
    """Registry of snapshot plugins plus the pluggy hook relay.

    Built-in or test plugins are added with :meth:`register`; installed
    packages contribute theirs through :meth:`discover_and_load`.
    """

    def __init__(self, config: DotSnapshotConfig | None = None) -> None:
        self._config = config or DotSnapshotConfig()
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(DotSnapshotHookSpec)
        self._plugins: dict[str, Plugin] = {}
        self._loaded: bool = False

    @property
    def config(self) -> DotSnapshotConfig:
        return self._config

    def discover_and_load(self) -> list[str]:
        """Load the ``dotsnapshot.plugins`` entry-point group and collect plugins.

        Returns the names of all registered snapshot plugins.
        """
        try:
            self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        except Exception:
            logger.warning("Failed to load dotsnapshot entry points", exc_info=True)
        self._collect_snapshot_plugins()
        self._loaded = True
        return self.list_plugin_names()

    def register_provider(self, provider: object, name: str | None = None) -> None:
        """Register a pluggy hook provider (an object with ``@hookimpl`` methods)."""
        resolved_name = name or provider.__class__.__name__
        self._pm.register(provider, name=resolved_name)
        if self._loaded:
            self._collect_from(provider, resolved_name)
        logger.debug("Registered hook provider: %s", resolved_name)

    def register(self, plugin: Plugin) -> None:
        """Add a snapshot plugin. A later registration under the same name wins."""
        if plugin.name in self._plugins:
            logger.warning("Plugin '%s' registered twice; keeping the latest", plugin.name)
        self._plugins[plugin.name] = plugin
        logger.debug("Registered snapshot plugin: %s", plugin.name)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    def list_plugin_names(self) -> list[str]:
        return list(self._plugins)

    def plugins(self, selectors: Iterable[str] | None = None) -> list[tuple[str, Plugin]]:
        """Registered ``(name, plugin)`` pairs in registration order.

        *selectors* (or ``include_plugins`` from the config when omitted)
        restrict the result to plugins whose name or category matches; the
        selector ``all`` matches everything.
        """
        if selectors is None:
            selectors = self._config.get_include_plugins()
        pairs = list(self._plugins.items())
        if selectors is None:
            return pairs
        selectors = list(selectors)
        return [(name, plugin) for name, plugin in pairs if matches_selection(name, selectors)]

    def get_plugin(self, name: str) -> Plugin | None:
        return self._plugins.get(name)

    def output_file_for(self, name: str) -> str:
        """Output filename: configured, then the plugin's own, else ``<name>.txt``."""
        plugin_config = self._config.get_plugin_config(name)
        if plugin_config is not None and plugin_config.output_file:
            return plugin_config.output_file
        plugin = self._plugins.get(name)
        if plugin is not None:
            override = plugin.get_output_file()
            if override:
                return override
        return default_output_file(name)

    def output_path_for(self, name: str) -> Path:
        """Output path relative to a snapshot directory."""
        plugin_config = self._config.get_plugin_config(name)
        target = plugin_config.target_path if plugin_config is not None else None
        if not target:
            plugin = self._plugins.get(name)
            target = plugin.get_target_path() if plugin is not None else None
        filename = self.output_file_for(name)
        return Path(target) / filename if target else Path(filename)

    def dispatch(self, hook_name: str, **payload: Any) -> None:
        """Fire a lifecycle hook on every provider; failures are warnings."""
        try:
            getattr(self._pm.hook, hook_name)(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)

    # ------------------------------------------------------------------
    # Snapshot plugin collection
    # ------------------------------------------------------------------

    def _collect_snapshot_plugins(self) -> None:
        for provider in self._pm.get_plugins():
            name = self._pm.get_name(provider) or provider.__class__.__name__
            self._collect_from(provider, name)

    def _collect_from(self, provider: object, provider_name: str) -> None:
        """Register the snapshot plugins exposed by a single provider."""
        hook = getattr(provider, "register_snapshot_plugins", None)
        if hook is None:
            return

        try:
            contributed = hook(config=self._config)
        except Exception:
            logger.warning(
                "Failed to collect snapshot plugins from %s",
                provider_name,
                exc_info=True,
            )
            return

        if contributed is None:
            return
        if not isinstance(contributed, (list, tuple)):
            logger.warning("Provider %s returned non-list plugin registrations", provider_name)
            return

        for plugin in contributed:
            if not isinstance(plugin, Plugin):
                logger.warning(
                    "Skipping %r from %s: not a Plugin instance",
                    plugin,
                    provider_name,
                )
                continue
            self.register(plugin)
