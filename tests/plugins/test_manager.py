"""Tests for PluginManager — registration, pluggy collection, selection."""

from __future__ import annotations

from pathlib import Path

import pytest

from dotsnapshot.config.models import DotSnapshotConfig, PluginConfig
from dotsnapshot.domain.hooks import HookPhase, LogAction
from dotsnapshot.domain.results import RestoreResult
from dotsnapshot.plugins import Plugin, PluginManager, hookimpl
from dotsnapshot.plugins.manager import matches_selection, plugin_category
from tests.conftest import StaticPlugin, make_registry


class _Provider:
    """Contributes two plugins, configured from the passed config."""

    @hookimpl
    def register_snapshot_plugins(self, config: DotSnapshotConfig) -> list[Plugin]:
        return [
            StaticPlugin("vscode_settings", config=config.get_plugin_config("vscode_settings")),
            StaticPlugin("npm_config"),
        ]


class _BrokenProvider:
    @hookimpl
    def register_snapshot_plugins(self, config: DotSnapshotConfig) -> list[Plugin]:
        raise RuntimeError("provider blew up")


class _JunkProvider:
    @hookimpl
    def register_snapshot_plugins(self, config: DotSnapshotConfig) -> list[object]:
        return ["not a plugin", StaticPlugin("cursor_settings")]


class TestSelection:
    @pytest.mark.parametrize(
        ("name", "selectors", "expected"),
        [
            ("vscode_settings", ["all"], True),
            ("vscode_settings", ["vscode"], True),
            ("vscode_settings", ["vscode_settings"], True),
            ("vscode_settings", ["vscode_ext"], False),
            ("npm_config", ["vscode", "npm"], True),
            ("homebrew", ["homebrew"], True),
            ("vscode_settings", [], False),
        ],
    )
    def test_matches_selection(self, name: str, selectors: list[str], expected: bool) -> None:
        assert matches_selection(name, selectors) is expected

    def test_category(self) -> None:
        assert plugin_category("vscode_keybindings") == "vscode"
        assert plugin_category("static") == "static"

    def test_include_plugins_from_config(self) -> None:
        registry = PluginManager(DotSnapshotConfig(include_plugins=["npm"]))
        for plugin in (StaticPlugin("npm_config"), StaticPlugin("vscode_settings")):
            registry.register(plugin)
        assert [name for name, _ in registry.plugins()] == ["npm_config"]
        assert len(registry.plugins(["all"])) == 2

    def test_no_filter_returns_all_in_order(self) -> None:
        registry = make_registry(StaticPlugin("b_x"), StaticPlugin("a_x"))
        assert registry.list_plugin_names() == ["b_x", "a_x"]
        assert [name for name, _ in registry.plugins()] == ["b_x", "a_x"]


class TestRegistration:
    def test_duplicate_keeps_latest(self, caplog: pytest.LogCaptureFixture) -> None:
        first, second = StaticPlugin("a_x", "one"), StaticPlugin("a_x", "two")
        registry = make_registry(first)
        with caplog.at_level("WARNING", logger="dotsnapshot"):
            registry.register(second)
        assert registry.get_plugin("a_x") is second
        assert "registered twice" in caplog.text

    def test_collects_from_provider(self) -> None:
        config = DotSnapshotConfig(
            plugins={"vscode_settings": PluginConfig(output_file="settings.json")}
        )
        registry = PluginManager(config)
        registry.register_provider(_Provider())
        names = registry.discover_and_load()

        assert names == ["vscode_settings", "npm_config"]
        assert registry.is_loaded
        assert registry.output_file_for("vscode_settings") == "settings.json"

    def test_provider_after_load(self) -> None:
        registry = PluginManager()
        registry.discover_and_load()
        registry.register_provider(_Provider(), name="late")
        assert registry.list_plugin_names() == ["vscode_settings", "npm_config"]

    def test_broken_provider_is_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = PluginManager()
        registry.register_provider(_BrokenProvider())
        registry.register_provider(_Provider())
        with caplog.at_level("WARNING", logger="dotsnapshot"):
            names = registry.discover_and_load()
        assert names == ["vscode_settings", "npm_config"]
        assert "Failed to collect snapshot plugins" in caplog.text

    def test_non_plugin_entries_skipped(self) -> None:
        registry = PluginManager()
        registry.register_provider(_JunkProvider())
        assert registry.discover_and_load() == ["cursor_settings"]


class TestOutputPaths:
    def test_default(self) -> None:
        registry = make_registry(StaticPlugin("npm_config"))
        assert registry.output_path_for("npm_config") == Path("npm_config.txt")

    def test_target_and_file(self) -> None:
        plugin = StaticPlugin(
            "vscode_settings",
            config=PluginConfig(target_path="vscode", output_file="settings.json"),
        )
        registry = make_registry(plugin)
        assert registry.output_path_for("vscode_settings") == Path("vscode/settings.json")

    def test_unregistered_name(self) -> None:
        assert PluginManager().output_file_for("ghost") == "ghost.txt"

    def test_config_section_applies_to_bare_plugin(self) -> None:
        config = DotSnapshotConfig(
            plugins={
                "vscode_settings": PluginConfig(target_path="vscode", output_file="settings.json")
            }
        )
        registry = PluginManager(config)
        registry.register(StaticPlugin("vscode_settings"))
        assert registry.output_path_for("vscode_settings") == Path("vscode/settings.json")

    def test_config_section_wins_over_plugin_own(self) -> None:
        config = DotSnapshotConfig(plugins={"npm_config": PluginConfig(output_file="npmrc")})
        registry = PluginManager(config)
        registry.register(
            StaticPlugin("npm_config", config=PluginConfig(target_path="npm", output_file="own"))
        )
        assert registry.output_path_for("npm_config") == Path("npm/npmrc")


class TestDispatch:
    def test_post_restore_reaches_providers(self) -> None:
        seen: list[bool] = []

        class _Listener:
            @hookimpl
            def post_restore(
                self, snapshot_name: str, results: list[RestoreResult], dry_run: bool
            ) -> None:
                seen.append(dry_run)

        registry = PluginManager()
        registry.register_provider(_Listener())
        registry.dispatch("post_restore", snapshot_name="s", results=[], dry_run=True)
        assert seen == [True]

    def test_listener_failure_is_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        class _Exploding:
            @hookimpl
            def post_restore(
                self, snapshot_name: str, results: list[RestoreResult], dry_run: bool
            ) -> None:
                raise RuntimeError("listener failed")

        registry = PluginManager()
        registry.register_provider(_Exploding())
        with caplog.at_level("WARNING", logger="dotsnapshot"):
            registry.dispatch("post_restore", snapshot_name="s", results=[], dry_run=False)
        assert "Plugin hook post_restore failed" in caplog.text


class TestPluginDefaults:
    def test_base_behaviour(self, tmp_path: Path) -> None:
        plugin = StaticPlugin("a_x")
        assert plugin.get_target_path() is None
        assert plugin.get_output_file() is None
        assert plugin.get_restore_target_dir() is None
        assert plugin.get_default_restore_target_dir() == Path.home()
        assert plugin.creates_own_output_files() is False
        assert plugin.restore(tmp_path / "x", tmp_path, dry_run=True) == []
        plugin.validate()

    def test_hooks_from_config(self) -> None:
        action = LogAction(message="hi")
        plugin = StaticPlugin("a_x", config=PluginConfig(hooks={HookPhase.PRE_PLUGIN: [action]}))
        assert plugin.get_hooks(HookPhase.PRE_PLUGIN) == [action]
        assert plugin.get_hooks(HookPhase.POST_PLUGIN) == []
