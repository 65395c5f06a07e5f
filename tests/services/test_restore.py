"""Tests for RestoreManager — candidates, targets, backups, dry runs."""

from __future__ import annotations

from pathlib import Path

import pytest

from dotsnapshot.config.models import DotSnapshotConfig, PluginConfig
from dotsnapshot.domain.errors import SnapshotNotFoundError
from dotsnapshot.domain.hooks import HooksConfig
from dotsnapshot.plugins.manager import PluginManager
from dotsnapshot.services.executor import SnapshotExecutor
from dotsnapshot.services.restore import RESTORE_BACKUPS_DIRNAME, RestoreManager
from tests.conftest import (
    BrokenRestorePlugin,
    RestorablePlugin,
    SelfWritingPlugin,
    make_registry,
)


def take_snapshot(registry: PluginManager, snapshots_dir: Path, name: str = "snap") -> Path:
    return SnapshotExecutor(registry, snapshots_dir).execute_snapshot(name).snapshot_dir


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


class TestRestoreLookup:
    def test_missing_snapshot_raises(self, snapshots_dir: Path, tmp_path: Path) -> None:
        marker = tmp_path / "hook-ran"
        script = tmp_path / "touch.sh"
        script.write_text(f"#!/bin/sh\ntouch {marker}\n")
        script.chmod(0o755)
        config = DotSnapshotConfig.model_validate(
            {
                "hooks": {"scripts_dir": str(tmp_path)},
                "global": {"hooks": {"pre-restore": [{"action": "script", "command": "touch.sh"}]}},
            }
        )
        manager = RestoreManager(make_registry(), snapshots_dir, config)
        with pytest.raises(SnapshotNotFoundError, match="Snapshot 'nope' not found"):
            manager.restore_from_snapshot("nope")
        assert not marker.exists()

    def test_candidates_include_static_and_registered(self, snapshots_dir: Path) -> None:
        registry = make_registry(
            RestorablePlugin("npm_config", "registry=x"),
            SelfWritingPlugin("ssh_config", "Host *"),
        )
        snapshot_dir = take_snapshot(registry, snapshots_dir)
        (snapshot_dir / "Brewfile").write_text('brew "git"\n')

        candidates = RestoreManager(registry, snapshots_dir).find_candidates(snapshot_dir)
        assert candidates == {
            "homebrew_brewfile": snapshot_dir / "Brewfile",
            "npm_config": snapshot_dir / "npm_config.txt",
            "ssh_config": snapshot_dir / "ssh_config",
        }

    def test_list_snapshots(self, snapshots_dir: Path) -> None:
        registry = make_registry(RestorablePlugin("npm_config"))
        take_snapshot(registry, snapshots_dir, "one")
        manager = RestoreManager(registry, snapshots_dir)
        assert [s.name for s in manager.list_snapshots()] == ["one"]


# ---------------------------------------------------------------------------
# Restore runs
# ---------------------------------------------------------------------------


class TestRestoreFromSnapshot:
    def test_restores_into_explicit_target(self, snapshots_dir: Path, tmp_path: Path) -> None:
        registry = make_registry(RestorablePlugin("npm_config", "registry=x"))
        take_snapshot(registry, snapshots_dir)
        target = tmp_path / "home"

        [result] = RestoreManager(registry, snapshots_dir).restore_from_snapshot(
            "snap", target_dir=target
        )
        assert result.success
        assert result.restored_files == 1
        assert (target / "npm_config.txt").read_text() == "registry=x"

    def test_dry_run_changes_nothing(self, snapshots_dir: Path, tmp_path: Path) -> None:
        registry = make_registry(RestorablePlugin("npm_config", "registry=x"))
        take_snapshot(registry, snapshots_dir)
        target = tmp_path / "home"

        [result] = RestoreManager(registry, snapshots_dir).restore_from_snapshot(
            "snap", dry_run=True, backup_existing=True, target_dir=target
        )
        assert result.success
        assert result.restored_files == 1
        assert not target.exists()
        assert not (snapshots_dir / RESTORE_BACKUPS_DIRNAME).exists()

    def test_backup_of_existing_file(self, snapshots_dir: Path, tmp_path: Path) -> None:
        registry = make_registry(RestorablePlugin("npm_config", "new"))
        take_snapshot(registry, snapshots_dir)
        target = tmp_path / "home"
        target.mkdir()
        (target / "npm_config.txt").write_text("old")

        [result] = RestoreManager(registry, snapshots_dir).restore_from_snapshot(
            "snap", backup_existing=True, target_dir=target
        )
        assert result.backup_path is not None
        assert result.backup_path.read_text() == "old"
        assert result.backup_path.parent.name == "npm_config"
        assert result.backup_path.parents[2] == snapshots_dir / RESTORE_BACKUPS_DIRNAME
        assert (target / "npm_config.txt").read_text() == "new"

    def test_backups_hidden_from_listing(self, snapshots_dir: Path, tmp_path: Path) -> None:
        registry = make_registry(RestorablePlugin("npm_config"))
        take_snapshot(registry, snapshots_dir)
        target = tmp_path / "home"
        target.mkdir()
        (target / "npm_config.txt").write_text("old")
        manager = RestoreManager(registry, snapshots_dir)
        manager.restore_from_snapshot("snap", backup_existing=True, target_dir=target)
        assert [s.name for s in manager.list_snapshots()] == ["snap"]

    def test_unavailable_plugin_reported(self, snapshots_dir: Path, tmp_path: Path) -> None:
        registry = make_registry(RestorablePlugin("npm_config"))
        snapshot_dir = take_snapshot(registry, snapshots_dir)
        (snapshot_dir / "Brewfile").write_text("x")

        results = RestoreManager(registry, snapshots_dir).restore_from_snapshot(
            "snap", target_dir=tmp_path / "home"
        )
        by_name = {r.plugin_name: r for r in results}
        assert by_name["npm_config"].success
        assert not by_name["homebrew_brewfile"].success
        assert by_name["homebrew_brewfile"].error_message == (
            "Plugin 'homebrew_brewfile' not available"
        )

    def test_one_failure_does_not_stop_others(self, snapshots_dir: Path, tmp_path: Path) -> None:
        registry = make_registry(BrokenRestorePlugin("a_x"), RestorablePlugin("b_x"))
        take_snapshot(registry, snapshots_dir)

        results = RestoreManager(registry, snapshots_dir).restore_from_snapshot(
            "snap", target_dir=tmp_path / "home"
        )
        by_name = {r.plugin_name: r for r in results}
        assert by_name["a_x"].error_message == "target is read-only"
        assert by_name["b_x"].success

    def test_selection(self, snapshots_dir: Path, tmp_path: Path) -> None:
        registry = make_registry(
            RestorablePlugin("vscode_settings"),
            RestorablePlugin("npm_config"),
        )
        take_snapshot(registry, snapshots_dir)
        results = RestoreManager(registry, snapshots_dir).restore_from_snapshot(
            "snap", ["vscode"], target_dir=tmp_path / "home"
        )
        assert [r.plugin_name for r in results] == ["vscode_settings"]

    def test_tampered_snapshot_warns(
        self,
        snapshots_dir: Path,
        tmp_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        registry = make_registry(RestorablePlugin("npm_config", "original"))
        snapshot_dir = take_snapshot(registry, snapshots_dir)
        (snapshot_dir / "npm_config.txt").write_text("edited")

        caplog.set_level("WARNING", logger="dotsnapshot")
        RestoreManager(registry, snapshots_dir).restore_from_snapshot(
            "snap", target_dir=tmp_path / "home"
        )
        assert any("recorded checksum" in r.getMessage() for r in caplog.records)

    def test_post_restore_hook_variables(self, snapshots_dir: Path, tmp_path: Path) -> None:
        log = tmp_path / "hook.log"
        script = tmp_path / "record.sh"
        script.write_text(f'#!/bin/sh\necho "$@" >> {log}\n')
        script.chmod(0o755)
        hook = {
            "action": "script",
            "command": "record.sh",
            "args": ["{restored_count}", "{failed_count}", "{file_count}"],
        }
        config = DotSnapshotConfig.model_validate(
            {
                "hooks": {"scripts_dir": str(tmp_path)},
                "global": {"hooks": {"post-restore": [hook]}},
            }
        )
        registry = make_registry(RestorablePlugin("a_x"), BrokenRestorePlugin("b_x"))
        take_snapshot(registry, snapshots_dir)

        RestoreManager(registry, snapshots_dir, config).restore_from_snapshot(
            "snap", target_dir=tmp_path / "home"
        )
        assert log.read_text().strip() == "1 1 1"


# ---------------------------------------------------------------------------
# Target resolution
# ---------------------------------------------------------------------------


class TestResolveTarget:
    def test_precedence(self, snapshots_dir: Path, tmp_path: Path) -> None:
        own = RestorablePlugin("a_x", config=PluginConfig(restore_target_dir=str(tmp_path / "own")))
        bare = RestorablePlugin("b_x")
        config = DotSnapshotConfig(
            hooks=HooksConfig(scripts_dir=tmp_path),
            plugins={"a_x": PluginConfig(restore_target_dir=str(tmp_path / "configured"))},
        )
        manager = RestoreManager(make_registry(own, bare), snapshots_dir, config)

        assert manager.resolve_target("a_x", own, tmp_path / "cli") == tmp_path / "cli"
        assert manager.resolve_target("a_x", own, None) == tmp_path / "configured"
        assert manager.resolve_target("b_x", bare, None) == Path.home()

    def test_plugin_own_target(self, snapshots_dir: Path, tmp_path: Path) -> None:
        own = RestorablePlugin("a_x", config=PluginConfig(restore_target_dir=str(tmp_path / "own")))
        manager = RestoreManager(make_registry(own), snapshots_dir)
        assert manager.resolve_target("a_x", own, None) == tmp_path / "own"
