"""Tests for SnapshotOperations — ServiceResult wrapping of each engine call."""

from __future__ import annotations

from pathlib import Path

import pytest

from dotsnapshot.config.models import DotSnapshotConfig
from dotsnapshot.domain.errors import PartialFailureError, SnapshotNotFoundError
from dotsnapshot.services.operations import SnapshotOperations, error_result
from tests.conftest import FailingPlugin, RestorablePlugin, StaticPlugin, make_registry


@pytest.fixture
def config(tmp_path: Path, scripts_dir: Path) -> DotSnapshotConfig:
    return DotSnapshotConfig.model_validate(
        {
            "output_dir": str(tmp_path / "snapshots"),
            "hooks": {"scripts_dir": str(scripts_dir)},
        }
    )


class TestErrorResult:
    def test_code_and_message(self) -> None:
        result = error_result("restore", SnapshotNotFoundError("x"))
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "SNAPSHOT_NOT_FOUND"
        assert result.error.message == "Snapshot 'x' not found"

    def test_partial_failure_detail(self) -> None:
        result = error_result("snapshot", PartialFailureError(["a", "b"], 5))
        assert result.error is not None
        assert result.error.message == "2/5 failed: a, b"
        assert result.error.detail == {"failed": ["a", "b"], "total": 5}


class TestSnapshot:
    def test_success_payload(self, config: DotSnapshotConfig) -> None:
        registry = make_registry(StaticPlugin("a_x", "one"), FailingPlugin("b_x"))
        result = SnapshotOperations(registry, config).snapshot(name="first")

        assert result.ok
        assert result.data["snapshot_name"] == "first"
        assert result.data["succeeded"] == 1
        assert result.data["failed"] == 1
        assert "content" not in result.data["plugins"][0]
        assert result.warnings == ["Plugin b_x failed: b_x exploded"]

    def test_strict_turns_failures_into_error(self, config: DotSnapshotConfig) -> None:
        registry = make_registry(StaticPlugin("a_x"), FailingPlugin("b_x"))
        result = SnapshotOperations(registry, config).snapshot(strict=True)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "PARTIAL_FAILURE"

    def test_name_collision(self, config: DotSnapshotConfig) -> None:
        ops = SnapshotOperations(make_registry(), config)
        assert ops.snapshot(name="same").ok
        result = ops.snapshot(name="same")
        assert result.error is not None
        assert result.error.code == "SNAPSHOT_EXISTS"

    @pytest.mark.parametrize("name", ["../escaped", "x/y"])
    def test_invalid_name(self, config: DotSnapshotConfig, tmp_path: Path, name: str) -> None:
        result = SnapshotOperations(make_registry(StaticPlugin("a_x")), config).snapshot(name=name)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "INVALID_NAME"
        assert not (tmp_path / "escaped").exists()

    def test_hook_failures_become_warnings(self, tmp_path: Path) -> None:
        config = DotSnapshotConfig.model_validate(
            {
                "output_dir": str(tmp_path / "snapshots"),
                "hooks": {"scripts_dir": str(tmp_path)},
                "global": {"hooks": {"pre-snapshot": [{"action": "script", "command": "no.sh"}]}},
            }
        )
        result = SnapshotOperations(make_registry(), config).snapshot()
        assert result.ok
        [warning] = result.warnings
        assert warning.startswith("global hook failed: script: no.sh: Validation failed")


class TestListing:
    def test_list_snapshots(self, config: DotSnapshotConfig) -> None:
        ops = SnapshotOperations(make_registry(StaticPlugin("a_x")), config)
        ops.snapshot(name="one")
        result = ops.list_snapshots()
        assert result.data["count"] == 1
        row = result.data["snapshots"][0]
        assert row["name"] == "one"
        assert row["plugin_count"] == 1
        assert row["size"].endswith("B")

    def test_latest_snapshot_name(self, config: DotSnapshotConfig) -> None:
        ops = SnapshotOperations(make_registry(), config)
        assert ops.latest_snapshot_name() is None
        ops.snapshot(name="only")
        assert ops.latest_snapshot_name() == "only"

    def test_list_plugins(self, config: DotSnapshotConfig) -> None:
        registry = make_registry(StaticPlugin("npm_config"))
        result = SnapshotOperations(registry, config).list_plugins()
        assert result.data["plugins"] == [
            {
                "name": "npm_config",
                "description": "Static test content",
                "output": "npm_config.txt",
            }
        ]


class TestRestore:
    def test_missing_snapshot(self, config: DotSnapshotConfig) -> None:
        result = SnapshotOperations(make_registry(), config).restore("ghost")
        assert result.error is not None
        assert result.error.code == "SNAPSHOT_NOT_FOUND"

    def test_restore_payload(self, config: DotSnapshotConfig, tmp_path: Path) -> None:
        ops = SnapshotOperations(make_registry(RestorablePlugin("npm_config", "x")), config)
        ops.snapshot(name="s")
        result = ops.restore("s", target_dir=tmp_path / "home")
        assert result.ok
        assert result.data["restored"] == 1
        assert result.data["failed"] == 0
        assert (tmp_path / "home" / "npm_config.txt").read_text() == "x"


class TestClean:
    def test_requires_name_or_days(self, config: DotSnapshotConfig) -> None:
        result = SnapshotOperations(make_registry(), config).clean()
        assert result.error is not None
        assert result.error.code == "INVALID_ARGUMENTS"

    def test_unknown_name(self, config: DotSnapshotConfig) -> None:
        result = SnapshotOperations(make_registry(), config).clean(name="ghost")
        assert result.error is not None
        assert result.error.code == "SNAPSHOT_NOT_FOUND"

    def test_by_name(self, config: DotSnapshotConfig) -> None:
        ops = SnapshotOperations(make_registry(), config)
        ops.snapshot(name="old")
        result = ops.clean(name="old")
        assert result.data == {"deleted": ["old"], "dry_run": False}
        assert ops.list_snapshots().data["count"] == 0


class TestHooksOperations:
    @pytest.fixture
    def hooked(self, tmp_path: Path, scripts_dir: Path) -> DotSnapshotConfig:
        (scripts_dir / "ok.sh").write_text("#!/bin/sh\n")
        return DotSnapshotConfig.model_validate(
            {
                "output_dir": str(tmp_path / "snapshots"),
                "hooks": {"scripts_dir": str(scripts_dir)},
                "global": {
                    "hooks": {
                        "pre-snapshot": [{"action": "script", "command": "ok.sh"}],
                        "post-restore": [{"action": "log", "message": "x", "level": "loud"}],
                    }
                },
                "plugins": {
                    "npm_config": {
                        "hooks": {"pre-plugin": [{"action": "script", "command": "gone.sh"}]}
                    }
                },
            }
        )

    def test_list_all(self, hooked: DotSnapshotConfig) -> None:
        result = SnapshotOperations(make_registry(), hooked).hooks_list()
        assert [(h["scope"], h["phase"]) for h in result.data["hooks"]] == [
            ("global", "pre-snapshot"),
            ("global", "post-restore"),
            ("npm_config", "pre-plugin"),
        ]

    def test_list_one_plugin(self, hooked: DotSnapshotConfig) -> None:
        result = SnapshotOperations(make_registry(), hooked).hooks_list(plugin="npm_config")
        assert result.data["count"] == 1
        assert result.data["hooks"][0]["description"] == "script: gone.sh"

    def test_list_unknown_plugin(self, hooked: DotSnapshotConfig) -> None:
        result = SnapshotOperations(make_registry(), hooked).hooks_list(plugin="ghost")
        assert result.error is not None
        assert result.error.code == "PLUGIN_NOT_FOUND"

    def test_validate(self, hooked: DotSnapshotConfig) -> None:
        result = SnapshotOperations(make_registry(), hooked).hooks_validate()
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "HOOK_INVALID"
        assert result.data["checked"] == 3
        assert [i["scope"] for i in result.data["invalid"]] == ["global", "npm_config"]

    def test_validate_clean_config(self, config: DotSnapshotConfig) -> None:
        result = SnapshotOperations(make_registry(), config).hooks_validate()
        assert result.ok
        assert result.data == {"checked": 0, "invalid": []}
