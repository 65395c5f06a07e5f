"""Shared pytest fixtures and test helpers for dotsnapshot tests."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest
from click.testing import CliRunner

from dotsnapshot.config.models import PluginConfig
from dotsnapshot.domain.hooks import HookContext, HooksConfig
from dotsnapshot.plugins.base import Plugin
from dotsnapshot.plugins.manager import PluginManager


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def scripts_dir(tmp_path: Path) -> Path:
    path = tmp_path / "scripts"
    path.mkdir()
    return path


@pytest.fixture
def snapshots_dir(tmp_path: Path) -> Path:
    """Base directory for snapshots (not created up front)."""
    return tmp_path / "snapshots"


@pytest.fixture
def hook_context(tmp_path: Path, scripts_dir: Path) -> HookContext:
    """Context for a snapshot named 20240115_103000 under tmp_path."""
    snapshot_dir = tmp_path / "snap"
    snapshot_dir.mkdir()
    return HookContext(
        snapshot_name="20240115_103000",
        snapshot_dir=snapshot_dir,
        hooks_config=HooksConfig(scripts_dir=scripts_dir),
    )


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's own config and env out of every test."""
    monkeypatch.delenv("DOTSNAPSHOT_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


# ---------------------------------------------------------------------------
# Shared test plugins
# ---------------------------------------------------------------------------


class StaticPlugin(Plugin):
    """Returns fixed content; name is set per instance."""

    description = "Static test content"

    def __init__(
        self,
        name: str,
        content: str = "content",
        config: PluginConfig | None = None,
    ) -> None:
        super().__init__(config)
        self.name = name  # type: ignore[misc]
        self.content = content
        self.calls = 0

    def execute(self, snapshot_dir: Path) -> str:
        self.calls += 1
        return self.content


class FailingPlugin(StaticPlugin):
    def execute(self, snapshot_dir: Path) -> str:
        raise RuntimeError(f"{self.name} exploded")


class InvalidPlugin(StaticPlugin):
    def validate(self) -> None:
        raise RuntimeError("required tool is not installed")


class SelfWritingPlugin(StaticPlugin):
    """Writes its own tree below the snapshot directory."""

    def creates_own_output_files(self) -> bool:
        return True

    def execute(self, snapshot_dir: Path) -> str:
        target = snapshot_dir / self.name
        target.mkdir(parents=True, exist_ok=True)
        (target / "a.conf").write_text(self.content, encoding="utf-8")
        return self.content


class RestorablePlugin(StaticPlugin):
    """Restores by copying the snapshot file into the target directory."""

    def restore(self, snapshot_path: Path, target_path: Path, dry_run: bool) -> list[Path]:
        destination = target_path / snapshot_path.name
        if not dry_run:
            target_path.mkdir(parents=True, exist_ok=True)
            shutil.copy2(snapshot_path, destination)
        return [destination]


class BrokenRestorePlugin(StaticPlugin):
    def restore(self, snapshot_path: Path, target_path: Path, dry_run: bool) -> list[Path]:
        raise OSError("target is read-only")


def make_registry(*plugins: Plugin) -> PluginManager:
    """PluginManager holding *plugins*, with no entry points loaded."""
    registry = PluginManager()
    for plugin in plugins:
        registry.register(plugin)
    return registry
