"""Plugin — the capability interface every snapshot plugin implements.

A plugin captures one configuration domain (editor settings, a package
manager's state, a set of dotfiles) as text content and can optionally put
that content back during a restore. The executor and restore manager only
talk to plugins through this interface.

Minimal plugin::

    class BrewfilePlugin(Plugin):
        name = "homebrew_brewfile"
        description = "Installed Homebrew packages"

        def execute(self, snapshot_dir: Path) -> str:
            return subprocess.run(["brew", "bundle", "dump", "--file=-"], ...).stdout
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

from dotsnapshot.config.models import PluginConfig
from dotsnapshot.domain.hooks import HookAction, HookPhase


class Plugin(ABC):
    """Abstract base for snapshot plugins.

    Plugins are shared read-only across concurrently running tasks; they
    should keep no per-run mutable state.

    Attributes:
        name: Registry name; also the default output filename stem.
        description: One-line summary shown by ``dotsnapshot list --plugins``.
    """

    name: ClassVar[str]
    description: ClassVar[str] = ""

    def __init__(self, config: PluginConfig | None = None) -> None:
        self._config = config or PluginConfig()

    @property
    def config(self) -> PluginConfig:
        return self._config

    @abstractmethod
    def execute(self, snapshot_dir: Path) -> str:
        """Capture and return the content to store.

        *snapshot_dir* is the directory being written; plugins that create
        their own output files write below it.
        """

    def validate(self) -> None:
        """Raise if the plugin cannot run (e.g. a required binary is missing)."""

    def get_target_path(self) -> str | None:
        """Subdirectory of the snapshot to place output in."""
        return self._config.target_path

    def get_output_file(self) -> str | None:
        """Output filename override."""
        return self._config.output_file

    def get_restore_target_dir(self) -> str | None:
        """Configured restore destination, if any."""
        return self._config.restore_target_dir

    def get_default_restore_target_dir(self) -> Path:
        return Path.home()

    def get_hooks(self, phase: HookPhase) -> list[HookAction]:
        """Hooks this plugin declares for *phase*."""
        return list(self._config.hooks.get(phase, []))

    def creates_own_output_files(self) -> bool:
        """True if ``execute`` writes its own files into the snapshot."""
        return False

    def restore(self, snapshot_path: Path, target_path: Path, dry_run: bool) -> list[Path]:
        """Put *snapshot_path* back under *target_path*. Returns restored paths.

        When *dry_run* is True nothing may be modified; return the paths
        that would be restored. The default implementation restores nothing.
        """
        return []
