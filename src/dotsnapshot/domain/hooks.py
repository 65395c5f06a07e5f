"""Hook vocabulary — lifecycle phases, action variants, context, results.

A hook is a user-configured side effect bound to a lifecycle phase. The set
of actions is fixed: script, log, notify, backup, cleanup. Actions are parsed
from TOML tables tagged by an ``action`` key::

    [[global.hooks.pre-snapshot]]
    action = "log"
    message = "Starting snapshot {snapshot_name}"

Validation and execution live in :mod:`dotsnapshot.services.hook_actions`;
this module holds only the immutable data.
"""

from __future__ import annotations

import os
from enum import StrEnum
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter

# Levels accepted by a Log action.
LOG_LEVELS = frozenset({"trace", "debug", "info", "warn", "error"})

# Number of message characters kept in an action description.
_DESCRIBE_CHARS = 50


class HookPhase(StrEnum):
    """Lifecycle checkpoints at which a hook batch runs."""

    PRE_SNAPSHOT = "pre-snapshot"
    POST_SNAPSHOT = "post-snapshot"
    PRE_PLUGIN = "pre-plugin"
    POST_PLUGIN = "post-plugin"
    PRE_RESTORE = "pre-restore"
    POST_RESTORE = "post-restore"


# ---------------------------------------------------------------------------
# Action variants
# ---------------------------------------------------------------------------


class ScriptAction(BaseModel):
    """Run a script or executable."""

    model_config = {"frozen": True}

    action: Literal["script"] = "script"
    command: str
    args: tuple[str, ...] = ()
    timeout: int = 30
    working_dir: Path | None = None
    env_vars: dict[str, str] = Field(default_factory=dict)

    def describe(self) -> str:
        return f"script: {self.command}"


class LogAction(BaseModel):
    """Log a message at a given level."""

    model_config = {"frozen": True}

    action: Literal["log"] = "log"
    message: str
    level: str = "info"

    def describe(self) -> str:
        return f'log: "{self.message[:_DESCRIBE_CHARS]}"'


class NotifyAction(BaseModel):
    """Announce a message. Rendered through the log until native notifications exist."""

    model_config = {"frozen": True}

    action: Literal["notify"] = "notify"
    message: str
    title: str | None = None

    def describe(self) -> str:
        return f'notify: "{self.message[:_DESCRIBE_CHARS]}"'


class BackupAction(BaseModel):
    """Copy a file or directory tree to a destination."""

    model_config = {"frozen": True}

    action: Literal["backup"] = "backup"
    path: Path
    destination: Path

    def describe(self) -> str:
        return f"backup: {self.path} → {self.destination}"


class CleanupAction(BaseModel):
    """Delete files matching simple wildcard patterns."""

    model_config = {"frozen": True}

    action: Literal["cleanup"] = "cleanup"
    patterns: tuple[str, ...] = ()
    directories: tuple[Path, ...] = ()
    temp_files: bool = False

    def describe(self) -> str:
        parts: list[str] = []
        if self.patterns:
            parts.append(f"patterns: {', '.join(self.patterns)}")
        if self.directories:
            parts.append(f"dirs: {len(self.directories)}")
        if self.temp_files:
            parts.append("temp_files")
        return f"cleanup: {', '.join(parts)}"


HookAction = Annotated[
    ScriptAction | LogAction | NotifyAction | BackupAction | CleanupAction,
    Field(discriminator="action"),
]

HOOK_ACTIONS = TypeAdapter(list[HookAction])


def parse_hook_actions(raw: list[dict[str, object]]) -> list[HookAction]:
    """Validate a list of raw TOML tables into typed hook actions."""
    return HOOK_ACTIONS.validate_python(raw)


# ---------------------------------------------------------------------------
# Configuration and context
# ---------------------------------------------------------------------------


def default_scripts_dir() -> Path:
    """``<user config dir>/dotsnapshot/scripts``."""
    base = os.environ.get("XDG_CONFIG_HOME")
    config_dir = Path(base) if base else Path.home() / ".config"
    return config_dir / "dotsnapshot" / "scripts"


class HooksConfig(BaseModel):
    """[hooks] section — where relative script commands are looked up."""

    model_config = {"frozen": True}

    scripts_dir: Path = Field(default_factory=default_scripts_dir)

    def resolve_script_path(self, command: str) -> Path:
        """Absolute commands are used as-is; relative ones live in ``scripts_dir``.

        ``~`` is expanded in both cases.
        """
        path = Path(command).expanduser()
        if path.is_absolute():
            return path
        return self.scripts_dir.expanduser() / command


class HookContext(BaseModel):
    """Template variables and path-resolution config for one hook batch.

    Contexts are frozen. ``with_*`` methods derive a new context, so the
    same base context can be handed to concurrently running plugin tasks.
    """

    model_config = {"frozen": True}

    snapshot_name: str
    snapshot_dir: Path
    plugin_name: str | None = None
    file_count: int = 0
    variables: dict[str, str] = Field(default_factory=dict)
    hooks_config: HooksConfig = Field(default_factory=HooksConfig)

    def with_plugin(self, plugin_name: str) -> HookContext:
        return self.model_copy(update={"plugin_name": plugin_name})

    def with_file_count(self, count: int) -> HookContext:
        return self.model_copy(update={"file_count": count})

    def with_variable(self, key: str, value: str) -> HookContext:
        return self.model_copy(update={"variables": {**self.variables, key: value}})

    def interpolate(self, template: str) -> str:
        """Replace ``{name}`` placeholders; unknown placeholders are left verbatim.

        Examples:
            >>> ctx = HookContext(snapshot_name="s1", snapshot_dir=Path("/snaps/s1"))
            >>> ctx.interpolate("{snapshot_name}: {plugin_name}")
            's1: {plugin_name}'
            >>> ctx.with_plugin("p1").interpolate("{snapshot_name}: {plugin_name}")
            's1: p1'
        """
        result = template
        result = result.replace("{snapshot_name}", self.snapshot_name)
        result = result.replace("{snapshot_dir}", str(self.snapshot_dir))
        result = result.replace("{file_count}", str(self.file_count))
        if self.plugin_name is not None:
            result = result.replace("{plugin_name}", self.plugin_name)
        for key, value in self.variables.items():
            result = result.replace(f"{{{key}}}", value)
        return result


class HookResult(BaseModel):
    """Outcome of one hook action. Logged and aggregated, never persisted."""

    model_config = {"frozen": True}

    success: bool
    execution_time_ms: int = 0
    output: str | None = None
    error: str | None = None
    action_description: str = ""
