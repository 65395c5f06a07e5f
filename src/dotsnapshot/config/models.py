"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, dotsnapshot.toml only contains
overrides. A config file with no content at all is valid.

Hook lists are keyed by lifecycle phase name::

    [[global.hooks.post-snapshot]]
    action = "notify"
    message = "Snapshot {snapshot_name} done"

    [plugins.vscode_settings]
    target_path = "vscode"
    output_file = "settings.json"

    [[plugins.vscode_settings.hooks.pre-plugin]]
    action = "script"
    command = "vscode-pre.sh"
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from dotsnapshot.domain.hooks import HookAction, HookPhase, HooksConfig

DEFAULT_OUTPUT_DIR = Path(".snapshots")


class GlobalConfig(BaseModel):
    """[global] section."""

    model_config = {"frozen": True}

    hooks: dict[HookPhase, list[HookAction]] = Field(default_factory=dict)


class PluginConfig(BaseModel):
    """[plugins.<name>] section.

    Unknown keys are kept so plugins can read their own options via
    ``model_extra``.
    """

    model_config = {"frozen": True, "extra": "allow"}

    target_path: str | None = None
    output_file: str | None = None
    restore_target_dir: str | None = None
    hooks: dict[HookPhase, list[HookAction]] = Field(default_factory=dict)


class LoggingConfig(BaseModel):
    """[logging] section."""

    model_config = {"frozen": True}

    verbose: bool = False


class DotSnapshotConfig(BaseModel):
    """Root configuration composing all sections.

    The executor and restore manager only call the accessor methods; they
    never look at the TOML structure directly.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    output_dir: Path = DEFAULT_OUTPUT_DIR
    include_plugins: list[str] | None = None
    hooks: HooksConfig = Field(default_factory=HooksConfig)
    global_: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    plugins: dict[str, PluginConfig] = Field(default_factory=dict)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def get_output_dir(self) -> Path:
        return self.output_dir.expanduser()

    def get_hooks_config(self) -> HooksConfig:
        return self.hooks

    def get_global_hooks(self, phase: HookPhase) -> list[HookAction]:
        return list(self.global_.hooks.get(phase, []))

    def get_plugin_config(self, plugin_name: str) -> PluginConfig | None:
        return self.plugins.get(plugin_name)

    def get_plugin_hooks(self, plugin_name: str, phase: HookPhase) -> list[HookAction]:
        plugin_config = self.plugins.get(plugin_name)
        if plugin_config is None:
            return []
        return list(plugin_config.hooks.get(phase, []))

    def get_include_plugins(self) -> list[str] | None:
        return self.include_plugins
