"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``DOTSNAPSHOT_*`` prefix (``__`` for nesting)
  3. TOML file    — ``dotsnapshot.toml`` discovered via walk-up
  4. Code defaults — baked into the section models

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource` that
reuses the ``find_config`` discovery from :mod:`dotsnapshot.config.discovery`.
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from dotsnapshot.config.discovery import find_config, read_toml
from dotsnapshot.config.models import (
    DEFAULT_OUTPUT_DIR,
    DotSnapshotConfig,
    GlobalConfig,
    LoggingConfig,
    PluginConfig,
)
from dotsnapshot.domain.hooks import HooksConfig


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``dotsnapshot.toml`` file.

    ``global`` is a Python keyword, so the ``[global]`` table is exposed
    to the settings model as ``global_hooks``.
    """

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            try:
                self._data = read_toml(toml_path)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc
            if "global" in self._data:
                self._data["global_hooks"] = self._data.pop("global")

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class DotSnapshotSettings(BaseSettings):
    """Unified settings for the dotsnapshot CLI.

    Stored on the click context object at the CLI root. Services receive
    the plain :class:`DotSnapshotConfig` built by :meth:`to_config`.

    Attributes:
        config_root: Directory relative ``output_dir`` values resolve against
            (parent of the config file, or CWD if no config was found).
        config_path: The config file in effect, or None.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "DOTSNAPSHOT_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }

    # --- Resolved paths (not in TOML) ---
    config_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    output_dir: Path = DEFAULT_OUTPUT_DIR
    include_plugins: list[str] | None = None
    hooks: HooksConfig = Field(default_factory=HooksConfig)
    global_hooks: GlobalConfig = Field(default_factory=GlobalConfig)
    plugins: dict[str, PluginConfig] = Field(default_factory=dict)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        config_root: Path | None = None,
        **cli_flags: Any,
    ) -> DotSnapshotSettings:
        """Construct settings from CLI invocation.

        Discovers ``dotsnapshot.toml`` (or uses an explicit *config_path*),
        resolves *config_root* from the config file's parent directory,
        and merges CLI flags as highest-priority overrides. ``None`` flags
        are dropped so they do not mask env or TOML values.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path).expanduser()
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(config_root)

        resolved_root = config_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        flags = {key: value for key, value in cli_flags.items() if value is not None}

        _tls.toml_path = toml_path
        try:
            return cls(
                config_root=resolved_root,
                config_path=toml_path,
                **flags,
            )
        finally:
            _tls.toml_path = None

    @property
    def is_verbose(self) -> bool:
        """``--verbose`` or ``[logging] verbose = true``."""
        return self.verbose or self.logging.verbose

    def to_config(self) -> DotSnapshotConfig:
        """Project the TOML-backed sections into a :class:`DotSnapshotConfig`."""
        output_dir = self.output_dir.expanduser()
        if not output_dir.is_absolute():
            output_dir = self.config_root / output_dir
        return DotSnapshotConfig(
            output_dir=output_dir,
            include_plugins=self.include_plugins,
            hooks=self.hooks,
            global_=self.global_hooks,
            plugins=self.plugins,
            logging=self.logging,
        )
