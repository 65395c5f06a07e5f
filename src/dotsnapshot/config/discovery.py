"""Config file discovery and loading.

Lookup order: ``DOTSNAPSHOT_CONFIG`` env var, then a walk-up from the CWD
for ``dotsnapshot.toml`` (similar to how git finds .git/), then the user
config file ``~/.config/dotsnapshot/config.toml``.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotsnapshot.config.models import DotSnapshotConfig

CONFIG_FILENAME = "dotsnapshot.toml"
CONFIG_ENV_VAR = "DOTSNAPSHOT_CONFIG"


def user_config_path() -> Path:
    """``$XDG_CONFIG_HOME/dotsnapshot/config.toml`` (``~/.config`` by default)."""
    base = os.environ.get("XDG_CONFIG_HOME")
    config_dir = Path(base) if base else Path.home() / ".config"
    return config_dir / "dotsnapshot" / "config.toml"


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for dotsnapshot.toml.

    Returns the path to the config file, or None if not found.
    Checks DOTSNAPSHOT_CONFIG env var first and the user config file last.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_file():
            return p
        return None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    user_path = user_config_path()
    return user_path if user_path.is_file() else None


def read_toml(path: Path) -> dict[str, Any]:
    """Parse a TOML file into a dict. Raises ``tomllib.TOMLDecodeError``."""
    return tomllib.loads(path.read_text(encoding="utf-8"))


def load_config(path: Path | None = None, cwd: Path | None = None) -> DotSnapshotConfig:
    """Load and validate config from a TOML file.

    If *path* is None, uses find_config(*cwd*) to discover the file.
    Returns default DotSnapshotConfig if no file is found.
    """
    if path is None:
        path = find_config(cwd)

    if path is None:
        return DotSnapshotConfig()

    return DotSnapshotConfig.model_validate(read_toml(path))
