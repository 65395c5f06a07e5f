"""Result and metadata records produced by snapshot and restore runs."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


class PluginResult(BaseModel):
    """Outcome of one plugin in one snapshot run.

    Attributes:
        plugin_name: Registered plugin name.
        content: Captured content (empty on failure).
        checksum: SHA-256 of ``content`` (empty on failure).
        success: Whether the plugin produced content.
        error_message: Failure reason when ``success`` is False.
        reused: True when the file was copied from the prior snapshot.
        output_path: Where the content landed in the snapshot, if written.
    """

    model_config = {"frozen": True}

    plugin_name: str
    content: str = ""
    checksum: str = ""
    success: bool
    error_message: str | None = None
    reused: bool = False
    output_path: Path | None = None

    @classmethod
    def failure(cls, plugin_name: str, message: str) -> PluginResult:
        return cls(plugin_name=plugin_name, success=False, error_message=message)


class SnapshotMetadata(BaseModel):
    """Contents of ``.snapshot/checksum.json``."""

    timestamp: datetime
    version: str
    checksums: dict[str, str] = Field(default_factory=dict)
    directory_checksum: str = ""


class RestoreResult(BaseModel):
    """Outcome of restoring one plugin from a snapshot."""

    model_config = {"frozen": True}

    plugin_name: str
    success: bool
    restored_files: int = 0
    backup_path: Path | None = None
    error_message: str | None = None


class SnapshotInfo(BaseModel):
    """Read-only summary of a snapshot directory."""

    model_config = {"frozen": True}

    name: str
    path: Path
    created_at: datetime
    size_bytes: int
    plugin_count: int

    def format_size(self) -> str:
        """Human-readable size.

        Examples:
            >>> SnapshotInfo(name="a", path=Path("a"), created_at=datetime(2024, 1, 1),
            ...              size_bytes=1536, plugin_count=0).format_size()
            '1.5 KB'
        """
        size = float(self.size_bytes)
        unit = 0
        while size >= 1024 and unit < len(_SIZE_UNITS) - 1:
            size /= 1024
            unit += 1
        if unit == 0:
            return f"{self.size_bytes} B"
        return f"{size:.1f} {_SIZE_UNITS[unit]}"
