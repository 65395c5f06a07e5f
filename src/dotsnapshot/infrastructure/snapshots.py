"""Snapshot directory storage — creation, metadata, prior-snapshot lookup.

Layout of one snapshot::

    <base>/<YYYYMMDD_HHMMSS>/
        <plugin output files and subtrees>
        .snapshot/checksum.json

INVARIANT: A finalized snapshot directory is never written again. Later runs
only read it (checksum lookup, copy-forward) and restores only read it.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from dotsnapshot import __version__
from dotsnapshot.domain.errors import InvalidSnapshotNameError
from dotsnapshot.domain.results import SnapshotInfo, SnapshotMetadata
from dotsnapshot.infrastructure.checksum import METADATA_DIRNAME, calculate_directory_checksum
from dotsnapshot.infrastructure.filesystem import directory_size

logger = logging.getLogger(__name__)

METADATA_FILENAME = "checksum.json"
LEGACY_METADATA_FILENAME = "metadata.json"
SNAPSHOT_NAME_FORMAT = "%Y%m%d_%H%M%S"

# Timestamp names, with an optional collision suffix (20240115_100000_1).
_SNAPSHOT_NAME_RE = re.compile(r"^\d{8}_\d{6}(_\d+)?$")


def is_snapshot_name(name: str) -> bool:
    """Whether *name* looks like an auto-generated snapshot directory name."""
    return _SNAPSHOT_NAME_RE.match(name) is not None


def is_valid_name(name: str) -> bool:
    """Whether *name* is a single, non-special component below the base directory."""
    return bool(name) and "/" not in name and os.sep not in name and name not in (".", "..")


def _name_order(path: Path) -> tuple[str, int]:
    """Sort key: timestamp, then numeric collision suffix (so _10 follows _9)."""
    stamp, suffix = path.name[:15], path.name[16:]
    return stamp, int(suffix) if suffix else 0


class SnapshotManager:
    """Owns the snapshots base directory and the metadata file format."""

    def __init__(self, base_path: Path) -> None:
        self._base_path = base_path

    @property
    def base_path(self) -> Path:
        return self._base_path

    # ------------------------------------------------------------------
    # Creation and metadata
    # ------------------------------------------------------------------

    def create_snapshot_dir(self, name: str | None = None) -> Path:
        """Create a fresh snapshot directory.

        Without *name*, the directory is named after the current UTC time;
        a numeric suffix is appended if that name is taken. An explicit
        *name* that already exists raises ``FileExistsError``; one that is not
        a plain directory name raises :class:`InvalidSnapshotNameError`.
        """
        if name is not None and not is_valid_name(name):
            raise InvalidSnapshotNameError(name)
        self._base_path.mkdir(parents=True, exist_ok=True)
        if name is not None:
            snapshot_dir = self._base_path / name
            snapshot_dir.mkdir()
            return snapshot_dir

        stamp = datetime.now(UTC).strftime(SNAPSHOT_NAME_FORMAT)
        candidate = stamp
        suffix = 0
        while True:
            snapshot_dir = self._base_path / candidate
            try:
                snapshot_dir.mkdir()
            except FileExistsError:
                suffix += 1
                candidate = f"{stamp}_{suffix}"
                continue
            return snapshot_dir

    @staticmethod
    def create_metadata() -> SnapshotMetadata:
        """Empty metadata for a run that is just starting."""
        return SnapshotMetadata(timestamp=datetime.now(UTC), version=__version__)

    @staticmethod
    def metadata_path(snapshot_dir: Path) -> Path:
        return snapshot_dir / METADATA_DIRNAME / METADATA_FILENAME

    def save_metadata(self, snapshot_dir: Path, metadata: SnapshotMetadata) -> None:
        path = self.metadata_path(snapshot_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(metadata.model_dump_json(indent=2), encoding="utf-8")

    def load_metadata(self, snapshot_dir: Path) -> SnapshotMetadata:
        """Read metadata, falling back to the legacy ``metadata.json`` location.

        Raises ``FileNotFoundError`` if neither file exists and
        ``pydantic.ValidationError`` if the JSON does not match the schema.
        """
        path = self.metadata_path(snapshot_dir)
        if not path.exists():
            path = snapshot_dir / LEGACY_METADATA_FILENAME
        if not path.exists():
            msg = f"Metadata file not found in {snapshot_dir}"
            raise FileNotFoundError(msg)
        metadata = SnapshotMetadata.model_validate_json(path.read_text(encoding="utf-8"))
        if metadata.timestamp.tzinfo is None:
            metadata = metadata.model_copy(
                update={"timestamp": metadata.timestamp.replace(tzinfo=UTC)}
            )
        return metadata

    def finalize_snapshot(self, snapshot_dir: Path) -> str:
        """Compute and persist the whole-directory checksum. Returns it."""
        directory_checksum = calculate_directory_checksum(snapshot_dir)
        metadata = self.load_metadata(snapshot_dir)
        metadata.directory_checksum = directory_checksum
        self.save_metadata(snapshot_dir, metadata)
        return directory_checksum

    def verify_snapshot(self, snapshot_dir: Path) -> bool:
        """Recompute the directory checksum and compare it with the stored one."""
        try:
            metadata = self.load_metadata(snapshot_dir)
        except (OSError, ValidationError):
            return False
        if not metadata.directory_checksum:
            return False
        return calculate_directory_checksum(snapshot_dir) == metadata.directory_checksum

    # ------------------------------------------------------------------
    # Prior-snapshot lookup (checksum reuse)
    # ------------------------------------------------------------------

    def find_latest_snapshot_excluding(self, exclude_dir: Path) -> Path | None:
        """Most recent timestamp-named snapshot other than *exclude_dir*."""
        if not self._base_path.is_dir():
            return None
        candidates = sorted(
            (
                path
                for path in self._base_path.iterdir()
                if path.is_dir() and path != exclude_dir and is_snapshot_name(path.name)
            ),
            key=_name_order,
        )
        return candidates[-1] if candidates else None

    def find_reusable_file(
        self,
        plugin_name: str,
        relative_path: Path,
        checksum: str,
        exclude_dir: Path,
    ) -> Path | None:
        """Locate a prior-snapshot file holding identical content.

        Matches when the latest prior snapshot recorded the same checksum for
        *plugin_name* and a file exists at the same *relative_path*.
        """
        latest = self.find_latest_snapshot_excluding(exclude_dir)
        if latest is None:
            return None
        try:
            metadata = self.load_metadata(latest)
        except (OSError, ValidationError) as exc:
            logger.debug("No usable metadata in %s: %s", latest, exc)
            return None
        if metadata.checksums.get(plugin_name) != checksum:
            return None
        candidate = latest / relative_path
        return candidate if candidate.is_file() else None

    @staticmethod
    def copy_forward(source: Path, snapshot_dir: Path, relative_path: Path) -> Path:
        """Copy a prior-snapshot file into *snapshot_dir* at *relative_path*."""
        target = snapshot_dir / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
        return target

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def resolve(self, name: str) -> Path | None:
        """Path of the snapshot called *name*, or None if it does not exist."""
        if not is_valid_name(name):
            return None
        path = self._base_path / name
        return path if path.is_dir() else None

    def describe(self, snapshot_dir: Path) -> SnapshotInfo:
        """Build a :class:`SnapshotInfo`, preferring metadata over mtime."""
        try:
            metadata = self.load_metadata(snapshot_dir)
        except (OSError, ValidationError) as exc:
            logger.debug("Falling back to mtime for %s: %s", snapshot_dir.name, exc)
            created_at = datetime.fromtimestamp(snapshot_dir.stat().st_mtime, tz=UTC)
            plugin_count = 0
        else:
            created_at = metadata.timestamp
            plugin_count = len(metadata.checksums)

        return SnapshotInfo(
            name=snapshot_dir.name,
            path=snapshot_dir,
            created_at=created_at,
            size_bytes=directory_size(snapshot_dir),
            plugin_count=plugin_count,
        )

    def list_snapshots(self) -> list[SnapshotInfo]:
        """All snapshots under the base path, newest first.

        Hidden directories (metadata, restore backups) are skipped.
        """
        if not self._base_path.is_dir():
            logger.warning("Snapshots directory does not exist: %s", self._base_path)
            return []
        snapshots = [
            self.describe(path)
            for path in self._base_path.iterdir()
            if path.is_dir() and not path.name.startswith(".")
        ]
        snapshots.sort(key=lambda info: info.created_at, reverse=True)
        return snapshots
