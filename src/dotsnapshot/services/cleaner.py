"""SnapshotCleaner — delete snapshots by name or by age."""

from __future__ import annotations

import logging
import shutil
from datetime import UTC, datetime, timedelta
from pathlib import Path

from dotsnapshot.domain.results import SnapshotInfo
from dotsnapshot.infrastructure.snapshots import SnapshotManager

logger = logging.getLogger(__name__)

_CREATED_FMT = "%Y-%m-%d %H:%M:%S"


class SnapshotCleaner:
    def __init__(self, snapshots_dir: Path) -> None:
        self._snapshots = SnapshotManager(snapshots_dir)

    def list_snapshots(self) -> list[SnapshotInfo]:
        return self._snapshots.list_snapshots()

    def clean_by_name(self, name: str, dry_run: bool = False) -> bool:
        """Delete the snapshot called *name*. Returns False if there is none."""
        snapshot_dir = self._snapshots.resolve(name)
        if snapshot_dir is None:
            logger.warning("Snapshot '%s' not found", name)
            return False

        if dry_run:
            logger.info("Would delete snapshot: %s", name)
            return True

        logger.info("Deleting snapshot: %s", name)
        shutil.rmtree(snapshot_dir)
        return True

    def clean_by_retention(
        self,
        days: int,
        dry_run: bool = False,
        *,
        now: datetime | None = None,
    ) -> list[str]:
        """Delete snapshots created more than *days* days before *now*.

        Returns the names deleted (or, for a dry run, that would be).
        """
        cutoff = (now or datetime.now(UTC)) - timedelta(days=days)
        cleaned: list[str] = []
        for info in self.list_snapshots():
            if info.created_at >= cutoff:
                continue
            created = info.created_at.strftime(_CREATED_FMT)
            if dry_run:
                logger.info("Would delete snapshot: %s (created: %s)", info.name, created)
            else:
                logger.info("Deleting snapshot: %s (created: %s)", info.name, created)
                shutil.rmtree(info.path)
            cleaned.append(info.name)
        return cleaned
