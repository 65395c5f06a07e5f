"""Filesystem helpers shared by hooks, the executor, and the restore manager.

Copying, pattern-based cleanup, and directory size accounting. Everything
here is synchronous and raises ``OSError`` on I/O failure; callers decide
whether that failure is fatal.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

# Well-known temp locations swept by a Cleanup hook with ``temp_files`` set.
TEMP_DIRS: tuple[Path, ...] = (
    Path(tempfile.gettempdir()),
    Path("/tmp"),
    Path("/var/tmp"),
)

# Only files we created are eligible in the temp sweep.
TEMP_FILE_PATTERN = "dotsnapshot*"


# ---------------------------------------------------------------------------
# Copying
# ---------------------------------------------------------------------------


def copy_path(source: Path, destination: Path) -> None:
    """Copy a single file, or a directory tree recursively.

    Parent directories of a file destination must already exist. Directory
    copies merge into an existing destination.
    """
    if source.is_dir():
        shutil.copytree(source, destination, dirs_exist_ok=True)
    else:
        shutil.copy2(source, destination)


def write_atomic(path: Path, content: str) -> None:
    """Write *content* to *path* through a sibling temp file.

    *path* either holds the full content or is left as it was; the temp file
    is removed when the write or the final rename fails.
    """
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


# ---------------------------------------------------------------------------
# Pattern cleanup
# ---------------------------------------------------------------------------


def matches_pattern(pattern: str, filename: str) -> bool:
    """Match *filename* against a simple wildcard pattern.

    Supported forms: ``*`` (everything), ``prefix*``, ``*suffix``,
    ``*middle*`` (substring), or an exact filename. Any other use of ``*``
    is treated literally.

    Examples:
        >>> matches_pattern("*.tmp", "a.tmp")
        True
        >>> matches_pattern("*tmp*", "file.tmp.bak")
        True
        >>> matches_pattern("test*", "other")
        False
    """
    if pattern == "*":
        return True
    if len(pattern) >= 2 and pattern.startswith("*") and pattern.endswith("*"):
        return pattern[1:-1] in filename
    if pattern.startswith("*"):
        return filename.endswith(pattern[1:])
    if pattern.endswith("*"):
        return filename.startswith(pattern[:-1])
    return pattern == filename


def cleanup_pattern(directory: Path, pattern: str) -> int:
    """Delete regular files in *directory* whose name matches *pattern*.

    Returns the number of files removed. A file that cannot be removed is
    logged and skipped; failing to list *directory* raises ``OSError``.
    """
    removed = 0
    for entry in directory.iterdir():
        if not entry.is_file() or not matches_pattern(pattern, entry.name):
            continue
        try:
            entry.unlink()
        except OSError as exc:
            logger.warning("Failed to remove %s: %s", entry, exc)
        else:
            removed += 1
    return removed


def cleanup_temp_files() -> int:
    """Sweep :data:`TEMP_DIRS` for leftover ``dotsnapshot*`` files."""
    removed = 0
    seen: set[Path] = set()
    for temp_dir in TEMP_DIRS:
        resolved = temp_dir.resolve()
        if resolved in seen or not resolved.is_dir():
            continue
        seen.add(resolved)
        try:
            removed += cleanup_pattern(resolved, TEMP_FILE_PATTERN)
        except OSError as exc:
            logger.debug("Temp sweep of %s failed: %s", resolved, exc)
    return removed


# ---------------------------------------------------------------------------
# Size accounting
# ---------------------------------------------------------------------------


def directory_size(directory: Path) -> int:
    """Total size in bytes of all files below *directory*."""
    return sum(p.stat().st_size for p in directory.rglob("*") if p.is_file())
