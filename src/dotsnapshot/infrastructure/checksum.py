"""Content and directory checksums (SHA-256, lowercase hex).

Checksum equality is only a reuse hint for the executor. The directory
checksum recorded at finalization is the integrity record for a snapshot.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

# Metadata lives here and is excluded from the directory checksum.
METADATA_DIRNAME = ".snapshot"


def calculate_checksum(content: str) -> str:
    """SHA-256 of the UTF-8 encoding of *content*."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def calculate_directory_checksum(directory: Path) -> str:
    """Checksum over every file under *directory*, ordered by relative path.

    Each file contributes ``<relative path>:<sha256 of bytes>``; the lines are
    joined with newlines and hashed again. Files under ``.snapshot/`` are
    skipped so the checksum can be stored there without changing itself.
    """
    lines: list[str] = []
    for path in sorted(p for p in directory.rglob("*") if p.is_file()):
        relative = path.relative_to(directory)
        if relative.parts[0] == METADATA_DIRNAME:
            continue
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        lines.append(f"{relative.as_posix()}:{digest}")
    return calculate_checksum("\n".join(lines))
