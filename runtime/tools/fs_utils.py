"""Filesystem helpers shared by the file tools."""

from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class FileDetails:
    path: str
    type: str  # "file" | "directory"
    size: int
    modified_date: datetime

    def to_json(self) -> dict:
        return {
            "path": self.path,
            "type": self.type,
            "size": self.size,
            "modified_date": self.modified_date.isoformat(),
        }


@dataclass
class WalkFilters:
    include_hidden: bool = False
    pattern: str | None = None
    recursive: bool = False
    max_depth: int | None = None
    min_size_kb: int | None = None
    max_size_kb: int | None = None
    modified_since_days: int | None = None
    include_files: bool = True
    include_folders: bool = False


def walk(directory: str | Path, filters: WalkFilters, depth: int = 0) -> list[FileDetails]:
    """List entries under *directory* that pass *filters*.

    Unreadable directories and entries are skipped with a warning.
    Raises ``re.error`` for an invalid name pattern.
    """
    regex = re.compile(filters.pattern) if filters.pattern else None
    cutoff = (
        time.time() - filters.modified_since_days * 86400
        if filters.modified_since_days is not None
        else None
    )
    return _walk(Path(directory), filters, regex, cutoff, depth)


def _walk(
    directory: Path,
    filters: WalkFilters,
    regex: re.Pattern[str] | None,
    cutoff: float | None,
    depth: int,
) -> list[FileDetails]:
    results: list[FileDetails] = []
    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as exc:
        logger.warning("Could not read directory %s: %s", directory, exc)
        return results

    for entry in entries:
        if not filters.include_hidden and entry.name.startswith("."):
            continue
        try:
            stats = entry.stat()
        except OSError as exc:
            logger.warning("Could not stat item %s: %s", entry.path, exc)
            continue
        modified = datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc)
        matches = (regex is None or regex.search(entry.name) is not None) and (
            cutoff is None or stats.st_mtime >= cutoff
        )

        if entry.is_dir():
            if filters.include_folders and matches:
                results.append(FileDetails(entry.path, "directory", stats.st_size, modified))
            if filters.recursive and (filters.max_depth is None or depth < filters.max_depth):
                results.extend(_walk(Path(entry.path), filters, regex, cutoff, depth + 1))
        elif entry.is_file() and matches:
            if filters.min_size_kb is not None and stats.st_size < filters.min_size_kb * 1024:
                continue
            if filters.max_size_kb is not None and stats.st_size > filters.max_size_kb * 1024:
                continue
            if filters.include_files:
                results.append(FileDetails(entry.path, "file", stats.st_size, modified))
    return results


def tree_size(path: Path) -> int:
    """Total size in bytes of a file or of every file below a directory."""
    if path.is_file():
        return path.stat().st_size
    return sum(p.stat().st_size for p in path.rglob("*") if p.is_file())


def tree_file_count(path: Path) -> int:
    if path.is_file():
        return 1
    return sum(1 for p in path.rglob("*") if p.is_file())


def default_folder() -> Path:
    return Path.home() / "Desktop"
