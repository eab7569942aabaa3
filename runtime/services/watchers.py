"""Filesystem watcher service.

Owns every active watcher, keyed by resolved path.  Lifecycle: created by
the server handle, handed to the ``watch-file-changes`` tool at
registration, and shut down by the transport when the process exits.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

logger = logging.getLogger(__name__)


class WatcherError(Exception):
    """Raised for watcher lifecycle violations (duplicate start, unknown stop)."""


class _CommandOnChange(FileSystemEventHandler):
    """Runs a shell command whenever something under the watched path changes."""

    def __init__(self, path: Path, command: str) -> None:
        self._path = path
        self._command = command

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in ("opened", "closed", "closed_no_write"):
            return
        logger.info(
            "Change detected (%s) in %s. Executing command: %s",
            event.event_type, event.src_path, self._command,
        )
        try:
            proc = subprocess.run(
                self._command, shell=True, capture_output=True, text=True, check=False
            )
        except OSError as exc:
            logger.error("Error executing watch command for %s: %s", self._path, exc)
            return
        if proc.returncode != 0:
            logger.error("Watch command exited with %d: %s", proc.returncode, proc.stderr.strip())
        elif proc.stderr:
            logger.warning("Watch command stderr: %s", proc.stderr.strip())
        if proc.stdout:
            logger.info("Watch command stdout: %s", proc.stdout.strip())


@dataclass
class ActiveWatch:
    path: Path
    command: str
    recursive: bool
    observer: BaseObserver


class WatcherService:
    """Process-wide registry of active filesystem watchers."""

    def __init__(self) -> None:
        self._watches: dict[Path, ActiveWatch] = {}
        self._lock = threading.Lock()

    def start(self, path: str | Path, command: str, recursive: bool = False) -> Path:
        """Start watching *path*; raises ``WatcherError`` if already watched."""
        resolved = Path(path).resolve()
        with self._lock:
            if resolved in self._watches:
                raise WatcherError(f"Already watching path: {resolved}. Stop it first.")
            if not resolved.exists():
                raise WatcherError(f"Path does not exist: {resolved}")

            observer = Observer()
            observer.schedule(_CommandOnChange(resolved, command), str(resolved), recursive=recursive)
            observer.daemon = True
            observer.start()
            self._watches[resolved] = ActiveWatch(resolved, command, recursive, observer)

        logger.info("Started watching %s", resolved)
        return resolved

    def stop(self, path: str | Path) -> Path:
        """Stop watching *path*; raises ``WatcherError`` if it is not watched."""
        resolved = Path(path).resolve()
        with self._lock:
            watch = self._watches.pop(resolved, None)
        if watch is None:
            raise WatcherError(f"No active watcher found for path: {resolved}")
        _halt(watch)
        logger.info("Stopped watching %s", resolved)
        return resolved

    def active(self) -> list[Path]:
        with self._lock:
            return sorted(self._watches)

    def shutdown(self) -> None:
        """Stop every watcher.  Safe to call more than once."""
        with self._lock:
            watches = list(self._watches.values())
            self._watches.clear()
        for watch in watches:
            _halt(watch)
        if watches:
            logger.info("Stopped %d file watcher(s)", len(watches))


def _halt(watch: ActiveWatch) -> None:
    watch.observer.stop()
    watch.observer.join(timeout=5)
