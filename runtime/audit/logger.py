"""JSONL audit trail of tool dispatches.

One ``AuditEntry`` per line, appended under a lock so concurrent
dispatches never interleave.  Readers tolerate a torn final line, which
a fail-fast exit can leave behind mid-write.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Iterator

from pydantic import ValidationError

from contracts.audit import AuditEntry, AuditEvent, AuditLogger

logger = logging.getLogger(__name__)


class JsonlAuditLogger(AuditLogger):
    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._write_lock = threading.Lock()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._end_torn_line()

    def log(self, entry: AuditEntry) -> None:
        record = entry.model_dump_json()
        with self._write_lock, self._path.open("a", encoding="utf-8") as out:
            out.write(record + "\n")

    def query_by_request(self, request_id: str) -> list[AuditEntry]:
        """Every entry of one dispatch, in the order it was written."""
        return self.query(request_id=request_id, limit=None)

    def query_by_event(self, event: AuditEvent, limit: int = 100) -> list[AuditEntry]:
        return self.query(event=event, limit=limit)

    def tail(self, n: int = 20) -> list[AuditEntry]:
        return self.query(limit=n)

    def query(
        self,
        *,
        request_id: str | None = None,
        event: AuditEvent | None = None,
        tool: str | None = None,
        limit: int | None = 100,
    ) -> list[AuditEntry]:
        """The newest *limit* entries matching every given filter, oldest first."""
        matches = [
            e for e in self._entries()
            if (request_id is None or e.request_id == request_id)
            and (event is None or e.event == event)
            and (tool is None or e.tool == tool)
        ]
        return matches if limit is None else matches[-limit:]

    def _end_torn_line(self) -> None:
        if not self._path.exists() or self._path.stat().st_size == 0:
            return
        with self._path.open("rb") as src:
            src.seek(-1, os.SEEK_END)
            torn = src.read(1) != b"\n"
        if torn:
            with self._path.open("a", encoding="utf-8") as out:
                out.write("\n")

    def _entries(self) -> Iterator[AuditEntry]:
        if not self._path.exists():
            return
        with self._path.open("r", encoding="utf-8") as src:
            for lineno, raw in enumerate(src, start=1):
                if not raw.strip():
                    continue
                try:
                    yield AuditEntry(**json.loads(raw))
                except (json.JSONDecodeError, TypeError, ValidationError):
                    logger.warning("Skipping unreadable audit line %d in %s", lineno, self._path)
