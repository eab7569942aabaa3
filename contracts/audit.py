"""Audit logging contracts.

Append-only JSONL: one record per dispatch event.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AuditEvent(str, Enum):
    TOOL_CALL = "tool.call"
    TOOL_RESULT = "tool.result"
    TOOL_UNKNOWN = "tool.unknown"
    TOOL_REJECTED = "tool.rejected"
    TOOL_FAULT = "tool.fault"


class AuditEntry(BaseModel):
    """A single audit log record."""

    ts: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: str
    event: AuditEvent
    tool: str = ""
    transport: str = ""
    detail: dict[str, Any] = {}  # arguments, error kind, duration, etc.


class AuditLogger(ABC):
    """Interface for the append-only audit logger."""

    @abstractmethod
    def log(self, entry: AuditEntry) -> None:
        """Append an entry to the audit log."""
        ...

    @abstractmethod
    def query_by_request(self, request_id: str) -> list[AuditEntry]:
        """Return all entries for a given request_id."""
        ...

    @abstractmethod
    def query_by_event(self, event: AuditEvent, limit: int = 100) -> list[AuditEntry]:
        """Return recent entries of a given event type."""
        ...

    @abstractmethod
    def tail(self, n: int = 20) -> list[AuditEntry]:
        """Return the last N entries."""
        ...


class NullAuditLogger(AuditLogger):
    """Discards every entry; used when auditing is disabled."""

    def log(self, entry: AuditEntry) -> None:
        return None

    def query_by_request(self, request_id: str) -> list[AuditEntry]:
        return []

    def query_by_event(self, event: AuditEvent, limit: int = 100) -> list[AuditEntry]:
        return []

    def tail(self, n: int = 20) -> list[AuditEntry]:
        return []
