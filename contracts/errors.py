"""Error taxonomy for the dispatch layer.

None of these cross the dispatch boundary: the dispatcher turns each one
into an ``Outcome`` with ``isError`` set.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNKNOWN_TOOL = "unknown_tool"
    VALIDATION = "validation"
    HANDLER_ERROR = "handler_error"
    HANDLER_FAULT = "handler_fault"


class ToolHubError(Exception):
    """Base class for toolhub errors."""

    kind: ErrorKind = ErrorKind.HANDLER_FAULT


class UnknownToolError(ToolHubError, KeyError):
    kind = ErrorKind.UNKNOWN_TOOL

    def __init__(self, tool_name: str) -> None:
        super().__init__(tool_name)
        self.tool_name = tool_name

    def __str__(self) -> str:
        return f"Unknown tool: {self.tool_name}"


class ArgumentValidationError(ToolHubError, ValueError):
    kind = ErrorKind.VALIDATION

    def __init__(self, field: str, reason: str, code: str = "invalid") -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason
        self.code = code  # missing | invalid | unexpected


class ToolTimeoutError(ToolHubError, TimeoutError):
    """Raised by ``with_timeout`` when a handler exceeds its time limit."""

    kind = ErrorKind.HANDLER_ERROR
