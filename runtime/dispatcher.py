"""Dispatcher: resolve, validate, execute and normalise one tool call.

Per invocation:

    RECEIVED → RESOLVED | UNRESOLVED → VALIDATED | REJECTED
             → EXECUTING → COMPLETED | FAILED

Every path resolves to exactly one ``Outcome``; nothing is retried.
"""

from __future__ import annotations

import inspect
import logging
import time
import uuid
from typing import Any

from contracts.api import Outcome
from contracts.audit import AuditEntry, AuditEvent, AuditLogger, NullAuditLogger
from contracts.errors import ErrorKind, UnknownToolError
from contracts.tool_sdk import ToolDefinition

from runtime.envelope import error_outcome, normalize_result
from runtime.tools.base import ValidationFailure, validate_args
from runtime.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

_MAX_LOGGED_CHARS = 256


class Dispatcher:
    """Runs named tool calls against a registry."""

    def __init__(
        self,
        registry: ToolRegistry,
        audit: AuditLogger | None = None,
        transport: str = "",
    ) -> None:
        self._registry = registry
        self._audit = audit or NullAuditLogger()
        self._transport = transport

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def dispatch(self, tool_name: str, raw_arguments: dict[str, Any] | None = None) -> Outcome:
        """Execute one tool call and return its Outcome.  Never raises."""
        request_id = str(uuid.uuid4())
        try:
            return await self._dispatch(request_id, tool_name, raw_arguments or {})
        except Exception as exc:
            logger.exception("Dispatch of '%s' failed outside the handler", tool_name)
            return error_outcome(f"Internal error while dispatching '{tool_name}': {exc}")

    async def _dispatch(self, request_id: str, tool_name: str, raw_arguments: dict[str, Any]) -> Outcome:
        try:
            definition = self._registry.get(tool_name)
        except UnknownToolError as exc:
            logger.warning("Unknown tool requested: %s", tool_name)
            self._log(request_id, AuditEvent.TOOL_UNKNOWN, tool_name, {"kind": ErrorKind.UNKNOWN_TOOL.value})
            return error_outcome(str(exc))

        validated = validate_args(definition, raw_arguments)
        if isinstance(validated, ValidationFailure):
            logger.info("Rejected call to '%s': %s", tool_name, validated.message)
            self._log(
                request_id,
                AuditEvent.TOOL_REJECTED,
                tool_name,
                {"kind": ErrorKind.VALIDATION.value, "field": validated.field, "reason": validated.reason},
            )
            return error_outcome(f"Invalid arguments for tool '{tool_name}': {validated.message}")

        self._log(request_id, AuditEvent.TOOL_CALL, tool_name, {"arguments": _loggable(definition, validated)})
        start = time.monotonic()
        outcome = await self._execute(request_id, definition, validated)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        kind = ErrorKind.HANDLER_ERROR.value if outcome.is_error else None
        self._log(
            request_id,
            AuditEvent.TOOL_RESULT,
            tool_name,
            {"is_error": outcome.is_error, "kind": kind, "duration_ms": duration_ms},
        )
        logger.debug("call_tool done: %s (%.1f ms, error=%s)", tool_name, duration_ms, outcome.is_error)
        return outcome

    async def _execute(self, request_id: str, definition: ToolDefinition, args: dict[str, Any]) -> Outcome:
        try:
            result = definition.handler(args)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            logger.exception("Tool '%s' raised", definition.name)
            self._log(
                request_id,
                AuditEvent.TOOL_FAULT,
                definition.name,
                {"kind": ErrorKind.HANDLER_FAULT.value, "error": str(exc)},
            )
            return error_outcome(f"Error executing tool '{definition.name}': {exc}")
        return normalize_result(result)

    def _log(self, request_id: str, event: AuditEvent, tool_name: str, detail: dict[str, Any]) -> None:
        self._audit.log(
            AuditEntry(
                request_id=request_id,
                event=event,
                tool=tool_name,
                transport=self._transport,
                detail=detail,
            )
        )


def _loggable(definition: ToolDefinition, arguments: dict[str, Any]) -> dict[str, Any]:
    """Validated arguments as written to the audit trail.

    Sensitive fields are redacted; binary payloads and long strings are
    replaced by their size.
    """
    logged: dict[str, Any] = {}
    for key, value in arguments.items():
        descriptor = definition.fields.get(key)
        if descriptor is not None and descriptor.sensitive:
            logged[key] = "<redacted>"
        elif isinstance(value, (bytes, bytearray)):
            logged[key] = f"<{len(value)} bytes>"
        elif isinstance(value, str) and len(value) > _MAX_LOGGED_CHARS:
            logged[key] = f"<{len(value)} chars>"
        else:
            logged[key] = value
    return logged
