"""Response envelope helpers.

Every path out of the dispatcher (success, validation failure, unknown
tool, handler exception) produces an ``Outcome`` built here.
"""

from __future__ import annotations

import json
from typing import Any

from mcp import types
from pydantic import ValidationError

from contracts.api import Outcome, TextContent


def text_outcome(text: str) -> Outcome:
    return Outcome(content=[TextContent(text=text)])


def error_outcome(text: str) -> Outcome:
    return Outcome(content=[TextContent(text=text)], is_error=True)


def json_outcome(data: Any) -> Outcome:
    """Pretty-printed JSON as a single text block."""
    return text_outcome(json.dumps(data, indent=2, default=str))


def _block(item: Any) -> TextContent:
    if isinstance(item, TextContent):
        return item
    if isinstance(item, str):
        return TextContent(text=item)
    return TextContent.model_validate(item)


def normalize_result(value: Any) -> Outcome:
    """Coerce a handler's return value into an ``Outcome``."""
    if isinstance(value, Outcome):
        return value
    if value is None:
        return Outcome()
    if isinstance(value, str):
        return text_outcome(value)
    try:
        if isinstance(value, dict) and "content" in value:
            return Outcome.model_validate(value)
        if isinstance(value, (list, tuple)):
            return Outcome(content=[_block(item) for item in value])
    except ValidationError as exc:
        return error_outcome(f"Tool returned a malformed result: {exc.error_count()} error(s)")
    return error_outcome(f"Tool returned an unsupported result type: {type(value).__name__}")


def to_mcp_result(outcome: Outcome) -> types.CallToolResult:
    """Convert an ``Outcome`` to the MCP SDK result type."""
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=block.text) for block in outcome.content],
        isError=outcome.is_error,
    )
