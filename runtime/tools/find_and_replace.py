"""Built-in find-and-replace tool: in-place text substitution in one file."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


def replace_text(content: str, search: str, replacement: str, is_regex: bool, replace_all: bool) -> str:
    """Return *content* with *search* replaced.  Raises ``re.error`` for a bad pattern."""
    count = 0 if replace_all else 1
    if is_regex:
        return re.sub(search, replacement, content, count=count)
    return content.replace(search, replacement, -1 if replace_all else 1)


class FindAndReplaceTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="find-and-replace",
            title="Find and Replace",
            description="Finds and replaces text in a file, optionally using a regular expression.",
            schema={
                "path": StringField(description="The file to modify."),
                "search": StringField(description="Text or regex pattern to search for."),
                "replace": StringField(description="Replacement text."),
                "isRegex": BooleanField(default=False, description="Treat search as a regular expression."),
                "replaceAll": BooleanField(default=True, description="False replaces only the first match."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        path = Path(args["path"])
        if not path.is_file():
            return error_outcome(f"Error: File does not exist: {path}")

        try:
            original = await asyncio.to_thread(path.read_text, encoding="utf-8")
            updated = replace_text(original, args["search"], args["replace"], args["isRegex"], args["replaceAll"])
            if updated == original:
                return text_outcome("No changes were made. The search term was not found.")
            await asyncio.to_thread(path.write_text, updated, encoding="utf-8")
        except (OSError, UnicodeDecodeError, re.error) as exc:
            return error_outcome(f"An error occurred: {exc}")
        return text_outcome(f"Successfully replaced content in {path}.")


def register(server: ToolServer) -> None:
    server.register(FindAndReplaceTool().definition())
