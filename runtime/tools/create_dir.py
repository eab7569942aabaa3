"""Built-in create-dir tool."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.config import LimitsConfig
from contracts.errors import ToolTimeoutError
from contracts.tool_sdk import BaseTool, NumberField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome
from runtime.tools.timeouts import limit_for, with_timeout

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


class CreateDirTool(BaseTool):
    def __init__(self, limits: LimitsConfig | None = None) -> None:
        self._limits = limits or LimitsConfig()

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="create-dir",
            title="Create Directory",
            description="Creates a directory, including any missing parents.",
            schema={
                "dirPath": StringField(min_length=1, description="Path of the directory to create."),
                "timeout": NumberField(required=False, description="Timeout in seconds (default 120, max 600)."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        path = Path(args["dirPath"])
        if path.exists():
            return text_outcome(f"Directory already exists: {path}")

        seconds = limit_for(args.get("timeout"), self._limits)
        try:
            await with_timeout(
                asyncio.to_thread(path.mkdir, parents=True, exist_ok=True),
                seconds,
                f"Directory creation operation timed out after {seconds:g}s",
            )
        except (OSError, ToolTimeoutError) as exc:
            return error_outcome(f"Error creating directory: {exc}")
        return text_outcome(f"Successfully created directory: {path}")


def register(server: ToolServer) -> None:
    server.register(CreateDirTool(server.config.limits).definition())
