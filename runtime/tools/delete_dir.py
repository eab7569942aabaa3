"""Built-in delete-dir tool."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


class DeleteDirTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="delete-dir",
            title="Delete Directory",
            description="Deletes a directory. Without recursive, the directory must be empty.",
            schema={
                "dirPath": StringField(description="Path of the directory to delete."),
                "recursive": BooleanField(default=True, description="Delete contents as well."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        path = Path(args["dirPath"])
        if not path.exists():
            return error_outcome(f"Error: Directory {path} does not exist.")
        if not path.is_dir():
            return error_outcome(f"Error: {path} is a file, not a directory.")
        if not args["recursive"] and any(path.iterdir()):
            return error_outcome(f"Error: Directory {path} is not empty. Use recursive: true to delete it.")

        try:
            await asyncio.to_thread(shutil.rmtree, path)
        except OSError as exc:
            return error_outcome(f"Error deleting directory: {exc}")
        return text_outcome(f"Successfully deleted directory: {path}")


def register(server: ToolServer) -> None:
    server.register(DeleteDirTool().definition())
