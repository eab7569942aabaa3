"""Built-in delete-file tool."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


class DeleteFileTool(BaseTool):
    """Remove a single file.  Directories are refused; see delete-dir."""

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="delete-file",
            title="Delete File",
            description="Deletes a file.",
            schema={"filePath": StringField(description="Path of the file to delete.")},
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        path = Path(args["filePath"])
        if not path.exists():
            return error_outcome(f"Error: File {path} does not exist.")
        if not path.is_file():
            return error_outcome(f"Error: {path} is a directory, not a file.")
        try:
            path.unlink()
        except OSError as exc:
            return error_outcome(f"Error deleting file: {exc}")
        return text_outcome(f"Successfully deleted file: {path}")


def register(server: ToolServer) -> None:
    server.register(DeleteFileTool().definition())
