"""Built-in count-files tool."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome
from runtime.tools.fs_utils import default_folder, walk
from runtime.tools.list_files import filter_fields, filters_from_args

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


class CountFilesTool(BaseTool):
    def definition(self) -> ToolDefinition:
        schema = filter_fields()
        schema.update({
            "count_files": BooleanField(default=True, description="Count files."),
            "count_folders": BooleanField(default=False, description="Count folders."),
        })
        return ToolDefinition(
            name="count-files",
            title="Count Files",
            description="Counts files and/or folders in a directory, using the same filters as list-files.",
            schema=schema,
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        folder = Path(args["folderPath"]) if args.get("folderPath") else default_folder()
        if not folder.exists():
            return error_outcome(f"Error: Path does not exist: {folder}")
        count_files, count_folders = args["count_files"], args["count_folders"]
        if not count_files and not count_folders:
            return error_outcome("Error: You must choose to count files, folders, or both.")

        filters = filters_from_args(args, include_files=count_files, include_folders=count_folders)
        try:
            items = await asyncio.to_thread(walk, folder, filters)
        except re.error as exc:
            return error_outcome(f"An unexpected error occurred: {exc}")

        lines = [f"Analysis of '{folder}':"]
        if count_files:
            lines.append(f"- Files found: {sum(1 for i in items if i.type == 'file')}")
        if count_folders:
            lines.append(f"- Folders found: {sum(1 for i in items if i.type == 'directory')}")
        return text_outcome("\n".join(lines))


def register(server: ToolServer) -> None:
    server.register(CountFilesTool().definition())
