"""Built-in list-files tool: filtered, sorted directory listings."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.config import LimitsConfig
from contracts.errors import ToolTimeoutError
from contracts.tool_sdk import BaseTool, BooleanField, EnumField, NumberField, StringField, ToolDefinition

from runtime.envelope import error_outcome, json_outcome, text_outcome
from runtime.tools.fs_utils import FileDetails, WalkFilters, default_folder, walk
from runtime.tools.timeouts import limit_for, with_timeout

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


def filter_fields() -> dict[str, Any]:
    """Schema fields shared by list-files and count-files."""
    return {
        "folderPath": StringField(required=False, description="Directory to scan. Defaults to ~/Desktop."),
        "includeHidden": BooleanField(default=False, description="Include hidden files and folders."),
        "recursive": BooleanField(default=False, description="Descend into subdirectories."),
        "pattern": StringField(required=False, description="Regex matched against entry names."),
        "max_depth": NumberField(integer=True, minimum=0, required=False, description="Maximum recursion depth."),
        "min_size_kb": NumberField(integer=True, minimum=0, required=False, description="Minimum file size in KB."),
        "max_size_kb": NumberField(integer=True, minimum=0, required=False, description="Maximum file size in KB."),
        "modified_since_days": NumberField(
            integer=True, minimum=0, required=False,
            description="Only entries modified within the last N days.",
        ),
    }


def filters_from_args(args: dict[str, Any], include_files: bool, include_folders: bool) -> WalkFilters:
    return WalkFilters(
        include_hidden=args["includeHidden"],
        pattern=args.get("pattern"),
        recursive=args["recursive"],
        max_depth=args.get("max_depth"),
        min_size_kb=args.get("min_size_kb"),
        max_size_kb=args.get("max_size_kb"),
        modified_since_days=args.get("modified_since_days"),
        include_files=include_files,
        include_folders=include_folders,
    )


class ListFilesTool(BaseTool):
    def __init__(self, limits: LimitsConfig | None = None) -> None:
        self._limits = limits or LimitsConfig()

    def definition(self) -> ToolDefinition:
        schema = filter_fields()
        schema.update({
            "include_folders": BooleanField(default=False, description="Include folders in the output."),
            "sort_by": EnumField(members=["path", "size", "modified_date"], required=False),
            "sort_order": EnumField(members=["asc", "desc"], default="asc"),
            "output_format": EnumField(
                members=["list_of_paths", "json", "detailed_list"], default="list_of_paths",
            ),
            "timeout": NumberField(required=False, description="Timeout in seconds (default 120, max 600)."),
        })
        return ToolDefinition(
            name="list-files",
            title="List Files",
            description="Lists files and folders with filtering, sorting and several output formats.",
            schema=schema,
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        folder = Path(args["folderPath"]) if args.get("folderPath") else default_folder()
        if not folder.exists():
            return error_outcome(f"Error: Path does not exist: {folder}")

        filters = filters_from_args(args, include_files=True, include_folders=args["include_folders"])
        seconds = limit_for(args.get("timeout"), self._limits)
        try:
            files = await with_timeout(
                asyncio.to_thread(walk, folder, filters),
                seconds,
                f"File listing operation timed out after {seconds:g}s",
            )
        except (ToolTimeoutError, re.error) as exc:
            return error_outcome(f"An unexpected error occurred: {exc}")

        sort_by = args.get("sort_by")
        if sort_by:
            files.sort(key=lambda f: getattr(f, sort_by), reverse=args["sort_order"] == "desc")

        output_format = args["output_format"]
        if output_format == "json":
            return json_outcome([f.to_json() for f in files])
        if output_format == "detailed_list":
            return text_outcome(_detailed(files))
        return text_outcome("Found items:\n" + "\n".join(f.path for f in files))


def _detailed(files: list[FileDetails]) -> str:
    rows = [
        f"{'D' if f.type == 'directory' else 'F'} | {f.size / 1024:8.2f} KB | "
        f"{f.modified_date.date().isoformat()} | {f.path}"
        for f in files
    ]
    return "\n".join(["Type | Size (KB) | Modified   | Path", "-" * 60, *rows])


def register(server: ToolServer) -> None:
    server.register(ListFilesTool(server.config.limits).definition())
