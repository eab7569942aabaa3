"""Built-in copy-files tool: copy a file or a whole directory tree."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome
from runtime.tools.fs_utils import tree_file_count, tree_size

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


class CopyFilesTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="copy-files",
            title="Copy Files",
            description="Copies a file or folder to a new location.",
            schema={
                "sourcePath": StringField(description="Path of the file or folder to copy."),
                "targetPath": StringField(description="Destination path."),
                "overwrite": BooleanField(default=False, description="Replace an existing target."),
                "preserveTimestamps": BooleanField(default=True, description="Keep modification times."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        source, target = Path(args["sourcePath"]), Path(args["targetPath"])
        overwrite, preserve = args["overwrite"], args["preserveTimestamps"]

        if not source.exists():
            return error_outcome(f"Error: Source file or folder {source} does not exist")
        if target.exists() and not overwrite:
            return error_outcome(
                f"Error: Target path {target} already exists. Set overwrite=true to overwrite."
            )

        try:
            is_dir, size, count = await asyncio.to_thread(_copy, source, target, preserve)
        except (OSError, shutil.Error) as exc:
            return error_outcome(f"Error copying file: {exc}")

        lines = [
            "Copy complete!",
            f"Source path: {source}",
            f"Target path: {target}",
            f"Type: {'Folder' if is_dir else 'File'}",
            f"Size: {round(size / 1024)}KB",
        ]
        if is_dir:
            lines.append(f"Files included: {count}")
        lines.append(f"Timestamps preserved: {'Yes' if preserve else 'No'}")
        return text_outcome("\n".join(lines))


def _copy(source: Path, target: Path, preserve: bool) -> tuple[bool, int, int]:
    copy_fn = shutil.copy2 if preserve else shutil.copy
    size = tree_size(source)

    if source.is_dir():
        shutil.copytree(source, target, copy_function=copy_fn, dirs_exist_ok=True)
        return True, size, tree_file_count(target)

    target.parent.mkdir(parents=True, exist_ok=True)
    copy_fn(source, target)
    return False, size, 1


def register(server: ToolServer) -> None:
    server.register(CopyFilesTool().definition())
