"""Built-in move-files tool."""

from __future__ import annotations

import asyncio
import shutil
import uuid
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome
from runtime.tools.fs_utils import tree_file_count, tree_size

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


class MoveFilesTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="move-files",
            title="Move Files",
            description="Moves or renames a file or folder.",
            schema={
                "sourcePath": StringField(description="Path of the file or folder to move."),
                "targetPath": StringField(description="Destination path."),
                "overwrite": BooleanField(default=False, description="Replace an existing target."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        source, target = Path(args["sourcePath"]), Path(args["targetPath"])

        if not source.exists():
            return error_outcome(f"Error: Source file or folder {source} does not exist")
        if source.resolve() == target.resolve():
            return error_outcome("Error: Source and target paths cannot be the same")
        if _nested(source.resolve(), target.resolve()):
            return error_outcome(
                f"Error: Cannot move {source} to {target}: one path is inside the other"
            )
        if target.exists() and not args["overwrite"]:
            return error_outcome(
                f"Error: Target path {target} already exists. Set overwrite=true to overwrite."
            )

        try:
            is_dir, size, count = await asyncio.to_thread(_move, source, target)
        except (OSError, shutil.Error) as exc:
            return error_outcome(f"Error moving file: {exc}")

        lines = [
            "Move complete!",
            f"Source path: {source}",
            f"Target path: {target}",
            f"Type: {'Folder' if is_dir else 'File'}",
            f"Size: {round(size / 1024)}KB",
        ]
        if is_dir:
            lines.append(f"Files included: {count}")
        return text_outcome("\n".join(lines))


def _move(source: Path, target: Path) -> tuple[bool, int, int]:
    is_dir = source.is_dir()
    size, count = tree_size(source), tree_file_count(source)

    # an existing target is set aside until the move has succeeded
    backup = None
    if target.exists():
        backup = target.with_name(f".{target.name}.{uuid.uuid4().hex[:8]}.move-backup")
        target.rename(backup)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(target))
        if not target.exists():
            raise OSError("Move operation completed but target file not found")
    except Exception:
        if backup is not None:
            _remove(target)
            backup.rename(target)
        raise

    if backup is not None:
        _remove(backup)
    return is_dir, size, count


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def _nested(a: Path, b: Path) -> bool:
    return a != b and (a.is_relative_to(b) or b.is_relative_to(a))


def register(server: ToolServer) -> None:
    server.register(MoveFilesTool().definition())
