"""Built-in get-file-metadata tool: stat information as JSON."""

from __future__ import annotations

import os
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, StringField, ToolDefinition

from runtime.envelope import error_outcome, json_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class GetFileMetadataTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="get-file-metadata",
            title="Get File Metadata",
            description="Returns size, type, timestamps and permissions of a file or directory.",
            schema={"path": StringField(description="Path of the file or directory.")},
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        path = Path(args["path"])
        if not os.path.lexists(path):
            return error_outcome(f"Error: Path does not exist: {path}")
        try:
            st = path.stat()
        except OSError as exc:
            return error_outcome(f"Failed to get metadata for {path}: {exc}")

        # st_birthtime only exists on some platforms; fall back to ctime.
        created = getattr(st, "st_birthtime", st.st_ctime)
        return json_outcome({
            "path": str(path),
            "size": st.st_size,
            "isFile": stat.S_ISREG(st.st_mode),
            "isDirectory": stat.S_ISDIR(st.st_mode),
            "isSymbolicLink": path.is_symlink(),
            "createdAt": _iso(created),
            "modifiedAt": _iso(st.st_mtime),
            "accessedAt": _iso(st.st_atime),
            "permissions": format(st.st_mode & 0o777, "o"),
        })


def register(server: ToolServer) -> None:
    server.register(GetFileMetadataTool().definition())
