"""Built-in write-file tool: write or append text or bytes, optionally atomically."""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BinaryField, BooleanField, EnumField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


class WriteFileTool(BaseTool):
    """Write content to a file.  Binary modes write ``content_base64``."""

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="write-file",
            title="Write to File",
            description=(
                "Writes content to a file, with options for encoding, mode and atomic "
                "writes. Text modes ('w', 'a') write content; binary modes ('wb', 'ab') "
                "write content_base64, the bytes encoded as base64."
            ),
            schema={
                "filePath": StringField(description="The path of the file to write to."),
                "content": StringField(required=False, description="Text to write in 'w' or 'a' mode."),
                "content_base64": BinaryField(
                    required=False, description="Base64-encoded bytes to write in 'wb' or 'ab' mode.",
                ),
                "encoding": StringField(default="utf-8", description="Text encoding for 'w' and 'a'."),
                "mode": EnumField(
                    members=["w", "a", "wb", "ab"], default="w",
                    description="'w' overwrite, 'a' append, 'wb'/'ab' the same for bytes.",
                ),
                "atomic": BooleanField(default=False, description="Write to a temp file, then rename."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        mode: str = args["mode"]
        field = "content_base64" if mode.endswith("b") else "content"
        content: str | bytes | None = args.get(field)
        if content is None:
            return error_outcome(f"Error: {field} is required in '{mode}' mode.")

        try:
            await asyncio.to_thread(_write, Path(args["filePath"]), content, mode, args["encoding"], args["atomic"])
        except (OSError, LookupError, UnicodeEncodeError) as exc:
            return error_outcome(f"An unexpected error occurred while writing to file: {exc}")

        written = f"{len(content)} bytes" if isinstance(content, bytes) else "content"
        return text_outcome(f"Successfully wrote {written} to {args['filePath']}")


def _write(path: Path, content: str | bytes, mode: str, encoding: str, atomic: bool) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    encoding_kw = {} if isinstance(content, bytes) else {"encoding": encoding}

    if not atomic:
        with path.open(mode, **encoding_kw) as fh:
            fh.write(content)
        return

    tmp = path.with_name(f"{path.name}.{int(time.time() * 1000)}.tmp")
    try:
        if mode.startswith("a") and path.exists():
            tmp.write_bytes(path.read_bytes())
        with tmp.open(mode, **encoding_kw) as fh:
            fh.write(content)
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)


def register(server: ToolServer) -> None:
    server.register(WriteFileTool().definition())
