"""Built-in read-file tool: read one or more files with slicing and byte limits."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.config import LimitsConfig
from contracts.errors import ToolTimeoutError
from contracts.tool_sdk import BaseTool, BooleanField, NumberField, StringField, ToolDefinition

from runtime.envelope import error_outcome, json_outcome
from runtime.tools.timeouts import limit_for, with_timeout

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer

_LINE_SPLIT = re.compile(r"\r?\n")


class ReadFileTool(BaseTool):
    """Read several files in one call; per-file problems are reported inline."""

    def __init__(self, limits: LimitsConfig | None = None) -> None:
        self._limits = limits or LimitsConfig()

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="read-file",
            title="Read File",
            description=(
                "Reads content from one or more files. Can read raw bytes (returned as hex) "
                "or text with line slicing, encoding and byte limits. Returns a JSON object "
                "mapping file paths to their content."
            ),
            schema={
                "filePaths": StringField(description="A space-separated string of file paths to read."),
                "startLine": NumberField(
                    integer=True, minimum=1, required=False,
                    description="First line to return (1-indexed, inclusive).",
                ),
                "endLine": NumberField(
                    integer=True, minimum=1, required=False,
                    description="Last line to return (inclusive).",
                ),
                "encoding": StringField(default="utf-8", description="Text encoding, ignored in binary mode."),
                "binary_mode": BooleanField(default=False, description="Read raw bytes instead of text."),
                "max_bytes": NumberField(
                    integer=True, minimum=1, required=False,
                    description="Maximum number of bytes to read from each file.",
                ),
                "timeout": NumberField(
                    required=False,
                    description="Timeout in seconds (default 120, max 600).",
                ),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        paths = [p for p in args["filePaths"].split(" ") if p]
        seconds = limit_for(args.get("timeout"), self._limits)

        try:
            results = await with_timeout(
                asyncio.to_thread(self._read_all, paths, args),
                seconds,
                f"File reading operation timed out after {seconds:g}s",
            )
        except ToolTimeoutError as exc:
            return error_outcome(f"An unexpected error occurred: {exc}")
        return json_outcome(results)

    def _read_all(self, paths: list[str], args: dict[str, Any]) -> dict[str, str]:
        results: dict[str, str] = {}
        for file_path in paths:
            path = Path(file_path)
            if not path.is_file():
                results[file_path] = f"Error: File not found at path: {file_path}"
                continue
            try:
                results[file_path] = _read_one(path, args)
            except (OSError, LookupError, UnicodeDecodeError) as exc:
                results[file_path] = f"Error reading file: {exc}"
        return results


def _read_one(path: Path, args: dict[str, Any]) -> str:
    max_bytes = args.get("max_bytes")
    with path.open("rb") as fh:
        data = fh.read(max_bytes) if max_bytes else fh.read()

    if args["binary_mode"]:
        return f"Read {len(data)} bytes (hex): {data.hex()}"

    text = data.decode(args["encoding"], errors="replace" if max_bytes else "strict")
    lines = _LINE_SPLIT.split(text)

    start, end = args.get("startLine"), args.get("endLine")
    if start or end:
        first = (start or 1) - 1
        if first >= len(lines):
            return f"Error: startLine {start} is out of bounds. File only has {len(lines)} lines."
        lines = lines[first:end or len(lines)]
    return "\n".join(lines)


def register(server: ToolServer) -> None:
    server.register(ReadFileTool(server.config.limits).definition())
