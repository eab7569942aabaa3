"""Built-in list-processes tool: process table via psutil."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import psutil

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


def process_table() -> str:
    rows = [f"{'PID':>7} {'PPID':>7} COMMAND"]
    for proc in psutil.process_iter(["pid", "ppid", "name", "cmdline"]):
        info = proc.info
        command = " ".join(info.get("cmdline") or []) or info.get("name") or "?"
        rows.append(f"{info['pid']:>7} {info.get('ppid') or 0:>7} {command}")
    return "\n".join(rows)


class ListProcessesTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="list-processes",
            title="List Processes",
            description="Lists running processes with their PID, parent PID and command line.",
            schema={},
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        try:
            table = await asyncio.to_thread(process_table)
        except psutil.Error as exc:
            return error_outcome(f"Error listing processes: {exc}")
        return text_outcome(table)


def register(server: ToolServer) -> None:
    server.register(ListProcessesTool().definition())
