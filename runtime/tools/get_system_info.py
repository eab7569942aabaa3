"""Built-in get-system-info tool."""

from __future__ import annotations

import platform
import socket
import time
from typing import TYPE_CHECKING, Any

import psutil

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, ToolDefinition

from runtime.envelope import json_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer

_MB = 1024 * 1024


def system_info() -> dict[str, Any]:
    memory = psutil.virtual_memory()
    return {
        "platform": platform.system().lower(),
        "osType": platform.system(),
        "osRelease": platform.release(),
        "architecture": platform.machine(),
        "hostname": socket.gethostname(),
        "totalMemoryMB": round(memory.total / _MB),
        "freeMemoryMB": round(memory.available / _MB),
        "cpuCount": psutil.cpu_count() or 0,
        "cpuModel": platform.processor() or "N/A",
        "uptimeSeconds": round(time.time() - psutil.boot_time()),
    }


class GetSystemInfoTool(BaseTool):
    """Read-only host facts.  Takes no arguments."""

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="get-system-info",
            title="Get System Info",
            description="Returns operating system, CPU, memory and uptime information as JSON.",
            schema={},
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        return json_outcome(system_info())


def register(server: ToolServer) -> None:
    server.register(GetSystemInfoTool().definition())
