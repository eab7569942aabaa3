"""Built-in ping-tool: run the system ping and parse its summary."""

from __future__ import annotations

import asyncio
import json
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, NumberField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer

_TRANSMITTED = re.compile(r"(\d+)\s+packets\s+transmitted")
_RECEIVED = re.compile(r"(\d+)\s+(?:packets\s+)?received")
_LOSS = re.compile(r"([\d.]+)%\s+packet\s+loss")
_RTT = re.compile(r"(?:rtt|round-trip)\s+min/avg/max/(?:mdev|stddev)\s+=\s+([\d.]+)/([\d.]+)/([\d.]+)/([\d.]+)\s+ms")
_IP = re.compile(r"PING\s+\S+\s+\((\d{1,3}(?:\.\d{1,3}){3})\)")


def ping_command(target: str, count: int, timeout: int) -> list[str]:
    if sys.platform == "win32":
        return ["ping", "-n", str(count), "-w", str(timeout * 1000), target]
    return ["ping", "-c", str(count), "-W", str(timeout), target]


def parse_ping_output(target: str, raw: str) -> dict[str, Any]:
    """Pull packet counts, loss and round-trip times out of Unix ping output."""
    result: dict[str, Any] = {"target": target, "raw_output": raw}

    ip = _IP.search(raw)
    if ip:
        result["ip_address"] = ip.group(1)

    def _int(pattern: re.Pattern[str]) -> int | None:
        m = pattern.search(raw)
        return int(float(m.group(1))) if m else None

    result["packets"] = {
        "transmitted": _int(_TRANSMITTED),
        "received": _int(_RECEIVED),
        "loss_percentage": _int(_LOSS),
    }

    rtt = _RTT.search(raw)
    if rtt:
        result["rtt"] = {
            "min_ms": float(rtt.group(1)),
            "avg_ms": float(rtt.group(2)),
            "max_ms": float(rtt.group(3)),
            "mdev_ms": float(rtt.group(4)),
        }
    return result


class PingTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="ping-tool",
            title="Ping",
            description="Pings a host and returns the parsed results as JSON.",
            schema={
                "target": StringField(min_length=1, description="IP address or hostname to ping."),
                "count": NumberField(integer=True, minimum=1, maximum=100, default=4),
                "timeout": NumberField(
                    integer=True, minimum=1, maximum=60, default=5,
                    description="Per-request timeout in seconds.",
                ),
                "output_path": StringField(required=False, description="Save the JSON result to this file."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        target, count, timeout = args["target"], args["count"], args["timeout"]
        if target.startswith("-"):
            return error_outcome(f"Error performing ping: invalid target {target!r}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *ping_command(target, count, timeout),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=count * (timeout + 1) + 5)
        except FileNotFoundError:
            return error_outcome("Error performing ping: the ping command is not available")
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return error_outcome("Error performing ping: timed out")

        out = stdout.decode(errors="replace")
        if proc.returncode != 0:
            return error_outcome(f"Error performing ping: Ping failed: {stderr.decode(errors='replace') or out}")

        result = json.dumps(parse_ping_output(target, out), indent=2)
        output_path = args.get("output_path")
        if output_path:
            try:
                Path(output_path).write_text(result, encoding="utf-8")
            except OSError as exc:
                return error_outcome(f"Error performing ping: {exc}")
            return text_outcome(f"Ping results saved to {output_path}")
        return text_outcome(result)


def register(server: ToolServer) -> None:
    server.register(PingTool().definition())
