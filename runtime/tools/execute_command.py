"""Built-in execute-command-advanced tool: run a shell command."""

from __future__ import annotations

import asyncio
import os
import subprocess
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, NumberField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


def parse_env_vars(pairs: str | None) -> dict[str, str]:
    """Parse ``"A=1 B=x=y"`` into ``{"A": "1", "B": "x=y"}``."""
    env: dict[str, str] = {}
    for pair in (pairs or "").split(" "):
        key, _, value = pair.partition("=")
        if key:
            env[key] = value
    return env


def _format_streams(stdout: str, stderr: str) -> str:
    out = ""
    if stdout:
        out += f"STDOUT:\n{stdout}\n"
    if stderr:
        out += f"STDERR:\n{stderr}\n"
    return out


class ExecuteCommandTool(BaseTool):
    """Run a command through the shell, in the foreground or detached."""

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="execute-command-advanced",
            title="Execute Command (Advanced)",
            description=(
                "Executes a shell command with stdin data, timeout, working directory and "
                "environment options. Can run in the background and return the PID."
            ),
            schema={
                "command": StringField(description="The shell command to execute."),
                "stdin_data": StringField(required=False, description="Data written to the command's stdin."),
                "timeout": NumberField(
                    integer=True, minimum=0, required=False,
                    description="Timeout in milliseconds.",
                ),
                "waitForCompletion": BooleanField(
                    default=True, description="False runs the command in the background and returns its PID.",
                ),
                "working_directory": StringField(required=False, description="Working directory."),
                "env_vars": StringField(
                    required=False,
                    sensitive=True,
                    description="Space-separated key=value pairs, e.g. 'VAR1=value1 VAR2=value2'.",
                ),
                "capture_output": BooleanField(default=True, description="Capture stdout and stderr."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        command: str = args["command"]
        env = {**os.environ, **parse_env_vars(args.get("env_vars"))}
        cwd = args.get("working_directory")

        if not args["waitForCompletion"]:
            try:
                proc = subprocess.Popen(
                    command, shell=True, cwd=cwd, env=env,
                    stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
                    start_new_session=True,
                )
            except OSError as exc:
                return error_outcome(f"Failed to start command: {exc}")
            return text_outcome(f'Command "{command}" started in background with PID: {proc.pid}')

        capture = args["capture_output"]
        stdin_data = args.get("stdin_data")
        pipe = asyncio.subprocess.PIPE if capture else asyncio.subprocess.DEVNULL
        try:
            proc = await asyncio.create_subprocess_shell(
                command, cwd=cwd, env=env,
                stdin=asyncio.subprocess.PIPE if stdin_data else asyncio.subprocess.DEVNULL,
                stdout=pipe, stderr=pipe,
            )
        except OSError as exc:
            return error_outcome(f"Failed to start command: {exc}")

        timeout_ms = args.get("timeout")
        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(stdin_data.encode() if stdin_data else None),
                timeout=timeout_ms / 1000 if timeout_ms else None,
            )
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return error_outcome(f"Command timed out after {timeout_ms}ms")

        streams = _format_streams(
            stdout.decode(errors="replace") if stdout else "",
            stderr.decode(errors="replace") if stderr else "",
        )
        if proc.returncode == 0:
            return text_outcome(streams or "Command executed successfully with no output.")
        return error_outcome(f"Command failed with exit code {proc.returncode}\n{streams}")


def register(server: ToolServer) -> None:
    server.register(ExecuteCommandTool().definition())
