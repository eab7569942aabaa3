"""Built-in watch-file-changes tool.

Watcher state lives in the server's ``WatcherService``, handed to the
tool at registration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, EnumField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome
from runtime.services.watchers import WatcherError, WatcherService

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


class WatchFileChangesTool(BaseTool):
    def __init__(self, watchers: WatcherService) -> None:
        self._watchers = watchers

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="watch-file-changes",
            title="Watch File Changes",
            description="Starts or stops running a shell command whenever a file or directory changes.",
            schema={
                "action": EnumField(members=["start", "stop"]),
                "target_path": StringField(description="File or directory to watch."),
                "command": StringField(required=False, description="Command to run on change (start only)."),
                "recursive": BooleanField(default=False, description="Watch subdirectories (start only)."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        if args["action"] == "start":
            command = args.get("command")
            if not command:
                return error_outcome("Error: A command must be provided to start watching.")
            try:
                path = self._watchers.start(args["target_path"], command, args["recursive"])
            except WatcherError as exc:
                return error_outcome(str(exc))
            except OSError as exc:
                return error_outcome(f"Failed to start watcher: {exc}")
            return text_outcome(f"Started watching for changes in {path}.")

        try:
            path = self._watchers.stop(args["target_path"])
        except WatcherError as exc:
            return error_outcome(str(exc))
        return text_outcome(f"Stopped watching for changes in {path}.")


def register(server: ToolServer) -> None:
    server.register(WatchFileChangesTool(server.watchers).definition())
