"""Built-in set-environment-variable tool: session-scoped process environment."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, EnumField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


class SetEnvironmentVariableTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="set-environment-variable",
            title="Set Environment Variable",
            description="Sets or deletes an environment variable for the server process.",
            schema={
                "key": StringField(min_length=1, description="Variable name."),
                "value": StringField(required=False, sensitive=True, description="Value to set."),
                "scope": EnumField(
                    members=["session", "system"], default="session",
                    description="Only 'session' is supported.",
                ),
                "delete": BooleanField(default=False, description="Delete the variable instead."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        key = args["key"]
        if args["scope"] == "system":
            return error_outcome("Error: Setting system-wide environment variables is not supported.")

        if args["delete"]:
            if os.environ.pop(key, None) is None:
                return text_outcome(f'Info: Environment variable "{key}" was not set.')
            return text_outcome(f'Successfully deleted environment variable "{key}" for the current session.')

        value = args.get("value")
        if value is None:
            return error_outcome(
                "Error: A value must be provided to set an environment variable. "
                "To delete a variable, set the `delete` flag to true."
            )
        os.environ[key] = value
        return text_outcome(f'Successfully set environment variable "{key}" to "{value}" for the current session.')


def register(server: ToolServer) -> None:
    server.register(SetEnvironmentVariableTool().definition())
