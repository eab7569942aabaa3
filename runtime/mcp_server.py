"""toolhub MCP server: the live server handle every tool registers against."""

from __future__ import annotations

import logging
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from contracts.api import Outcome
from contracts.audit import AuditLogger
from contracts.config import Config
from contracts.tool_sdk import ToolDefinition

from runtime.dispatcher import Dispatcher
from runtime.envelope import to_mcp_result
from runtime.services.watchers import WatcherService
from runtime.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolServer:
    """Registry, dispatcher, per-handler services and the MCP protocol binding."""

    def __init__(
        self,
        config: Config | None = None,
        audit: AuditLogger | None = None,
        registry: ToolRegistry | None = None,
        transport: str = "",
    ) -> None:
        self.config = config or Config()
        self.registry = registry or ToolRegistry()
        self.dispatcher = Dispatcher(self.registry, audit=audit, transport=transport)
        self.watchers = WatcherService()
        self.mcp = Server(self.config.server.name, version=self.config.server.version)
        self._register_handlers()

    # ── registration ────────────────────────────────────────────────

    def register(self, definition: ToolDefinition) -> None:
        self.registry.register(definition)

    # ── invocation ──────────────────────────────────────────────────

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Outcome:
        return await self.dispatcher.dispatch(name, arguments)

    def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name=definition.name,
                title=definition.title or None,
                description=definition.description,
                inputSchema=definition.input_schema(),
            )
            for definition in self.registry.definitions()
        ]

    # ── MCP protocol handlers ───────────────────────────────────────

    def _register_handlers(self) -> None:
        @self.mcp.list_tools()
        async def list_tools() -> list[types.Tool]:
            logger.debug("list_tools called")
            return self.list_tools()

        async def call_tool(req: types.CallToolRequest) -> types.ServerResult:
            outcome = await self.call_tool(req.params.name, req.params.arguments or {})
            return types.ServerResult(to_mcp_result(outcome))

        # Registered directly so the Outcome reaches the wire untouched.
        self.mcp.request_handlers[types.CallToolRequest] = call_tool

    # ── lifecycle ───────────────────────────────────────────────────

    async def run_stdio(self) -> None:
        """Serve MCP over stdin/stdout until the client disconnects."""
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.mcp.run(
                    read_stream,
                    write_stream,
                    self.mcp.create_initialization_options(),
                )
        finally:
            self.close()

    def close(self) -> None:
        self.watchers.shutdown()
