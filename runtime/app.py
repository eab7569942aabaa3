"""toolhub FastAPI server: MCP over SSE plus a liveness probe."""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from mcp.server.sse import SseServerTransport
from starlette.responses import Response

from contracts.api import InvocationRequest

from runtime.failfast import install_fail_fast
from runtime.server_helpers import ToolHubComponents, init_toolhub

logger = logging.getLogger(__name__)

# ── Module-level state (set during lifespan) ─────────────────────────

_components: ToolHubComponents | None = None

sse = SseServerTransport("/messages/")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Initialise all components on startup, tear down watchers on shutdown."""
    global _components  # noqa: PLW0603

    if os.environ.get("TOOLHUB_FAIL_FAST") == "1":
        install_fail_fast(asyncio.get_running_loop())
    _components = init_toolhub(transport="sse")
    logger.info(
        "%s started with %d tools",
        _components.config.server.name,
        len(_components.registry),
    )

    try:
        yield
    finally:
        _components.close()
        _components = None


def _get_components() -> ToolHubComponents:
    if _components is None:
        raise HTTPException(status_code=503, detail="Server not initialised")
    return _components


app = FastAPI(title="toolhub", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"],
)


# ── Endpoints ────────────────────────────────────────────────────────


@app.get("/health")
async def health() -> dict[str, Any]:
    """Liveness probe; independent of the registry and every handler."""
    return {"status": "ok"}


@app.get("/sse")
async def handle_sse(request: Request) -> Response:
    """Open an SSE stream and run the MCP protocol over it."""
    components = _get_components()
    logger.info("New SSE connection from %s", request.client)

    async with sse.connect_sse(request.scope, request.receive, request._send) as streams:
        read_stream, write_stream = streams
        await components.server.mcp.run(
            read_stream,
            write_stream,
            components.server.mcp.create_initialization_options(),
        )

    logger.info("SSE connection closed from %s", request.client)
    return Response()


@app.get("/v1/tools")
async def list_tools() -> list[dict[str, Any]]:
    """Tool catalogue: names, descriptions and input schemas."""
    server = _get_components().server
    return [
        {
            "name": d.name,
            "title": d.title,
            "description": d.description,
            "inputSchema": d.input_schema(),
        }
        for d in server.registry.definitions()
    ]


@app.post("/v1/tools/call")
async def call_tool(request: InvocationRequest) -> dict[str, Any]:
    """Dispatch one call and return the wire envelope; domain failures are still 200."""
    server = _get_components().server
    outcome = await server.call_tool(request.tool_name, request.arguments)
    return outcome.to_wire()


app.mount("/messages/", app=sse.handle_post_message)
