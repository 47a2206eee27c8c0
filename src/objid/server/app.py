"""
FastMCP server assembly.

Example:
    >>> server = create_server(mode=ServerMode.LITE)
    >>> server.run()  # stdio
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from objid.core.config import ServerMode
from objid.server.context import ServerContext
from objid.server.tiers import resolve_mode
from objid.server.tools import ObjIdTools, register_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "objid-mcp"

INSTRUCTIONS = (
    "Allocates collision-free object IDs for AL apps. "
    "Start with scan-workspace, pick an app with set-active-app, then use "
    "get-next-id to look and reserve-id or assign-ids to claim."
)

QUICK_START = """\
# Object ID quick start

1. `scan-workspace` with the folder holding your app(s).
2. `set-active-app` when more than one app was found.
3. `authorize-app` once per app; the key is saved to `.objidconfig`.
4. `get-next-id` to see the next free ID for an object type.
5. `reserve-id` (or `assign-ids`) to claim it before creating the object.
6. `sync-object-ids` after bulk changes so the backend knows what is used.

Field and enum value IDs: pass `parent_object_id` to `get-next-id`, or use
`get-next-field-id` / `get-next-enum-value-id`.
"""


def register_resources(mcp: FastMCP) -> None:
    @mcp.resource(
        "objid://workflows/quick-start",
        name="quick-start",
        description="The usual order of tool calls when allocating IDs",
        mime_type="text/markdown",
    )
    def quick_start() -> str:
        return QUICK_START


def create_server(
    context: ServerContext | None = None, mode: ServerMode | str | None = None
) -> FastMCP:
    """
    Build the MCP server for a tier.

    Args:
        context: Service context (built from configuration when None)
        mode: Tool tier; the configured mode when None

    Returns:
        Server with the tier's tools registered; persisted settings are
        restored when it starts and the state is flushed when it stops
    """
    context = context or ServerContext.create()
    mode = resolve_mode(mode or context.config.mode)

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[ServerContext]:
        context.restore()
        try:
            yield context
        finally:
            context.shutdown()

    mcp = FastMCP(SERVER_NAME, instructions=INSTRUCTIONS, lifespan=lifespan)
    names = register_tools(mcp, ObjIdTools(context), mode)
    register_resources(mcp)
    logger.info(f"{SERVER_NAME} ready in {mode.value} mode with {len(names)} tools")
    return mcp


def run_server(mode: ServerMode | str | None = None) -> None:
    """Run the server over stdio until the client disconnects."""
    create_server(mode=mode).run()


__all__ = ["INSTRUCTIONS", "SERVER_NAME", "create_server", "register_resources", "run_server"]
