"""MCP server exposing object-ID allocation tools over stdio."""

from objid.server.app import create_server, run_server
from objid.server.context import ServerContext
from objid.server.tiers import ALL_TOOLS, resolve_mode, tools_for_mode
from objid.server.tools import ObjIdTools

__all__ = [
    "ALL_TOOLS",
    "ObjIdTools",
    "ServerContext",
    "create_server",
    "resolve_mode",
    "run_server",
    "tools_for_mode",
]
