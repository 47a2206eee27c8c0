"""
objid-mcp - collision-free object ID allocation for AL apps, served over MCP.
"""

__version__ = "0.1.0"

from objid.core.config import ObjIdConfig, ServerMode
from objid.core.workspace import Project

__all__ = ["ObjIdConfig", "Project", "ServerMode", "__version__"]
