"""
Tool tiers.

``lite`` exposes the four tools needed to discover projects and claim IDs,
``normal`` the everyday set, and ``full`` every tool.
"""

from objid.core.config import ServerMode

ALL_TOOLS: tuple[str, ...] = (
    # Core ID management
    "get-next-id",
    "reserve-id",
    "sync-object-ids",
    # Authorization and backend
    "check-authorization",
    "authorize-app",
    "get-consumption-report",
    # Workspace
    "scan-workspace",
    "get-workspace-info",
    "set-active-app",
    # Fields and enum values
    "get-next-field-id",
    "get-next-enum-value-id",
    # Collisions
    "check-collision",
    "check-range-overlaps",
    # Polling
    "start-polling",
    "stop-polling",
    "get-polling-status",
    # Assignment
    "assign-ids",
    "batch-assign",
    "reserve-range",
    "get-suggestions",
    "get-assignment-history",
    # Configuration
    "save-preferences",
    "get-preferences",
    "export-config",
    "import-config",
    "get-statistics",
)

LITE_TOOLS: frozenset[str] = frozenset(
    {"scan-workspace", "set-active-app", "get-next-id", "reserve-id"}
)

NORMAL_TOOLS: frozenset[str] = frozenset(
    {
        "get-next-id",
        "sync-object-ids",
        "check-authorization",
        "authorize-app",
        "get-consumption-report",
        "scan-workspace",
        "set-active-app",
        "get-next-field-id",
        "get-next-enum-value-id",
        "check-collision",
        "check-range-overlaps",
        "assign-ids",
        "get-assignment-history",
        "get-statistics",
    }
)

TOOL_TIERS: dict[ServerMode, frozenset[str]] = {
    ServerMode.LITE: LITE_TOOLS,
    ServerMode.NORMAL: NORMAL_TOOLS,
    ServerMode.FULL: frozenset(ALL_TOOLS),
}


def resolve_mode(mode: ServerMode | str) -> ServerMode:
    """Parse a mode; unknown strings fall back to ``normal``."""
    if isinstance(mode, ServerMode):
        return mode
    try:
        return ServerMode(str(mode).strip().lower())
    except ValueError:
        return ServerMode.NORMAL


def tools_for_mode(mode: ServerMode | str) -> list[str]:
    """Tool names exposed in a mode, in catalog order."""
    allowed = TOOL_TIERS[resolve_mode(mode)]
    return [name for name in ALL_TOOLS if name in allowed]


def is_tool_available(name: str, mode: ServerMode | str) -> bool:
    return name in tools_for_mode(mode)


__all__ = [
    "ALL_TOOLS",
    "LITE_TOOLS",
    "NORMAL_TOOLS",
    "TOOL_TIERS",
    "is_tool_available",
    "resolve_mode",
    "tools_for_mode",
]
