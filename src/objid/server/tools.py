"""
MCP tool handlers.

Every handler returns a JSON string. Failures never reach the transport:
typed errors, invalid arguments and unexpected exceptions all come back as
``{"error": "..."}``. Handlers are bound methods of ``ObjIdTools`` so that
they share one ``ServerContext``; ``register_tools`` exposes the subset
belonging to a tier under the hyphenated tool names.

Parameter annotations are evaluated at import time here because FastMCP
derives each tool's input schema from them.
"""

import functools
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from mcp.server.fastmcp import FastMCP

from objid.core.assignment import AssignmentOptions
from objid.core.backend import (
    NOT_AUTHORIZED_MESSAGE,
    AuthorizeAppRequest,
    ConfigurationError,
    GetNextRequest,
    ObjIdError,
    SyncIdsRequest,
    ValidationError,
)
from objid.core.config import ServerMode
from objid.core.kinds import TRACKED_KINDS, default_ranges
from objid.core.persistence import AssignmentRecord
from objid.core.polling import DEFAULT_INTERVAL_MS, PollingConfig
from objid.core.ranges import is_in_ranges, parse_ranges
from objid.core.workspace import Project, read_git_info
from objid.server.context import ServerContext, apply_log_level
from objid.server.tiers import tools_for_mode

logger = logging.getLogger(__name__)

CONSUMPTION_PREVIEW = 5
DEFAULT_HISTORY_LIMIT = 50
MERGE_MODES = ("update", "merge")

NO_PROJECT_MESSAGE = "No app found. Run scan-workspace and set-active-app first, or pass app_path."


def _json_response(data: Any) -> str:
    """Serialize data to a JSON string for MCP tool responses."""
    return json.dumps(data, indent=2, default=str)


def _error(message: str) -> str:
    return _json_response({"error": message})


def tool_handler(fn: Callable[..., Awaitable[str]]) -> Callable[..., Awaitable[str]]:
    """Turn exceptions raised by a handler into an error payload."""

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> str:
        try:
            return await fn(*args, **kwargs)
        except ObjIdError as e:
            logger.warning(f"{fn.__name__} failed: {e}")
            return _error(e.message)
        except ValueError as e:
            # pydantic's ValidationError is a ValueError
            logger.warning(f"{fn.__name__} rejected its arguments: {e}")
            return _error(f"Invalid arguments: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error in {fn.__name__}")
            return _error(f"Unexpected error: {e}")

    return wrapper


class ObjIdTools:
    """
    Tool handlers over one service context.

    Args:
        context: Wired services shared by all handlers
    """

    def __init__(self, context: ServerContext) -> None:
        self.ctx = context

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _project(self, app_path: str | None) -> Project:
        project = self.ctx.workspace.resolve_project(app_path)
        if project is None:
            raise ConfigurationError(NO_PROJECT_MESSAGE, setting="app_path")
        return project

    def _authorized(self, app_path: str | None) -> Project:
        project = self._project(app_path)
        if not project.is_authorized:
            raise ConfigurationError(NOT_AUTHORIZED_MESSAGE, setting="authKey")
        return project

    def _record_sync(self, project: Project, ids: dict[str, list[int]], description: str) -> None:
        for kind, values in ids.items():
            if values:
                self.ctx.store.add_assignment_history(
                    AssignmentRecord(
                        app_id=project.app_id,
                        kind=kind,
                        ids=list(values),
                        description=description,
                        app_name=project.name,
                    )
                )

    # ------------------------------------------------------------------
    # Workspace
    # ------------------------------------------------------------------

    @tool_handler
    async def scan_workspace(self, workspace_path: str) -> str:
        """Scan a directory for projects.

        Args:
            workspace_path: Directory whose root and direct subdirectories hold app.json
        """
        info = self.ctx.scan(workspace_path)
        active = info.active_project
        return _json_response(
            {
                "rootPath": str(info.root_path),
                "count": len(info.projects),
                "projects": [p.summary() for p in info.projects],
                "activeApp": active.name if active else None,
            }
        )

    @tool_handler
    async def get_workspace_info(self) -> str:
        info = self.ctx.workspace.current
        if info is None:
            return _error("No workspace has been scanned. Run scan-workspace first.")
        active = info.active_project
        return _json_response(
            {
                "rootPath": str(info.root_path),
                "projects": [p.summary() for p in info.projects],
                "activeApp": active.summary() if active else None,
            }
        )

    @tool_handler
    async def set_active_app(self, app_path: str) -> str:
        """Select the project later calls act on by default.

        Args:
            app_path: Project path, name or id
        """
        project = self.ctx.workspace.set_active_project(app_path)
        if project is None:
            return _error(f"No app found at {app_path} in the current workspace")
        self.ctx.remember_workspace()
        return _json_response({"activeApp": project.summary()})

    # ------------------------------------------------------------------
    # Core ID management
    # ------------------------------------------------------------------

    @tool_handler
    async def get_next_id(
        self,
        object_type: str,
        app_path: str | None = None,
        ranges: list[dict[str, int]] | None = None,
        parent_object_id: int | None = None,
        is_extension: bool = False,
    ) -> str:
        """Peek at the next free ID without claiming it.

        Args:
            object_type: Object kind, e.g. table, page, codeunit
            app_path: Project path; the active project when omitted
            ranges: Ranges to search as {"from", "to"} objects; the project's ranges when omitted
            parent_object_id: Table or enum id, to get a field or enum value id instead
            is_extension: Whether the parent object is an extension
        """
        project = self._authorized(app_path)

        if parent_object_id is not None:
            if object_type in ("table", "field"):
                value = await self.ctx.fields.get_next_field_id(
                    project, parent_object_id, is_extension
                )
            elif object_type == "enum":
                value = await self.ctx.fields.get_next_enum_value_id(
                    project, parent_object_id, is_extension
                )
            else:
                raise ValidationError(
                    "parent_object_id applies to table fields and enum values only",
                    field="object_type",
                    value=object_type,
                )
            return _json_response(
                {
                    "objectType": object_type,
                    "parentObjectId": parent_object_id,
                    "available": value is not None,
                    "id": value,
                }
            )

        search = parse_ranges(ranges) if ranges else project.ranges or default_ranges(True)
        result = await self.ctx.backend.get_next(
            GetNextRequest(
                app_id=project.backend_id,
                type=object_type,
                ranges=search,
                auth_key=project.auth_key or "",
                per_range=False,
                user=self.ctx.git_user(project),
            )
        )
        if result is None:
            return _error("Failed to get next ID from the backend")
        if not result.available or result.first_id is None:
            return _json_response(
                {
                    "objectType": object_type,
                    "available": False,
                    "message": "No available IDs in the specified ranges",
                }
            )

        response: dict[str, Any] = {
            "objectType": object_type,
            "available": True,
            "id": result.first_id,
            "app": project.name,
        }
        finding = await self.ctx.collision.check_collision(object_type, result.first_id, project)
        if finding is not None:
            response["warning"] = finding.message
            response["conflictingApps"] = [p.name for p in finding.projects]
        return _json_response(response)

    @tool_handler
    async def reserve_id(
        self,
        object_type: str,
        object_id: int,
        app_path: str | None = None,
        parent_object_id: int | None = None,
        is_extension: bool = False,
    ) -> str:
        """Claim one specific ID.

        Args:
            object_type: Object kind
            object_id: The ID to claim
            app_path: Project path; the active project when omitted
            parent_object_id: Table or enum id, to claim a field or enum value id
            is_extension: Whether the parent object is an extension
        """
        project = self._authorized(app_path)

        if parent_object_id is not None:
            if object_type in ("table", "field"):
                reserved = await self.ctx.fields.reserve_field_id(
                    project, parent_object_id, object_id, is_extension
                )
            elif object_type == "enum":
                reserved = await self.ctx.fields.reserve_enum_value_id(
                    project, parent_object_id, object_id, is_extension
                )
            else:
                raise ValidationError(
                    "parent_object_id applies to table fields and enum values only",
                    field="object_type",
                    value=object_type,
                )
            return _json_response(
                {
                    "objectType": object_type,
                    "parentObjectId": parent_object_id,
                    "id": object_id,
                    "reserved": reserved,
                }
            )

        ranges = project.ranges or default_ranges(is_extension=True)
        if not is_in_ranges(object_id, ranges):
            return _error(
                f"ID {object_id} is outside the app's ranges "
                f"({', '.join(str(r) for r in ranges)})"
            )

        result = await self.ctx.backend.get_next(
            GetNextRequest(
                app_id=project.backend_id,
                type=object_type,
                ranges=ranges,
                auth_key=project.auth_key or "",
                per_range=True,
                require=object_id,
                user=self.ctx.git_user(project),
            ),
            commit=True,
        )
        if result is None:
            return _error(f"Failed to reserve {object_type} ID {object_id}")
        if not result.available or result.first_id is None:
            return _json_response(
                {
                    "objectType": object_type,
                    "id": object_id,
                    "reserved": False,
                    "message": f"No {object_type} IDs are available in the range of {object_id}",
                }
            )
        if result.first_id != object_id:
            return _json_response(
                {
                    "objectType": object_type,
                    "id": object_id,
                    "reserved": False,
                    "nextAvailable": result.first_id,
                    "message": f"ID {object_id} is already taken. "
                    f"Next available: {result.first_id}",
                }
            )

        self.ctx.collision.invalidate_project(project.app_id)
        self.ctx.assignments.record_assignment(project, object_type, [object_id], "Reserved by ID")
        return _json_response({"objectType": object_type, "id": object_id, "reserved": True})

    @tool_handler
    async def sync_object_ids(
        self,
        ids: dict[str, list[int]],
        app_path: str | None = None,
        merge: bool = False,
        mode: str | None = None,
    ) -> str:
        """Report consumed IDs to the backend.

        Args:
            ids: Mapping of object kind to consumed IDs
            app_path: Project path; the active project when omitted
            merge: Add to existing consumption instead of replacing it
            mode: "merge"/"update" or "replace"; overrides merge when given
        """
        project = self._authorized(app_path)
        if mode is not None:
            merge = mode.strip().lower() in MERGE_MODES

        synced = await self.ctx.backend.sync_ids(
            SyncIdsRequest(
                app_id=project.backend_id,
                auth_key=project.auth_key or "",
                ids=ids,
                merge=merge,
            )
        )
        if not synced:
            return _error("Failed to sync object IDs")

        self.ctx.collision.invalidate_project(project.app_id)
        self._record_sync(project, ids, "Merge sync" if merge else "Replace sync")
        return _json_response(
            {
                "success": True,
                "mode": "merge" if merge else "replace",
                "app": project.name,
                "synced": {kind: len(values) for kind, values in ids.items()},
            }
        )

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------

    @tool_handler
    async def check_authorization(self, app_path: str | None = None) -> str:
        project = self._project(app_path)
        if not project.is_authorized:
            return _json_response(
                {"app": project.name, "authorized": False, "message": NOT_AUTHORIZED_MESSAGE}
            )

        info = await self.ctx.backend.get_auth_info(project.backend_id, project.auth_key or "")
        response: dict[str, Any] = {"app": project.name, "authorized": True}
        if info is not None:
            response["valid"] = info.valid if info.valid is not None else info.authorized
            if info.user is not None:
                response["user"] = info.user.model_dump()
        return _json_response(response)

    @tool_handler
    async def authorize_app(self, app_path: str | None = None, save_key: bool = True) -> str:
        """Request a credential for a project.

        Args:
            app_path: Project path; the active project when omitted
            save_key: Write the issued key into the project's .objidconfig
        """
        project = self._project(app_path)
        if project.is_authorized:
            return _json_response(
                {"app": project.name, "authorized": True, "message": "App is already authorized"}
            )

        git = read_git_info(project.path)
        info = await self.ctx.backend.authorize_app(
            AuthorizeAppRequest(
                app_id=project.backend_id,
                app_name=project.name,
                git_user=git.user,
                git_email=git.email,
                git_repo=git.repo,
                git_branch=git.branch,
            )
        )
        if not info.authorized or not info.auth_key:
            return _json_response(
                {
                    "app": project.name,
                    "authorized": False,
                    "message": info.error or "Authorization failed",
                }
            )

        self.ctx.workspace.update_authorization(project, info.auth_key, persist=save_key)
        self.ctx.remember_workspace()
        return _json_response(
            {
                "app": project.name,
                "authorized": True,
                "savedToObjidConfig": save_key,
            }
        )

    @tool_handler
    async def get_consumption_report(
        self, app_path: str | None = None, object_types: list[str] | None = None
    ) -> str:
        """Consumed IDs per object kind.

        Args:
            app_path: Project path; the active project when omitted
            object_types: Kinds to include; every consumed kind when omitted
        """
        project = self._authorized(app_path)
        consumption = await self.ctx.backend.get_consumption(
            project.backend_id, project.auth_key or ""
        )
        if consumption is None:
            return _error("Failed to retrieve consumption")

        kinds = object_types or sorted(consumption.ids)
        report = {}
        for kind in kinds:
            ids = sorted(consumption.for_kind(kind))
            if ids:
                report[kind] = {
                    "count": len(ids),
                    "ids": ids[:CONSUMPTION_PREVIEW],
                    "truncated": len(ids) > CONSUMPTION_PREVIEW,
                }
        return _json_response({"app": project.name, "total": consumption.total, "report": report})

    # ------------------------------------------------------------------
    # Fields and enum values
    # ------------------------------------------------------------------

    @tool_handler
    async def get_next_field_id(
        self, table_id: int, app_path: str | None = None, is_extension: bool = False
    ) -> str:
        project = self._authorized(app_path)
        value = await self.ctx.fields.get_next_field_id(project, table_id, is_extension)
        return _json_response({"tableId": table_id, "available": value is not None, "id": value})

    @tool_handler
    async def get_next_enum_value_id(
        self, enum_id: int, app_path: str | None = None, is_extension: bool = False
    ) -> str:
        project = self._authorized(app_path)
        value = await self.ctx.fields.get_next_enum_value_id(project, enum_id, is_extension)
        return _json_response({"enumId": enum_id, "available": value is not None, "id": value})

    # ------------------------------------------------------------------
    # Collisions
    # ------------------------------------------------------------------

    @tool_handler
    async def check_collision(
        self, object_type: str, object_id: int, app_path: str | None = None
    ) -> str:
        """Check whether another project in the workspace already uses an ID.

        Args:
            object_type: Object kind
            object_id: ID to check
            app_path: Claiming project; the active project when omitted
        """
        project = self._project(app_path)
        finding = await self.ctx.collision.check_collision(object_type, object_id, project)
        if finding is None:
            return _json_response(
                {
                    "collision": False,
                    "message": f"No collision detected for {object_type} ID {object_id}",
                }
            )
        return _json_response(
            {"collision": True, **finding.model_dump(mode="json", by_alias=True, exclude_none=True)}
        )

    @tool_handler
    async def check_range_overlaps(self) -> str:
        findings = self.ctx.collision.check_range_overlaps()
        return _json_response(
            {
                "count": len(findings),
                "overlaps": [
                    f.model_dump(mode="json", by_alias=True, exclude_none=True) for f in findings
                ],
            }
        )

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    @tool_handler
    async def start_polling(
        self,
        interval: int = DEFAULT_INTERVAL_MS,
        consumption: bool = True,
        collisions: bool = True,
        pools: bool = False,
    ) -> str:
        """Start background polling.

        Args:
            interval: Milliseconds between cycles
            consumption: Watch consumption counts
            collisions: Watch range overlaps
            pools: Watch pool membership
        """
        config = PollingConfig(
            enabled=True,
            interval=interval,
            check_consumption=consumption,
            check_collisions=collisions,
            check_pools=pools,
        )
        self.ctx.polling.start(config)
        self.ctx.store.save_polling_config(config)
        return _json_response({"started": True, **config.to_payload()})

    @tool_handler
    async def stop_polling(self) -> str:
        self.ctx.polling.stop()
        config = self.ctx.polling.config.model_copy(update={"enabled": False})
        self.ctx.polling.config = config
        self.ctx.store.save_polling_config(config)
        return _json_response({"stopped": True})

    @tool_handler
    async def get_polling_status(self) -> str:
        return _json_response(self.ctx.polling.get_status())

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    @tool_handler
    async def assign_ids(
        self,
        object_type: str,
        count: int = 1,
        app_path: str | None = None,
        ranges: list[dict[str, int]] | None = None,
        description: str | None = None,
        check_collisions: bool = True,
        suggest_alternatives: bool = True,
    ) -> str:
        """Assign and commit one or more IDs.

        Args:
            object_type: Object kind
            count: Number of IDs
            app_path: Project path; the active project when omitted
            ranges: Ranges to allocate from; the project's ranges when omitted
            description: Note kept in the assignment history
            check_collisions: Check each candidate against sibling projects
            suggest_alternatives: Suggest non-colliding IDs when collisions are found
        """
        project = self._project(app_path)
        result = await self.ctx.assignments.assign_ids(
            project,
            AssignmentOptions(
                kind=object_type,
                count=count,
                ranges=parse_ranges(ranges) if ranges else None,
                description=description,
                check_collisions=check_collisions,
                suggest_alternatives=suggest_alternatives,
            ),
        )
        return _json_response(result.to_payload())

    @tool_handler
    async def batch_assign(
        self, assignments: list[dict[str, Any]], app_path: str | None = None
    ) -> str:
        """Assign several kinds in one call.

        Args:
            assignments: Items with objectType, count and an optional description
            app_path: Project path; the active project when omitted
        """
        project = self._project(app_path)
        requests = [AssignmentOptions.model_validate(item) for item in assignments]
        results = await self.ctx.assignments.batch_assign(project, requests)
        return _json_response(
            {
                "results": [r.to_payload() for r in results],
                "succeeded": sum(1 for r in results if r.success),
                "total": len(results),
            }
        )

    @tool_handler
    async def reserve_range(
        self,
        object_type: str,
        from_id: int,
        to_id: int,
        app_path: str | None = None,
        description: str | None = None,
    ) -> str:
        """Claim every ID in a block.

        Args:
            object_type: Object kind
            from_id: First ID of the block
            to_id: Last ID of the block
            app_path: Project path; the active project when omitted
            description: Note kept in the assignment history
        """
        project = self._authorized(app_path)
        reservation = await self.ctx.assignments.reserve_range(
            project, object_type, from_id, to_id, description
        )
        if reservation is None:
            return _error(f"Failed to reserve range {from_id}..{to_id}")
        return _json_response(reservation.to_payload())

    @tool_handler
    async def get_suggestions(
        self, object_type: str, app_path: str | None = None, pattern: str | None = None
    ) -> str:
        """Suggest IDs from consumption and usage patterns.

        Args:
            object_type: Object kind
            app_path: Project path; the active project when omitted
            pattern: Custom digit pattern such as "5xxx"
        """
        project = self._authorized(app_path)
        suggestions = await self.ctx.assignments.get_suggestions(project, object_type, pattern)
        return _json_response(suggestions.to_payload())

    @tool_handler
    async def get_assignment_history(
        self,
        app_path: str | None = None,
        object_type: str | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> str:
        """Assignment history of this session and earlier ones, newest first.

        Args:
            app_path: Restrict to one project
            object_type: Restrict to one object kind
            limit: Maximum number of entries
        """
        app_id = self._project(app_path).app_id if app_path else None
        merged: dict[tuple[str, str, float, tuple[int, ...]], AssignmentRecord] = {}
        for record in [
            *self.ctx.assignments.get_history(app_id, object_type),
            *self.ctx.store.get_assignment_history(app_id, object_type),
        ]:
            merged.setdefault((record.app_id, record.kind, record.timestamp, tuple(record.ids)), record)

        history = sorted(merged.values(), key=lambda r: r.timestamp, reverse=True)[:limit]
        return _json_response(
            {
                "count": len(history),
                "history": [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in history],
            }
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @tool_handler
    async def save_preferences(self, preferences: dict[str, Any]) -> str:
        """Update stored preferences.

        Args:
            preferences: Any of defaultRanges, autoSync, collisionChecking,
                suggestAlternatives, logLevel
        """
        saved = self.ctx.store.save_preferences(**preferences)
        if "logLevel" in preferences or "log_level" in preferences:
            apply_log_level(saved.log_level)
        return _json_response(saved.model_dump(mode="json", by_alias=True))

    @tool_handler
    async def get_preferences(self) -> str:
        return _json_response(self.ctx.store.get_preferences().model_dump(mode="json", by_alias=True))

    @tool_handler
    async def export_config(self) -> str:
        return self.ctx.store.export_config()

    @tool_handler
    async def import_config(self, config: str) -> str:
        """Replace stored state with a previously exported document.

        Args:
            config: JSON text produced by export-config
        """
        if not self.ctx.store.import_config(config):
            return _error("Failed to import configuration: invalid format")
        self.ctx.restore()
        return _json_response({"imported": True})

    @tool_handler
    async def get_statistics(self) -> str:
        workspace = self.ctx.workspace.current
        active = self.ctx.workspace.get_active_project()
        pending = self.ctx.assignments.get_pending_assignments()
        return _json_response(
            {
                **self.ctx.store.get_statistics(),
                "sessionAssignments": len(self.ctx.assignments.get_history()),
                "pendingAssignments": sum(len(ids) for ids in pending.values()),
                "currentWorkspace": str(workspace.root_path) if workspace else None,
                "activeApp": active.name if active else None,
                "trackedKinds": list(TRACKED_KINDS),
            }
        )


# Tool name -> (handler attribute, description)
TOOL_CATALOG: dict[str, tuple[str, str]] = {
    "scan-workspace": (
        "scan_workspace",
        "Scan a directory for AL apps (app.json) and restore the previously active app",
    ),
    "get-workspace-info": ("get_workspace_info", "Show the scanned workspace and its apps"),
    "set-active-app": ("set_active_app", "Select the app that later calls act on by default"),
    "get-next-id": (
        "get_next_id",
        "Get the next available object ID without claiming it; "
        "pass parent_object_id for table field or enum value IDs",
    ),
    "reserve-id": ("reserve_id", "Claim a specific object, field or enum value ID"),
    "sync-object-ids": (
        "sync_object_ids",
        "Report consumed object IDs to the backend, merging or replacing",
    ),
    "check-authorization": ("check_authorization", "Check whether an app is authorized"),
    "authorize-app": ("authorize_app", "Authorize an app with the backend and store its key"),
    "get-consumption-report": (
        "get_consumption_report",
        "Show consumed IDs per object type for an app",
    ),
    "get-next-field-id": ("get_next_field_id", "Get the next available field ID of a table"),
    "get-next-enum-value-id": (
        "get_next_enum_value_id",
        "Get the next available value ID of an enum",
    ),
    "check-collision": (
        "check_collision",
        "Check whether other apps in the workspace already use an object ID",
    ),
    "check-range-overlaps": (
        "check_range_overlaps",
        "List ID ranges shared between apps in the workspace",
    ),
    "start-polling": ("start_polling", "Start background checks for consumption and collisions"),
    "stop-polling": ("stop_polling", "Stop background polling"),
    "get-polling-status": ("get_polling_status", "Show polling state and last poll times"),
    "assign-ids": (
        "assign_ids",
        "Assign and commit IDs with collision checks and alternative suggestions",
    ),
    "batch-assign": ("batch_assign", "Assign IDs for several object types in one call"),
    "reserve-range": ("reserve_range", "Claim every ID in a block"),
    "get-suggestions": (
        "get_suggestions",
        "Suggest IDs from free ranges, recent assignments and usage patterns",
    ),
    "get-assignment-history": ("get_assignment_history", "Show past assignments, newest first"),
    "save-preferences": ("save_preferences", "Update stored preferences"),
    "get-preferences": ("get_preferences", "Show stored preferences"),
    "export-config": ("export_config", "Export the stored state document as JSON"),
    "import-config": ("import_config", "Replace the stored state with an exported document"),
    "get-statistics": ("get_statistics", "Show stored state and session statistics"),
}


def register_tools(mcp: FastMCP, tools: ObjIdTools, mode: ServerMode | str) -> list[str]:
    """
    Register the tools of a tier on a server.

    Returns:
        The registered tool names, in catalog order
    """
    names = tools_for_mode(mode)
    for name in names:
        attr, description = TOOL_CATALOG[name]
        mcp.add_tool(getattr(tools, attr), name=name, description=description)
    logger.debug(f"Registered {len(names)} tools: {', '.join(names)}")
    return names


__all__ = ["TOOL_CATALOG", "ObjIdTools", "register_tools", "tool_handler"]
