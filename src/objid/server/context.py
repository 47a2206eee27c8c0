"""
Service wiring for the MCP server.

Every service is constructed explicitly here and passed to whatever needs
it; nothing is a module-level singleton.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from objid.core.assignment import AssignmentManager
from objid.core.backend import BackendService, HttpTransport
from objid.core.collision import CollisionDetector
from objid.core.config import ObjIdConfig, load_config
from objid.core.fields import FieldManager
from objid.core.persistence import StateStore
from objid.core.polling import PollingService, UpdateEvent
from objid.core.workspace import Project, WorkspaceInfo, WorkspaceManager, read_git_info

logger = logging.getLogger(__name__)

LOG_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "verbose": logging.DEBUG,
    "debug": logging.DEBUG,
}


def apply_log_level(level: str) -> bool:
    """Set the level of the package logger from a preference string."""
    value = LOG_LEVELS.get(level.strip().lower())
    if value is None:
        logger.warning(f"Ignoring unknown log level: {level}")
        return False
    logging.getLogger("objid").setLevel(value)
    return True


@dataclass
class ServerContext:
    config: ObjIdConfig
    backend: BackendService
    workspace: WorkspaceManager
    collision: CollisionDetector
    fields: FieldManager
    polling: PollingService
    assignments: AssignmentManager
    store: StateStore

    @classmethod
    def create(
        cls,
        config: ObjIdConfig | None = None,
        transport: HttpTransport | None = None,
        store: StateStore | None = None,
    ) -> ServerContext:
        """
        Build the full service graph.

        Args:
            config: Configuration (loaded from files and environment if None)
            transport: HTTP transport override
            store: State store override (defaults to the configured state path)
        """
        config = config or load_config()
        backend = BackendService(config.backend, transport=transport)
        workspace = WorkspaceManager()
        collision = CollisionDetector(backend, workspace)
        store = store or StateStore.default(config)
        context = cls(
            config=config,
            backend=backend,
            workspace=workspace,
            collision=collision,
            fields=FieldManager(backend),
            polling=PollingService(backend, workspace, collision),
            assignments=AssignmentManager(backend, collision, store),
            store=store,
        )
        context.polling.on_update(_log_update)
        return context

    def restore(self) -> None:
        """
        Re-apply persisted settings: the log level and, when enabled, polling.

        Polling needs a running event loop, so this is called from the
        server's startup hook.
        """
        preferences = self.store.get_preferences()
        if preferences.log_level and not self.config.defaults.verbose_logging:
            apply_log_level(preferences.log_level)

        polling = self.store.get_polling_config()
        if polling.enabled:
            self.polling.start(polling)
        logger.info("Configuration restored from persistence")

    def shutdown(self) -> None:
        self.polling.stop()
        self.store.flush()

    def scan(self, path: Path | str) -> WorkspaceInfo:
        """Scan a workspace, restoring and then persisting its active project."""
        root = Path(path).expanduser().resolve()
        info = self.workspace.scan(root, active_app_id=self.store.get_active_app_id(root))
        self.remember_workspace()
        return info

    def remember_workspace(self) -> None:
        current = self.workspace.current
        if current is not None:
            self.store.save_workspace(current.root_path, current.projects, current.active_app_id)

    def git_user(self, project: Project) -> str | None:
        """Git user name sent with allocation requests, when enabled."""
        if not self.config.defaults.include_user_name:
            return None
        return read_git_info(project.path).user or None


def _log_update(event: UpdateEvent) -> None:
    logger.info(f"Polling update received: {event.type} for {event.app_id}")


__all__ = ["LOG_LEVELS", "ServerContext", "apply_log_level"]
