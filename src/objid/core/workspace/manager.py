"""
Workspace discovery and project selection.

Selection contract, applied on every scan:
    1. If a previously selected project id is supplied and still present,
       it stays selected.
    2. Otherwise, if exactly one project is discovered, it is selected.
    3. Otherwise nothing is selected and callers must pick a project
       explicitly with ``set_active_project``.

Example:
    >>> manager = WorkspaceManager()
    >>> info = manager.scan(Path("~/src/my-apps").expanduser())
    >>> [p.name for p in info.projects]
    ['Base App', 'Extension']
    >>> manager.set_active_project("Extension").name
    'Extension'
"""

from __future__ import annotations

import logging
from pathlib import Path

from objid.core.workspace.manifest import MANIFEST_FILE, load_project, write_auth_key
from objid.core.workspace.models import Project, WorkspaceInfo

logger = logging.getLogger(__name__)


def _is_project_dir(path: Path) -> bool:
    return (path / MANIFEST_FILE).is_file()


def discover_projects(root: Path) -> list[Project]:
    """
    Find projects in ``root`` and its non-hidden direct subdirectories.

    Returns:
        Projects sorted by name
    """
    candidates: list[Path] = []
    if _is_project_dir(root):
        candidates.append(root)

    try:
        for entry in sorted(root.iterdir()):
            if entry.is_dir() and not entry.name.startswith(".") and _is_project_dir(entry):
                candidates.append(entry)
    except OSError as e:
        logger.error(f"Error scanning workspace {root}: {e}")

    projects = [p for p in (load_project(c) for c in candidates) if p is not None]
    projects.sort(key=lambda p: p.name.lower())
    return projects


class WorkspaceManager:
    """
    Holds scanned workspaces and the current project selection.

    Several workspaces may be scanned in one session; the most recently
    scanned one is current.
    """

    def __init__(self) -> None:
        self._workspaces: dict[Path, WorkspaceInfo] = {}
        self._current: Path | None = None

    def scan(self, root: Path | str, active_app_id: str | None = None) -> WorkspaceInfo:
        """
        Scan a directory for projects and make it the current workspace.

        Args:
            root: Workspace directory
            active_app_id: Previously selected project id to restore

        Returns:
            The scanned workspace
        """
        root = Path(root).expanduser().resolve()
        logger.debug(f"Scanning workspace {root}")
        projects = discover_projects(root)

        selected: str | None = None
        if active_app_id and any(p.app_id == active_app_id for p in projects):
            selected = active_app_id
        elif len(projects) == 1:
            selected = projects[0].app_id

        workspace = WorkspaceInfo(root_path=root, projects=projects, active_app_id=selected)
        self._workspaces[root] = workspace
        self._current = root

        logger.info(f"Found {len(projects)} app(s) in workspace {root}")
        return workspace

    @property
    def current(self) -> WorkspaceInfo | None:
        if self._current is None:
            return None
        return self._workspaces.get(self._current)

    def get_projects(self) -> list[Project]:
        workspace = self.current
        return list(workspace.projects) if workspace else []

    def get_project(self, key: str) -> Project | None:
        """Find a project in any scanned workspace by id, name or path."""
        key_path = Path(key).expanduser()
        for workspace in self._workspaces.values():
            for project in workspace.projects:
                if key in (project.app_id, project.name):
                    return project
                if key_path.is_absolute() and project.path == key_path.resolve():
                    return project
        return None

    def get_project_for_file(self, file_path: Path | str) -> Project | None:
        """Project whose directory contains the given file (deepest match wins)."""
        target = Path(file_path).expanduser().resolve()
        best: Project | None = None
        for workspace in self._workspaces.values():
            for project in workspace.projects:
                if target == project.path or project.path in target.parents:
                    if best is None or len(project.path.parts) > len(best.path.parts):
                        best = project
        return best

    def get_active_project(self) -> Project | None:
        workspace = self.current
        return workspace.active_project if workspace else None

    def set_active_project(self, key: str) -> Project | None:
        """
        Select a project of the current workspace.

        Args:
            key: Project id, name or path

        Returns:
            The selected project, or None if it is not in the current workspace
        """
        workspace = self.current
        project = self.get_project(key)
        if workspace is None or project is None or project not in workspace.projects:
            return None
        workspace.active_app_id = project.app_id
        logger.info(f"Active app changed to {project.name}")
        return project

    def resolve_project(self, app_path: str | None = None) -> Project | None:
        """
        Resolve the project a tool call refers to.

        With no path, the active project. With a path, a known project at that
        path, else the result of scanning it (only when the scan selects one).
        """
        if not app_path:
            return self.get_active_project()

        project = self.get_project(str(Path(app_path).expanduser().resolve()))
        if project is not None:
            return project

        workspace = self.scan(app_path)
        return workspace.active_project

    def backend_id(self, project: Project) -> str:
        """Identifier the backend keys on: the pool id when the project is pooled."""
        return project.backend_id

    def update_authorization(self, project: Project, auth_key: str, persist: bool = False) -> Project:
        """
        Attach a credential to a project.

        Args:
            project: Project to update
            auth_key: Credential issued by the backend
            persist: Also write the key into the project's .objidconfig
        """
        project.auth_key = auth_key
        if persist:
            write_auth_key(project.path, auth_key)
            project.has_objid_config = True
        logger.info(f"Authorization updated for {project.name}")
        return project

    def clear(self) -> None:
        self._workspaces.clear()
        self._current = None


__all__ = ["WorkspaceManager", "discover_projects"]
