"""
Workspace data models.

A workspace is a directory scanned for projects; a project is a directory
holding an ``app.json`` manifest.
"""

from pathlib import Path

from pydantic import BaseModel, Field

from objid.core.ranges import Range


class Project(BaseModel):
    """
    One application discovered in a workspace.

    ``app_id`` is the SHA-256 hex digest of the manifest's declared id; the
    backend and every internal map key on it, never on the raw id.

    Attributes:
        path: Directory holding app.json
        app_id: Hashed project identifier
        name: Display name from the manifest
        version: Manifest version
        publisher: Manifest publisher
        has_objid_config: Whether a .objidconfig file exists
        auth_key: Authorization credential, None until authorized
        ranges: Declared ID ranges
        pool_id: Backend pool the project belongs to, if any
    """

    path: Path
    app_id: str
    name: str = "Unknown"
    version: str = "1.0.0.0"
    publisher: str = "Unknown"
    has_objid_config: bool = False
    auth_key: str | None = None
    ranges: list[Range] = Field(default_factory=list)
    pool_id: str | None = None

    @property
    def is_authorized(self) -> bool:
        return bool(self.auth_key)

    @property
    def backend_id(self) -> str:
        """Identifier sent to the backend: the pool id when pooled."""
        return self.pool_id or self.app_id

    def summary(self) -> dict[str, object]:
        """Credential-free view for tool output."""
        return {
            "appId": self.app_id,
            "name": self.name,
            "version": self.version,
            "publisher": self.publisher,
            "path": str(self.path),
            "authorized": self.is_authorized,
            "ranges": [str(r) for r in self.ranges],
            "poolId": self.pool_id,
        }


class WorkspaceInfo(BaseModel):
    root_path: Path
    projects: list[Project] = Field(default_factory=list)
    active_app_id: str | None = None

    @property
    def active_project(self) -> Project | None:
        if self.active_app_id is None:
            return None
        return next((p for p in self.projects if p.app_id == self.active_app_id), None)


__all__ = ["Project", "WorkspaceInfo"]
