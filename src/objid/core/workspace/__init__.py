"""Project discovery from app.json / .objidconfig manifests."""

from objid.core.workspace.git import GitInfo, read_git_info
from objid.core.workspace.manager import WorkspaceManager, discover_projects
from objid.core.workspace.manifest import hash_app_id, load_project, strip_json_comments
from objid.core.workspace.models import Project, WorkspaceInfo

__all__ = [
    "GitInfo",
    "Project",
    "WorkspaceInfo",
    "WorkspaceManager",
    "discover_projects",
    "hash_app_id",
    "load_project",
    "read_git_info",
    "strip_json_comments",
]
