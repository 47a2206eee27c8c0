"""Persisted local state: workspaces, polling, history, preferences."""

from objid.core.persistence.models import (
    AssignmentRecord,
    PersistedDocument,
    Preferences,
    UsagePattern,
)
from objid.core.persistence.store import StateStore

__all__ = [
    "AssignmentRecord",
    "PersistedDocument",
    "Preferences",
    "StateStore",
    "UsagePattern",
]
