"""
Local state store backed by a single JSON document.

Mutations mark the document dirty and schedule a write one second after
the last change (when an event loop is running; otherwise the write is
immediate). ``flush()`` writes pending changes right away, and the store
is a context manager that flushes on exit.

Writes are atomic: the document goes to a temporary file in the same
directory which then replaces the target.

Example:
    >>> with StateStore.default() as store:
    ...     store.save_preferences(log_level="debug")
    ...     store.add_assignment_history(AssignmentRecord(app_id=app_id, kind="table", ids=[50000]))
"""

from __future__ import annotations

import asyncio
import json
import logging
import tempfile
import time
from pathlib import Path
from types import TracebackType
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from objid.core.config import ObjIdConfig, load_config
from objid.core.persistence.models import (
    CURRENT_VERSION,
    HISTORY_LIMIT,
    AssignmentRecord,
    PersistedApp,
    PersistedDocument,
    PersistedWorkspace,
    Preferences,
    UsagePattern,
    migrate,
    needs_migration,
)
from objid.core.polling import PollingConfig
from objid.core.workspace.models import Project

logger = logging.getLogger(__name__)

SAVE_DELAY_SECONDS = 1.0


class StateStore:
    """
    Debounced reader/writer of the persisted state document.

    Args:
        path: Location of the JSON document
        save_delay: Seconds of inactivity before a scheduled write
    """

    def __init__(self, path: Path, save_delay: float = SAVE_DELAY_SECONDS) -> None:
        self.path = Path(path)
        self.save_delay = save_delay
        self._dirty = False
        self._timer: asyncio.TimerHandle | None = None
        self.document = self._load()

    @classmethod
    def default(cls, config: ObjIdConfig | None = None) -> StateStore:
        """Store at the configured state path (``~/.objid-mcp/config.json``)."""
        config = config or load_config()
        return cls(config.get_state_path())

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def _load(self) -> PersistedDocument:
        if not self.path.exists():
            return PersistedDocument()

        try:
            with open(self.path, encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                raise ValueError("state document is not a JSON object")
            if needs_migration(raw):
                logger.info("Migrating state document to current version")
                return migrate(raw)
            document = PersistedDocument.model_validate(raw)
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Failed to load state from {self.path}: {e}")
            return PersistedDocument()

        logger.info(f"State loaded from {self.path}")
        return document

    def save(self) -> None:
        """Write the document now."""
        self._cancel_timer()
        self.document.last_updated = time.time()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.path.parent,
                delete=False,
                suffix=".tmp",
            ) as tmp:
                tmp.write(json.dumps(self.document.to_payload(), indent=2))
                tmp.flush()
                tmp_path = Path(tmp.name)
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to save state to {self.path}: {e}")
            return

        self._dirty = False
        logger.debug(f"State saved to {self.path}")

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_save(self) -> None:
        self._dirty = True
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.save()
            return
        self._timer = loop.call_later(self.save_delay, self.flush)

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def flush(self) -> None:
        """Write pending changes, if any."""
        self._cancel_timer()
        if self._dirty:
            self.save()

    def __enter__(self) -> StateStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.flush()

    # ------------------------------------------------------------------
    # Workspaces
    # ------------------------------------------------------------------

    def save_workspace(
        self, root_path: Path | str, projects: list[Project], active_app_id: str | None = None
    ) -> None:
        now = time.time()
        self.document.workspaces[str(root_path)] = PersistedWorkspace(
            apps=[
                PersistedApp(
                    app_id=p.app_id,
                    name=p.name,
                    ranges=list(p.ranges),
                    last_authorized=now if p.is_authorized else None,
                )
                for p in projects
            ],
            active_app_id=active_app_id,
        )
        self._schedule_save()

    def get_workspace(self, root_path: Path | str) -> PersistedWorkspace | None:
        return self.document.workspaces.get(str(root_path))

    def get_active_app_id(self, root_path: Path | str) -> str | None:
        workspace = self.get_workspace(root_path)
        return workspace.active_app_id if workspace else None

    def set_active_app_id(self, root_path: Path | str, app_id: str | None) -> None:
        workspace = self.document.workspaces.setdefault(str(root_path), PersistedWorkspace())
        workspace.active_app_id = app_id
        self._schedule_save()

    def clear_workspace(self, root_path: Path | str) -> None:
        """Forget a workspace and the usage patterns of its projects."""
        workspace = self.document.workspaces.pop(str(root_path), None)
        if workspace is not None:
            for app in workspace.apps:
                self.document.assignments.patterns.pop(app.app_id, None)
        self._schedule_save()

    # ------------------------------------------------------------------
    # Polling and preferences
    # ------------------------------------------------------------------

    def save_polling_config(self, config: PollingConfig) -> None:
        self.document.polling = config.model_copy()
        self._schedule_save()

    def get_polling_config(self) -> PollingConfig:
        return self.document.polling.model_copy()

    def save_preferences(self, **changes: Any) -> Preferences:
        """Merge preference changes (snake_case or camelCase keys)."""
        merged = {
            **self.document.preferences.model_dump(),
            **{to_snake(k): v for k, v in changes.items()},
        }
        self.document.preferences = Preferences.model_validate(merged)
        self._schedule_save()
        return self.get_preferences()

    def get_preferences(self) -> Preferences:
        return self.document.preferences.model_copy()

    # ------------------------------------------------------------------
    # Assignment history and patterns
    # ------------------------------------------------------------------

    def add_assignment_history(self, record: AssignmentRecord) -> None:
        history = self.document.assignments.history
        history.append(record)
        if len(history) > HISTORY_LIMIT:
            del history[: len(history) - HISTORY_LIMIT]
        self._schedule_save()

    def get_assignment_history(
        self, app_id: str | None = None, kind: str | None = None, limit: int | None = None
    ) -> list[AssignmentRecord]:
        """Persisted history, newest first, optionally filtered."""
        history = [
            r
            for r in self.document.assignments.history
            if (app_id is None or r.app_id == app_id) and (kind is None or r.kind == kind)
        ]
        history.sort(key=lambda r: r.timestamp, reverse=True)
        return history[:limit] if limit else history

    def save_pattern(self, app_id: str, kind: str, pattern: UsagePattern) -> None:
        self.document.assignments.patterns.setdefault(app_id, {})[kind] = pattern
        self._schedule_save()

    def get_pattern(self, app_id: str, kind: str) -> UsagePattern | None:
        return self.document.assignments.patterns.get(app_id, {}).get(kind)

    # ------------------------------------------------------------------
    # Whole-document operations
    # ------------------------------------------------------------------

    def clear_all(self) -> None:
        self.document = PersistedDocument()
        self._dirty = True
        self.save()

    def export_config(self) -> str:
        return json.dumps(self.document.to_payload(), indent=2)

    def import_config(self, content: str) -> bool:
        """
        Replace the document with an exported one.

        The import must carry ``version`` and ``workspaces``; older versions
        are migrated. Invalid input leaves the current document untouched.

        Returns:
            True if the document was imported
        """
        try:
            raw = json.loads(content)
            if not isinstance(raw, dict) or "version" not in raw or "workspaces" not in raw:
                raise ValueError("Invalid configuration format")
            document = migrate(raw) if needs_migration(raw) else PersistedDocument.model_validate(raw)
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to import configuration: {e}")
            return False

        self.document = document
        self._dirty = True
        self.save()
        logger.info("Configuration imported successfully")
        return True

    def get_statistics(self) -> dict[str, Any]:
        patterns = self.document.assignments.patterns
        return {
            "version": CURRENT_VERSION,
            "workspaceCount": len(self.document.workspaces),
            "appCount": sum(len(w.apps) for w in self.document.workspaces.values()),
            "assignmentCount": len(self.document.assignments.history),
            "patternCount": sum(len(kinds) for kinds in patterns.values()),
            "lastUpdated": self.document.last_updated,
            "path": str(self.path),
        }


__all__ = ["SAVE_DELAY_SECONDS", "StateStore"]
