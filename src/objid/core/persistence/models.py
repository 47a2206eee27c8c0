"""
Models of the persisted state document (``~/.objid-mcp/config.json``).

All keys are stored in camelCase. Authorization credentials are never
written here; they live in each project's ``.objidconfig``.
"""

from __future__ import annotations

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from objid.core.kinds import DEFAULT_EXTENSION_RANGES
from objid.core.polling import PollingConfig
from objid.core.ranges import Range, parse_ranges

CURRENT_VERSION = "1.0.0"
HISTORY_LIMIT = 500


class StateModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersistedApp(StateModel):
    app_id: str
    name: str
    ranges: list[Range] = Field(default_factory=list)
    last_authorized: float | None = None

    @field_serializer("ranges")
    def _serialize_ranges(self, ranges: list[Range]) -> list[dict[str, int]]:
        return [r.to_payload() for r in ranges]


class PersistedWorkspace(StateModel):
    apps: list[PersistedApp] = Field(default_factory=list)
    active_app_id: str | None = None


class AssignmentRecord(StateModel):
    """
    One committed assignment. Immutable once recorded.

    Attributes:
        timestamp: Seconds since the epoch
        app_id: Project the IDs were assigned to
        kind: Object kind (stored as ``objectType``)
        ids: Assigned IDs
        description: Optional free-form note
        app_name: Display name of the project at assignment time
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    timestamp: float = Field(default_factory=time.time)
    app_id: str
    kind: str = Field(alias="objectType")
    ids: list[int]
    description: str | None = None
    app_name: str | None = None


class UsagePattern(StateModel):
    preferred_ranges: list[Range] | None = None
    naming_pattern: str | None = None
    last_used_id: int | None = None


class AssignmentsSection(StateModel):
    history: list[AssignmentRecord] = Field(default_factory=list)
    patterns: dict[str, dict[str, UsagePattern]] = Field(default_factory=dict)


class Preferences(StateModel):
    default_ranges: list[Range] = Field(default_factory=lambda: list(DEFAULT_EXTENSION_RANGES))
    auto_sync: bool = True
    collision_checking: bool = True
    suggest_alternatives: bool = True
    log_level: str = "info"

    @field_validator("default_ranges", mode="before")
    @classmethod
    def _parse_ranges(cls, v: Any) -> Any:
        return parse_ranges(v) if isinstance(v, list) else v

    @field_serializer("default_ranges")
    def _serialize_ranges(self, ranges: list[Range]) -> list[dict[str, int]]:
        return [r.to_payload() for r in ranges]


class PersistedDocument(StateModel):
    """The whole state document."""

    version: str = CURRENT_VERSION
    last_updated: float = Field(default_factory=time.time)
    workspaces: dict[str, PersistedWorkspace] = Field(default_factory=dict)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    assignments: AssignmentsSection = Field(default_factory=AssignmentsSection)
    preferences: Preferences = Field(default_factory=Preferences)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _version_tuple(version: str) -> tuple[int, ...]:
    parts: list[int] = []
    for part in version.split("."):
        try:
            parts.append(int(part))
        except ValueError:
            break
    return tuple(parts)


def needs_migration(raw: dict[str, Any]) -> bool:
    version = raw.get("version")
    return not isinstance(version, str) or _version_tuple(version) < _version_tuple(
        CURRENT_VERSION
    )


def migrate(raw: dict[str, Any]) -> PersistedDocument:
    """
    Upgrade an older document.

    Recognized sections are shallow-merged into a fresh default document;
    ``workspaces`` replaces the default outright. Everything else is dropped.
    """
    data = PersistedDocument().to_payload()

    if isinstance(raw.get("workspaces"), dict):
        data["workspaces"] = raw["workspaces"]
    for section in ("polling", "assignments", "preferences"):
        if isinstance(raw.get(section), dict):
            data[section] = {**data[section], **raw[section]}

    data["version"] = CURRENT_VERSION
    return PersistedDocument.model_validate(data)


__all__ = [
    "CURRENT_VERSION",
    "HISTORY_LIMIT",
    "AssignmentRecord",
    "AssignmentsSection",
    "PersistedApp",
    "PersistedDocument",
    "PersistedWorkspace",
    "Preferences",
    "UsagePattern",
    "migrate",
    "needs_migration",
]
