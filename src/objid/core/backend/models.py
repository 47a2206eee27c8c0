"""
Request and response models for the allocation backend.

Requests serialize to the backend's camelCase JSON via pydantic aliases
(``model_dump(by_alias=True)``); responses are validated from whatever
subset of fields the backend returns.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from objid.core.ranges import Range


class BackendModel(BaseModel):
    """Base for models exchanged with the backend in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ==============================================================================
# Requests
# ==============================================================================


class GetNextRequest(BackendModel):
    """Query (or commit) the next free ID of a kind within ranges."""

    app_id: str
    type: str
    ranges: list[Range]
    auth_key: str
    per_range: bool | None = None
    require: int | None = None
    user: str | None = None

    @field_serializer("ranges")
    def _serialize_ranges(self, ranges: list[Range]) -> list[dict[str, int]]:
        return [r.to_payload() for r in ranges]


class AuthorizeAppRequest(BackendModel):
    app_id: str
    app_name: str
    git_user: str = ""
    git_email: str = ""
    git_repo: str = ""
    git_branch: str = ""


class SyncIdsRequest(BackendModel):
    """
    Report consumed IDs to the backend.

    ``merge=True`` adds to existing consumption; ``merge=False`` replaces it.
    """

    app_id: str
    auth_key: str
    ids: dict[str, list[int]]
    merge: bool = False


class AppFolder(BackendModel):
    """One application folder in a multi-app synchronization."""

    app_id: str
    auth_key: str = ""
    ids: dict[str, list[int]] = Field(default_factory=dict)


class CreatePoolRequest(BackendModel):
    name: str
    join_key: str
    management_secret: str
    apps: list[dict[str, Any]] = Field(default_factory=list)
    allow_any_app_to_manage: bool = False


class JoinPoolRequest(BackendModel):
    pool_id: str
    join_key: str
    apps: list[dict[str, Any]] = Field(default_factory=list)


# ==============================================================================
# Responses
# ==============================================================================


class NextIdInfo(BackendModel):
    """
    Backend answer to a next-ID query.

    ``available=False`` is a normal answer (the ranges are exhausted),
    not a failure.
    """

    id: int | list[int] = 0
    available: bool = False
    updated: bool = False
    has_consumption: bool = False

    @property
    def first_id(self) -> int | None:
        if isinstance(self.id, list):
            return self.id[0] if self.id else None
        return self.id


class AuthUser(BaseModel):
    name: str = ""
    email: str = ""


class AuthorizationInfo(BackendModel):
    """
    Authorization state of an app.

    A response without a credential yields ``authorized=False`` with an
    error message rather than an exception.
    """

    auth_key: str = ""
    authorized: bool = False
    error: str | None = None
    user: AuthUser | None = None
    valid: bool | None = None


class CheckAppResult(BackendModel):
    managed: bool = False
    has_pool: bool = False
    pool_id: str | None = None


class ConsumptionInfo(BaseModel):
    """Consumed IDs per object kind, with the total across all kinds."""

    ids: dict[str, list[int]] = Field(default_factory=dict)
    total: int = 0

    @classmethod
    def from_backend(cls, raw: Any) -> "ConsumptionInfo":
        """Build from the backend's raw ``{kind: [ids]}`` mapping."""
        ids: dict[str, list[int]] = {}
        if isinstance(raw, dict):
            for kind, values in raw.items():
                if isinstance(values, list):
                    ids[kind] = [int(v) for v in values]
        return cls(ids=ids, total=sum(len(v) for v in ids.values()))

    def for_kind(self, kind: str) -> list[int]:
        return self.ids.get(kind, [])

    def to_payload(self) -> dict[str, Any]:
        return {**self.ids, "_total": self.total}


class PoolInfo(BackendModel):
    pool_id: str
    access_key: str = ""
    validation_key: str = ""
    management_key: str = ""
    leave_keys: dict[str, str] = Field(default_factory=dict)


__all__ = [
    "BackendModel",
    "GetNextRequest",
    "AuthorizeAppRequest",
    "SyncIdsRequest",
    "AppFolder",
    "CreatePoolRequest",
    "JoinPoolRequest",
    "NextIdInfo",
    "AuthUser",
    "AuthorizationInfo",
    "CheckAppResult",
    "ConsumptionInfo",
    "PoolInfo",
]
