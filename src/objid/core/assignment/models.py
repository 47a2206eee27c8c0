"""Assignment requests, results and suggestion models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from objid.core.ranges import Range

MAX_ALTERNATIVES = 5
ALTERNATIVE_ATTEMPTS_PER_SUGGESTION = 3


class AssignmentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AssignmentOptions(AssignmentModel):
    """
    What to assign.

    Attributes:
        kind: Object kind (stored as ``objectType``)
        count: Number of IDs to request
        ranges: Ranges to allocate from; the project's ranges when None
        description: Note recorded in the history
        check_collisions: Check each candidate against sibling projects
        suggest_alternatives: Keep colliding candidates and suggest
            non-colliding alternatives instead of skipping them
    """

    kind: str = Field(alias="objectType")
    count: int = Field(default=1, ge=1)
    ranges: list[Range] | None = None
    description: str | None = None
    check_collisions: bool = False
    suggest_alternatives: bool = False


class IdCollision(AssignmentModel):
    id: int
    conflicting_projects: list[str]


class AssignmentResult(AssignmentModel):
    success: bool
    ids: list[int] = Field(default_factory=list)
    kind: str = Field(alias="objectType")
    app_id: str
    app_name: str
    collisions: list[IdCollision] | None = None
    alternatives: list[int] | None = None
    message: str = ""


class FreeRange(AssignmentModel):
    """A contiguous run of unused IDs."""

    from_: int = Field(alias="from")
    to: int
    available: int


class PatternHint(AssignmentModel):
    pattern: str
    example: int


class Suggestions(AssignmentModel):
    next_available: int | None = None
    suggested_ranges: list[FreeRange] = Field(default_factory=list)
    recently_used: list[int] = Field(default_factory=list)
    patterns: list[PatternHint] = Field(default_factory=list)


class RangeReservation(AssignmentModel):
    app_id: str
    kind: str = Field(alias="objectType")
    range: Range
    count: int

    @field_serializer("range")
    def _serialize_range(self, value: Range) -> dict[str, int]:
        return value.to_payload()


__all__ = [
    "ALTERNATIVE_ATTEMPTS_PER_SUGGESTION",
    "MAX_ALTERNATIVES",
    "AssignmentOptions",
    "AssignmentResult",
    "FreeRange",
    "IdCollision",
    "PatternHint",
    "RangeReservation",
    "Suggestions",
]
