"""
Collision detection between projects of one workspace.

Two checks are offered:

- ``check_collision``: is a candidate (kind, id) already consumed by a
  sibling project? Confirmed consumption yields an ``error`` finding.
- ``check_range_overlaps``: do any two projects declare intersecting
  ranges? Each intersection yields a ``warning`` finding, regardless of
  actual consumption.

Sibling consumption is cached per ``"{app_id}-{kind}"`` for five minutes.
Expiry is evaluated on lookup; nothing sweeps the cache in the background,
and syncing new IDs does not invalidate it. Callers that sync should call
``invalidate_project`` or accept up to five minutes of staleness.

Example:
    >>> detector = CollisionDetector(backend, workspace)
    >>> finding = await detector.check_collision("table", 50000, project)
    >>> if finding:
    ...     print(finding.message)
    Object ID 50000 is already used by 1 other app(s)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Literal

from pydantic import BaseModel

from objid.core.backend.service import BackendService
from objid.core.kinds import TRACKED_KINDS, ObjectKind
from objid.core.ranges import Range, find_overlap, is_in_ranges
from objid.core.workspace.manager import WorkspaceManager
from objid.core.workspace.models import Project

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 5 * 60

Severity = Literal["warning", "error"]


class ProjectRef(BaseModel):
    app_id: str
    name: str
    path: str

    @classmethod
    def of(cls, project: Project) -> ProjectRef:
        return cls(app_id=project.app_id, name=project.name, path=str(project.path))


class CollisionFinding(BaseModel):
    """
    Result of a collision or overlap check. Never persisted.

    Attributes:
        kind: Object kind checked (overlap findings use "table" as a generic kind)
        id: Candidate ID, or the first ID of an overlapping range
        projects: Projects involved
        severity: "error" for confirmed consumption, "warning" for range overlap
        message: Human-readable description
        overlap: The overlapping interval, for overlap findings
    """

    kind: str
    id: int
    projects: list[ProjectRef]
    severity: Severity
    message: str
    overlap: Range | None = None

    def involves(self, app_id: str) -> bool:
        return any(p.app_id == app_id for p in self.projects)


@dataclass
class _CacheEntry:
    ids: list[int]
    fetched_at: float = field(default=0.0)


def find_overlapping_ranges(first: Iterable[Range], second: Iterable[Range]) -> list[Range]:
    """Every pairwise intersection between two sets of ranges."""
    second = list(second)
    overlaps: list[Range] = []
    for r1 in first:
        for r2 in second:
            overlap = find_overlap(r1, r2)
            if overlap is not None:
                overlaps.append(overlap)
    return overlaps


class CollisionDetector:
    """
    Cross-references candidate IDs against sibling projects' consumption.

    Args:
        backend: Backend service used to fetch consumption
        workspace: Workspace manager providing the sibling projects
        cache_ttl: Seconds a consumption snapshot stays fresh
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(
        self,
        backend: BackendService,
        workspace: WorkspaceManager,
        cache_ttl: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.backend = backend
        self.workspace = workspace
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._cache: dict[str, _CacheEntry] = {}

    async def check_collision(
        self, kind: str, object_id: int, claimant: Project
    ) -> CollisionFinding | None:
        """
        Check whether a sibling project already consumed ``object_id``.

        The claimant itself is never consulted. Only authorized siblings whose
        declared ranges include the candidate are checked. Siblings sharing the
        claimant's pool share its ledger and are skipped as well.

        Args:
            kind: Object kind
            object_id: Candidate ID
            claimant: Project about to use the ID

        Returns:
            An "error" finding naming the colliding projects, or None
        """
        colliding: list[ProjectRef] = []

        for sibling in self.workspace.get_projects():
            if sibling.app_id == claimant.app_id:
                continue
            if claimant.pool_id and sibling.pool_id == claimant.pool_id:
                continue
            if not is_in_ranges(object_id, sibling.ranges):
                continue

            consumed = await self.get_project_consumption(sibling, kind)
            if consumed is not None and object_id in consumed:
                colliding.append(ProjectRef.of(sibling))

        if not colliding:
            return None

        return CollisionFinding(
            kind=kind,
            id=object_id,
            projects=colliding,
            severity="error",
            message=f"Object ID {object_id} is already used by {len(colliding)} other app(s)",
        )

    def check_range_overlaps(self) -> list[CollisionFinding]:
        """
        Find intersecting declared ranges between every pair of projects.

        Returns:
            One "warning" finding per overlapping interval
        """
        projects = self.workspace.get_projects()
        findings: list[CollisionFinding] = []

        for i, first in enumerate(projects):
            for second in projects[i + 1 :]:
                for overlap in find_overlapping_ranges(first.ranges, second.ranges):
                    findings.append(
                        CollisionFinding(
                            kind=ObjectKind.TABLE.value,
                            id=overlap.from_,
                            projects=[ProjectRef.of(first), ProjectRef.of(second)],
                            severity="warning",
                            message=(
                                f"Range {overlap.from_}..{overlap.to} is shared between "
                                f"{first.name} and {second.name}"
                            ),
                            overlap=overlap,
                        )
                    )

        return findings

    async def get_project_consumption(self, project: Project, kind: str) -> list[int] | None:
        """
        Consumed IDs of one kind for a project, from cache or backend.

        Returns:
            The IDs, or None if the project is unauthorized or the fetch failed
        """
        if not project.auth_key:
            return None

        key = f"{project.app_id}-{kind}"
        now = self._clock()
        cached = self._cache.get(key)
        if cached is not None and now - cached.fetched_at < self.cache_ttl:
            return cached.ids

        consumption = await self.backend.get_consumption(project.backend_id, project.auth_key)
        if consumption is None:
            logger.warning(f"Failed to get consumption for {project.name}")
            return None

        ids = consumption.for_kind(kind)
        self._cache[key] = _CacheEntry(ids=ids, fetched_at=now)
        return ids

    async def prefetch_workspace_consumption(
        self, kinds: Iterable[str] = TRACKED_KINDS
    ) -> None:
        """Warm the cache for every authorized project of the workspace."""
        kinds = list(kinds)
        authorized = [p for p in self.workspace.get_projects() if p.is_authorized]
        for project in authorized:
            for kind in kinds:
                await self.get_project_consumption(project, kind)
        logger.info(f"Pre-fetched consumption for {len(authorized)} app(s)")

    def invalidate_project(self, app_id: str) -> None:
        """Drop every cache entry belonging to a project."""
        for key in [k for k in self._cache if k.startswith(f"{app_id}-")]:
            del self._cache[key]

    def clear_cache(self) -> None:
        self._cache.clear()


__all__ = [
    "CACHE_TTL_SECONDS",
    "CollisionDetector",
    "CollisionFinding",
    "ProjectRef",
    "find_overlapping_ranges",
]
