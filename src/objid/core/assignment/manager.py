"""
Assignment orchestration: request IDs, check collisions, commit, record.

Candidates are obtained with non-committing next-ID queries. Each query
after the first is restricted to IDs above the previous candidate, so a
multi-ID request walks forward through the ranges instead of being handed
the same free ID repeatedly. Granted IDs are then committed in a single
merging sync, which leaves existing consumption untouched.

Example:
    >>> manager = AssignmentManager(backend, detector, store)
    >>> result = await manager.assign_ids(
    ...     project, AssignmentOptions(kind="table", count=2, check_collisions=True)
    ... )
    >>> result.message
    'Assigned IDs: 50000, 50001'
"""

from __future__ import annotations

import asyncio
import csv
import io
import json
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Literal

from objid.core.assignment.models import (
    ALTERNATIVE_ATTEMPTS_PER_SUGGESTION,
    MAX_ALTERNATIVES,
    AssignmentOptions,
    AssignmentResult,
    IdCollision,
    RangeReservation,
    Suggestions,
)
from objid.core.assignment.patterns import analyze_patterns, analyze_range_availability
from objid.core.backend.errors import NOT_AUTHORIZED_MESSAGE, ObjIdError
from objid.core.backend.models import GetNextRequest, SyncIdsRequest
from objid.core.backend.service import BackendService
from objid.core.collision import CollisionDetector
from objid.core.kinds import default_ranges
from objid.core.persistence.models import AssignmentRecord, UsagePattern
from objid.core.persistence.store import StateStore
from objid.core.ranges import Range, ranges_above
from objid.core.workspace.models import Project

logger = logging.getLogger(__name__)

MEMORY_HISTORY_LIMIT = 100
BATCH_DELAY_SECONDS = 0.1
RECENT_ENTRIES = 10

AssignmentListener = Callable[[AssignmentResult], None]


def generate_assignment_message(
    assigned: list[int], collisions: list[IdCollision], alternatives: list[int]
) -> str:
    parts: list[str] = []
    if assigned:
        parts.append(f"Assigned IDs: {', '.join(str(i) for i in assigned)}")
    if collisions:
        details = "; ".join(
            f"ID {c.id} conflicts with {', '.join(c.conflicting_projects)}" for c in collisions
        )
        parts.append(f"Collisions detected: {details}")
    if alternatives:
        parts.append(f"Alternative IDs available: {', '.join(str(i) for i in alternatives)}")
    if not assigned and not collisions:
        parts.append("No IDs available in the specified ranges")
    return ". ".join(parts)


class AssignmentManager:
    """
    Assigns IDs on behalf of a project and keeps the session history.

    Args:
        backend: Backend service used for queries and commits
        collision: Collision detector consulted when requested
        store: Optional state store for persisted history and usage patterns
    """

    def __init__(
        self,
        backend: BackendService,
        collision: CollisionDetector,
        store: StateStore | None = None,
    ) -> None:
        self.backend = backend
        self.collision = collision
        self.store = store
        self._history: list[AssignmentRecord] = []
        self._pending: dict[str, list[int]] = {}
        self._listeners: list[AssignmentListener] = []

    def on_assignment(self, listener: AssignmentListener) -> None:
        self._listeners.append(listener)

    def _emit(self, result: AssignmentResult) -> None:
        for listener in self._listeners:
            try:
                listener(result)
            except Exception as e:
                logger.error(f"Assignment listener failed: {e}")

    @staticmethod
    def _ranges_for(project: Project, ranges: list[Range] | None) -> list[Range]:
        return list(ranges or project.ranges or default_ranges(is_extension=True))

    async def _next_candidate(
        self, project: Project, kind: str, ranges: list[Range], after: int | None
    ) -> int | None:
        search = ranges if after is None else ranges_above(ranges, after)
        if not search:
            return None
        result = await self.backend.get_next(
            GetNextRequest(
                app_id=project.backend_id,
                type=kind,
                ranges=search,
                auth_key=project.auth_key or "",
                per_range=False,
            )
        )
        if result is None or not result.available:
            return None
        return result.first_id

    async def assign_ids(self, project: Project, options: AssignmentOptions) -> AssignmentResult:
        """
        Assign ``options.count`` IDs of one kind.

        Colliding candidates are skipped unless ``suggest_alternatives`` is
        set, in which case they are kept, reported, and up to five
        non-colliding alternatives are suggested.

        Returns:
            The result; ``success`` is False when nothing was committed
        """
        logger.info(f"Assigning {options.count} {options.kind} ID(s) for {project.name}")

        def failed(message: str) -> AssignmentResult:
            return AssignmentResult(
                success=False,
                kind=options.kind,
                app_id=project.app_id,
                app_name=project.name,
                message=message,
            )

        if not project.is_authorized:
            return failed(NOT_AUTHORIZED_MESSAGE)

        ranges = self._ranges_for(project, options.ranges)
        assigned: list[int] = []
        collisions: list[IdCollision] = []
        last: int | None = None

        try:
            for _ in range(options.count):
                candidate = await self._next_candidate(project, options.kind, ranges, last)
                if candidate is None:
                    logger.info("No available IDs in specified ranges")
                    break
                last = candidate

                if options.check_collisions:
                    finding = await self.collision.check_collision(options.kind, candidate, project)
                    if finding is not None:
                        collisions.append(
                            IdCollision(
                                id=candidate,
                                conflicting_projects=[p.name for p in finding.projects],
                            )
                        )
                        if not options.suggest_alternatives:
                            continue

                assigned.append(candidate)

            if assigned:
                synced = await self.backend.sync_ids(
                    SyncIdsRequest(
                        app_id=project.backend_id,
                        auth_key=project.auth_key or "",
                        ids={options.kind: assigned},
                        merge=True,
                    )
                )
                if not synced:
                    return failed(f"Failed to commit IDs {', '.join(str(i) for i in assigned)}")
                self.collision.invalidate_project(project.app_id)
                self.record_assignment(project, options.kind, assigned, options.description)

            alternatives: list[int] = []
            if collisions and options.suggest_alternatives:
                alternatives = await self._suggest_alternatives(
                    project, options.kind, ranges, [c.id for c in collisions], last
                )
        except ObjIdError as e:
            logger.error(f"Assignment failed: {e}")
            return failed(f"Assignment failed: {e.message}")

        result = AssignmentResult(
            success=bool(assigned),
            ids=assigned,
            kind=options.kind,
            app_id=project.app_id,
            app_name=project.name,
            collisions=collisions or None,
            alternatives=alternatives or None,
            message=generate_assignment_message(assigned, collisions, alternatives),
        )
        if assigned:
            self._emit(result)
        return result

    async def _suggest_alternatives(
        self,
        project: Project,
        kind: str,
        ranges: list[Range],
        exclude: list[int],
        after: int | None,
        limit: int = MAX_ALTERNATIVES,
    ) -> list[int]:
        suggestions: list[int] = []
        for _ in range(limit * ALTERNATIVE_ATTEMPTS_PER_SUGGESTION):
            if len(suggestions) >= limit:
                break
            candidate = await self._next_candidate(project, kind, ranges, after)
            if candidate is None:
                break
            after = candidate
            if candidate in exclude:
                continue
            if await self.collision.check_collision(kind, candidate, project) is None:
                suggestions.append(candidate)
        return suggestions

    def record_assignment(
        self, project: Project, kind: str, ids: list[int], description: str | None
    ) -> None:
        record = AssignmentRecord(
            app_id=project.app_id,
            kind=kind,
            ids=list(ids),
            description=description,
            app_name=project.name,
        )
        self._history.append(record)
        if len(self._history) > MEMORY_HISTORY_LIMIT:
            del self._history[: len(self._history) - MEMORY_HISTORY_LIMIT]

        key = f"{project.app_id}-{kind}"
        self._pending[key] = self._pending.get(key, []) + list(ids)

        if self.store is not None:
            self.store.add_assignment_history(record)
            pattern = self.store.get_pattern(project.app_id, kind) or UsagePattern()
            self.store.save_pattern(
                project.app_id,
                kind,
                pattern.model_copy(update={"last_used_id": max(ids)}),
            )

    async def batch_assign(
        self, project: Project, requests: Iterable[AssignmentOptions]
    ) -> list[AssignmentResult]:
        """Assign several kinds in turn, with collision checks and alternatives."""
        requests = list(requests)
        logger.info(f"Starting batch assignment of {len(requests)} kind(s) for {project.name}")
        results: list[AssignmentResult] = []
        for i, request in enumerate(requests):
            if i:
                await asyncio.sleep(BATCH_DELAY_SECONDS)
            options = request.model_copy(
                update={"check_collisions": True, "suggest_alternatives": True}
            )
            results.append(await self.assign_ids(project, options))
        return results

    async def reserve_range(
        self,
        project: Project,
        kind: str,
        from_: int,
        to: int,
        description: str | None = None,
    ) -> RangeReservation | None:
        """
        Commit every ID of ``[from_, to]`` at once.

        Returns:
            The reservation, or None if the project is unauthorized or the
            commit failed

        Raises:
            ValueError: If ``from_`` is greater than ``to``
        """
        range_ = Range(from_=from_, to=to)
        logger.info(f"Reserving {kind} range {range_} for {project.name}")

        if not project.is_authorized:
            logger.error("App not authorized for range reservation")
            return None

        ids = list(range(range_.from_, range_.to + 1))
        synced = await self.backend.sync_ids(
            SyncIdsRequest(
                app_id=project.backend_id,
                auth_key=project.auth_key or "",
                ids={kind: ids},
                merge=True,
            )
        )
        if not synced:
            return None

        self.collision.invalidate_project(project.app_id)
        self.record_assignment(project, kind, ids, description or f"Reserved range {from_}-{to}")
        return RangeReservation(app_id=project.app_id, kind=kind, range=range_, count=len(ids))

    async def get_suggestions(
        self, project: Project, kind: str, pattern: str | None = None
    ) -> Suggestions:
        """Next free ID, large free runs, recent IDs and usage patterns for a kind."""
        if not project.is_authorized:
            return Suggestions(recently_used=self._recent_ids(project.app_id, kind))

        ranges = self._ranges_for(project, None)
        next_available = await self._next_candidate(project, kind, ranges, None)
        consumption = await self.backend.get_consumption(
            project.backend_id, project.auth_key or ""
        )
        used = consumption.for_kind(kind) if consumption else []

        return Suggestions(
            next_available=next_available,
            suggested_ranges=analyze_range_availability(ranges, used),
            recently_used=self._recent_ids(project.app_id, kind),
            patterns=analyze_patterns(used, pattern),
        )

    def _recent_ids(self, app_id: str, kind: str) -> list[int]:
        recent: list[int] = []
        for record in self.get_history(app_id=app_id, kind=kind, limit=RECENT_ENTRIES):
            for object_id in record.ids:
                if object_id not in recent:
                    recent.append(object_id)
        return recent

    def get_history(
        self, app_id: str | None = None, kind: str | None = None, limit: int | None = None
    ) -> list[AssignmentRecord]:
        """Session history, newest first."""
        history = [
            r
            for r in self._history
            if (app_id is None or r.app_id == app_id) and (kind is None or r.kind == kind)
        ]
        history.sort(key=lambda r: r.timestamp, reverse=True)
        return history[:limit] if limit else history

    def get_pending_assignments(self, app_id: str | None = None) -> dict[str, list[int]]:
        if app_id is None:
            return {k: list(v) for k, v in self._pending.items()}
        return {k: list(v) for k, v in self._pending.items() if k.startswith(f"{app_id}-")}

    def clear_pending_assignments(self, app_id: str | None = None) -> None:
        if app_id is None:
            self._pending.clear()
            return
        for key in [k for k in self._pending if k.startswith(f"{app_id}-")]:
            del self._pending[key]

    def export_history(self, format: Literal["json", "csv"] = "json") -> str:
        """Serialize the session history as JSON or CSV."""
        if format == "json":
            return json.dumps(
                [r.model_dump(mode="json", by_alias=True) for r in self._history], indent=2
            )
        if format != "csv":
            raise ValueError(f"Unsupported export format: {format}")

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(["Timestamp", "App", "Object Type", "IDs", "Description"])
        for r in self._history:
            writer.writerow(
                [
                    datetime.fromtimestamp(r.timestamp, tz=timezone.utc).isoformat(),
                    r.app_name or r.app_id,
                    r.kind,
                    ";".join(str(i) for i in r.ids),
                    r.description or "",
                ]
            )
        return buffer.getvalue().rstrip("\n")


__all__ = [
    "AssignmentManager",
    "BATCH_DELAY_SECONDS",
    "MEMORY_HISTORY_LIMIT",
    "generate_assignment_message",
]
