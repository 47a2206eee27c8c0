"""
Field and enum value IDs.

Fields of table ``N`` are allocated under kind ``table_N``; values of
enum ``N`` under ``enum_N``. Extensions allocate from 50000..99999; base
objects from 1..49999 (fields) or 0..49999 (enum values).
"""

from __future__ import annotations

import logging

from objid.core.backend.models import GetNextRequest, SyncIdsRequest
from objid.core.backend.service import BackendService
from objid.core.kinds import default_ranges, enum_value_kind, field_kind
from objid.core.ranges import Range
from objid.core.workspace.models import Project

logger = logging.getLogger(__name__)


class FieldManager:
    """Allocates field IDs and enum value IDs through the backend."""

    def __init__(self, backend: BackendService) -> None:
        self.backend = backend

    async def _next(self, project: Project, kind: str, ranges: list[Range]) -> int | None:
        if not project.auth_key:
            return None
        request = GetNextRequest(
            app_id=project.backend_id,
            type=kind,
            ranges=ranges,
            auth_key=project.auth_key,
            per_range=False,
        )
        result = await self.backend.get_next(request)
        if result is None or not result.available:
            logger.warning(f"No available ID for {kind} in {[str(r) for r in ranges]}")
            return None
        return result.first_id

    async def _reserve(self, project: Project, kind: str, ranges: list[Range], value: int) -> bool:
        if not project.auth_key:
            return False
        request = GetNextRequest(
            app_id=project.backend_id,
            type=kind,
            ranges=ranges,
            auth_key=project.auth_key,
            per_range=True,
            require=value,
        )
        result = await self.backend.get_next(request, commit=True)
        return result is not None and result.available and result.first_id == value

    async def get_next_field_id(
        self, project: Project, table_id: int, is_extension: bool = False
    ) -> int | None:
        """
        Next free field ID of a table.

        Returns:
            The field ID, or None when none is available or the request failed
        """
        return await self._next(project, field_kind(table_id), default_ranges(is_extension))

    async def get_next_enum_value_id(
        self, project: Project, enum_id: int, is_extension: bool = False
    ) -> int | None:
        return await self._next(
            project,
            enum_value_kind(enum_id),
            default_ranges(is_extension, is_enum_value=True),
        )

    async def reserve_field_id(
        self, project: Project, table_id: int, field_id: int, is_extension: bool = False
    ) -> bool:
        """Commit a specific field ID; False if it was already taken."""
        return await self._reserve(
            project, field_kind(table_id), default_ranges(is_extension), field_id
        )

    async def reserve_enum_value_id(
        self, project: Project, enum_id: int, value_id: int, is_extension: bool = False
    ) -> bool:
        return await self._reserve(
            project,
            enum_value_kind(enum_id),
            default_ranges(is_extension, is_enum_value=True),
            value_id,
        )

    async def sync_field_ids(self, project: Project, table_id: int, field_ids: list[int]) -> bool:
        if not project.auth_key:
            return False
        return await self.backend.sync_ids(
            SyncIdsRequest(
                app_id=project.backend_id,
                auth_key=project.auth_key,
                ids={field_kind(table_id): field_ids},
                merge=True,
            )
        )

    async def sync_enum_value_ids(
        self, project: Project, enum_id: int, value_ids: list[int]
    ) -> bool:
        if not project.auth_key:
            return False
        return await self.backend.sync_ids(
            SyncIdsRequest(
                app_id=project.backend_id,
                auth_key=project.auth_key,
                ids={enum_value_kind(enum_id): value_ids},
                merge=True,
            )
        )

    async def get_consumed_field_ids(self, project: Project, table_id: int) -> list[int]:
        return await self._consumed(project, field_kind(table_id))

    async def get_consumed_enum_value_ids(self, project: Project, enum_id: int) -> list[int]:
        return await self._consumed(project, enum_value_kind(enum_id))

    async def _consumed(self, project: Project, kind: str) -> list[int]:
        if not project.auth_key:
            return []
        consumption = await self.backend.get_consumption(project.backend_id, project.auth_key)
        return consumption.for_kind(kind) if consumption else []

    async def is_field_id_available(self, project: Project, table_id: int, field_id: int) -> bool:
        return field_id not in await self.get_consumed_field_ids(project, table_id)

    async def is_enum_value_id_available(
        self, project: Project, enum_id: int, value_id: int
    ) -> bool:
        return value_id not in await self.get_consumed_enum_value_ids(project, enum_id)

    @staticmethod
    def suggest_field_id_range(is_extension: bool, is_system_table: bool = False) -> Range:
        if is_extension:
            return Range(from_=50000, to=99999)
        if is_system_table:
            return Range(from_=1, to=9999)
        return Range(from_=1, to=49999)

    @staticmethod
    def suggest_enum_value_id_range(is_extension: bool) -> Range:
        return default_ranges(is_extension, is_enum_value=True)[0]


__all__ = ["FieldManager"]
