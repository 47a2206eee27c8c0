"""
Background polling of backend state for the projects of a workspace.

The service is Stopped until ``start()`` is called with an enabled
configuration. While Running it fires one cycle immediately and then one
per interval. A cycle that is still in flight when the next one is due
causes the new one to be skipped, never queued.

Per authorized project, a cycle runs up to three independent checks:

- consumption: emits when a tracked kind's non-zero ID count changed
- collision: emits range-overlap findings that involve the project
- pool: emits when the project's pool identifier changed

Example:
    >>> service = PollingService(backend, workspace, detector)
    >>> service.on_update(lambda event: print(event.type, event.app_id))
    >>> service.start(PollingConfig(enabled=True, interval=10_000))
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Coroutine
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel, to_snake

from objid.core.backend.service import BackendService
from objid.core.collision import CollisionDetector
from objid.core.kinds import TRACKED_KINDS
from objid.core.workspace.manager import WorkspaceManager
from objid.core.workspace.models import Project

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 30_000

UpdateType = Literal["consumption", "authorization", "collision", "pool"]


class PollingConfig(BaseModel):
    """
    Polling configuration. Persisted with camelCase keys.

    Attributes:
        enabled: Whether polling runs at all
        interval: Milliseconds between cycles
        check_consumption: Watch consumption counts per tracked kind
        check_collisions: Watch range overlaps involving each project
        check_pools: Watch pool membership
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enabled: bool = False
    interval: int = Field(default=DEFAULT_INTERVAL_MS, gt=0)
    check_consumption: bool = True
    check_collisions: bool = True
    check_pools: bool = False

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class UpdateEvent(BaseModel):
    type: UpdateType
    app_id: str
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: float = Field(default_factory=time.time)


UpdateListener = Callable[[UpdateEvent], None]


class PollingService:
    """
    Fixed-interval poller over the current workspace.

    Args:
        backend: Backend service used for consumption and pool checks
        workspace: Workspace manager providing the projects
        collision: Collision detector used for the overlap scan
        config: Initial configuration (defaults to disabled)
    """

    def __init__(
        self,
        backend: BackendService,
        workspace: WorkspaceManager,
        collision: CollisionDetector,
        config: PollingConfig | None = None,
    ) -> None:
        self.backend = backend
        self.workspace = workspace
        self.collision = collision
        self.config = config or PollingConfig()

        self._task: asyncio.Task[None] | None = None
        self._cycles: set[asyncio.Future[None]] = set()
        self._is_polling = False
        self._listeners: list[UpdateListener] = []
        self._last_poll: dict[str, float] = {}
        self._last_counts: dict[str, int] = {}
        self._last_pools: dict[str, str] = {}

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def is_polling(self) -> bool:
        return self._is_polling

    def on_update(self, listener: UpdateListener) -> None:
        """Register a listener invoked for every emitted update event."""
        self._listeners.append(listener)

    def _emit(self, event: UpdateEvent) -> None:
        logger.debug(f"Polling update: {event.type} for {event.app_id}")
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Update listener failed: {e}")

    def start(self, config: PollingConfig | None = None) -> None:
        """
        Start (or restart) polling.

        Must be called from within a running event loop. A disabled
        configuration leaves the service stopped.

        Args:
            config: Replacement configuration; the current one is kept if None
        """
        if self._task is not None:
            self.stop()

        if config is not None:
            self.config = config

        if not self.config.enabled:
            logger.info("Polling service is disabled")
            return

        logger.info(
            f"Starting polling service (interval {self.config.interval} ms, "
            f"consumption={self.config.check_consumption}, "
            f"collisions={self.config.check_collisions}, "
            f"pools={self.config.check_pools})"
        )
        self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel the timer and any cycle still in flight."""
        for cycle in list(self._cycles):
            cycle.cancel()
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.info("Polling service stopped")

    def _cycle_done(self, cycle: asyncio.Future[None]) -> None:
        self._cycles.discard(cycle)
        if cycle.cancelled():
            return
        if (error := cycle.exception()) is not None:
            logger.error(f"Polling cycle failed: {error}")

    async def _run(self) -> None:
        while True:
            cycle = asyncio.ensure_future(self._poll())
            self._cycles.add(cycle)
            cycle.add_done_callback(self._cycle_done)
            await asyncio.sleep(self.config.interval / 1000)

    async def _poll(self) -> None:
        if self._is_polling:
            logger.debug("Skipping poll - previous poll still in progress")
            return

        self._is_polling = True
        try:
            checks: list[tuple[Project, str, Coroutine[Any, Any, None]]] = []
            for project in self.workspace.get_projects():
                if not project.is_authorized:
                    continue
                if self.config.check_consumption:
                    checks.append((project, "consumption", self._check_consumption(project)))
                if self.config.check_collisions:
                    checks.append((project, "collision", self._check_collisions(project)))
                if self.config.check_pools:
                    checks.append((project, "pool", self._check_pool(project)))

            results = await asyncio.gather(*(c for _, _, c in checks), return_exceptions=True)
            for (project, name, _), result in zip(checks, results):
                if isinstance(result, BaseException):
                    logger.error(f"Failed to check {name} updates for {project.name}: {result}")
        finally:
            self._is_polling = False

    async def _check_consumption(self, project: Project) -> None:
        now = time.time()
        consumption = await self.backend.get_consumption(
            project.backend_id, project.auth_key or ""
        )

        if consumption is not None:
            for kind in TRACKED_KINDS:
                ids = consumption.for_kind(kind)
                if not ids:
                    continue
                key = f"{project.app_id}-{kind}"
                previous = self._last_counts.get(key, 0)
                if len(ids) == previous:
                    continue

                self._last_counts[key] = len(ids)
                logger.info(
                    f"Consumption update detected for {project.name}: "
                    f"{kind} {previous} -> {len(ids)}"
                )
                self._emit(
                    UpdateEvent(
                        type="consumption",
                        app_id=project.app_id,
                        data={
                            "kind": kind,
                            "ids": ids,
                            "count": len(ids),
                            "previousCount": previous,
                        },
                        timestamp=now,
                    )
                )

        self._last_poll[f"{project.app_id}-consumption"] = now

    async def _check_collisions(self, project: Project) -> None:
        findings = [f for f in self.collision.check_range_overlaps() if f.involves(project.app_id)]
        if not findings:
            return

        logger.info(f"Collision detected for {project.name}: {len(findings)} finding(s)")
        self._emit(
            UpdateEvent(
                type="collision",
                app_id=project.app_id,
                data={
                    "collisions": [f.model_dump(mode="json") for f in findings],
                    "count": len(findings),
                },
            )
        )

    async def _check_pool(self, project: Project) -> None:
        result = await self.backend.check_app(project.app_id)
        if not result.has_pool or not result.pool_id:
            return

        pool_id = str(result.pool_id)
        previous = self._last_pools.get(project.app_id)
        if previous == pool_id:
            return

        self._last_pools[project.app_id] = pool_id
        logger.info(f"Pool update detected for {project.name}: {pool_id}")
        self._emit(
            UpdateEvent(
                type="pool",
                app_id=project.app_id,
                data={"poolId": pool_id, "previousPoolId": previous},
            )
        )

    async def poll_now(self) -> None:
        """Run one cycle immediately, regardless of the timer."""
        logger.info("Forcing immediate poll")
        await self._poll()

    def update_config(self, **changes: Any) -> PollingConfig:
        """
        Apply partial configuration changes.

        Toggling ``enabled`` starts or stops the service; changing the
        interval of a running service restarts it.

        Returns:
            The resulting configuration
        """
        was_enabled = self.config.enabled
        changes = {to_snake(k): v for k, v in changes.items()}
        self.config = PollingConfig.model_validate({**self.config.model_dump(), **changes})

        if was_enabled != self.config.enabled:
            if self.config.enabled:
                self.start()
            else:
                self.stop()
        elif self.config.enabled and "interval" in changes:
            self.start()

        logger.info(f"Polling configuration updated: {self.config.model_dump()}")
        return self.config

    def get_status(self) -> dict[str, Any]:
        return {
            "enabled": self.config.enabled,
            "running": self.is_running,
            "isPolling": self._is_polling,
            "interval": self.config.interval,
            "lastPollTimes": dict(self._last_poll),
        }

    def clear_cache(self) -> None:
        self._last_poll.clear()
        self._last_counts.clear()
        self._last_pools.clear()
        logger.info("Polling cache cleared")


__all__ = [
    "DEFAULT_INTERVAL_MS",
    "PollingConfig",
    "PollingService",
    "UpdateEvent",
]
