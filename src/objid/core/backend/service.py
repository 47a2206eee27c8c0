"""
Backend request mediator.

``BackendService`` is the only component that talks to the allocation
backend. Each domain operation maps to exactly one endpoint and HTTP verb;
every call goes through the transport, the retry policy and the error
classifier.

Failure policy: public methods log classified failures and return a
benign value (``None``, ``False`` or an empty result) so that one failing
dependency never cascades into the caller. ``authorize_app`` is the
exception: it propagates, because callers must tell "no credential
issued" apart from "backend unreachable".

Example:
    >>> service = BackendService(load_config().backend)
    >>> info = await service.get_next(
    ...     GetNextRequest(app_id=app_id, type="table", ranges=ranges, auth_key=key)
    ... )
    >>> if info and info.available:
    ...     print(info.first_id)
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlencode

import pydantic

from objid.core.backend.errors import (
    ConfigurationError,
    ObjIdError,
    ProtocolFailure,
    RequestFailure,
    TransportFailure,
    classify,
    is_retryable,
)
from objid.core.backend.models import (
    AppFolder,
    AuthorizationInfo,
    AuthorizeAppRequest,
    CheckAppResult,
    ConsumptionInfo,
    CreatePoolRequest,
    GetNextRequest,
    JoinPoolRequest,
    NextIdInfo,
    PoolInfo,
    SyncIdsRequest,
)
from objid.core.backend.retry import RetryPolicy
from objid.core.backend.transport import HttpRequest, HttpTransport, build_url
from objid.core.config.models import BackendConfig
from objid.core.ranges import limit_ranges
from objid.core.redaction import sanitize

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v2"
AUTH_HEADER = "X-Functions-Key"


def _failure_from_error(status: int, error: dict[str, Any]) -> RequestFailure:
    message = str(error.get("message") or "Request failed")
    if status == 0:
        return TransportFailure(message, code=error.get("code"), timed_out="timeout" in error)
    return ProtocolFailure(status, message, details=error)


class BackendService:
    """
    Mediates every domain operation against the allocation backend.

    Args:
        config: Endpoint URLs, credentials and timeouts
        transport: HTTP transport (a default httpx transport when omitted)
        retry: Retry policy (1s initial delay, capped at ``config.max_retry_delay``)
    """

    def __init__(
        self,
        config: BackendConfig,
        transport: HttpTransport | None = None,
        retry: RetryPolicy | None = None,
    ) -> None:
        self.config = config
        self.transport = transport or HttpTransport()
        self.retry = retry or RetryPolicy(
            max_retries=config.max_retries,
            initial_delay=1.0,
            max_delay=config.max_retry_delay,
        )

    # ------------------------------------------------------------------
    # Core request path
    # ------------------------------------------------------------------

    def _endpoint(self, use_poll_backend: bool) -> tuple[str, str]:
        if use_poll_backend:
            if not self.config.poll_url:
                raise ConfigurationError(
                    "Backend URL not configured for polling service", setting="poll_url"
                )
            return self.config.poll_url, self.config.poll_key
        if not self.config.url:
            raise ConfigurationError("Backend URL not configured for main service", setting="url")
        return self.config.url, self.config.api_key

    async def send_request(
        self,
        operation: str,
        method: str,
        data: Any = None,
        use_poll_backend: bool = False,
    ) -> Any:
        """
        Execute one backend operation with retries.

        Args:
            operation: Operation name (and optional query string) under /api/v2
            method: HTTP verb
            data: JSON body, sent even for GET requests
            use_poll_backend: Target the polling endpoint instead of the primary one

        Returns:
            Decoded response body (None for empty bodies)

        Raises:
            ConfigurationError: If the endpoint URL is not configured
            NetworkError: If the backend could not be reached
            BackendError: If the backend answered with an error
        """
        hostname, key = self._endpoint(use_poll_backend)
        request = HttpRequest(
            hostname=hostname,
            path=f"{API_PREFIX}/{operation}",
            method=method,
            headers={AUTH_HEADER: key} if key else {},
            data=data,
            timeout=self.config.timeout,
        )
        url = build_url(hostname, request.path)

        async def attempt() -> Any:
            logger.debug(f"Request {method} {url} {sanitize(data)}")
            response = await self.transport.send(request)

            if response.error is not None:
                logger.debug(f"Response ({response.status}) {url} {sanitize(response.error)}")
                raise _failure_from_error(response.status, response.error)

            logger.debug(f"Response ({response.status}) {url} {sanitize(response.value)}")
            if response.status >= 400:
                raise ProtocolFailure(
                    response.status, f"HTTP {response.status} error", details=response.value
                )
            return response.value

        try:
            return await self.retry.execute(attempt, is_retryable)
        except RequestFailure as e:
            logger.error(f"Request failed: {method} {url}: {e}")
            classify(e)

    # ------------------------------------------------------------------
    # App management
    # ------------------------------------------------------------------

    async def check_app(self, app_id: str) -> CheckAppResult:
        """
        Ask whether the backend manages an app.

        The backend answers with the string "true"/"false"; newer backends may
        also return an object carrying pool membership.
        """
        try:
            value = await self.send_request("checkApp", "GET", {"appId": app_id})
            if isinstance(value, dict):
                return CheckAppResult.model_validate(value)
        except (ObjIdError, pydantic.ValidationError) as e:
            logger.error(f"Failed to check app {app_id}: {e}")
            return CheckAppResult()

        return CheckAppResult(managed=value is True or str(value).lower() == "true")

    async def get_next(self, request: GetNextRequest, commit: bool = False) -> NextIdInfo | None:
        """
        Query (GET) or commit (POST) the next available ID.

        When both ``per_range`` and ``require`` are set, the search is narrowed
        to the single declared range containing ``require`` (empty if none does).

        Args:
            request: Allocation request
            commit: Reserve the ID instead of only querying it

        Returns:
            NextIdInfo, or None when the request failed
        """
        if request.per_range and request.require is not None:
            request = request.model_copy(
                update={"ranges": limit_ranges(request.ranges, request.require)}
            )

        try:
            value = await self.send_request(
                "getNext", "POST" if commit else "GET", request.to_payload()
            )
            if not isinstance(value, dict):
                return None
            return NextIdInfo.model_validate(value)
        except (ObjIdError, pydantic.ValidationError) as e:
            logger.error(f"Failed to get next ID for {request.type}: {e}")
            return None

    async def authorize_app(self, request: AuthorizeAppRequest) -> AuthorizationInfo:
        """
        Authorize an app and obtain its credential.

        A response without ``authKey`` is an authorization failure reported
        as ``authorized=False``. Transport and protocol failures propagate.

        Raises:
            ObjIdError: If the request itself failed
        """
        value = await self.send_request("authorizeApp", "POST", request.to_payload())
        auth_key = value.get("authKey", "") if isinstance(value, dict) else ""
        return AuthorizationInfo(
            auth_key=auth_key,
            authorized=bool(auth_key),
            error=None if auth_key else "Authorization failed",
        )

    async def get_auth_info(self, app_id: str, auth_key: str) -> AuthorizationInfo | None:
        try:
            value = await self.send_request(
                "authorizeApp", "GET", {"appId": app_id, "authKey": auth_key}
            )
            if not isinstance(value, dict):
                return None
            return AuthorizationInfo.model_validate({**value, "authKey": auth_key})
        except (ObjIdError, pydantic.ValidationError) as e:
            logger.error(f"Failed to get auth info for {app_id}: {e}")
            return None

    async def deauthorize_app(self, app_id: str, auth_key: str) -> bool:
        try:
            value = await self.send_request(
                "authorizeApp", "DELETE", {"appId": app_id, "authKey": auth_key}
            )
        except ObjIdError as e:
            logger.error(f"Failed to deauthorize app {app_id}: {e}")
            return False
        return isinstance(value, dict) and bool(value.get("deleted"))

    # ------------------------------------------------------------------
    # Consumption
    # ------------------------------------------------------------------

    async def sync_ids(self, request: SyncIdsRequest) -> bool:
        """
        Report consumed IDs.

        ``merge=True`` sends PATCH (add to existing consumption);
        ``merge=False`` sends POST (replace it). Both target syncIds.
        """
        method = "PATCH" if request.merge else "POST"
        try:
            await self.send_request("syncIds", method, request.to_payload())
        except ObjIdError as e:
            logger.error(f"Failed to sync IDs for {request.app_id}: {e}")
            return False
        return True

    async def auto_sync_ids(self, app_folders: list[AppFolder], merge: bool = False) -> Any:
        """Synchronize several app folders in one call."""
        payload = {"appFolders": [folder.to_payload() for folder in app_folders]}
        try:
            return await self.send_request("autoSyncIds", "PATCH" if merge else "POST", payload)
        except ObjIdError as e:
            logger.error(f"Failed to auto-sync {len(app_folders)} app folder(s): {e}")
            return None

    async def store_assignment(
        self,
        app_id: str,
        auth_key: str,
        object_type: str,
        object_id: int,
        remove: bool = False,
    ) -> bool:
        """Add (POST) or remove (DELETE) a single assignment."""
        payload = {"appId": app_id, "authKey": auth_key, "type": object_type, "id": object_id}
        try:
            value = await self.send_request(
                "storeAssignment", "DELETE" if remove else "POST", payload
            )
        except ObjIdError as e:
            logger.error(f"Failed to store assignment {object_type} {object_id}: {e}")
            return False
        return isinstance(value, dict) and bool(value.get("updated"))

    async def get_consumption(self, app_id: str, auth_key: str) -> ConsumptionInfo | None:
        """
        Fetch consumed IDs per object kind.

        Returns:
            ConsumptionInfo with ``total`` computed across all kinds, or None
        """
        try:
            value = await self.send_request(
                "getConsumption", "GET", {"appId": app_id, "authKey": auth_key}
            )
            if value is None:
                return None
            return ConsumptionInfo.from_backend(value)
        except (ObjIdError, ValueError, TypeError) as e:
            # malformed ID lists raise ValueError/TypeError from int()
            logger.error(f"Failed to get consumption for {app_id}: {e}")
            return None

    # ------------------------------------------------------------------
    # Polling endpoint
    # ------------------------------------------------------------------

    async def check_update(self, app_id: str, last_check: int) -> Any:
        query = urlencode({"appId": app_id, "lastCheck": last_check})
        try:
            return await self.send_request(f"check?{query}", "GET", use_poll_backend=True)
        except ObjIdError as e:
            logger.error(f"Failed to check updates for {app_id}: {e}")
            return None

    async def check(self, payload: dict[str, Any]) -> Any:
        try:
            return await self.send_request("check", "GET", payload, use_poll_backend=True)
        except ObjIdError as e:
            logger.error(f"Failed to check app state: {e}")
            return None

    # ------------------------------------------------------------------
    # Pools
    # ------------------------------------------------------------------

    async def create_pool(self, request: CreatePoolRequest) -> PoolInfo | None:
        try:
            value = await self.send_request("createPool", "POST", request.to_payload())
            if not isinstance(value, dict):
                return None
            return PoolInfo.model_validate(value)
        except (ObjIdError, pydantic.ValidationError) as e:
            logger.error(f"Failed to create pool {request.name}: {e}")
            return None

    async def join_pool(self, request: JoinPoolRequest) -> Any:
        try:
            return await self.send_request("joinPool", "POST", request.to_payload())
        except ObjIdError as e:
            logger.error(f"Failed to join pool {request.pool_id}: {e}")
            return None

    async def leave_pool(self, app_id: str, auth_key: str) -> bool:
        try:
            await self.send_request("leavePool", "POST", {"appId": app_id, "authKey": auth_key})
        except ObjIdError as e:
            logger.error(f"Failed to leave pool for app {app_id}: {e}")
            return False
        return True


__all__ = ["API_PREFIX", "AUTH_HEADER", "BackendService"]
