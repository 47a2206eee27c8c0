"""
Single-shot HTTP transport for the allocation backend.

The transport performs exactly one request and always returns an
``HttpResponse``: it never raises for network problems and never
interprets status codes. Retrying and classification happen one layer up
in the backend service.

Example:
    >>> transport = HttpTransport()
    >>> response = await transport.send(
    ...     HttpRequest(hostname="example.azurewebsites.net", path="/api/v2/getNext", data={...})
    ... )
    >>> if response.error is None:
    ...     print(response.status, response.value)
"""

from __future__ import annotations

import errno
import json
import logging
import socket
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import httpx

from objid.core.backend.errors import ECONNREFUSED, ECONNRESET, ENOTFOUND

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

_DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated with hostname",
)


@dataclass
class HttpRequest:
    """
    A single request against the backend.

    Attributes:
        hostname: Host name, optionally prefixed with http:// or https://
        path: Request path, e.g. /api/v2/getNext
        method: HTTP verb
        headers: Extra headers merged over the JSON defaults
        data: JSON-serializable body (sent for GET requests too)
        timeout: Request timeout in seconds
    """

    hostname: str
    path: str
    method: str = "GET"
    headers: dict[str, str] = field(default_factory=dict)
    data: Any = None
    timeout: float = DEFAULT_TIMEOUT


@dataclass
class HttpResponse:
    """
    Normalized result of a request.

    Attributes:
        status: HTTP status, or 0 when no response was obtained
        value: Decoded JSON body, None for 204 or empty bodies
        error: Structured error description, None on success
    """

    status: int
    value: Any = None
    error: dict[str, Any] | None = None


def build_url(hostname: str, path: str) -> str:
    """
    Join a configured host and a request path into a URL.

    Hosts without a scheme default to HTTPS.
    """
    host = hostname.strip().rstrip("/")
    if not host.startswith(("http://", "https://")):
        host = f"https://{host}"
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{host}{path}"


def _iter_causes(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def network_error_code(exc: BaseException) -> str:
    """
    Derive a POSIX-style error code for a failed request.

    Walks the exception chain looking for the underlying socket error;
    falls back to the message and the httpx exception type.

    Args:
        exc: Exception raised by httpx

    Returns:
        Error code such as ECONNREFUSED, or the exception class name
    """
    for cause in _iter_causes(exc):
        if isinstance(cause, socket.gaierror):
            return ENOTFOUND
        if isinstance(cause, ConnectionRefusedError):
            return ECONNREFUSED
        if isinstance(cause, ConnectionResetError):
            return ECONNRESET
        if isinstance(cause, OSError) and cause.errno in errno.errorcode:
            return errno.errorcode[cause.errno]

    message = str(exc).lower()
    if any(marker in message for marker in _DNS_FAILURE_MARKERS):
        return ENOTFOUND
    if isinstance(exc, httpx.ConnectError):
        return ECONNREFUSED
    if isinstance(exc, (httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError)):
        return ECONNRESET
    return type(exc).__name__


def parse_response(response: httpx.Response) -> HttpResponse:
    """Decode a response body into an HttpResponse."""
    status = response.status_code
    body = response.text

    if status == 204 or not body.strip():
        return HttpResponse(status=status)

    try:
        value = json.loads(body)
    except ValueError as e:
        return HttpResponse(
            status=status,
            error={"message": "Invalid JSON response", "body": body, "parseError": str(e)},
        )

    return HttpResponse(status=status, value=value)


class HttpTransport:
    """
    Executes one backend request per call using httpx.

    An ``httpx.AsyncClient`` may be injected (tests pass one built on
    ``httpx.MockTransport``); otherwise a short-lived client is opened for
    each request.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client

    async def send(self, request: HttpRequest) -> HttpResponse:
        """
        Perform the request and normalize the outcome.

        Args:
            request: Request description

        Returns:
            HttpResponse with either a decoded value or a structured error
        """
        url = build_url(request.hostname, request.path)
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **request.headers,
        }
        content = json.dumps(request.data) if request.data is not None else None

        try:
            if self._client is not None:
                response = await self._client.request(
                    request.method, url, headers=headers, content=content, timeout=request.timeout
                )
            else:
                async with httpx.AsyncClient(timeout=request.timeout) as client:
                    response = await client.request(
                        request.method, url, headers=headers, content=content
                    )
        except httpx.TimeoutException:
            logger.debug(f"{request.method} {url} timed out after {request.timeout}s")
            return HttpResponse(
                status=0, error={"message": "Request timeout", "timeout": request.timeout}
            )
        except httpx.RequestError as e:
            code = network_error_code(e)
            logger.debug(f"{request.method} {url} failed: {code} {e}")
            return HttpResponse(
                status=0, error={"message": str(e) or type(e).__name__, "code": code}
            )

        return parse_response(response)


__all__ = [
    "DEFAULT_TIMEOUT",
    "HttpRequest",
    "HttpResponse",
    "HttpTransport",
    "build_url",
    "network_error_code",
    "parse_response",
]
