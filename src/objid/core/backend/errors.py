"""
Failure types and error classification for backend requests.

Two layers live here. Raw failures describe what went wrong on the wire
before anyone interpreted it; typed errors are what callers see once a
raw failure has been classified.

Failure Union (raw, pre-classification):
    RequestFailure (base, carries ``kind`` and ``status``)
    ├── TransportFailure (no response obtained: refused, reset, DNS, timeout)
    └── ProtocolFailure (response obtained but non-2xx or malformed body)

Exception Hierarchy (typed, post-classification):
    ObjIdError (base)
    ├── BackendError (HTTP-level failure with a status code)
    ├── NetworkError (transport-level failure with an error code)
    ├── ValidationError (caller supplied an invalid value)
    └── ConfigurationError (missing credential or setting; never retried)

Domain failures ("no ID available", "no credential issued") are not
exceptions at all. They come back as ordinary values carrying an
``available=False`` or ``authorized=False`` marker.

Example:
    >>> from objid.core.backend.errors import BackendError, ProtocolFailure, classify
    >>> try:
    ...     classify(ProtocolFailure(401, "denied"))
    ... except BackendError as e:
    ...     print(e.status_code, e)
    401 Unauthorized. Invalid API key. Please check your configuration.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, NoReturn

# Network error codes, named after the POSIX errno symbols
ECONNREFUSED = "ECONNREFUSED"
ECONNRESET = "ECONNRESET"
ETIMEDOUT = "ETIMEDOUT"
ENOTFOUND = "ENOTFOUND"

RETRYABLE_NETWORK_CODES = frozenset({ECONNREFUSED, ECONNRESET, ETIMEDOUT})

NOT_AUTHORIZED_MESSAGE = "App is not authorized. Please authorize first."


class FailureKind(str, Enum):
    """Closed set of failure categories a backend interaction can produce."""

    TRANSPORT = "transport"
    PROTOCOL = "protocol"
    DOMAIN = "domain"
    CONFIGURATION = "configuration"


# ==============================================================================
# Raw failures
# ==============================================================================


class RequestFailure(Exception):
    """
    Base class for unclassified request failures.

    Attributes:
        kind: Which branch of the failure union this is
        status: HTTP status, or 0 when no response was obtained
        message: Message reported by the transport or the backend
    """

    kind: FailureKind

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        return self.message


class TransportFailure(RequestFailure):
    """
    No response was obtained from the backend.

    Attributes:
        code: Network error code (e.g. ECONNREFUSED), None when unknown
        timed_out: True when the request was aborted by the transport timeout
    """

    kind = FailureKind.TRANSPORT

    def __init__(self, message: str, code: str | None = None, timed_out: bool = False) -> None:
        super().__init__(0, message)
        self.code = code
        self.timed_out = timed_out


class ProtocolFailure(RequestFailure):
    """
    A response was obtained but it signals failure.

    Covers non-2xx statuses and 2xx bodies that could not be decoded.

    Attributes:
        details: Error payload returned by the backend, if any
    """

    kind = FailureKind.PROTOCOL

    def __init__(self, status: int, message: str, details: Any = None) -> None:
        super().__init__(status, message)
        self.details = details


# ==============================================================================
# Typed errors
# ==============================================================================


class ObjIdError(Exception):
    """
    Base exception for all objid errors.

    Attributes:
        message: Human-readable error message
        context: Additional context passed as keyword arguments
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class BackendError(ObjIdError):
    """
    The backend answered with an HTTP error.

    Attributes:
        status_code: HTTP status code returned by the backend
        details: Error payload returned by the backend, if any
    """

    def __init__(self, message: str, status_code: int, details: Any = None) -> None:
        super().__init__(message, status_code=status_code)
        self.status_code = status_code
        self.details = details


class NetworkError(ObjIdError):
    """
    The backend could not be reached.

    Attributes:
        code: Network error code (ECONNREFUSED, ENOTFOUND, ...)
    """

    def __init__(self, message: str, code: str | None = None, details: Any = None) -> None:
        super().__init__(message, code=code)
        self.code = code
        self.details = details


class ValidationError(ObjIdError):
    """
    A caller-supplied value is invalid.

    Attributes:
        field: Name of the offending field
        value: The rejected value
    """

    def __init__(self, message: str, field: str | None = None, value: Any = None) -> None:
        super().__init__(message, field=field)
        self.field = field
        self.value = value


class ConfigurationError(ObjIdError):
    """
    A required credential or setting is missing.

    Detected before any network call and surfaced to the user as-is.

    Attributes:
        setting: Name of the missing setting, if known
    """

    kind = FailureKind.CONFIGURATION

    def __init__(self, message: str, setting: str | None = None) -> None:
        super().__init__(message, setting=setting)
        self.setting = setting


# ==============================================================================
# Classification
# ==============================================================================

_NETWORK_MESSAGES = {
    ECONNREFUSED: "Connection refused. Backend service may be down.",
    ENOTFOUND: "Backend service not found. Check your backend URL configuration.",
    ETIMEDOUT: "Request timed out. The backend service is not responding.",
    ECONNRESET: "Connection reset by backend service.",
}

_STATUS_MESSAGES = {
    400: "Bad request. Check your request parameters.",
    401: "Unauthorized. Invalid API key. Please check your configuration.",
    403: "Forbidden. App not authorized or insufficient permissions.",
    404: "Not found. The requested resource or endpoint does not exist.",
    409: "Conflict. The operation conflicts with existing data.",
    429: "Rate limit exceeded. Too many requests. Please try again later.",
    500: "Internal server error. The backend service encountered an error.",
    502: "Bad gateway. The backend service is temporarily unavailable.",
    503: "Service unavailable. The backend service is temporarily down.",
    504: "Gateway timeout. The backend service took too long to respond.",
}


def to_typed_error(failure: RequestFailure) -> ObjIdError:
    """
    Map a raw failure onto the typed error it represents.

    Args:
        failure: Transport or protocol failure

    Returns:
        NetworkError for transport failures, BackendError for protocol failures
    """
    if isinstance(failure, TransportFailure):
        code = failure.code
        if code is None and failure.timed_out:
            code = ETIMEDOUT
        message = _NETWORK_MESSAGES.get(code or "", f"Network error: {failure.message}")
        return NetworkError(message, code=code)

    if isinstance(failure, ProtocolFailure):
        status = failure.status
        if status in _STATUS_MESSAGES:
            message = _STATUS_MESSAGES[status]
        elif 500 <= status < 600:
            message = f"Server error ({status}): {failure.message}"
        elif status < 400:
            message = f"Invalid response ({status}): {failure.message}"
        else:
            message = f"Client error ({status}): {failure.message}"
        return BackendError(message, status_code=status, details=failure.details)

    raise TypeError(f"Unsupported failure type: {type(failure).__name__}")


def classify(error: BaseException) -> NoReturn:
    """
    Raise the typed error for a raw failure.

    Raw request failures are converted via ``to_typed_error`` and raised with
    the original chained as ``__cause__``. Anything else (including errors
    that are already typed) is re-raised unchanged.

    Args:
        error: The caught exception

    Raises:
        ObjIdError: Always, for request failures
        BaseException: The original error for everything else
    """
    if isinstance(error, RequestFailure):
        raise to_typed_error(error) from error
    raise error


def is_retryable(error: BaseException) -> bool:
    """
    Judge whether an error is worth retrying.

    Args:
        error: Typed error or raw failure

    Returns:
        True for transient network faults, server errors and rate limiting
    """
    if isinstance(error, NetworkError):
        return error.code in RETRYABLE_NETWORK_CODES
    if isinstance(error, BackendError):
        return error.status_code >= 500 or error.status_code == 429
    if isinstance(error, RequestFailure):
        return error.status >= 500 or error.status in (0, 429)
    return False


__all__ = [
    "ECONNREFUSED",
    "ECONNRESET",
    "ENOTFOUND",
    "NOT_AUTHORIZED_MESSAGE",
    "ETIMEDOUT",
    "FailureKind",
    "RequestFailure",
    "TransportFailure",
    "ProtocolFailure",
    "ObjIdError",
    "BackendError",
    "NetworkError",
    "ValidationError",
    "ConfigurationError",
    "to_typed_error",
    "classify",
    "is_retryable",
]
