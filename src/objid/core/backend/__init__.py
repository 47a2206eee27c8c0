"""
Client for the remote object-ID allocation backend.

Layers, leaf-first: ``transport`` (one HTTP request), ``retry`` (exponential
backoff), ``errors`` (failure union and classification), ``service`` (one
method per domain operation).
"""

from objid.core.backend.errors import (
    BackendError,
    ConfigurationError,
    FailureKind,
    NetworkError,
    NOT_AUTHORIZED_MESSAGE,
    ObjIdError,
    ProtocolFailure,
    RequestFailure,
    TransportFailure,
    ValidationError,
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
from objid.core.backend.retry import RetryPolicy, default_is_retryable
from objid.core.backend.service import BackendService
from objid.core.backend.transport import HttpRequest, HttpResponse, HttpTransport

__all__ = [
    "NOT_AUTHORIZED_MESSAGE",
    "AppFolder",
    "AuthorizationInfo",
    "AuthorizeAppRequest",
    "BackendError",
    "BackendService",
    "CheckAppResult",
    "ConfigurationError",
    "ConsumptionInfo",
    "CreatePoolRequest",
    "FailureKind",
    "GetNextRequest",
    "HttpRequest",
    "HttpResponse",
    "HttpTransport",
    "JoinPoolRequest",
    "NetworkError",
    "NextIdInfo",
    "ObjIdError",
    "PoolInfo",
    "ProtocolFailure",
    "RequestFailure",
    "RetryPolicy",
    "SyncIdsRequest",
    "TransportFailure",
    "ValidationError",
    "classify",
    "default_is_retryable",
    "is_retryable",
]
