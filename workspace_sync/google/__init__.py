"""Google Workspace Admin API access: auth, transport, clients and errors."""

from __future__ import annotations

from .auth import JwtBearerTokenSource, ServiceAccountKey, load_service_account_key
from .capabilities import ServiceCapabilityCache
from .classify import classify_api_error
from .client import DirectoryClient, ReportsClient, ScopedSession
from .errors import (
    CursorDecodeError,
    ErrorKind,
    GoogleAPIError,
    OAuthUnauthorizedError,
    TokenRetrievalError,
    UsageEventContractError,
    WorkspaceConfigError,
    WorkspaceSyncError,
)
from .faults import is_transient
from .ratelimit import RateLimitDescription, RateLimitStatus, extract_rate_limit
from .transport import RetryConfig, RetryingTransport

__all__ = [
    "CursorDecodeError",
    "DirectoryClient",
    "ErrorKind",
    "GoogleAPIError",
    "JwtBearerTokenSource",
    "OAuthUnauthorizedError",
    "RateLimitDescription",
    "RateLimitStatus",
    "ReportsClient",
    "RetryConfig",
    "RetryingTransport",
    "ScopedSession",
    "ServiceAccountKey",
    "ServiceCapabilityCache",
    "TokenRetrievalError",
    "UsageEventContractError",
    "WorkspaceConfigError",
    "WorkspaceSyncError",
    "classify_api_error",
    "extract_rate_limit",
    "is_transient",
    "load_service_account_key",
]
