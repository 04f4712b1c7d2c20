"""Errors raised by the Google Workspace API layer."""

from __future__ import annotations

import enum
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .ratelimit import RateLimitDescription


class ErrorKind(enum.StrEnum):
    """Abstract failure kinds surfaced to the host runtime."""

    INVALID_ARGUMENT = "invalid_argument"
    UNAUTHENTICATED = "unauthenticated"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    ABORTED = "aborted"
    FAILED_PRECONDITION = "failed_precondition"
    UNAVAILABLE = "unavailable"
    UNIMPLEMENTED = "unimplemented"
    UNKNOWN = "unknown"


class WorkspaceSyncError(Exception):
    """A classified failure carrying its kind and optional rate-limit detail.

    Attributes
    ----------
    kind
        Abstract error kind; operators use it to tell "retry automatically"
        (``unavailable``) apart from "fix configuration" failures.
    message
        Provider-sourced message prefixed with local context.
    rate_limit
        Rate-limit signal parsed from the provider response, when present.

    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        rate_limit: RateLimitDescription | None = None,
    ) -> None:
        """Initialise with a kind, message and optional rate-limit detail."""
        self.kind = kind
        self.message = message
        self.rate_limit = rate_limit
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Return True when the caller's outer retry policy should retry."""
        return self.kind is ErrorKind.UNAVAILABLE

    def __str__(self) -> str:
        """Render as ``kind: message``."""
        return f"{self.kind}: {self.message}"


class CursorDecodeError(WorkspaceSyncError):
    """Raised when a caller-supplied cursor cannot be decoded."""

    def __init__(self, message: str) -> None:
        """Initialise as an ``invalid_argument`` failure."""
        super().__init__(ErrorKind.INVALID_ARGUMENT, message)

    @classmethod
    def malformed(cls, detail: str) -> CursorDecodeError:
        """Return an error for a cursor that is not base64-encoded JSON."""
        return cls(f"failed to decode cursor: {detail}")

    @classmethod
    def bad_timestamp(cls, field: str, value: str) -> CursorDecodeError:
        """Return an error for a cursor carrying an unparsable timestamp."""
        return cls(f"cursor field {field} is not RFC 3339: {value!r}")


class GoogleAPIError(RuntimeError):
    """Raised when a Google API returns a non-2xx response.

    Attributes
    ----------
    status_code
        HTTP status code of the response.
    api_message
        Provider error message, empty when the body carried none.
    reason
        First provider error reason (for example ``notFound``), if any.
    headers
        Response headers, retained for rate-limit parsing.

    """

    def __init__(
        self,
        status_code: int,
        api_message: str = "",
        *,
        reason: str | None = None,
        headers: cabc.Mapping[str, str] | None = None,
    ) -> None:
        """Initialise with the response status and provider error details."""
        self.status_code = status_code
        self.api_message = api_message
        self.reason = reason
        self.headers: dict[str, str] = dict(headers or {})
        detail = api_message or f"status code: {status_code}"
        super().__init__(f"Google API HTTP {status_code}: {detail}")

    @property
    def is_not_found(self) -> bool:
        """Return True for a clean "no longer exists" response."""
        return self.status_code == 404  # noqa: PLR2004


class TokenRetrievalError(GoogleAPIError):
    """Raised when the OAuth2 token endpoint rejects an assertion."""

    @classmethod
    def from_response(
        cls,
        status_code: int,
        error: str,
        description: str,
        headers: cabc.Mapping[str, str] | None = None,
    ) -> TokenRetrievalError:
        """Build the error, choosing the unauthorized subclass for HTTP 401."""
        message = f"oauth2: {error}" if error else "oauth2: token request failed"
        if description:
            message = f"{message} ({description})"
        unauthorized = status_code == 401  # noqa: PLR2004
        error_cls = OAuthUnauthorizedError if unauthorized else cls
        return error_cls(status_code, message, reason=error or None, headers=headers)


class OAuthUnauthorizedError(TokenRetrievalError):
    """Raised when the token endpoint answers 401 for the requested scope."""


class UsageEventContractError(ValueError):
    """Raised when a usage sub-event lacks a parameter it must carry."""

    @classmethod
    def missing_parameter(cls, name: str) -> UsageEventContractError:
        """Return an error for a missing usage parameter."""
        return cls(f"no {name} in event parameters")


class WorkspaceConfigError(RuntimeError):
    """Raised when connector configuration is invalid."""

    @classmethod
    def missing_tenant(cls) -> WorkspaceConfigError:
        """Return an error when neither customer id nor domain is configured."""
        return cls("a customer id or domain is required")

    @classmethod
    def missing_administrator_email(cls) -> WorkspaceConfigError:
        """Return an error when no delegated administrator is configured."""
        return cls("administrator email is missing")

    @classmethod
    def missing_credentials(cls) -> WorkspaceConfigError:
        """Return an error when no credential source is configured."""
        return cls("credentials are missing; provide a JSON file path or inline JSON")

    @classmethod
    def conflicting_credentials(cls) -> WorkspaceConfigError:
        """Return an error when both credential sources are configured."""
        return cls(
            "credentials file path and inline credentials are mutually exclusive"
        )

    @classmethod
    def invalid_credentials(cls, detail: str) -> WorkspaceConfigError:
        """Return an error when the service-account key cannot be read."""
        return cls(f"invalid service account credentials: {detail}")

    @classmethod
    def unknown_domain(cls, domain: str, customer_id: str) -> WorkspaceConfigError:
        """Return an error when the configured domain is not the tenant's."""
        return cls(
            f"domain '{domain}' is not a valid domain for customer '{customer_id}'"
        )
