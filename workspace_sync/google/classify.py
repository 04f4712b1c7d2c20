"""Map failed Google API calls onto abstract error kinds.

Downstream tooling parses the start of classified messages, so any local
context is always prepended to the provider message and never appended.
"""

from __future__ import annotations

from http import HTTPStatus

from .errors import ErrorKind, GoogleAPIError, WorkspaceSyncError
from .faults import is_transient
from .ratelimit import extract_rate_limit

_STATUS_KINDS: dict[int, ErrorKind] = {
    HTTPStatus.BAD_REQUEST: ErrorKind.INVALID_ARGUMENT,
    HTTPStatus.UNAUTHORIZED: ErrorKind.UNAUTHENTICATED,
    HTTPStatus.FORBIDDEN: ErrorKind.PERMISSION_DENIED,
    HTTPStatus.NOT_FOUND: ErrorKind.NOT_FOUND,
    HTTPStatus.REQUEST_TIMEOUT: ErrorKind.DEADLINE_EXCEEDED,
    HTTPStatus.CONFLICT: ErrorKind.ABORTED,
    HTTPStatus.GONE: ErrorKind.NOT_FOUND,
    HTTPStatus.PRECONDITION_FAILED: ErrorKind.FAILED_PRECONDITION,
    HTTPStatus.TOO_MANY_REQUESTS: ErrorKind.UNAVAILABLE,
    HTTPStatus.NOT_IMPLEMENTED: ErrorKind.UNIMPLEMENTED,
    HTTPStatus.SERVICE_UNAVAILABLE: ErrorKind.UNAVAILABLE,
}


def _with_context(context_message: str, message: str) -> str:
    if context_message:
        return f"{context_message}: {message}"
    return message


def _kind_for_status(status_code: int) -> tuple[ErrorKind, bool]:
    """Return the kind for a status and whether the code must be quoted."""
    if status_code in _STATUS_KINDS:
        return (_STATUS_KINDS[status_code], False)
    if 500 <= status_code <= 599:  # noqa: PLR2004
        return (ErrorKind.UNAVAILABLE, False)
    return (ErrorKind.UNKNOWN, True)


def classify_api_error(
    exc: BaseException, context_message: str = ""
) -> WorkspaceSyncError:
    """Classify a failed API call, preserving the original as ``__cause__``.

    Parameters
    ----------
    exc
        The failure raised by an API call.
    context_message
        Local context prepended to the classified message.

    Returns
    -------
    WorkspaceSyncError
        ``unavailable`` for anything that is not a structured API error (for
        example a transient fault that exhausted its retries); otherwise the
        kind mapped from the HTTP status, with rate-limit detail attached when
        the response carried rate-limit headers.

    """
    if isinstance(exc, WorkspaceSyncError):
        return exc

    if not isinstance(exc, GoogleAPIError):
        detail = "transient network error" if is_transient(exc) else str(exc)
        classified = WorkspaceSyncError(
            ErrorKind.UNAVAILABLE,
            _with_context(context_message, detail or type(exc).__name__),
        )
        classified.__cause__ = exc
        return classified

    status_code = exc.status_code
    kind, quote_status = _kind_for_status(status_code)
    message = exc.api_message or f"status code: {status_code}"
    if quote_status:
        message = f"unexpected status code: {status_code}: {message}"

    classified = WorkspaceSyncError(
        kind,
        _with_context(context_message, message),
        rate_limit=extract_rate_limit(status_code, exc.headers),
    )
    classified.__cause__ = exc
    return classified
