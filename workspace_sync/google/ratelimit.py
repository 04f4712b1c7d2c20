"""Rate-limit signals parsed from Google API responses.

The provider reports quota state through ``X-RateLimit-*`` and ``Retry-After``
headers. Parsing them into a structured description lets the caller schedule
a delayed retry from the provider's own signal instead of a blind backoff.
"""

from __future__ import annotations

import datetime as dt
import email.utils
import enum
import typing as typ

import msgspec

from workspace_sync.common.time import utcnow

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_HTTP_TOO_MANY_REQUESTS = 429
# X-RateLimit-Reset values above this are absolute Unix timestamps.
_EPOCH_RESET_THRESHOLD = 1_000_000_000

_LIMIT_HEADER = "x-ratelimit-limit"
_REMAINING_HEADER = "x-ratelimit-remaining"
_RESET_HEADER = "x-ratelimit-reset"
_RETRY_AFTER_HEADER = "retry-after"


class RateLimitStatus(enum.StrEnum):
    """Whether the caller is within or over its quota."""

    OK = "ok"
    OVERLIMIT = "overlimit"


class RateLimitDescription(msgspec.Struct, kw_only=True, frozen=True):
    """Structured rate-limit detail attached to classified errors.

    Attributes
    ----------
    status : RateLimitStatus
        ``overlimit`` for HTTP 429 or an exhausted quota.
    limit : int | None
        Request quota for the current window, when reported.
    remaining : int | None
        Requests left in the current window, when reported.
    reset_at : datetime | None
        When the caller may retry, from ``Retry-After`` or the reset header.

    """

    status: RateLimitStatus
    limit: int | None = None
    remaining: int | None = None
    reset_at: dt.datetime | None = None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _parse_retry_after(value: str | None, now: dt.datetime) -> dt.datetime | None:
    if value is None:
        return None
    seconds = _parse_int(value)
    if seconds is not None:
        return now + dt.timedelta(seconds=max(seconds, 0))
    try:
        parsed = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC)


def _parse_reset(value: str | None, now: dt.datetime) -> dt.datetime | None:
    seconds = _parse_int(value)
    if seconds is None:
        return None
    if seconds > _EPOCH_RESET_THRESHOLD:
        return dt.datetime.fromtimestamp(seconds, tz=dt.UTC)
    return now + dt.timedelta(seconds=max(seconds, 0))


def extract_rate_limit(
    status_code: int,
    headers: cabc.Mapping[str, str],
    *,
    now: dt.datetime | None = None,
) -> RateLimitDescription | None:
    """Parse rate-limit headers from a response.

    Returns ``None`` when the response carries none of the rate-limit headers.
    Individually malformed headers are ignored rather than failing the parse.
    """
    lowered = {key.lower(): value for key, value in headers.items()}
    known = (_LIMIT_HEADER, _REMAINING_HEADER, _RESET_HEADER, _RETRY_AFTER_HEADER)
    if not any(name in lowered for name in known):
        return None

    current = now or utcnow()
    limit = _parse_int(lowered.get(_LIMIT_HEADER))
    remaining = _parse_int(lowered.get(_REMAINING_HEADER))
    reset_at = _parse_retry_after(lowered.get(_RETRY_AFTER_HEADER), current)
    if reset_at is None:
        reset_at = _parse_reset(lowered.get(_RESET_HEADER), current)

    over = status_code == _HTTP_TOO_MANY_REQUESTS or remaining == 0
    return RateLimitDescription(
        status=RateLimitStatus.OVERLIMIT if over else RateLimitStatus.OK,
        limit=limit,
        remaining=remaining,
        reset_at=reset_at,
    )
