"""Timestamp helpers shared by the feeds and the token source.

Activity timestamps travel through cursors as RFC 3339 strings with second
precision and a ``Z`` suffix.
"""

from __future__ import annotations

import datetime as dt

EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.UTC)


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp."""
    return dt.datetime.now(dt.UTC)


def format_rfc3339(value: dt.datetime) -> str:
    """Render an aware timestamp as second-precision RFC 3339 in UTC."""
    if value.tzinfo is None:
        msg = "timestamp must be timezone-aware"
        raise ValueError(msg)
    return value.astimezone(dt.UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_rfc3339(value: str) -> dt.datetime:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Raises
    ------
    ValueError
        If the value is not RFC 3339 or carries no offset.

    """
    parsed = dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        msg = f"timestamp missing timezone: {value}"
        raise ValueError(msg)
    return parsed.astimezone(dt.UTC)


def parse_activity_time(value: str | None) -> dt.datetime:
    """Parse an activity timestamp, never failing.

    Tries RFC 3339 first, then a Unix-epoch-seconds integer, and falls back to
    the Unix epoch so a single bad record never rejects a page.
    """
    if not value:
        return EPOCH
    try:
        return parse_rfc3339(value)
    except ValueError:
        pass
    try:
        return dt.datetime.fromtimestamp(int(value.strip()), tz=dt.UTC)
    except (ValueError, OverflowError, OSError):
        return EPOCH
