"""Unit tests for timestamp helpers."""

from __future__ import annotations

import datetime as dt

import pytest

from workspace_sync.common.time import (
    EPOCH,
    format_rfc3339,
    parse_activity_time,
    parse_rfc3339,
)


def test_format_truncates_to_seconds_in_utc() -> None:
    """Offsets are normalised and sub-second precision dropped."""
    value = dt.datetime(
        2099, 1, 1, 14, 30, 5, 999_000, tzinfo=dt.timezone(dt.timedelta(hours=2))
    )

    assert format_rfc3339(value) == "2099-01-01T12:30:05Z"


def test_format_rejects_naive_timestamps() -> None:
    """Naive datetimes have no defined instant."""
    with pytest.raises(ValueError, match="timezone-aware"):
        format_rfc3339(dt.datetime(2099, 1, 1))  # noqa: DTZ001


def test_parse_accepts_fractional_seconds_and_z_suffix() -> None:
    """Reports API timestamps carry milliseconds and a ``Z`` suffix."""
    assert parse_rfc3339("2099-01-01T10:00:00.123Z") == dt.datetime(
        2099, 1, 1, 10, 0, 0, 123_000, tzinfo=dt.UTC
    )


def test_parse_rejects_timestamps_without_offset() -> None:
    """A timestamp without a zone is not RFC 3339."""
    with pytest.raises(ValueError, match="missing timezone"):
        parse_rfc3339("2099-01-01T10:00:00")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2099-01-01T10:00:00Z", dt.datetime(2099, 1, 1, 10, tzinfo=dt.UTC)),
        ("4070944800", dt.datetime(2099, 1, 1, 10, tzinfo=dt.UTC)),
        ("yesterday", EPOCH),
        ("", EPOCH),
        (None, EPOCH),
    ],
)
def test_activity_time_never_fails(raw: str | None, expected: dt.datetime) -> None:
    """RFC 3339 first, then epoch seconds, then the Unix epoch."""
    assert parse_activity_time(raw) == expected
