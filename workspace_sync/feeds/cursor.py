"""Opaque resume point for incremental activity polling.

The cursor is base64-encoded JSON with the keys ``latest_event_seen``,
``next_page_token``, ``start_at`` and ``page_size``; empty values are omitted.
After every completed page it is in exactly one of two states:

* mid-window: ``next_page_token`` is set and more pages are pending;
* window closed: ``next_page_token`` is empty, ``start_at`` has advanced to
  the latest activity seen and ``latest_event_seen`` is cleared.
"""

from __future__ import annotations

import base64
import binascii
import typing as typ

import msgspec

from workspace_sync.common.time import format_rfc3339, parse_rfc3339, utcnow
from workspace_sync.google.errors import CursorDecodeError

if typ.TYPE_CHECKING:
    import datetime as dt


class EventCursor(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Pagination and time-window state carried between polls."""

    latest_event_seen: str = ""
    next_page_token: str = ""
    start_at: str = ""
    page_size: int = 0

    @classmethod
    def decode(
        cls,
        token: str | None,
        *,
        default_start: dt.datetime | None = None,
        lag_window: dt.timedelta,
        now: dt.datetime | None = None,
    ) -> EventCursor:
        """Decode a caller-held token, filling in the window defaults.

        An empty token starts a fresh cursor. When ``start_at`` is missing it
        defaults to ``default_start`` or, failing that, ``now - lag_window``;
        ``latest_event_seen`` is then seeded from ``start_at``.

        Raises
        ------
        CursorDecodeError
            If the token is not base64-encoded JSON of the expected shape, or a
            timestamp it carries is not RFC 3339.

        """
        cursor = cls._unmarshal(token) if token else cls()

        if not cursor.start_at:
            start = default_start or (now or utcnow()) - lag_window
            cursor.start_at = format_rfc3339(start)
        if not cursor.latest_event_seen:
            cursor.latest_event_seen = cursor.start_at

        cursor.start_time()
        cursor.latest_seen_time()
        return cursor

    @classmethod
    def _unmarshal(cls, token: str) -> EventCursor:
        try:
            raw = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise CursorDecodeError.malformed(str(exc)) from exc
        try:
            return msgspec.json.decode(raw, type=cls)
        except msgspec.DecodeError as exc:
            raise CursorDecodeError.malformed(str(exc)) from exc

    def encode(self) -> str:
        """Return the opaque token for this cursor."""
        return base64.b64encode(msgspec.json.encode(self)).decode("ascii")

    def start_time(self) -> dt.datetime:
        """Return ``start_at`` as a datetime."""
        return _parse_field("start_at", self.start_at)

    def latest_seen_time(self) -> dt.datetime:
        """Return ``latest_event_seen`` as a datetime."""
        return _parse_field("latest_event_seen", self.latest_event_seen)

    def observe(self, occurred_at: dt.datetime) -> None:
        """Advance ``latest_event_seen`` if ``occurred_at`` is later."""
        if occurred_at > self.latest_seen_time():
            self.latest_event_seen = format_rfc3339(occurred_at)

    def advance(self, next_page_token: str) -> None:
        """Record the page's continuation token, closing the window if none.

        Closing moves ``start_at`` to the latest activity seen, never earlier
        than where the window began, and clears ``latest_event_seen``.
        """
        self.next_page_token = next_page_token
        if next_page_token:
            return
        if self.latest_seen_time() > self.start_time():
            self.start_at = self.latest_event_seen
        self.latest_event_seen = ""

    @property
    def has_more(self) -> bool:
        """Return True while the current window has pages pending."""
        return bool(self.next_page_token)


def _parse_field(field: str, value: str) -> dt.datetime:
    try:
        return parse_rfc3339(value)
    except ValueError as exc:
        raise CursorDecodeError.bad_timestamp(field, value) from exc
