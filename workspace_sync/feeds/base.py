"""Poll loop shared by the admin and usage activity feeds.

Each call to :meth:`ActivityFeed.poll` is self-contained: the caller's cursor
is decoded, one page of activities is fetched, every activity is interpreted
into normalized events, and the cursor is advanced and re-encoded. A failure
fetching the page is classified and raised without advancing the cursor, so
repeating the identical call is always safe.
"""

from __future__ import annotations

import abc
import typing as typ

from workspace_sync.common.time import parse_activity_time, utcnow
from workspace_sync.config import FeedConfig
from workspace_sync.google.classify import classify_api_error

from .cursor import EventCursor
from .interpret import event_id
from .models import EventKind, FeedMetadata, FeedPage
from .observability import FeedEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from workspace_sync.google.client import ReportsClient
    from workspace_sync.google.models import Activity, ActivityPage

    from .models import NormalizedEvent

    type ReportsProvider = cabc.Callable[[], cabc.Awaitable[ReportsClient]]


class EventFeed(typ.Protocol):
    """Interface the host runtime polls for normalized events."""

    @property
    def metadata(self) -> FeedMetadata:
        """Return the feed's id and supported event kinds."""
        ...

    async def poll(
        self,
        cursor_token: str = "",
        page_size: int = 0,
        default_start: dt.datetime | None = None,
    ) -> FeedPage:
        """Fetch and interpret the next page of activity."""
        ...


class ActivityFeed(abc.ABC):
    """Base implementation of :class:`EventFeed` over the Reports API.

    Subclasses set the class attributes and implement
    :meth:`_interpret_activity`.
    """

    feed_id: typ.ClassVar[str]
    application: typ.ClassVar[str]
    event_name: typ.ClassVar[str] = ""
    supported_event_kinds: typ.ClassVar[tuple[EventKind, ...]]

    def __init__(
        self,
        reports: ReportsProvider,
        *,
        config: FeedConfig | None = None,
        clock: cabc.Callable[[], dt.datetime] | None = None,
    ) -> None:
        """Initialise the feed around a provider of Reports API clients."""
        self._reports = reports
        self._config = config or FeedConfig()
        self._clock = clock or utcnow
        self._events = FeedEventLogger(self.feed_id)

    @property
    def metadata(self) -> FeedMetadata:
        """Return the feed's id and supported event kinds."""
        return FeedMetadata(
            feed_id=self.feed_id, supported_event_kinds=self.supported_event_kinds
        )

    async def poll(
        self,
        cursor_token: str = "",
        page_size: int = 0,
        default_start: dt.datetime | None = None,
    ) -> FeedPage:
        """Fetch and interpret the next page of activity.

        Parameters
        ----------
        cursor_token
            Opaque cursor returned by the previous poll; empty to start.
        page_size
            Requested batch size; non-positive values fall back to the size
            carried by the cursor, then the configured default.
        default_start
            Start of the first window when the cursor carries none.

        Returns
        -------
        FeedPage
            The normalized events, the next cursor and the has-more flag.

        Raises
        ------
        WorkspaceSyncError
            If the cursor is malformed or the page could not be fetched.

        """
        try:
            cursor = EventCursor.decode(
                cursor_token,
                default_start=default_start,
                lag_window=self._config.lag_window,
                now=self._clock(),
            )
        except Exception as exc:
            self._events.log_poll_failed(exc)
            raise

        cursor.page_size = self._config.resolve_page_size(page_size, cursor.page_size)
        page = await self._fetch(cursor)

        events: list[NormalizedEvent] = []
        for activity in page.items:
            occurred_at = parse_activity_time(activity.id.time)
            cursor.observe(occurred_at)
            try:
                events.extend(await self._interpret_activity(activity, occurred_at))
            except Exception as exc:  # noqa: BLE001 - skip the record, keep the page
                self._events.log_item_skipped(
                    event_id=event_id(activity),
                    reason="failed to interpret activity",
                    error=exc,
                )

        cursor.advance(page.next_page_token)
        self._events.log_poll_completed(
            activities=len(page.items), events=len(events), cursor=cursor
        )
        return FeedPage(
            events=events, cursor=cursor.encode(), has_more=cursor.has_more
        )

    async def _fetch(self, cursor: EventCursor) -> ActivityPage:
        # Continuation requests carry the page token alone.
        start_time = None if cursor.next_page_token else cursor.start_time()
        try:
            reports = await self._reports()
            return await reports.list_activities(
                self.application,
                start_time=start_time,
                page_token=cursor.next_page_token,
                max_results=cursor.page_size,
                event_name=self.event_name,
            )
        except Exception as exc:
            classified = classify_api_error(
                exc, f"failed to list {self.application} activities"
            )
            self._events.log_poll_failed(classified)
            if classified is exc:
                raise
            raise classified from exc

    @abc.abstractmethod
    async def _interpret_activity(
        self, activity: Activity, occurred_at: dt.datetime
    ) -> list[NormalizedEvent]:
        """Return the normalized events carried by one activity."""
