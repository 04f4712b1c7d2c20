"""Structured log events for activity feed polls.

Events are emitted in ``[event.type] key=value ...`` form so log aggregators
can parse poll throughput, failures and skipped records.

Usage
-----
>>> event_logger = FeedEventLogger("admin_event_feed")
>>> event_logger.log_item_skipped(event_id="42", reason="lookup failed", error=exc)

"""

from __future__ import annotations

import enum
import typing as typ

from workspace_sync.google.errors import WorkspaceSyncError
from workspace_sync.logging import get_logger, log_debug, log_error, log_info

if typ.TYPE_CHECKING:
    from .cursor import EventCursor

logger = get_logger(__name__)


class FeedEventType(enum.StrEnum):
    """Structured log event types for feed polls."""

    POLL_COMPLETED = "feed.poll.completed"
    POLL_FAILED = "feed.poll.failed"
    ITEM_SKIPPED = "feed.item.skipped"
    RESOURCE_MISSING = "feed.resource.missing"


class FeedEventLogger:
    """Emit structured feed events via femtologging."""

    def __init__(self, feed_id: str) -> None:
        """Bind the logger to a feed identifier."""
        self._feed_id = feed_id

    @property
    def feed_id(self) -> str:
        """Return the feed identifier attached to every event."""
        return self._feed_id

    def log_poll_completed(
        self, *, activities: int, events: int, cursor: EventCursor
    ) -> None:
        """Log a successful poll with its counts and resulting window state."""
        log_info(
            logger,
            "[%s] feed_id=%s activities=%d events=%d has_more=%s "
            "start_at=%s latest_event_seen=%s",
            FeedEventType.POLL_COMPLETED,
            self._feed_id,
            activities,
            events,
            cursor.has_more,
            cursor.start_at,
            cursor.latest_event_seen,
        )

    def log_poll_failed(self, error: BaseException) -> None:
        """Log a poll that failed before the cursor could advance.

        Parameters
        ----------
        error
            The failure; classified errors contribute their kind.

        """
        kind = error.kind if isinstance(error, WorkspaceSyncError) else "unclassified"
        log_error(
            logger,
            "[%s] feed_id=%s error_kind=%s error_type=%s error_message=%s",
            FeedEventType.POLL_FAILED,
            self._feed_id,
            kind,
            type(error).__name__,
            str(error),
            exc_info=error,
        )

    def log_item_skipped(
        self, *, event_id: str, reason: str, error: BaseException
    ) -> None:
        """Log a sub-event or resource reference dropped because it failed."""
        log_error(
            logger,
            "[%s] feed_id=%s event_id=%s reason=%s error_type=%s error_message=%s",
            FeedEventType.ITEM_SKIPPED,
            self._feed_id,
            event_id,
            reason,
            type(error).__name__,
            str(error),
        )

    def log_resource_missing(
        self, *, event_id: str, resource_type: str, email: str
    ) -> None:
        """Log a change dropped because its resource no longer exists."""
        log_info(
            logger,
            "[%s] feed_id=%s event_id=%s resource_type=%s email=%s",
            FeedEventType.RESOURCE_MISSING,
            self._feed_id,
            event_id,
            resource_type,
            email,
        )

    def log_sub_event_ignored(self, *, category: str, name: str) -> None:
        """Log a raw sub-event outside the allow-list."""
        log_debug(
            logger,
            "feed_id=%s skipping sub-event category=%s name=%s",
            self._feed_id,
            category,
            name,
        )
