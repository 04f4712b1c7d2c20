"""Unit tests for feed observability logging."""

from __future__ import annotations

import pytest

from tests.helpers.femtologging_capture import capture_femto_logs
from workspace_sync.feeds.cursor import EventCursor
from workspace_sync.feeds.models import ResourceType
from workspace_sync.feeds.observability import FeedEventLogger, FeedEventType
from workspace_sync.google.errors import ErrorKind, WorkspaceSyncError

_LOGGER_NAME = "workspace_sync.feeds.observability"


class TestFeedEventLogger:
    """Tests for ``FeedEventLogger`` structured log events."""

    @pytest.fixture
    def event_logger(self) -> FeedEventLogger:
        """Return an event logger for the admin feed."""
        return FeedEventLogger("admin_event_feed")

    def test_poll_completed_reports_counts_and_window(
        self, event_logger: FeedEventLogger
    ) -> None:
        """Completion events carry throughput and the resulting window."""
        cursor = EventCursor(start_at="2099-01-01T11:00:00Z")

        with capture_femto_logs(_LOGGER_NAME) as capture:
            event_logger.log_poll_completed(activities=4, events=3, cursor=cursor)
            record = capture.wait_for_message(FeedEventType.POLL_COMPLETED)

        assert record.level == "INFO"
        assert "feed_id=admin_event_feed" in record.message
        assert "activities=4 events=3 has_more=False" in record.message
        assert "start_at=2099-01-01T11:00:00Z" in record.message

    def test_poll_failed_reports_error_kind(
        self, event_logger: FeedEventLogger
    ) -> None:
        """Classified failures contribute their kind."""
        error = WorkspaceSyncError(ErrorKind.UNAVAILABLE, "ctx: network error")

        with capture_femto_logs(_LOGGER_NAME) as capture:
            event_logger.log_poll_failed(error)
            record = capture.wait_for_message(FeedEventType.POLL_FAILED)

        assert record.level == "ERROR"
        assert "error_kind=unavailable" in record.message
        assert "error_type=WorkspaceSyncError" in record.message

    def test_poll_failed_marks_unclassified_errors(
        self, event_logger: FeedEventLogger
    ) -> None:
        """Raw exceptions are logged without a kind."""
        with capture_femto_logs(_LOGGER_NAME) as capture:
            event_logger.log_poll_failed(RuntimeError("boom"))
            record = capture.wait_for_message(FeedEventType.POLL_FAILED)

        assert "error_kind=unclassified" in record.message
        assert "error_message=boom" in record.message

    def test_item_skipped_names_event_and_reason(
        self, event_logger: FeedEventLogger
    ) -> None:
        """Skipped records can be traced back to their activity."""
        with capture_femto_logs(_LOGGER_NAME) as capture:
            event_logger.log_item_skipped(
                event_id="1001",
                reason="failed to resolve group team@example.com",
                error=RuntimeError("backend error"),
            )
            record = capture.wait_for_message(FeedEventType.ITEM_SKIPPED)

        assert record.level == "ERROR"
        assert "event_id=1001" in record.message
        assert "reason=failed to resolve group team@example.com" in record.message

    def test_resource_missing_is_informational(
        self, event_logger: FeedEventLogger
    ) -> None:
        """Deleted resources are expected and logged at INFO."""
        with capture_femto_logs(_LOGGER_NAME) as capture:
            event_logger.log_resource_missing(
                event_id="1001",
                resource_type=ResourceType.GROUP,
                email="gone@example.com",
            )
            record = capture.wait_for_message(FeedEventType.RESOURCE_MISSING)

        assert record.level == "INFO"
        assert "resource_type=group email=gone@example.com" in record.message
