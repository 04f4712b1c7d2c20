"""Feed of application authorizations from the token audit log."""

from __future__ import annotations

import typing as typ

from workspace_sync.google.errors import UsageEventContractError

from . import interpret
from .base import ActivityFeed
from .models import EventKind

if typ.TYPE_CHECKING:
    import datetime as dt

    from workspace_sync.google.models import Activity

    from .models import NormalizedEvent


class UsageEventFeed(ActivityFeed):
    """Emit a usage event each time a user authorizes a third-party app.

    Only ``authorize`` sub-events are considered. Private first-party apps
    are suppressed, and a sub-event missing its client id or app name is a
    contract violation that is logged and dropped.
    """

    feed_id = "usage_event_feed"
    application = "token"
    event_name = interpret.USAGE_EVENT_NAME
    supported_event_kinds = (EventKind.USAGE,)

    async def _interpret_activity(
        self, activity: Activity, occurred_at: dt.datetime
    ) -> list[NormalizedEvent]:
        events: list[NormalizedEvent] = []
        for sub_event in activity.events:
            if sub_event.name != interpret.USAGE_EVENT_NAME:
                self._events.log_sub_event_ignored(
                    category=sub_event.type, name=sub_event.name
                )
                continue
            try:
                event = interpret.usage_event_from(activity, sub_event, occurred_at)
            except UsageEventContractError as exc:
                self._events.log_item_skipped(
                    event_id=interpret.event_id(activity),
                    reason="invalid usage event",
                    error=exc,
                )
                continue
            if event is not None:
                events.append(event)
        return events
