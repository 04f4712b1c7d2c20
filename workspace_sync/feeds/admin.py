"""Feed of directory changes derived from the admin audit log."""

from __future__ import annotations

import typing as typ

from . import interpret
from .base import ActivityFeed
from .models import EventKind
from .resolver import Found, LookupFailed, NotFound

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from workspace_sync.config import FeedConfig
    from workspace_sync.google.models import Activity

    from .base import ReportsProvider
    from .models import NormalizedEvent, ResourceType
    from .resolver import ResourceIdResolver


class AdminEventFeed(ActivityFeed):
    """Emit a resource change for each allow-listed user or group action.

    Emails named by an activity are resolved to directory ids through the
    injected resolvers, whose caches persist across polls of this feed. A
    resource that no longer exists drops its change; a lookup that fails for
    any other reason drops that change alone and is logged.
    """

    feed_id = "admin_event_feed"
    application = "admin"
    supported_event_kinds = (EventKind.RESOURCE_CHANGE,)

    def __init__(
        self,
        reports: ReportsProvider,
        resolvers: cabc.Mapping[ResourceType, ResourceIdResolver],
        *,
        config: FeedConfig | None = None,
        clock: cabc.Callable[[], dt.datetime] | None = None,
    ) -> None:
        """Initialise with a Reports provider and one resolver per type."""
        super().__init__(reports, config=config, clock=clock)
        self._resolvers = dict(resolvers)

    async def _interpret_activity(
        self, activity: Activity, occurred_at: dt.datetime
    ) -> list[NormalizedEvent]:
        events: list[NormalizedEvent] = []
        for sub_event in activity.events:
            rule = interpret.change_rule(sub_event)
            if rule is None:
                self._events.log_sub_event_ignored(
                    category=sub_event.type, name=sub_event.name
                )
                continue
            for change in interpret.pending_changes(
                activity, sub_event, rule, occurred_at
            ):
                event = await self._resolve(change)
                if event is not None:
                    events.append(event)
        return events

    async def _resolve(self, change: interpret.PendingChange) -> NormalizedEvent | None:
        resolver = self._resolvers.get(change.resource_type)
        if resolver is None:
            return None
        match await resolver.resolve(change.email):
            case Found(resource_id):
                return change.resolved(resource_id)
            case NotFound():
                self._events.log_resource_missing(
                    event_id=change.event_id,
                    resource_type=change.resource_type,
                    email=change.email,
                )
            case LookupFailed(error):
                self._events.log_item_skipped(
                    event_id=change.event_id,
                    reason=f"failed to resolve {change.resource_type} {change.email}",
                    error=error,
                )
        return None
