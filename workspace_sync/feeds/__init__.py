"""Incremental activity feeds producing normalized change and usage events."""

from __future__ import annotations

from .admin import AdminEventFeed
from .base import ActivityFeed, EventFeed
from .cursor import EventCursor
from .models import (
    EventKind,
    FeedMetadata,
    FeedPage,
    NormalizedEvent,
    ResourceChange,
    ResourceRef,
    ResourceType,
    UsageEvent,
)
from .observability import FeedEventLogger, FeedEventType
from .resolver import Found, LookupFailed, NotFound, ResourceIdResolver
from .usage import UsageEventFeed

__all__ = [
    "ActivityFeed",
    "AdminEventFeed",
    "EventCursor",
    "EventFeed",
    "EventKind",
    "FeedEventLogger",
    "FeedEventType",
    "FeedMetadata",
    "FeedPage",
    "Found",
    "LookupFailed",
    "NormalizedEvent",
    "NotFound",
    "ResourceChange",
    "ResourceIdResolver",
    "ResourceRef",
    "ResourceType",
    "UsageEvent",
    "UsageEventFeed",
]
