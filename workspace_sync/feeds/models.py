"""Normalized events emitted by the activity feeds."""

from __future__ import annotations

import datetime as dt
import enum

import msgspec


class EventKind(enum.StrEnum):
    """Kinds of normalized event a feed can emit."""

    RESOURCE_CHANGE = "resource_change"
    USAGE = "usage"


class ResourceType(enum.StrEnum):
    """Platform resource types referenced by normalized events."""

    USER = "user"
    GROUP = "group"
    ENTERPRISE_APPLICATION = "enterprise_application"


class ResourceRef(msgspec.Struct, kw_only=True, frozen=True):
    """A durable resource id with an optional human-readable label."""

    resource_type: ResourceType
    resource_id: str
    display_name: str = ""


class ResourceChange(
    msgspec.Struct, kw_only=True, frozen=True, tag="resource_change", tag_field="kind"
):
    """Something in the directory changed and should be re-synced."""

    resource: ResourceRef


class UsageEvent(
    msgspec.Struct, kw_only=True, frozen=True, tag="usage", tag_field="kind"
):
    """A user authorised an application."""

    target: ResourceRef
    actor: ResourceRef
    actor_email: str = ""


class NormalizedEvent(msgspec.Struct, kw_only=True, frozen=True):
    """One event in the feed's output stream.

    ``id`` is the provider's unique qualifier for the originating activity,
    so several events expanded from one activity share it.
    """

    id: str
    occurred_at: dt.datetime
    payload: ResourceChange | UsageEvent

    @property
    def kind(self) -> EventKind:
        """Return the kind of payload this event carries."""
        if isinstance(self.payload, UsageEvent):
            return EventKind.USAGE
        return EventKind.RESOURCE_CHANGE


class FeedPage(msgspec.Struct, kw_only=True, frozen=True):
    """Result of one poll: events, the next cursor and whether more is pending."""

    events: list[NormalizedEvent]
    cursor: str
    has_more: bool


class FeedMetadata(msgspec.Struct, kw_only=True, frozen=True):
    """Static description of a feed."""

    feed_id: str
    supported_event_kinds: tuple[EventKind, ...]
