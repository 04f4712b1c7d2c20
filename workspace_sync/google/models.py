"""Typed payloads decoded from the Admin Reports and Directory APIs.

Only the fields the feeds and the connector read are declared; msgspec
ignores the rest of each response.
"""

from __future__ import annotations

import msgspec


class ActivityParameter(msgspec.Struct, kw_only=True, rename="camel"):
    """One named parameter attached to a raw sub-event."""

    name: str = ""
    value: str | None = None
    multi_value: list[str] = msgspec.field(default_factory=list)
    int_value: str | int | None = None
    bool_value: bool | None = None


class ActivityEvent(msgspec.Struct, kw_only=True, rename="camel"):
    """A raw ``(category, type, parameters)`` sub-event of an activity.

    The Reports API calls the category ``type`` and the raw type ``name``.
    """

    type: str = ""
    name: str = ""
    parameters: list[ActivityParameter] = msgspec.field(default_factory=list)

    def has_parameter(self, name: str) -> bool:
        """Return True when a parameter with this name is present."""
        return any(parameter.name == name for parameter in self.parameters)

    def parameter(self, name: str) -> str:
        """Return the string value of the first matching parameter, or ``""``."""
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter.value or ""
        return ""


class ActivityId(msgspec.Struct, kw_only=True, rename="camel"):
    """Identity of an activity record."""

    time: str = ""
    unique_qualifier: str | int = ""
    application_name: str = ""
    customer_id: str = ""


class Actor(msgspec.Struct, kw_only=True, rename="camel"):
    """The user or service that performed an activity."""

    email: str = ""
    profile_id: str = ""
    caller_type: str = ""


class Activity(msgspec.Struct, kw_only=True, rename="camel"):
    """One timestamped entry from the audit log."""

    id: ActivityId = msgspec.field(default_factory=ActivityId)
    actor: Actor = msgspec.field(default_factory=Actor)
    events: list[ActivityEvent] = msgspec.field(default_factory=list)
    ip_address: str = ""


class ActivityPage(msgspec.Struct, kw_only=True, rename="camel"):
    """A page of activities returned by ``activities.list``."""

    items: list[Activity] = msgspec.field(default_factory=list)
    next_page_token: str = ""


class DirectoryUser(msgspec.Struct, kw_only=True, rename="camel"):
    """Subset of a Directory API user."""

    id: str = ""
    primary_email: str = ""


class DirectoryGroup(msgspec.Struct, kw_only=True, rename="camel"):
    """Subset of a Directory API group."""

    id: str = ""
    email: str = ""


class Domain(msgspec.Struct, kw_only=True, rename="camel"):
    """A domain registered to the customer."""

    domain_name: str = ""
    is_primary: bool = False


class DomainList(msgspec.Struct, kw_only=True):
    """Response of ``domains.list``."""

    domains: list[Domain] = msgspec.field(default_factory=list)


class _ErrorItem(msgspec.Struct, kw_only=True):
    reason: str = ""
    message: str = ""


class _ErrorBody(msgspec.Struct, kw_only=True):
    code: int = 0
    message: str = ""
    errors: list[_ErrorItem] = msgspec.field(default_factory=list)


class ErrorEnvelope(msgspec.Struct, kw_only=True):
    """Google's JSON error body: ``{"error": {"code", "message", "errors"}}``."""

    error: _ErrorBody = msgspec.field(default_factory=_ErrorBody)

    @property
    def message(self) -> str:
        """Return the provider's top-level error message."""
        return self.error.message

    @property
    def reason(self) -> str | None:
        """Return the first error reason, if any."""
        for item in self.error.errors:
            if item.reason:
                return item.reason
        return None
