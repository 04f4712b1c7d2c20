"""Pure interpretation of raw activity records.

Admin activities are matched against a closed table keyed on
``(category, type)``; each entry names the resource type and the parameters
whose values are the emails of changed resources. Resolving those emails to
ids is left to the feed, so nothing here performs I/O.
"""

from __future__ import annotations

import dataclasses
import re
import typing as typ

from workspace_sync.google.errors import UsageEventContractError

from .models import (
    NormalizedEvent,
    ResourceChange,
    ResourceRef,
    ResourceType,
    UsageEvent,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    from workspace_sync.google.models import Activity, ActivityEvent

GROUP_SETTINGS = "GROUP_SETTINGS"
USER_SETTINGS = "USER_SETTINGS"

USAGE_EVENT_NAME = "authorize"
CLIENT_ID_PARAMETER = "client_id"
APP_NAME_PARAMETER = "app_name"

# Google-internal OAuth clients whose client id doubles as the app name.
PRIVATE_APP_PATTERN = re.compile(r"[0-9]{21}")


@dataclasses.dataclass(frozen=True, slots=True)
class ChangeRule:
    """Which parameters of an allow-listed sub-event name changed resources."""

    resource_type: ResourceType
    parameters: tuple[str, ...]


@dataclasses.dataclass(frozen=True, slots=True)
class PendingChange:
    """A resource change awaiting email-to-id resolution."""

    event_id: str
    occurred_at: dt.datetime
    resource_type: ResourceType
    email: str

    def resolved(self, resource_id: str) -> NormalizedEvent:
        """Return the normalized event for the resolved id."""
        return NormalizedEvent(
            id=self.event_id,
            occurred_at=self.occurred_at,
            payload=ResourceChange(
                resource=ResourceRef(
                    resource_type=self.resource_type, resource_id=resource_id
                )
            ),
        )


_GROUP_EMAIL = "GROUP_EMAIL"
_USER_EMAIL = "USER_EMAIL"
_NEW_VALUE = "NEW_VALUE"


def _group(*parameters: str) -> ChangeRule:
    return ChangeRule(ResourceType.GROUP, parameters)


def _user(*parameters: str) -> ChangeRule:
    return ChangeRule(ResourceType.USER, parameters)


ADMIN_CHANGE_RULES: typ.Final[dict[tuple[str, str], ChangeRule]] = {
    (GROUP_SETTINGS, "CREATE_GROUP"): _group(_GROUP_EMAIL),
    (GROUP_SETTINGS, "CHANGE_GROUP_NAME"): _group(_GROUP_EMAIL),
    (GROUP_SETTINGS, "CHANGE_GROUP_DESCRIPTION"): _group(_GROUP_EMAIL),
    (GROUP_SETTINGS, "CHANGE_GROUP_EMAIL"): _group(_GROUP_EMAIL, _NEW_VALUE),
    (GROUP_SETTINGS, "ADD_GROUP_MEMBER"): _group(_GROUP_EMAIL),
    (GROUP_SETTINGS, "REMOVE_GROUP_MEMBER"): _group(_GROUP_EMAIL),
    (GROUP_SETTINGS, "UPDATE_GROUP_MEMBER"): _group(_GROUP_EMAIL),
    (USER_SETTINGS, "ACCEPT_USER_INVITATION"): _user(_USER_EMAIL),
    (USER_SETTINGS, "CHANGE_USER_ORGANIZATION"): _user(_USER_EMAIL),
    (USER_SETTINGS, "ADD_DISPLAY_NAME"): _user(_USER_EMAIL),
    (USER_SETTINGS, "CHANGE_DISPLAY_NAME"): _user(_USER_EMAIL),
    (USER_SETTINGS, "CHANGE_FIRST_NAME"): _user(_USER_EMAIL),
    (USER_SETTINGS, "CHANGE_LAST_NAME"): _user(_USER_EMAIL),
    (USER_SETTINGS, "CREATE_USER"): _user(_USER_EMAIL),
    (USER_SETTINGS, "SUSPEND_USER"): _user(_USER_EMAIL),
    (USER_SETTINGS, "UNSUSPEND_USER"): _user(_USER_EMAIL),
    (USER_SETTINGS, "RENAME_USER"): _user(_USER_EMAIL, _NEW_VALUE),
}


def event_id(activity: Activity) -> str:
    """Return the activity's unique qualifier as a string."""
    return str(activity.id.unique_qualifier)


def change_rule(sub_event: ActivityEvent) -> ChangeRule | None:
    """Return the rule for an allow-listed sub-event, or ``None`` to skip it."""
    return ADMIN_CHANGE_RULES.get((sub_event.type, sub_event.name))


def pending_changes(
    activity: Activity,
    sub_event: ActivityEvent,
    rule: ChangeRule,
    occurred_at: dt.datetime,
) -> list[PendingChange]:
    """Expand one allow-listed sub-event into changes awaiting resolution.

    Parameters that are absent or empty contribute nothing.
    """
    identifier = event_id(activity)
    changes: list[PendingChange] = []
    for parameter in rule.parameters:
        email = sub_event.parameter(parameter).strip()
        if not email:
            continue
        changes.append(
            PendingChange(
                event_id=identifier,
                occurred_at=occurred_at,
                resource_type=rule.resource_type,
                email=email,
            )
        )
    return changes


def is_private_app(client_id: str, app_name: str) -> bool:
    """Return True for first-party apps that usage feeds never report."""
    return client_id == app_name and PRIVATE_APP_PATTERN.search(client_id) is not None


def usage_event_from(
    activity: Activity, sub_event: ActivityEvent, occurred_at: dt.datetime
) -> NormalizedEvent | None:
    """Build the usage event for an ``authorize`` sub-event.

    Returns ``None`` for private first-party apps.

    Raises
    ------
    UsageEventContractError
        If the sub-event lacks ``client_id`` or ``app_name``.

    """
    for required in (CLIENT_ID_PARAMETER, APP_NAME_PARAMETER):
        if not sub_event.has_parameter(required):
            raise UsageEventContractError.missing_parameter(required)

    client_id = sub_event.parameter(CLIENT_ID_PARAMETER)
    app_name = sub_event.parameter(APP_NAME_PARAMETER)
    if is_private_app(client_id, app_name):
        return None

    return NormalizedEvent(
        id=event_id(activity),
        occurred_at=occurred_at,
        payload=UsageEvent(
            target=ResourceRef(
                resource_type=ResourceType.ENTERPRISE_APPLICATION,
                resource_id=client_id,
                display_name=app_name,
            ),
            actor=ResourceRef(
                resource_type=ResourceType.USER,
                resource_id=activity.actor.profile_id,
                display_name=activity.actor.email,
            ),
            actor_email=activity.actor.email,
        ),
    )
