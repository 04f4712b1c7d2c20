"""OAuth scopes used against the Workspace Admin APIs."""

from __future__ import annotations

_READONLY_SUFFIX = ".readonly"

DIRECTORY_USER_READONLY = (
    "https://www.googleapis.com/auth/admin.directory.user.readonly"
)
DIRECTORY_GROUP_READONLY = (
    "https://www.googleapis.com/auth/admin.directory.group.readonly"
)
DIRECTORY_DOMAIN_READONLY = (
    "https://www.googleapis.com/auth/admin.directory.domain.readonly"
)
REPORTS_AUDIT_READONLY = "https://www.googleapis.com/auth/admin.reports.audit.readonly"


def is_readonly(scope: str) -> bool:
    """Return True when the scope carries the read-only suffix."""
    return scope.endswith(_READONLY_SUFFIX)


def escalate_scope(scope: str) -> tuple[str, bool]:
    """Strip the read-only suffix, reporting whether anything changed.

    >>> escalate_scope("https://www.googleapis.com/auth/admin.directory.user.readonly")
    ('https://www.googleapis.com/auth/admin.directory.user', True)
    >>> escalate_scope("https://www.googleapis.com/auth/admin.directory.user")
    ('https://www.googleapis.com/auth/admin.directory.user', False)

    """
    if is_readonly(scope):
        return (scope.removesuffix(_READONLY_SUFFIX), True)
    return (scope, False)
