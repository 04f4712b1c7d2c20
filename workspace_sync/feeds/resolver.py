"""Cached email-to-id resolution for resources named in activity records."""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from workspace_sync.google.errors import GoogleAPIError
from workspace_sync.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import ResourceType

    type LookupFn = cabc.Callable[[str], cabc.Awaitable[str]]

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class Found:
    """The email resolved to a durable resource id."""

    resource_id: str


@dataclasses.dataclass(frozen=True, slots=True)
class NotFound:
    """The resource no longer exists, or the directory returned no id."""


@dataclasses.dataclass(frozen=True, slots=True)
class LookupFailed:
    """The lookup failed for a reason other than a clean "not found"."""

    error: Exception


type Resolution = Found | NotFound | LookupFailed

_NOT_FOUND = NotFound()


class ResourceIdResolver:
    """Resolve emails to resource ids, remembering both hits and misses.

    The cache maps lowercase emails to an id, or to ``""`` for a resource
    confirmed absent, and lives as long as the resolver. Failures other than
    "not found" are never cached, so a later call retries the lookup.

    Parameters
    ----------
    resource_type
        The kind of resource this resolver looks up; used in log messages.
    lookup
        Coroutine function returning the id for an email. It raises
        :class:`GoogleAPIError` with status 404 when the resource is gone.

    """

    def __init__(self, resource_type: ResourceType, lookup: LookupFn) -> None:
        """Initialise with an empty cache."""
        self._resource_type = resource_type
        self._lookup = lookup
        self._cache: dict[str, str] = {}
        self._lock = asyncio.Lock()

    @property
    def resource_type(self) -> ResourceType:
        """Return the resource type this resolver serves."""
        return self._resource_type

    def __len__(self) -> int:
        """Return the number of cached emails."""
        return len(self._cache)

    async def resolve(self, email: str) -> Resolution:
        """Return the resolution for ``email``, hitting the network at most once."""
        key = email.strip().lower()
        async with self._lock:
            if key in self._cache:
                return _as_resolution(self._cache[key])
            try:
                resource_id = await self._lookup(key)
            except GoogleAPIError as exc:
                if not exc.is_not_found:
                    return LookupFailed(exc)
                log_info(
                    logger,
                    "%s no longer exists (email=%s)",
                    self._resource_type,
                    key,
                )
                resource_id = ""
            except Exception as exc:  # noqa: BLE001 - surfaced as a typed result
                return LookupFailed(exc)
            else:
                if not resource_id:
                    log_warning(
                        logger, "%s has no id (email=%s)", self._resource_type, key
                    )
            self._cache[key] = resource_id
            return _as_resolution(resource_id)


def _as_resolution(resource_id: str) -> Resolution:
    return Found(resource_id) if resource_id else _NOT_FOUND
