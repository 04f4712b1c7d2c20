"""Unit tests for cached email-to-id resolution."""

from __future__ import annotations

import pytest

from workspace_sync.feeds.models import ResourceType
from workspace_sync.feeds.resolver import (
    Found,
    LookupFailed,
    NotFound,
    ResourceIdResolver,
)
from workspace_sync.google.errors import GoogleAPIError


class _Directory:
    """Answer lookups from a table, counting calls per email."""

    def __init__(self, entries: dict[str, str | Exception]) -> None:
        self.entries = entries
        self.calls: list[str] = []

    async def __call__(self, email: str) -> str:
        self.calls.append(email)
        entry = self.entries.get(email)
        if entry is None:
            raise GoogleAPIError(404, "Resource Not Found", reason="notFound")
        if isinstance(entry, Exception):
            raise entry
        return entry


@pytest.mark.asyncio
async def test_hit_is_cached() -> None:
    """A resolved id is served from cache on later calls."""
    directory = _Directory({"team@example.com": "g-1"})
    resolver = ResourceIdResolver(ResourceType.GROUP, directory)

    first = await resolver.resolve("team@example.com")
    second = await resolver.resolve("team@example.com")

    assert first == second == Found("g-1")
    assert directory.calls == ["team@example.com"]


@pytest.mark.asyncio
async def test_not_found_is_cached_as_negative_entry() -> None:
    """A deleted resource is looked up once, then remembered as absent."""
    directory = _Directory({})
    resolver = ResourceIdResolver(ResourceType.GROUP, directory)

    first = await resolver.resolve("gone@example.com")
    second = await resolver.resolve("gone@example.com")

    assert isinstance(first, NotFound)
    assert isinstance(second, NotFound)
    assert directory.calls == ["gone@example.com"]
    assert len(resolver) == 1


@pytest.mark.asyncio
async def test_emails_are_matched_case_insensitively() -> None:
    """Mixed-case spellings share one cache entry."""
    directory = _Directory({"ada@example.com": "u-1"})
    resolver = ResourceIdResolver(ResourceType.USER, directory)

    await resolver.resolve("Ada@Example.com")
    result = await resolver.resolve("ada@example.com ")

    assert result == Found("u-1")
    assert directory.calls == ["ada@example.com"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [GoogleAPIError(503, "Backend Error"), RuntimeError("connection dropped")],
    ids=["api-error", "other-error"],
)
async def test_failed_lookup_is_not_cached(error: Exception) -> None:
    """Non-404 failures are reported and retried on the next call."""
    directory = _Directory({"team@example.com": error})
    resolver = ResourceIdResolver(ResourceType.GROUP, directory)

    first = await resolver.resolve("team@example.com")
    directory.entries["team@example.com"] = "g-1"
    second = await resolver.resolve("team@example.com")

    assert first == LookupFailed(error)
    assert second == Found("g-1")
    assert directory.calls == ["team@example.com", "team@example.com"]


@pytest.mark.asyncio
async def test_empty_id_is_treated_as_missing() -> None:
    """A directory record without an id cannot be referenced."""
    directory = _Directory({"odd@example.com": ""})
    resolver = ResourceIdResolver(ResourceType.USER, directory)

    assert isinstance(await resolver.resolve("odd@example.com"), NotFound)
    assert isinstance(await resolver.resolve("odd@example.com"), NotFound)
    assert directory.calls == ["odd@example.com"]
