"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import datetime as dt
import typing as typ

import pytest
import pytest_asyncio

from tests.helpers.workspace_api import (
    TEST_CONFIG,
    TEST_KEY,
    FakeSigner,
    FakeWorkspaceAPI,
)
from workspace_sync.connector import WorkspaceConnector

if typ.TYPE_CHECKING:
    import collections.abc as cabc

FIXED_NOW = dt.datetime(2099, 1, 1, 12, 0, tzinfo=dt.UTC)


@pytest.fixture
def workspace_api() -> FakeWorkspaceAPI:
    """Return an empty fake Google API."""
    return FakeWorkspaceAPI()


@pytest.fixture
def fixed_clock() -> cabc.Callable[[], dt.datetime]:
    """Return a clock pinned to ``FIXED_NOW``."""
    return lambda: FIXED_NOW


@pytest_asyncio.fixture
async def connector(
    workspace_api: FakeWorkspaceAPI, fixed_clock: cabc.Callable[[], dt.datetime]
) -> cabc.AsyncIterator[WorkspaceConnector]:
    """Yield a connector wired to the fake API with a pinned clock."""
    client = workspace_api.http_client()
    workspace_connector = WorkspaceConnector(
        TEST_CONFIG,
        key=TEST_KEY,
        signer=FakeSigner(),
        http_client=client,
        clock=fixed_clock,
    )
    try:
        yield workspace_connector
    finally:
        await workspace_connector.aclose()
        await client.aclose()


@pytest.fixture(autouse=True)
def _clear_workspace_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate tests from ``WORKSPACE_SYNC_*`` variables in the host env."""
    for name in (
        "WORKSPACE_SYNC_CUSTOMER_ID",
        "WORKSPACE_SYNC_DOMAIN",
        "WORKSPACE_SYNC_ADMINISTRATOR_EMAIL",
        "WORKSPACE_SYNC_CREDENTIALS_JSON_FILE_PATH",
        "WORKSPACE_SYNC_CREDENTIALS_JSON",
        "WORKSPACE_SYNC_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
