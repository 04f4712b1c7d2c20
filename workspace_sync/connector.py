"""Workspace connector: shared HTTP client, scoped sessions and feeds."""

from __future__ import annotations

import asyncio
import typing as typ

import httpx

from workspace_sync.feeds import (
    AdminEventFeed,
    ResourceIdResolver,
    ResourceType,
    UsageEventFeed,
)
from workspace_sync.google.auth import build_signer
from workspace_sync.google.capabilities import ServiceCapabilityCache
from workspace_sync.google.classify import classify_api_error
from workspace_sync.google.client import DirectoryClient, ReportsClient, ScopedSession
from workspace_sync.google.errors import WorkspaceConfigError
from workspace_sync.google.scopes import (
    DIRECTORY_DOMAIN_READONLY,
    DIRECTORY_GROUP_READONLY,
    DIRECTORY_USER_READONLY,
    REPORTS_AUDIT_READONLY,
)
from workspace_sync.google.transport import RetryingTransport

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from google.auth import crypt

    from workspace_sync.config import FeedConfig, WorkspaceConfig
    from workspace_sync.google.auth import ServiceAccountKey
    from workspace_sync.google.models import Domain

_USER_AGENT = "workspace-sync/0.1"


class WorkspaceConnector:
    """Entry point owning the resources shared by every sync operation.

    One connector holds one ``httpx.AsyncClient`` with transient-fault retry,
    one :class:`ServiceCapabilityCache` of scoped sessions, and one instance
    of each feed, so resolver caches survive across polls.
    """

    def __init__(  # noqa: PLR0913
        self,
        config: WorkspaceConfig,
        *,
        key: ServiceAccountKey | None = None,
        signer: crypt.Signer | None = None,
        http_client: httpx.AsyncClient | None = None,
        feed_config: FeedConfig | None = None,
        clock: cabc.Callable[[], dt.datetime] | None = None,
    ) -> None:
        """Initialise the connector, loading credentials when none are given."""
        config.validate()
        self._config = config
        self._key = key or config.load_credentials()
        self._signer = signer or build_signer(self._key)
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            transport=RetryingTransport(),
            timeout=30.0,
            headers={"User-Agent": _USER_AGENT, "Accept": "application/json"},
        )
        self._feed_config = feed_config
        self._clock = clock
        self._sessions: ServiceCapabilityCache[ScopedSession] = (
            ServiceCapabilityCache(self._open_session)
        )
        self._domain_lock = asyncio.Lock()
        self._domains: list[Domain] | None = None
        self._feeds: tuple[AdminEventFeed, UsageEventFeed] | None = None

    @property
    def config(self) -> WorkspaceConfig:
        """Return the connector configuration."""
        return self._config

    @property
    def sessions(self) -> ServiceCapabilityCache[ScopedSession]:
        """Return the cache of scoped sessions."""
        return self._sessions

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._http_client.aclose()

    async def _open_session(self, scope: str) -> ScopedSession:
        return await ScopedSession.open(
            scope,
            key=self._key,
            subject=self._config.administrator_email,
            http_client=self._http_client,
            signer=self._signer,
        )

    async def directory(self, scope: str) -> DirectoryClient:
        """Return a Directory API client authorised for ``scope``."""
        return DirectoryClient(await self._sessions.get(scope))

    async def reports(self) -> ReportsClient:
        """Return a Reports API client authorised to read audit logs."""
        return ReportsClient(await self._sessions.get(REPORTS_AUDIT_READONLY))

    async def domains(self) -> list[Domain]:
        """Return the customer's domains, fetched once per connector."""
        async with self._domain_lock:
            if self._domains is None:
                self._domains = await self._fetch_domains()
            return list(self._domains)

    async def _fetch_domains(self) -> list[Domain]:
        customer_id = self._config.effective_customer_id
        try:
            directory = await self.directory(DIRECTORY_DOMAIN_READONLY)
            response = await directory.list_domains(customer_id)
        except Exception as exc:
            classified = classify_api_error(exc, "failed to list domains")
            if classified is exc:
                raise
            raise classified from exc
        return response.domains

    async def primary_domain(self) -> str:
        """Return the customer's primary domain, or ``""`` if none is flagged."""
        for domain in await self.domains():
            if domain.is_primary:
                return domain.domain_name
        return ""

    async def validate(self) -> None:
        """Confirm the credentials work and the configured domain is the tenant's.

        Raises
        ------
        WorkspaceSyncError
            If listing the customer's domains fails.
        WorkspaceConfigError
            If a configured domain is not among the customer's domains.

        """
        domains = await self.domains()
        if not self._config.domain:
            return
        wanted = self._config.domain.casefold()
        if any(domain.domain_name.casefold() == wanted for domain in domains):
            return
        raise WorkspaceConfigError.unknown_domain(
            self._config.domain, self._config.effective_customer_id
        )

    async def _lookup_user_id(self, email: str) -> str:
        directory = await self.directory(DIRECTORY_USER_READONLY)
        return (await directory.get_user(email)).id

    async def _lookup_group_id(self, email: str) -> str:
        directory = await self.directory(DIRECTORY_GROUP_READONLY)
        return (await directory.get_group(email)).id

    def event_feeds(self) -> tuple[AdminEventFeed, UsageEventFeed]:
        """Return the admin and usage feeds, built once per connector."""
        if self._feeds is None:
            resolvers = {
                ResourceType.USER: ResourceIdResolver(
                    ResourceType.USER, self._lookup_user_id
                ),
                ResourceType.GROUP: ResourceIdResolver(
                    ResourceType.GROUP, self._lookup_group_id
                ),
            }
            self._feeds = (
                AdminEventFeed(
                    self.reports,
                    resolvers,
                    config=self._feed_config,
                    clock=self._clock,
                ),
                UsageEventFeed(
                    self.reports, config=self._feed_config, clock=self._clock
                ),
            )
        return self._feeds
