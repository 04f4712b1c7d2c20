"""Per-scope cache of authenticated sessions with read-only escalation."""

from __future__ import annotations

import asyncio
import typing as typ

from workspace_sync.logging import get_logger, log_debug

from .errors import OAuthUnauthorizedError
from .scopes import escalate_scope

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)


class ServiceCapabilityCache[ClientT]:
    """Obtain and cache one authenticated client per OAuth scope.

    A read-only scope that is refused with an unauthorized response is
    retried once with its read-write counterpart; the escalated client is
    cached under the escalated scope, and satisfies every later request for
    the read-only form. Entries live for the lifetime of the cache.

    Parameters
    ----------
    authenticate
        Coroutine function building an authenticated client for a scope. It
        must raise :class:`OAuthUnauthorizedError` when the scope is refused.

    """

    def __init__(
        self, authenticate: cabc.Callable[[str], cabc.Awaitable[ClientT]]
    ) -> None:
        """Initialise an empty cache around an authentication function."""
        self._authenticate = authenticate
        self._clients: dict[str, ClientT] = {}
        self._lock = asyncio.Lock()

    @property
    def cached_scopes(self) -> frozenset[str]:
        """Return the scopes that currently hold a client."""
        return frozenset(self._clients)

    async def get(self, scope: str) -> ClientT:
        """Return a client authorised for ``scope``.

        Raises
        ------
        OAuthUnauthorizedError
            The original refusal for ``scope`` when escalation also fails.

        """
        async with self._lock:
            if scope in self._clients:
                return self._clients[scope]

            escalated, can_escalate = escalate_scope(scope)
            if can_escalate and escalated in self._clients:
                return self._clients[escalated]

            try:
                client = await self._authenticate(scope)
            except OAuthUnauthorizedError as exc:
                if not can_escalate:
                    raise
                client = await self._escalate(scope, escalated, exc)
                self._clients[escalated] = client
                return client

            self._clients[scope] = client
            return client

    async def _escalate(
        self, scope: str, escalated: str, original: OAuthUnauthorizedError
    ) -> ClientT:
        log_debug(
            logger,
            "scope %s refused; retrying with escalated scope %s",
            scope,
            escalated,
        )
        try:
            return await self._authenticate(escalated)
        except Exception as escalation_exc:
            raise original from escalation_exc
