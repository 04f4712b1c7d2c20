"""Thin async clients for the Directory and Reports Admin APIs."""

from __future__ import annotations

import typing as typ
import urllib.parse

import msgspec

from workspace_sync.common.time import format_rfc3339

from .auth import JwtBearerTokenSource
from .errors import GoogleAPIError
from .models import (
    ActivityPage,
    DirectoryGroup,
    DirectoryUser,
    DomainList,
    ErrorEnvelope,
)

if typ.TYPE_CHECKING:
    import datetime as dt

    import httpx
    from google.auth import crypt

    from .auth import ServiceAccountKey

DIRECTORY_BASE_URL = "https://admin.googleapis.com/admin/directory/v1"
REPORTS_BASE_URL = "https://admin.googleapis.com/admin/reports/v1"
_HTTP_ERROR_STATUS_THRESHOLD = 400


def _quote(segment: str) -> str:
    return urllib.parse.quote(segment, safe="@")


def _error_from_response(response: httpx.Response) -> GoogleAPIError:
    try:
        envelope = msgspec.json.decode(response.content, type=ErrorEnvelope)
    except msgspec.DecodeError:
        envelope = ErrorEnvelope()
    return GoogleAPIError(
        response.status_code,
        envelope.message,
        reason=envelope.reason,
        headers=response.headers,
    )


class ScopedSession:
    """An authenticated view of the shared HTTP client for a single scope."""

    def __init__(
        self, token_source: JwtBearerTokenSource, http_client: httpx.AsyncClient
    ) -> None:
        """Pair a token source with the HTTP client used for API calls."""
        self._token_source = token_source
        self._http_client = http_client

    @property
    def scope(self) -> str:
        """Return the OAuth scope this session is authorised for."""
        return self._token_source.scope

    @classmethod
    async def open(
        cls,
        scope: str,
        *,
        key: ServiceAccountKey,
        subject: str,
        http_client: httpx.AsyncClient,
        signer: crypt.Signer | None = None,
    ) -> ScopedSession:
        """Authenticate for ``scope`` and return the session.

        The first token is fetched eagerly so a scope the service account is
        not authorised for fails here rather than on the first API call.
        """
        source = JwtBearerTokenSource(
            key,
            scope=scope,
            subject=subject,
            http_client=http_client,
            signer=signer,
        )
        await source.token()
        return cls(source, http_client)

    async def get[T](
        self,
        url: str,
        *,
        decode_as: type[T],
        params: dict[str, str | int] | None = None,
    ) -> T:
        """GET ``url`` and decode the JSON body into ``decode_as``.

        Raises
        ------
        GoogleAPIError
            If the API answers with a 4xx or 5xx status.

        """
        token = await self._token_source.token()
        response = await self._http_client.get(
            url,
            params=params,
            headers={"Authorization": f"Bearer {token}"},
        )
        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise _error_from_response(response)
        return msgspec.json.decode(response.content, type=decode_as)


class DirectoryClient:
    """Directory API lookups for users, groups and domains."""

    def __init__(
        self, session: ScopedSession, *, base_url: str = DIRECTORY_BASE_URL
    ) -> None:
        """Bind the client to an authenticated session."""
        self._session = session
        self._base_url = base_url.rstrip("/")

    async def get_user(self, user_key: str) -> DirectoryUser:
        """Fetch a user by primary email, alias or id."""
        return await self._session.get(
            f"{self._base_url}/users/{_quote(user_key)}", decode_as=DirectoryUser
        )

    async def get_group(self, group_key: str) -> DirectoryGroup:
        """Fetch a group by email, alias or id."""
        return await self._session.get(
            f"{self._base_url}/groups/{_quote(group_key)}", decode_as=DirectoryGroup
        )

    async def list_domains(self, customer_id: str) -> DomainList:
        """List the domains registered to a customer."""
        return await self._session.get(
            f"{self._base_url}/customer/{_quote(customer_id)}/domains",
            decode_as=DomainList,
        )


class ReportsClient:
    """Reports API access to the activity audit log."""

    def __init__(
        self, session: ScopedSession, *, base_url: str = REPORTS_BASE_URL
    ) -> None:
        """Bind the client to an authenticated session."""
        self._session = session
        self._base_url = base_url.rstrip("/")

    async def list_activities(  # noqa: PLR0913
        self,
        application: str,
        *,
        start_time: dt.datetime | None = None,
        page_token: str = "",
        max_results: int | None = None,
        event_name: str = "",
        user_key: str = "all",
    ) -> ActivityPage:
        """Fetch one page of activities for an application.

        ``start_time`` is sent only when given; continuation requests carry the
        page token alone.
        """
        params: dict[str, str | int] = {}
        if start_time is not None:
            params["startTime"] = format_rfc3339(start_time)
        if page_token:
            params["pageToken"] = page_token
        if max_results is not None:
            params["maxResults"] = max_results
        if event_name:
            params["eventName"] = event_name
        url = (
            f"{self._base_url}/activity/users/{_quote(user_key)}"
            f"/applications/{_quote(application)}"
        )
        return await self._session.get(url, decode_as=ActivityPage, params=params)
