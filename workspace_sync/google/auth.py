"""Delegated-admin OAuth2 tokens via the JWT-bearer grant.

A service account signs an assertion naming the delegated administrator as its
subject and the requested scope; the token endpoint exchanges it for a
short-lived access token. Signing uses ``google-auth``; the exchange goes
through the shared ``httpx`` client so it benefits from transient-fault retry.
"""

from __future__ import annotations

import asyncio
import dataclasses
import datetime as dt
import typing as typ

import msgspec
from google.auth import crypt, jwt

from workspace_sync.common.time import utcnow

from .errors import TokenRetrievalError, WorkspaceConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import httpx

JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
_ASSERTION_LIFETIME = dt.timedelta(hours=1)
_REFRESH_MARGIN = dt.timedelta(seconds=60)
_HTTP_OK = 200


class ServiceAccountKey(msgspec.Struct, kw_only=True, frozen=True):
    """The parts of a service-account key file used for delegation."""

    client_email: str
    private_key: str
    private_key_id: str | None = None
    token_uri: str = DEFAULT_TOKEN_URI


def load_service_account_key(raw: bytes | str) -> ServiceAccountKey:
    """Decode service-account JSON, raising a configuration error if invalid."""
    try:
        key = msgspec.json.decode(raw, type=ServiceAccountKey)
    except msgspec.DecodeError as exc:
        raise WorkspaceConfigError.invalid_credentials(str(exc)) from exc
    if not key.client_email.strip() or not key.private_key.strip():
        msg = "client_email and private_key must be non-empty"
        raise WorkspaceConfigError.invalid_credentials(msg)
    return key


def build_signer(key: ServiceAccountKey) -> crypt.Signer:
    """Build an RSA signer from the key's PEM private key."""
    info = {"private_key": key.private_key, "private_key_id": key.private_key_id}
    try:
        return crypt.RSASigner.from_service_account_info(info)
    except ValueError as exc:
        raise WorkspaceConfigError.invalid_credentials(str(exc)) from exc


@dataclasses.dataclass(frozen=True, slots=True)
class AccessToken:
    """A bearer token and the instant it stops being usable."""

    value: str
    expires_at: dt.datetime

    def is_fresh(self, now: dt.datetime) -> bool:
        """Return True while the token is outside the refresh margin."""
        return now + _REFRESH_MARGIN < self.expires_at


class _TokenResponse(msgspec.Struct, kw_only=True):
    access_token: str
    expires_in: int = 3600


class _TokenErrorResponse(msgspec.Struct, kw_only=True):
    error: str = ""
    error_description: str = ""


def _decode_token_error(body: bytes) -> _TokenErrorResponse:
    try:
        return msgspec.json.decode(body, type=_TokenErrorResponse)
    except msgspec.DecodeError:
        return _TokenErrorResponse(error_description=body.decode("utf-8", "replace"))


class JwtBearerTokenSource:
    """Acquire and cache access tokens for one scope and subject.

    Tokens are refreshed transparently once they come within a minute of
    expiry. Concurrent callers share a single refresh.
    """

    def __init__(  # noqa: PLR0913
        self,
        key: ServiceAccountKey,
        *,
        scope: str,
        subject: str,
        http_client: httpx.AsyncClient,
        signer: crypt.Signer | None = None,
        clock: cabc.Callable[[], dt.datetime] = utcnow,
    ) -> None:
        """Bind the source to a key, scope, delegated subject and HTTP client."""
        self._key = key
        self._scope = scope
        self._subject = subject
        self._http_client = http_client
        self._signer = signer or build_signer(key)
        self._clock = clock
        self._token: AccessToken | None = None
        self._lock = asyncio.Lock()

    @property
    def scope(self) -> str:
        """Return the scope this source requests."""
        return self._scope

    async def token(self) -> str:
        """Return a usable access token, fetching a new one when needed."""
        async with self._lock:
            now = self._clock()
            if self._token is None or not self._token.is_fresh(now):
                self._token = await self._fetch(now)
            return self._token.value

    def _assertion(self, now: dt.datetime) -> str:
        issued_at = int(now.timestamp())
        payload = {
            "iss": self._key.client_email,
            "scope": self._scope,
            "aud": self._key.token_uri,
            "sub": self._subject,
            "iat": issued_at,
            "exp": issued_at + int(_ASSERTION_LIFETIME.total_seconds()),
        }
        return jwt.encode(self._signer, payload).decode("ascii")

    async def _fetch(self, now: dt.datetime) -> AccessToken:
        response = await self._http_client.post(
            self._key.token_uri,
            data={"grant_type": JWT_BEARER_GRANT, "assertion": self._assertion(now)},
        )
        if response.status_code != _HTTP_OK:
            body = _decode_token_error(response.content)
            raise TokenRetrievalError.from_response(
                response.status_code,
                body.error,
                body.error_description,
                response.headers,
            )
        try:
            parsed = msgspec.json.decode(response.content, type=_TokenResponse)
        except msgspec.DecodeError as exc:
            raise TokenRetrievalError.from_response(
                response.status_code, "invalid_response", str(exc)
            ) from exc
        return AccessToken(
            value=parsed.access_token,
            expires_at=now + dt.timedelta(seconds=parsed.expires_in),
        )
