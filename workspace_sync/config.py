"""Configuration for the Workspace connector and its activity feeds.

Usage
-----
Load tenant configuration from the environment and validate it before any
API call is made:

>>> import os
>>> os.environ["WORKSPACE_SYNC_DOMAIN"] = "example.com"
>>> os.environ["WORKSPACE_SYNC_ADMINISTRATOR_EMAIL"] = "admin@example.com"
>>> os.environ["WORKSPACE_SYNC_CREDENTIALS_JSON"] = "{...}"
>>> config = WorkspaceConfig.from_env()
>>> config.customer_id
'my_customer'

"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import os
from pathlib import Path

from workspace_sync.google.auth import ServiceAccountKey, load_service_account_key
from workspace_sync.google.errors import WorkspaceConfigError

DEFAULT_CUSTOMER_ID = "my_customer"

_ENV_CUSTOMER_ID = "WORKSPACE_SYNC_CUSTOMER_ID"
_ENV_DOMAIN = "WORKSPACE_SYNC_DOMAIN"
_ENV_ADMINISTRATOR_EMAIL = "WORKSPACE_SYNC_ADMINISTRATOR_EMAIL"
_ENV_CREDENTIALS_PATH = "WORKSPACE_SYNC_CREDENTIALS_JSON_FILE_PATH"
_ENV_CREDENTIALS_JSON = "WORKSPACE_SYNC_CREDENTIALS_JSON"


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


@dc.dataclass(frozen=True, slots=True)
class WorkspaceConfig:
    """Tenant and credential settings for a Workspace connector.

    Attributes
    ----------
    customer_id
        Workspace customer id; ``my_customer`` addresses the administrator's
        own tenant.
    administrator_email
        Delegated administrator used as the subject of every token request.
    domain
        Optional primary or secondary domain; validated against the tenant.
    credentials_path
        Path to a service-account key file.
    credentials_json
        Inline service-account key JSON.

    """

    customer_id: str
    administrator_email: str
    domain: str = ""
    credentials_path: Path | None = None
    credentials_json: str = ""

    @classmethod
    def from_env(cls) -> WorkspaceConfig:
        """Build and validate configuration from ``WORKSPACE_SYNC_*`` variables.

        Raises
        ------
        WorkspaceConfigError
            If required settings are missing or conflict.

        """
        customer_id = _env(_ENV_CUSTOMER_ID)
        domain = _env(_ENV_DOMAIN)
        if not customer_id and domain:
            customer_id = DEFAULT_CUSTOMER_ID
        raw_path = _env(_ENV_CREDENTIALS_PATH)
        config = cls(
            customer_id=customer_id,
            administrator_email=_env(_ENV_ADMINISTRATOR_EMAIL),
            domain=domain,
            credentials_path=Path(raw_path) if raw_path else None,
            credentials_json=_env(_ENV_CREDENTIALS_JSON),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Check that tenant, administrator and exactly one credential are set."""
        if not self.customer_id and not self.domain:
            raise WorkspaceConfigError.missing_tenant()
        if not self.administrator_email.strip():
            raise WorkspaceConfigError.missing_administrator_email()
        has_path = self.credentials_path is not None
        has_json = bool(self.credentials_json.strip())
        if has_path and has_json:
            raise WorkspaceConfigError.conflicting_credentials()
        if not has_path and not has_json:
            raise WorkspaceConfigError.missing_credentials()

    @property
    def effective_customer_id(self) -> str:
        """Return the customer id, defaulting to the administrator's tenant."""
        return self.customer_id or DEFAULT_CUSTOMER_ID

    def load_credentials(self) -> ServiceAccountKey:
        """Read and decode the configured service-account key."""
        if self.credentials_path is not None:
            try:
                raw: bytes | str = self.credentials_path.read_bytes()
            except OSError as exc:
                raise WorkspaceConfigError.invalid_credentials(str(exc)) from exc
        else:
            raw = self.credentials_json
        return load_service_account_key(raw)


@dc.dataclass(frozen=True, slots=True)
class FeedConfig:
    """Polling knobs shared by the activity feeds.

    Attributes
    ----------
    lag_window
        How far back a fresh cursor starts; covers the provider's activity
        propagation delay.
    default_page_size
        Page size used when neither the caller nor the cursor supplies one.
    max_page_size
        Largest page the Reports API accepts.

    """

    lag_window: dt.timedelta = dt.timedelta(hours=2)
    default_page_size: int = 100
    max_page_size: int = 1000

    def resolve_page_size(self, requested: int, carried: int = 0) -> int:
        """Pick the page size for a poll.

        >>> FeedConfig().resolve_page_size(0, 50)
        50
        >>> FeedConfig().resolve_page_size(5000)
        1000

        """
        for candidate in (requested, carried, self.default_page_size):
            if candidate > 0:
                return min(candidate, self.max_page_size)
        return self.max_page_size
