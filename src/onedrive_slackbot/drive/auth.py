from __future__ import annotations

import logging
import time

import requests

logger = logging.getLogger(__name__)

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
_AUTHORITY_URL = "https://login.microsoftonline.com/{tenant_id}/oauth2/v2.0/token"
_REFRESH_MARGIN_SECONDS = 300
_DEFAULT_LIFETIME_SECONDS = 3600


class AuthError(RuntimeError):
    """Raised when an access token cannot be acquired."""


class ClientCredentialsAuth:
    """Acquire Graph tokens with the OAuth2 client-credentials grant.

    Tokens are cached in-process and refreshed five minutes before expiry.
    """

    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        *,
        scope: str = GRAPH_SCOPE,
        timeout_seconds: int = 30,
    ) -> None:
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self.timeout_seconds = timeout_seconds
        self._cached_token: str | None = None
        self._expires_at = 0.0

    @property
    def token_url(self) -> str:
        return _AUTHORITY_URL.format(tenant_id=self.tenant_id)

    def get_access_token(self) -> str:
        if self._cached_token and time.time() < self._expires_at - _REFRESH_MARGIN_SECONDS:
            logger.debug("Using cached access token")
            return self._cached_token

        logger.info("Acquiring new access token for tenant %s", self.tenant_id)
        try:
            response = requests.post(
                self.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "scope": self.scope,
                },
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise AuthError(f"Authentication failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if response.status_code >= 400:
            description = payload.get("error_description") or payload.get("error") or response.text
            raise AuthError(f"Authentication failed ({response.status_code}): {description}")

        token = payload.get("access_token")
        if not token:
            raise AuthError("Failed to acquire access token - empty response")

        try:
            lifetime = int(payload.get("expires_in", _DEFAULT_LIFETIME_SECONDS))
        except (TypeError, ValueError):
            lifetime = _DEFAULT_LIFETIME_SECONDS

        self._cached_token = str(token)
        self._expires_at = time.time() + lifetime
        return self._cached_token
