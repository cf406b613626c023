"""OAuth2 credentials for Bungie.net and the refresh-token round-trip.

Only refreshing matters here: tokens are granted out of band (the
authorization-code flow runs elsewhere) and stored with each linked account.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

import httpx

from .errors import TokenRefreshError

logger = logging.getLogger(__name__)

AUTH_URL = "https://www.bungie.net/en/oauth/authorize"
TOKEN_URL = "https://www.bungie.net/Platform/App/OAuth/token/"

# Tokens are considered expired slightly early so a request never races the
# provider's own clock.
EXPIRY_DELTA = timedelta(seconds=10)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credential:
    """An access/refresh token pair and the access token's expiry."""

    access_token: str
    refresh_token: str
    expiry: datetime
    token_type: str = "Bearer"

    def valid(self, now: datetime | None = None) -> bool:
        if not self.access_token:
            return False
        expiry = self.expiry
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=timezone.utc)
        return (now or _utcnow()) < expiry - EXPIRY_DELTA

    @property
    def authorization(self) -> str:
        return f"{self.token_type or 'Bearer'} {self.access_token}"


@dataclass(frozen=True)
class OAuthConfig:
    client_id: str
    client_secret: str
    token_url: str = TOKEN_URL
    auth_url: str = AUTH_URL


class TokenRefresher:
    """Hands out a currently-valid credential, refreshing it when needed.

    The HTTP client is borrowed; whoever created it closes it.
    """

    def __init__(self, config: OAuthConfig, *, http: httpx.AsyncClient) -> None:
        self.config = config
        self._http = http

    async def refresh(self, credential: Credential) -> tuple[Credential, bool]:
        """Return ``(credential, refreshed)``.

        ``refreshed`` is True only when a round-trip to the token endpoint
        happened, in which case the returned credential must replace the
        stored one.
        """
        if credential.valid():
            return credential, False

        if not credential.refresh_token:
            raise TokenRefreshError("credential expired and has no refresh token")

        response = await self._http.post(
            self.config.token_url,
            data={
                "grant_type": "refresh_token",
                "refresh_token": credential.refresh_token,
            },
            auth=(self.config.client_id, self.config.client_secret),
        )

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.status_code != 200:
            error = data.get("error", "")
            description = data.get("error_description") or error or f"HTTP {response.status_code}"
            raise TokenRefreshError(
                f"token refresh failed: {description}",
                status_code=response.status_code,
                error=error,
            )

        access_token = data.get("access_token")
        if not access_token:
            raise TokenRefreshError(
                "no access_token in refresh response", status_code=response.status_code
            )

        try:
            expires_in = int(data.get("expires_in") or 0)
            expiry = _utcnow() + timedelta(seconds=expires_in)
        except (TypeError, ValueError, OverflowError) as e:
            raise TokenRefreshError(
                f"invalid expires_in in refresh response: {data.get('expires_in')!r}",
                status_code=response.status_code,
            ) from e

        refreshed = replace(
            credential,
            access_token=access_token,
            # Bungie rotates refresh tokens; keep the old one if it did not.
            refresh_token=data.get("refresh_token") or credential.refresh_token,
            expiry=expiry,
            token_type=data.get("token_type") or credential.token_type,
        )
        logger.debug(f"Refreshed access token (expires in {expires_in}s)")
        return refreshed, True
