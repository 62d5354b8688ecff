"""Client-credentials token cache for the IGDB (Twitch) identity provider."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

import httpx

from release_calendar.core.config import settings
from release_calendar.utils.datetime import Clock, utcnow
from release_calendar.utils.redaction import redact_secrets

logger = logging.getLogger("release_calendar.ingestion.token_cache")

TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"


@dataclass(frozen=True, slots=True)
class ProviderToken:
    """Bearer token with its absolute expiry."""
    value: str
    expires_at: datetime

    def usable(self, now: datetime, margin: timedelta) -> bool:
        return now < self.expires_at - margin


class TokenCache:
    """Hold one bearer token per process and refresh it before it expires.

    ``get_token`` never raises: a missing credential, a failed exchange, or a
    malformed response all yield ``None`` so callers can skip the provider.
    """

    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        *,
        clock: Clock = utcnow,
        token_url: str = TWITCH_TOKEN_URL,
        safety_margin_seconds: int | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_url = token_url
        margin = settings.token_safety_margin_seconds if safety_margin_seconds is None else safety_margin_seconds
        self._margin = timedelta(seconds=max(margin, 0))
        self._clock = clock
        self._token: ProviderToken | None = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> ProviderToken | None:
        return self._token

    def invalidate(self) -> None:
        """Drop the cached token so the next call performs a fresh exchange."""
        self._token = None

    async def get_token(self) -> str | None:
        """Return a usable bearer token, exchanging credentials when needed."""
        async with self._lock:
            if self._token and self._token.usable(self._clock(), self._margin):
                return self._token.value
            if not self.client_id or not self.client_secret:
                logger.warning("IGDB credentials not configured; token exchange skipped")
                return None
            token = await self._exchange()
            if token is None:
                return None
            self._token = token
            return token.value

    async def _exchange(self) -> ProviderToken | None:
        requested_at = self._clock()
        try:
            async with httpx.AsyncClient(timeout=settings.http_timeout_seconds) as client:
                response = await client.post(
                    self.token_url,
                    params={
                        "client_id": self.client_id,
                        "client_secret": self.client_secret,
                        "grant_type": "client_credentials",
                    },
                )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Token exchange failed: %s", redact_secrets(str(exc)))
            return None

        value = data.get("access_token") if isinstance(data, dict) else None
        if not value:
            logger.warning("Token exchange returned no access_token")
            return None
        try:
            expires_in = int(data.get("expires_in") or 0)
        except (TypeError, ValueError):
            expires_in = 0
        if expires_in <= 0:
            expires_in = 60
        logger.info("Obtained IGDB access token valid for %ss", expires_in)
        return ProviderToken(value=value, expires_at=requested_at + timedelta(seconds=expires_in))
