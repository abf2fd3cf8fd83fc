"""
Bearer token lifecycle for the log collector.

Features:
- Caches the token until its advertised lifetime runs out
- Refreshes on demand with one POST to the auth endpoint
- Fails open: any failure yields None and keeps the previous cache
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import aiohttp
import structlog

from .exceptions import CredentialUnavailableError
from .metrics import MetricsCollector

logger = structlog.get_logger(__name__)


@dataclass
class Credential:
    """Cached bearer token and the epoch second it stops being valid."""
    value: Optional[str] = None
    expires_at: float = 0.0

    def is_valid(self, now: float) -> bool:
        return self.value is not None and now < self.expires_at


class TokenManager:
    """
    Obtains and caches the collector's bearer token.

    Concurrent callers that all find the cache stale may each fetch;
    the last successful response wins.
    """

    def __init__(
        self,
        timeout_seconds: float = 5.0,
        default_lifetime_seconds: int = 3600,
        metrics: Optional[MetricsCollector] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.default_lifetime_seconds = default_lifetime_seconds
        self.metrics = metrics
        self.clock = clock
        self.credential = Credential()
        self.session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> None:
        """Open the HTTP session used for token fetches."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )

    async def stop(self) -> None:
        """Close the HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    def invalidate(self) -> None:
        """Drop the cached token so the next call refetches."""
        self.credential = Credential()

    async def get_token(self, auth_url: str, auth_payload: Dict[str, Any]) -> Optional[str]:
        """
        Return a valid token, fetching a fresh one if needed.

        Returns:
            The bearer token, or None when none could be obtained
        """
        if self.credential.is_valid(self.clock()):
            return self.credential.value

        try:
            credential = await self._fetch(auth_url, auth_payload)
        except Exception as e:
            logger.warning(
                "Token fetch failed",
                auth_url=auth_url,
                error=str(e),
                error_type=type(e).__name__,
            )
            if self.metrics:
                self.metrics.record_token_fetch("failure")
            return None

        self.credential = credential
        if self.metrics:
            self.metrics.record_token_fetch("success")

        logger.debug(
            "Token refreshed",
            token=credential.value[:8] + "..." if credential.value else None,
            expires_at=credential.expires_at,
        )
        return credential.value

    async def _fetch(self, auth_url: str, auth_payload: Dict[str, Any]) -> Credential:
        """POST the credentials and parse the token response."""
        if self.session is not None:
            return await self._post(self.session, auth_url, auth_payload)

        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
        ) as session:
            return await self._post(session, auth_url, auth_payload)

    async def _post(
        self,
        session: aiohttp.ClientSession,
        auth_url: str,
        auth_payload: Dict[str, Any],
    ) -> Credential:
        async with session.post(auth_url, json=auth_payload) as response:
            if response.status >= 400:
                raise CredentialUnavailableError(f"Auth endpoint returned {response.status}")
            data = await response.json(content_type=None)

        if not isinstance(data, dict):
            raise CredentialUnavailableError("Auth response is not an object")

        token = data.get("access_token")
        if not token or not isinstance(token, str):
            raise CredentialUnavailableError("Auth response has no access_token")

        lifetime = data.get("expires_in")
        if lifetime is None:
            lifetime = self.default_lifetime_seconds
        if isinstance(lifetime, bool) or not isinstance(lifetime, (int, float)) or lifetime <= 0:
            raise CredentialUnavailableError(f"Invalid expires_in: {lifetime!r}")

        return Credential(value=token, expires_at=self.clock() + lifetime)
