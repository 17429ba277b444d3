"""
OAuth client-credentials token cache.

A ``TokenProvider`` owns the single cached ``Credential``. Cache hits make no
network call; a miss or an expired credential triggers one fetch, and the
new credential replaces the old one as a whole. Concurrent refreshes are
harmless: the last successful write wins.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

import httpx

from .models import Credential
from .upstream import UpstreamError, truncate_body


logger = logging.getLogger(__name__)

TOKEN_PATHS = ("1.1/oauth/token", "api/1.1/oauth/token")
DEFAULT_LIFETIME = timedelta(hours=1)
SAFETY_MARGIN = timedelta(seconds=60)


class TokenFetchError(UpstreamError):
    """The credential provider did not hand out a usable token."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenProvider:
    def __init__(
        self,
        host: str,
        client_id: str,
        client_secret: str,
        http_factory: Callable[[], httpx.AsyncClient],
        token_paths: Sequence[str] = TOKEN_PATHS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._host = host.rstrip("/")
        self._client_id = client_id
        self._client_secret = client_secret
        self._http_factory = http_factory
        self._token_paths = tuple(token_paths)
        self._clock = clock
        self._credential: Optional[Credential] = None

    @property
    def credential(self) -> Optional[Credential]:
        return self._credential

    @property
    def token_urls(self) -> list:
        return [f"{self._host}/{path}" for path in self._token_paths]

    async def get_token(self) -> str:
        """
        Returns a bearer token, fetching a new one if the cached one expired.

        Raises:
            TokenFetchError: If every candidate endpoint failed.
        """
        cached = self._credential
        if cached is not None and cached.is_valid(self._clock()):
            return cached.token

        credential = await self._fetch()
        self._credential = credential
        return credential.token

    async def _fetch(self) -> Credential:
        form = {
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
        }
        last_error: Optional[TokenFetchError] = None
        async with self._http_factory() as http:
            for url in self.token_urls:
                try:
                    return await self._request_token(http, url, form)
                except TokenFetchError as exc:
                    last_error = exc
        raise last_error or TokenFetchError("OAuth failed")

    async def _request_token(self, http: httpx.AsyncClient, url: str, form: dict) -> Credential:
        try:
            response = await http.post(url, data=form)
        except httpx.RequestError as exc:
            logger.error("OAuth request to %s failed: %s", url, exc)
            raise TokenFetchError(f"OAuth request failed: {exc}", url=url) from exc

        body = truncate_body(response.text)
        if not response.is_success:
            logger.error("OAuth returned %s for %s: %s", response.status_code, url, body)
            raise TokenFetchError(f"OAuth failed ({response.status_code})", url=url,
                                  status_code=response.status_code, body=body)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Malformed OAuth response from %s: %s", url, body)
            raise TokenFetchError("Malformed OAuth response", url=url,
                                  status_code=response.status_code, body=body) from exc

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            logger.error("OAuth response from %s has no access_token", url)
            raise TokenFetchError("OAuth response missing access_token", url=url,
                                  status_code=response.status_code)

        try:
            expires_in = float(payload.get("expires_in") or 0)
        except (TypeError, ValueError):
            expires_in = 0
        lifetime = timedelta(seconds=expires_in) if expires_in > 0 else DEFAULT_LIFETIME

        logger.info("Obtained access token from %s (lifetime %s)", url, lifetime)
        return Credential(token=token, expires_at=self._clock() + lifetime - SAFETY_MARGIN)
