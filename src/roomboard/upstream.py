import logging
from typing import Any, Dict, Optional

import httpx


logger = logging.getLogger(__name__)

# Response bodies are cut to this length before they go into logs or errors
BODY_LOG_LIMIT = 800


class UpstreamError(Exception):
    """Transport failure, non-success status or malformed payload from an upstream service."""

    def __init__(self, message: str, url: Optional[str] = None,
                 status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body


def truncate_body(text: Optional[str], limit: int = BODY_LOG_LIMIT) -> str:
    if not text:
        return ""
    return text[:limit]


def build_timeout(seconds: float) -> httpx.Timeout:
    return httpx.Timeout(seconds, connect=min(seconds, 5.0))


class UpstreamClient:
    """Authenticated JSON GETs against the hours and bookings API."""

    def __init__(self, http: httpx.AsyncClient, base_url: str, token: str):
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._token = token

    def url_for(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        GETs ``path`` and decodes the JSON body.

        Raises:
            UpstreamError: On network errors, timeouts, non-2xx statuses or a
                body that is not valid JSON.
        """
        url = self.url_for(path)
        headers = {"Authorization": f"Bearer {self._token}"}
        try:
            response = await self._http.get(url, params=params, headers=headers)
        except httpx.RequestError as exc:
            logger.error("Request to %s failed: %s", url, exc)
            raise UpstreamError(f"Request to {url} failed: {exc}", url=url) from exc

        if not response.is_success:
            body = truncate_body(response.text)
            logger.error("Upstream returned %s for %s: %s", response.status_code, url, body)
            raise UpstreamError(
                f"Upstream HTTP {response.status_code}", url=url,
                status_code=response.status_code, body=body,
            )

        try:
            return response.json()
        except ValueError as exc:
            body = truncate_body(response.text)
            logger.error("Malformed JSON from %s: %s", url, body)
            raise UpstreamError(f"Malformed JSON from {url}", url=url,
                                status_code=response.status_code, body=body) from exc


def make_http_factory(timeout_seconds: float, transport: Optional[httpx.AsyncBaseTransport] = None):
    """Returns a callable producing a fresh AsyncClient with a bounded timeout."""
    timeout = build_timeout(timeout_seconds)

    def factory() -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=transport)

    return factory
