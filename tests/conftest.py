"""Shared fixtures: settings and a fake room-booking API behind httpx.MockTransport."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
import pytest

from roomboard.auth import TokenProvider
from roomboard.config import Settings
from roomboard.upstream import UpstreamClient, make_http_factory


HOST = "https://libcal.example.edu"


def hours_payload(iso_day: str, status: str = "open", hours: Optional[List[Dict[str, str]]] = None) -> list:
    """Hours response in the tenant's shape for a single date."""
    return [{"lid": 7, "name": "Main Library", "dates": {iso_day: {"status": status, "hours": hours}}}]


class FakeLibCal:
    """
    Canned token, hours and bookings endpoints.

    Tests tweak the attributes, then hand ``http_factory`` to the code under test.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.tokens_issued = 0
        self.token_status: Dict[str, int] = {}
        self.token_body: Optional[Any] = None
        self.hours: Any = []
        self.hours_status = 200
        self.hours_raises = False
        self.bookings: Dict[str, Any] = {}
        self.bookings_status = 200

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.endswith("/oauth/token"):
            status = self.token_status.get(path, 200)
            if status != 200:
                return httpx.Response(status, text="invalid_client")
            if self.token_body is not None:
                return httpx.Response(200, json=self.token_body)
            self.tokens_issued += 1
            return httpx.Response(200, json={"access_token": f"tok-{self.tokens_issued}", "expires_in": 3600})

        if "/api/1.1/hours/" in path:
            if self.hours_raises:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(self.hours_status, json=self.hours)

        if path.endswith("/api/1.1/space/bookings"):
            if self.bookings_status != 200:
                return httpx.Response(self.bookings_status, text="upstream exploded")
            return httpx.Response(200, json=self.bookings.get(request.url.params["date"], []))

        return httpx.Response(404, text="not found")

    def requests_to(self, fragment: str) -> List[httpx.Request]:
        return [r for r in self.requests if fragment in r.url.path]

    def http_factory(self):
        return make_http_factory(5.0, transport=httpx.MockTransport(self.handler))


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def settings():
    return Settings(
        libcal_host=HOST,
        client_id="client-id",
        client_secret="client-secret",
        room_id="42",
        location_id="7",
        timezone="America/New_York",
        fallback_open=8,
        fallback_close=23,
    )


@pytest.fixture
def tz(settings):
    return settings.tz


@pytest.fixture
def libcal():
    return FakeLibCal()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 10, 19, 14, 0, tzinfo=timezone.utc))


@pytest.fixture
def token_provider(settings, libcal, clock):
    return TokenProvider(
        host=settings.libcal_host,
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        http_factory=libcal.http_factory(),
        clock=clock,
    )


@pytest.fixture
def upstream():
    """Builds an UpstreamClient bound to the fake API; use inside an event loop."""
    def _make(http: httpx.AsyncClient, token: str = "tok-test") -> UpstreamClient:
        return UpstreamClient(http, HOST, token)
    return _make


@pytest.fixture
def make_hours():
    return hours_payload
