"""Shared fixtures for API tests."""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from roomboard.api.deps import get_app_settings, get_http_factory
from roomboard.api.main import create_app


@pytest.fixture
def today_iso(tz):
    return datetime.now(tz).date().isoformat()


@pytest.fixture
def app(settings, libcal, token_provider):
    """
    App wired to the fake booking API. The token provider is placed on
    app.state so the real get_token_provider dependency is exercised.
    """
    app = create_app(settings)
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_http_factory] = lambda: libcal.http_factory()
    app.state.token_provider = token_provider
    yield app
    app.dependency_overrides = {}


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
