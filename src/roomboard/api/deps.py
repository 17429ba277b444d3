from fastapi import Depends, Request

from ..auth import TokenProvider
from ..config import Settings, get_settings
from ..upstream import make_http_factory


# --- Settings Dependency ---

def get_app_settings() -> Settings:
    """Settings dependency; overridden in tests."""
    return get_settings()


# --- Token Provider Dependency ---

def build_token_provider(settings: Settings) -> TokenProvider:
    return TokenProvider(
        host=settings.libcal_host,
        client_id=settings.client_id,
        client_secret=settings.client_secret,
        http_factory=make_http_factory(settings.http_timeout),
    )


def get_token_provider(request: Request, settings: Settings = Depends(get_app_settings)) -> TokenProvider:
    """
    Returns the app-wide TokenProvider, creating it on first use.
    One instance per app so the cached credential is shared across requests.
    """
    provider = getattr(request.app.state, "token_provider", None)
    if provider is None:
        provider = build_token_provider(settings)
        request.app.state.token_provider = provider
    return provider


# --- Outbound HTTP Dependency ---

def get_http_factory(settings: Settings = Depends(get_app_settings)):
    """Factory for the AsyncClient used for hours and bookings calls."""
    return make_http_factory(settings.http_timeout)
