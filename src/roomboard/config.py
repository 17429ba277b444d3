import os
from functools import lru_cache
from typing import Optional

import pytz
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


class Settings(BaseModel):
    """Runtime configuration, read from the environment once per process."""
    libcal_host: str
    client_id: str = ""
    client_secret: str = ""
    room_id: str = ""
    location_id: str = ""
    timezone: str = "America/New_York"
    fallback_open: int = Field(default=8, ge=0, le=23)
    fallback_close: int = Field(default=23, ge=0, le=23)
    port: int = 4000
    http_timeout: float = Field(default=10.0, gt=0)
    static_dir: Optional[str] = None
    log_level: str = "INFO"

    @field_validator("libcal_host", mode="after")
    @classmethod
    def normalize_host(cls, v: str) -> str:
        host = v.strip().rstrip("/")
        if not host.startswith(("http://", "https://")) or host in ("http:", "https:"):
            raise ValueError(f"LIBCAL_HOST must be an http(s) URL, got {v!r}")
        return host

    @field_validator("timezone", mode="after")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        if v not in pytz.all_timezones_set:
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def tz(self):
        return pytz.timezone(self.timezone)


def settings_from_env(environ=None) -> Settings:
    """Builds Settings from environment variables (names match the deployed .env)."""
    env = os.environ if environ is None else environ
    values = {
        "libcal_host": env.get("LIBCAL_HOST", ""),
        "client_id": env.get("LIBCAL_CLIENT_ID", ""),
        "client_secret": env.get("LIBCAL_CLIENT_SECRET", ""),
        "room_id": env.get("ROOM_ID", ""),
        "location_id": env.get("LOCATION_ID", ""),
        "timezone": env.get("TIMEZONE", "America/New_York"),
        "fallback_open": env.get("FALLBACK_OPEN", 8),
        "fallback_close": env.get("FALLBACK_CLOSE", 23),
        "port": env.get("PORT", 4000),
        "http_timeout": env.get("HTTP_TIMEOUT", 10.0),
        "static_dir": env.get("STATIC_DIR") or None,
        "log_level": env.get("LOG_LEVEL", "INFO"),
    }
    return Settings(**values)


@lru_cache()
def get_settings() -> Settings:
    """
    Returns application settings from environment variables.
    Cached to avoid reading env vars on every request.
    """
    load_dotenv()
    return settings_from_env()
