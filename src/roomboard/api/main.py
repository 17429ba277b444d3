import logging
import os
import time

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ..config import Settings, get_settings
from .models import HealthResponse
from .routes import router as api_router


logger = logging.getLogger(__name__)


def create_app(settings: Settings = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Room Board API",
        description="Today's half-hour availability for a single bookable room",
        version="0.1.0",
    )
    app.state.token_provider = None

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(ok=True, ts=int(time.time() * 1000))

    # Mounted last so it does not shadow the API routes
    if settings.static_dir and os.path.isdir(settings.static_dir):
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")

    return app


def run():
    """Console entry point: serve the board API on the configured port."""
    settings = get_settings()
    app = create_app(settings)
    logger.info("Serving on http://0.0.0.0:%s (TZ=%s)", settings.port, settings.timezone)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
