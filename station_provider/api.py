"""
FastAPI app entry point aggregating per-domain routers under station_provider/routes.
Keep as `uvicorn station_provider.api:app`.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI

from .config import ProviderConfig, load_config
from .logs import ensure_log_schema
from .routes.base import APP_NAME, APP_VERSION
from .services.station_svc import StationProvider

logger = logging.getLogger(__name__)


def create_app(config: ProviderConfig | None = None) -> FastAPI:
    app = FastAPI(title=APP_NAME, version=APP_VERSION)

    @app.on_event("startup")
    def on_startup():
        cfg = config or load_config()
        provider = StationProvider.from_config(cfg)
        provider.database.open()
        ensure_log_schema(cfg.db_path)
        app.state.provider = provider
        logger.info("station provider ready at %s (%s)", cfg.content_uri, cfg.db_path)

    @app.on_event("shutdown")
    def on_shutdown():
        provider = getattr(app.state, "provider", None)
        if provider is not None:
            provider.close()

    # Include routers (split by business domain)
    from .routes import base as base_routes
    from .routes import stations as stations_routes
    from .routes import logs as logs_routes

    app.include_router(base_routes.router)
    app.include_router(stations_routes.router)
    app.include_router(logs_routes.router)
    return app


app = create_app()
