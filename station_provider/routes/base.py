from __future__ import annotations

from fastapi import APIRouter, Request

APP_NAME = "station-provider-api"
APP_VERSION = "0.1.0"

router = APIRouter()


@router.get("/health")
def health(request: Request):
    provider = getattr(request.app.state, "provider", None)
    db_open = bool(provider and provider.database.is_open)
    return {"status": "ok" if db_open else "starting", "db_open": db_open}


@router.get("/version")
def version(request: Request):
    provider = getattr(request.app.state, "provider", None)
    out = {"app": APP_NAME, "version": APP_VERSION}
    if provider is not None:
        out["schema_version"] = provider.config.db_version
        out["content_uri"] = provider.content_uri
    return out
