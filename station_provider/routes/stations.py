from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from ..logs import LogContext
from ..services.station_svc import StationProvider
from ..uris import parse_id, with_appended_id

router = APIRouter()


class StationCreate(BaseModel):
    code: int
    lat: float
    lon: float
    label: str | None = None


class StationUpdate(BaseModel):
    values: dict[str, Any]
    where: str | None = None
    args: list[Any] | None = None


def _provider(request: Request) -> StationProvider:
    return request.app.state.provider


def _log(provider: StationProvider, action: str) -> LogContext:
    return LogContext(action, db_path=provider.database.path)


@router.get("/api/stations/type")
def api_station_type(request: Request, uri: str):
    try:
        return {"uri": uri, "type": _provider(request).get_type(uri)}
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))


@router.get("/api/stations")
def api_station_list(
    request: Request,
    columns: list[str] | None = Query(None),
    where: str | None = None,
    args: list[str] | None = Query(None),
    sort: str | None = None,
):
    provider = _provider(request)
    try:
        with provider.query(provider.content_uri, columns, where, args, sort) as cur:
            return {"uri": cur.notification_uri, "items": cur.to_dicts()}
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/api/stations", status_code=201)
def api_station_create(request: Request, body: StationCreate):
    provider = _provider(request)
    log = _log(provider, "STATION_CREATE")
    log.set_payload(body.model_dump())
    try:
        uri = provider.insert(provider.content_uri, body.model_dump())
        log.set_entity("STATION", uri)
        log.write("OK")
        return {"uri": uri, "id": parse_id(uri)}
    except ValueError as ve:
        log.write("ERROR", str(ve))
        raise HTTPException(status_code=400, detail=str(ve))
    except Exception as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail=str(e))


def _update(provider: StationProvider, uri: str, body: StationUpdate):
    log = _log(provider, "STATION_UPDATE")
    log.set_entity("STATION", uri)
    log.set_payload(body.model_dump())
    try:
        count = provider.update(uri, body.values, body.where, body.args)
        log.set_after({"count": count})
        log.write("OK")
        return {"uri": uri, "count": count}
    except ValueError as ve:
        log.write("ERROR", str(ve))
        raise HTTPException(status_code=400, detail=str(ve))
    except Exception as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/api/stations")
def api_station_update_all(request: Request, body: StationUpdate):
    provider = _provider(request)
    return _update(provider, provider.content_uri, body)


@router.patch("/api/stations/{station_id}")
def api_station_update_one(request: Request, station_id: int, body: StationUpdate):
    provider = _provider(request)
    return _update(provider, with_appended_id(provider.content_uri, station_id), body)


@router.delete("/api/stations")
def api_station_delete(
    request: Request,
    where: str | None = None,
    args: list[str] | None = Query(None),
):
    provider = _provider(request)
    log = _log(provider, "STATION_DELETE")
    log.set_payload({"where": where, "args": args})
    try:
        count = provider.delete(provider.content_uri, where, args)
        log.set_after({"count": count})
        log.write("OK")
        return {"uri": provider.content_uri, "count": count}
    except ValueError as ve:
        log.write("ERROR", str(ve))
        raise HTTPException(status_code=400, detail=str(ve))
    except Exception as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail=str(e))
