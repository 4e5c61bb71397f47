"""HTTP API for the OpenWeather relay."""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from .descriptors import Category, RequestDescriptor
from .forecast_aggregator import aggregate, points_from_forecast, utc_offset_from_forecast
from .gateway import RelayGateway
from .relay_types import ContentKind, RelayResult
from .sessions import SessionRelay
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="relay/api")

TILE_CACHE_CONTROL = "public, max-age=3600"
CACHE_STATUS_HEADER = "X-Relay-Cache"

router = APIRouter()


class PromptRequest(BaseModel):
    """Incoming assistant prompt payload."""
    prompt: Optional[str] = None


def get_gateway(request: Request) -> RelayGateway:
    """Return the gateway created for this application."""
    return request.app.state.gateway


def get_session_relay(request: Request) -> SessionRelay:
    """Return the assistant session relay created for this application."""
    return request.app.state.session_relay


def to_response(result: RelayResult) -> Response:
    """Shape a relay result into the HTTP response the client sees."""
    headers = {CACHE_STATUS_HEADER: "HIT" if result.from_cache else "MISS"}
    if result.content_kind is ContentKind.IMAGE:
        headers["Cache-Control"] = TILE_CACHE_CONTROL
        return Response(content=result.body, status_code=result.status, media_type="image/png", headers=headers)
    if result.content_kind is ContentKind.TEXT:
        return Response(content=result.body, status_code=result.status, media_type="text/plain", headers=headers)
    return JSONResponse(content=result.body, status_code=result.status, headers=headers)


def _relay(gateway: RelayGateway, category: Category, **params) -> Response:
    return to_response(gateway.handle(RequestDescriptor.build(category, **params)))


# ---------- Geocoding ----------
@router.get("/geocode")
def geocode(q: Optional[str] = None, gateway: RelayGateway = Depends(get_gateway)):
    """Forward geocoding: place name to coordinates."""
    return _relay(gateway, Category.GEOCODE_FORWARD, q=q)


@router.get("/reverse")
def reverse_geocode(lat: Optional[str] = None, lon: Optional[str] = None,
                    gateway: RelayGateway = Depends(get_gateway)):
    """Reverse geocoding: coordinates to place name."""
    return _relay(gateway, Category.GEOCODE_REVERSE, lat=lat, lon=lon)


# ---------- Current & forecast ----------
@router.get("/weather")
def current_weather(city: Optional[str] = None, units: Optional[str] = None, lang: Optional[str] = None,
                    gateway: RelayGateway = Depends(get_gateway)):
    return _relay(gateway, Category.CURRENT_WEATHER, city=city, units=units, lang=lang)


@router.get("/forecast5")
def forecast5(city: Optional[str] = None, units: Optional[str] = None, lang: Optional[str] = None,
              gateway: RelayGateway = Depends(get_gateway)):
    return _relay(gateway, Category.FORECAST, city=city, units=units, lang=lang)


@router.get("/forecast5/daily")
def forecast5_daily(city: Optional[str] = None, units: Optional[str] = None, lang: Optional[str] = None,
                    gateway: RelayGateway = Depends(get_gateway)):
    """Five-day forecast folded into local-day summaries."""
    result = gateway.handle(RequestDescriptor.build(Category.FORECAST, city=city, units=units, lang=lang))
    if not result.ok or not isinstance(result.body, dict):
        return to_response(result)

    offset = utc_offset_from_forecast(result.body)
    days = aggregate(points_from_forecast(result.body), offset)
    payload = {
        "city": result.body.get("city"),
        "timezone_offset": offset,
        "days": [{**asdict(day), "date": day.date.isoformat()} for day in days],
    }
    return to_response(RelayResult(result.status, payload, ContentKind.JSON, from_cache=result.from_cache))


# ---------- One Call 3.0 ----------
@router.get("/onecall")
def one_call(lat: Optional[str] = None, lon: Optional[str] = None, units: Optional[str] = None,
             lang: Optional[str] = None, exclude: Optional[str] = None,
             gateway: RelayGateway = Depends(get_gateway)):
    return _relay(gateway, Category.ONE_CALL, lat=lat, lon=lon, units=units, lang=lang, exclude=exclude)


@router.get("/onecall/timemachine")
def one_call_timemachine(lat: Optional[str] = None, lon: Optional[str] = None, dt: Optional[str] = None,
                         units: Optional[str] = None, lang: Optional[str] = None,
                         gateway: RelayGateway = Depends(get_gateway)):
    """Point-in-time weather; `dt` is a unix timestamp (UTC)."""
    return _relay(gateway, Category.ONE_CALL_TIMEMACHINE, lat=lat, lon=lon, dt=dt, units=units, lang=lang)


@router.get("/onecall/day_summary")
def one_call_day_summary(lat: Optional[str] = None, lon: Optional[str] = None, date: Optional[str] = None,
                         tz: Optional[str] = None, units: Optional[str] = None, lang: Optional[str] = None,
                         gateway: RelayGateway = Depends(get_gateway)):
    """Daily aggregation for `date` (YYYY-MM-DD), optional `tz` as ±HH:MM."""
    return _relay(gateway, Category.ONE_CALL_DAY_SUMMARY, lat=lat, lon=lon, date=date, tz=tz,
                  units=units, lang=lang)


@router.get("/onecall/overview")
def one_call_overview(lat: Optional[str] = None, lon: Optional[str] = None, date: Optional[str] = None,
                      units: Optional[str] = None, gateway: RelayGateway = Depends(get_gateway)):
    return _relay(gateway, Category.ONE_CALL_OVERVIEW, lat=lat, lon=lon, date=date, units=units)


# ---------- Air pollution ----------
@router.get("/air")
def air_pollution(lat: Optional[str] = None, lon: Optional[str] = None,
                  gateway: RelayGateway = Depends(get_gateway)):
    return _relay(gateway, Category.AIR_POLLUTION, lat=lat, lon=lon)


# ---------- Map tiles ----------
@router.get("/tiles/{layer}/{z}/{x}/{y}.png")
def map_tile(layer: str, z: str, x: str, y: str, gateway: RelayGateway = Depends(get_gateway)):
    """Proxy a weather map tile so the credential never reaches the browser."""
    return _relay(gateway, Category.MAP_TILE, layer=layer, z=z, x=x, y=y)


# ---------- Assistant ----------
@router.post("/assistant/session")
def assistant_start(payload: Optional[PromptRequest] = Body(default=None),
                    relay: SessionRelay = Depends(get_session_relay)):
    """Start an assistant conversation."""
    return to_response(relay.start(payload.prompt if payload else None))


@router.post("/assistant/session/{session_id}")
def assistant_resume(session_id: str, payload: Optional[PromptRequest] = Body(default=None),
                     relay: SessionRelay = Depends(get_session_relay)):
    """Continue an assistant conversation with the provider-issued session id."""
    return to_response(relay.resume(session_id, payload.prompt if payload else None))
