"""Request categories, their parameter contracts, and normalized request descriptors."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from owm_relay.errors import ValidationError
from owm_relay.relay_types import ContentKind


class Category(str, Enum):
    """Every kind of request the gateway relays."""
    GEOCODE_FORWARD = "geocode-forward"
    GEOCODE_REVERSE = "geocode-reverse"
    CURRENT_WEATHER = "current-weather"
    FORECAST = "forecast"
    ONE_CALL = "one-call"
    AIR_POLLUTION = "air-pollution"
    ONE_CALL_TIMEMACHINE = "one-call-timemachine"
    ONE_CALL_DAY_SUMMARY = "one-call-day-summary"
    ONE_CALL_OVERVIEW = "one-call-overview"
    MAP_TILE = "map-tile"


ALLOWED_TILE_LAYERS = frozenset({
    "clouds_new",
    "precipitation_new",
    "pressure_new",
    "wind_new",
    "temp_new",
})

# ASCII digits only; str.isdigit() also accepts superscripts and other scripts
_TILE_COORDINATE = re.compile(r"[0-9]+")

TILE_HOST = "tile"
API_HOST = "api"


@dataclass(frozen=True)
class CategorySpec:
    """Static contract for one category: parameters, upstream target, freshness."""
    path: str
    required: Tuple[str, ...]
    ttl_seconds: int
    # optional parameter -> default (None means omitted when absent)
    optional: Mapping[str, Optional[str]] = field(default_factory=dict)
    # constant parameters always sent upstream, never part of the cache key
    fixed: Mapping[str, str] = field(default_factory=dict)
    # inbound name -> upstream name
    renames: Mapping[str, str] = field(default_factory=dict)
    host: str = API_HOST
    content_kind: ContentKind = ContentKind.JSON

    @property
    def accepted(self) -> Tuple[str, ...]:
        return self.required + tuple(self.optional)


_WEATHER_OPTIONAL = {"units": "metric", "lang": None}
_UNITS_LANG = {"units": None, "lang": None}

CATEGORY_SPECS: Dict[Category, CategorySpec] = {
    Category.GEOCODE_FORWARD: CategorySpec(
        path="/geo/1.0/direct", required=("q",), fixed={"limit": "5"}, ttl_seconds=3600,
    ),
    Category.GEOCODE_REVERSE: CategorySpec(
        path="/geo/1.0/reverse", required=("lat", "lon"), fixed={"limit": "1"}, ttl_seconds=3600,
    ),
    Category.CURRENT_WEATHER: CategorySpec(
        path="/data/2.5/weather", required=("city",), optional=_WEATHER_OPTIONAL,
        renames={"city": "q"}, ttl_seconds=60,
    ),
    Category.FORECAST: CategorySpec(
        path="/data/2.5/forecast", required=("city",), optional=_WEATHER_OPTIONAL,
        renames={"city": "q"}, ttl_seconds=120,
    ),
    Category.ONE_CALL: CategorySpec(
        path="/data/3.0/onecall", required=("lat", "lon"),
        optional={"units": "metric", "lang": None, "exclude": "minutely"}, ttl_seconds=120,
    ),
    Category.AIR_POLLUTION: CategorySpec(
        path="/data/2.5/air_pollution", required=("lat", "lon"), ttl_seconds=600,
    ),
    Category.ONE_CALL_TIMEMACHINE: CategorySpec(
        path="/data/3.0/onecall/timemachine", required=("lat", "lon", "dt"),
        optional=_UNITS_LANG, ttl_seconds=300,
    ),
    Category.ONE_CALL_DAY_SUMMARY: CategorySpec(
        path="/data/3.0/onecall/day_summary", required=("lat", "lon", "date"),
        optional={"tz": None, **_UNITS_LANG}, ttl_seconds=600,
    ),
    Category.ONE_CALL_OVERVIEW: CategorySpec(
        path="/data/3.0/onecall/overview", required=("lat", "lon"),
        optional={"date": None, "units": None}, ttl_seconds=300,
    ),
    Category.MAP_TILE: CategorySpec(
        path="/map/{layer}/{z}/{x}/{y}.png", required=("layer", "z", "x", "y"),
        ttl_seconds=3600, host=TILE_HOST, content_kind=ContentKind.IMAGE,
    ),
}


def _missing_message(names: Tuple[str, ...]) -> str:
    if len(names) == 1:
        return f"{names[0]} required"
    if names == ("lat", "lon"):
        return "lat/lon required"
    return f"{', '.join(names)} required"


@dataclass(frozen=True)
class RequestDescriptor:
    """Normalized inbound request: a category plus its recognized parameters."""
    category: Category
    params: Mapping[str, str] = field(default_factory=dict)

    @property
    def spec(self) -> CategorySpec:
        return CATEGORY_SPECS[self.category]

    @classmethod
    def build(cls, category: Category, **raw) -> "RequestDescriptor":
        """Strip values, drop unknown or empty ones, and apply category defaults."""
        spec = CATEGORY_SPECS[category]
        params: Dict[str, str] = {}
        for name in spec.accepted:
            value = raw.get(name)
            value = "" if value is None else str(value).strip()
            if not value:
                value = spec.optional.get(name) or ""
            if value:
                params[name] = value
        return cls(category=category, params=params)

    def validate(self) -> None:
        """Raise ValidationError unless every required parameter is present and sane."""
        spec = self.spec
        if not all(self.params.get(name) for name in spec.required):
            raise ValidationError(_missing_message(spec.required))
        if self.category is Category.MAP_TILE:
            if self.params["layer"] not in ALLOWED_TILE_LAYERS:
                raise ValidationError("invalid layer")
            if not all(_TILE_COORDINATE.fullmatch(self.params[axis]) for axis in ("z", "x", "y")):
                raise ValidationError("z, x, y must be non-negative integers")

    def cache_key(self) -> str:
        """Stable key: category plus sorted parameters (credential never included)."""
        return f"{self.category.value}?{urlencode(sorted(self.params.items()))}"

    def upstream_url(self, api_base_url: str, tile_base_url: str) -> str:
        spec = self.spec
        base = tile_base_url if spec.host == TILE_HOST else api_base_url
        return base + spec.path.format(**self.params)

    def upstream_params(self) -> Dict[str, str]:
        """Query parameters for the upstream call, minus the credential."""
        spec = self.spec
        if spec.host == TILE_HOST:
            return {}
        query = {spec.renames.get(name, name): value for name, value in self.params.items()}
        query.update(spec.fixed)
        return query
