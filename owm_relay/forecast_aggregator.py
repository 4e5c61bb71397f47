"""Fold 3-hourly forecast points into per-day summaries in the location's local time."""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="relay/forecast_aggregator")

DEFAULT_ICON = "01d"
MAX_DAYS = 5
LOCAL_NOON = 12


@dataclass(frozen=True)
class ForecastPoint:
    """One forecast sample."""
    timestamp: int  # unix seconds, UTC
    temp: Optional[float]
    precipitation_probability: Optional[float] = None
    icon: Optional[str] = None


@dataclass(frozen=True)
class DailyAggregate:
    """Summary of one local calendar day."""
    date: dt.date
    temp_min: Optional[float]
    temp_max: Optional[float]
    max_precipitation_probability: float
    representative_icon: str
    first_timestamp: int


def _local_time(timestamp: int, utc_offset_seconds: int) -> dt.datetime:
    """Shift by the offset and read the result as UTC wall-clock fields."""
    return dt.datetime.fromtimestamp(timestamp + utc_offset_seconds, tz=dt.timezone.utc)


def _summarize(day: dt.date, bucket: List[Tuple[ForecastPoint, dt.datetime]]) -> DailyAggregate:
    temps = [p.temp for p, _ in bucket if p.temp is not None]
    pop = max((p.precipitation_probability or 0 for p, _ in bucket), default=0)

    noon = next((p for p, local in bucket if local.hour == LOCAL_NOON), None)
    representative = noon or bucket[len(bucket) // 2][0]

    return DailyAggregate(
        date=day,
        temp_min=min(temps) if temps else None,
        temp_max=max(temps) if temps else None,
        max_precipitation_probability=pop,
        representative_icon=representative.icon or DEFAULT_ICON,
        first_timestamp=bucket[0][0].timestamp,
    )


def aggregate(points: Iterable[ForecastPoint], utc_offset_seconds: int = 0,
              *, max_days: int = MAX_DAYS) -> List[DailyAggregate]:
    """
    Bucket `points` by local calendar day and summarize the first `max_days` days.

    Points are expected in chronological order (the forecast feed provides
    them that way); they are not re-sorted.
    """
    buckets: Dict[dt.date, List[Tuple[ForecastPoint, dt.datetime]]] = {}
    for point in points:
        local = _local_time(point.timestamp, utc_offset_seconds)
        buckets.setdefault(local.date(), []).append((point, local))

    return [_summarize(day, bucket) for day, bucket in list(buckets.items())[:max_days]]


def points_from_forecast(payload: Dict[str, Any]) -> List[ForecastPoint]:
    """Read ForecastPoints out of a 5-day/3-hour forecast response body."""
    points: List[ForecastPoint] = []
    for item in payload.get("list") or []:
        if item.get("dt") is None:
            logger.warning("Skipping forecast entry without dt")
            continue
        weather = item.get("weather") or [{}]
        points.append(ForecastPoint(
            timestamp=int(item["dt"]),
            temp=(item.get("main") or {}).get("temp"),
            precipitation_probability=item.get("pop"),
            icon=weather[0].get("icon"),
        ))
    return points


def utc_offset_from_forecast(payload: Dict[str, Any]) -> int:
    """Return the city's UTC offset in seconds, 0 when the response has none."""
    offset = (payload.get("city") or {}).get("timezone")
    return int(offset) if isinstance(offset, (int, float)) else 0
