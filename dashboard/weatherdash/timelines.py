"""
Read-only helpers over a decoded Tomorrow.io timelines payload:

    {"data": {"timelines": [{"timestep": "1h", "intervals": [...]}, ...]}}

Nothing here raises on a badly shaped payload; missing pieces read as empty.
"""
from typing import Any, Dict, List, Mapping, Optional, TypedDict

TIMESTEP_CURRENT = "current"
TIMESTEP_HOURLY = "1h"
TIMESTEP_DAILY = "1d"

# Fields requested from the provider for every timestep.
TIMELINE_FIELDS = [
    "temperature",
    "temperatureApparent",
    "temperatureMin",
    "temperatureMax",
    "humidity",
    "windSpeed",
    "weatherCode",
    "precipitationProbability",
    "precipitationIntensity",
    "uvIndex",
    "cloudCover",
    "pressureSurfaceLevel",
    "sunriseTime",
    "sunsetTime",
]


class Interval(TypedDict, total=False):
    startTime: str
    values: Dict[str, Any]


class Timeline(TypedDict, total=False):
    timestep: str
    intervals: List[Interval]


def get_intervals(payload: Any, timestep: str) -> List[Interval]:
    """
    Return the intervals of the first timeline with the given timestep,
    or an empty list when there is none.
    """
    data = payload.get("data") if isinstance(payload, Mapping) else None
    timelines = data.get("timelines") if isinstance(data, Mapping) else None
    if not isinstance(timelines, list):
        return []
    for timeline in timelines:
        if isinstance(timeline, Mapping) and timeline.get("timestep") == timestep:
            intervals = timeline.get("intervals")
            return list(intervals) if isinstance(intervals, list) else []
    return []


def first_interval(payload: Any, timestep: str) -> Optional[Interval]:
    intervals = get_intervals(payload, timestep)
    return intervals[0] if intervals else None


def interval_values(interval: Optional[Interval]) -> Dict[str, Any]:
    if not isinstance(interval, Mapping):
        return {}
    values = interval.get("values")
    return dict(values) if isinstance(values, Mapping) else {}


def flatten(intervals: List[Interval], key: str, limit: int) -> List[Dict[str, Any]]:
    """Merge each interval's start time (under `key`) with its values."""
    flat = []
    for interval in intervals[:limit]:
        start = interval.get("startTime") if isinstance(interval, Mapping) else None
        flat.append({key: start, **interval_values(interval)})
    return flat
