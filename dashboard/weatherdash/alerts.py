import logging
import math
from typing import Any, Dict, List, Optional

from .schemas import Alert
from .timelines import (
    TIMESTEP_CURRENT,
    TIMESTEP_DAILY,
    TIMESTEP_HOURLY,
    Interval,
    first_interval,
    get_intervals,
    interval_values,
)

logger = logging.getLogger(__name__)

# Hourly lookahead used for wind and rain detection.
WINDOW_HOURS = 12

WIND_SPEED_MIN = 15
RAIN_INTENSITY_MIN = 6
RAIN_PROBABILITY_MIN = 70
HEAT_TEMP_MIN = 35
FREEZE_TEMP_MAX = 2
UV_INDEX_MIN = 8

WIND_UNITS = {"metric": "m/s", "imperial": "mph"}
RAIN_UNITS = {"metric": "mm/h", "imperial": "in/h"}


def _round(value: float) -> int:
    # Half-up: 2.5 -> 3, -2.5 -> -2.
    return math.floor(value + 0.5)


def _fmt(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _reading(interval: Interval, field: str) -> float:
    """Value of `field`, with a missing reading counted as 0."""
    value = (interval.get("values") or {}).get(field)
    return 0 if value is None else value


def _strong_wind(interval: Interval, units: str) -> Alert:
    speed = _reading(interval, "windSpeed")
    return Alert(
        code="strong_wind",
        level="warning",
        title="Strong Wind",
        message=f"Wind ~{_round(speed)} {WIND_UNITS[units]} at {interval.get('startTime')}",
    )


def _heavy_rain(interval: Interval, units: str) -> Alert:
    precip = _reading(interval, "precipitationIntensity")
    pop = _reading(interval, "precipitationProbability")
    return Alert(
        code="heavy_rain",
        level="danger",
        title="Heavy Rain",
        message=(
            f"Heavy rain ~{_fmt(precip)} {RAIN_UNITS[units]} "
            f"(POP {_round(pop)}%) at {interval.get('startTime')}"
        ),
    )


def _possible_rain(interval: Interval) -> Alert:
    pop = _reading(interval, "precipitationProbability")
    return Alert(
        code="possible_rain",
        level="notice",
        title="High Chance of Rain",
        message=f"{_round(pop)}% chance of rain within the next {WINDOW_HOURS} hours.",
    )


def _daily_alerts(today: Dict[str, Any]) -> List[Alert]:
    alerts = []
    temp_max = today.get("temperatureMax")
    if temp_max is not None and temp_max >= HEAT_TEMP_MIN:
        alerts.append(
            Alert(
                code="heat",
                level="warning",
                title="Heat Wave",
                message=f"Max temperature {_round(temp_max)}° today.",
            )
        )
    temp_min = today.get("temperatureMin")
    if temp_min is not None and temp_min <= FREEZE_TEMP_MAX:
        alerts.append(
            Alert(
                code="freeze",
                level="warning",
                title="Low Temperature",
                message=f"Min temperature {_round(temp_min)}° today.",
            )
        )
    return alerts


def evaluate(payload: Any, units: str = "metric") -> List[Alert]:
    """
    Derive hazard alerts from a timelines payload.

    Emission order is fixed: strong_wind, heat, freeze, one rain alert
    (heavy_rain beats possible_rain), high_uv. `units` only picks the unit
    labels used in messages. A malformed payload never raises; whatever was
    collected before the fault is returned.
    """
    units = "metric" if units == "metric" else "imperial"
    alerts: List[Alert] = []
    try:
        window = get_intervals(payload, TIMESTEP_HOURLY)[:WINDOW_HOURS]
        current = interval_values(first_interval(payload, TIMESTEP_CURRENT))
        daily = get_intervals(payload, TIMESTEP_DAILY)
        today = interval_values(daily[0]) if daily else {}

        # One pass over the window; first match wins for every accumulator.
        heavy_rain: Optional[Interval] = None
        high_pop: Optional[Interval] = None
        windy: Optional[Interval] = None
        for interval in window:
            precip = _reading(interval, "precipitationIntensity")
            pop = _reading(interval, "precipitationProbability")
            wind = _reading(interval, "windSpeed")
            if heavy_rain is None and precip >= RAIN_INTENSITY_MIN:
                heavy_rain = interval
            if high_pop is None and pop >= RAIN_PROBABILITY_MIN:
                high_pop = interval
            if windy is None and wind >= WIND_SPEED_MIN:
                windy = interval
                alerts.append(_strong_wind(windy, units))

        if today:
            alerts.extend(_daily_alerts(today))

        if heavy_rain is not None:
            alerts.append(_heavy_rain(heavy_rain, units))
        elif high_pop is not None:
            alerts.append(_possible_rain(high_pop))

        uv = current.get("uvIndex")
        if uv is not None and uv >= UV_INDEX_MIN:
            alerts.append(
                Alert(
                    code="high_uv",
                    level="notice",
                    title="High UV",
                    message=f"UV index {_fmt(uv)}. Use sunscreen.",
                )
            )
    except Exception as exc:
        logger.warning(
            "Alert evaluation stopped on malformed input (%d alerts kept): %s",
            len(alerts),
            exc,
        )
    return alerts
