import logging
from typing import Any, Dict, Optional

import httpx

from .cache import MISSING, TTLCache
from .clients import http_client
from .config import Settings
from .errors import ConfigurationError, UpstreamError
from .metrics import upstream_requests
from .timelines import TIMELINE_FIELDS

logger = logging.getLogger(__name__)

TIMESTEPS = "current,1h,1d"


async def fetch_timelines(
    lat: float,
    lon: float,
    units: str,
    settings: Settings,
    cache: TTLCache,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """
    Fetch current/hourly/daily timelines from Tomorrow.io, cached per
    location and unit system.
    """
    units = "metric" if units == "metric" else "imperial"
    cache_key = f"timelines:{lat},{lon}:{units}"
    cached = cache.get(cache_key)
    if cached is not MISSING and cached:
        return cached

    if not settings.tomorrow_api_key:
        raise ConfigurationError("TOMORROW_API_KEY missing")

    url = f"{settings.tomorrow_base_url.rstrip('/')}/v4/timelines"
    params = {
        "location": f"{lat},{lon}",
        "fields": ",".join(TIMELINE_FIELDS),
        "timesteps": TIMESTEPS,
        "units": units,
        "timezone": settings.timelines_timezone,
        "apikey": settings.tomorrow_api_key,
    }
    try:
        async with http_client(settings, client) as http:
            resp = await http.get(url, params=params)
    except httpx.HTTPError as exc:
        upstream_requests.labels("tomorrow", "error").inc()
        raise UpstreamError("tomorrow", None, str(exc)) from exc

    if not resp.is_success:
        logger.warning("Tomorrow timelines error %s for %s,%s", resp.status_code, lat, lon)
        upstream_requests.labels("tomorrow", "error").inc()
        raise UpstreamError("tomorrow", resp.status_code, resp.text)
    try:
        data = resp.json()
    except ValueError as exc:
        upstream_requests.labels("tomorrow", "error").inc()
        raise UpstreamError("tomorrow", resp.status_code, "invalid JSON body") from exc

    upstream_requests.labels("tomorrow", "ok").inc()
    cache.set(cache_key, data, settings.timelines_ttl_seconds)
    return data
