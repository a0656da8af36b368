import logging
from typing import Optional

import httpx

from .cache import MISSING, TTLCache
from .clients import http_client
from .config import Settings
from .metrics import upstream_requests
from .schemas import GeoLocation

logger = logging.getLogger(__name__)


async def geocode_city(
    query: str,
    settings: Settings,
    cache: TTLCache,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[GeoLocation]:
    """
    Resolve a free-text place name with Nominatim. Returns None when nothing
    matches or the lookup fails; misses are cached briefly.
    """
    cache_key = f"geo:{query}"
    cached = cache.get(cache_key)
    if cached is not MISSING:
        return cached

    url = f"{settings.geocode_base_url.rstrip('/')}/search"
    params = {"q": query, "format": "json", "limit": 1, "addressdetails": 0}
    headers = {"User-Agent": settings.geocode_user_agent}
    try:
        async with http_client(settings, client) as http:
            resp = await http.get(url, params=params, headers=headers)
        if not resp.is_success:
            logger.warning("Geocode lookup for %r returned %s", query, resp.status_code)
            upstream_requests.labels("nominatim", "error").inc()
            cache.set(cache_key, None, settings.geocode_miss_ttl_seconds)
            return None
        results = resp.json()
        if not isinstance(results, list) or not results:
            upstream_requests.labels("nominatim", "empty").inc()
            cache.set(cache_key, None, settings.geocode_miss_ttl_seconds)
            return None
        first = results[0]
        location = GeoLocation(
            lat=float(first["lat"]),
            lon=float(first["lon"]),
            name=first.get("display_name") or query,
        )
    except Exception as exc:  # network, decode and shape errors all count as a miss
        logger.warning("Geocode lookup for %r failed: %s", query, exc)
        upstream_requests.labels("nominatim", "error").inc()
        cache.set(cache_key, None, settings.geocode_miss_ttl_seconds)
        return None

    upstream_requests.labels("nominatim", "ok").inc()
    cache.set(cache_key, location, settings.geocode_ttl_seconds)
    return location
