import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .alerts import evaluate
from .assistant import ask, build_weather_context
from .cache import TTLCache
from .config import Settings, get_settings
from .errors import UpstreamError, WeatherDashError
from .geocode import geocode_city
from .limits import ai_rate_limit, limiter, use_settings
from .metrics import alerts_emitted
from .schemas import (
    Alert,
    AlertsResponse,
    ChatRequest,
    ChatResponse,
    Coords,
    GeoLocation,
    LocationQuery,
    TimelinesResponse,
)
from .tomorrow import fetch_timelines

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    logger.info("TOMORROW_API_KEY: %s", "loaded" if settings.tomorrow_api_key else "missing")
    logger.info("OPENAI_API_KEY: %s", "loaded" if settings.openai_api_key else "missing")
    if settings.static_dir:
        logger.info("Serving frontend from %s", settings.static_dir)

    yield

    app.state.cache.clear()


def get_cache(request: Request) -> TTLCache:
    return request.app.state.cache


async def resolve_location(
    query: LocationQuery, settings: Settings, cache: TTLCache
) -> Optional[GeoLocation]:
    """
    Coordinates win over a city name. Returns None when the city cannot be
    geocoded; raises 400 when neither was given.
    """
    if query.lat is not None and query.lon is not None:
        return GeoLocation(lat=query.lat, lon=query.lon, name=f"{query.lat},{query.lon}")
    if query.city:
        return await geocode_city(query.city, settings, cache)
    raise HTTPException(status_code=400, detail="Provide city or lat/lon")


def count_alerts(alerts: List[Alert]) -> None:
    for alert in alerts:
        alerts_emitted.labels(alert.code).inc()


@router.get("/health")
async def health(
    request: Request,
    settings: Settings = Depends(get_settings),
):
    return {
        "status": "ok",
        "version": __version__,
        "tomorrow_key": bool(settings.tomorrow_api_key),
        "openai_key": bool(settings.openai_api_key),
        "cache_entries": len(request.app.state.cache),
    }


@router.post(
    "/api/timelines",
    response_model=TimelinesResponse,
    summary="Raw current/hourly/daily timelines for a city or coordinates",
)
async def timelines(
    body: LocationQuery,
    settings: Settings = Depends(get_settings),
    cache: TTLCache = Depends(get_cache),
):
    location = await resolve_location(body, settings, cache)
    if location is None:
        raise HTTPException(status_code=404, detail="Location not found")

    try:
        payload = await fetch_timelines(
            location.lat, location.lon, body.unit_system, settings, cache
        )
    except WeatherDashError as exc:
        logger.error("Timelines fetch failed for %s: %s", location.name, exc)
        raise HTTPException(
            status_code=500,
            detail={"error": "Failed to fetch timelines", "detail": str(exc)},
        ) from exc

    return TimelinesResponse(
        location=location.name,
        coords=Coords(lat=location.lat, lon=location.lon),
        timelines=payload,
    )


@router.post(
    "/api/alerts",
    response_model=AlertsResponse,
    summary="Hazard alerts for the next 12 hours and today",
)
async def alerts(
    body: LocationQuery,
    settings: Settings = Depends(get_settings),
    cache: TTLCache = Depends(get_cache),
):
    location = await resolve_location(body, settings, cache)
    if location is None:
        return AlertsResponse(alerts=[])

    try:
        payload = await fetch_timelines(
            location.lat, location.lon, body.unit_system, settings, cache
        )
    except WeatherDashError as exc:
        logger.error("Alerts failed for %s: %s", location.name, exc)
        raise HTTPException(status_code=500, detail="Server error") from exc

    found = evaluate(payload, body.unit_system)
    count_alerts(found)
    return AlertsResponse(alerts=found)


@router.post(
    "/api/ai/chat",
    response_model=ChatResponse,
    summary="Ask the weather assistant about a location",
)
@limiter.limit(ai_rate_limit)
async def chat(
    request: Request,
    body: ChatRequest,
    settings: Settings = Depends(get_settings),
    cache: TTLCache = Depends(get_cache),
):
    question = (body.question or "").strip()
    if not question:
        raise HTTPException(status_code=400, detail="Missing question")
    if not settings.openai_api_key:
        raise HTTPException(
            status_code=500, detail="Server misconfigured: OPENAI_API_KEY missing"
        )

    location = await resolve_location(body, settings, cache)
    if location is None:
        raise HTTPException(status_code=400, detail="Missing location (city or lat/lon)")

    try:
        payload = await fetch_timelines(
            location.lat, location.lon, body.unit_system, settings, cache
        )
        found = evaluate(payload, body.unit_system)
        count_alerts(found)
        context = build_weather_context(location.name, payload, found)
        answer = await ask(question, context, settings)
    except UpstreamError as exc:
        if exc.service != "openai":
            logger.error("AI chat failed for %s: %s", location.name, exc)
            raise HTTPException(status_code=500, detail="Server error") from exc
        raise HTTPException(
            status_code=502,
            detail={"error": "AI provider error", "status": exc.status, "detail": exc.detail},
        ) from exc
    except WeatherDashError as exc:
        logger.error("AI chat failed for %s: %s", location.name, exc)
        raise HTTPException(status_code=500, detail="Server error") from exc

    return ChatResponse(answer=answer, weatherContext=context)


@router.get("/metrics")
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class FrontendFiles(StaticFiles):
    """Static files that answer unknown paths with index.html."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application. `settings` (default: from the environment) backs
    every handler dependency and the AI rate limit.
    """
    settings = settings or get_settings()
    app = FastAPI(
        title="Weather Dashboard",
        version=__version__,
        description="Proxies timelines, geocoding and chat; derives weather alerts.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings
    app.state.cache = TTLCache(
        default_ttl=settings.cache_ttl_seconds,
        check_period=settings.cache_check_period_seconds,
    )
    use_settings(settings)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    if settings.static_dir:
        static_dir = Path(settings.static_dir)
        if static_dir.is_dir():
            app.mount("/", FrontendFiles(directory=static_dir, html=True), name="static")
        else:
            logger.warning("STATIC_DIR %s is not a directory; frontend not served", static_dir)
    return app


app = create_app()
