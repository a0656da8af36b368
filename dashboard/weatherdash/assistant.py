import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from .clients import http_client
from .config import Settings
from .errors import ConfigurationError, UpstreamError
from .metrics import upstream_requests
from .schemas import Alert
from .timelines import (
    TIMESTEP_CURRENT,
    TIMESTEP_DAILY,
    TIMESTEP_HOURLY,
    first_interval,
    flatten,
    get_intervals,
    interval_values,
)

logger = logging.getLogger(__name__)

CONTEXT_HOURS = 8
CONTEXT_DAYS = 3

SYSTEM_PROMPT = (
    "You are a brief, practical weather assistant. Answer in {language}. "
    "Recommend concrete actions (for example: bring an umbrella, postpone a "
    "morning run) with a short reason drawn from the weather data provided. "
    "Do not make claims beyond the data."
)


def build_weather_context(
    location: str, payload: Dict[str, Any], alerts: List[Alert]
) -> Dict[str, Any]:
    return {
        "location": location,
        "current": interval_values(first_interval(payload, TIMESTEP_CURRENT)),
        "hourly": flatten(get_intervals(payload, TIMESTEP_HOURLY), "time", CONTEXT_HOURS),
        "daily": flatten(get_intervals(payload, TIMESTEP_DAILY), "date", CONTEXT_DAYS),
        "alerts": [alert.model_dump() for alert in alerts],
    }


def build_messages(
    question: str, context: Dict[str, Any], language: str = "English"
) -> List[Dict[str, str]]:
    user_prompt = (
        f"{question}\n\nWeather data summary (JSON):\n"
        f"{json.dumps(context, separators=(',', ':'), ensure_ascii=False)}"
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT.format(language=language)},
        {"role": "user", "content": user_prompt},
    ]


async def ask(
    question: str,
    context: Dict[str, Any],
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """
    Send the question and weather context to the chat completions endpoint
    and return the assistant's reply text.
    """
    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY missing")

    url = f"{settings.openai_base_url.rstrip('/')}/v1/chat/completions"
    body = {
        "model": settings.openai_model,
        "messages": build_messages(question, context, settings.assistant_language),
        "temperature": 0.1,
        "max_tokens": 300,
    }
    headers = {"Authorization": f"Bearer {settings.openai_api_key}"}
    try:
        async with http_client(settings, client) as http:
            resp = await http.post(url, json=body, headers=headers)
    except httpx.HTTPError as exc:
        upstream_requests.labels("openai", "error").inc()
        raise UpstreamError("openai", None, str(exc)) from exc

    if not resp.is_success:
        logger.error("OpenAI error %s: %s", resp.status_code, resp.text)
        upstream_requests.labels("openai", "error").inc()
        raise UpstreamError("openai", resp.status_code, resp.text)

    upstream_requests.labels("openai", "ok").inc()
    data = resp.json()
    try:
        return data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        return ""
