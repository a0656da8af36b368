from typing import Optional

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import Settings, get_settings

limiter = Limiter(key_func=get_remote_address)

# Settings of the most recently created app; None falls back to the environment.
_settings: Optional[Settings] = None


def use_settings(settings: Optional[Settings]) -> None:
    global _settings
    _settings = settings


def ai_rate_limit() -> str:
    return (_settings or get_settings()).ai_rate_limit
