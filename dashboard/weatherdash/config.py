from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 3000

    tomorrow_api_key: str | None = None
    tomorrow_base_url: str = "https://api.tomorrow.io"
    timelines_timezone: str = "Asia/Jakarta"
    timelines_ttl_seconds: int = 45

    geocode_base_url: str = "https://nominatim.openstreetmap.org"
    geocode_user_agent: str = "WeatherDash/0.1 (ops@weatherdash.local)"
    geocode_ttl_seconds: int = 3600
    geocode_miss_ttl_seconds: int = 60

    cache_ttl_seconds: int = 60
    cache_check_period_seconds: int = 600
    http_timeout_seconds: float = 10.0

    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com"
    openai_model: str = "gpt-4o-mini"
    assistant_language: str = "English"
    ai_rate_limit: str = "30/minute"

    allowed_origins: List[str] = ["*"]
    static_dir: str | None = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    return Settings()
