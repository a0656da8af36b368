"""
Shared fixtures: timeline payload builder, test settings and an API client.
"""

import pytest
from fastapi.testclient import TestClient

from weatherdash.config import Settings
from weatherdash.limits import limiter
from weatherdash.main import create_app


def build_payload(hourly=None, current=None, daily=None):
    """Build a provider payload from lists of value dicts."""
    timelines = []
    if current is not None:
        timelines.append(
            {
                "timestep": "current",
                "intervals": [{"startTime": "2025-01-15T08:00:00+07:00", "values": current}],
            }
        )
    if hourly is not None:
        timelines.append(
            {
                "timestep": "1h",
                "intervals": [
                    {"startTime": f"2025-01-15T{hour:02d}:00:00+07:00", "values": values}
                    for hour, values in enumerate(hourly)
                ],
            }
        )
    if daily is not None:
        timelines.append(
            {
                "timestep": "1d",
                "intervals": [
                    {"startTime": f"2025-01-{15 + day}T06:00:00+07:00", "values": values}
                    for day, values in enumerate(daily)
                ],
            }
        )
    return {"data": {"timelines": timelines}}


@pytest.fixture
def make_payload():
    return build_payload


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        tomorrow_api_key="tomorrow-test-key",
        openai_api_key="openai-test-key",
        static_dir=None,
    )


@pytest.fixture
def app(settings):
    limiter.reset()
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
