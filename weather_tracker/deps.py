# ABOUTME: Dependency container for the tracker using Pydantic BaseModel.
# ABOUTME: Holds the httpx.AsyncClient and API key shared by the geocoding and weather clients.

import httpx
from pydantic import BaseModel, ConfigDict

from weather_tracker import config


class TrackerDeps(BaseModel):
    """Dependencies injected into the API clients."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    http_client: httpx.AsyncClient
    api_key: str = ""


def create_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Create an httpx client for the OpenWeather API.

    Requests are attempted once; the timeout is whatever the transport enforces.
    """
    return httpx.AsyncClient(timeout=config.HTTP_TIMEOUT if timeout is None else timeout)


def create_deps() -> TrackerDeps:
    return TrackerDeps(http_client=create_http_client(), api_key=config.OPENWEATHER_API_KEY)
