import httpx
import pytest
from fastapi.testclient import TestClient

from krishi import http as krishi_http
from krishi.config import settings as app_settings
from krishi.main import app

INTEGRATION_KEYS = (
    "OPENAI_API_KEY",
    "OPENWEATHER_API_KEY",
    "MARKET_API_KEY",
    "MARKET_API_URL",
    "ROBOFLOW_API_KEY",
    "ROBOFLOW_MODEL",
)


class Upstream:
    """Stand-in for every third-party API; tests assign `handler`."""

    def __init__(self):
        self.requests = []
        self.handler = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is None:
            raise AssertionError(f"unexpected upstream call: {request.method} {request.url}")
        return self.handler(request)


@pytest.fixture
def settings(monkeypatch):
    """App settings with every integration switched off."""
    for key in INTEGRATION_KEYS:
        monkeypatch.setattr(app_settings, key, "")
    return app_settings


@pytest.fixture
def upstream(monkeypatch):
    up = Upstream()

    async def init_mock_http():
        krishi_http.client = httpx.AsyncClient(transport=httpx.MockTransport(up))

    monkeypatch.setattr("krishi.main.init_http", init_mock_http)
    return up


@pytest.fixture
def client(settings, upstream):
    with TestClient(app) as c:
        yield c
