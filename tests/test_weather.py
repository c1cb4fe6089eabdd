"""
Tests for POST /api/weather.

Covers coordinate validation, the sample-data path when no OpenWeather key
is set, the OpenWeather path (shape + alerts), and upstream error mapping.
"""
import httpx
import pytest

from krishi.tools.weather import build_alerts


def _openweather(current=None, pop=0.2, status=200):
    current = current or {
        "name": "Pune",
        "main": {"temp": 28.46, "humidity": 71},
        "weather": [{"description": "scattered clouds"}],
    }

    def handler(request: httpx.Request) -> httpx.Response:
        if status != 200:
            return httpx.Response(status, json={"cod": status, "message": "error"})
        if request.url.path.endswith("/forecast"):
            return httpx.Response(200, json={"list": [{"pop": pop}]})
        return httpx.Response(200, json=current)

    return handler


@pytest.mark.parametrize("body", [
    {"lat": 91, "lon": 10},
    {"lat": -90.5, "lon": 10},
    {"lat": 10, "lon": 180.01},
    {"lat": 10, "lon": -181},
])
def test_out_of_range_coordinates_rejected(client, body):
    resp = client.post("/api/weather", json=body)
    assert resp.status_code == 400
    assert "between" in resp.json()["message"]


@pytest.mark.parametrize("body", [
    {"lat": 18.5},
    {"lon": 73.8},
    {"lat": "18.5", "lon": 73.8},
    {"lat": True, "lon": 73.8},
])
def test_missing_or_non_numeric_coordinates_rejected(client, body):
    resp = client.post("/api/weather", json=body)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request"


def test_sample_data_without_api_key(client, upstream):
    resp = client.post("/api/weather", json={"lat": 18.52, "lon": 73.85})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["source"] == "sample"
    assert body["data"]["location"] == "Sample City"
    assert body["data"]["alerts"] == []
    assert upstream.requests == []


def test_zero_coordinates_are_valid(client):
    resp = client.post("/api/weather", json={"lat": 0, "lon": 0})
    assert resp.status_code == 200


def test_openweather_response_is_reshaped(client, settings, upstream):
    settings.OPENWEATHER_API_KEY = "ow-key"
    upstream.handler = _openweather(pop=0.84)

    resp = client.post("/api/weather", json={"lat": 18.52, "lon": 73.85})
    assert resp.status_code == 200
    body = resp.json()
    assert body["source"] == "openweather"
    data = body["data"]
    assert data["location"] == "Pune"
    assert data["temp"] == 28.5
    assert data["humidity"] == 71
    assert data["rainProbability"] == 84
    assert [a["event"] for a in data["alerts"]] == ["High Rain Probability"]

    params = upstream.requests[0].url.params
    assert params["appid"] == "ow-key"
    assert params["units"] == "metric"


@pytest.mark.parametrize("status, expected", [
    (401, 500),
    (429, 429),
    (404, 404),
    (400, 400),
])
def test_upstream_status_mapping(client, settings, upstream, status, expected):
    settings.OPENWEATHER_API_KEY = "ow-key"
    upstream.handler = _openweather(status=status)
    resp = client.post("/api/weather", json={"lat": 18.52, "lon": 73.85})
    assert resp.status_code == expected


def test_unreachable_upstream_returns_503(client, settings, upstream):
    settings.OPENWEATHER_API_KEY = "ow-key"

    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = handler
    resp = client.post("/api/weather", json={"lat": 18.52, "lon": 73.85})
    assert resp.status_code == 503
    assert resp.json()["error"] == "Service unavailable"


def test_upstream_timeout_returns_408(client, settings, upstream):
    settings.OPENWEATHER_API_KEY = "ow-key"

    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    upstream.handler = handler
    resp = client.post("/api/weather", json={"lat": 18.52, "lon": 73.85})
    assert resp.status_code == 408


def test_malformed_upstream_payload_returns_500(client, settings, upstream):
    settings.OPENWEATHER_API_KEY = "ow-key"
    upstream.handler = _openweather(current={"name": "Nowhere"})
    resp = client.post("/api/weather", json={"lat": 18.52, "lon": 73.85})
    assert resp.status_code == 500


def test_get_not_allowed(client):
    resp = client.get("/api/weather")
    assert resp.status_code == 405
    assert resp.json()["error"] == "Method not allowed"


def test_alert_rules():
    events = lambda *a: [x["event"] for x in build_alerts(*a)]
    assert events(36, "light rain", 10) == ["Heavy Rain Alert", "Heatwave Alert"]
    assert events(9.9, "clear sky", 71) == ["Cold Wave Alert", "High Rain Probability"]
    assert events(35, "clear sky", 70) == []
    assert events(10, "haze", 0) == []


def test_forecast_failure_alone_is_mapped(client, settings, upstream):
    settings.OPENWEATHER_API_KEY = "ow-key"
    ok = _openweather()

    def handler(request):
        if request.url.path.endswith("/forecast"):
            return httpx.Response(429, json={"cod": 429})
        return ok(request)

    upstream.handler = handler
    resp = client.post("/api/weather", json={"lat": 18.52, "lon": 73.85})
    assert resp.status_code == 429


def test_current_failure_reported_when_both_calls_fail(client, settings, upstream):
    settings.OPENWEATHER_API_KEY = "ow-key"

    def handler(request):
        if request.url.path.endswith("/forecast"):
            raise httpx.ReadTimeout("timed out", request=request)
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = handler
    resp = client.post("/api/weather", json={"lat": 18.52, "lon": 73.85})
    assert resp.status_code == 503
