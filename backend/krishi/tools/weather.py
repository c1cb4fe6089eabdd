# backend/krishi/tools/weather.py
import asyncio
import logging
import time
from typing import Dict, Any, List

from krishi.config import settings
from krishi.http import get_http_client
from krishi.utils.numbers import round_half_up

log = logging.getLogger("krishimitra.weather")

def t(): return time.perf_counter()

SAMPLE_WEATHER: Dict[str, Any] = {
    "location": "Sample City",
    "temp": 25.5,
    "description": "clear sky",
    "humidity": 65,
    "rainProbability": 15,
    "alerts": [],
}

HEAT_THRESHOLD_C = 35
COLD_THRESHOLD_C = 10
HIGH_RAIN_PROBABILITY_PCT = 70


def sample_weather() -> Dict[str, Any]:
    return {**SAMPLE_WEATHER, "alerts": []}


def build_alerts(temp: float, description: str, rain_probability: int) -> List[Dict[str, str]]:
    """Farm alerts from simple thresholds on current conditions."""
    alerts: List[Dict[str, str]] = []

    if "rain" in (description or "").lower():
        alerts.append({
            "event": "Heavy Rain Alert",
            "description": "Heavy rainfall expected. Consider postponing outdoor farming activities and ensure proper drainage.",
            "severity": "moderate",
        })

    if temp > HEAT_THRESHOLD_C:
        alerts.append({
            "event": "Heatwave Alert",
            "description": "Extreme heat conditions detected. Ensure adequate irrigation and protect crops from heat stress.",
            "severity": "high",
        })
    elif temp < COLD_THRESHOLD_C:
        alerts.append({
            "event": "Cold Wave Alert",
            "description": "Cold weather conditions detected. Consider protecting sensitive crops and adjusting irrigation schedules.",
            "severity": "moderate",
        })

    if rain_probability > HIGH_RAIN_PROBABILITY_PCT:
        alerts.append({
            "event": "High Rain Probability",
            "description": f"High probability of rain ({rain_probability}%). Plan irrigation and harvesting activities accordingly.",
            "severity": "low",
        })

    return alerts


def _rain_probability(forecast: Dict[str, Any]) -> int:
    # `pop` is 0..1 on the first 3-hour slot
    slots = forecast.get("list") or []
    if not slots:
        return 0
    pop = slots[0].get("pop") or 0.0
    return max(0, min(100, int(round_half_up(float(pop) * 100))))


def shape_current(current: Dict[str, Any], rain_probability: int) -> Dict[str, Any]:
    """Reduce OpenWeather's current-conditions payload to our WeatherData dict."""
    main = current.get("main") or {}
    conditions = current.get("weather") or [{}]
    temp = round_half_up(float(main["temp"]), 1)
    description = conditions[0].get("description") or ""
    return {
        "location": current.get("name") or "Unknown location",
        "temp": temp,
        "description": description,
        "humidity": main.get("humidity", 0),
        "rainProbability": rain_probability,
        "alerts": build_alerts(temp, description, rain_probability),
    }


async def current_weather(lat: float, lon: float) -> Dict[str, Any]:
    """
    Current conditions + next-slot rain probability from OpenWeather.
    Raises httpx errors untouched; the router maps them to status codes.
    """
    start = t()
    base = settings.OPENWEATHER_BASE_URL.rstrip("/")
    params = {
        "lat": lat,
        "lon": lon,
        "appid": settings.OPENWEATHER_API_KEY,
        "units": "metric",
    }

    client = get_http_client()
    results = await asyncio.gather(
        client.get(f"{base}/weather", params=params),
        client.get(f"{base}/forecast", params={**params, "cnt": 1}),
        return_exceptions=True,
    )
    # current-conditions failure wins when both calls fail
    for res in results:
        if isinstance(res, BaseException):
            raise res
    current_r, forecast_r = results
    current_r.raise_for_status()
    forecast_r.raise_for_status()

    data = shape_current(current_r.json(), _rain_probability(forecast_r.json()))

    total_ms = round((t() - start) * 1000)
    log.info("⏱️  Weather (%s, %s): %sms", lat, lon, total_ms)
    return data
