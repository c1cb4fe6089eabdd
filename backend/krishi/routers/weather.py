"""
/api/weather endpoint
"""
import logging

from fastapi import APIRouter

from krishi.config import settings
from krishi.errors import ApiError, classify_upstream_error
from krishi.schemas import WeatherRequest, WeatherResponse
from krishi.tools.weather import current_weather, sample_weather

log = logging.getLogger("krishimitra.weather")

router = APIRouter(tags=["weather"])

@router.post("/weather", response_model=WeatherResponse)
async def weather(req: WeatherRequest):
    if not settings.OPENWEATHER_API_KEY:
        log.info("OpenWeather API key not set, returning sample data")
        return WeatherResponse(data=sample_weather(), source="sample")

    try:
        data = await current_weather(req.lat, req.lon)
    except Exception as e:
        mapped = classify_upstream_error(
            e,
            service="weather service",
            key_env="OPENWEATHER_API_KEY",
            on_400="Please check the latitude and longitude values",
            on_404="No weather data available for the provided coordinates",
        )
        if mapped is None:
            log.exception("Weather lookup failed")
            raise ApiError(500, "Internal server error", str(e) or "An unexpected error occurred") from e
        log.warning("Weather lookup failed (%s): %s", mapped.status_code, e)
        raise mapped from e

    return WeatherResponse(data=data, source="openweather")
