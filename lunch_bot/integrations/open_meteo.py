"""Open-Meteo API integration: hourly forecast retrieval.

Fetches today's hourly forecast for a coordinate pair and validates the
response shape. Unlike best-effort lookups, failures here are raised as
WeatherError, because a weather check cannot continue without a forecast.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ValidationError

from lunch_bot.data.models import Coordinates
from lunch_bot.ports.weather_port import WeatherError

logger = logging.getLogger(__name__)

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
HOURLY_VARIABLES = "temperature_2m,windspeed_10m,weathercode,cloud_cover"
_TIMEOUT_SECONDS = 10


class HourlyData(BaseModel):
    time: list[str]
    temperature_2m: list[float]
    windspeed_10m: list[float]
    weathercode: list[int]
    cloud_cover: list[float]


class OpenMeteoForecast(BaseModel):
    """The subset of the forecast response the bot relies on."""

    latitude: float
    longitude: float
    utc_offset_seconds: int
    timezone: str
    elevation: float | None = None
    hourly: HourlyData


class HourlyPoint(BaseModel):
    time: str                  # local time, e.g. "2025-06-02T12:00"
    temperature_2m: float
    windspeed_10m: float
    weathercode: int
    cloud_cover: float


def hourly_points(forecast: OpenMeteoForecast) -> list[HourlyPoint]:
    """Zip the column-oriented hourly arrays into per-hour points."""
    h = forecast.hourly
    return [
        HourlyPoint(
            time=t,
            temperature_2m=temp,
            windspeed_10m=wind,
            weathercode=code,
            cloud_cover=cloud,
        )
        for t, temp, wind, code, cloud in zip(
            h.time, h.temperature_2m, h.windspeed_10m, h.weathercode, h.cloud_cover,
        )
    ]


async def fetch_forecast(coordinates: Coordinates) -> OpenMeteoForecast:
    """Fetch today's hourly forecast in the location's local timezone."""
    params = {
        "latitude": coordinates.lat,
        "longitude": coordinates.lon,
        "hourly": HOURLY_VARIABLES,
        "timezone": "auto",
        "forecast_days": 1,
    }
    logger.info(
        "Fetching Open-Meteo forecast for %s (%s, %s)",
        coordinates.location_name, coordinates.lat, coordinates.lon,
    )

    try:
        async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS) as client:
            resp = await client.get(OPEN_METEO_URL, params=params)
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Open-Meteo request failed for %s: %s", coordinates.location_name, exc)
        raise WeatherError(f"Open-Meteo API error: {exc}") from exc

    try:
        forecast = OpenMeteoForecast.model_validate(data)
    except ValidationError as exc:
        logger.error("Invalid Open-Meteo response: %s", exc)
        raise WeatherError(f"Invalid weather API response: {exc}") from exc

    logger.info(
        "Fetched Open-Meteo forecast for %s: timezone=%s, %d hourly points",
        coordinates.location_name, forecast.timezone, len(forecast.hourly.time),
    )
    return forecast
