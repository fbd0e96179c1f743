"""Weather port: abstract interface for the lunch weather verdict."""

from __future__ import annotations

from typing import Protocol

from lunch_bot.data.models import Coordinates, WeatherVerdict


class WeatherError(Exception):
    """Raised when the forecast cannot be fetched or understood."""


class WeatherPort(Protocol):
    """Evaluates the configured hour of today at the given coordinates."""

    async def is_weather_good(self, coordinates: Coordinates) -> WeatherVerdict: ...
