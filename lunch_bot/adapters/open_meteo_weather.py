"""Open-Meteo weather adapter: implements WeatherPort.

Picks the forecast hour closest to the configured check hour on the
location's current local date and turns it into a WeatherVerdict.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Collection
from datetime import datetime, timedelta, timezone

from lunch_bot.core.clock import epoch_millis
from lunch_bot.core.weather_rules import (
    UNKNOWN_CONDITION,
    describe_weather_code,
    is_good_weather,
)
from lunch_bot.data.models import Coordinates, WeatherVerdict
from lunch_bot.integrations.open_meteo import (
    HourlyPoint,
    OpenMeteoForecast,
    fetch_forecast,
    hourly_points,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def closest_hourly_point(
    forecast: OpenMeteoForecast, check_hour: int, now_utc: datetime,
) -> HourlyPoint | None:
    """Return today's hourly point nearest to *check_hour*, or None.

    "Today" is the location's local date, derived from the forecast's UTC
    offset. Ties keep the earlier hour.
    """
    local_today = (now_utc + timedelta(seconds=forecast.utc_offset_seconds)).date()
    target_minutes = check_hour * 60

    best: HourlyPoint | None = None
    best_diff: int | None = None
    for point in hourly_points(forecast):
        local_time = datetime.fromisoformat(point.time)
        if local_time.date() != local_today:
            continue
        diff = abs(local_time.hour * 60 + local_time.minute - target_minutes)
        if best_diff is None or diff < best_diff:
            best, best_diff = point, diff
    return best


class OpenMeteoWeatherEvaluator:
    """Open-Meteo implementation of WeatherPort."""

    def __init__(
        self,
        min_temperature: float,
        good_conditions: Collection[str],
        bad_conditions: Collection[str],
        check_hour: int = 12,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._min_temperature = min_temperature
        self._good = set(good_conditions)
        self._bad = set(bad_conditions)
        self._check_hour = check_hour
        self._clock = clock or _utc_now

    async def is_weather_good(self, coordinates: Coordinates) -> WeatherVerdict:
        forecast = await fetch_forecast(coordinates)
        point = closest_hourly_point(forecast, self._check_hour, self._clock())

        if point is None:
            logger.warning("No weather forecasts found for today at %s", coordinates.location_name)
            return WeatherVerdict(
                is_good=False,
                temperature=0,
                description="No forecast available",
                condition=UNKNOWN_CONDITION,
                timestamp=epoch_millis(self._clock()),
            )

        temperature = _round_half_up(point.temperature_2m)
        condition, description = describe_weather_code(point.weathercode)
        good = is_good_weather(
            temperature, condition, self._min_temperature, self._good, self._bad,
        )

        local_tz = timezone(timedelta(seconds=forecast.utc_offset_seconds))
        forecast_time = datetime.fromisoformat(point.time).replace(tzinfo=local_tz)

        logger.info(
            "Weather assessment for %s at %02d:00: %d°C (min %s), %s (code %d), good=%s",
            coordinates.location_name, self._check_hour, temperature,
            self._min_temperature, condition, point.weathercode, good,
        )
        return WeatherVerdict(
            is_good=good,
            temperature=temperature,
            description=description,
            condition=condition,
            timestamp=epoch_millis(forecast_time),
        )
