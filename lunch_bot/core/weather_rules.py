"""Lunch weather rules: pure business logic.

Maps WMO weather codes (as reported by Open-Meteo) to condition labels and
decides whether a forecast hour is good enough for lunch outside.

No I/O: this module only transforms data.
"""

from __future__ import annotations

from collections.abc import Collection

UNKNOWN_CONDITION = "unknown"

# WMO weather interpretation codes, see https://open-meteo.com/en/docs
WMO_WEATHER_CODES: dict[int, tuple[str, str]] = {
    0: ("clear", "Clear sky"),
    1: ("clear", "Mainly clear"),
    2: ("clouds", "Partly cloudy"),
    3: ("clouds", "Overcast"),
    45: ("fog", "Fog"),
    48: ("fog", "Depositing rime fog"),
    51: ("drizzle", "Light drizzle"),
    53: ("drizzle", "Moderate drizzle"),
    55: ("drizzle", "Dense drizzle"),
    56: ("drizzle", "Light freezing drizzle"),
    57: ("drizzle", "Dense freezing drizzle"),
    61: ("rain", "Slight rain"),
    63: ("rain", "Moderate rain"),
    65: ("rain", "Heavy rain"),
    66: ("rain", "Light freezing rain"),
    67: ("rain", "Heavy freezing rain"),
    71: ("snow", "Slight snow fall"),
    73: ("snow", "Moderate snow fall"),
    75: ("snow", "Heavy snow fall"),
    77: ("snow", "Snow grains"),
    80: ("rain", "Slight rain showers"),
    81: ("rain", "Moderate rain showers"),
    82: ("rain", "Violent rain showers"),
    85: ("snow", "Slight snow showers"),
    86: ("snow", "Heavy snow showers"),
    95: ("thunderstorm", "Thunderstorm"),
    96: ("thunderstorm", "Thunderstorm with slight hail"),
    99: ("thunderstorm", "Thunderstorm with heavy hail"),
}


def describe_weather_code(code: int) -> tuple[str, str]:
    """Return (condition, description) for a WMO code."""
    if code in WMO_WEATHER_CODES:
        return WMO_WEATHER_CODES[code]
    return UNKNOWN_CONDITION, f"Unknown weather code: {code}"


def is_good_weather(
    temperature: float,
    condition: str,
    min_temperature: float,
    good_conditions: Collection[str],
    bad_conditions: Collection[str],
) -> bool:
    """True iff warm enough, in the good set, and not in the bad set.

    The bad set always wins when a condition is listed in both.
    """
    if temperature <= min_temperature:
        return False
    if condition in bad_conditions:
        return False
    return condition in good_conditions
