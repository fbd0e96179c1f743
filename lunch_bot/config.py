"""
Lunch Weather Bot: Centralized configuration.

Settings are read from the environment (and .env) once at process start by
``load_settings`` and passed explicitly to the handlers. Each weather check
derives its own ``CheckConfig`` from the settings plus optional per-event
overrides, so nothing here is cached at module level.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from lunch_bot.data.models import Coordinates

# .env at project root (one level up from lunch_bot/config.py)
_ENV_PATH = Path(__file__).resolve().parent.parent / ".env"

REDACTED = "[REDACTED]"


def _split_csv(v: str | list[str]) -> list[str]:
    if isinstance(v, list):
        return [c.strip().lower() for c in v if c.strip()]
    if isinstance(v, str) and v.strip():
        return [c.strip().lower() for c in v.split(",") if c.strip()]
    return []


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Primary location
    LOCATION_NAME: str
    LOCATION_LAT: float = Field(ge=-90, le=90)
    LOCATION_LON: float = Field(ge=-180, le=180)

    # Slack: either a literal webhook URL or a Secrets Manager secret holding it
    SLACK_WEBHOOK_URL: str = ""
    SLACK_WEBHOOK_SECRET_ID: str = ""
    AWS_DEFAULT_REGION: str = "eu-central-1"

    # Public URL of the /reply endpoint, used for confirm and opt-out links
    REPLY_API_URL: str = ""

    # SQLite ledger
    DATABASE_PATH: str = "data/lunch_bot.db"

    TIMEZONE: str = "Europe/Berlin"

    # Weather thresholds
    MIN_TEMPERATURE: float = Field(default=12, ge=-50, le=50)
    GOOD_WEATHER_CONDITIONS: list[str] = ["clear", "clouds"]
    BAD_WEATHER_CONDITIONS: list[str] = ["rain", "drizzle", "thunderstorm", "snow"]
    WEATHER_CHECK_HOUR: int = Field(default=12, ge=0, le=23)

    # Rate limiting and retention
    MAX_MESSAGES_PER_WEEK: int = Field(default=2, ge=1)
    RETENTION_DAYS: int = Field(default=30, ge=1)

    # In-process scheduler
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_HOUR: int = Field(default=10, ge=0, le=23)
    SCHEDULER_WEEKDAYS_ONLY: bool = True

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    @field_validator("GOOD_WEATHER_CONDITIONS", "BAD_WEATHER_CONDITIONS", mode="before")
    @classmethod
    def parse_conditions(cls, v: str | list[str]) -> list[str]:
        return _split_csv(v)

    @field_validator("LOCATION_NAME")
    @classmethod
    def require_location_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("LOCATION_NAME is required")
        return v.strip()

    @model_validator(mode="after")
    def require_webhook_source(self) -> "Settings":
        if not self.SLACK_WEBHOOK_URL and not self.SLACK_WEBHOOK_SECRET_ID:
            raise ValueError(
                "Either SLACK_WEBHOOK_URL or SLACK_WEBHOOK_SECRET_ID must be set"
            )
        return self


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from *environ* (defaults to .env + os.environ).

    Raises pydantic.ValidationError on missing or out-of-range values.
    """
    if environ is None:
        load_dotenv(_ENV_PATH)
        environ = os.environ

    values = {name: environ[name] for name in Settings.model_fields if name in environ}
    return Settings(**values)


class WeatherCheckOverrides(BaseModel):
    """Per-event overrides accepted by the weather check entry point."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    location_name: str | None = Field(default=None, alias="locationName")
    location_lat: float | None = Field(default=None, alias="locationLat", ge=-90, le=90)
    location_lon: float | None = Field(default=None, alias="locationLon", ge=-180, le=180)
    min_temperature: float | None = Field(default=None, alias="minTemperature", ge=-50, le=50)
    good_weather_conditions: list[str] | None = Field(default=None, alias="goodWeatherConditions")
    bad_weather_conditions: list[str] | None = Field(default=None, alias="badWeatherConditions")
    weather_check_hour: int | None = Field(default=None, alias="weatherCheckHour", ge=0, le=23)
    max_messages_per_week: int | None = Field(default=None, alias="maxMessagesPerWeek", ge=1)

    @field_validator("good_weather_conditions", "bad_weather_conditions", mode="before")
    @classmethod
    def normalize_conditions(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return None
        return _split_csv(v)


class WeatherCheckEvent(BaseModel):
    """Scheduler or HTTP event for a weather check; unknown keys are ignored."""

    model_config = ConfigDict(extra="allow")

    overrides: WeatherCheckOverrides | None = None


class CheckConfig(BaseModel):
    """Effective configuration for one weather check invocation."""

    location_name: str
    latitude: float
    longitude: float
    min_temperature: float
    good_weather_conditions: list[str]
    bad_weather_conditions: list[str]
    weather_check_hour: int
    weekly_cap: int
    retention_days: int
    reply_api_url: str
    timezone: str

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(
            lat=self.latitude, lon=self.longitude, location_name=self.location_name,
        )

    def public_dict(self) -> dict:
        """Config echoed in responses; the webhook URL never leaves the process."""
        return {
            "slackWebhookUrl": REDACTED,
            "locationName": self.location_name,
            "locationLat": self.latitude,
            "locationLon": self.longitude,
            "minTemperature": self.min_temperature,
            "goodWeatherConditions": list(self.good_weather_conditions),
            "badWeatherConditions": list(self.bad_weather_conditions),
            "weatherCheckHour": self.weather_check_hour,
            "maxMessagesPerWeek": self.weekly_cap,
            "replyApiUrl": self.reply_api_url,
        }


def resolve_check_config(
    settings: Settings, overrides: WeatherCheckOverrides | None = None,
) -> CheckConfig:
    """Merge per-event overrides over the process settings."""
    o = overrides or WeatherCheckOverrides()

    def pick(override, default):
        return default if override is None else override

    return CheckConfig(
        location_name=o.location_name or settings.LOCATION_NAME,
        latitude=pick(o.location_lat, settings.LOCATION_LAT),
        longitude=pick(o.location_lon, settings.LOCATION_LON),
        min_temperature=pick(o.min_temperature, settings.MIN_TEMPERATURE),
        good_weather_conditions=pick(o.good_weather_conditions, settings.GOOD_WEATHER_CONDITIONS),
        bad_weather_conditions=pick(o.bad_weather_conditions, settings.BAD_WEATHER_CONDITIONS),
        weather_check_hour=pick(o.weather_check_hour, settings.WEATHER_CHECK_HOUR),
        weekly_cap=pick(o.max_messages_per_week, settings.MAX_MESSAGES_PER_WEEK),
        retention_days=settings.RETENTION_DAYS,
        reply_api_url=settings.REPLY_API_URL,
        timezone=settings.TIMEZONE,
    )
