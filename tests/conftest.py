"""Shared test fixtures and configuration.

Settings are always built from an explicit mapping so that neither .env nor
the real environment leaks into tests. The ledger is backed by a temp file
and driven by a settable clock.
"""

from datetime import datetime
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest

BERLIN = ZoneInfo("Europe/Berlin")

# Wednesday; the week runs 2025-06-02 .. 2025-06-08
WEDNESDAY_10AM = datetime(2025, 6, 4, 10, 0, tzinfo=BERLIN)

BASE_ENV = {
    "LOCATION_NAME": "Berlin",
    "LOCATION_LAT": "52.52",
    "LOCATION_LON": "13.405",
    "SLACK_WEBHOOK_URL": "https://hooks.slack.test/services/T000/B000/XXXX",
    "REPLY_API_URL": "https://bot.example.test/reply",
    "SCHEDULER_ENABLED": "false",
}


class SettableClock:
    """Callable clock whose current time tests can move around."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return SettableClock(WEDNESDAY_10AM)


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_ledger.db")


@pytest.fixture
def ledger(tmp_db_path, clock):
    """Return a MessageLedger backed by a temp file and the settable clock."""
    from lunch_bot.data.db import MessageLedger
    return MessageLedger(tmp_db_path, weekly_cap=2, retention_days=30, clock=clock)


@pytest.fixture
def make_settings(tmp_db_path):
    """Factory building Settings from BASE_ENV plus string overrides."""
    from lunch_bot.config import load_settings

    def _make(**overrides):
        env = {**BASE_ENV, "DATABASE_PATH": tmp_db_path, **overrides}
        return load_settings({k: v for k, v in env.items() if v is not None})

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def check_config(settings):
    from lunch_bot.config import resolve_check_config
    return resolve_check_config(settings)


@pytest.fixture
def good_verdict():
    from lunch_bot.data.models import WeatherVerdict
    return WeatherVerdict(
        is_good=True, temperature=22, condition="clear",
        description="Clear sky", timestamp=1748858400000,
    )


@pytest.fixture
def bad_verdict():
    from lunch_bot.data.models import WeatherVerdict
    return WeatherVerdict(
        is_good=False, temperature=9, condition="rain",
        description="Moderate rain", timestamp=1748858400000,
    )


@pytest.fixture
def weather(good_verdict):
    """WeatherPort double returning a good verdict unless reconfigured."""
    mock = AsyncMock()
    mock.is_weather_good = AsyncMock(return_value=good_verdict)
    return mock


@pytest.fixture
def notifier():
    mock = AsyncMock()
    mock.send_reminder = AsyncMock(return_value=None)
    mock.send_warning = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def deps(ledger, weather, notifier):
    """Dependencies wired to the temp ledger and the weather/notifier doubles."""
    from lunch_bot.adapters.factory import Dependencies
    from lunch_bot.adapters.webhook_url import WebhookUrlProvider

    return Dependencies(
        ledger=ledger,
        webhook_urls=WebhookUrlProvider(webhook_url=BASE_ENV["SLACK_WEBHOOK_URL"]),
        weather_factory=lambda config: weather,
        notifier_factory=lambda url: notifier,
    )
