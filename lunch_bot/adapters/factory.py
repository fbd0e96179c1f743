"""Adapter factory: wires concrete adapters from Settings."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from lunch_bot.adapters.webhook_url import WebhookUrlProvider
from lunch_bot.config import CheckConfig, Settings
from lunch_bot.ports.ledger_port import LedgerPort
from lunch_bot.ports.notification_port import NotificationPort
from lunch_bot.ports.weather_port import WeatherPort


@dataclass
class Dependencies:
    """Everything the HTTP handlers need, built once per process."""

    ledger: LedgerPort
    webhook_urls: WebhookUrlProvider
    weather_factory: Callable[[CheckConfig], WeatherPort]
    notifier_factory: Callable[[str], NotificationPort]


def create_weather_evaluator(config: CheckConfig) -> WeatherPort:
    from lunch_bot.adapters.open_meteo_weather import OpenMeteoWeatherEvaluator

    return OpenMeteoWeatherEvaluator(
        min_temperature=config.min_temperature,
        good_conditions=config.good_weather_conditions,
        bad_conditions=config.bad_weather_conditions,
        check_hour=config.weather_check_hour,
    )


def create_notifier(webhook_url: str) -> NotificationPort:
    from lunch_bot.adapters.slack_notifier import SlackWebhookNotifier

    return SlackWebhookNotifier(webhook_url)


def create_dependencies(settings: Settings) -> Dependencies:
    """Build the ledger, webhook URL provider and adapter factories.

    The Secrets Manager client is only created when no literal webhook URL
    is configured, so boto3 never needs credentials in that case.
    """
    from lunch_bot.data.db import MessageLedger

    secrets = None
    if not settings.SLACK_WEBHOOK_URL and settings.SLACK_WEBHOOK_SECRET_ID:
        from lunch_bot.integrations.secrets_manager import SecretsManagerClient

        secrets = SecretsManagerClient(region=settings.AWS_DEFAULT_REGION)

    return Dependencies(
        ledger=MessageLedger(
            settings.DATABASE_PATH,
            timezone=settings.TIMEZONE,
            weekly_cap=settings.MAX_MESSAGES_PER_WEEK,
            retention_days=settings.RETENTION_DAYS,
        ),
        webhook_urls=WebhookUrlProvider(
            webhook_url=settings.SLACK_WEBHOOK_URL,
            secret_id=settings.SLACK_WEBHOOK_SECRET_ID,
            secrets=secrets,
        ),
        weather_factory=create_weather_evaluator,
        notifier_factory=create_notifier,
    )
