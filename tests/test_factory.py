"""Tests for lunch_bot.adapters.factory: adapter wiring from settings."""

import pytest
from unittest.mock import MagicMock, patch

from lunch_bot.adapters.factory import create_dependencies
from lunch_bot.adapters.open_meteo_weather import OpenMeteoWeatherEvaluator
from lunch_bot.adapters.slack_notifier import SlackWebhookNotifier
from lunch_bot.data.db import MessageLedger


class TestCreateDependencies:
    @pytest.mark.asyncio
    async def test_literal_webhook(self, settings, check_config):
        with patch("lunch_bot.integrations.secrets_manager.boto3.client") as boto_client:
            deps = create_dependencies(settings)

        boto_client.assert_not_called()
        assert isinstance(deps.ledger, MessageLedger)
        assert await deps.webhook_urls.get() == settings.SLACK_WEBHOOK_URL
        assert isinstance(deps.weather_factory(check_config), OpenMeteoWeatherEvaluator)
        assert isinstance(deps.notifier_factory("https://hooks.slack.test/x"), SlackWebhookNotifier)

    @pytest.mark.asyncio
    async def test_secret_backed_webhook(self, make_settings):
        settings = make_settings(
            SLACK_WEBHOOK_URL=None,
            SLACK_WEBHOOK_SECRET_ID="lunch/slack",
            AWS_DEFAULT_REGION="eu-west-1",
        )
        boto = MagicMock()
        boto.get_secret_value.return_value = {
            "SecretString": '{"webhook_url": "https://hooks.slack.test/from-secret"}',
        }

        with patch("lunch_bot.integrations.secrets_manager.boto3.client", return_value=boto) as boto_client:
            deps = create_dependencies(settings)

        boto_client.assert_called_once_with("secretsmanager", region_name="eu-west-1")
        assert await deps.webhook_urls.get() == "https://hooks.slack.test/from-secret"
