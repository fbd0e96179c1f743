"""Tests for lunch_bot.core.decision_engine: the weather check flow."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from lunch_bot.core.decision_engine import (
    CheckOutcome,
    WeatherCheckError,
    run_weather_check,
)
from lunch_bot.data.models import MessageType
from lunch_bot.ports.ledger_port import LedgerError
from lunch_bot.ports.notification_port import NotificationError
from lunch_bot.ports.weather_port import WeatherError


class TestGoodWeather:
    @pytest.mark.asyncio
    async def test_sends_and_records_reminder(self, check_config, ledger, weather, notifier, clock):
        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.REMINDER_SENT
        assert result.message == "Weather check completed successfully"
        assert result.message_sent is True
        assert result.message_type == "weather_reminder"
        notifier.send_reminder.assert_awaited_once()
        notifier.send_warning.assert_not_awaited()

        assert await ledger.has_been_sent_today(MessageType.REMINDER, "Berlin") is True
        [record] = await ledger.history("Berlin")
        assert record.temperature == 22
        assert record.weather_condition == "clear"

    @pytest.mark.asyncio
    async def test_confirmation_link_carries_today(self, check_config, ledger, weather, notifier, clock):
        await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        temperature, description, location, url = notifier.send_reminder.call_args.args
        assert (temperature, description, location) == (22, "Clear sky", "Berlin")
        assert url.startswith("https://bot.example.test/reply?")
        assert "action=confirm-lunch" in url
        assert "date=2025-06-04" in url

    @pytest.mark.asyncio
    async def test_no_link_without_reply_url(self, check_config, ledger, weather, notifier, clock):
        config = check_config.model_copy(update={"reply_api_url": ""})
        await run_weather_check(config, ledger, weather, notifier, now=clock.now)

        assert notifier.send_reminder.call_args.args[3] is None

    @pytest.mark.asyncio
    async def test_third_good_day_hits_weekly_cap(self, check_config, ledger, weather, notifier, clock):
        wednesday = clock.now
        for days_back in (2, 1):
            clock.now = wednesday - timedelta(days=days_back)
            await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)
        clock.now = wednesday

        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.WEEKLY_LIMIT_REACHED
        assert result.message == "Weekly message limit reached"
        assert result.weekly_stats.message_count == 2
        assert notifier.send_reminder.await_count == 2
        assert weather.is_weather_good.await_count == 2


class TestEarlyExits:
    @pytest.mark.asyncio
    async def test_lunch_confirmed_skips_everything(self, check_config, ledger, weather, notifier, clock):
        await ledger.record_lunch_confirmation("Berlin")

        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.LUNCH_CONFIRMED
        assert result.lunch_confirmed is True
        assert result.message == "Lunch already confirmed this week, no weather messages needed"
        weather.is_weather_good.assert_not_awaited()
        notifier.send_reminder.assert_not_awaited()
        notifier.send_warning.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_trigger_same_day_does_nothing(self, check_config, ledger, weather, notifier, clock):
        await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)
        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.ALREADY_SENT_TODAY
        assert result.message == "Message already sent today"
        assert weather.is_weather_good.await_count == 1
        assert notifier.send_reminder.await_count == 1

    @pytest.mark.asyncio
    async def test_confirmation_from_last_week_does_not_block(
        self, check_config, ledger, weather, notifier, clock,
    ):
        await ledger.record_lunch_confirmation("Berlin", "2025-05-26")

        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.REMINDER_SENT

    @pytest.mark.asyncio
    async def test_early_exit_does_not_prune(self, check_config, ledger, weather, notifier, clock):
        await ledger.record_lunch_confirmation("Berlin")

        with patch.object(ledger, "prune_older_than", AsyncMock(return_value=0)) as prune:
            await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        prune.assert_not_awaited()


class TestBadWeather:
    @pytest.mark.asyncio
    async def test_opted_out_sends_nothing(
        self, check_config, ledger, weather, notifier, bad_verdict, clock,
    ):
        weather.is_weather_good.return_value = bad_verdict

        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.WARNING_OPTED_OUT
        assert result.message_sent is False
        assert result.message_type == ""
        notifier.send_warning.assert_not_awaited()
        notifier.send_reminder.assert_not_awaited()
        assert await ledger.history("Berlin") == []

    @pytest.mark.asyncio
    async def test_opted_in_sends_warning(
        self, check_config, ledger, weather, notifier, bad_verdict, clock,
    ):
        weather.is_weather_good.return_value = bad_verdict
        await ledger.set_warning_opt_in("Berlin", True)

        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.WARNING_SENT
        assert result.message_type == "weather_warning"
        temperature, description, location, url = notifier.send_warning.call_args.args
        assert (temperature, description, location) == (9, "Moderate rain", "Berlin")
        assert "action=opt-out-warnings" in url
        assert await ledger.has_been_sent_today(MessageType.WARNING, "Berlin") is True
        assert await ledger.has_been_sent_today(MessageType.REMINDER, "Berlin") is False

    @pytest.mark.asyncio
    async def test_warning_once_per_day(
        self, check_config, ledger, weather, notifier, bad_verdict, clock,
    ):
        weather.is_weather_good.return_value = bad_verdict
        await ledger.set_warning_opt_in("Berlin", True)

        await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)
        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.WARNING_BLOCKED
        assert notifier.send_warning.await_count == 1

    @pytest.mark.asyncio
    async def test_warning_weekly_cap(
        self, check_config, ledger, weather, notifier, bad_verdict, clock,
    ):
        weather.is_weather_good.return_value = bad_verdict
        await ledger.set_warning_opt_in("Berlin", True)
        wednesday = clock.now
        for days_back in (2, 1):
            clock.now = wednesday - timedelta(days=days_back)
            await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)
        clock.now = wednesday

        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.WARNING_BLOCKED
        assert notifier.send_warning.await_count == 2

    @pytest.mark.asyncio
    async def test_warnings_do_not_use_reminder_budget(
        self, check_config, ledger, weather, notifier, good_verdict, bad_verdict, clock,
    ):
        await ledger.set_warning_opt_in("Berlin", True)
        wednesday = clock.now
        weather.is_weather_good.return_value = bad_verdict
        for days_back in (2, 1):
            clock.now = wednesday - timedelta(days=days_back)
            await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)
        clock.now = wednesday
        weather.is_weather_good.return_value = good_verdict

        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.REMINDER_SENT


class TestFailures:
    @pytest.mark.asyncio
    async def test_weather_failure(self, check_config, ledger, weather, notifier, clock):
        weather.is_weather_good.side_effect = WeatherError("Open-Meteo API error: timeout")

        with pytest.raises(WeatherCheckError, match="weather evaluation failed"):
            await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        notifier.send_reminder.assert_not_awaited()
        assert await ledger.history("Berlin") == []

    @pytest.mark.asyncio
    async def test_failed_delivery_is_not_recorded(self, check_config, ledger, weather, notifier, clock):
        notifier.send_reminder.side_effect = NotificationError("Failed to send Slack message: 500")

        with pytest.raises(WeatherCheckError, match="reminder delivery failed"):
            await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert await ledger.has_been_sent_today(MessageType.REMINDER, "Berlin") is False

    @pytest.mark.asyncio
    async def test_failed_warning_is_not_recorded(
        self, check_config, ledger, weather, notifier, bad_verdict, clock,
    ):
        weather.is_weather_good.return_value = bad_verdict
        notifier.send_warning.side_effect = NotificationError("Failed to send Slack message: 500")
        await ledger.set_warning_opt_in("Berlin", True)

        with pytest.raises(WeatherCheckError, match="warning delivery failed"):
            await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert await ledger.has_been_sent_today(MessageType.WARNING, "Berlin") is False

    @pytest.mark.asyncio
    async def test_ledger_read_failure_propagates(self, check_config, ledger, weather, notifier, clock):
        with patch.object(
            ledger, "has_lunch_been_confirmed",
            AsyncMock(side_effect=LedgerError("Failed to check lunch confirmation: locked")),
        ):
            with pytest.raises(LedgerError):
                await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        weather.is_weather_good.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_prune_failure_is_not_fatal(self, check_config, ledger, weather, notifier, clock):
        with patch.object(
            ledger, "prune_older_than",
            AsyncMock(side_effect=LedgerError("Failed to cleanup old records: locked")),
        ) as prune:
            result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)

        assert result.outcome is CheckOutcome.REMINDER_SENT
        prune.assert_awaited_once_with(30)


class TestResultBody:
    @pytest.mark.asyncio
    async def test_completed_check(self, check_config, ledger, weather, notifier, clock):
        result = await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)
        body = result.to_dict()

        assert body["message"] == "Weather check completed successfully"
        assert body["location"] == "Berlin"
        assert body["lunchConfirmed"] is False
        assert body["weather"] == {
            "temperature": 22, "condition": "clear",
            "description": "Clear sky", "isGood": True,
        }
        assert body["messagesSent"] == {"sent": True, "type": "weather_reminder"}
        assert body["weeklyStats"]["weekStart"] == "2025-06-02"
        assert body["weeklyStats"]["messageCount"] == 0

    @pytest.mark.asyncio
    async def test_early_exit_has_no_weather(self, check_config, ledger, weather, notifier, clock):
        await ledger.record_lunch_confirmation("Berlin")
        body = (await run_weather_check(check_config, ledger, weather, notifier, now=clock.now)).to_dict()

        assert body["lunchConfirmed"] is True
        assert "weather" not in body
        assert "messagesSent" not in body
