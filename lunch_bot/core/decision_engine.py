"""
Lunch Weather Bot: Decision Engine.

Decides, once per scheduler trigger, whether to post a lunch reminder, a
bad-weather warning, or nothing, and records what was sent.

Checks run in a fixed order and the cheap local reads come first: once lunch
is confirmed for the week, or today's reminder is out, or the weekly cap is
reached, the weather API is never called.

This module is provider-agnostic: it depends on LedgerPort, WeatherPort and
NotificationPort protocols, not on specific implementations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from lunch_bot.core.clock import now_in, today, week_start
from lunch_bot.core.messages import build_confirmation_url, build_opt_out_url
from lunch_bot.data.models import MessageType, WeatherVerdict, WeeklyStats
from lunch_bot.ports.ledger_port import LedgerError

if TYPE_CHECKING:
    from lunch_bot.config import CheckConfig
    from lunch_bot.ports.ledger_port import LedgerPort
    from lunch_bot.ports.notification_port import NotificationPort
    from lunch_bot.ports.weather_port import WeatherPort

logger = logging.getLogger(__name__)


class WeatherCheckError(Exception):
    """Raised when an upstream step of the weather check fails."""


class CheckOutcome(str, Enum):
    LUNCH_CONFIRMED = "lunch_confirmed"
    ALREADY_SENT_TODAY = "already_sent_today"
    WEEKLY_LIMIT_REACHED = "weekly_limit_reached"
    REMINDER_SENT = "reminder_sent"
    WARNING_SENT = "warning_sent"
    WARNING_OPTED_OUT = "warning_opted_out"
    WARNING_BLOCKED = "warning_blocked"


@dataclass
class WeatherCheckResult:
    """Summary of one weather check, returned to the caller as the response body."""

    outcome: CheckOutcome
    location: str
    message: str
    lunch_confirmed: bool = False
    verdict: WeatherVerdict | None = None
    weekly_stats: WeeklyStats | None = None
    message_sent: bool = False
    message_type: str = ""

    def to_dict(self) -> dict:
        body: dict = {
            "message": self.message,
            "outcome": self.outcome.value,
            "location": self.location,
            "lunchConfirmed": self.lunch_confirmed,
        }
        if self.weekly_stats is not None:
            body["weeklyStats"] = self.weekly_stats.to_dict()
        if self.verdict is not None:
            body["weather"] = self.verdict.to_dict()
            body["messagesSent"] = {"sent": self.message_sent, "type": self.message_type}
        return body


async def run_weather_check(
    config: CheckConfig,
    ledger: LedgerPort,
    weather: WeatherPort,
    notifier: NotificationPort,
    now: datetime | None = None,
) -> WeatherCheckResult:
    """Run one weather check for the configured location.

    Args:
        config: Effective configuration (location, thresholds, weekly cap).
        ledger: Message ledger holding sends, confirmations and opt-ins.
        weather: Weather evaluator for the configured hour.
        notifier: Delivers reminders and warnings.
        now: Reference time; defaults to the current time in config.timezone.

    Raises:
        LedgerError: a ledger read or write failed.
        WeatherCheckError: weather evaluation or message delivery failed.
    """
    now = now or now_in(config.timezone)
    location = config.location_name
    current_week = week_start(now)

    # 1. Lunch already confirmed this week: nothing to say, skip the weather API
    if await ledger.has_lunch_been_confirmed(location, current_week):
        logger.info("Lunch already confirmed for %s (week %s), skipping", location, current_week)
        return WeatherCheckResult(
            outcome=CheckOutcome.LUNCH_CONFIRMED,
            location=location,
            message="Lunch already confirmed this week, no weather messages needed",
            lunch_confirmed=True,
        )

    # 2. Daily guard
    if await ledger.has_been_sent_today(MessageType.REMINDER, location):
        logger.info("Reminder already sent today for %s, skipping", location)
        return WeatherCheckResult(
            outcome=CheckOutcome.ALREADY_SENT_TODAY,
            location=location,
            message="Message already sent today",
        )

    # 3. Weekly cap
    weekly_stats = await ledger.weekly_stats(location, MessageType.REMINDER, config.weekly_cap)
    if not weekly_stats.can_send_message:
        logger.info(
            "Weekly message limit reached for %s (%d/%d), skipping",
            location, weekly_stats.message_count, config.weekly_cap,
        )
        return WeatherCheckResult(
            outcome=CheckOutcome.WEEKLY_LIMIT_REACHED,
            location=location,
            message="Weekly message limit reached",
            weekly_stats=weekly_stats,
        )

    # 4. Weather
    try:
        verdict = await weather.is_weather_good(config.coordinates)
    except Exception as exc:
        logger.error("Weather evaluation failed for %s: %s", location, exc)
        raise WeatherCheckError(f"weather evaluation failed: {exc}") from exc

    if verdict.is_good:
        outcome = await _send_reminder(config, ledger, notifier, verdict, now)
    else:
        outcome = await _maybe_send_warning(config, ledger, notifier, verdict)

    await _prune(ledger, config.retention_days)

    sent = outcome in (CheckOutcome.REMINDER_SENT, CheckOutcome.WARNING_SENT)
    message_type = ""
    if outcome is CheckOutcome.REMINDER_SENT:
        message_type = MessageType.REMINDER.value
    elif outcome is CheckOutcome.WARNING_SENT:
        message_type = MessageType.WARNING.value

    return WeatherCheckResult(
        outcome=outcome,
        location=location,
        message="Weather check completed successfully",
        verdict=verdict,
        weekly_stats=weekly_stats,
        message_sent=sent,
        message_type=message_type,
    )


async def _send_reminder(
    config: CheckConfig,
    ledger: LedgerPort,
    notifier: NotificationPort,
    verdict: WeatherVerdict,
    now: datetime,
) -> CheckOutcome:
    location = config.location_name
    confirmation_url = None
    if config.reply_api_url:
        confirmation_url = build_confirmation_url(config.reply_api_url, location, today(now))

    try:
        await notifier.send_reminder(
            verdict.temperature, verdict.description, location, confirmation_url,
        )
    except Exception as exc:
        logger.error("Reminder delivery failed for %s: %s", location, exc)
        raise WeatherCheckError(f"reminder delivery failed: {exc}") from exc

    await ledger.record_sent(
        MessageType.REMINDER, location, verdict.temperature, verdict.condition,
    )
    logger.info("Sent weather reminder for %s", location)
    return CheckOutcome.REMINDER_SENT


async def _maybe_send_warning(
    config: CheckConfig,
    ledger: LedgerPort,
    notifier: NotificationPort,
    verdict: WeatherVerdict,
) -> CheckOutcome:
    location = config.location_name

    if not await ledger.is_opted_in_to_warnings(location):
        logger.info("%s has not opted in to weather warnings, skipping", location)
        return CheckOutcome.WARNING_OPTED_OUT

    if await ledger.has_been_sent_today(MessageType.WARNING, location) or not (
        await ledger.can_send_this_week(location, MessageType.WARNING, config.weekly_cap)
    ):
        logger.info("Weather warning for %s skipped: already sent today or weekly limit", location)
        return CheckOutcome.WARNING_BLOCKED

    opt_out_url = None
    if config.reply_api_url:
        opt_out_url = build_opt_out_url(config.reply_api_url, location)

    try:
        await notifier.send_warning(
            verdict.temperature, verdict.description, location, opt_out_url,
        )
    except Exception as exc:
        logger.error("Warning delivery failed for %s: %s", location, exc)
        raise WeatherCheckError(f"warning delivery failed: {exc}") from exc

    await ledger.record_sent(
        MessageType.WARNING, location, verdict.temperature, verdict.condition,
    )
    logger.info("Sent weather warning for %s", location)
    return CheckOutcome.WARNING_SENT


async def _prune(ledger: LedgerPort, days_to_keep: int) -> None:
    """Housekeeping after a check; a failure here does not fail the check."""
    try:
        await ledger.prune_older_than(days_to_keep)
    except LedgerError as exc:
        logger.warning("Record cleanup failed (continuing): %s", exc)
