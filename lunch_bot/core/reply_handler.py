"""Reply handler: lunch confirmation and warning opt-in/opt-out.

Requests arrive from the links in Slack messages. Validation happens in
``ReplyRequest`` so an unknown action never reaches the ledger.
"""

from __future__ import annotations

import datetime as dt
import logging
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from lunch_bot.core.clock import now_in, week_start

if TYPE_CHECKING:
    from lunch_bot.ports.ledger_port import LedgerPort

logger = logging.getLogger(__name__)


class ReplyAction(str, Enum):
    CONFIRM_LUNCH = "confirm-lunch"
    OPT_IN_WARNINGS = "opt-in-warnings"
    OPT_OUT_WARNINGS = "opt-out-warnings"


ALLOWED_ACTIONS = [a.value for a in ReplyAction]


class ReplyRequest(BaseModel):
    """Body or query parameters of a reply request."""

    model_config = ConfigDict(extra="ignore")

    action: ReplyAction = ReplyAction.CONFIRM_LUNCH
    location: str | None = None     # empty means the configured location
    date: dt.date | None = None   # any day of the week being confirmed


async def process_reply(
    request: ReplyRequest,
    ledger: LedgerPort,
    default_location: str,
    timezone: str = "Europe/Berlin",
    now: dt.datetime | None = None,
) -> dict:
    """Apply a validated reply request and return the response body."""
    location = request.location or default_location
    logger.info("Processing reply action: %s for location: %s", request.action.value, location)

    if request.action is ReplyAction.CONFIRM_LUNCH:
        target = request.date or now or now_in(timezone)
        return await _confirm_lunch(ledger, location, week_start(target))

    opted_in = request.action is ReplyAction.OPT_IN_WARNINGS
    await ledger.set_warning_opt_in(location, opted_in)

    if opted_in:
        message = (
            f"You have opted in to weather warnings for {location}. "
            "You'll get a heads-up when the weather is bad for lunch outside."
        )
    else:
        message = (
            f"You have opted out of weather warnings for {location}. "
            "Only good-weather lunch reminders will be sent."
        )
    return {
        "message": message,
        "action": request.action.value,
        "location": location,
        "optedIn": opted_in,
    }


async def _confirm_lunch(ledger: LedgerPort, location: str, target_week: str) -> dict:
    if await ledger.has_lunch_been_confirmed(location, target_week):
        logger.info("Lunch already confirmed for %s (week %s)", location, target_week)
        return {
            "message": "Lunch already confirmed this week! No more weather reminders will be sent.",
            "action": ReplyAction.CONFIRM_LUNCH.value,
            "location": location,
            "weekStart": target_week,
            "alreadyConfirmed": True,
        }

    await ledger.record_lunch_confirmation(location, target_week)
    return {
        "message": (
            "Thanks for confirming! Lunch confirmed for this week. "
            "No more weather reminders will be sent."
        ),
        "action": ReplyAction.CONFIRM_LUNCH.value,
        "location": location,
        "weekStart": target_week,
        "confirmed": True,
    }
