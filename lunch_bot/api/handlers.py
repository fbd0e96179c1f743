"""
Lunch Weather Bot: request handlers.

Framework-free entry points for the weather check and the reply endpoint.
They take plain values (event dict, method, body, query, headers) and return
a ``HandlerResponse`` so the FastAPI layer stays a thin adapter.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from pydantic import ValidationError

from lunch_bot.config import WeatherCheckEvent, resolve_check_config
from lunch_bot.core.decision_engine import run_weather_check
from lunch_bot.core.reply_handler import ALLOWED_ACTIONS, ReplyRequest, process_reply

if TYPE_CHECKING:
    from lunch_bot.adapters.factory import Dependencies
    from lunch_bot.config import Settings

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Headers": "Content-Type,X-Amz-Date,Authorization,X-Api-Key,X-Amz-Security-Token",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Origin": "*",
}
ALLOWED_METHODS = ["GET", "POST", "OPTIONS"]

# Slack fetches every posted link to build a preview
LINK_EXPANDER_AGENT = "slackbot-linkexpanding"


@dataclass
class HandlerResponse:
    status_code: int
    body: dict
    headers: dict[str, str] = field(default_factory=dict)


def _error_details(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" if err["loc"] else err["msg"]
        for err in exc.errors()
    ]


async def handle_weather_check(
    event: dict | None,
    settings: Settings,
    deps: Dependencies,
    now: datetime | None = None,
) -> HandlerResponse:
    """Validate the event, resolve config, and run one weather check."""
    try:
        parsed = WeatherCheckEvent.model_validate(event or {})
    except ValidationError as exc:
        logger.warning("Invalid weather check event: %s", exc)
        return HandlerResponse(400, {
            "error": "Invalid event structure",
            "details": _error_details(exc),
        })

    config = resolve_check_config(settings, parsed.overrides)
    logger.info("Weather check for %s", config.location_name)

    try:
        webhook_url = await deps.webhook_urls.get()
        result = await run_weather_check(
            config,
            deps.ledger,
            deps.weather_factory(config),
            deps.notifier_factory(webhook_url),
            now=now,
        )
    except Exception as exc:
        logger.exception("Weather check failed for %s", config.location_name)
        return HandlerResponse(500, {
            "error": "Internal server error",
            "message": str(exc),
        })

    body = result.to_dict()
    body["config"] = config.public_dict()
    return HandlerResponse(200, body)


async def handle_reply(
    method: str,
    body: str | bytes | None,
    query: dict[str, str] | None,
    headers: dict[str, str] | None,
    settings: Settings,
    deps: Dependencies,
    now: datetime | None = None,
) -> HandlerResponse:
    """Handle a click on a confirm / opt-in / opt-out link.

    GET reads parameters from the query string, POST from a JSON body.
    Every response carries the CORS headers.
    """
    method = method.upper()
    headers = {k.lower(): v for k, v in (headers or {}).items()}

    if method == "OPTIONS":
        return HandlerResponse(200, {"message": "CORS preflight successful"}, CORS_HEADERS)

    if method not in ("GET", "POST"):
        return HandlerResponse(405, {
            "error": "Method not allowed",
            "allowedMethods": ALLOWED_METHODS,
        }, CORS_HEADERS)

    if LINK_EXPANDER_AGENT in headers.get("user-agent", "").lower():
        logger.info("Ignoring Slack link preview request")
        return HandlerResponse(200, {"message": "Bot request blocked"}, CORS_HEADERS)

    if method == "POST":
        try:
            params = json.loads(body) if body else {}
        except json.JSONDecodeError:
            return HandlerResponse(400, {"error": "Invalid JSON in request body"}, CORS_HEADERS)
        if not isinstance(params, dict):
            return HandlerResponse(400, {"error": "Invalid JSON in request body"}, CORS_HEADERS)
    else:
        params = dict(query or {})

    try:
        request = ReplyRequest.model_validate(params)
    except ValidationError as exc:
        return HandlerResponse(400, {
            "error": "Invalid request parameters",
            "details": _error_details(exc),
            "allowedActions": ALLOWED_ACTIONS,
        }, CORS_HEADERS)

    try:
        result = await process_reply(
            request,
            deps.ledger,
            default_location=settings.LOCATION_NAME,
            timezone=settings.TIMEZONE,
            now=now,
        )
    except Exception as exc:
        logger.exception("Reply handling failed")
        return HandlerResponse(500, {
            "error": "Internal server error",
            "message": str(exc),
        }, CORS_HEADERS)

    return HandlerResponse(200, result, CORS_HEADERS)
