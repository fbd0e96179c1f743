"""Slack notification adapter: implements NotificationPort.

Posts mrkdwn messages to a Slack incoming webhook.
"""

from __future__ import annotations

import logging

import httpx

from lunch_bot.core.messages import WARNING_CONTEXT, format_reminder, format_warning
from lunch_bot.ports.notification_port import NotificationError

logger = logging.getLogger(__name__)

_TIMEOUT_SECONDS = 10


def _section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


class SlackWebhookNotifier:
    """Slack incoming-webhook implementation of NotificationPort."""

    def __init__(self, webhook_url: str, timeout: float = _TIMEOUT_SECONDS) -> None:
        self._webhook_url = webhook_url
        self._timeout = timeout

    async def send_message(self, text: str, blocks: list[dict] | None = None) -> None:
        payload: dict = {"text": text}
        if blocks:
            payload["blocks"] = blocks

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(self._webhook_url, json=payload)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Slack webhook error: %s", exc)
            raise NotificationError(f"Failed to send Slack message: {exc}") from exc

    async def send_reminder(
        self,
        temperature: int,
        description: str,
        location: str,
        confirmation_url: str | None = None,
    ) -> None:
        text = format_reminder(location, temperature, description, confirmation_url)
        await self.send_message(text, [_section(text)])
        logger.info(
            "Sent weather reminder for %s: %d°C, %s%s",
            location, temperature, description,
            " with confirmation link" if confirmation_url else "",
        )

    async def send_warning(
        self,
        temperature: int,
        description: str,
        location: str,
        opt_out_url: str | None = None,
    ) -> None:
        text = format_warning(location, temperature, description, opt_out_url)
        blocks = [
            _section(text),
            {"type": "context", "elements": [{"type": "mrkdwn", "text": WARNING_CONTEXT}]},
        ]
        await self.send_message(text, blocks)
        logger.info("Sent weather warning for %s: %d°C, %s", location, temperature, description)
