"""Resolves the Slack webhook URL once per process.

A literal SLACK_WEBHOOK_URL wins; otherwise the URL is read from the
``webhook_url`` key of the configured secret. The resolved value is cached
on the provider instance; ``reset()`` drops it.
"""

from __future__ import annotations

import logging

from lunch_bot.ports.secret_port import SecretError, SecretPort

logger = logging.getLogger(__name__)

WEBHOOK_URL_KEY = "webhook_url"


class WebhookUrlProvider:
    def __init__(
        self,
        webhook_url: str = "",
        secret_id: str = "",
        secrets: SecretPort | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._secret_id = secret_id
        self._secrets = secrets
        self._cached: str | None = None

    async def get(self) -> str:
        if self._cached is not None:
            return self._cached

        if self._webhook_url:
            self._cached = self._webhook_url
            return self._cached

        if not self._secret_id or self._secrets is None:
            raise SecretError("No Slack webhook URL or secret configured")

        secret = await self._secrets.get_secret_value(self._secret_id)
        url = secret.get(WEBHOOK_URL_KEY)
        if not isinstance(url, str) or not url:
            raise SecretError(f"Secret {self._secret_id} has no '{WEBHOOK_URL_KEY}' value")

        logger.info("Slack webhook URL resolved from secret %s", self._secret_id)
        self._cached = url
        return url

    def reset(self) -> None:
        self._cached = None
