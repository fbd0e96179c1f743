"""AWS Secrets Manager integration: implements SecretPort.

boto3 is synchronous, so calls are wrapped with asyncio.to_thread.
"""

from __future__ import annotations

import asyncio
import json
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from lunch_bot.ports.secret_port import SecretError

logger = logging.getLogger(__name__)


class SecretsManagerClient:
    """Fetches JSON secrets from AWS Secrets Manager."""

    def __init__(self, region: str, client=None) -> None:
        self._client = client or boto3.client("secretsmanager", region_name=region)

    async def get_secret_value(self, secret_id: str) -> dict:
        try:
            response = await asyncio.to_thread(
                self._client.get_secret_value, SecretId=secret_id,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Secrets Manager error for %s: %s", secret_id, exc)
            raise SecretError(f"Failed to fetch secret {secret_id}: {exc}") from exc

        secret_string = response.get("SecretString")
        if not secret_string:
            raise SecretError(f"Secret {secret_id} does not contain a string value")

        try:
            value = json.loads(secret_string)
        except json.JSONDecodeError as exc:
            raise SecretError(f"Failed to parse secret value as JSON: {exc}") from exc

        if not isinstance(value, dict):
            raise SecretError(f"Secret {secret_id} is not a JSON object")
        return value
