"""Secret port: abstract interface for fetching JSON secrets."""

from __future__ import annotations

from typing import Protocol


class SecretError(Exception):
    """Raised when a secret cannot be fetched or parsed."""


class SecretPort(Protocol):
    async def get_secret_value(self, secret_id: str) -> dict: ...
