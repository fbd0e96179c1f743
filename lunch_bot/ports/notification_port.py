"""Notification port: abstract interface for posting messages to the team.

Core modules depend on this protocol, never on a specific messaging provider.
"""

from __future__ import annotations

from typing import Protocol


class NotificationError(Exception):
    """Raised when a message could not be delivered."""


class NotificationPort(Protocol):
    """Abstract notification interface used by the decision engine."""

    async def send_reminder(
        self,
        temperature: int,
        description: str,
        location: str,
        confirmation_url: str | None = None,
    ) -> None: ...

    async def send_warning(
        self,
        temperature: int,
        description: str,
        location: str,
        opt_out_url: str | None = None,
    ) -> None: ...
