"""Ledger port: abstract interface over the persisted message records.

Core modules depend on this protocol, never on a specific store.
"""

from __future__ import annotations

from typing import Protocol

from lunch_bot.data.models import MessageRecord, MessageType, WeeklyStats


class LedgerError(Exception):
    """Raised when any ledger store operation fails."""


class LedgerPort(Protocol):
    """Rate-limited message ledger used by the decision engine and reply handler."""

    async def has_been_sent_today(
        self, message_type: MessageType | str, location: str
    ) -> bool: ...

    async def weekly_stats(
        self,
        location: str,
        message_type: MessageType | str,
        weekly_cap: int | None = None,
    ) -> WeeklyStats: ...

    async def can_send_this_week(
        self,
        location: str,
        message_type: MessageType | str,
        weekly_cap: int | None = None,
    ) -> bool: ...

    async def record_sent(
        self,
        message_type: MessageType | str,
        location: str,
        temperature: int | None = None,
        weather_condition: str | None = None,
    ) -> None: ...

    async def history(
        self, location: str, days_back: int = 30
    ) -> list[MessageRecord]: ...

    async def prune_older_than(self, days_to_keep: int) -> int: ...

    async def record_lunch_confirmation(
        self, location: str, week_start: str | None = None
    ) -> None: ...

    async def has_lunch_been_confirmed(
        self, location: str, week_start: str | None = None
    ) -> bool: ...

    async def set_warning_opt_in(self, location: str, opted_in: bool) -> None: ...

    async def is_opted_in_to_warnings(self, location: str) -> bool: ...
