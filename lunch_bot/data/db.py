"""
Lunch Weather Bot: Message Ledger.

SQLite storage for everything the bot must remember between scheduler
triggers: which messages went out on which day, whether lunch was confirmed
for a week, and whether a location wants bad-weather warnings.

Records are keyed by the composite id ``{location}#{messageType}#{dateOrWeek}``
so that writes are idempotent upserts. The sqlite3 calls are blocking and are
run through asyncio.to_thread to satisfy the async LedgerPort.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

from lunch_bot.core.clock import epoch_millis, now_in, today, week_end, week_start
from lunch_bot.data.models import (
    OPT_IN_BUCKET,
    MessageRecord,
    MessageType,
    WeeklyStats,
    record_id,
    type_value,
)
from lunch_bot.ports.ledger_port import LedgerError

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


class MessageLedger:
    """SQLite-backed implementation of LedgerPort."""

    def __init__(
        self,
        db_path: str,
        *,
        timezone: str = "Europe/Berlin",
        weekly_cap: int = 2,
        retention_days: int = 30,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._db_path = db_path
        self._weekly_cap = weekly_cap
        self._retention_days = retention_days
        self._clock = clock or (lambda: now_in(timezone))
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Create the records table and the location/timestamp index."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS message_records (
                    id                TEXT    PRIMARY KEY,
                    date              TEXT    NOT NULL,
                    timestamp         INTEGER NOT NULL,
                    message_type      TEXT    NOT NULL,
                    location          TEXT    NOT NULL,
                    temperature       INTEGER,
                    weather_condition TEXT,
                    ttl               INTEGER,
                    opted_in          INTEGER
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_message_records_location_ts
                    ON message_records (location, timestamp)
            """)
        logger.debug("Message ledger initialized at %s", self._db_path)

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> MessageRecord:
        opted_in = row["opted_in"]
        return MessageRecord(
            id=row["id"],
            date=row["date"],
            timestamp=row["timestamp"],
            message_type=row["message_type"],
            location=row["location"],
            temperature=row["temperature"],
            weather_condition=row["weather_condition"],
            ttl=row["ttl"],
            opted_in=None if opted_in is None else bool(opted_in),
        )

    def _expiry(self, now: datetime) -> int:
        return int(now.timestamp()) + self._retention_days * _SECONDS_PER_DAY

    # ------------------------------------------------------------------
    # Blocking primitives (run in a worker thread)
    # ------------------------------------------------------------------

    def _upsert(self, record: MessageRecord) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO message_records
                    (id, date, timestamp, message_type, location,
                     temperature, weather_condition, ttl, opted_in)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id, record.date, record.timestamp,
                    record.message_type, record.location,
                    record.temperature, record.weather_condition, record.ttl,
                    None if record.opted_in is None else int(record.opted_in),
                ),
            )

    def _get(self, rid: str) -> MessageRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM message_records WHERE id = ?", (rid,)
            ).fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    def _query(self, query: str, params: tuple) -> list[MessageRecord]:
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [self._row_to_record(r) for r in rows]

    def _delete_before(self, cutoff_ms: int) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM message_records WHERE timestamp < ? AND message_type != ?",
                (cutoff_ms, MessageType.WARNING_OPT_IN.value),
            )
            return cursor.rowcount

    # ------------------------------------------------------------------
    # Daily / weekly send accounting
    # ------------------------------------------------------------------

    async def has_been_sent_today(
        self, message_type: MessageType | str, location: str
    ) -> bool:
        rid = record_id(location, message_type, today(self._clock()))
        try:
            return await asyncio.to_thread(self._get, rid) is not None
        except sqlite3.Error as exc:
            logger.error("Ledger error (has_been_sent_today): %s", exc)
            raise LedgerError(f"Failed to check message status: {exc}") from exc

    async def weekly_stats(
        self,
        location: str,
        message_type: MessageType | str,
        weekly_cap: int | None = None,
    ) -> WeeklyStats:
        cap = self._weekly_cap if weekly_cap is None else weekly_cap
        now = self._clock()
        start, end = week_start(now), week_end(now)

        try:
            records = await asyncio.to_thread(
                self._query,
                """
                SELECT * FROM message_records
                WHERE location = ? AND message_type = ? AND date >= ? AND date <= ?
                ORDER BY timestamp DESC
                """,
                (location, type_value(message_type), start, end),
            )
        except sqlite3.Error as exc:
            logger.error("Ledger error (weekly_stats): %s", exc)
            raise LedgerError(f"Failed to get weekly message stats: {exc}") from exc

        count = len(records)
        return WeeklyStats(
            week_start=start,
            message_count=count,
            last_message_date=records[0].date if records else "",
            can_send_message=count < cap,
        )

    async def can_send_this_week(
        self,
        location: str,
        message_type: MessageType | str,
        weekly_cap: int | None = None,
    ) -> bool:
        stats = await self.weekly_stats(location, message_type, weekly_cap)
        return stats.can_send_message

    async def record_sent(
        self,
        message_type: MessageType | str,
        location: str,
        temperature: int | None = None,
        weather_condition: str | None = None,
    ) -> None:
        """Record a delivered message for today, replacing any same-day record."""
        now = self._clock()
        date_str = today(now)
        record = MessageRecord(
            id=record_id(location, message_type, date_str),
            date=date_str,
            timestamp=epoch_millis(now),
            message_type=type_value(message_type),
            location=location,
            temperature=temperature,
            weather_condition=weather_condition,
            ttl=self._expiry(now),
        )
        try:
            await asyncio.to_thread(self._upsert, record)
        except sqlite3.Error as exc:
            logger.error("Ledger error (record_sent): %s", exc)
            raise LedgerError(f"Failed to record message: {exc}") from exc
        logger.info(
            "Recorded message sent: %s for %s on %s",
            record.message_type, location, date_str,
        )

    # ------------------------------------------------------------------
    # History and retention
    # ------------------------------------------------------------------

    async def history(self, location: str, days_back: int = 30) -> list[MessageRecord]:
        """All records for *location* from the last *days_back* days, newest first."""
        cutoff = epoch_millis(self._clock() - timedelta(days=days_back))
        try:
            return await asyncio.to_thread(
                self._query,
                """
                SELECT * FROM message_records
                WHERE location = ? AND timestamp >= ?
                ORDER BY timestamp DESC
                """,
                (location, cutoff),
            )
        except sqlite3.Error as exc:
            logger.error("Ledger error (history): %s", exc)
            raise LedgerError(f"Failed to get message history: {exc}") from exc

    async def prune_older_than(self, days_to_keep: int) -> int:
        """Delete records of every location older than the cutoff.

        Opt-in markers are preferences, not history, and are kept.
        """
        cutoff = epoch_millis(self._clock() - timedelta(days=days_to_keep))
        try:
            deleted = await asyncio.to_thread(self._delete_before, cutoff)
        except sqlite3.Error as exc:
            logger.error("Ledger error (prune_older_than): %s", exc)
            raise LedgerError(f"Failed to cleanup old records: {exc}") from exc

        if deleted:
            logger.info("Cleaned up %d old records", deleted)
        else:
            logger.debug("No old records to clean up")
        return deleted

    # ------------------------------------------------------------------
    # Lunch confirmation (one per location and week)
    # ------------------------------------------------------------------

    async def record_lunch_confirmation(
        self, location: str, week_start: str | None = None
    ) -> None:
        now = self._clock()
        bucket = week_start or _current_week(now)
        record = MessageRecord(
            id=record_id(location, MessageType.LUNCH_CONFIRMATION, bucket),
            date=bucket,
            timestamp=epoch_millis(now),
            message_type=MessageType.LUNCH_CONFIRMATION.value,
            location=location,
            ttl=self._expiry(now),
        )
        try:
            await asyncio.to_thread(self._upsert, record)
        except sqlite3.Error as exc:
            logger.error("Ledger error (record_lunch_confirmation): %s", exc)
            raise LedgerError(f"Failed to record lunch confirmation: {exc}") from exc
        logger.info(
            "Recorded lunch confirmation for %s for week starting %s", location, bucket,
        )

    async def has_lunch_been_confirmed(
        self, location: str, week_start: str | None = None
    ) -> bool:
        bucket = week_start or _current_week(self._clock())
        rid = record_id(location, MessageType.LUNCH_CONFIRMATION, bucket)
        try:
            confirmed = await asyncio.to_thread(self._get, rid) is not None
        except sqlite3.Error as exc:
            logger.error("Ledger error (has_lunch_been_confirmed): %s", exc)
            raise LedgerError(f"Failed to check lunch confirmation: {exc}") from exc
        logger.debug("Lunch confirmation check for %s week %s: %s", location, bucket, confirmed)
        return confirmed

    # ------------------------------------------------------------------
    # Warning opt-in (single current value per location)
    # ------------------------------------------------------------------

    async def set_warning_opt_in(self, location: str, opted_in: bool) -> None:
        now = self._clock()
        record = MessageRecord(
            id=record_id(location, MessageType.WARNING_OPT_IN, OPT_IN_BUCKET),
            date=today(now),
            timestamp=epoch_millis(now),
            message_type=MessageType.WARNING_OPT_IN.value,
            location=location,
            opted_in=opted_in,
        )
        try:
            await asyncio.to_thread(self._upsert, record)
        except sqlite3.Error as exc:
            logger.error("Ledger error (set_warning_opt_in): %s", exc)
            raise LedgerError(f"Failed to set weather warning opt-in: {exc}") from exc
        logger.info("Weather warnings for %s: opted_in=%s", location, opted_in)

    async def is_opted_in_to_warnings(self, location: str) -> bool:
        rid = record_id(location, MessageType.WARNING_OPT_IN, OPT_IN_BUCKET)
        try:
            record = await asyncio.to_thread(self._get, rid)
        except sqlite3.Error as exc:
            logger.error("Ledger error (is_opted_in_to_warnings): %s", exc)
            raise LedgerError(f"Failed to check weather warning opt-in: {exc}") from exc
        return bool(record and record.opted_in)


def _current_week(now: datetime) -> str:
    return week_start(now)
