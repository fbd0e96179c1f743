"""
Lunch Weather Bot: Data Models.

The ledger remembers what was sent, confirmed and opted into, so that
repeated scheduler triggers stay within the daily and weekly limits.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class MessageType(str, Enum):
    """Record types kept in the ledger.

    Values are the strings stored in existing data and embedded in record ids.
    """

    REMINDER = "weather_reminder"
    WARNING = "weather_warning"
    LUNCH_CONFIRMATION = "lunch_confirmation"
    WARNING_OPT_IN = "weather_warning_opt_in"


KEY_SEPARATOR = "#"
OPT_IN_BUCKET = "current"


def type_value(message_type: MessageType | str) -> str:
    if isinstance(message_type, MessageType):
        return message_type.value
    return message_type


def record_id(location: str, message_type: MessageType | str, bucket: str) -> str:
    """Build the composite ledger key ``{location}#{messageType}#{dateOrWeek}``."""
    return KEY_SEPARATOR.join((location, type_value(message_type), bucket))


@dataclass
class Coordinates:
    """A named point to evaluate the weather for."""

    lat: float
    lon: float
    location_name: str


@dataclass
class MessageRecord:
    """One persisted fact: a send, a lunch confirmation, or an opt-in marker."""

    id: str                                  # "{location}#{type}#{date or week}"
    date: str                                # YYYY-MM-DD (week start for confirmations)
    timestamp: int                           # epoch milliseconds
    message_type: str
    location: str
    temperature: int | None = None
    weather_condition: str | None = None
    ttl: int | None = None                   # epoch seconds; None never expires
    opted_in: bool | None = None             # only set on opt-in markers


@dataclass
class WeeklyStats:
    """Send count for one location and message type in the current week."""

    week_start: str
    message_count: int
    last_message_date: str
    can_send_message: bool

    def to_dict(self) -> dict:
        return {
            "weekStart": self.week_start,
            "messageCount": self.message_count,
            "lastMessageDate": self.last_message_date,
            "canSendMessage": self.can_send_message,
        }


@dataclass
class WeatherVerdict:
    """Single yes/no judgment on whether lunch outside is a good idea."""

    is_good: bool
    temperature: int           # rounded °C
    condition: str             # clear, clouds, fog, drizzle, rain, snow, thunderstorm, unknown
    description: str
    timestamp: int             # epoch milliseconds of the forecast hour

    def to_dict(self) -> dict:
        return {
            "temperature": self.temperature,
            "condition": self.condition,
            "description": self.description,
            "isGood": self.is_good,
        }
