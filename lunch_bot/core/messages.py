"""Slack message texts and reply links.

Links use Slack mrkdwn syntax ``<url|label>``. The reply links point at the
/reply endpoint and carry the action and location as query parameters.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

CONFIRM_LUNCH_ACTION = "confirm-lunch"
OPT_OUT_WARNINGS_ACTION = "opt-out-warnings"

WARNING_CONTEXT = "🤖 Automated weather update • Check back tomorrow!"


def _with_params(base_url: str, params: dict[str, str]) -> str:
    parts = urlsplit(base_url)
    query = dict(parse_qsl(parts.query))
    query.update(params)
    return urlunsplit(parts._replace(query=urlencode(query)))


def build_confirmation_url(base_url: str, location: str, date: str | None = None) -> str:
    """Link that confirms lunch for the week of *date* (or the current week)."""
    params = {"action": CONFIRM_LUNCH_ACTION, "location": location}
    if date:
        params["date"] = date
    return _with_params(base_url, params)


def build_opt_out_url(base_url: str, location: str) -> str:
    return _with_params(base_url, {"action": OPT_OUT_WARNINGS_ACTION, "location": location})


def format_reminder(
    location: str,
    temperature: int,
    description: str,
    confirmation_url: str | None = None,
    channel: str | None = None,
) -> str:
    greeting = f"🌤️ Hey {channel}!" if channel else "🌤️ Hey team!"
    lines = [
        f"{greeting} The weather looks great for lunch outside today!",
        "",
        f"📍 {location}",
        f"🌡️ {temperature}°C at noon",
        f"☀️ {description}",
        "",
    ]
    if confirmation_url:
        lines.append(
            "Anyone up for a lunch meetup in the park? React with ✅ to communicate "
            f"with colleagues, and <{confirmation_url}|click here after your lunch "
            "meeting> to confirm it for this week!"
        )
    else:
        lines.append(
            "Anyone up for a lunch meetup in the park? React with ✅ if you're interested!"
        )
    return "\n".join(lines)


def format_warning(
    location: str,
    temperature: int,
    description: str,
    opt_out_url: str | None = None,
) -> str:
    lines = [
        f"🌧️ *Weather Update for {location}*",
        "",
        "Unfortunately, the weather isn't great for an outdoor lunch today:",
        f"• Temperature: {temperature}°C",
        f"• Conditions: {description}",
        "",
        "Maybe consider indoor lunch options or wait for better weather! 🏢☕",
    ]
    if opt_out_url:
        lines.append(f"\n<{opt_out_url}|Stop sending weather warnings>")
    return "\n".join(lines)
