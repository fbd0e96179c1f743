"""
Lunch Weather Bot: Entry Point.

Single entry point: `python main.py` starts the HTTP server and, unless
disabled, the daily weather-check scheduler.
"""

import logging
import sys

import uvicorn
from pydantic import ValidationError

from lunch_bot.api.app import create_app
from lunch_bot.config import load_settings


def main() -> None:
    try:
        settings = load_settings()
    except ValidationError as exc:
        print(f"ERROR: invalid configuration\n{exc}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
