"""FastAPI application factory and lifespan for the Lunch Weather Bot."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lunch_bot.adapters.factory import Dependencies, create_dependencies
from lunch_bot.api.handlers import HandlerResponse, handle_reply, handle_weather_check
from lunch_bot.config import Settings
from lunch_bot.core.scheduler import create_scheduler

logger = logging.getLogger(__name__)

REPLY_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


def _to_response(result: HandlerResponse) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body, headers=result.headers)


def create_app(settings: Settings, deps: Dependencies | None = None) -> FastAPI:
    """Create the application; *deps* defaults to the real adapters."""
    deps = deps or create_dependencies(settings)

    async def scheduled_check() -> None:
        result = await handle_weather_check({}, settings, deps)
        logger.info(
            "Scheduled weather check finished with %d: %s",
            result.status_code, result.body.get("message") or result.body.get("error"),
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        scheduler = None
        if settings.SCHEDULER_ENABLED:
            scheduler = create_scheduler(
                scheduled_check,
                hour=settings.SCHEDULER_HOUR,
                tz_name=settings.TIMEZONE,
                weekdays_only=settings.SCHEDULER_WEEKDAYS_ONLY,
            )
            scheduler.start()
            logger.info(
                "Scheduler started (%02d:00 %s%s)",
                settings.SCHEDULER_HOUR, settings.TIMEZONE,
                ", weekdays only" if settings.SCHEDULER_WEEKDAYS_ONLY else "",
            )

        yield

        if scheduler:
            scheduler.shutdown(wait=False)
        logger.info("Application shutdown complete")

    app = FastAPI(title="Lunch Weather Bot", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.deps = deps

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "location": settings.LOCATION_NAME}

    @app.post("/weather-check")
    async def weather_check(request: Request) -> JSONResponse:
        raw = await request.body()
        if raw:
            try:
                event = await request.json()
            except ValueError:
                return JSONResponse(status_code=400, content={"error": "Invalid JSON in request body"})
        else:
            event = {}
        if not isinstance(event, dict):
            return JSONResponse(status_code=400, content={
                "error": "Invalid event structure",
                "details": ["event must be a JSON object"],
            })
        return _to_response(await handle_weather_check(event, settings, deps))

    @app.api_route("/reply", methods=REPLY_METHODS)
    async def reply(request: Request) -> JSONResponse:
        body = await request.body()
        result = await handle_reply(
            request.method,
            body,
            dict(request.query_params),
            dict(request.headers),
            settings,
            deps,
        )
        return _to_response(result)

    return app
