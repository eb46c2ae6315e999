from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from app.config import get_agent_settings, get_search_settings

_SHUTDOWN_DRAIN_SECONDS = 10.0


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _report_env() -> None:
    """
    Log configuration gaps at startup without refusing to boot.

    A missing agent key turns every search into a 500; a missing database
    only disables caching.
    """

    log = logging.getLogger(__name__)
    agent_settings = get_agent_settings()
    if not agent_settings.api_key:
        log.warning("TINYFISH_API_KEY is not set; /api/search will answer 500.")

    search_settings = get_search_settings()
    log.info(
        "Search settings: stagger=%.2fs timeout=%.0fs cache_ttl=%.1fh",
        search_settings.stagger_seconds,
        agent_settings.request_timeout_seconds,
        search_settings.cache_ttl_hours,
    )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Let cache writes still in flight finish before the process exits."""
    from app.services.background_tasks import drain_background_tasks

    try:
        yield
    finally:
        await drain_background_tasks(timeout=_SHUTDOWN_DRAIN_SECONDS)
        logging.getLogger(__name__).info("Background cache writes drained")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _configure_logging()
    _report_env()

    application = FastAPI(
        title="Bike Rental Search API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import search_router

    application.include_router(search_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
