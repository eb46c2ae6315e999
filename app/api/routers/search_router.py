"""
app/api/routers/search_router.py

City search endpoints.

POST /api/search   body {"city": "<region>"} -> text/event-stream
GET  /api/regions  supported cities and their rental sites

Request-shape problems are answered with a JSON error before the stream
opens; once streaming starts, site failures only show up in the final tally.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse, StreamingResponse

from app.api.dependencies import get_agent_settings_dependency, get_orchestrator
from app.config import AgentSettings
from app.domain.search import SearchSession, UnsupportedRegionError
from app.scraping.regions import supported_regions
from app.schemas.search import RegionsResponse
from app.services.event_sink import EventSink
from app.services.search_orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["search"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _relay(
    orchestrator: SearchOrchestrator,
    session: SearchSession,
    sink: EventSink,
) -> AsyncIterator[bytes]:
    """
    Stream sink frames while the orchestrator runs in its own task.

    If the client goes away first the search task is cancelled; cache writes
    it already issued keep running.
    """

    task = asyncio.create_task(orchestrator.run(session, sink), name=f"search:{session.city}")
    finished = False
    try:
        async for frame in sink.frames():
            yield frame
        finished = True
    finally:
        if finished:
            await task
        elif not task.done():
            task.cancel()


@router.post("/search")
async def search(
    request: Request,
    orchestrator: SearchOrchestrator = Depends(get_orchestrator),
    agent_settings: AgentSettings = Depends(get_agent_settings_dependency),
) -> Response:
    """
    Fan a city search out to its rental sites and stream results back.
    """

    try:
        body = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON body")

    city = body.get("city") if isinstance(body, dict) else None
    try:
        session = orchestrator.prepare(city if isinstance(city, str) else "")
    except UnsupportedRegionError:
        return _error(status.HTTP_400_BAD_REQUEST, "Unsupported city")

    if not agent_settings.api_key:
        logger.error("Search refused: TINYFISH_API_KEY is not configured")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Missing TINYFISH_API_KEY")

    return StreamingResponse(
        _relay(orchestrator, session, EventSink()),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.get("/regions", response_model=RegionsResponse)
def list_regions() -> RegionsResponse:
    """
    List supported cities with the sites searched for each.
    """

    return RegionsResponse(regions=supported_regions())
