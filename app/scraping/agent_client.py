"""
Browser automation agent client.

One call opens a streamed POST to the agent, reads its Server-Sent Events
until the stream ends, and turns the ``COMPLETED`` event's ``resultJson`` into
a normalized shop payload.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from app.config import AgentSettings
from app.domain.search import ScrapeFailure, ScrapeResult, ScrapeSuccess
from app.scraping.base import ProgressCallback, SiteScraper
from app.scraping.events import iter_events
from app.scraping.logging_utils import log_event
from app.scraping.normalization import ShopNormalizer

logger = logging.getLogger(__name__)

COMPLETED_STATUS = "COMPLETED"


class AgentScrapeError(RuntimeError):
    """
    Raised inside one agent run when no usable result can be produced.
    """


class AgentSiteScraper(SiteScraper):
    """
    SiteScraper backed by the automation agent's SSE endpoint.

    A shared ``httpx.AsyncClient`` may be injected; otherwise each run opens
    and closes its own client.
    """

    def __init__(
        self,
        *,
        settings: AgentSettings,
        client: httpx.AsyncClient | None = None,
        normalizer: ShopNormalizer | None = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._normalizer = normalizer or ShopNormalizer()

    async def run(
        self,
        site: str,
        *,
        goal: str,
        timeout: float | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ScrapeResult:
        deadline = self._settings.request_timeout_seconds if timeout is None else timeout
        started_at = time.monotonic()
        log_event(logger, logging.INFO, "site_scrape_started", site=site)

        try:
            shop = await asyncio.wait_for(
                self._scrape(site, goal=goal, on_progress=on_progress),
                timeout=deadline,
            )
        except asyncio.TimeoutError:
            reason = f"timed out after {deadline:g}s"
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
        else:
            log_event(
                logger,
                logging.INFO,
                "site_scrape_completed",
                started_at=started_at,
                site=site,
                bikes=len(shop.get("bikes", [])),
            )
            return ScrapeSuccess(
                site=site,
                shop=shop,
                elapsed_seconds=time.monotonic() - started_at,
            )

        log_event(
            logger,
            logging.ERROR,
            "site_scrape_failed",
            started_at=started_at,
            site=site,
            error=reason,
        )
        return ScrapeFailure(
            site=site,
            reason=reason,
            elapsed_seconds=time.monotonic() - started_at,
        )

    async def _scrape(
        self,
        site: str,
        *,
        goal: str,
        on_progress: ProgressCallback | None,
    ) -> dict[str, Any]:
        if self._client is not None:
            return await self._stream_result(self._client, site, goal=goal, on_progress=on_progress)

        async with httpx.AsyncClient(timeout=httpx.Timeout(None, connect=15.0)) as client:
            return await self._stream_result(client, site, goal=goal, on_progress=on_progress)

    async def _stream_result(
        self,
        client: httpx.AsyncClient,
        site: str,
        *,
        goal: str,
        on_progress: ProgressCallback | None,
    ) -> dict[str, Any]:
        if not self._settings.api_key:
            raise AgentScrapeError("Agent API key is not configured")

        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
            "X-API-Key": self._settings.api_key,
        }
        result_json: Any = None

        async with client.stream(
            "POST",
            self._settings.sse_url,
            json={"url": site, "goal": goal},
            headers=headers,
        ) as response:
            if not response.is_success:
                raise AgentScrapeError(f"Agent request failed ({response.status_code})")

            # The agent usually closes after COMPLETED, but read to the end regardless.
            async for event in iter_events(response.aiter_lines()):
                streaming_url = event.get("streamingUrl")
                if isinstance(streaming_url, str) and streaming_url:
                    log_event(
                        logger,
                        logging.DEBUG,
                        "streaming_url_seen",
                        site=site,
                        streaming_url=streaming_url,
                    )
                    if on_progress is not None:
                        await on_progress(site, streaming_url)

                if event.get("status") == COMPLETED_STATUS and event.get("resultJson") is not None:
                    result_json = event["resultJson"]

        if result_json is None:
            raise AgentScrapeError("Agent stream finished without COMPLETED resultJson")

        shop = self._normalizer.normalize(result_json, site_url=site)
        return shop.model_dump(mode="json")
