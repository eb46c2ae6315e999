"""
app/services/search_orchestrator.py

Fan-out / stream-merge / cache-aside orchestration for city searches.

One search moves through four phases:

Init          resolve the city to its site list (fails fast when unknown)
Partitioning  read fresh cache entries once; cached sites vs. live sites
Streaming     flush cached hits, then run one staggered agent call per live
              site and relay each success as it lands
Completed     emit the tally and close the sink
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from functools import lru_cache

from app.config import get_agent_settings, get_search_settings
from app.domain.search import (
    CachedShop,
    ScrapeFailure,
    ScrapeResult,
    ScrapeSuccess,
    SearchPhase,
    SearchSession,
    SearchSummary,
)
from app.scraping.agent_client import AgentSiteScraper
from app.scraping.base import SiteScraper
from app.scraping.goal import GOAL_PROMPT
from app.scraping.logging_utils import log_event
from app.scraping.regions import resolve_region
from app.scraping.storage import ShopCacheStore, build_shop_cache_store
from app.schemas.search import SearchCompleteEvent, ShopResultEvent, StreamingUrlEvent
from app.services.background_tasks import spawn_background
from app.services.event_sink import EventSink

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class SearchOrchestrator:
    """
    Drives one search session from cache partition to completion event.
    """

    def __init__(
        self,
        *,
        scraper: SiteScraper,
        cache_store: ShopCacheStore,
        stagger_seconds: float = 0.5,
        request_timeout_seconds: float = 270.0,
        goal: str = GOAL_PROMPT,
        regions: Mapping[str, Sequence[str]] | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._scraper = scraper
        self._cache_store = cache_store
        self._stagger_seconds = max(0.0, stagger_seconds)
        self._request_timeout_seconds = request_timeout_seconds
        self._goal = goal
        self._regions = regions
        self._sleep = sleep

    @property
    def cache_enabled(self) -> bool:
        return self._cache_store.enabled

    def prepare(self, city: str) -> SearchSession:
        """
        Resolve ``city`` into a new session.

        Raises UnsupportedRegionError before any stream is opened.
        """

        key, sites = resolve_region(city, regions=self._regions)
        return SearchSession(city=key, sites=sites)

    async def run(self, session: SearchSession, sink: EventSink) -> SearchSummary:
        """
        Execute ``session`` and relay every outcome into ``sink``.

        The sink is closed on every exit path, including cancellation.
        """

        session.begin()
        log_event(logger, logging.INFO, "search_started", city=session.city, total=session.total)
        try:
            fresh = await self._read_cache(session.city)
            session.partition(fresh)

            session.phase = SearchPhase.STREAMING
            await self._emit_cached(session, sink)
            if session.live_sites:
                await self._stream_live(session, sink)

            summary = session.summary()
            session.phase = SearchPhase.COMPLETED
            await sink.emit(
                SearchCompleteEvent(
                    total=summary.total,
                    succeeded=summary.succeeded,
                    cached=summary.cached,
                    elapsed=summary.elapsed,
                )
            )
            log_event(
                logger,
                logging.INFO,
                "search_completed",
                started_at=session.started_at,
                city=session.city,
                total=summary.total,
                succeeded=summary.succeeded,
                cached=summary.cached,
                live_failed=session.live_failed,
                cache_writes_issued=session.cache_writes_issued,
            )
            return summary
        except asyncio.CancelledError:
            log_event(
                logger,
                logging.WARNING,
                "search_cancelled",
                started_at=session.started_at,
                city=session.city,
                completed=session.completed,
                total=session.total,
            )
            raise
        finally:
            sink.close()

    async def _read_cache(self, city: str) -> dict[str, CachedShop]:
        try:
            return await self._cache_store.read_fresh(city)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "cache_read_failed",
                city=city,
                error=str(exc) or type(exc).__name__,
            )
            return {}

    async def _emit_cached(self, session: SearchSession, sink: EventSink) -> None:
        for entry in session.cached.values():
            await sink.emit(
                ShopResultEvent(shop=entry.shop, source="cache", cached_at=entry.scraped_at)
            )

    async def _stream_live(self, session: SearchSession, sink: EventSink) -> None:
        async def relay_progress(site: str, streaming_url: str) -> None:
            await sink.emit(StreamingUrlEvent(site=site, streamingUrl=streaming_url))

        session.in_flight = [
            asyncio.create_task(
                self._scrape_site(site, delay=index * self._stagger_seconds, on_progress=relay_progress),
                name=f"scrape:{session.city}:{index}",
            )
            for index, site in enumerate(session.live_sites)
        ]
        try:
            for next_result in asyncio.as_completed(session.in_flight):
                result = await next_result
                await self._settle(session, result, sink)
        finally:
            unfinished = [task for task in session.in_flight if not task.done()]
            for task in unfinished:
                task.cancel()
            if unfinished:
                await asyncio.gather(*unfinished, return_exceptions=True)

    async def _scrape_site(
        self,
        site: str,
        *,
        delay: float,
        on_progress: Callable[[str, str], Awaitable[None]],
    ) -> ScrapeResult:
        if delay > 0:
            await self._sleep(delay)
        try:
            return await self._scraper.run(
                site,
                goal=self._goal,
                timeout=self._request_timeout_seconds,
                on_progress=on_progress,
            )
        except Exception as exc:
            log_event(logger, logging.ERROR, "site_scrape_failed", site=site, error=str(exc))
            return ScrapeFailure(site=site, reason=str(exc) or type(exc).__name__)

    async def _settle(self, session: SearchSession, result: ScrapeResult, sink: EventSink) -> None:
        if isinstance(result, ScrapeSuccess):
            try:
                await sink.emit(ShopResultEvent(shop=result.shop, source="live"))
            except Exception as exc:
                log_event(logger, logging.ERROR, "site_result_dropped", site=result.site, error=str(exc))
                result = ScrapeFailure(
                    site=result.site,
                    reason=f"result could not be relayed: {exc}",
                    elapsed_seconds=result.elapsed_seconds,
                )

        session.record(result)
        if not isinstance(result, ScrapeSuccess):
            return

        # emit() never suspends, so a disconnect cannot land between the
        # relay and this write.
        spawn_background(
            self._cache_store.upsert(session.city, result.site, result.shop),
            name=f"cache-write:{session.city}:{result.site}",
        )
        session.cache_writes_issued += 1


@lru_cache(maxsize=1)
def get_search_orchestrator() -> SearchOrchestrator:
    """
    Build and cache the process-wide search orchestrator.
    """

    agent_settings = get_agent_settings()
    search_settings = get_search_settings()
    orchestrator = SearchOrchestrator(
        scraper=AgentSiteScraper(settings=agent_settings),
        cache_store=build_shop_cache_store(search_settings),
        stagger_seconds=search_settings.stagger_seconds,
        request_timeout_seconds=agent_settings.request_timeout_seconds,
    )
    logger.info("Search orchestrator ready (shop cache %s)",
                "enabled" if orchestrator.cache_enabled else "disabled")
    return orchestrator
