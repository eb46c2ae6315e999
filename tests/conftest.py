"""
Shared fakes and fixtures for the search test suite.

Nothing here touches the network or a real database: the agent is replaced
by FakeSiteScraper and the cache by FakeShopCacheStore.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest
from sqlalchemy.exc import OperationalError

from app.domain.search import CachedShop, ScrapeFailure, ScrapeResult, ScrapeSuccess, SearchSummary
from app.scraping.base import ProgressCallback, SiteScraper
from app.scraping.storage.base import ShopCacheStore
from app.services.background_tasks import drain_background_tasks
from app.services.event_sink import EventSink
from app.services.search_orchestrator import SearchOrchestrator

ALPHA_SITES = ("https://alpha-one.example/prices", "https://alpha-two.example/")
BETA_SITES = (
    "https://beta-one.example/",
    "https://beta-two.example/rentals",
    "https://beta-three.example/pricing",
)
TEST_REGIONS: dict[str, tuple[str, ...]] = {
    "alpha": ALPHA_SITES,
    "beta": BETA_SITES,
    "empty": (),
}

HANG = object()


def shop_for(site: str, name: str | None = None) -> dict[str, Any]:
    return {
        "shop_name": name or f"Shop at {site}",
        "city": "Test City",
        "website": site,
        "bikes": [],
        "notes": None,
    }


class FakeSiteScraper(SiteScraper):
    """
    Scripted scraper.

    ``outcomes`` maps a site to a shop dict (success), a string (failure
    reason), an exception (raised), or HANG (blocks until cancelled).
    Unlisted sites fail.
    """

    def __init__(
        self,
        outcomes: dict[str, Any] | None = None,
        *,
        streaming_urls: dict[str, str] | None = None,
    ) -> None:
        self.outcomes = outcomes or {}
        self.streaming_urls = streaming_urls or {}
        self.calls: list[str] = []
        self.call_times: dict[str, float] = {}
        self.timeouts: list[float | None] = []
        self.cancelled: list[str] = []

    async def run(
        self,
        site: str,
        *,
        goal: str,
        timeout: float | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ScrapeResult:
        self.calls.append(site)
        self.call_times[site] = asyncio.get_running_loop().time()
        self.timeouts.append(timeout)

        streaming_url = self.streaming_urls.get(site)
        if streaming_url and on_progress is not None:
            await on_progress(site, streaming_url)

        outcome = self.outcomes.get(site, "no COMPLETED event")
        if outcome is HANG:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled.append(site)
                raise
        await asyncio.sleep(0)

        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, dict):
            return ScrapeSuccess(site=site, shop=outcome)
        return ScrapeFailure(site=site, reason=str(outcome))


class FakeShopCacheStore(ShopCacheStore):
    """
    In-memory cache whose reads can be made to raise and whose writes can be
    held behind a gate.
    """

    def __init__(
        self,
        entries: dict[tuple[str, str], CachedShop] | None = None,
        *,
        read_fails: bool = False,
        write_gate: asyncio.Event | None = None,
    ) -> None:
        self.entries = dict(entries or {})
        self.read_fails = read_fails
        self.write_gate = write_gate
        self.reads: list[str] = []
        self.writes: list[tuple[str, str, dict[str, Any]]] = []

    async def read_fresh(self, city: str) -> dict[str, CachedShop]:
        self.reads.append(city)
        if self.read_fails:
            raise OperationalError("SELECT shop_cache_entries", {}, Exception("connection refused"))
        return {site: entry for (entry_city, site), entry in self.entries.items() if entry_city == city}

    async def upsert(self, city: str, site: str, shop: dict[str, Any]) -> None:
        if self.write_gate is not None:
            await self.write_gate.wait()
        self.writes.append((city, site, shop))
        self.entries[(city, site)] = CachedShop(
            site=site,
            shop=shop,
            scraped_at=datetime.now(timezone.utc),
        )


def cached(site: str, *, scraped_at: datetime | None = None) -> CachedShop:
    return CachedShop(
        site=site,
        shop=shop_for(site),
        scraped_at=scraped_at or datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc),
    )


def decode_frames(frames: list[bytes]) -> list[dict[str, Any]]:
    events: list[dict[str, Any]] = []
    for frame in frames:
        text = frame.decode("utf-8")
        if text.startswith(":"):
            continue
        assert text.startswith("data: ") and text.endswith("\n\n")
        events.append(json.loads(text[len("data: "):-2]))
    return events


async def run_search(
    orchestrator: SearchOrchestrator,
    city: str,
) -> tuple[list[bytes], SearchSummary]:
    """
    Run one search to completion and return raw frames plus the summary.
    """

    session = orchestrator.prepare(city)
    sink = EventSink()
    task = asyncio.create_task(orchestrator.run(session, sink))
    frames = [frame async for frame in sink.frames()]
    summary = await task
    await drain_background_tasks()
    return frames, summary


@pytest.fixture()
def recorded_sleeps() -> list[float]:
    return []


@pytest.fixture()
def make_orchestrator(recorded_sleeps: list[float]) -> Callable[..., SearchOrchestrator]:
    """
    Factory for orchestrators wired to fakes and TEST_REGIONS.

    Stagger delays are recorded instead of slept.
    """

    async def fake_sleep(delay: float) -> None:
        recorded_sleeps.append(delay)
        await asyncio.sleep(0)

    def factory(
        scraper: SiteScraper,
        cache_store: ShopCacheStore,
        *,
        stagger_seconds: float = 0.5,
        request_timeout_seconds: float = 270.0,
        real_sleep: bool = False,
    ) -> SearchOrchestrator:
        return SearchOrchestrator(
            scraper=scraper,
            cache_store=cache_store,
            stagger_seconds=stagger_seconds,
            request_timeout_seconds=request_timeout_seconds,
            regions=TEST_REGIONS,
            sleep=asyncio.sleep if real_sleep else fake_sleep,
        )

    return factory
