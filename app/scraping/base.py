"""
Base scraper abstraction for city search.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from app.domain.search import ScrapeResult

ProgressCallback = Callable[[str, str], Awaitable[None]]


class SiteScraper(ABC):
    """
    Scrapes one rental site per call and reports a single terminal result.
    """

    @abstractmethod
    async def run(
        self,
        site: str,
        *,
        goal: str,
        timeout: float | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ScrapeResult:
        """
        Scrape ``site`` and return ScrapeSuccess or ScrapeFailure.

        Implementations never raise for site-level problems and never retry.
        ``on_progress(site, streaming_url)`` is awaited for every live-preview
        handle seen before the terminal result.
        """
