"""
app/domain/search.py

Domain models for city search fan-out and cache-aside orchestration.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union


class UnsupportedRegionError(ValueError):
    """
    Raised when a city does not map to a non-empty site list.
    """

    def __init__(self, city: str) -> None:
        super().__init__(f"Unsupported city: {city!r}")
        self.city = city


@dataclass(frozen=True)
class ScrapeSuccess:
    """
    Terminal outcome of one agent run that produced a shop payload.
    """

    site: str
    shop: dict[str, Any]
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class ScrapeFailure:
    """
    Terminal outcome of one agent run that produced nothing usable.
    """

    site: str
    reason: str
    elapsed_seconds: float = 0.0


ScrapeResult = Union[ScrapeSuccess, ScrapeFailure]


@dataclass(frozen=True)
class CachedShop:
    """
    Fresh cache entry for one (city, site) pair.
    """

    site: str
    shop: dict[str, Any]
    scraped_at: datetime


class SearchPhase(str, Enum):
    INIT = "init"
    PARTITIONING = "partitioning"
    STREAMING = "streaming"
    COMPLETED = "completed"


@dataclass(frozen=True)
class SearchSummary:
    """
    Final tally for one search session.
    """

    total: int
    succeeded: int
    cached: int
    elapsed_seconds: float

    @property
    def elapsed(self) -> str:
        return format_elapsed(self.elapsed_seconds)


@dataclass
class SearchSession:
    """
    Request-scoped state for one city search.

    Only the orchestrating coroutine mutates a session; site tasks hand their
    results back to it instead of touching the counters.
    """

    city: str
    sites: tuple[str, ...]
    phase: SearchPhase = SearchPhase.INIT
    started_at: float | None = None
    cached: dict[str, CachedShop] = field(default_factory=dict)
    live_sites: list[str] = field(default_factory=list)
    in_flight: list[asyncio.Task] = field(default_factory=list)
    completed: int = 0
    live_succeeded: int = 0
    live_failed: int = 0
    cache_writes_issued: int = 0

    @property
    def total(self) -> int:
        return len(self.sites)

    @property
    def cached_count(self) -> int:
        return len(self.cached)

    @property
    def succeeded(self) -> int:
        return self.cached_count + self.live_succeeded

    def begin(self) -> None:
        self.started_at = time.monotonic()
        self.phase = SearchPhase.PARTITIONING

    def partition(self, fresh: dict[str, CachedShop]) -> None:
        """
        Split the region's sites into cached hits and live candidates.

        Live candidates keep the region list order; entries for sites no
        longer listed for the region are ignored.
        """

        self.cached = {site: fresh[site] for site in self.sites if site in fresh}
        self.live_sites = [site for site in self.sites if site not in self.cached]
        self.completed = len(self.cached)

    def record(self, result: ScrapeResult) -> None:
        self.completed += 1
        if isinstance(result, ScrapeSuccess):
            self.live_succeeded += 1
        else:
            self.live_failed += 1

    def summary(self) -> SearchSummary:
        elapsed = 0.0
        if self.started_at is not None:
            elapsed = time.monotonic() - self.started_at
        return SearchSummary(
            total=self.total,
            succeeded=self.succeeded,
            cached=self.cached_count,
            elapsed_seconds=elapsed,
        )


def format_elapsed(seconds: float) -> str:
    """Render a duration the way completion events carry it, e.g. ``12.3s``."""
    return f"{seconds:.1f}s"
