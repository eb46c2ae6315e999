"""
app/domain package marker.
"""

from app.domain.search import (
    CachedShop,
    ScrapeFailure,
    ScrapeResult,
    ScrapeSuccess,
    SearchPhase,
    SearchSession,
    SearchSummary,
    UnsupportedRegionError,
)

__all__ = [
    "CachedShop",
    "ScrapeFailure",
    "ScrapeResult",
    "ScrapeSuccess",
    "SearchPhase",
    "SearchSession",
    "SearchSummary",
    "UnsupportedRegionError",
]
