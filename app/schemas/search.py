"""
app/schemas/search.py

Wire models for city search: shop payloads, stream events and the
supported-regions listing.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

ResultSource = Literal["cache", "live"]


class BikeRecord(BaseModel):
    """
    One rentable bike listed by a shop. Prices are USD.
    """

    name: str
    engine_cc: int | None = None
    type: str = "scooter"
    price_daily_usd: float | None = None
    price_weekly_usd: float | None = None
    price_monthly_usd: float | None = None
    currency: str = "USD"
    deposit_usd: float | None = None
    available: bool = True


class ShopRecord(BaseModel):
    """
    Normalized result for one rental site.
    """

    shop_name: str = "Unknown Shop"
    city: str = ""
    website: str = ""
    bikes: list[BikeRecord] = Field(default_factory=list)
    notes: str | None = None


class ShopResultEvent(BaseModel):
    type: Literal["SHOP_RESULT"] = "SHOP_RESULT"
    shop: dict[str, Any]
    source: ResultSource
    cached_at: datetime | None = None


class StreamingUrlEvent(BaseModel):
    """
    Live-preview handle reported by the agent while a site is being scraped.
    """

    type: Literal["STREAMING_URL"] = "STREAMING_URL"
    site: str
    streamingUrl: str


class SearchCompleteEvent(BaseModel):
    type: Literal["SEARCH_COMPLETE"] = "SEARCH_COMPLETE"
    total: int = Field(..., ge=0)
    succeeded: int = Field(..., ge=0)
    cached: int = Field(..., ge=0)
    elapsed: str


class RegionsResponse(BaseModel):
    regions: dict[str, list[str]]
