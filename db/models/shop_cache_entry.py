"""
db/models/shop_cache_entry.py

Time-boxed cache of scraped rental shop payloads.
One row per (city, site_url).
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, PortableJSON

UPSERT_INDEX_ELEMENTS = ("city", "site_url")


class ShopCacheEntry(Base):
    """
    Last successful scrape for one rental site in one city.

    The unique constraint on ``(city, site_url)`` drives upsert semantics:
    a fresh scrape replaces ``shop_data`` and ``scraped_at`` wholesale.
    Freshness is decided at read time; stale rows are never deleted here.
    """

    __tablename__ = "shop_cache_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    city: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Region identifier, e.g. hcmc",
    )
    site_url: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        comment="Scraped rental site URL",
    )
    shop_data: Mapped[dict[str, Any]] = mapped_column(
        PortableJSON,
        nullable=False,
        comment="Normalized shop payload as relayed to clients",
    )
    scraped_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Capture time of the live scrape (UTC)",
    )

    __table_args__ = (
        UniqueConstraint("city", "site_url", name="uq_shop_cache_entries_city_site"),
        Index("ix_shop_cache_entries_city_scraped_at", "city", "scraped_at"),
    )
