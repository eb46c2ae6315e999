"""
app/repositories/shop_cache_repository.py

Persistence layer for cached shop scrape results.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from db.models.shop_cache_entry import UPSERT_INDEX_ELEMENTS, ShopCacheEntry


class ShopCacheRepository:
    """
    Repository for reading and upserting ShopCacheEntry rows.

    Upsert semantics: writing a ``(city, site_url)`` that already exists
    replaces ``shop_data`` and ``scraped_at`` instead of raising a
    duplicate-key error.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def upsert(
        self,
        *,
        city: str,
        site_url: str,
        shop_data: dict[str, Any],
        scraped_at: datetime,
    ) -> None:
        insert = self._dialect_insert()
        stmt = insert(ShopCacheEntry).values(
            id=uuid.uuid4(),
            city=city,
            site_url=site_url,
            shop_data=shop_data,
            scraped_at=scraped_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=list(UPSERT_INDEX_ELEMENTS),
            set_={
                "shop_data": stmt.excluded.shop_data,
                "scraped_at": stmt.excluded.scraped_at,
            },
        )
        self._session.execute(stmt)

    def list_fresh(self, *, city: str, scraped_after: datetime) -> list[ShopCacheEntry]:
        """
        Return entries for ``city`` captured strictly after ``scraped_after``.
        """
        stmt = (
            select(ShopCacheEntry)
            .where(
                ShopCacheEntry.city == city,
                ShopCacheEntry.scraped_at > scraped_after,
            )
            .order_by(ShopCacheEntry.scraped_at.desc())
        )
        return list(self._session.scalars(stmt).all())

    def _dialect_insert(self) -> Any:
        if self._session.get_bind().dialect.name == "sqlite":
            return sqlite.insert
        return postgresql.insert
